"""Scoped off-screen containers for measuring and freezing markup."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional
from xml.etree import ElementTree as ET

from smil_timeline.export.svg_surface import SvgSurface

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[ET.Element], SvgSurface]


class RenderHost:
    """The render tree invisible containers get attached to."""

    def __init__(self, surface_factory: SurfaceFactory = SvgSurface) -> None:
        self.attached: List[SvgSurface] = []
        self._surface_factory = surface_factory

    def attach(self, markup: str) -> SvgSurface:
        """Parse `markup` into a hidden container; raises ET.ParseError on bad markup."""
        surface = self._surface_factory(ET.fromstring(markup))
        self.attached.append(surface)
        return surface

    def detach(self, surface: SvgSurface) -> None:
        if surface in self.attached:
            self.attached.remove(surface)


render_host = RenderHost()


@contextmanager
def offscreen_container(markup: str, host: Optional[RenderHost] = None) -> Iterator[SvgSurface]:
    """Attach markup off-screen for the duration of the block, detaching on every exit."""
    host = host or render_host
    surface = host.attach(markup)
    try:
        yield surface
    finally:
        host.detach(surface)
        logger.debug("Detached off-screen container (%d still attached)", len(host.attached))
