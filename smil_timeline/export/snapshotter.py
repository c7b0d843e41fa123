"""Export/preview snapshots of animated SVG markup.

Two operations share the off-screen attach/detach discipline:

- compute_animated_bounds: sample the timeline and union the bounding boxes
  swept by the animated content.
- snapshot_svg_at_time: freeze the document at one time, write the
  interpolated values as static attributes and drop the SMIL directives.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional
from xml.etree import ElementTree as ET

from smil_timeline.export.offscreen import RenderHost, offscreen_container
from smil_timeline.export.smil_sampler import (
    TimedDirective,
    add_values,
    keyframes_of,
    longest_effective_duration,
    numbers_in,
    sample_times,
    value_at,
)
from smil_timeline.export.svg_surface import SvgSurface
from smil_timeline.geometry.matrix import format_matrix
from smil_timeline.geometry.values import format_number
from smil_timeline.timeline.diagnostics import DiagnosticKind, report
from smil_timeline.timeline.state import TimelineState
from smil_timeline.utils.config import settings

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"


@dataclass
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_dict(self) -> Dict[str, float]:
        return {
            "minX": self.min_x,
            "minY": self.min_y,
            "maxX": self.max_x,
            "maxY": self.max_y,
            "width": self.width,
            "height": self.height,
        }


def _time_control(surface: Any, name: str, *args: Any) -> Any:
    control = getattr(surface, name, None)
    if not callable(control):
        report(DiagnosticKind.MISSING_TIME_CONTROL, name, "surface lacks time control")
        return None
    return control(*args)


def _register_svg_namespace() -> None:
    ET.register_namespace("", SVG_NS)


def sample_bounds(
    surface: SvgSurface, min_samples: Optional[int] = None, max_step: Optional[float] = None
) -> Optional[Bounds]:
    """Union of the content bbox over the whole (single-iteration) timeline."""
    min_samples = settings.bounds_min_samples if min_samples is None else min_samples
    max_step = settings.bounds_max_step_s if max_step is None else max_step

    for directive in surface.index.directives:
        directive.element.set("repeatCount", "1")
    surface.refresh()

    max_duration = longest_effective_duration(surface.index.directives)
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for t in sample_times(max_duration, min_samples, max_step):
        _time_control(surface, "set_current_time", t)
        bbox = _time_control(surface, "get_bbox")
        if bbox is None:
            continue
        min_x = min(min_x, bbox.x)
        min_y = min(min_y, bbox.y)
        max_x = max(max_x, bbox.x + bbox.width)
        max_y = max(max_y, bbox.y + bbox.height)

    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        report(DiagnosticKind.BOUNDS_UNAVAILABLE, max_duration, "no finite measurement")
        return None
    return Bounds(min_x, min_y, max_x, max_y)


def build_export_markup(serialized_elements: str, defs: Optional[str], view_box: str) -> str:
    defs_block = f"<defs>{defs}</defs>" if defs else ""
    return (
        f'<svg xmlns="{SVG_NS}" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'viewBox="{view_box}" preserveAspectRatio="xMidYMid meet">'
        f'{defs_block}<g data-export-root="true">{serialized_elements}</g></svg>'
    )


def compute_animated_bounds(
    serialized_elements: str,
    defs: Optional[str] = None,
    view_box: str = "0 0 100 100",
    host: Optional[RenderHost] = None,
    min_samples: Optional[int] = None,
    max_step: Optional[float] = None,
) -> Optional[Bounds]:
    """Bounds swept by serialized elements during one pass of their animations."""
    markup = build_export_markup(serialized_elements, defs, view_box)
    return measure_animated_bounds(markup, host=host, min_samples=min_samples, max_step=max_step)


def measure_animated_bounds(
    svg_content: str,
    host: Optional[RenderHost] = None,
    min_samples: Optional[int] = None,
    max_step: Optional[float] = None,
) -> Optional[Bounds]:
    """Same sampling for a complete SVG document."""
    try:
        with offscreen_container(svg_content, host) as surface:
            return sample_bounds(surface, min_samples, max_step)
    except ET.ParseError as exc:
        report(DiagnosticKind.INVALID_MARKUP, str(exc), "bounds not measured")
        return None


def freeze_progress(directive: TimedDirective, time_seconds: float) -> float:
    effective = directive.effective_duration
    if effective <= 0:
        effective = 0.00001
    local = max(0.0, time_seconds - directive.begin)
    return min(1.0, local / effective)


def _freeze_transform(directive: TimedDirective, target: ET.Element, progress: float) -> None:
    frames = keyframes_of(directive, None)
    if not frames:
        return
    value = value_at(directive, progress) if len(frames) > 1 else frames[0]
    nums = numbers_in(value)
    if not nums:
        return
    kind = directive.element.get("type") or "translate"
    frozen = f"{kind}({' '.join(format_number(n, 4) for n in nums)})"
    existing = (target.get("transform") or "").strip()
    if directive.additive == "sum" and existing:
        target.set("transform", f"{existing} {frozen}")
    else:
        target.set("transform", frozen)


def _freeze_attribute(directive: TimedDirective, target: ET.Element, progress: float) -> None:
    name = directive.attribute_name
    if not name:
        return
    base = target.get(name)
    value = value_at(directive, progress, base)
    if value is None:
        return
    if directive.additive == "sum" and base is not None:
        value = add_values(base, value)
    target.set(name, value)


def _freeze_motion(surface: SvgSurface, directive: TimedDirective, target: ET.Element, progress: float) -> None:
    motion = surface.motion_matrix(directive, progress)
    existing = (target.get("transform") or "").strip()
    target.set("transform", f"{format_matrix(motion)} {existing}".strip())


def freeze_directives(surface: SvgSurface, time_seconds: float) -> int:
    """Write every directive's value at `time_seconds` and remove the directives."""
    directives = list(surface.index.directives)
    for directive in directives:
        target = directive.target
        if target is None or math.isinf(directive.begin):
            continue
        progress = freeze_progress(directive, time_seconds)
        if directive.tag == "animateTransform":
            _freeze_transform(directive, target, progress)
        elif directive.tag == "animate":
            _freeze_attribute(directive, target, progress)
        elif directive.tag == "set":
            if time_seconds >= directive.begin and directive.attribute_name and directive.element.get("to") is not None:
                target.set(directive.attribute_name, directive.element.get("to"))
        elif directive.tag == "animateMotion":
            _freeze_motion(surface, directive, target, progress)

    for directive in directives:
        parent = surface.index.parents.get(directive.element)
        if parent is not None:
            parent.remove(directive.element)
    surface.refresh()
    return len(directives)


def snapshot_svg_at_time(
    svg_content: str, time_seconds: Optional[float], host: Optional[RenderHost] = None
) -> str:
    """Static markup of the document frozen at `time_seconds` (None: unchanged)."""
    if time_seconds is None:
        return svg_content
    try:
        with offscreen_container(svg_content, host) as surface:
            _time_control(surface, "unpause_animations")
            _time_control(surface, "set_current_time", time_seconds)
            _time_control(surface, "pause_animations")
            removed = freeze_directives(surface, time_seconds)
            logger.debug("Froze %d directives at %.3fs", removed, time_seconds)
            _register_svg_namespace()
            return ET.tostring(surface.root, encoding="unicode")
    except ET.ParseError as exc:
        report(DiagnosticKind.INVALID_MARKUP, str(exc), "snapshot returns the input unchanged")
        return svg_content


def paused_export_time(state: TimelineState) -> Optional[float]:
    """Time to freeze an export at: the playhead when playback is paused mid-way."""
    if state.has_played and not state.is_playing:
        return state.current_time_seconds
    return None
