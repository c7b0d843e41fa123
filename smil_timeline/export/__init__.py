"""Export Module.

Components:
- smil_sampler: SMIL timing and value interpolation for parsed documents
- svg_surface: headless rendering surface with native-like time control
- offscreen: scoped off-screen containers
- snapshotter: animated bounds and deterministic freezing
"""

from smil_timeline.export.offscreen import RenderHost, offscreen_container, render_host
from smil_timeline.export.snapshotter import (
    Bounds,
    compute_animated_bounds,
    measure_animated_bounds,
    paused_export_time,
    snapshot_svg_at_time,
)
from smil_timeline.export.svg_surface import BBox, SvgSurface

__all__ = [
    "BBox",
    "Bounds",
    "RenderHost",
    "SvgSurface",
    "compute_animated_bounds",
    "measure_animated_bounds",
    "offscreen_container",
    "paused_export_time",
    "render_host",
    "snapshot_svg_at_time",
]
