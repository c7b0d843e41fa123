"""REST API server."""
from __future__ import annotations

import logging
import math
from xml.etree import ElementTree as ET

from fastapi import FastAPI, HTTPException

from smil_timeline.animation.smil_compiler import smil_compiler
from smil_timeline.export.snapshotter import (
    compute_animated_bounds,
    measure_animated_bounds,
    snapshot_svg_at_time,
)
from smil_timeline.geometry.reprojector import apply_deltas, build_delta_map
from smil_timeline.schemas import (
    BoundsRequest,
    BoundsResponse,
    CompileRequest,
    CompileResponse,
    DelaysResponse,
    FreezeRequest,
    FreezeResponse,
    ReprojectRequest,
    ReprojectResponse,
    TimelineProject,
)
from smil_timeline.timeline.chain_delays import resolve_chains
from smil_timeline.timeline.playback_clock import PlaybackClock
from smil_timeline.utils.config import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="SMIL Timeline API")


def _require_markup(markup: str, field: str) -> None:
    try:
        ET.fromstring(markup)
    except ET.ParseError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {exc}") from exc


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/timeline/delays", response_model=DelaysResponse)
def timeline_delays(payload: TimelineProject):
    resolution = resolve_chains(payload.chains, payload.animations)
    max_duration = PlaybackClock(payload).max_duration(resolution)
    return DelaysResponse(
        delays=resolution.delays,
        blocked=sorted(resolution.blocked),
        # JSON has no infinity; null marks a timeline that never ends
        max_duration=max_duration if math.isfinite(max_duration) else None,
    )


@app.post("/api/animations/reproject", response_model=ReprojectResponse)
def reproject_animations(payload: ReprojectRequest):
    deltas = build_delta_map(payload.deltas)
    updated = apply_deltas(payload.animations, deltas)
    changed = [new.id for new, old in zip(updated, payload.animations) if new is not old]
    logger.info("Re-projected %d of %d animations", len(changed), len(updated))
    return ReprojectResponse(animations=updated, changed=changed)


@app.post("/api/animations/compile", response_model=CompileResponse)
def compile_animations(payload: CompileRequest):
    resolution = resolve_chains(payload.chains, payload.animations)
    if payload.svg_content is not None:
        _require_markup(payload.svg_content, "svgContent")
        markup, warnings = smil_compiler.compile_document(payload.svg_content, payload.animations, resolution)
        return CompileResponse(svg_content=markup, warnings=warnings)
    result = smil_compiler.compile_all(payload.animations, resolution)
    return CompileResponse(elements=result.elements, warnings=result.warnings)


@app.post("/api/export/bounds", response_model=BoundsResponse)
def export_bounds(payload: BoundsRequest):
    if payload.serialized_elements is not None:
        markup_defs = f"<svg xmlns='http://www.w3.org/2000/svg'>{payload.defs or ''}{payload.serialized_elements}</svg>"
        _require_markup(markup_defs, "serializedElements")
        bounds = compute_animated_bounds(payload.serialized_elements, payload.defs, payload.view_box)
    elif payload.svg_content is not None:
        _require_markup(payload.svg_content, "svgContent")
        bounds = measure_animated_bounds(payload.svg_content)
    else:
        raise HTTPException(status_code=400, detail="Provide serializedElements or svgContent")
    if bounds is None:
        raise HTTPException(status_code=404, detail="No bounds: nothing measurable was rendered")
    return BoundsResponse(**bounds.__dict__, width=bounds.width, height=bounds.height)


@app.post("/api/export/freeze", response_model=FreezeResponse)
def export_freeze(payload: FreezeRequest):
    _require_markup(payload.svg_content, "svgContent")
    frozen = snapshot_svg_at_time(payload.svg_content, payload.time)
    return FreezeResponse(svg_content=frozen, time=payload.time)
