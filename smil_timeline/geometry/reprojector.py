"""Geometry-delta re-projection of animation values.

When an unrelated edit moves, scales or rotates an element, the values of
its animations are rewritten so they still describe the same visual motion.
Records are never mutated; a changed record is a copy and an unchanged
record is returned as the very same object.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from smil_timeline.geometry.matrix import Matrix, apply_to_point, as_matrix, inverse, is_identity, multiply
from smil_timeline.geometry.path_data import transform_path
from smil_timeline.geometry.values import (
    RotateValue,
    format_number,
    format_numbers,
    join_keyframes,
    parse_numbers,
    split_keyframes,
)
from smil_timeline.models.animation import AnimationRecord
from smil_timeline.models.elements import ElementSnapshot, TransformDelta
from smil_timeline.timeline.diagnostics import DiagnosticKind, report

logger = logging.getLogger(__name__)

X_AXIS_ATTRIBUTES = frozenset({"x", "x1", "x2", "cx"})
Y_AXIS_ATTRIBUTES = frozenset({"y", "y1", "y2", "cy"})

VALUE_FIELDS = ("values", "from_", "to")


def delta_matrix(before: Sequence[float], after: Sequence[float]) -> Optional[Matrix]:
    """after * inverse(before), or None when `before` is degenerate."""
    inv = inverse(before)
    if inv is None:
        return None
    return multiply(after, inv)


def build_delta_map(entries: Iterable[TransformDelta]) -> Dict[str, Matrix]:
    """Element id -> delta matrix; degenerate and identity deltas are dropped."""
    deltas: Dict[str, Matrix] = {}
    for entry in entries:
        delta = delta_matrix(entry.before, entry.after)
        if delta is None:
            report(DiagnosticKind.DEGENERATE_DELTA, entry.element_id, "transform is not invertible")
            continue
        if is_identity(delta):
            continue
        deltas[entry.element_id] = delta
    return deltas


def compute_transform_deltas(
    before: Iterable[ElementSnapshot], after: Iterable[ElementSnapshot]
) -> List[TransformDelta]:
    """Deltas for every element present in both snapshots whose transform changed."""
    previous = {el.id: el for el in before}
    entries = []
    for el in after:
        old = previous.get(el.id)
        if old is None or tuple(old.transform) == tuple(el.transform):
            continue
        entries.append(TransformDelta(element_id=el.id, before=old.transform, after=el.transform))
    return entries


def _map_keyframes(value: Optional[str], rewrite) -> Optional[str]:
    if value is None or not value.strip():
        return value
    frames = split_keyframes(value)
    if not frames:
        return value
    rewritten = join_keyframes([rewrite(frame) if frame else frame for frame in frames])
    return value if rewritten == value else rewritten


def _recenter_rotate(frame: str, delta: Matrix) -> str:
    rotation = RotateValue.parse(frame)
    if rotation is None:
        return frame
    cx, cy = apply_to_point(delta, rotation.center)
    return rotation.with_center(cx, cy).format()


def _reproject_rotate(anim: AnimationRecord, delta: Matrix) -> Dict[str, Optional[str]]:
    return {name: _map_keyframes(getattr(anim, name), lambda f: _recenter_rotate(f, delta)) for name in VALUE_FIELDS}


def _reproject_axis(anim: AnimationRecord, delta: Matrix) -> Dict[str, Optional[str]]:
    name = anim.attribute_name or ""
    if name in X_AXIS_ATTRIBUTES:
        shift = delta.e
    elif name in Y_AXIS_ATTRIBUTES:
        shift = delta.f
    else:
        return {}
    if format_number(shift) == "0":
        return {}

    def shift_frame(frame: str) -> str:
        numbers = parse_numbers(frame)
        if numbers is None:
            return frame
        return format_numbers([n + shift for n in numbers])

    return {field_name: _map_keyframes(getattr(anim, field_name), shift_frame) for field_name in VALUE_FIELDS}


def reproject_animation(anim: AnimationRecord, delta: Sequence[float]) -> AnimationRecord:
    """Re-project one record under `delta`; same object back when nothing changes."""
    delta = as_matrix(delta)
    if is_identity(delta):
        return anim

    updates: Dict[str, Optional[str]] = {}
    if anim.kind == "transform":
        if anim.transform_kind == "rotate":
            updates = _reproject_rotate(anim, delta)
        # translate values are offsets on top of geometry that already moved
    elif anim.kind == "motion":
        if anim.path and not anim.mpath:
            updates = {"path": transform_path(anim.path, delta)}
    elif anim.kind == "attribute":
        updates = _reproject_axis(anim, delta)

    changed = {name: value for name, value in updates.items() if value != getattr(anim, name)}
    if not changed:
        return anim
    logger.debug("Re-projected %s: %s", anim.id, sorted(changed))
    return anim.model_copy(update=changed)


def apply_deltas(
    animations: Sequence[AnimationRecord], deltas: Mapping[str, Sequence[float]]
) -> List[AnimationRecord]:
    """Re-project every record whose direct element target has a delta."""
    if not deltas:
        return list(animations)
    result = []
    for anim in animations:
        target = anim.element_target_id
        delta = deltas.get(target) if target else None
        result.append(anim if delta is None else reproject_animation(anim, delta))
    return result
