"""Cleanup hooks run after elements are deleted from the document."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Set

from smil_timeline.animation.store import AnimationLibrary
from smil_timeline.models.animation import AnimationRecord
from smil_timeline.models.elements import ElementSnapshot
from smil_timeline.timeline.diagnostics import DiagnosticKind, report

logger = logging.getLogger(__name__)

CleanupHook = Callable[[Sequence[str], Sequence[ElementSnapshot]], Any]

ANIMATION_HOOK_NAME = "animation-system"

_PAINT_URL_RE = re.compile(r"url\(#([^)]+)\)")


class CleanupHookRegistry:
    def __init__(self) -> None:
        self._hooks: Dict[str, CleanupHook] = {}

    def register(self, name: str, hook: CleanupHook) -> None:
        self._hooks[name] = hook

    def unregister(self, name: str) -> None:
        self._hooks.pop(name, None)

    def names(self):
        return list(self._hooks)

    def run(self, deleted_ids: Iterable[str], remaining_elements: Iterable[ElementSnapshot]) -> Dict[str, Any]:
        deleted = list(dict.fromkeys(deleted_ids))
        remaining = list(remaining_elements)
        if not deleted:
            return {}
        return {name: hook(deleted, remaining) for name, hook in list(self._hooks.items())}


@dataclass
class ReferencedDefinitions:
    paints: Set[str] = field(default_factory=set)
    filters: Set[str] = field(default_factory=set)
    clip_paths: Set[str] = field(default_factory=set)
    masks: Set[str] = field(default_factory=set)
    markers: Set[str] = field(default_factory=set)

    @classmethod
    def collect(cls, elements: Iterable[ElementSnapshot]) -> "ReferencedDefinitions":
        refs = cls()
        for el in elements:
            data = el.data or {}
            for key in ("fillColor", "strokeColor"):
                paint = data.get(key)
                match = _PAINT_URL_RE.search(paint) if isinstance(paint, str) else None
                if match:
                    refs.paints.add(match.group(1))
            if data.get("filterId"):
                refs.filters.add(data["filterId"])
            clip = data.get("clipPathTemplateId") or data.get("clipPathId")
            if clip:
                refs.clip_paths.add(clip)
            if data.get("maskId"):
                refs.masks.add(data["maskId"])
            for key in ("markerStart", "markerMid", "markerEnd"):
                if data.get(key):
                    refs.markers.add(data[key])
        return refs

    def is_referenced(self, def_kind: str, def_id: str) -> bool:
        pools = {
            "gradient": self.paints,
            "pattern": self.paints,
            "filter": self.filters,
            "clipPath": self.clip_paths,
            "mask": self.masks,
            "marker": self.markers,
        }
        pool = pools.get(def_kind)
        return True if pool is None else def_id in pool


def _is_orphaned(anim: AnimationRecord, deleted: Set[str], refs: ReferencedDefinitions) -> bool:
    if anim.target_element_id and anim.target_element_id in deleted:
        return True
    target = anim.definition_target
    if target is None:
        return False
    return target.def_id in deleted or not refs.is_referenced(target.def_kind, target.def_id)


def animation_cleanup_hook(
    deleted_ids: Sequence[str],
    remaining_elements: Sequence[ElementSnapshot],
    library: AnimationLibrary,
    clock: Optional[Any] = None,
) -> Set[str]:
    """Drop records whose target is gone; returns the removed animation ids."""
    animations = library.animations
    if not animations:
        return set()
    deleted = set(deleted_ids)
    refs = ReferencedDefinitions.collect(remaining_elements)

    orphaned = [anim for anim in animations if _is_orphaned(anim, deleted, refs)]
    if not orphaned:
        return set()
    for anim in orphaned:
        report(DiagnosticKind.ORPHANED_ANIMATION, anim.id, f"target {anim.target_id} no longer exists")

    removed = library.remove_many(anim.id for anim in orphaned)
    if clock is not None:
        clock.forget_delays(removed)
    logger.info("Pruned %d orphaned animations: %s", len(removed), sorted(removed))
    return removed


def register_animation_cleanup_hook(
    registry: CleanupHookRegistry, library: AnimationLibrary, clock: Optional[Any] = None
) -> None:
    registry.register(ANIMATION_HOOK_NAME, partial(animation_cleanup_hook, library=library, clock=clock))


def unregister_animation_cleanup_hook(registry: CleanupHookRegistry) -> None:
    registry.unregister(ANIMATION_HOOK_NAME)


cleanup_registry = CleanupHookRegistry()
