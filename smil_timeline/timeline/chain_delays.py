"""Chain delay resolver.

Turns ordered animation chains into per-animation begin offsets (ms).
Entries are processed in declared order; each chain keeps its own cursor.

- trigger "end":   base = cursor + delay; cursor = base + duration
- trigger "start": base = delay;          cursor = max(cursor, base + duration)

An "end" entry whose predecessor never finishes (indefinite duration) can
never fire. Such entries get no delay; they are returned in `blocked` and
reported as `chain_tail_blocked`.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Set, Union

from smil_timeline.models.animation import AnimationChain, AnimationRecord
from smil_timeline.timeline.diagnostics import DiagnosticKind, report
from smil_timeline.timeline.durations import total_duration_seconds

logger = logging.getLogger(__name__)

AnimationLookup = Union[Mapping[str, AnimationRecord], Iterable[AnimationRecord]]


@dataclass
class ChainResolution:
    delays: Dict[str, float] = field(default_factory=dict)
    blocked: Set[str] = field(default_factory=set)

    def begin_for(self, animation_id: str, authored_begin: Optional[str]) -> Optional[str]:
        """Begin attribute value the serializer should emit for one animation."""
        if animation_id in self.blocked:
            return "indefinite"
        if animation_id in self.delays:
            return format_delay(self.delays[animation_id])
        return authored_begin


def format_delay(delay_ms: float) -> str:
    seconds = round(delay_ms / 1000.0, 6)
    if seconds == int(seconds):
        return f"{int(seconds)}s"
    return f"{seconds:g}s"


def _index(animations: AnimationLookup) -> Mapping[str, AnimationRecord]:
    if isinstance(animations, Mapping):
        return animations
    return {anim.id: anim for anim in animations}


def resolve_chains(chains: Iterable[AnimationChain], animations: AnimationLookup) -> ChainResolution:
    by_id = _index(animations)
    result = ChainResolution()

    for chain in chains:
        cursor_ms = 0.0
        for entry in chain.entries:
            animation = by_id.get(entry.animation_id)
            if animation is None:
                report(
                    DiagnosticKind.MISSING_CHAIN_ANIMATION,
                    entry.animation_id,
                    f"chain {chain.id} references a missing animation",
                )
                continue

            entry_delay_ms = max(0.0, entry.delay_seconds) * 1000.0
            # Last writer wins across chains, including a previous "blocked" verdict.
            result.blocked.discard(entry.animation_id)

            if entry.trigger == "end":
                if math.isinf(cursor_ms):
                    result.delays.pop(entry.animation_id, None)
                    result.blocked.add(entry.animation_id)
                    report(
                        DiagnosticKind.CHAIN_TAIL_BLOCKED,
                        entry.animation_id,
                        f"chain {chain.id}: predecessor never ends",
                    )
                    continue
                base = cursor_ms + entry_delay_ms
                result.delays[entry.animation_id] = base
                cursor_ms = base + total_duration_seconds(animation) * 1000.0
            else:
                base = entry_delay_ms
                result.delays[entry.animation_id] = base
                cursor_ms = max(cursor_ms, base + total_duration_seconds(animation) * 1000.0)

    logger.debug("Resolved %d chain delays (%d blocked)", len(result.delays), len(result.blocked))
    return result


def resolve_delays(chains: Iterable[AnimationChain], animations: AnimationLookup) -> Dict[str, float]:
    """Map animation id -> begin offset in milliseconds for every chained animation."""
    return resolve_chains(chains, animations).delays
