"""Structured diagnostics for best-effort fallbacks.

Nothing in the engine raises on malformed timing or geometry input. Every
fallback instead goes through `report()`, which logs it and hands a
`Diagnostic` to subscribers so the failure model can be observed and tested.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, List

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    UNPARSABLE_NUMBER = "unparsable_number"
    UNPARSABLE_TIME = "unparsable_time"
    UNPARSABLE_PATH = "unparsable_path"
    DEGENERATE_DELTA = "degenerate_delta"
    MISSING_CHAIN_ANIMATION = "missing_chain_animation"
    CHAIN_TAIL_BLOCKED = "chain_tail_blocked"
    MISSING_TIME_CONTROL = "missing_time_control"
    MISSING_MOTION_PATH = "missing_motion_path"
    BOUNDS_UNAVAILABLE = "bounds_unavailable"
    ORPHANED_ANIMATION = "orphaned_animation"
    INVALID_MARKUP = "invalid_markup"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    value: Any
    detail: str = ""

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.detail or 'fallback'}: {self.value!r}"


Listener = Callable[[Diagnostic], None]


class DiagnosticLog:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def report(self, kind: DiagnosticKind, value: Any, detail: str = "") -> Diagnostic:
        event = Diagnostic(kind=kind, value=value, detail=detail)
        logger.warning("%s", event)
        for listener in list(self._listeners):
            listener(event)
        return event

    @contextmanager
    def capture(self) -> Iterator[List[Diagnostic]]:
        """Collect every diagnostic reported inside the block."""
        events: List[Diagnostic] = []
        unsubscribe = self.subscribe(events.append)
        try:
            yield events
        finally:
            unsubscribe()


diagnostics = DiagnosticLog()


def report(kind: DiagnosticKind, value: Any, detail: str = "") -> Diagnostic:
    return diagnostics.report(kind, value, detail)
