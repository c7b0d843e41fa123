"""Timeline Module.

Components:
- durations: SMIL clock values and total animation durations
- chain_delays: chain entries -> per-animation begin offsets
- playback_clock: the single playback time authority
- schedulers: frame sources driving the clock
- diagnostics: structured events for best-effort fallbacks
"""

from smil_timeline.timeline.chain_delays import ChainResolution, format_delay, resolve_chains, resolve_delays
from smil_timeline.timeline.diagnostics import Diagnostic, DiagnosticKind, diagnostics, report
from smil_timeline.timeline.durations import (
    parse_seconds,
    preview_duration_seconds,
    total_duration_seconds,
)
from smil_timeline.timeline.playback_clock import PlaybackClock
from smil_timeline.timeline.schedulers import AsyncioFrameScheduler, ManualFrameScheduler
from smil_timeline.timeline.state import TimelineState

__all__ = [
    "AsyncioFrameScheduler",
    "ChainResolution",
    "Diagnostic",
    "DiagnosticKind",
    "ManualFrameScheduler",
    "PlaybackClock",
    "TimelineState",
    "diagnostics",
    "format_delay",
    "parse_seconds",
    "preview_duration_seconds",
    "report",
    "resolve_chains",
    "resolve_delays",
    "total_duration_seconds",
]
