"""Duration arithmetic for SMIL timing fields."""
from __future__ import annotations

import math
import re
from typing import Any, Optional, Union

from smil_timeline.timeline.diagnostics import DiagnosticKind, report

_OFFSET_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*(ms|s|min|h)?$")
_CLOCK_RE = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)$")
_UNIT_SCALE = {None: 1.0, "s": 1.0, "ms": 0.001, "min": 60.0, "h": 3600.0}

INDEFINITE = "indefinite"


def parse_seconds(value: Union[str, float, int, None]) -> float:
    """Parse a SMIL clock value into seconds.

    Missing values are 0, "indefinite" is infinity, anything unparsable is 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) or value > 0 else 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    if text == INDEFINITE:
        return math.inf
    match = _OFFSET_RE.match(text)
    if match:
        return float(match.group(1)) * _UNIT_SCALE[match.group(2)]
    match = _CLOCK_RE.match(text)
    if match:
        hours = float(match.group(1) or 0)
        return hours * 3600.0 + float(match.group(2)) * 60.0 + float(match.group(3))
    report(DiagnosticKind.UNPARSABLE_TIME, value, "clock value falls back to 0s")
    return 0.0


def parse_number(value: Any, default: float = 0.0) -> float:
    """Best-effort float parse; reports and returns `default` on garbage."""
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        report(DiagnosticKind.UNPARSABLE_NUMBER, value, f"number falls back to {default}")
        return default


def repeat_count_value(repeat_count: Any) -> float:
    if repeat_count is None or repeat_count == "":
        return 1.0
    if repeat_count == INDEFINITE:
        return math.inf
    count = parse_number(repeat_count, default=1.0)
    return count if count > 0 else 1.0


def _repeat_dur_seconds(anim: Any) -> Optional[float]:
    raw = getattr(anim, "repeat_dur", None)
    if not raw:
        return None
    return parse_seconds(raw)


def total_duration_seconds(anim: Any) -> float:
    """Total active duration of one animation in seconds (may be infinite).

    repeatDur wins over repeatCount; an indefinite repeatCount is infinite;
    otherwise dur * repeatCount.
    """
    if anim is None:
        return 0.0
    repeat_dur = _repeat_dur_seconds(anim)
    if repeat_dur is not None and repeat_dur > 0:
        return repeat_dur
    repeat = repeat_count_value(getattr(anim, "repeat_count", 1))
    if math.isinf(repeat):
        return math.inf
    return parse_seconds(getattr(anim, "dur", None)) * repeat


def preview_duration_seconds(anim: Any) -> float:
    """Duration used to size preview overlays: indefinite repeats count once."""
    if anim is None:
        return 0.0
    repeat_dur = _repeat_dur_seconds(anim)
    if repeat_dur is not None and repeat_dur > 0 and math.isfinite(repeat_dur):
        return repeat_dur
    repeat = repeat_count_value(getattr(anim, "repeat_count", 1))
    if math.isinf(repeat):
        repeat = 1.0
    return parse_seconds(getattr(anim, "dur", None)) * repeat
