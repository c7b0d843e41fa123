"""Tagged value structs for animation value strings.

Value strings are parsed once here so the re-projector and the compiler do
not re-split `"angle,cx,cy"` style text themselves.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from smil_timeline.timeline.diagnostics import DiagnosticKind, report
from smil_timeline.utils.config import settings

_SEPARATORS = re.compile(r"[\s,]+")


def format_number(value: float, precision: Optional[int] = None) -> str:
    """Round and drop trailing zeros: 10.0 -> "10", 1.23456 -> "1.235"."""
    digits = settings.value_precision if precision is None else precision
    text = f"{round(float(value), digits):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def split_keyframes(text: Optional[str]) -> List[str]:
    """Split a `values` attribute into its `;`-separated keyframes."""
    if text is None:
        return []
    frames = [part.strip() for part in text.split(";")]
    while frames and not frames[-1]:
        frames.pop()
    return frames


def join_keyframes(frames: Sequence[str]) -> str:
    return ";".join(frames)


def parse_numbers(text: Optional[str], quiet: bool = False) -> Optional[List[float]]:
    """All tokens of a value as floats, or None if any token is not a plain number."""
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    numbers: List[float] = []
    for token in _SEPARATORS.split(stripped):
        if not token:
            continue
        try:
            numbers.append(float(token))
        except ValueError:
            if not quiet:
                report(DiagnosticKind.UNPARSABLE_NUMBER, text, "value left unchanged")
            return None
    return numbers or None


def format_numbers(numbers: Sequence[float], separator: str = " ", precision: Optional[int] = None) -> str:
    return separator.join(format_number(n, precision) for n in numbers)


@dataclass(frozen=True)
class RotateValue:
    """One rotate keyframe: an angle with an optional explicit center."""

    angle: float
    cx: Optional[float] = None
    cy: Optional[float] = None
    # authored angle token, written back verbatim
    angle_text: Optional[str] = field(default=None, compare=False, repr=False)

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["RotateValue"]:
        numbers = parse_numbers(text)
        if not numbers:
            return None
        angle_text = _SEPARATORS.split(text.strip())[0]
        if len(numbers) >= 3:
            return cls(numbers[0], numbers[1], numbers[2], angle_text=angle_text)
        return cls(numbers[0], angle_text=angle_text)

    @property
    def has_center(self) -> bool:
        return self.cx is not None and self.cy is not None

    @property
    def center(self):
        if self.has_center:
            return (self.cx, self.cy)
        return (0.0, 0.0)

    def with_center(self, cx: float, cy: float) -> "RotateValue":
        return replace(self, cx=cx, cy=cy)

    def format(self, separator: str = ",", precision: Optional[int] = None) -> str:
        angle = self.angle_text or format_number(self.angle, precision)
        if not self.has_center:
            return angle
        return separator.join((angle, format_numbers((self.cx, self.cy), separator, precision)))
