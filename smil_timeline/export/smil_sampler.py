"""Evaluate SMIL animation directives of a parsed SVG document at a given time.

This is the timing model the headless surface uses in place of a browser's
native animation engine: begin / dur / repeatCount / repeatDur / end / fill,
calcMode (discrete, linear, paced, spline) with keyTimes and keySplines, and
from/to/by/values keyframes.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from xml.etree import ElementTree as ET

from smil_timeline.geometry.values import format_number, split_keyframes
from smil_timeline.timeline.durations import parse_seconds, repeat_count_value

logger = logging.getLogger(__name__)

XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

DIRECTIVE_TAGS = ("animate", "animateTransform", "animateMotion", "set")

NUMBER_SPLITTER = re.compile(r"([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(r"^rgb\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*\)$")


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def href_of(el: ET.Element) -> Optional[str]:
    ref = el.get("href") or el.get(XLINK_HREF)
    if ref and ref.startswith("#"):
        return ref[1:]
    return None


def is_directive(el: ET.Element) -> bool:
    return isinstance(el.tag, str) and _strip_ns(el.tag) in DIRECTIVE_TAGS


def _parse_begin(value: Optional[str]) -> float:
    """Earliest offset in a begin list; inf when it never starts on its own."""
    if value is None or not value.strip():
        return 0.0
    offsets = []
    for token in value.split(";"):
        token = token.strip()
        if not token or token == "indefinite":
            continue
        offsets.append(parse_seconds(token))
    return min(offsets) if offsets else math.inf


@dataclass
class TimedDirective:
    """One `<animate>`-family node with its timing parsed."""

    element: ET.Element
    tag: str
    target: Optional[ET.Element]
    begin: float
    dur: float
    repeat_count: float
    repeat_dur: Optional[float]
    end: Optional[float]
    fill: str
    attribute_name: Optional[str]
    calc_mode: str
    additive: str
    key_times: Optional[List[float]] = None
    key_splines: List[Tuple[float, float, float, float]] = field(default_factory=list)

    @classmethod
    def from_element(cls, el: ET.Element, target: Optional[ET.Element]) -> "TimedDirective":
        tag = _strip_ns(el.tag)
        repeat_dur_raw = el.get("repeatDur")
        end_raw = el.get("end")
        default_calc = "paced" if tag == "animateMotion" else "linear"
        return cls(
            element=el,
            tag=tag,
            target=target,
            begin=_parse_begin(el.get("begin")),
            dur=parse_seconds(el.get("dur")) if el.get("dur") else math.inf if tag == "set" else 0.0,
            repeat_count=repeat_count_value(el.get("repeatCount")),
            repeat_dur=parse_seconds(repeat_dur_raw) if repeat_dur_raw else None,
            end=_parse_begin(end_raw) if end_raw else None,
            fill=el.get("fill") or "remove",
            attribute_name=el.get("attributeName"),
            calc_mode=(el.get("calcMode") or default_calc),
            additive=el.get("additive") or "replace",
            key_times=_parse_float_list(el.get("keyTimes")),
            key_splines=_parse_splines(el.get("keySplines")),
        )

    @property
    def effective_duration(self) -> float:
        """repeatDur when positive, else dur."""
        if self.repeat_dur is not None and self.repeat_dur > 0:
            return self.repeat_dur
        return self.dur

    @property
    def active_duration(self) -> float:
        if self.repeat_dur is not None and self.repeat_dur > 0:
            active = self.repeat_dur
        else:
            active = self.dur * self.repeat_count if self.dur > 0 else self.dur
        if self.end is not None and math.isfinite(self.end):
            active = min(active, max(0.0, self.end - self.begin))
        return active

    def progress_at(self, t: float) -> Optional[float]:
        """Simple-duration fraction in [0, 1] at time t, None when not in effect."""
        if math.isinf(self.begin) or t < self.begin:
            return None
        elapsed = t - self.begin
        active = self.active_duration
        if elapsed >= active:
            if self.fill != "freeze":
                return None
            if self.dur <= 0 or math.isinf(self.dur):
                return 1.0
            remainder = math.fmod(active, self.dur)
            return 1.0 if remainder < 1e-9 else remainder / self.dur
        if self.dur <= 0 or math.isinf(self.dur):
            return 0.0
        return math.fmod(elapsed, self.dur) / self.dur


def _parse_float_list(value: Optional[str]) -> Optional[List[float]]:
    if not value:
        return None
    try:
        return [float(v) for v in split_keyframes(value)]
    except ValueError:
        return None


def _parse_splines(value: Optional[str]) -> List[Tuple[float, float, float, float]]:
    splines = []
    for frame in split_keyframes(value):
        parts = [p for p in re.split(r"[\s,]+", frame) if p]
        if len(parts) == 4:
            try:
                x1, y1, x2, y2 = (float(p) for p in parts)
            except ValueError:
                return []
            splines.append((x1, y1, x2, y2))
    return splines


def _bezier(p1: float, p2: float, t: float) -> float:
    mt = 1.0 - t
    return 3 * mt * mt * t * p1 + 3 * mt * t * t * p2 + t * t * t


def spline_ease(spline: Tuple[float, float, float, float], x: float) -> float:
    """y on a (0,0)-(1,1) cubic bezier for a given x, solved by bisection."""
    x1, y1, x2, y2 = spline
    lo, hi = 0.0, 1.0
    t = x
    for _ in range(40):
        t = (lo + hi) / 2.0
        if _bezier(x1, x2, t) < x:
            lo = t
        else:
            hi = t
    return _bezier(y1, y2, t)


def _neutral_transform(kind: str, to: Optional[str], by: Optional[str]) -> Optional[str]:
    """Identity value of a transform type, shaped like the `to` (or `by`) value."""
    nums = numbers_in(to if to is not None else by)
    if not nums:
        return None
    if kind == "scale":
        neutral = [1.0] * len(nums)
    elif kind == "rotate" and to is not None:
        # the center stays put, only the angle starts at zero
        neutral = [0.0] + nums[1:]
    else:
        neutral = [0.0] * len(nums)
    return " ".join(format_number(n, 4) for n in neutral)


def keyframes_of(directive: TimedDirective, base_value: Optional[str]) -> List[str]:
    el = directive.element
    values = el.get("values")
    if values:
        return split_keyframes(values)
    start, end, by = el.get("from"), el.get("to"), el.get("by")
    if start is None and directive.tag == "animateTransform":
        start = _neutral_transform(el.get("type") or "translate", end, by)
    if start is None:
        start = base_value
    if end is None and by is not None and start is not None:
        end = add_values(start, by)
    if directive.tag == "set":
        return [end] if end is not None else []
    return [v for v in (start, end) if v is not None]


def value_at(directive: TimedDirective, fraction: float, base_value: Optional[str] = None) -> Optional[str]:
    frames = keyframes_of(directive, base_value)
    if not frames:
        return None
    if len(frames) == 1:
        return frames[0]
    fraction = min(1.0, max(0.0, fraction))
    count = len(frames)

    if directive.calc_mode == "discrete":
        times = directive.key_times if directive.key_times and len(directive.key_times) == count else [
            i / count for i in range(count)
        ]
        index = 0
        for i, kt in enumerate(times):
            if fraction >= kt:
                index = i
        return frames[index]

    times = directive.key_times if directive.key_times and len(directive.key_times) == count else [
        i / (count - 1) for i in range(count)
    ]
    if fraction >= times[-1]:
        return frames[-1]
    for i in range(count - 1):
        start, stop = times[i], times[i + 1]
        if start <= fraction <= stop:
            local = 0.0 if stop <= start else (fraction - start) / (stop - start)
            if directive.calc_mode == "spline" and i < len(directive.key_splines):
                local = spline_ease(directive.key_splines[i], local)
            return interpolate_values(frames[i], frames[i + 1], local)
    return frames[0]


def _parse_color(value: str) -> Optional[Tuple[float, float, float]]:
    text = value.strip()
    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return tuple(float(int(digits[i : i + 2], 16)) for i in (0, 2, 4))
    match = _RGB_RE.match(text)
    if match:
        return tuple(float(match.group(i)) for i in (1, 2, 3))
    return None


def _is_number(token: str) -> bool:
    return bool(NUMBER_SPLITTER.fullmatch(token))


def interpolate_values(start: str, end: str, fraction: float) -> str:
    """Linear interpolation of two value strings.

    Colours are interpolated per channel, numbers token-wise (units and
    separators are kept from `start`); anything else switches at half-way.
    """
    color_a, color_b = _parse_color(start), _parse_color(end)
    if color_a and color_b:
        channels = [round(a + (b - a) * fraction) for a, b in zip(color_a, color_b)]
        return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in channels)

    parts_a = NUMBER_SPLITTER.split(start.strip())
    parts_b = NUMBER_SPLITTER.split(end.strip())
    nums_a = [p for p in parts_a if _is_number(p)]
    nums_b = [p for p in parts_b if _is_number(p)]
    if nums_a and len(nums_a) == len(nums_b):
        lerped = iter(
            format_number(float(a) + (float(b) - float(a)) * fraction, 4) for a, b in zip(nums_a, nums_b)
        )
        return "".join(next(lerped) if _is_number(p) else p for p in parts_a)
    return start if fraction < 0.5 else end


def add_values(base: str, delta: str) -> str:
    """Token-wise numeric sum, used for `by` and additive="sum"."""
    parts = NUMBER_SPLITTER.split(base.strip())
    deltas = [float(p) for p in NUMBER_SPLITTER.split(delta.strip()) if _is_number(p)]
    if not deltas:
        return base
    out = []
    index = 0
    for part in parts:
        if _is_number(part) and index < len(deltas):
            out.append(format_number(float(part) + deltas[index], 4))
            index += 1
        else:
            out.append(part)
    return "".join(out)


def numbers_in(value: Optional[str]) -> List[float]:
    if not value:
        return []
    return [float(p) for p in NUMBER_SPLITTER.split(value) if _is_number(p)]


class DocumentIndex:
    """Parent links, ids and directives grouped by the element they animate."""

    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self.refresh()

    def refresh(self) -> None:
        self.parents: Dict[ET.Element, ET.Element] = {
            child: parent for parent in self.root.iter() for child in parent
        }
        self.by_id: Dict[str, ET.Element] = {
            el.get("id"): el for el in self.root.iter() if el.get("id")
        }
        self.directives: List[TimedDirective] = []
        self._by_target: Dict[int, List[TimedDirective]] = {}
        for el in self.root.iter():
            if not is_directive(el):
                continue
            ref = href_of(el)
            target = self.by_id.get(ref) if ref else self.parents.get(el)
            directive = TimedDirective.from_element(el, target)
            self.directives.append(directive)
            if target is not None:
                self._by_target.setdefault(id(target), []).append(directive)

    def directives_for(self, el: ET.Element) -> List[TimedDirective]:
        return self._by_target.get(id(el), [])

    def attribute_at(self, el: ET.Element, name: str, t: float) -> Optional[str]:
        """Animated value of one attribute (animate/set, document order)."""
        value = el.get(name)
        for directive in self.directives_for(el):
            if directive.tag not in ("animate", "set") or directive.attribute_name != name:
                continue
            fraction = directive.progress_at(t)
            if fraction is None:
                continue
            animated = value_at(directive, fraction, value)
            if animated is None:
                continue
            if directive.additive == "sum" and value is not None:
                value = add_values(value, animated)
            else:
                value = animated
        return value

    def mpath_data(self, directive: TimedDirective) -> Optional[str]:
        path = directive.element.get("path")
        if path:
            return path
        for child in directive.element:
            if _strip_ns(child.tag) != "mpath":
                continue
            ref = href_of(child)
            node = self.by_id.get(ref) if ref else None
            if node is not None and node.get("d"):
                return node.get("d")
        return None


def sample_times(max_duration: float, min_samples: int, max_step: float) -> List[float]:
    """0, every step up to and including `max_duration`, and `max_duration` itself."""
    samples = max(min_samples, int(math.ceil(max_duration / max_step)))
    step = (max_duration or 1.0) / samples
    times = [0.0]
    times.extend(step * i for i in range(1, samples + 1))
    times.append(max_duration)
    return times


def longest_effective_duration(directives: Sequence[TimedDirective], default: float = 1.0) -> float:
    """Longest finite begin + effective duration; `default` when there is none."""
    longest = 0.0
    for directive in directives:
        begin = directive.begin if math.isfinite(directive.begin) else 0.0
        effective = directive.effective_duration
        if math.isfinite(effective) and effective > 0:
            longest = max(longest, begin + effective)
    return longest if longest > 0 else default
