"""Headless rendering surface for SVG documents with SMIL animations.

`SvgSurface` exposes the same time-control calls a browser `<svg>` element
offers (setCurrentTime, pauseAnimations, ...) and measures animated
geometry with `get_bbox`, so the playback clock and the snapshotter can run
without a DOM.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from xml.etree import ElementTree as ET

from svg.path import parse_path

from smil_timeline.export.smil_sampler import (
    DocumentIndex,
    TimedDirective,
    numbers_in,
    value_at,
)
from smil_timeline.geometry import matrix as mx
from smil_timeline.geometry.path_data import normalize_path, sample_points
from smil_timeline.timeline.diagnostics import DiagnosticKind, report

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

NON_RENDERED = {
    "defs",
    "clipPath",
    "mask",
    "symbol",
    "marker",
    "pattern",
    "linearGradient",
    "radialGradient",
    "filter",
    "style",
    "script",
    "title",
    "desc",
    "metadata",
    "animate",
    "animateTransform",
    "animateMotion",
    "set",
    "mpath",
}

ELLIPSE_STEPS = 32


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


@dataclass
class BBox:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> Optional["BBox"]:
        xs, ys = [], []
        for x, y in points:
            if math.isfinite(x) and math.isfinite(y):
                xs.append(x)
                ys.append(y)
        if not xs:
            return None
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


def transform_matrix(kind: str, value: Optional[str]) -> mx.Matrix:
    nums = numbers_in(value)
    if not nums:
        return mx.IDENTITY
    if kind == "translate":
        return mx.translate(nums[0], nums[1] if len(nums) > 1 else 0.0)
    if kind == "scale":
        return mx.scale(nums[0], nums[1] if len(nums) > 1 else None)
    if kind == "rotate":
        if len(nums) >= 3:
            return mx.rotate(nums[0], nums[1], nums[2])
        return mx.rotate(nums[0])
    if kind == "skewX":
        return mx.skew_x(nums[0])
    if kind == "skewY":
        return mx.skew_y(nums[0])
    return mx.IDENTITY


class SvgSurface:
    """A parsed SVG document plus a document clock."""

    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self.index = DocumentIndex(root)
        self._time = 0.0
        self._paused = False

    @classmethod
    def from_markup(cls, markup: str) -> "SvgSurface":
        return cls(ET.fromstring(markup))

    # -- time control -------------------------------------------------------

    def set_current_time(self, seconds: float) -> None:
        self._time = max(0.0, float(seconds))

    def get_current_time(self) -> float:
        return self._time

    def pause_animations(self) -> None:
        self._paused = True

    def unpause_animations(self) -> None:
        self._paused = False

    def animations_paused(self) -> bool:
        return self._paused

    def refresh(self) -> None:
        """Re-index after the document tree was edited."""
        self.index.refresh()

    # -- geometry -------------------------------------------------------------

    def export_root(self) -> ET.Element:
        for el in self.root.iter():
            if el.get("data-export-root") == "true":
                return el
        return self.root

    def get_bbox(self, element: Optional[ET.Element] = None) -> Optional[BBox]:
        """Bounding box of the animated content in root user space."""
        target = self.export_root() if element is None else element
        ctm = self._ancestor_ctm(target)
        points: List[Point] = []
        self._collect(target, ctm, points, depth=0)
        return BBox.from_points(points)

    def _ancestor_ctm(self, el: ET.Element) -> mx.Matrix:
        chain = []
        node = self.index.parents.get(el)
        while node is not None and node is not self.root:
            chain.append(node)
            node = self.index.parents.get(node)
        ctm = mx.IDENTITY
        for ancestor in reversed(chain):
            ctm = mx.multiply(ctm, self.local_matrix(ancestor))
        return ctm

    def local_matrix(self, el: ET.Element) -> mx.Matrix:
        """Transform attribute with animateTransform and animateMotion applied."""
        t = self._time
        current = mx.parse_transform(el.get("transform"))
        motion = mx.IDENTITY
        for directive in self.index.directives_for(el):
            fraction = directive.progress_at(t)
            if fraction is None:
                continue
            if directive.tag == "animateTransform":
                if (directive.attribute_name or "transform") != "transform":
                    continue
                kind = directive.element.get("type") or "translate"
                value = value_at(directive, fraction)
                m = transform_matrix(kind, value)
                current = mx.multiply(current, m) if directive.additive == "sum" else m
            elif directive.tag == "animateMotion":
                motion = mx.multiply(motion, self.motion_matrix(directive, fraction))
        return mx.multiply(motion, current)

    def motion_matrix(self, directive: TimedDirective, fraction: float) -> mx.Matrix:
        d = self.index.mpath_data(directive)
        if not d:
            report(DiagnosticKind.MISSING_MOTION_PATH, directive.element.get("id"), "motion stays static")
            return mx.IDENTITY
        try:
            path = parse_path(d)
            point = path.point(min(1.0, max(0.0, fraction)))
        except (ValueError, IndexError, ZeroDivisionError) as exc:
            report(DiagnosticKind.UNPARSABLE_PATH, d, str(exc))
            return mx.IDENTITY
        m = mx.translate(point.real, point.imag)
        rotate = directive.element.get("rotate")
        if rotate in ("auto", "auto-reverse"):
            if fraction > 0.999:
                a, b = path.point(0.999), point
            else:
                a, b = point, path.point(min(1.0, fraction + 0.001))
            angle = math.degrees(math.atan2(b.imag - a.imag, b.real - a.real))
            if rotate == "auto-reverse":
                angle += 180.0
            m = mx.multiply(m, mx.rotate(angle))
        elif rotate:
            nums = numbers_in(rotate)
            if nums:
                m = mx.multiply(m, mx.rotate(nums[0]))
        return m

    def _attr(self, el: ET.Element, name: str, default: float = 0.0) -> float:
        nums = numbers_in(self.index.attribute_at(el, name, self._time))
        return nums[0] if nums else default

    def _is_hidden(self, el: ET.Element) -> bool:
        display = self.index.attribute_at(el, "display", self._time)
        return (display or "").strip() == "none"

    def shape_points(self, el: ET.Element) -> List[Point]:
        tag = _strip_ns(el.tag)
        if tag in ("rect", "image", "use", "foreignObject"):
            x, y = self._attr(el, "x"), self._attr(el, "y")
            w, h = self._attr(el, "width"), self._attr(el, "height")
            if tag == "use" and w <= 0 and h <= 0:
                return []
            return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
        if tag in ("circle", "ellipse"):
            cx, cy = self._attr(el, "cx"), self._attr(el, "cy")
            if tag == "circle":
                rx = ry = self._attr(el, "r")
            else:
                rx, ry = self._attr(el, "rx"), self._attr(el, "ry")
            return [
                (cx + rx * math.cos(2 * math.pi * i / ELLIPSE_STEPS), cy + ry * math.sin(2 * math.pi * i / ELLIPSE_STEPS))
                for i in range(ELLIPSE_STEPS)
            ]
        if tag == "line":
            return [
                (self._attr(el, "x1"), self._attr(el, "y1")),
                (self._attr(el, "x2"), self._attr(el, "y2")),
            ]
        if tag in ("polyline", "polygon"):
            nums = numbers_in(self.index.attribute_at(el, "points", self._time))
            return list(zip(nums[0::2], nums[1::2]))
        if tag == "path":
            commands = normalize_path(self.index.attribute_at(el, "d", self._time))
            return sample_points(commands) if commands else []
        if tag == "text":
            return [(self._attr(el, "x"), self._attr(el, "y"))]
        return []

    def _collect(self, el: ET.Element, ctm: mx.Matrix, points: List[Point], depth: int) -> None:
        if not isinstance(el.tag, str):
            return
        tag = _strip_ns(el.tag)
        if tag in NON_RENDERED or self._is_hidden(el) or depth > 32:
            return
        if el is not self.root:
            ctm = mx.multiply(ctm, self.local_matrix(el))
        points.extend(mx.apply_to_point(ctm, p) for p in self.shape_points(el))
        if tag == "use":
            ref = el.get("href") or el.get("{http://www.w3.org/1999/xlink}href")
            node = self.index.by_id.get(ref[1:]) if ref and ref.startswith("#") else None
            if node is not None and _strip_ns(node.tag) != "symbol":
                offset = mx.translate(self._attr(el, "x"), self._attr(el, "y"))
                self._collect_referenced(node, mx.multiply(ctm, offset), points, depth + 1)
        for child in el:
            self._collect(child, ctm, points, depth + 1)

    def _collect_referenced(self, node: ET.Element, ctm: mx.Matrix, points: List[Point], depth: int) -> None:
        # referenced content renders even when it lives inside <defs>
        if depth > 32:
            return
        ctm = mx.multiply(ctm, self.local_matrix(node))
        points.extend(mx.apply_to_point(ctm, p) for p in self.shape_points(node))
        for child in node:
            if isinstance(child.tag, str) and _strip_ns(child.tag) not in NON_RENDERED:
                self._collect_referenced(child, ctm, points, depth + 1)
