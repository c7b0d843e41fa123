"""Path data normalisation built on `svg.path`.

Every path is reduced to absolute M/L/C/Z commands. Quadratic curves are
elevated to cubics and elliptical arcs are split into cubic pieces, so an
affine matrix can be applied to the control points exactly.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from svg.path import Arc, Close, CubicBezier, Line, Move, QuadraticBezier, parse_path

from smil_timeline.geometry.matrix import apply_to_point
from smil_timeline.geometry.values import format_number
from smil_timeline.timeline.diagnostics import DiagnosticKind, report

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass
class PathCommand:
    command: str
    points: List[Point] = field(default_factory=list)


def _pt(value: complex) -> Point:
    return (value.real, value.imag)


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)


def arc_to_cubics(arc: Arc) -> List[PathCommand]:
    """Endpoint arc -> list of cubic commands (SVG implementation notes F.6.5)."""
    x1, y1 = _pt(arc.start)
    x2, y2 = _pt(arc.end)
    if x1 == x2 and y1 == y2:
        return []
    rx, ry = abs(arc.radius.real), abs(arc.radius.imag)
    if rx == 0 or ry == 0:
        return [PathCommand("L", [(x2, y2)])]

    phi = math.radians(arc.rotation)
    cos_phi, sin_phi = math.cos(phi), math.sin(phi)
    dx2, dy2 = (x1 - x2) / 2.0, (y1 - y2) / 2.0
    x1p = cos_phi * dx2 + sin_phi * dy2
    y1p = -sin_phi * dx2 + cos_phi * dy2

    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        rx *= math.sqrt(lam)
        ry *= math.sqrt(lam)

    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if bool(arc.arc) == bool(arc.sweep):
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

    theta1 = _vector_angle(1.0, 0.0, (x1p - cxp) / rx, (y1p - cyp) / ry)
    dtheta = _vector_angle((x1p - cxp) / rx, (y1p - cyp) / ry, (-x1p - cxp) / rx, (-y1p - cyp) / ry)
    if not arc.sweep and dtheta > 0:
        dtheta -= 2 * math.pi
    elif arc.sweep and dtheta < 0:
        dtheta += 2 * math.pi

    def to_canvas(u: float, v: float) -> Point:
        return (
            cx + rx * cos_phi * u - ry * sin_phi * v,
            cy + rx * sin_phi * u + ry * cos_phi * v,
        )

    pieces = max(1, int(math.ceil(abs(dtheta) / (math.pi / 2) - 1e-9)))
    step = dtheta / pieces
    k = 4.0 / 3.0 * math.tan(step / 4.0)
    commands: List[PathCommand] = []
    t1 = theta1
    for i in range(pieces):
        t2 = t1 + step
        c1 = to_canvas(math.cos(t1) - k * math.sin(t1), math.sin(t1) + k * math.cos(t1))
        c2 = to_canvas(math.cos(t2) + k * math.sin(t2), math.sin(t2) - k * math.cos(t2))
        end = (x2, y2) if i == pieces - 1 else to_canvas(math.cos(t2), math.sin(t2))
        commands.append(PathCommand("C", [c1, c2, end]))
        t1 = t2
    return commands


def _quadratic_to_cubic(segment: QuadraticBezier) -> PathCommand:
    sx, sy = _pt(segment.start)
    qx, qy = _pt(segment.control)
    ex, ey = _pt(segment.end)
    c1 = (sx + 2.0 / 3.0 * (qx - sx), sy + 2.0 / 3.0 * (qy - sy))
    c2 = (ex + 2.0 / 3.0 * (qx - ex), ey + 2.0 / 3.0 * (qy - ey))
    return PathCommand("C", [c1, c2, (ex, ey)])


def normalize_path(d: Optional[str]) -> Optional[List[PathCommand]]:
    """Parse `d` into absolute M/L/C/Z commands; None when it cannot be parsed."""
    if not d or not d.strip():
        return None
    try:
        path = parse_path(d)
    except (ValueError, IndexError, TypeError) as exc:
        report(DiagnosticKind.UNPARSABLE_PATH, d, str(exc))
        return None

    commands: List[PathCommand] = []
    for segment in path:
        if isinstance(segment, Move):
            commands.append(PathCommand("M", [_pt(segment.end)]))
        elif isinstance(segment, Close):
            commands.append(PathCommand("Z"))
        elif isinstance(segment, Line):
            commands.append(PathCommand("L", [_pt(segment.end)]))
        elif isinstance(segment, CubicBezier):
            commands.append(PathCommand("C", [_pt(segment.control1), _pt(segment.control2), _pt(segment.end)]))
        elif isinstance(segment, QuadraticBezier):
            commands.append(_quadratic_to_cubic(segment))
        elif isinstance(segment, Arc):
            commands.extend(arc_to_cubics(segment))
    if not commands:
        report(DiagnosticKind.UNPARSABLE_PATH, d, "path has no segments")
        return None
    return commands


def serialize_path(commands: Sequence[PathCommand], precision: Optional[int] = None) -> str:
    parts = []
    for cmd in commands:
        coords = " ".join(
            f"{format_number(x, precision)} {format_number(y, precision)}" for x, y in cmd.points
        )
        parts.append(f"{cmd.command} {coords}" if coords else cmd.command)
    return " ".join(parts)


def transform_path(d: str, matrix: Sequence[float], precision: Optional[int] = None) -> str:
    """Apply `matrix` to every coordinate of `d`; returns `d` unchanged if unparsable."""
    commands = normalize_path(d)
    if commands is None:
        return d
    moved = [PathCommand(cmd.command, [apply_to_point(matrix, p) for p in cmd.points]) for cmd in commands]
    return serialize_path(moved, precision)


def _cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    mt = 1.0 - t
    a, b, c, d = mt * mt * mt, 3 * mt * mt * t, 3 * mt * t * t, t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


def sample_points(commands: Sequence[PathCommand], curve_steps: int = 16) -> List[Point]:
    """Points along the outline, curves sampled at `curve_steps` per segment."""
    points: List[Point] = []
    current: Optional[Point] = None
    subpath_start: Optional[Point] = None
    for cmd in commands:
        if cmd.command == "M":
            current = subpath_start = cmd.points[0]
            points.append(current)
        elif cmd.command == "L":
            current = cmd.points[0]
            points.append(current)
        elif cmd.command == "C":
            start = current if current is not None else cmd.points[0]
            c1, c2, end = cmd.points
            for i in range(1, curve_steps + 1):
                points.append(_cubic_point(start, c1, c2, end, i / curve_steps))
            current = end
        elif cmd.command == "Z" and subpath_start is not None:
            current = subpath_start
    return points
