"""2D affine matrices in SVG order (a, b, c, d, e, f).

    | a c e |
    | b d f |
    | 0 0 1 |
"""
from __future__ import annotations

import math
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from smil_timeline.timeline.diagnostics import DiagnosticKind, report

Point = Tuple[float, float]

EPSILON = 1e-6

_TRANSFORM_RE = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


class Matrix(NamedTuple):
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def translation(self) -> Point:
        return (self.e, self.f)


IDENTITY = Matrix()


def as_matrix(values: Sequence[float]) -> Matrix:
    return values if isinstance(values, Matrix) else Matrix(*(float(v) for v in values))


def multiply(m1: Sequence[float], m2: Sequence[float]) -> Matrix:
    """m1 * m2: apply m2 first, then m1."""
    a1, b1, c1, d1, e1, f1 = m1
    a2, b2, c2, d2, e2, f2 = m2
    return Matrix(
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def inverse(m: Sequence[float]) -> Optional[Matrix]:
    """Inverse matrix, or None when the matrix is degenerate."""
    a, b, c, d, e, f = m
    det = a * d - b * c
    if abs(det) < EPSILON:
        return None
    return Matrix(
        d / det,
        -b / det,
        -c / det,
        a / det,
        (c * f - d * e) / det,
        (b * e - a * f) / det,
    )


def apply_to_point(m: Sequence[float], point: Point) -> Point:
    a, b, c, d, e, f = m
    x, y = point
    return (a * x + c * y + e, b * x + d * y + f)


def is_identity(m: Sequence[float], tolerance: float = EPSILON) -> bool:
    return all(abs(v - ref) < tolerance for v, ref in zip(m, IDENTITY))


def translate(tx: float, ty: float = 0.0) -> Matrix:
    return Matrix(1.0, 0.0, 0.0, 1.0, tx, ty)


def scale(sx: float, sy: Optional[float] = None, cx: float = 0.0, cy: float = 0.0) -> Matrix:
    sy = sx if sy is None else sy
    return Matrix(sx, 0.0, 0.0, sy, cx - sx * cx, cy - sy * cy)


def rotate(angle_deg: float, cx: float = 0.0, cy: float = 0.0) -> Matrix:
    rad = math.radians(angle_deg)
    cos, sin = math.cos(rad), math.sin(rad)
    return Matrix(cos, sin, -sin, cos, cx - cos * cx + sin * cy, cy - sin * cx - cos * cy)


def skew_x(angle_deg: float) -> Matrix:
    return Matrix(1.0, 0.0, math.tan(math.radians(angle_deg)), 1.0, 0.0, 0.0)


def skew_y(angle_deg: float) -> Matrix:
    return Matrix(1.0, math.tan(math.radians(angle_deg)), 0.0, 1.0, 0.0, 0.0)


def compose(matrices: Iterable[Sequence[float]]) -> Matrix:
    """Left-to-right product, the way an SVG transform list composes."""
    result = IDENTITY
    for m in matrices:
        result = multiply(result, m)
    return result


def _transform_function(name: str, args: List[float]) -> Optional[Matrix]:
    if name == "matrix" and len(args) == 6:
        return Matrix(*args)
    if name == "translate" and args:
        return translate(args[0], args[1] if len(args) > 1 else 0.0)
    if name == "scale" and args:
        return scale(args[0], args[1] if len(args) > 1 else None)
    if name == "rotate" and args:
        if len(args) >= 3:
            return rotate(args[0], args[1], args[2])
        return rotate(args[0])
    if name == "skewX" and args:
        return skew_x(args[0])
    if name == "skewY" and args:
        return skew_y(args[0])
    return None


def parse_transform(value: Optional[str]) -> Matrix:
    """Parse an SVG `transform` attribute into a single matrix.

    Unknown or malformed functions are skipped with a diagnostic.
    """
    if not value or not value.strip():
        return IDENTITY
    parts: List[Matrix] = []
    for name, raw_args in _TRANSFORM_RE.findall(value):
        args = [float(n) for n in _NUMBER_RE.findall(raw_args)]
        m = _transform_function(name, args)
        if m is None:
            report(DiagnosticKind.UNPARSABLE_NUMBER, f"{name}({raw_args})", "transform function ignored")
            continue
        parts.append(m)
    return compose(parts)


def decompose_matrix(m: Sequence[float]) -> Dict[str, float]:
    """Split a matrix into translate, rotation, scale and skewX (degrees)."""
    a, b, c, d, e, f = m
    scale_x = math.hypot(a, b)
    if scale_x < EPSILON:
        return {
            "translate_x": round(e, 2),
            "translate_y": round(f, 2),
            "scale_x": 0.0,
            "scale_y": 0.0,
            "rotation": 0.0,
            "skew_x": 0.0,
            "skew_y": 0.0,
        }
    rotation = math.atan2(b, a)
    cos, sin = math.cos(rotation), math.sin(rotation)
    shear = c * cos + d * sin
    scale_y = -c * sin + d * cos
    skew = math.atan(shear / scale_y) if abs(scale_y) > EPSILON else 0.0
    return {
        "translate_x": round(e, 2),
        "translate_y": round(f, 2),
        "scale_x": round(scale_x, 3),
        "scale_y": round(scale_y, 3),
        "rotation": round(math.degrees(rotation), 2),
        "skew_x": round(math.degrees(skew), 2),
        "skew_y": 0.0,
    }


def format_matrix(m: Sequence[float], precision: int = 6) -> str:
    return "matrix(" + " ".join(_fmt(v, precision) for v in m) + ")"


def _fmt(value: float, precision: int) -> str:
    text = f"{round(value, precision):.{precision}f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text
