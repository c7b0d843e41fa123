import pytest

from smil_timeline.geometry import matrix as mx
from smil_timeline.timeline.diagnostics import DiagnosticKind, diagnostics


def _close(point, expected):
    return point == pytest.approx(expected, abs=1e-9)


def test_multiply_applies_right_operand_first():
    m = mx.multiply(mx.translate(10, 0), mx.scale(2))
    assert _close(mx.apply_to_point(m, (1, 1)), (12, 2))


def test_inverse_round_trip():
    m = mx.compose([mx.translate(5, -3), mx.rotate(33), mx.scale(2, 0.5)])
    assert mx.is_identity(mx.multiply(m, mx.inverse(m)))


def test_degenerate_matrix_has_no_inverse():
    assert mx.inverse(mx.scale(0)) is None
    assert mx.inverse((1, 2, 2, 4, 0, 0)) is None


def test_rotate_around_center():
    m = mx.rotate(90, 10, 10)
    assert _close(mx.apply_to_point(m, (20, 10)), (10, 20))


def test_parse_transform_list_composes_left_to_right():
    m = mx.parse_transform("translate(10 20) rotate(90)")
    assert _close(mx.apply_to_point(m, (1, 0)), (10, 21))


def test_parse_transform_matrix_and_empty():
    assert mx.parse_transform("matrix(1,0,0,1,7,8)") == mx.translate(7, 8)
    assert mx.parse_transform("") == mx.IDENTITY
    assert mx.parse_transform(None) == mx.IDENTITY


def test_parse_transform_skips_malformed_function():
    with diagnostics.capture() as events:
        m = mx.parse_transform("rotate() translate(5)")
    assert m == mx.translate(5)
    assert events[0].kind == DiagnosticKind.UNPARSABLE_NUMBER


def test_decompose_matrix():
    m = mx.compose([mx.translate(5, 6), mx.rotate(30), mx.scale(2, 3)])
    parts = mx.decompose_matrix(m)
    assert parts["translate_x"] == 5
    assert parts["translate_y"] == 6
    assert parts["rotation"] == pytest.approx(30)
    assert parts["scale_x"] == pytest.approx(2)
    assert parts["scale_y"] == pytest.approx(3)
    assert parts["skew_x"] == pytest.approx(0)


def test_decompose_skew():
    parts = mx.decompose_matrix(mx.skew_x(20))
    assert parts["skew_x"] == pytest.approx(20)
    assert parts["rotation"] == pytest.approx(0)


def test_format_matrix():
    assert mx.format_matrix(mx.IDENTITY) == "matrix(1 0 0 1 0 0)"
    assert mx.format_matrix(mx.translate(2.5, -1)) == "matrix(1 0 0 1 2.5 -1)"
