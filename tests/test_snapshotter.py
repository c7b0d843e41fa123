from xml.etree import ElementTree as ET

import pytest

from smil_timeline.export import snapshotter
from smil_timeline.export.offscreen import RenderHost
from smil_timeline.export.snapshotter import (
    compute_animated_bounds,
    measure_animated_bounds,
    paused_export_time,
    snapshot_svg_at_time,
)
from smil_timeline.timeline.diagnostics import DiagnosticKind, diagnostics
from smil_timeline.timeline.state import TimelineState

SVG_NS = "{http://www.w3.org/2000/svg}"

MOVING_SQUARE = (
    '<rect width="10" height="10">'
    '<animateTransform attributeName="transform" type="translate" from="0 0" to="100 0" dur="1s" fill="freeze"/>'
    "</rect>"
)


def _svg(body):
    return f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">{body}</svg>'


@pytest.fixture
def host():
    return RenderHost()


def _frozen(markup):
    return ET.fromstring(markup)


def test_bounds_cover_the_whole_motion(host):
    bounds = compute_animated_bounds(MOVING_SQUARE, host=host)
    assert bounds.min_x == pytest.approx(0)
    assert bounds.max_x == pytest.approx(110)
    assert bounds.min_y == pytest.approx(0)
    assert bounds.max_y == pytest.approx(10)
    assert bounds.width == pytest.approx(110)
    assert host.attached == []


def test_bounds_run_repeats_once(host):
    looping = MOVING_SQUARE.replace('fill="freeze"', 'fill="freeze" repeatCount="indefinite"')
    bounds = compute_animated_bounds(looping, host=host)
    assert bounds.max_x == pytest.approx(110)


def test_bounds_include_begin_offset(host):
    delayed = MOVING_SQUARE.replace('dur="1s"', 'dur="1s" begin="1s"')
    bounds = compute_animated_bounds(delayed, host=host)
    assert bounds.max_x == pytest.approx(110)


def test_bounds_follow_animated_attributes(host):
    body = '<circle cx="50" cy="50" r="5"><animate attributeName="r" from="5" to="20" dur="2s" fill="freeze"/></circle>'
    bounds = compute_animated_bounds(body, host=host)
    assert bounds.min_x == pytest.approx(30, abs=0.1)
    assert bounds.max_x == pytest.approx(70, abs=0.1)


def test_bounds_include_defs_references(host):
    defs = '<rect id="tile" width="4" height="4"/>'
    body = '<use href="#tile" x="20" y="30"/>'
    bounds = compute_animated_bounds(body, defs=defs, host=host)
    assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == pytest.approx((20, 30, 24, 34))


def test_no_content_means_no_bounds(host):
    with diagnostics.capture() as events:
        assert compute_animated_bounds("", host=host) is None
    assert events[-1].kind == DiagnosticKind.BOUNDS_UNAVAILABLE


def test_invalid_markup_means_no_bounds(host):
    with diagnostics.capture() as events:
        assert measure_animated_bounds("<svg><rect></svg>", host=host) is None
    assert events[0].kind == DiagnosticKind.INVALID_MARKUP
    assert host.attached == []


def test_container_is_detached_when_sampling_fails(host, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("surface lost")

    monkeypatch.setattr(snapshotter, "sample_bounds", boom)
    with pytest.raises(RuntimeError):
        compute_animated_bounds(MOVING_SQUARE, host=host)
    assert host.attached == []


def test_freeze_without_time_returns_input():
    markup = _svg(MOVING_SQUARE)
    assert snapshot_svg_at_time(markup, None) is markup


def test_freeze_interpolates_attribute(host):
    markup = _svg('<rect id="r" x="0" width="10" height="10"><animate attributeName="x" from="0" to="100" dur="2s"/></rect>')
    out = snapshot_svg_at_time(markup, 1.0, host=host)
    rect = _frozen(out).find(f"{SVG_NS}rect")
    assert rect.get("x") == "50"
    assert rect.find(f"{SVG_NS}animate") is None
    assert "<animate" not in out
    assert host.attached == []


def test_freeze_respects_begin_and_clamps(host):
    markup = _svg('<rect x="0"><animate attributeName="x" from="0" to="100" begin="1s" dur="2s"/></rect>')
    assert _frozen(snapshot_svg_at_time(markup, 2.0, host=host)).find(f"{SVG_NS}rect").get("x") == "50"
    assert _frozen(snapshot_svg_at_time(markup, 9.0, host=host)).find(f"{SVG_NS}rect").get("x") == "100"


def test_freeze_writes_transform(host):
    markup = _svg(
        '<rect transform="translate(10 0)">'
        '<animateTransform attributeName="transform" type="rotate" from="0 5 5" to="90 5 5" dur="1s" additive="sum"/>'
        "</rect>"
    )
    rect = _frozen(snapshot_svg_at_time(markup, 0.5, host=host)).find(f"{SVG_NS}rect")
    assert rect.get("transform") == "translate(10 0) rotate(45 5 5)"


def test_freeze_replaces_transform(host):
    rect = _frozen(snapshot_svg_at_time(_svg(MOVING_SQUARE), 0.25, host=host)).find(f"{SVG_NS}rect")
    assert rect.get("transform") == "translate(25 0)"


def test_freeze_resolves_set_and_motion(host):
    markup = _svg(
        '<rect id="r" width="2" height="2">'
        '<set attributeName="visibility" to="hidden" begin="1s"/>'
        '<animateMotion path="M0 0 L100 0" dur="1s"/>'
        "</rect>"
    )
    early = _frozen(snapshot_svg_at_time(markup, 0.5, host=host)).find(f"{SVG_NS}rect")
    assert early.get("visibility") is None
    assert early.get("transform") == "matrix(1 0 0 1 50 0)"
    late = _frozen(snapshot_svg_at_time(markup, 2.0, host=host)).find(f"{SVG_NS}rect")
    assert late.get("visibility") == "hidden"
    assert list(late) == []


def test_freeze_invalid_markup_returns_input(host):
    with diagnostics.capture() as events:
        assert snapshot_svg_at_time("<svg", 1.0, host=host) == "<svg"
    assert events[0].kind == DiagnosticKind.INVALID_MARKUP
    assert host.attached == []


def test_paused_export_time():
    assert paused_export_time(TimelineState()) is None
    assert paused_export_time(TimelineState(is_playing=True, has_played=True, current_time_seconds=1.0)) is None
    assert paused_export_time(TimelineState(has_played=True, current_time_seconds=1.5)) == 1.5


def test_freeze_to_only_rotation_starts_from_zero(host):
    markup = _svg('<rect id="r" width="10" height="10"><animateTransform attributeName="transform" type="rotate" to="360" dur="4s"/></rect>')
    start = _frozen(snapshot_svg_at_time(markup, 0.0, host=host)).find(f"{SVG_NS}rect")
    halfway = _frozen(snapshot_svg_at_time(markup, 2.0, host=host)).find(f"{SVG_NS}rect")
    assert start.get("transform") == "rotate(0)"
    assert halfway.get("transform") == "rotate(180)"


def test_freeze_to_only_rotation_keeps_center(host):
    markup = _svg('<rect><animateTransform attributeName="transform" type="rotate" to="90 5 5" dur="1s"/></rect>')
    rect = _frozen(snapshot_svg_at_time(markup, 0.5, host=host)).find(f"{SVG_NS}rect")
    assert rect.get("transform") == "rotate(45 5 5)"


def test_freeze_to_only_scale_starts_from_one(host):
    markup = _svg('<rect><animateTransform attributeName="transform" type="scale" to="3" dur="2s"/></rect>')
    rect = _frozen(snapshot_svg_at_time(markup, 1.0, host=host)).find(f"{SVG_NS}rect")
    assert rect.get("transform") == "scale(2)"


def test_bounds_of_to_only_translation_follow_the_motion(host):
    body = '<rect width="10" height="10"><animateTransform attributeName="transform" type="translate" to="100 0" dur="1s" fill="freeze"/></rect>'
    bounds = compute_animated_bounds(body, host=host)
    assert bounds.min_x == pytest.approx(0)
    assert bounds.max_x == pytest.approx(110)
