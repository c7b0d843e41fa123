import math

from smil_timeline.models.animation import AnimationRecord
from smil_timeline.timeline.diagnostics import DiagnosticKind, diagnostics
from smil_timeline.timeline.durations import (
    parse_seconds,
    preview_duration_seconds,
    repeat_count_value,
    total_duration_seconds,
)


def _anim(**fields):
    fields.setdefault("id", "a1")
    fields.setdefault("target_element_id", "el-1")
    return AnimationRecord(**fields)


def test_parse_seconds_units_and_clock_values():
    assert parse_seconds("2s") == 2.0
    assert parse_seconds("500ms") == 0.5
    assert parse_seconds("1.5min") == 90.0
    assert parse_seconds("1h") == 3600.0
    assert parse_seconds("01:30") == 90.0
    assert parse_seconds("1:00:02.5") == 3602.5
    assert parse_seconds("3") == 3.0
    assert parse_seconds(4) == 4.0
    assert parse_seconds(None) == 0.0


def test_parse_seconds_indefinite_is_infinite():
    assert math.isinf(parse_seconds("indefinite"))


def test_parse_seconds_garbage_falls_back_with_diagnostic():
    with diagnostics.capture() as events:
        assert parse_seconds("soon") == 0.0
    assert [e.kind for e in events] == [DiagnosticKind.UNPARSABLE_TIME]


def test_repeat_count_value():
    assert repeat_count_value(None) == 1.0
    assert repeat_count_value("3") == 3.0
    assert repeat_count_value(0) == 1.0
    assert math.isinf(repeat_count_value("indefinite"))


def test_dur_times_repeat_count():
    assert total_duration_seconds(_anim(dur="2s", repeat_count=3)) == 6.0


def test_repeat_dur_wins_over_repeat_count():
    assert total_duration_seconds(_anim(dur="1s", repeat_count=5, repeat_dur="3s")) == 3.0


def test_indefinite_repeat_is_infinite():
    assert math.isinf(total_duration_seconds(_anim(dur="1s", repeat_count="indefinite")))


def test_unparsable_repeat_count_counts_once():
    with diagnostics.capture() as events:
        assert total_duration_seconds(_anim(dur="2s", repeat_count="often")) == 2.0
    assert events and events[0].kind == DiagnosticKind.UNPARSABLE_NUMBER


def test_missing_animation_has_no_duration():
    assert total_duration_seconds(None) == 0.0


def test_preview_duration_counts_indefinite_once():
    anim = _anim(dur="1.5s", repeat_count="indefinite")
    assert preview_duration_seconds(anim) == 1.5
