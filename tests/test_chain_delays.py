from smil_timeline.models.animation import AnimationChain, AnimationRecord, ChainEntry
from smil_timeline.timeline.chain_delays import format_delay, resolve_chains, resolve_delays
from smil_timeline.timeline.diagnostics import DiagnosticKind, diagnostics


def _anim(anim_id, dur="2s", **fields):
    return AnimationRecord(id=anim_id, target_element_id="el-1", dur=dur, **fields)


def _chain(*entries, chain_id="c1"):
    return AnimationChain(id=chain_id, entries=[ChainEntry(**e) for e in entries])


def test_end_trigger_waits_for_predecessor():
    animations = [_anim("a", dur="2s"), _anim("b", dur="1s")]
    chain = _chain(
        {"animation_id": "a", "trigger": "start", "delay_seconds": 0},
        {"animation_id": "b", "trigger": "end", "delay_seconds": 0.5},
    )
    assert resolve_delays([chain], animations) == {"a": 0.0, "b": 2500.0}


def test_start_triggers_use_their_own_delay():
    animations = [_anim("a"), _anim("b")]
    chain = _chain(
        {"animation_id": "a", "trigger": "start", "delay_seconds": 1},
        {"animation_id": "b", "trigger": "start", "delay_seconds": 3},
    )
    assert resolve_delays([chain], animations) == {"a": 1000.0, "b": 3000.0}


def test_fade_then_rotate():
    animations = [_anim("fade", dur="1s"), _anim("rotate", dur="2s")]
    chain = _chain(
        {"animation_id": "fade", "trigger": "start"},
        {"animation_id": "rotate", "trigger": "end", "delay_seconds": 0.2},
    )
    assert resolve_delays([chain], animations) == {"fade": 0.0, "rotate": 1200.0}


def test_end_trigger_uses_total_duration_of_predecessor():
    animations = [_anim("a", dur="1s", repeat_count=3), _anim("b")]
    chain = _chain({"animation_id": "a"}, {"animation_id": "b", "trigger": "end"})
    assert resolve_delays([chain], animations)["b"] == 3000.0


def test_negative_delay_is_clamped():
    chain = _chain({"animation_id": "a", "delay_seconds": -4})
    assert resolve_delays([chain], [_anim("a")]) == {"a": 0.0}


def test_entry_after_indefinite_predecessor_is_blocked():
    animations = [_anim("loop", dur="1s", repeat_count="indefinite"), _anim("after")]
    chain = _chain({"animation_id": "loop"}, {"animation_id": "after", "trigger": "end"})
    with diagnostics.capture() as events:
        resolution = resolve_chains([chain], animations)
    assert resolution.delays == {"loop": 0.0}
    assert resolution.blocked == {"after"}
    assert resolution.begin_for("after", "0s") == "indefinite"
    assert [e.kind for e in events] == [DiagnosticKind.CHAIN_TAIL_BLOCKED]


def test_missing_animation_is_skipped():
    chain = _chain(
        {"animation_id": "ghost", "delay_seconds": 5},
        {"animation_id": "a", "trigger": "end"},
    )
    with diagnostics.capture() as events:
        delays = resolve_delays([chain], [_anim("a")])
    assert delays == {"a": 0.0}
    assert events[0].kind == DiagnosticKind.MISSING_CHAIN_ANIMATION


def test_last_chain_wins_for_shared_animation():
    animations = [_anim("a"), _anim("b")]
    first = _chain({"animation_id": "b", "delay_seconds": 1}, chain_id="c1")
    second = _chain({"animation_id": "a"}, {"animation_id": "b", "trigger": "end"}, chain_id="c2")
    assert resolve_delays([first, second], animations)["b"] == 2000.0


def test_begin_for_unchained_keeps_authored_begin():
    resolution = resolve_chains([], [_anim("a")])
    assert resolution.begin_for("a", "1s") == "1s"


def test_format_delay():
    assert format_delay(2500) == "2.5s"
    assert format_delay(3000) == "3s"
    assert format_delay(0) == "0s"
