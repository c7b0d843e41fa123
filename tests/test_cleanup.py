import pytest

from smil_timeline.animation.cleanup import (
    ANIMATION_HOOK_NAME,
    CleanupHookRegistry,
    ReferencedDefinitions,
    register_animation_cleanup_hook,
    unregister_animation_cleanup_hook,
)
from smil_timeline.animation.store import AnimationLibrary
from smil_timeline.models.animation import AnimationRecord
from smil_timeline.models.elements import ElementSnapshot
from smil_timeline.timeline.diagnostics import DiagnosticKind, diagnostics
from smil_timeline.timeline.playback_clock import PlaybackClock


def _anim(anim_id, target="r1", **fields):
    if "definition_target" in fields:
        return AnimationRecord(id=anim_id, attribute_name="stop-color", to="#fff", **fields)
    return AnimationRecord(id=anim_id, target_element_id=target, attribute_name="x", to="1", **fields)


@pytest.fixture
def library():
    return AnimationLibrary(
        animations=[
            _anim("a1", "r1"),
            _anim("a2", "r2"),
            _anim("grad", definition_target={"def_kind": "gradient", "def_id": "g1", "stop_index": 0}),
        ]
    )


@pytest.fixture
def registry(library):
    registry = CleanupHookRegistry()
    register_animation_cleanup_hook(registry, library)
    return registry


def test_deleted_element_prunes_its_animations(registry, library):
    remaining = [ElementSnapshot(id="r2", data={"fillColor": "url(#g1)"})]
    with diagnostics.capture() as events:
        results = registry.run(["r1"], remaining)
    assert results[ANIMATION_HOOK_NAME] == {"a1"}
    assert [a.id for a in library.animations] == ["a2", "grad"]
    assert [e.value for e in events if e.kind == DiagnosticKind.ORPHANED_ANIMATION] == ["a1"]


def test_unreferenced_definition_prunes_its_animations(registry, library):
    remaining = [ElementSnapshot(id="r2", data={"fillColor": "#000"})]
    results = registry.run(["r1"], remaining)
    assert results[ANIMATION_HOOK_NAME] == {"a1", "grad"}


def test_deleted_definition_is_pruned_even_if_still_referenced(registry, library):
    remaining = [ElementSnapshot(id="r1", data={"strokeColor": "url(#g1)"}), ElementSnapshot(id="r2")]
    assert registry.run(["g1"], remaining)[ANIMATION_HOOK_NAME] == {"grad"}


def test_nothing_deleted_runs_no_hooks(registry):
    assert registry.run([], []) == {}


def test_chains_and_clock_delays_follow_pruning(library):
    library.create_chain("intro", [{"animation_id": "a1"}, {"animation_id": "a2", "trigger": "end"}])
    clock = PlaybackClock(library)
    clock.process_animation_events()
    assert set(clock.state.chain_delays_ms) == {"a1", "a2"}

    registry = CleanupHookRegistry()
    register_animation_cleanup_hook(registry, library, clock)
    registry.run(["r1"], [ElementSnapshot(id="r2", data={"fillColor": "url(#g1)"})])

    assert [e.animation_id for e in library.chains[0].entries] == ["a2"]
    assert set(clock.state.chain_delays_ms) == {"a2"}


def test_unregister(registry, library):
    unregister_animation_cleanup_hook(registry)
    assert registry.names() == []
    assert registry.run(["r1"], []) == {}
    assert len(library.animations) == 3


def test_referenced_definitions():
    refs = ReferencedDefinitions.collect(
        [
            ElementSnapshot(id="a", data={"fillColor": "url(#grad)", "filterId": "blur", "markerEnd": "arrow"}),
            ElementSnapshot(id="b", data={"clipPathTemplateId": "clip", "maskId": "fade"}),
        ]
    )
    assert refs.is_referenced("gradient", "grad")
    assert refs.is_referenced("pattern", "grad")
    assert refs.is_referenced("filter", "blur")
    assert refs.is_referenced("marker", "arrow")
    assert refs.is_referenced("clipPath", "clip")
    assert refs.is_referenced("mask", "fade")
    assert not refs.is_referenced("filter", "glow")
    assert refs.is_referenced("symbol", "anything")
