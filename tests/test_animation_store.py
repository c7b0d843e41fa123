import pytest

from smil_timeline.animation.presets import preset_registry
from smil_timeline.animation.store import AnimationLibrary
from smil_timeline.geometry import matrix as mx
from smil_timeline.models.elements import ElementSnapshot, TransformDelta


@pytest.fixture
def library():
    return AnimationLibrary(
        elements=[
            ElementSnapshot(id="rect", type="nativeShape", data={"kind": "rect"}),
            ElementSnapshot(id="circle", type="nativeShape", data={"kind": "circle"}),
            ElementSnapshot(id="label", type="nativeText"),
            ElementSnapshot(id="guide", type="path"),
        ]
    )


def test_add_fills_defaults(library):
    anim = library.add({"target_element_id": "rect", "attribute_name": "x", "from": "0", "to": "10", "dur": ""})
    assert anim.id.startswith("anim-")
    assert anim.dur == "2s"
    assert anim.fill == "freeze"
    assert anim.from_ == "0"
    assert library.get(anim.id) is anim


def test_update_replaces_record(library):
    anim = library.add({"id": "a", "target_element_id": "rect", "attribute_name": "x", "to": "10"})
    updated = library.update("a", to="20", **{"from": "5"})
    assert updated is not anim
    assert (updated.from_, updated.to) == ("5", "20")
    assert library.animations == [updated]
    assert library.update("missing", to="1") is None


def test_path_and_mpath_are_exclusive(library):
    library.add({"id": "m", "target_element_id": "rect", "kind": "motion", "path": "M0 0 L10 0"})
    with_mpath = library.update_mpath("m", "guide")
    assert with_mpath.mpath == "guide"
    assert with_mpath.path is None
    with_path = library.update("m", path="M0 0 L5 5")
    assert with_path.mpath is None


def test_remove_and_clear(library):
    library.add({"id": "a", "target_element_id": "rect", "attribute_name": "x", "to": "1"})
    library.add({"id": "b", "target_element_id": "rect", "attribute_name": "y", "to": "1"})
    library.remove("a")
    assert [a.id for a in library.animations] == ["b"]
    library.remove("unknown")
    library.clear()
    assert library.animations == []


def test_remove_many_prunes_chains(library):
    for anim_id in ("a", "b"):
        library.add({"id": anim_id, "target_element_id": "rect", "attribute_name": "x", "to": "1"})
    chain = library.create_chain("intro", [{"animation_id": "a"}, {"animation_id": "b", "trigger": "end"}])
    assert library.remove_many(["a", "zzz"]) == {"a"}
    assert [e.animation_id for e in library.get_chain(chain.id).entries] == ["b"]
    library.remove_many(["b"])
    assert library.chains == []


def test_chain_authoring(library):
    chain = library.create_chain("intro", [{"animation_id": "a", "delay_seconds": -1}])
    assert chain.entries[0].delay_seconds == 0.0
    library.update_chain_entry_delay(chain.id, "a", 1.5)
    library.update_chain_entry_trigger(chain.id, "a", "end")
    entry = library.get_chain(chain.id).entries[0]
    assert (entry.delay_seconds, entry.trigger) == (1.5, "end")
    assert library.update_chain(chain.id, name="outro").name == "outro"
    library.remove_chain(chain.id)
    assert library.get_chain(chain.id) is None


def test_fade_preset(library):
    (anim,) = library.apply_preset("fade", "rect", dur="1s")
    assert anim.attribute_name == "opacity"
    assert (anim.from_, anim.to, anim.dur) == ("1", "0", "1s")


def test_position_preset_creates_two_records(library):
    records = library.apply_preset("position", "rect")
    assert [r.attribute_name for r in records] == ["x", "y"]


def test_typed_preset_rejects_wrong_element(library):
    assert library.apply_preset("circle_radius", "rect") == []
    assert library.apply_preset("font_size", "rect") == []
    (radius,) = library.apply_preset("circle_radius", "circle")
    assert radius.attribute_name == "r"


def test_unknown_preset_raises(library):
    with pytest.raises(ValueError):
        library.apply_preset("wobble", "rect")


def test_motion_and_gradient_presets(library):
    (motion,) = library.apply_preset("motion_along_path", "rect", path_id="guide")
    assert motion.kind == "motion"
    assert motion.mpath == "guide"
    (stop,) = library.apply_preset("gradient_stop_color", "g1", stop_index=1)
    assert stop.definition_target.stop_index == 1
    assert stop.target_id == "g1"
    assert stop.element_target_id is None


def test_color_cycle_preset_is_indefinite(library):
    (anim,) = library.apply_preset("fill_color", "rect")
    assert anim.repeat_count == "indefinite"
    assert anim.values.count(";") == 2


def test_registry_lists_presets():
    assert "fade" in preset_registry.names()
    listed = {p["name"]: p for p in preset_registry.list_presets()}
    assert listed["circle_radius"]["requires"] == [["nativeShape", "circle"]]


def test_apply_transform_deltas(library):
    library.apply_preset("rotate", "rect")
    moved = TransformDelta(element_id="rect", before=mx.IDENTITY, after=mx.translate(10, 20))
    assert library.apply_transform_deltas([moved]) is True
    assert library.animations[0].to == "360,10,20"
    still = TransformDelta(element_id="rect", before=mx.IDENTITY, after=mx.IDENTITY)
    assert library.apply_transform_deltas([still]) is False


def test_to_dict_uses_wire_names(library):
    library.add({"id": "a", "target_element_id": "rect", "attribute_name": "x", "from": "0", "to": "1"})
    library.create_chain("c", [{"animation_id": "a"}])
    data = library.to_dict()
    assert data["animations"][0]["from"] == "0"
    assert data["animations"][0]["targetElementId"] == "rect"
    assert data["chains"][0]["entries"][0]["animationId"] == "a"
