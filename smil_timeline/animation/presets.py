"""Authoring presets: named factories producing animation record fields."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

PresetFields = Dict[str, Any]
Requirement = Tuple[str, Optional[str]]


@dataclass
class AnimationPreset:
    name: str
    description: str
    build: Callable[..., List[PresetFields]]
    # (element type, data["kind"]) pairs the target must match; empty = any
    requires: List[Requirement] = field(default_factory=list)

    def accepts(self, element) -> bool:
        if not self.requires:
            return True
        if element is None:
            return False
        kind = (element.data or {}).get("kind")
        return any(el_type == element.type and (want is None or want == kind) for el_type, want in self.requires)


class PresetRegistry:
    def __init__(self) -> None:
        self._presets: Dict[str, AnimationPreset] = {}

    def register(self, preset: AnimationPreset) -> None:
        self._presets[preset.name] = preset

    def get(self, name: str) -> Optional[AnimationPreset]:
        return self._presets.get(name)

    def names(self) -> List[str]:
        return sorted(self._presets)

    def list_presets(self) -> List[Dict[str, Any]]:
        return [
            {"name": p.name, "description": p.description, "requires": [list(r) for r in p.requires]}
            for p in self._presets.values()
        ]


def _attribute(target_id: str, name: str, dur: str, start: Any, end: Any, **extra) -> PresetFields:
    fields = {
        "kind": "attribute",
        "attribute_name": name,
        "target_element_id": target_id,
        "dur": dur,
        "from": str(start),
        "to": str(end),
        "repeat_count": 1,
        "fill": "freeze",
    }
    fields.update(extra)
    return fields


def fade(target_id: str, dur: str = "2s", start: float = 1, end: float = 0) -> List[PresetFields]:
    return [_attribute(target_id, "opacity", dur, start, end)]


def rotate(target_id: str, dur: str = "2s", degrees: Any = 360) -> List[PresetFields]:
    return [
        {
            "kind": "transform",
            "transform_kind": "rotate",
            "target_element_id": target_id,
            "dur": dur,
            "from": "0",
            "to": str(degrees),
            "repeat_count": 1,
            "additive": "sum",
        }
    ]


def move(
    target_id: str, dur: str = "2s", from_x: float = 0, from_y: float = 0, to_x: float = 50, to_y: float = 0
) -> List[PresetFields]:
    return [
        {
            "kind": "transform",
            "transform_kind": "translate",
            "target_element_id": target_id,
            "dur": dur,
            "from": f"{from_x} {from_y}",
            "to": f"{to_x} {to_y}",
            "repeat_count": 1,
            "additive": "sum",
        }
    ]


def scale(target_id: str, dur: str = "2s", start: float = 1, end: float = 1.2) -> List[PresetFields]:
    return [
        {
            "kind": "transform",
            "transform_kind": "scale",
            "target_element_id": target_id,
            "dur": dur,
            "from": f"{start} {start}",
            "to": f"{end} {end}",
            "repeat_count": 1,
            "additive": "replace",
        }
    ]


def path_draw(target_id: str, dur: str = "2s") -> List[PresetFields]:
    return [_attribute(target_id, "stroke-dashoffset", dur, 1, 0)]


def set_value(
    target_id: str, attribute_name: str = "visibility", to: Any = "visible", begin: str = "0s", end: Optional[str] = None
) -> List[PresetFields]:
    return [
        {
            "kind": "set",
            "attribute_name": attribute_name,
            "target_element_id": target_id,
            "to": str(to),
            "begin": begin,
            "end": end,
            "fill": "freeze",
        }
    ]


def attribute(
    target_id: str,
    attribute_name: str = "opacity",
    dur: str = "2s",
    start: Any = "0",
    end: Any = "1",
    repeat_count: Any = 1,
) -> List[PresetFields]:
    return [_attribute(target_id, attribute_name, dur, start, end, repeat_count=repeat_count)]


def _color_cycle(target_id: str, name: str, dur: str, values: str) -> List[PresetFields]:
    return [
        {
            "kind": "attribute",
            "attribute_name": name,
            "target_element_id": target_id,
            "dur": dur,
            "values": values,
            "repeat_count": "indefinite",
            "calc_mode": "linear",
        }
    ]


def fill_color(target_id: str, dur: str = "2s") -> List[PresetFields]:
    return _color_cycle(target_id, "fill", dur, "#ff6b6b;#4ecdc4;#ff6b6b")


def stroke_color(target_id: str, dur: str = "2s") -> List[PresetFields]:
    return _color_cycle(target_id, "stroke", dur, "#111111;#ff9900;#111111")


def stroke_width(target_id: str, dur: str = "2s", start: float = 1, end: float = 4) -> List[PresetFields]:
    return [_attribute(target_id, "stroke-width", dur, start, end)]


def position(
    target_id: str, dur: str = "2s", from_x: float = 0, from_y: float = 0, to_x: float = 40, to_y: float = 40
) -> List[PresetFields]:
    return [
        _attribute(target_id, "x", dur, from_x, to_x),
        _attribute(target_id, "y", dur, from_y, to_y),
    ]


def size(
    target_id: str,
    dur: str = "2s",
    from_width: float = 20,
    from_height: float = 20,
    to_width: float = 60,
    to_height: float = 60,
) -> List[PresetFields]:
    return [
        _attribute(target_id, "width", dur, from_width, to_width),
        _attribute(target_id, "height", dur, from_height, to_height),
    ]


def font_size(target_id: str, dur: str = "2s", start: float = 16, end: float = 28) -> List[PresetFields]:
    return [_attribute(target_id, "font-size", dur, start, end)]


def circle_radius(target_id: str, dur: str = "2s", start: float = 10, end: float = 50) -> List[PresetFields]:
    return [_attribute(target_id, "r", dur, start, end)]


def line_endpoints(
    target_id: str,
    dur: str = "2s",
    start: Optional[Dict[str, float]] = None,
    end: Optional[Dict[str, float]] = None,
) -> List[PresetFields]:
    start = start or {"x1": 0, "y1": 0, "x2": 50, "y2": 50}
    end = end or {"x1": 100, "y1": 100, "x2": 150, "y2": 150}
    return [_attribute(target_id, attr, dur, start.get(attr, 0), end.get(attr, 0)) for attr in ("x1", "y1", "x2", "y2")]


def path_data(
    target_id: str, dur: str = "2s", start: str = "M0 0 L100 0", end: str = "M0 0 L100 100"
) -> List[PresetFields]:
    return [_attribute(target_id, "d", dur, start, end)]


def text_position(
    target_id: str, dur: str = "2s", from_x: float = 0, from_y: float = 0, to_x: float = 50, to_y: float = 50
) -> List[PresetFields]:
    return position(target_id, dur, from_x, from_y, to_x, to_y)


def motion_along_path(target_id: str, path_id: str, dur: str = "2s", rotate: str = "auto") -> List[PresetFields]:
    return [
        {
            "kind": "motion",
            "target_element_id": target_id,
            "mpath": path_id,
            "dur": dur,
            "rotate": rotate,
            "fill": "freeze",
        }
    ]


def gradient_stop_color(
    gradient_id: str, dur: str = "2s", stop_index: int = 0, start: str = "#ff0000", end: str = "#0000ff"
) -> List[PresetFields]:
    fields = _attribute(gradient_id, "stop-color", dur, start, end)
    fields.pop("target_element_id")
    fields["definition_target"] = {"def_kind": "gradient", "def_id": gradient_id, "stop_index": stop_index}
    return [fields]


preset_registry = PresetRegistry()

for _preset in (
    AnimationPreset("fade", "Opacity 1 -> 0", fade),
    AnimationPreset("rotate", "Full turn around the origin", rotate),
    AnimationPreset("move", "Translate by an offset", move),
    AnimationPreset("scale", "Uniform scale", scale),
    AnimationPreset("path_draw", "Stroke dash offset draw-on", path_draw),
    AnimationPreset("set", "Discrete attribute change", set_value),
    AnimationPreset("attribute", "Generic from/to attribute", attribute),
    AnimationPreset("fill_color", "Looping fill colour cycle", fill_color),
    AnimationPreset("stroke_color", "Looping stroke colour cycle", stroke_color),
    AnimationPreset("stroke_width", "Stroke width change", stroke_width),
    AnimationPreset("position", "x and y change", position),
    AnimationPreset("size", "width and height change", size),
    AnimationPreset("font_size", "Font size change", font_size, [("nativeText", None)]),
    AnimationPreset("circle_radius", "Circle radius change", circle_radius, [("nativeShape", "circle")]),
    AnimationPreset("line_endpoints", "Line endpoint change", line_endpoints, [("nativeShape", "line")]),
    AnimationPreset("path_data", "Path morph", path_data, [("path", None)]),
    AnimationPreset("text_position", "Text x and y change", text_position, [("nativeText", None)]),
    AnimationPreset("motion_along_path", "Follow another path element", motion_along_path),
    AnimationPreset("gradient_stop_color", "Gradient stop colour change", gradient_stop_color),
):
    preset_registry.register(_preset)
