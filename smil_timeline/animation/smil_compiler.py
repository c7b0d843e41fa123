"""Compile animation records into SVG SMIL directives."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from xml.etree import ElementTree as ET

from smil_timeline.geometry.values import format_number, split_keyframes
from smil_timeline.models.animation import AnimationRecord
from smil_timeline.timeline.chain_delays import ChainResolution
from smil_timeline.utils.config import settings

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

DIRECTIVE_TAGS = {
    "attribute": "animate",
    "transform": "animateTransform",
    "motion": "animateMotion",
    "set": "set",
}

_NUMBER_TOKEN_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")
_PATH_NUMBER_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _register_svg_namespace() -> None:
    ET.register_namespace("", SVG_NS)


def escape_attribute(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


@dataclass
class CompileResult:
    elements: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class SmilCompiler:
    """Translate AnimationRecords into `<animate>`, `<animateTransform>`,
    `<animateMotion>` and `<set>` markup.

    `begin` comes from the chain resolution when one is given: a chained
    record gets its resolved offset, a blocked record gets "indefinite".
    """

    def __init__(self, precision: Optional[int] = None, optimize: bool = True):
        self.precision = settings.compile_precision if precision is None else precision
        self.optimize = optimize

    # -- value formatting ---------------------------------------------------

    def format_value(self, value: str) -> str:
        """Round purely numeric values; anything else is passed through."""
        tokens = [t for t in re.split(r"[\s,]+", value.strip()) if t]
        if not tokens or not all(_NUMBER_TOKEN_RE.match(t) for t in tokens):
            return value.strip()
        return " ".join(format_number(float(t), self.precision) for t in tokens)

    def format_values(self, values: str) -> str:
        return ";".join(self.format_value(v) for v in split_keyframes(values))

    def format_path(self, path: str) -> str:
        if not self.optimize:
            return path
        return _PATH_NUMBER_RE.sub(lambda m: format_number(float(m.group(0)), self.precision), path)

    def _repeat_count(self, value) -> str:
        if isinstance(value, (int, float)):
            return format_number(value, self.precision)
        return str(value)

    # -- attribute groups -----------------------------------------------------

    def _timing(self, anim: AnimationRecord, resolution: Optional[ChainResolution]) -> Dict[str, str]:
        begin = resolution.begin_for(anim.id, anim.begin) if resolution else anim.begin
        attrs = {
            "dur": anim.dur,
            "begin": begin,
            "end": anim.end,
            "fill": anim.fill,
        }
        if anim.repeat_count is not None:
            attrs["repeatCount"] = self._repeat_count(anim.repeat_count)
        attrs["repeatDur"] = anim.repeat_dur
        if anim.calc_mode and anim.calc_mode != "linear":
            attrs["calcMode"] = anim.calc_mode
        attrs["keyTimes"] = anim.key_times
        attrs["keySplines"] = anim.key_splines
        return attrs

    def _values(self, anim: AnimationRecord) -> Dict[str, str]:
        if anim.values:
            return {"values": self.format_values(anim.values)}
        attrs = {}
        if anim.from_ is not None:
            attrs["from"] = self.format_value(anim.from_)
        if anim.to is not None:
            attrs["to"] = self.format_value(anim.to)
        if anim.by is not None and "from" not in attrs and "to" not in attrs:
            attrs["by"] = self.format_value(anim.by)
        return attrs

    @staticmethod
    def _additive(anim: AnimationRecord) -> Dict[str, str]:
        attrs = {}
        if anim.additive and anim.additive != "replace":
            attrs["additive"] = anim.additive
        if anim.accumulate and anim.accumulate != "none":
            attrs["accumulate"] = anim.accumulate
        return attrs

    @staticmethod
    def build_element(tag: str, attrs: Dict[str, Optional[str]], children: str = "") -> str:
        attr_text = " ".join(
            f'{name}="{escape_attribute(str(value))}"' for name, value in attrs.items() if value not in (None, "")
        )
        if children:
            return f"<{tag} {attr_text}>{children}</{tag}>"
        return f"<{tag} {attr_text}/>"

    # -- compilation ----------------------------------------------------------

    def directive_attributes(
        self, anim: AnimationRecord, resolution: Optional[ChainResolution] = None
    ) -> Tuple[str, Dict[str, Optional[str]], Optional[str]]:
        """(tag, attributes, mpath id) for one record; ValueError when incomplete."""
        if anim.kind == "attribute":
            if not anim.attribute_name:
                raise ValueError("animate requires attributeName")
            attrs = {"attributeName": anim.attribute_name}
            attrs.update(self._values(anim))
            attrs.update(self._timing(anim, resolution))
            attrs.update(self._additive(anim))
            return "animate", attrs, None

        if anim.kind == "transform":
            if not anim.transform_kind:
                raise ValueError("animateTransform requires transformType")
            attrs = {"attributeName": "transform", "type": anim.transform_kind}
            attrs.update(self._values(anim))
            attrs.update(self._timing(anim, resolution))
            attrs.update(self._additive(anim))
            return "animateTransform", attrs, None

        if anim.kind == "motion":
            if not anim.path and not anim.mpath:
                raise ValueError("animateMotion requires path or mpath")
            attrs = {}
            if anim.path and not anim.mpath:
                attrs["path"] = self.format_path(anim.path)
            if anim.rotate is not None:
                attrs["rotate"] = anim.rotate if isinstance(anim.rotate, str) else format_number(anim.rotate)
            if anim.key_points:
                attrs["keyPoints"] = ";".join(
                    self.format_value(p) for p in split_keyframes(anim.key_points)
                )
            attrs.update(self._timing(anim, resolution))
            return "animateMotion", attrs, anim.mpath

        if anim.kind == "set":
            if not anim.attribute_name:
                raise ValueError("set requires attributeName")
            attrs = {"attributeName": anim.attribute_name}
            if anim.to is not None:
                attrs["to"] = self.format_value(anim.to)
            begin = resolution.begin_for(anim.id, anim.begin) if resolution else anim.begin
            attrs.update({"begin": begin, "dur": anim.dur, "end": anim.end, "fill": anim.fill})
            return "set", attrs, None

        raise ValueError(f"Unknown animation kind: {anim.kind}")

    def compile(self, anim: AnimationRecord, resolution: Optional[ChainResolution] = None) -> str:
        tag, attrs, mpath = self.directive_attributes(anim, resolution)
        children = f'<mpath href="#{escape_attribute(mpath)}"/>' if mpath else ""
        return self.build_element(tag, attrs, children)

    def compile_all(
        self, animations: Iterable[AnimationRecord], resolution: Optional[ChainResolution] = None
    ) -> CompileResult:
        result = CompileResult()
        by_target: Dict[str, List[AnimationRecord]] = {}
        for anim in animations:
            by_target.setdefault(anim.target_id, []).append(anim)
        for target_animations in by_target.values():
            for anim in target_animations:
                try:
                    result.elements.append(self.compile(anim, resolution))
                except ValueError as exc:
                    result.warnings.append(f"Failed to compile animation {anim.id}: {exc}")
        if result.warnings:
            logger.warning("SMIL compile warnings: %s", result.warnings)
        return result

    def validate(self, anim: AnimationRecord) -> Tuple[bool, List[str]]:
        errors: List[str] = []
        if not anim.target_element_id and anim.definition_target is None:
            errors.append("Target element ID is required")
        if anim.kind == "attribute":
            if not anim.attribute_name:
                errors.append("attributeName is required for animate")
            if anim.from_ is None and anim.to is None and not anim.values:
                errors.append("Either from/to or values must be specified")
        elif anim.kind == "transform":
            if not anim.transform_kind:
                errors.append("transformType is required for animateTransform")
        elif anim.kind == "motion":
            if not anim.path and not anim.mpath:
                errors.append("Either path or mpath is required for animateMotion")
        elif anim.kind == "set":
            if not anim.attribute_name:
                errors.append("attributeName is required for set")
            if anim.to is None:
                errors.append("to value is required for set")
        return (not errors, errors)

    # -- documents --------------------------------------------------------------

    def compile_document(
        self,
        svg_content: str,
        animations: Iterable[AnimationRecord],
        resolution: Optional[ChainResolution] = None,
    ) -> Tuple[str, List[str]]:
        """Embed each record's directive inside its target element.

        Returns the new markup and the warnings for records that could not be
        compiled or whose target is not in the document.
        """
        root = ET.fromstring(svg_content)
        ns = f"{{{SVG_NS}}}" if root.tag.startswith(f"{{{SVG_NS}}}") else ""
        by_id = {el.get("id"): el for el in root.iter() if el.get("id")}
        warnings: List[str] = []

        for anim in animations:
            target = self._resolve_target(anim, by_id)
            if target is None:
                warnings.append(f"Target {anim.target_id} not found for animation {anim.id}")
                continue
            try:
                tag, attrs, mpath = self.directive_attributes(anim, resolution)
            except ValueError as exc:
                warnings.append(f"Failed to compile animation {anim.id}: {exc}")
                continue
            directive = ET.SubElement(target, ns + tag)
            for name, value in attrs.items():
                if value not in (None, ""):
                    directive.set(name, str(value))
            if mpath:
                ET.SubElement(directive, ns + "mpath").set("href", f"#{mpath}")

        for warning in warnings:
            logger.warning(warning)
        _register_svg_namespace()
        return ET.tostring(root, encoding="unicode"), warnings

    @staticmethod
    def _resolve_target(anim: AnimationRecord, by_id: Dict[str, ET.Element]) -> Optional[ET.Element]:
        target = by_id.get(anim.target_id)
        definition = anim.definition_target
        if target is None or definition is None:
            return target
        if definition.stop_index is not None:
            stops = [c for c in target if _strip_ns(c.tag) == "stop"]
            return stops[definition.stop_index] if definition.stop_index < len(stops) else None
        index = definition.filter_primitive_index
        if index is None:
            index = definition.child_index
        if index is not None:
            children = [c for c in target if _strip_ns(c.tag) not in DIRECTIVE_TAGS.values()]
            return children[index] if index < len(children) else None
        return target


smil_compiler = SmilCompiler()
