"""Animation records and chains (framework-agnostic)."""
from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

AnimationKind = Literal["attribute", "transform", "motion", "set"]
TransformKind = Literal["translate", "scale", "rotate", "skewX", "skewY"]
DefKind = Literal["gradient", "pattern", "clipPath", "filter", "mask", "marker", "symbol"]
CalcMode = Literal["linear", "discrete", "paced", "spline"]
Trigger = Literal["start", "end"]

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_text(value):
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class DefinitionTarget(BaseModel):
    """Indirect target: a child of a definition (gradient stop, filter primitive, ...)."""

    model_config = _CAMEL

    def_kind: DefKind
    def_id: str
    child_index: Optional[int] = None
    stop_index: Optional[int] = None
    filter_primitive_index: Optional[int] = None


class AnimationRecord(BaseModel):
    model_config = _CAMEL

    id: str
    kind: AnimationKind = "attribute"
    target_element_id: Optional[str] = None
    definition_target: Optional[DefinitionTarget] = None
    preview_element_id: Optional[str] = None

    dur: Optional[str] = "2s"
    begin: Optional[str] = "0s"
    end: Optional[str] = None
    fill: Literal["freeze", "remove"] = "freeze"
    repeat_count: Union[float, str] = 1
    repeat_dur: Optional[str] = None
    calc_mode: Optional[CalcMode] = None
    key_times: Optional[str] = None
    key_splines: Optional[str] = None

    attribute_name: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    by: Optional[str] = None
    values: Optional[str] = None
    transform_kind: Optional[TransformKind] = None
    additive: Optional[Literal["replace", "sum"]] = None
    accumulate: Optional[Literal["none", "sum"]] = None

    path: Optional[str] = None
    mpath: Optional[str] = None
    rotate: Optional[Union[float, str]] = None
    key_points: Optional[str] = None

    @field_validator("dur", "begin", "end", "repeat_dur", "from_", "to", "by", "values", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _as_text(value)

    @model_validator(mode="after")
    def _check_target_and_motion_source(self) -> "AnimationRecord":
        if not self.target_element_id and self.definition_target is None:
            raise ValueError("animation needs a target element or a definition target")
        if self.path and self.mpath:
            # mpath wins; a motion record carries a single path source
            self.path = None
        return self

    @property
    def element_target_id(self) -> Optional[str]:
        """Id of the canvas element this record moves with, None for definition targets."""
        if self.definition_target is not None:
            return None
        return self.target_element_id

    @property
    def target_id(self) -> str:
        if self.definition_target is not None:
            return self.definition_target.def_id
        return self.target_element_id or ""


class ChainEntry(BaseModel):
    model_config = _CAMEL

    animation_id: str
    delay_seconds: float = 0.0
    trigger: Trigger = "start"

    @field_validator("delay_seconds", mode="before")
    @classmethod
    def _non_negative(cls, value):
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return 0.0


class AnimationChain(BaseModel):
    model_config = _CAMEL

    id: str
    name: Optional[str] = None
    entries: List[ChainEntry] = Field(default_factory=list)


class AnimationEvent(BaseModel):
    model_config = _CAMEL

    id: str
    type: Literal["start", "end", "repeat", "sync"]
    source_animation_id: str
    timestamp: float
    handled: bool = False
