"""Pydantic schemas for API."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from smil_timeline.models.animation import AnimationChain, AnimationRecord
from smil_timeline.models.elements import ElementSnapshot, TransformDelta

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimelineProject(BaseModel):
    """A project file: animation records, chains and the element snapshot."""

    model_config = _CAMEL

    animations: List[AnimationRecord] = Field(default_factory=list)
    chains: List[AnimationChain] = Field(default_factory=list)
    elements: List[ElementSnapshot] = Field(default_factory=list)


class DelaysResponse(BaseModel):
    model_config = _CAMEL

    delays: Dict[str, float]
    blocked: List[str] = Field(default_factory=list)
    max_duration: Optional[float] = None


class ReprojectRequest(BaseModel):
    model_config = _CAMEL

    animations: List[AnimationRecord]
    deltas: List[TransformDelta]


class ReprojectResponse(BaseModel):
    model_config = _CAMEL

    animations: List[AnimationRecord]
    changed: List[str] = Field(default_factory=list)


class CompileRequest(TimelineProject):
    svg_content: Optional[str] = None


class CompileResponse(BaseModel):
    model_config = _CAMEL

    elements: List[str] = Field(default_factory=list)
    svg_content: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class BoundsRequest(BaseModel):
    model_config = _CAMEL

    serialized_elements: Optional[str] = None
    defs: Optional[str] = None
    view_box: str = "0 0 100 100"
    svg_content: Optional[str] = None


class BoundsResponse(BaseModel):
    model_config = _CAMEL

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    width: float
    height: float


class FreezeRequest(BaseModel):
    model_config = _CAMEL

    svg_content: str
    time: Optional[float] = None


class FreezeResponse(BaseModel):
    model_config = _CAMEL

    svg_content: str
    time: Optional[float] = None
