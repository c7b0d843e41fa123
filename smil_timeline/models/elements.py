"""Element snapshots consumed from the editing model."""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MatrixTuple = Tuple[float, float, float, float, float, float]

IDENTITY: MatrixTuple = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


class ElementSnapshot(BaseModel):
    """One renderable element as seen by the timeline engine.

    `data` carries geometry and paint references (fillColor, strokeColor,
    filterId, maskId, markerStart, ...) exactly as the editing model stores them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    parent_id: Optional[str] = None
    type: str = "path"
    transform: MatrixTuple = IDENTITY
    data: Dict[str, Any] = Field(default_factory=dict)


class TransformDelta(BaseModel):
    """Element transform before and after an unrelated edit."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    element_id: str
    before: MatrixTuple = Field(alias="from")
    after: MatrixTuple = Field(alias="to")
