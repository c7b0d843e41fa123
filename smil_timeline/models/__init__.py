"""Data model shared by the timeline, geometry and export layers."""

from smil_timeline.models.animation import (
    AnimationChain,
    AnimationEvent,
    AnimationRecord,
    ChainEntry,
    DefinitionTarget,
)
from smil_timeline.models.elements import IDENTITY, ElementSnapshot, TransformDelta

__all__ = [
    "AnimationChain",
    "AnimationEvent",
    "AnimationRecord",
    "ChainEntry",
    "DefinitionTarget",
    "ElementSnapshot",
    "IDENTITY",
    "TransformDelta",
]
