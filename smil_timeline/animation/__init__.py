"""Animation authoring: the record store, presets, cleanup hooks and the SMIL compiler."""

from smil_timeline.animation.cleanup import (
    CleanupHookRegistry,
    animation_cleanup_hook,
    cleanup_registry,
    register_animation_cleanup_hook,
    unregister_animation_cleanup_hook,
)
from smil_timeline.animation.presets import AnimationPreset, PresetRegistry, preset_registry
from smil_timeline.animation.smil_compiler import CompileResult, SmilCompiler, smil_compiler
from smil_timeline.animation.store import AnimationLibrary, new_animation_id

__all__ = [
    "AnimationLibrary",
    "AnimationPreset",
    "CleanupHookRegistry",
    "CompileResult",
    "PresetRegistry",
    "SmilCompiler",
    "animation_cleanup_hook",
    "cleanup_registry",
    "new_animation_id",
    "preset_registry",
    "register_animation_cleanup_hook",
    "smil_compiler",
    "unregister_animation_cleanup_hook",
]
