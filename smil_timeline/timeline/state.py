"""Timeline session state (read model for renderers and controls)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set


@dataclass
class TimelineState:
    """Single playback state per session.

    Only PlaybackClock writes to it. `restart_epoch` increments on every full
    stop so renderers can remount timed nodes.
    """

    is_playing: bool = False
    has_played: bool = False
    current_time_seconds: float = 0.0
    start_time_anchor_ms: Optional[float] = None
    playback_rate: float = 1.0
    restart_epoch: int = 0
    chain_delays_ms: Dict[str, float] = field(default_factory=dict)
    blocked_animation_ids: Set[str] = field(default_factory=set)
    is_workspace_open: bool = False
    is_canvas_preview_mode: bool = False

    @property
    def status(self) -> str:
        if self.is_playing:
            return "playing"
        if self.has_played:
            return "paused"
        if self.restart_epoch > 0:
            return "stopped"
        return "idle"

    def to_dict(self) -> Dict[str, object]:
        return {
            "isPlaying": self.is_playing,
            "hasPlayed": self.has_played,
            "currentTime": self.current_time_seconds,
            "startTime": self.start_time_anchor_ms,
            "playbackRate": self.playback_rate,
            "restartKey": self.restart_epoch,
            "chainDelays": dict(self.chain_delays_ms),
            "isWorkspaceOpen": self.is_workspace_open,
            "isCanvasPreviewMode": self.is_canvas_preview_mode,
            "status": self.status,
        }
