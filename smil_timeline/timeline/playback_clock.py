"""Playback clock: the single time authority for a timeline session.

States: idle -> playing <-> paused -> stopped (idle again, epoch bumped).
Live time is derived from one wall-clock anchor:

    current = (now - anchor) / 1000 * playback_rate

While playing, one tick per frame pushes the time to the rendering surface's
native time control and broadcasts it to observers at a throttled rate.
There is never more than one pending tick per clock.
"""
from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Set

from smil_timeline.models.animation import AnimationChain, AnimationEvent, AnimationRecord
from smil_timeline.timeline.chain_delays import ChainResolution, resolve_chains
from smil_timeline.timeline.diagnostics import DiagnosticKind, report
from smil_timeline.timeline.durations import total_duration_seconds
from smil_timeline.timeline.schedulers import FrameScheduler, ManualFrameScheduler, monotonic_ms
from smil_timeline.timeline.state import TimelineState
from smil_timeline.utils.config import settings

logger = logging.getLogger(__name__)

EVENT_LOG_LIMIT = 20

Observer = Callable[[float], None]


class TimelineSource(Protocol):
    @property
    def animations(self) -> Sequence[AnimationRecord]: ...

    @property
    def chains(self) -> Sequence[AnimationChain]: ...


class PlaybackClock:
    def __init__(
        self,
        source: TimelineSource,
        state: Optional[TimelineState] = None,
        *,
        now: Callable[[], float] = monotonic_ms,
        scheduler: Optional[FrameScheduler] = None,
        surface: Any = None,
        broadcast_interval_ms: Optional[float] = None,
        min_playback_rate: Optional[float] = None,
        auto_restart_tolerance_s: Optional[float] = None,
    ) -> None:
        self.source = source
        self.state = state or TimelineState()
        self.events: List[AnimationEvent] = []
        self._now = now
        self._scheduler = scheduler or ManualFrameScheduler()
        self._surface = surface
        self._broadcast_interval_ms = (
            settings.broadcast_interval_ms if broadcast_interval_ms is None else broadcast_interval_ms
        )
        self._min_rate = settings.min_playback_rate if min_playback_rate is None else min_playback_rate
        self._restart_tolerance = (
            settings.auto_restart_tolerance_s if auto_restart_tolerance_s is None else auto_restart_tolerance_s
        )
        self._observers: List[Observer] = []
        self._tick_handle: Any = None
        self._captured_max = 0.0
        self._last_broadcast_ms: Optional[float] = None
        self._missing_controls: Set[str] = set()

    # -- surface / observers -------------------------------------------------

    def attach_surface(self, surface: Any) -> None:
        self._surface = surface
        self._missing_controls.clear()
        self._call_surface("set_current_time", self.state.current_time_seconds)

    def detach_surface(self) -> None:
        """Active view unmounted: cancel the tick loop and drop the surface."""
        self._cancel_tick()
        self._surface = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _call_surface(self, name: str, *args: Any) -> Any:
        if self._surface is None:
            return None
        control = getattr(self._surface, name, None)
        if not callable(control):
            if name not in self._missing_controls:
                self._missing_controls.add(name)
                report(DiagnosticKind.MISSING_TIME_CONTROL, name, "rendering surface lacks time control")
            return None
        return control(*args)

    def _broadcast(self, force: bool = False) -> None:
        now = self._now()
        if (
            not force
            and self._last_broadcast_ms is not None
            and now - self._last_broadcast_ms < self._broadcast_interval_ms
        ):
            return
        self._last_broadcast_ms = now
        current = self.state.current_time_seconds
        for observer in list(self._observers):
            observer(current)

    # -- durations -------------------------------------------------------------

    def calculate_chain_delays(self) -> ChainResolution:
        return resolve_chains(self.source.chains, self.source.animations)

    def _scheduled_durations(self, resolution: Optional[ChainResolution] = None) -> List[float]:
        if resolution is None:
            if self.state.chain_delays_ms or self.state.blocked_animation_ids:
                resolution = ChainResolution(
                    delays=dict(self.state.chain_delays_ms),
                    blocked=set(self.state.blocked_animation_ids),
                )
            else:
                resolution = self.calculate_chain_delays()
        durations = []
        for anim in self.source.animations:
            if anim.id in resolution.blocked:
                continue
            delay_ms = resolution.delays.get(anim.id, 0.0)
            durations.append(total_duration_seconds(anim) + delay_ms / 1000.0)
        return durations

    def max_duration(self, resolution: Optional[ChainResolution] = None) -> float:
        """End of the timeline: infinite when any scheduled animation never ends."""
        durations = self._scheduled_durations(resolution)
        if not durations:
            return 0.0
        if any(math.isinf(d) for d in durations):
            return math.inf
        return max(durations)

    def longest_finite_duration(self, resolution: Optional[ChainResolution] = None) -> Optional[float]:
        finite = [d for d in self._scheduled_durations(resolution) if math.isfinite(d)]
        return max(finite) if finite else None

    def timeline_extent(self) -> float:
        """Length a timeline ruler should show (padded, never zero)."""
        durations = self._scheduled_durations()
        finite = [d for d in durations if math.isfinite(d)]
        base = max(finite + [self.state.current_time_seconds])
        if len(finite) != len(durations):
            return max(10.0, base)
        return max(2.0, base)

    # -- commands --------------------------------------------------------------

    def play(self) -> None:
        resolution = self.calculate_chain_delays()
        current = self.state.current_time_seconds
        longest = self.longest_finite_duration(resolution)
        if longest is not None and current >= longest - self._restart_tolerance:
            current = 0.0

        self._cancel_tick()
        rate = max(self.state.playback_rate, 1e-4)
        self.state.current_time_seconds = current
        self.state.start_time_anchor_ms = self._now() - (current / rate) * 1000.0
        self.state.is_playing = True
        self.state.has_played = True
        self.state.chain_delays_ms = dict(resolution.delays)
        self.state.blocked_animation_ids = set(resolution.blocked)
        self._captured_max = self.max_duration(resolution)

        logger.debug("play from %.3fs (end %.3fs)", current, self._captured_max)
        self._call_surface("unpause_animations")
        self._call_surface("set_current_time", current)
        self._broadcast(force=True)
        self._schedule_tick()

    def pause(self) -> None:
        self._cancel_tick()
        self.state.is_playing = False
        self.state.start_time_anchor_ms = None
        self._call_surface("pause_animations")
        self._broadcast(force=True)

    def stop(self) -> None:
        self._cancel_tick()
        self.state.is_playing = False
        self.state.has_played = False
        self.state.current_time_seconds = 0.0
        self.state.start_time_anchor_ms = None
        self.state.restart_epoch += 1
        self.state.chain_delays_ms = {}
        self.state.blocked_animation_ids = set()
        self._call_surface("pause_animations")
        self._call_surface("set_current_time", 0.0)
        self._broadcast(force=True)

    def scrub(self, time_seconds: float) -> float:
        """Jump to a time (clamped to the timeline) and pause there."""
        end = self.max_duration()
        clamped = max(0.0, float(time_seconds))
        if math.isfinite(end):
            clamped = min(clamped, end)
        self._cancel_tick()
        self.state.current_time_seconds = clamped
        self.state.is_playing = False
        self.state.start_time_anchor_ms = None
        self._call_surface("pause_animations")
        self._call_surface("set_current_time", clamped)
        self._broadcast(force=True)
        return clamped

    def set_playback_rate(self, rate: float) -> float:
        rate = max(self._min_rate, float(rate))
        if self.state.is_playing and self.state.start_time_anchor_ms is not None:
            # keep the playhead where it is; only the slope changes
            now = self._now()
            current = self._elapsed_seconds(now)
            self.state.start_time_anchor_ms = now - (current / rate) * 1000.0
        self.state.playback_rate = rate
        return rate

    def set_animation_delay(self, animation_id: str, delay_ms: float) -> None:
        delays = dict(self.state.chain_delays_ms)
        delays[animation_id] = max(0.0, float(delay_ms))
        self.state.chain_delays_ms = delays

    def forget_delays(self, animation_ids: Iterable[str]) -> None:
        """Drop delays and events of pruned animations."""
        removed = set(animation_ids)
        if not removed:
            return
        self.state.chain_delays_ms = {k: v for k, v in self.state.chain_delays_ms.items() if k not in removed}
        self.state.blocked_animation_ids = self.state.blocked_animation_ids - removed
        self.events = [e for e in self.events if e.source_animation_id not in removed]

    def process_animation_events(self) -> AnimationEvent:
        resolution = self.calculate_chain_delays()
        event = AnimationEvent(
            id=f"anim-{uuid.uuid4().hex[:8]}",
            type="sync",
            source_animation_id="chain",
            timestamp=self._now(),
            handled=True,
        )
        self.state.chain_delays_ms = dict(resolution.delays)
        self.state.blocked_animation_ids = set(resolution.blocked)
        self.events = (self.events + [event])[-EVENT_LOG_LIMIT:]
        return event

    def set_workspace_open(self, is_open: bool) -> None:
        self.state.is_workspace_open = bool(is_open)

    def set_canvas_preview_mode(self, active: bool) -> None:
        self._cancel_tick()
        self.state.is_canvas_preview_mode = bool(active)
        self.state.is_playing = False
        self.state.has_played = False
        self.state.current_time_seconds = 0.0
        self.state.start_time_anchor_ms = None
        self._broadcast(force=True)

    def play_canvas_preview(self) -> None:
        self.state.is_canvas_preview_mode = True
        self.state.restart_epoch += 1
        self.state.current_time_seconds = 0.0
        self.play()

    def pause_canvas_preview(self) -> None:
        self.pause()

    def stop_canvas_preview(self) -> None:
        self.set_canvas_preview_mode(False)

    # -- frame loop ------------------------------------------------------------

    def _elapsed_seconds(self, now: float) -> float:
        anchor = self.state.start_time_anchor_ms
        if anchor is None:
            return self.state.current_time_seconds
        return max(0.0, (now - anchor) / 1000.0 * self.state.playback_rate)

    def _schedule_tick(self) -> None:
        self._cancel_tick()
        self._tick_handle = self._scheduler.request_frame(self._on_frame)

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._scheduler.cancel_frame(self._tick_handle)
            self._tick_handle = None

    def _on_frame(self, _timestamp_ms: float) -> None:
        self._tick_handle = None
        self.tick()

    def tick(self) -> Optional[float]:
        """Advance one frame; returns the time pushed, None when not playing."""
        if not self.state.is_playing or self.state.start_time_anchor_ms is None:
            return None
        elapsed = self._elapsed_seconds(self._now())
        end = self._captured_max
        next_time = min(elapsed, end) if math.isfinite(end) else elapsed

        self._call_surface("set_current_time", next_time)
        self.state.current_time_seconds = next_time

        if math.isfinite(end) and next_time >= end:
            self._cancel_tick()
            self.state.is_playing = False
            self.state.start_time_anchor_ms = None
            self._call_surface("pause_animations")
            self._broadcast(force=True)
            logger.debug("timeline reached its end at %.3fs", next_time)
            return next_time

        self._broadcast()
        self._schedule_tick()
        return next_time
