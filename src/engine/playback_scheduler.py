"""
PlaybackScheduler - time-stepped cursor over an animation sequence

Architecture:
  - tick(): pure step function, PlaybackState + elapsed ms -> TickResult
  - PlaybackScheduler: owns one PlaybackState, registers with a Clock while
    RUNNING, applies tick() on every callback and publishes events

States (PlaybackState.status):
  IDLE (no sequence) / PAUSED / RUNNING / FORCED_FRAME

Reverse playback schedules over the reversed sequence; cursor values handed to
observers are translated back to forward-sequence positions, so completion
and looping logic is shared by both directions.

Events (via EventBus):
  FRAME_CHANGED           once per distinct displayed frame index
  PLAYBACK_HALTED         one-shot animation reached its last entry
  ANIMATION_FINISHED      right after PLAYBACK_HALTED
  PLAYBACK_STATE_CHANGED  status transitions
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from engine.clock import CancelToken, Clock
from engine.timing import (
    MAX_SPEED_SCALE,
    MIN_SPEED_SCALE,
    build_sequence,
    clamp_speed_scale,
    compute_frame_duration,
    pick_initial_animation,
    resolve_frame_index,
)
from models.animation import DEFAULT_FPS
from models.config import PlaybackConfig
from models.document import SpriteDocument
from models.enums import PlaybackDirection, PlaybackStatus, LogCategory
from models.events import (
    AnimationFinishedEvent,
    EventType,
    FrameChangedEvent,
    PlaybackHaltedEvent,
    PlaybackStateChangedEvent,
)
from models.playback import PlaybackState
from services.event_bus import EventBus
from utils.logger import get_category_logger

log = get_category_logger(LogCategory.PLAYBACK)

DEFAULT_FRAME_INTERVAL_MS = 16.0


@dataclass(frozen=True)
class TickResult:
    state: PlaybackState
    advanced: bool = False
    finished: bool = False


def tick(
    state: PlaybackState,
    delta_ms: float,
    duration_of: Callable[[int], float],
    loop: bool,
) -> TickResult:
    """
    Advance a playback state by delta_ms.

    Whole-frame advances repeat while the accumulator covers the current
    entry's duration, so a long stall skips frames in a single call. For
    looping sequences full cycles are folded away with a modulo, which bounds
    the work per call by twice the sequence length.

    Args:
        state: Current state (not modified)
        delta_ms: Elapsed real time since the previous tick
        duration_of: Effective duration of a scheduling cursor position (> 0)
        loop: Whether the sequence wraps around

    Returns:
        TickResult with the new state; finished is True when a one-shot
        sequence just reached its end
    """
    if not state.playing or state.forced_frame is not None or not state.sequence:
        return TickResult(state)

    length = len(state.sequence)
    cursor = min(max(state.cursor, 0), length - 1)
    accumulated = state.accumulated_ms + max(0.0, delta_ms)
    advanced = False
    steps = 0

    while True:
        duration = duration_of(cursor)
        if accumulated < duration:
            break
        accumulated -= duration
        if cursor + 1 < length:
            cursor += 1
        elif loop:
            cursor = 0
        else:
            finished_state = replace(
                state,
                cursor=length - 1,
                accumulated_ms=0.0,
                playing=False,
            )
            return TickResult(finished_state, advanced=True, finished=True)
        advanced = True
        steps += 1
        if loop and steps == length:
            cycle = sum(duration_of(i) for i in range(length))
            accumulated %= cycle

    return TickResult(
        replace(state, cursor=cursor, accumulated_ms=accumulated),
        advanced=advanced,
    )


class PlaybackScheduler:
    """
    Drives a PlaybackState over a (read-only) SpriteDocument.

    Usage:
        scheduler = PlaybackScheduler(document, ManualClock())
        scheduler.on_frame_changed(lambda e: print(e.frame_index))
        scheduler.play("walk")
        clock.advance(500)
        scheduler.dispose()

    The document is only ever replaced (set_document), never mutated, so a
    tick always runs against one consistent document value.
    """

    def __init__(
        self,
        document: SpriteDocument,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
        animation: Optional[str] = None,
        playing: bool = False,
        speed_scale: float = 1.0,
        direction: PlaybackDirection = PlaybackDirection.FORWARD,
        frame_interval_ms: float = DEFAULT_FRAME_INTERVAL_MS,
        min_speed_scale: float = MIN_SPEED_SCALE,
        max_speed_scale: float = MAX_SPEED_SCALE,
        default_fps: float = DEFAULT_FPS,
    ):
        self._document = document
        self._clock = clock
        self._bus = event_bus or EventBus()
        self._frame_interval_ms = max(1.0, float(frame_interval_ms))
        self._min_speed = min_speed_scale
        self._max_speed = max_speed_scale
        self._default_fps = default_fps

        self._token: Optional[CancelToken] = None
        self._last_tick_ms: Optional[float] = None
        self._desired_playing = bool(playing)
        self._finished = False
        self._disposed = False

        name = pick_initial_animation(document, animation)
        self._state = PlaybackState(
            animation_name=name,
            sequence=self._directed(build_sequence(document, name), direction),
            playing=self._desired_playing,
            speed_scale=clamp_speed_scale(speed_scale, min_speed_scale, max_speed_scale),
            direction=direction,
        )
        self._last_reported_frame: Optional[int] = self._state.frame_index() if self._state.sequence else None

        log.debug(
            "PlaybackScheduler initialized",
            animation=name,
            frames=len(self._state.sequence),
            playing=self._desired_playing,
        )
        self._sync_timer()

    @classmethod
    def from_config(
        cls,
        document: SpriteDocument,
        clock: Clock,
        config: PlaybackConfig,
        event_bus: Optional[EventBus] = None,
        animation: Optional[str] = None,
    ) -> "PlaybackScheduler":
        """Build a scheduler from the playback section of AppConfig."""
        return cls(
            document,
            clock,
            event_bus=event_bus,
            animation=animation,
            playing=config.initial_playing,
            frame_interval_ms=config.frame_interval_ms,
            min_speed_scale=config.min_speed_scale,
            max_speed_scale=config.max_speed_scale,
            default_fps=config.default_fps,
        )

    # ============================================================
    # Read access
    # ============================================================

    @property
    def state(self) -> PlaybackState:
        """Copy of the current state"""
        return replace(self._state)

    @property
    def status(self) -> PlaybackStatus:
        return self._state.status

    @property
    def animation_name(self) -> Optional[str]:
        return self._state.animation_name

    @property
    def playing(self) -> bool:
        return self._state.playing

    @property
    def cursor(self) -> int:
        """Cursor in forward-sequence coordinates"""
        return self._state.forward_cursor()

    @property
    def frame_index(self) -> int:
        return self._state.frame_index()

    @property
    def sequence(self) -> Tuple[int, ...]:
        """Active sequence in forward order"""
        return self._directed(self._state.sequence, self._state.direction)

    @property
    def direction(self) -> PlaybackDirection:
        return self._state.direction

    @property
    def speed_scale(self) -> float:
        return self._state.speed_scale

    @property
    def document(self) -> SpriteDocument:
        return self._document

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def is_scheduled(self) -> bool:
        return self._token is not None and self._token.active

    # ============================================================
    # Observer registration
    # ============================================================

    def subscribe(self, event_type: EventType, handler, priority: int = 0) -> Callable[[], None]:
        return self._bus.subscribe(event_type, handler, priority=priority)

    def on_frame_changed(self, handler) -> Callable[[], None]:
        return self._bus.subscribe(EventType.FRAME_CHANGED, handler)

    def on_animation_finished(self, handler) -> Callable[[], None]:
        return self._bus.subscribe(EventType.ANIMATION_FINISHED, handler)

    # ============================================================
    # Controls
    # ============================================================

    def play(
        self,
        name: Optional[str] = None,
        from_cursor: Optional[int] = None,
        direction: Optional[PlaybackDirection] = None,
    ) -> None:
        """
        Start (or resume) playback.

        Args:
            name: Animation to switch to (None keeps the current one)
            from_cursor: Forward-sequence position to start from
            direction: New direction; a change restarts from that direction's start
        """
        old_status = self._state.status
        if name is not None and name != self._state.animation_name:
            self._switch_animation(name)

        if direction is not None and direction is not self._state.direction:
            forward = self._directed(self._state.sequence, self._state.direction)
            self._state = replace(
                self._state,
                direction=direction,
                sequence=self._directed(forward, direction),
                cursor=0,
                accumulated_ms=0.0,
            )

        if from_cursor is not None and self._state.sequence:
            self._set_forward_cursor(from_cursor)
        elif self._finished and self._at_end():
            self._state = replace(self._state, cursor=0, accumulated_ms=0.0)

        self._finished = False
        self._desired_playing = True
        self._apply_playing()
        log.debug("Playback started", animation=self._state.animation_name, direction=self._state.direction.value)
        self._after_change(old_status)

    def pause(self) -> None:
        old_status = self._state.status
        self._desired_playing = False
        self._apply_playing()
        self._after_change(old_status)

    def stop(self) -> None:
        """Pause and rewind to the first entry."""
        old_status = self._state.status
        self._desired_playing = False
        self._finished = False
        self._state = replace(self._state, cursor=0, accumulated_ms=0.0)
        self._apply_playing()
        self._after_change(old_status)

    def seek(self, frame_index: int) -> None:
        """Move the cursor to the first entry showing frame_index (or the start)."""
        clamped = resolve_frame_index(frame_index, len(self._document.frames))
        if clamped is None:
            return
        old_status = self._state.status
        forward = self.sequence
        position = forward.index(clamped) if clamped in forward else 0
        self._set_forward_cursor(position)
        self._after_change(old_status)

    def set_cursor(self, cursor: int) -> None:
        """Move to a forward-sequence position (clamped), resetting the accumulator."""
        old_status = self._state.status
        self._set_forward_cursor(cursor)
        self._after_change(old_status)

    def set_animation(self, name: Optional[str]) -> None:
        if name == self._state.animation_name:
            return
        old_status = self._state.status
        self._switch_animation(name)
        self._after_change(old_status)

    def set_speed_scale(self, speed_scale: float) -> None:
        self._state = replace(
            self._state,
            speed_scale=clamp_speed_scale(speed_scale, self._min_speed, self._max_speed),
        )

    def set_direction(self, direction: PlaybackDirection) -> None:
        """Change direction in place; the displayed entry stays the same."""
        if direction is self._state.direction:
            return
        forward_cursor = self._state.forward_cursor()
        forward = self._directed(self._state.sequence, self._state.direction)
        self._state = replace(
            self._state,
            direction=direction,
            sequence=self._directed(forward, direction),
        )
        self._set_forward_cursor(forward_cursor, reset_accumulator=False)

    def set_forced_frame(self, frame_index: Optional[int]) -> None:
        """
        Pin a frame (FORCED_FRAME) or release it with None.

        While pinned, ticks are ignored and playing is False; releasing
        restores the playing value last requested through play/pause/stop.
        """
        old_status = self._state.status
        if frame_index is None:
            forced = None
        else:
            forced = resolve_frame_index(frame_index, len(self._document.frames))
        self._state = replace(self._state, forced_frame=forced)
        self._apply_playing()
        self._after_change(old_status)

    def set_document(self, document: SpriteDocument) -> None:
        """
        Swap in a new document value.

        The animation is kept when it still exists, otherwise the initial
        animation is picked again. A structurally different sequence resets
        the cursor and accumulator.
        """
        if document is self._document:
            return
        old_status = self._state.status
        self._document = document
        name = self._state.animation_name
        if name is None or name not in document.animations:
            name = pick_initial_animation(document)
        sequence = self._directed(build_sequence(document, name), self._state.direction)
        forced = self._state.forced_frame
        if forced is not None:
            forced = resolve_frame_index(forced, len(document.frames))

        if name != self._state.animation_name or sequence != self._state.sequence:
            self._state = replace(
                self._state,
                animation_name=name,
                sequence=sequence,
                cursor=0,
                accumulated_ms=0.0,
                forced_frame=forced,
            )
            self._finished = False
            self._restart_timer()
        else:
            self._state = replace(self._state, forced_frame=forced)
        self._apply_playing()
        self._after_change(old_status)

    def advance(self, delta_ms: float) -> TickResult:
        """Apply one tick of delta_ms and publish the resulting events."""
        old_status = self._state.status
        state = self._state
        document = self._document
        meta = document.meta_for(state.animation_name)
        length = len(state.sequence)
        reverse = state.direction is PlaybackDirection.REVERSE

        def duration_of(cursor: int) -> float:
            frame_index = state.sequence[cursor]
            frame = document.frames[frame_index] if 0 <= frame_index < len(document.frames) else None
            position = length - 1 - cursor if reverse else cursor
            return compute_frame_duration(
                frame,
                meta,
                position,
                state.speed_scale,
                self._min_speed,
                self._max_speed,
                self._default_fps,
            )

        result = tick(state, delta_ms, duration_of, meta.resolved_loop)
        self._state = result.state

        if result.finished:
            self._desired_playing = False
            self._finished = True
            self._disarm()
            log.debug("Animation finished", animation=state.animation_name, cursor=self._state.forward_cursor())
            self._emit_frame_changed()
            self._bus.publish(PlaybackHaltedEvent(state.animation_name))
            self._bus.publish(AnimationFinishedEvent(state.animation_name))
            self._emit_status(old_status)
        elif result.advanced:
            self._emit_frame_changed()
        return result

    def dispose(self) -> None:
        """Cancel any pending callback; the scheduler stays readable."""
        self._disarm()
        self._disposed = True
        log.debug("PlaybackScheduler disposed")

    # ============================================================
    # Internals
    # ============================================================

    @staticmethod
    def _directed(sequence: Tuple[int, ...], direction: PlaybackDirection) -> Tuple[int, ...]:
        if direction is PlaybackDirection.REVERSE:
            return tuple(reversed(sequence))
        return tuple(sequence)

    def _at_end(self) -> bool:
        return bool(self._state.sequence) and self._state.cursor >= len(self._state.sequence) - 1

    def _switch_animation(self, name: Optional[str]) -> None:
        self._state = replace(
            self._state,
            animation_name=name,
            sequence=self._directed(build_sequence(self._document, name), self._state.direction),
            cursor=0,
            accumulated_ms=0.0,
        )
        self._finished = False
        self._restart_timer()

    def _set_forward_cursor(self, position: int, reset_accumulator: bool = True) -> None:
        length = len(self._state.sequence)
        if not length:
            self._state = replace(self._state, cursor=0, accumulated_ms=0.0)
            return
        clamped = min(max(int(position), 0), length - 1)
        cursor = length - 1 - clamped if self._state.direction is PlaybackDirection.REVERSE else clamped
        self._state = replace(
            self._state,
            cursor=cursor,
            accumulated_ms=0.0 if reset_accumulator else self._state.accumulated_ms,
        )

    def _apply_playing(self) -> None:
        playing = self._desired_playing and self._state.forced_frame is None
        if playing != self._state.playing:
            self._state = replace(self._state, playing=playing)
        self._sync_timer()

    def _sync_timer(self) -> None:
        if self._state.status is PlaybackStatus.RUNNING and not self._disposed:
            self._arm()
        else:
            self._disarm()

    def _arm(self) -> None:
        if self.is_scheduled:
            return
        self._last_tick_ms = self._clock.now_ms()
        self._token = self._clock.schedule(self._on_clock, self._frame_interval_ms)

    def _disarm(self) -> None:
        if self._token is not None:
            self._clock.cancel(self._token)
            self._token = None
        self._last_tick_ms = None

    def _restart_timer(self) -> None:
        self._disarm()
        self._sync_timer()

    def _on_clock(self, now_ms: float) -> None:
        self._token = None
        last = self._last_tick_ms if self._last_tick_ms is not None else now_ms
        self._last_tick_ms = now_ms
        self.advance(now_ms - last)
        if self._state.status is PlaybackStatus.RUNNING and not self._disposed and self._token is None:
            self._token = self._clock.schedule(self._on_clock, self._frame_interval_ms)

    def _after_change(self, old_status: PlaybackStatus) -> None:
        self._emit_frame_changed()
        self._emit_status(old_status)

    def _emit_frame_changed(self) -> None:
        if not self._state.sequence and self._state.forced_frame is None:
            return
        frame_index = self._state.frame_index()
        if frame_index == self._last_reported_frame:
            return
        self._last_reported_frame = frame_index
        self._bus.publish(FrameChangedEvent(
            self._state.animation_name,
            frame_index,
            self._state.forward_cursor(),
        ))

    def _emit_status(self, old_status: PlaybackStatus) -> None:
        new_status = self._state.status
        if new_status is not old_status:
            log.debug("Playback status changed", old=old_status.name, new=new_status.name)
            self._bus.publish(PlaybackStateChangedEvent(old_status, new_status))
