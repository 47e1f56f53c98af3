from dataclasses import dataclass
from typing import Optional

from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource
from models.enums import PlaybackStatus


@dataclass(init=False)
class FrameChangedEvent(Event):
    animation_name: Optional[str]
    frame_index: int
    frame_cursor: int

    def __init__(self, animation_name: Optional[str], frame_index: int, frame_cursor: int = 0):
        super().__init__(
            type=EventType.FRAME_CHANGED,
            source=EventSource.PLAYBACK_SCHEDULER,
        )
        self.animation_name = animation_name
        self.frame_index = frame_index
        self.frame_cursor = frame_cursor


@dataclass(init=False)
class AnimationFinishedEvent(Event):
    animation_name: Optional[str]

    def __init__(self, animation_name: Optional[str]):
        super().__init__(
            type=EventType.ANIMATION_FINISHED,
            source=EventSource.PLAYBACK_SCHEDULER,
        )
        self.animation_name = animation_name


@dataclass(init=False)
class PlaybackHaltedEvent(Event):
    animation_name: Optional[str]

    def __init__(self, animation_name: Optional[str]):
        super().__init__(
            type=EventType.PLAYBACK_HALTED,
            source=EventSource.PLAYBACK_SCHEDULER,
        )
        self.animation_name = animation_name


@dataclass(init=False)
class PlaybackStateChangedEvent(Event):
    old: PlaybackStatus
    new: PlaybackStatus

    def __init__(self, old: PlaybackStatus, new: PlaybackStatus):
        super().__init__(
            type=EventType.PLAYBACK_STATE_CHANGED,
            source=EventSource.PLAYBACK_SCHEDULER,
        )
        self.old = old
        self.new = new
