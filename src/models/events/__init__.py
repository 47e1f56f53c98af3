"""
Event system for the sprite engines

Playback events come from the scheduler, document events from the editor.
"""

from models.events.types import EventType
from models.events.base import Event
from models.events.sources import EventSource

from models.events.playback_events import (
    FrameChangedEvent,
    AnimationFinishedEvent,
    PlaybackHaltedEvent,
    PlaybackStateChangedEvent,
)

from models.events.document_events import (
    DocumentChangedEvent,
    DocumentImportedEvent,
    HistoryChangedEvent,
)

__all__ = [
    "EventType",
    "Event",
    "EventSource",
    "FrameChangedEvent",
    "AnimationFinishedEvent",
    "PlaybackHaltedEvent",
    "PlaybackStateChangedEvent",
    "DocumentChangedEvent",
    "DocumentImportedEvent",
    "HistoryChangedEvent",
]
