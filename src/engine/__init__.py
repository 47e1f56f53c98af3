"""
Sprite engines: document mutation, compaction and playback scheduling
"""

from .clock import AsyncioClock, CancelToken, ManualClock
from .compaction import CompactionResult, compact
from .document_engine import DocumentEngine
from .playback_scheduler import PlaybackScheduler, TickResult, tick

__all__ = [
    "AsyncioClock",
    "CancelToken",
    "ManualClock",
    "CompactionResult",
    "compact",
    "DocumentEngine",
    "PlaybackScheduler",
    "TickResult",
    "tick",
]
