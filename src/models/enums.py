"""
Enums for the sprite editor and playback engines
"""

from enum import Enum, auto


class PlaybackStatus(Enum):
    """
    Scheduler states

    IDLE: No sequence to play (empty document or empty fallback order)
    PAUSED: Sequence available, not advancing
    RUNNING: Sequence advancing on clock ticks
    FORCED_FRAME: A fixed frame is displayed, ticks are ignored
    """
    IDLE = auto()
    PAUSED = auto()
    RUNNING = auto()
    FORCED_FRAME = auto()


class PlaybackDirection(Enum):
    """Order in which a sequence is walked"""
    FORWARD = "forward"
    REVERSE = "reverse"


class EditOperation(Enum):
    """Document engine operations (carried by DOCUMENT_CHANGED events)"""
    INSERT_FRAME = auto()
    UPDATE_FRAME = auto()
    REMOVE_FRAMES = auto()
    REORDER_FRAMES = auto()
    SELECTION = auto()
    CLIPBOARD = auto()
    PASTE = auto()
    UNDO = auto()
    REDO = auto()
    IMPORT = auto()
    SET_ANIMATIONS = auto()
    SET_ANIMATIONS_META = auto()
    UPDATE_META = auto()
    RESET = auto()
    CUSTOM = auto()


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    EDITOR = auto()      # Document mutations, undo/redo
    COMPACTION = auto()  # Frame dedup / GC
    PLAYBACK = auto()    # Scheduler transitions
    CODEC = auto()       # Import/export
    EVENT = auto()       # Event bus events and handling
    SYSTEM = auto()      # Startup, shutdown, errors

    GENERAL = auto()    # Default general category
