from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers"""
    DOCUMENT_ENGINE = auto()     # Document mutations
    PLAYBACK_SCHEDULER = auto()  # Cursor / playback transitions
