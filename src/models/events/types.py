from enum import Enum, auto


class EventType(Enum):
    # Playback
    FRAME_CHANGED = auto()
    ANIMATION_FINISHED = auto()
    PLAYBACK_HALTED = auto()
    PLAYBACK_STATE_CHANGED = auto()

    # Document
    DOCUMENT_CHANGED = auto()
    DOCUMENT_IMPORTED = auto()
    HISTORY_CHANGED = auto()
