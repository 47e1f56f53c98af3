"""
Models package - Data models for the sprite editor and playback engines
"""

from .enums import PlaybackStatus, PlaybackDirection, EditOperation, LogLevel, LogCategory
from .frame import SpriteFrame
from .animation import AnimationMeta, AnimationSequence
from .document import SpriteDocument, Snapshot
from .playback import PlaybackState

__all__ = [
    'PlaybackStatus',
    'PlaybackDirection',
    'EditOperation',
    'LogLevel',
    'LogCategory',
    'SpriteFrame',
    'AnimationMeta',
    'AnimationSequence',
    'SpriteDocument',
    'Snapshot',
    'PlaybackState',
]
