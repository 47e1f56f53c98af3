"""
Playback state model

The scheduler walks `sequence`, which is already direction-applied: for
REVERSE playback it holds the reversed animation order. `cursor` is a position
in that scheduling order; observers get it translated back to forward
coordinates via forward_cursor().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from models.enums import PlaybackDirection, PlaybackStatus


@dataclass
class PlaybackState:
    """Mutable per-session playback state"""
    animation_name: Optional[str] = None
    sequence: Tuple[int, ...] = ()
    cursor: int = 0
    accumulated_ms: float = 0.0
    playing: bool = False
    speed_scale: float = 1.0
    forced_frame: Optional[int] = None
    direction: PlaybackDirection = PlaybackDirection.FORWARD

    @property
    def status(self) -> PlaybackStatus:
        if self.forced_frame is not None:
            return PlaybackStatus.FORCED_FRAME
        if not self.sequence:
            return PlaybackStatus.IDLE
        return PlaybackStatus.RUNNING if self.playing else PlaybackStatus.PAUSED

    def forward_cursor(self) -> int:
        """Cursor position in forward-sequence coordinates."""
        if not self.sequence:
            return 0
        cursor = min(max(self.cursor, 0), len(self.sequence) - 1)
        if self.direction is PlaybackDirection.REVERSE:
            return len(self.sequence) - 1 - cursor
        return cursor

    def frame_index(self) -> int:
        """Frame-array position currently displayed."""
        if self.forced_frame is not None:
            return self.forced_frame
        if not self.sequence:
            return 0
        return self.sequence[min(max(self.cursor, 0), len(self.sequence) - 1)]
