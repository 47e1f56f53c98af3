"""
Frame timing helpers (pure functions)

Duration resolution order for a sequence entry:
  1. explicit frame.duration (floored at MIN_FRAME_DURATION_MS)
  2. 1000 / clamped animation fps, scaled by the entry's multiplier
  3. 1000 / DEFAULT_FPS
The result is divided by the clamped speed scale, so it is always strictly
positive and bounded.
"""

import math
from typing import Any, Optional, Tuple

from models.animation import AnimationMeta, DEFAULT_FPS, clamp_fps
from models.document import SpriteDocument
from models.frame import SpriteFrame

MIN_SPEED_SCALE = 0.01
MAX_SPEED_SCALE = 32.0
MIN_FRAME_DURATION_MS = 1.0
DEFAULT_FRAME_DURATION_MS = 1000 / DEFAULT_FPS


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def clamp_speed_scale(
    value: Any,
    low: float = MIN_SPEED_SCALE,
    high: float = MAX_SPEED_SCALE,
) -> float:
    """Speed scale clamped into [low, high]; non-numeric/non-finite -> 1.0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return 1.0
    return clamp(float(value), low, high)


def compute_frame_duration(
    frame: Optional[SpriteFrame],
    meta: Optional[AnimationMeta],
    position: int,
    speed_scale: float = 1.0,
    min_speed: float = MIN_SPEED_SCALE,
    max_speed: float = MAX_SPEED_SCALE,
    default_fps: float = DEFAULT_FPS,
) -> float:
    """
    Effective on-screen duration (ms) of one sequence entry.

    Without an explicit frame duration the base 1000/fps is multiplied by the
    entry multiplier, so a multiplier of 2 shows the entry twice as long.

    Args:
        frame: Frame shown by the entry (None -> default duration)
        meta: Animation meta (None -> defaults)
        position: Entry position in the forward sequence (multiplier lookup)
        speed_scale: Runtime speed multiplier
    """
    safe_speed = clamp_speed_scale(speed_scale, min_speed, max_speed)
    if frame is None:
        return (1000 / default_fps) / safe_speed

    duration = frame.duration
    if isinstance(duration, (int, float)) and not isinstance(duration, bool) and math.isfinite(duration):
        return max(MIN_FRAME_DURATION_MS, float(duration)) / safe_speed

    meta = meta or AnimationMeta()
    fps = clamp_fps(meta.fps, default_fps)
    return (1000 / fps) * meta.multiplier_at(position) / safe_speed


def build_sequence(document: SpriteDocument, animation_name: Optional[str]) -> Tuple[int, ...]:
    """Animation sequence, or every frame position when it is missing or empty."""
    if animation_name is not None:
        sequence = document.animations.get(animation_name)
        if sequence:
            return tuple(sequence)
    return tuple(range(len(document.frames)))


def pick_initial_animation(document: SpriteDocument, requested: Optional[str] = None) -> Optional[str]:
    """Explicit request > document auto-play > first animation > None."""
    if isinstance(requested, str):
        return requested
    if isinstance(document.auto_play_animation, str):
        return document.auto_play_animation
    for name in document.animations:
        return name
    return None


def resolve_frame_index(value: Any, frame_count: int) -> Optional[int]:
    """Floor and clamp a frame index into range; None for non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return int(clamp(math.floor(value), 0, max(0, frame_count - 1)))
