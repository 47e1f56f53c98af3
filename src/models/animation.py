"""
Animation models

An animation sequence is an ordered tuple of positions into the frame array
(not frame ids). AnimationMeta carries playback settings per animation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

AnimationSequence = Tuple[int, ...]

DEFAULT_FPS = 12
MIN_FPS = 1
MAX_FPS = 60
DEFAULT_MULTIPLIER = 1.0
MIN_MULTIPLIER = 0.1
DEFAULT_LOOP = True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def clamp_fps(value: Any, default: float = DEFAULT_FPS) -> float:
    """Clamp fps into [MIN_FPS, MAX_FPS]; non-finite or missing -> default."""
    if not _is_number(value) or not math.isfinite(value):
        return default
    return min(MAX_FPS, max(MIN_FPS, value))


def clamp_multiplier(value: Any) -> float:
    """Clamp a duration multiplier to MIN_MULTIPLIER; invalid -> 1.0."""
    if not _is_number(value) or not math.isfinite(value):
        return DEFAULT_MULTIPLIER
    return max(MIN_MULTIPLIER, float(value))


@dataclass(frozen=True)
class AnimationMeta:
    """Per-animation playback settings as stored in a document"""
    loop: Optional[bool] = None
    fps: Optional[float] = None
    multipliers: Optional[Tuple[float, ...]] = None

    @property
    def resolved_loop(self) -> bool:
        return DEFAULT_LOOP if self.loop is None else bool(self.loop)

    @property
    def resolved_fps(self) -> float:
        return clamp_fps(self.fps)

    def multiplier_at(self, position: int) -> float:
        if not self.multipliers or position < 0 or position >= len(self.multipliers):
            return DEFAULT_MULTIPLIER
        return clamp_multiplier(self.multipliers[position])

    def normalized(self, length: int) -> "AnimationMeta":
        """
        Externally emitted form: fps clamped, multipliers clamped and
        padded with 1.0 / truncated to the sequence length.
        """
        source = self.multipliers or ()
        multipliers = tuple(
            clamp_multiplier(source[i]) if i < len(source) else DEFAULT_MULTIPLIER
            for i in range(length)
        )
        return replace(self, fps=clamp_fps(self.fps), multipliers=multipliers)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.loop is not None:
            data["loop"] = self.loop
        if self.fps is not None:
            data["fps"] = self.fps
        if self.multipliers is not None:
            data["multipliers"] = list(self.multipliers)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AnimationMeta":
        """Lenient parse: wrong-typed fields are ignored rather than rejected."""
        if not isinstance(data, Mapping):
            return cls()
        loop = data.get("loop")
        fps = data.get("fps")
        multipliers = data.get("multipliers")
        return cls(
            loop=loop if isinstance(loop, bool) else None,
            fps=fps if _is_number(fps) else None,
            multipliers=(
                tuple(m if _is_number(m) else DEFAULT_MULTIPLIER for m in multipliers)
                if isinstance(multipliers, (list, tuple)) else None
            ),
        )


def to_sequence(values: Sequence[Any]) -> AnimationSequence:
    """Coerce a list of positions into an immutable sequence of ints."""
    return tuple(int(v) for v in values)
