"""
Sprite data schemas - Pydantic models of the exchanged document JSON

{
  frames: [{x, y, w, h, duration?, imageUri?}],
  animations: {name: [frame positions]},
  animationsMeta?: {name: {loop?, fps?, multipliers?}},
  autoPlayAnimation?: string | null,
  meta?: {...}
}

Frame geometry must be finite numbers. Animation meta is lenient: wrong-typed
fields are dropped before validation and clamped later.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FrameSchema(BaseModel):
    """One frame as exchanged (no id)"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    x: float = Field(0, allow_inf_nan=False, description="Left edge in source pixels")
    y: float = Field(0, allow_inf_nan=False, description="Top edge in source pixels")
    w: float = Field(0, allow_inf_nan=False, description="Width in source pixels")
    h: float = Field(0, allow_inf_nan=False, description="Height in source pixels")
    duration: Optional[float] = Field(None, allow_inf_nan=False, description="Explicit duration (ms)")
    image_uri: Optional[Any] = Field(None, alias="imageUri", description="Opaque image handle")


class AnimationMetaSchema(BaseModel):
    """Per-animation playback settings"""
    model_config = ConfigDict(extra="allow")

    loop: Optional[bool] = None
    fps: Optional[float] = None
    multipliers: Optional[List[float]] = None

    @model_validator(mode="before")
    @classmethod
    def drop_malformed(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        cleaned = dict(data)
        if not isinstance(cleaned.get("loop"), (bool, type(None))):
            cleaned.pop("loop")
        fps = cleaned.get("fps")
        if fps is not None and (isinstance(fps, bool) or not isinstance(fps, (int, float))):
            cleaned.pop("fps")
        multipliers = cleaned.get("multipliers")
        if multipliers is not None:
            if isinstance(multipliers, (list, tuple)):
                cleaned["multipliers"] = [
                    m if isinstance(m, (int, float)) and not isinstance(m, bool) else 1.0
                    for m in multipliers
                ]
            else:
                cleaned.pop("multipliers")
        return cleaned


class SpriteDataSchema(BaseModel):
    """Complete exchanged document"""
    model_config = ConfigDict(populate_by_name=True)

    frames: List[FrameSchema] = Field(description="Frames in array order")
    animations: Dict[str, List[Any]] = Field(default_factory=dict)
    animations_meta: Optional[Dict[str, AnimationMetaSchema]] = Field(None, alias="animationsMeta")
    auto_play_animation: Optional[Any] = Field(None, alias="autoPlayAnimation")
    meta: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def normalize_optional_maps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for key in ("animations", "meta", "animationsMeta"):
            if key in cleaned and not isinstance(cleaned[key], dict):
                cleaned.pop(key)
        animations = cleaned.get("animations")
        if animations:
            cleaned["animations"] = {
                name: sequence if isinstance(sequence, list) else []
                for name, sequence in animations.items()
            }
        return cleaned


def is_position(value: Any, frame_count: int) -> bool:
    """True for an integral, in-range frame position."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value) or value != int(value):
        return False
    return 0 <= int(value) < frame_count
