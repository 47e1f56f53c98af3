"""
Default sprite codec

to_json:   SpriteDocument -> plain dict in the exchanged shape (ids stripped)
from_json: dict / JSON text -> Snapshot with fresh frame ids, or None when the
           payload does not validate
"""

import copy
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from codec.schemas import SpriteDataSchema, is_position
from models.animation import AnimationMeta, clamp_fps, DEFAULT_MULTIPLIER, clamp_multiplier
from models.document import Snapshot, SpriteDocument, sync_animations_meta
from models.enums import LogCategory
from models.frame import SpriteFrame
from utils.ids import create_frame_id
from utils.logger import get_category_logger

log = get_category_logger(LogCategory.CODEC)


def frame_to_json(frame: SpriteFrame) -> Dict[str, Any]:
    data: Dict[str, Any] = {"x": frame.x, "y": frame.y, "w": frame.w, "h": frame.h}
    if frame.duration is not None:
        data["duration"] = frame.duration
    if frame.image_ref is not None:
        data["imageUri"] = frame.image_ref
    return data


def meta_to_json(meta: AnimationMeta, length: int) -> Dict[str, Any]:
    """Stored meta with fps clamped and multipliers fitted to the sequence length."""
    data = meta.to_dict()
    if meta.fps is not None:
        data["fps"] = clamp_fps(meta.fps)
    if meta.multipliers is not None:
        data["multipliers"] = [
            clamp_multiplier(meta.multipliers[i]) if i < len(meta.multipliers) else DEFAULT_MULTIPLIER
            for i in range(length)
        ]
    return data


class DefaultSpriteCodec:
    """Codec for the plain JSON document shape"""

    name = "default"
    version = 1

    def to_json(self, document: SpriteDocument) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "frames": [frame_to_json(frame) for frame in document.frames],
            "animations": {name: list(sequence) for name, sequence in document.animations.items()},
        }
        if document.animations_meta:
            data["animationsMeta"] = {
                name: meta_to_json(meta, len(document.animations.get(name, ())))
                for name, meta in document.animations_meta.items()
                if name in document.animations
            }
        data["autoPlayAnimation"] = document.auto_play_animation
        data["meta"] = copy.deepcopy(dict(document.meta))
        return data

    def from_json(self, payload: Union[str, bytes, Dict[str, Any], None]) -> Optional[Snapshot]:
        if payload is None:
            return None
        try:
            if isinstance(payload, (str, bytes)):
                data = SpriteDataSchema.model_validate_json(payload)
            else:
                data = SpriteDataSchema.model_validate(payload)
        except ValidationError as e:
            log.warn("Sprite payload rejected", errors=e.error_count())
            return None

        frames = tuple(
            SpriteFrame(
                id=create_frame_id(),
                x=frame.x,
                y=frame.y,
                w=frame.w,
                h=frame.h,
                duration=frame.duration,
                image_ref=frame.image_uri,
            )
            for frame in data.frames
        )
        animations = {
            name: tuple(int(v) for v in sequence if is_position(v, len(frames)))
            for name, sequence in data.animations.items()
        }
        animations_meta = sync_animations_meta(
            animations,
            {
                name: AnimationMeta(
                    loop=meta.loop,
                    fps=meta.fps,
                    multipliers=tuple(meta.multipliers) if meta.multipliers is not None else None,
                )
                for name, meta in (data.animations_meta or {}).items()
            },
        )
        auto_play = data.auto_play_animation
        if not isinstance(auto_play, str) or auto_play not in animations:
            auto_play = None

        log.debug("Sprite payload decoded", frames=len(frames), animations=len(animations))
        return Snapshot(
            frames=frames,
            animations=animations,
            animations_meta=animations_meta,
            selected=(),
            meta=dict(data.meta),
            auto_play_animation=auto_play,
        )


class ExportOnlyCodec:
    """Wraps a to_json callable; importing through it is a capability error."""

    def __init__(self, to_json: Callable[[SpriteDocument], Any], name: str = "export-only", version: int = 1):
        self._to_json = to_json
        self.name = name
        self.version = version

    def to_json(self, document: SpriteDocument) -> Any:
        return self._to_json(document)
