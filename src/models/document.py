"""
Sprite document models

SpriteDocument is replaced, never mutated: every engine operation builds a new
value, so readers holding an older reference never observe a partial edit.
Snapshot is the detached copy stored in undo/redo history.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from models.animation import AnimationMeta, AnimationSequence, to_sequence
from models.frame import SpriteFrame
from utils.ids import create_frame_id


@dataclass(frozen=True)
class SpriteDocument:
    """Editable sprite document (history stacks live in DocumentEngine)"""
    frames: Tuple[SpriteFrame, ...] = ()
    animations: Dict[str, AnimationSequence] = field(default_factory=dict)
    animations_meta: Dict[str, AnimationMeta] = field(default_factory=dict)
    selected: Tuple[str, ...] = ()
    clipboard: Tuple[SpriteFrame, ...] = ()
    meta: Dict[str, Any] = field(default_factory=dict)
    auto_play_animation: Optional[str] = None

    def evolve(self, **changes) -> "SpriteDocument":
        return replace(self, **changes)

    def frame_ids(self) -> Tuple[str, ...]:
        return tuple(frame.id for frame in self.frames)

    def index_of(self, frame_id: str) -> int:
        """Array position of a frame id, -1 when absent."""
        for index, frame in enumerate(self.frames):
            if frame.id == frame_id:
                return index
        return -1

    def get_frame(self, frame_id: str) -> Optional[SpriteFrame]:
        index = self.index_of(frame_id)
        return self.frames[index] if index >= 0 else None

    def meta_for(self, name: Optional[str]) -> AnimationMeta:
        if name is None:
            return AnimationMeta()
        return self.animations_meta.get(name) or AnimationMeta()

    @classmethod
    def from_state(cls, state: Optional[Any] = None) -> "SpriteDocument":
        """
        Build a document from another document or a partial mapping.

        Mapping keys follow the attribute names; frames may be SpriteFrame
        values or dicts (missing ids are generated). Selection is sanitized
        against the resulting frames.
        """
        if state is None:
            return cls()
        if isinstance(state, SpriteDocument):
            state = {
                "frames": state.frames,
                "animations": state.animations,
                "animations_meta": state.animations_meta,
                "selected": state.selected,
                "clipboard": state.clipboard,
                "meta": state.meta,
                "auto_play_animation": state.auto_play_animation,
            }
        frames = coerce_frames(state.get("frames") or ())
        allowed = {frame.id for frame in frames}
        return cls(
            frames=frames,
            animations=clone_animations(state.get("animations") or {}),
            animations_meta=clone_animations_meta(state.get("animations_meta")),
            selected=tuple(fid for fid in (state.get("selected") or ()) if fid in allowed),
            clipboard=coerce_frames(state.get("clipboard") or ()),
            meta=copy.deepcopy(dict(state.get("meta") or {})),
            auto_play_animation=state.get("auto_play_animation"),
        )


@dataclass(frozen=True)
class Snapshot:
    """Detached copy of undoable document content (clipboard excluded)"""
    frames: Tuple[SpriteFrame, ...]
    animations: Dict[str, AnimationSequence]
    animations_meta: Dict[str, AnimationMeta]
    selected: Tuple[str, ...]
    meta: Dict[str, Any]
    auto_play_animation: Optional[str] = None


def coerce_frame(frame: Any) -> SpriteFrame:
    if isinstance(frame, SpriteFrame):
        return frame if frame.id else replace(frame, id=create_frame_id())
    data = dict(frame)
    if "imageUri" in data and "image_ref" not in data:
        data["image_ref"] = data.pop("imageUri")
    return SpriteFrame(
        id=data.get("id") or create_frame_id(),
        x=data.get("x", 0),
        y=data.get("y", 0),
        w=data.get("w", 0),
        h=data.get("h", 0),
        duration=data.get("duration"),
        image_ref=data.get("image_ref"),
    )


def coerce_frames(frames: Iterable[Any]) -> Tuple[SpriteFrame, ...]:
    return tuple(coerce_frame(frame) for frame in frames)


def clone_animations(animations: Mapping[str, Any]) -> Dict[str, AnimationSequence]:
    """Deep-clones sequences; non-list values become empty sequences."""
    return {
        name: to_sequence(sequence) if isinstance(sequence, (list, tuple)) else ()
        for name, sequence in animations.items()
    }


def clone_animations_meta(meta: Optional[Mapping[str, Any]]) -> Dict[str, AnimationMeta]:
    if not meta:
        return {}
    return {
        name: value if isinstance(value, AnimationMeta) else AnimationMeta.from_dict(value)
        for name, value in meta.items()
    }


def sync_animations_meta(
    animations: Mapping[str, AnimationSequence],
    meta: Mapping[str, AnimationMeta],
) -> Dict[str, AnimationMeta]:
    """Drops metadata entries that no longer have a matching animation name."""
    return {name: meta[name] for name in animations if name in meta}


def snapshot_from_document(document: SpriteDocument) -> Snapshot:
    return Snapshot(
        frames=tuple(document.frames),
        animations=clone_animations(document.animations),
        animations_meta=dict(document.animations_meta),
        selected=tuple(document.selected),
        meta=copy.deepcopy(document.meta),
        auto_play_animation=document.auto_play_animation,
    )


def apply_snapshot(document: SpriteDocument, snapshot: Snapshot) -> SpriteDocument:
    """Restores snapshot content onto a document, keeping its clipboard."""
    return replace(
        document,
        frames=tuple(snapshot.frames),
        animations=clone_animations(snapshot.animations),
        animations_meta=dict(snapshot.animations_meta),
        selected=tuple(snapshot.selected),
        meta=copy.deepcopy(snapshot.meta),
        auto_play_animation=snapshot.auto_play_animation,
    )
