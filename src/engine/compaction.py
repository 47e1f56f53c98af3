"""
Frame compaction - content-addressed dedup + unreferenced frame GC

compact() is a pure function: it never mutates its input and returns a new
CompactionResult. Steps:
  1. collect raw frame positions referenced by any sequence
  2. group frames by content key; first occurrence is canonical
  3. drop canonical frames no referenced position resolves to
  4. emit survivors in original order, build frame_index_map (raw -> final/-1)
  5. remap every sequence, dropping entries that resolved to -1
  6. normalize per-animation meta (fps clamp, multiplier clamp/pad/truncate)
  7. migrate legacy meta.animationSettings into per-animation meta

Fallback: when animations are declared but none references a frame yet, every
canonical frame survives (and so does the meta of those empty animations).
With no animations declared at all, nothing is referenced and every frame is
dropped.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from models.animation import (
    AnimationMeta,
    AnimationSequence,
    DEFAULT_FPS,
    DEFAULT_MULTIPLIER,
    clamp_fps,
    clamp_multiplier,
)
from models.document import SpriteDocument, coerce_frames
from models.frame import SpriteFrame
from utils.logger import get_category_logger, LogCategory

log = get_category_logger(LogCategory.COMPACTION)

LEGACY_SETTINGS_KEY = "animationSettings"
AUTO_PLAY_META_KEY = "autoPlayAnimation"
MULTIPLIER_EPSILON = 0.0001


@dataclass(frozen=True)
class CompactionResult:
    """
    Compacted document content.

    frame_index_map is excluded from equality: a second pass over a compacted
    document yields the identity map, while content stays equal.
    """
    frames: Tuple[SpriteFrame, ...]
    animations: Dict[str, AnimationSequence]
    animations_meta: Dict[str, AnimationMeta]
    frame_index_map: List[int] = field(compare=False)
    auto_play_animation: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_document(self, base: Optional[SpriteDocument] = None) -> SpriteDocument:
        """Document built from this result; selection/clipboard come from base."""
        base = base or SpriteDocument()
        surviving = {frame.id for frame in self.frames}
        return SpriteDocument(
            frames=self.frames,
            animations=dict(self.animations),
            animations_meta=dict(self.animations_meta),
            selected=tuple(fid for fid in base.selected if fid in surviving),
            clipboard=base.clipboard,
            meta=copy.deepcopy(self.meta),
            auto_play_animation=self.auto_play_animation,
        )


def _as_position(value: Any) -> Optional[int]:
    """Sequence entry as an int position, None when unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value != int(value):
        return None
    return int(value)


def _read_source(data: Any):
    """Split the supported inputs into frames, animations, meta, auto-play, doc meta."""
    if isinstance(data, (SpriteDocument, CompactionResult)):
        return (
            tuple(data.frames),
            dict(data.animations),
            dict(data.animations_meta),
            data.auto_play_animation,
            dict(data.meta or {}),
        )
    if not isinstance(data, Mapping):
        raise TypeError(f"Cannot compact {type(data).__name__}")
    frames = coerce_frames(data.get("frames") or ())
    animations = data.get("animations") or {}
    animations_meta = data.get("animationsMeta", data.get("animations_meta")) or {}
    auto_play = data.get("autoPlayAnimation", data.get("auto_play_animation"))
    return frames, dict(animations), dict(animations_meta), auto_play, dict(data.get("meta") or {})


def _raw_meta_flag(raw: Any, key: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(key)
    return None


def _legacy_multipliers(record: Any) -> List[float]:
    """{index: value} record -> dense list, trailing 1.0 entries trimmed."""
    if not isinstance(record, Mapping):
        return []
    entries = []
    for key, value in record.items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            continue
        if index >= 0:
            entries.append((index, value))
    if not entries:
        return []
    values = [DEFAULT_MULTIPLIER] * (max(index for index, _ in entries) + 1)
    for index, value in entries:
        values[index] = clamp_multiplier(value)
    while values and abs(values[-1] - DEFAULT_MULTIPLIER) < MULTIPLIER_EPSILON:
        values.pop()
    return values


def _migrate_legacy(
    settings: Any,
    base_meta: Dict[str, AnimationMeta],
    valid_names: set,
) -> Dict[str, AnimationMeta]:
    if not isinstance(settings, Mapping):
        return base_meta
    merged = dict(base_meta)

    fps_map = settings.get("fps")
    if isinstance(fps_map, Mapping):
        for name, value in fps_map.items():
            if name not in valid_names:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                continue
            clamped = clamp_fps(value)
            if clamped == DEFAULT_FPS:
                continue
            current = merged.get(name) or AnimationMeta()
            merged[name] = AnimationMeta(current.loop, clamped, current.multipliers)

    multipliers_map = settings.get("multipliers")
    if isinstance(multipliers_map, Mapping):
        for name, record in multipliers_map.items():
            if name not in valid_names:
                continue
            values = _legacy_multipliers(record)
            if not values:
                continue
            current = merged.get(name) or AnimationMeta()
            merged[name] = AnimationMeta(current.loop, current.fps, tuple(values))

    log.debug("Legacy animation settings migrated", animations=len(merged))
    return merged


def compact(data: Any) -> CompactionResult:
    """
    Deduplicate frames, drop unreferenced ones and re-point every sequence.

    Frames that differ only by duration stay distinct, but emitted frames drop
    duration, so a second pass merges them. compact(compact(d)) == compact(d)
    holds only when no two frames differ by duration alone.

    Args:
        data: SpriteDocument, a previous CompactionResult, or a mapping in the
              exchanged JSON shape (frames/animations/animationsMeta/...)

    Returns:
        CompactionResult (input is never modified)
    """
    frames, animations, raw_meta, auto_play, doc_meta = _read_source(data)

    referenced = set()
    for sequence in animations.values():
        if not isinstance(sequence, (list, tuple)):
            continue
        for value in sequence:
            position = _as_position(value)
            if position is not None:
                referenced.add(position)

    keep_all = not referenced and bool(animations)

    canonical_by_raw: Dict[int, int] = {}
    canonical_order: List[int] = []
    key_to_canonical: Dict[Tuple[Any, ...], int] = {}
    for index, frame in enumerate(frames):
        key = frame.content_key()
        if key not in key_to_canonical:
            key_to_canonical[key] = index
            canonical_order.append(index)
        canonical_by_raw[index] = key_to_canonical[key]

    canonical_references = {
        canonical_by_raw[raw] for raw in referenced if raw in canonical_by_raw
    }

    canonical_to_final: Dict[int, int] = {}
    kept: List[SpriteFrame] = []
    for raw in canonical_order:
        if not keep_all and raw not in canonical_references:
            canonical_to_final[raw] = -1
            continue
        canonical_to_final[raw] = len(kept)
        kept.append(frames[raw].with_changes(duration=None))

    frame_index_map = [canonical_to_final[canonical_by_raw[raw]] for raw in range(len(frames))]

    cleaned: Dict[str, AnimationSequence] = {}
    for name, sequence in animations.items():
        if not isinstance(sequence, (list, tuple)):
            cleaned[name] = ()
            continue
        remapped = []
        for value in sequence:
            position = _as_position(value)
            if position is None or not 0 <= position < len(frame_index_map):
                continue
            final = frame_index_map[position]
            if final >= 0:
                remapped.append(final)
        cleaned[name] = tuple(remapped)

    retained = {name for name, sequence in cleaned.items() if sequence or keep_all}

    base_meta: Dict[str, AnimationMeta] = {}
    for name, value in raw_meta.items():
        if name not in retained:
            continue
        base_meta[name] = value if isinstance(value, AnimationMeta) else AnimationMeta.from_dict(value)

    base_meta = _migrate_legacy(doc_meta.get(LEGACY_SETTINGS_KEY), base_meta, retained)

    if not isinstance(auto_play, str):
        auto_play = doc_meta.get(AUTO_PLAY_META_KEY)
        if not isinstance(auto_play, str):
            auto_play = None
    if auto_play is None:
        for name in cleaned:
            if name in retained and _raw_meta_flag(raw_meta.get(name), "autoPlay") is True:
                auto_play = name
                break
    if auto_play is not None and auto_play not in cleaned:
        auto_play = None

    final_meta = {
        name: (base_meta.get(name) or AnimationMeta()).normalized(len(sequence))
        for name, sequence in cleaned.items()
        if name in retained
    }

    meta = {
        key: copy.deepcopy(value)
        for key, value in doc_meta.items()
        if key not in (AUTO_PLAY_META_KEY, LEGACY_SETTINGS_KEY)
    }

    log.debug(
        "Frames compacted",
        frames_in=len(frames),
        frames_out=len(kept),
        animations=len(cleaned),
        keep_all=keep_all,
    )

    return CompactionResult(
        frames=tuple(kept),
        animations=cleaned,
        animations_meta=final_meta,
        frame_index_map=frame_index_map,
        auto_play_animation=auto_play,
        meta=meta,
    )
