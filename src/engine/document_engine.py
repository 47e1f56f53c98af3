"""
DocumentEngine - copy-on-write sprite document with undo/redo

Every public operation is a transform passed to apply():

    transform(document) -> new document | same document | None

Returning the same reference (or None) means "nothing happened": no history
entry, no event. Otherwise the previous content is pushed as a Snapshot onto
the bounded history stack and the redo stack is cleared.

Sequences are positions into the frame array, so structural operations
(insert, remove, paste) repair every sequence in the same transform.

Events (via EventBus):
  DOCUMENT_CHANGED   after every accepted transform, undo and redo
  DOCUMENT_IMPORTED  after import_json replaced the content
  HISTORY_CHANGED    when can_undo/can_redo flips
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from codec.base import SpriteCodec, supports_import
from codec.default_codec import DefaultSpriteCodec
from models.animation import AnimationMeta, AnimationSequence
from models.config import EditorConfig
from models.document import (
    Snapshot,
    SpriteDocument,
    apply_snapshot,
    clone_animations,
    clone_animations_meta,
    coerce_frame,
    snapshot_from_document,
    sync_animations_meta,
)
from models.enums import EditOperation, LogCategory
from models.events import DocumentChangedEvent, DocumentImportedEvent, HistoryChangedEvent
from models.frame import SpriteFrame
from services.event_bus import EventBus
from utils.errors import CodecCapabilityError
from utils.ids import create_frame_id
from utils.logger import get_category_logger

log = get_category_logger(LogCategory.EDITOR)

DEFAULT_HISTORY_LIMIT = 50

Transform = Callable[[SpriteDocument], Optional[SpriteDocument]]


def ensure_history_limit(value: Any) -> int:
    """Positive finite number floored to an int; anything else -> 50."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_HISTORY_LIMIT
    if not math.isfinite(value) or value < 1:
        return DEFAULT_HISTORY_LIMIT
    return int(math.floor(value))


def shift_animation_indexes(
    animations: Mapping[str, AnimationSequence],
    start_index: int,
    delta: int,
) -> Dict[str, AnimationSequence]:
    """Offset every entry >= start_index by delta."""
    if not delta:
        return dict(animations)
    return {
        name: tuple(value + delta if value >= start_index else value for value in sequence)
        for name, sequence in animations.items()
    }


def remove_index_from_animations(
    animations: Mapping[str, AnimationSequence],
    removed_index: int,
) -> Dict[str, AnimationSequence]:
    """Strip removed_index from every sequence and close the gap; emptied sequences stay."""
    return {
        name: tuple(
            value - 1 if value > removed_index else value
            for value in sequence
            if value != removed_index
        )
        for name, sequence in animations.items()
    }


def _clamp_index(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


class DocumentEngine:
    """
    Owns one SpriteDocument plus its history/future stacks.

    Example:
        engine = DocumentEngine()
        frame = engine.add_frame({"x": 0, "y": 0, "w": 32, "h": 32})
        engine.set_animations({"idle": [0]})
        engine.undo()
    """

    def __init__(
        self,
        initial: Optional[Union[SpriteDocument, Mapping[str, Any]]] = None,
        history_limit: Any = DEFAULT_HISTORY_LIMIT,
        track_selection_in_history: bool = False,
        codec: Optional[SpriteCodec] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._document = SpriteDocument.from_state(initial)
        self._history: List[Snapshot] = []
        self._future: List[Snapshot] = []
        self.history_limit = ensure_history_limit(history_limit)
        self.track_selection_in_history = bool(track_selection_in_history)
        self._codec = codec or DefaultSpriteCodec()
        self._bus = event_bus or EventBus()

        log.debug(
            "DocumentEngine initialized",
            frames=len(self._document.frames),
            animations=len(self._document.animations),
            history_limit=self.history_limit,
        )

    @classmethod
    def from_config(
        cls,
        config: EditorConfig,
        initial: Optional[Union[SpriteDocument, Mapping[str, Any]]] = None,
        codec: Optional[SpriteCodec] = None,
        event_bus: Optional[EventBus] = None,
    ) -> "DocumentEngine":
        """Build an engine from the editor section of AppConfig."""
        return cls(
            initial=initial,
            history_limit=config.history_limit,
            track_selection_in_history=config.track_selection_in_history,
            codec=codec,
            event_bus=event_bus,
        )

    # ============================================================
    # State access
    # ============================================================

    @property
    def document(self) -> SpriteDocument:
        return self._document

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def codec(self) -> SpriteCodec:
        return self._codec

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def history_size(self) -> int:
        return len(self._history)

    @property
    def future_size(self) -> int:
        return len(self._future)

    # ============================================================
    # Core
    # ============================================================

    def apply(
        self,
        transform: Transform,
        record_history: bool = True,
        operation: EditOperation = EditOperation.CUSTOM,
    ) -> SpriteDocument:
        """
        Run a transform against the current document.

        Args:
            transform: Pure function document -> document (same ref/None = no-op)
            record_history: Push the previous content onto the undo stack
            operation: Tag carried by the DOCUMENT_CHANGED event

        Returns:
            The resulting (possibly unchanged) document
        """
        previous = self._document
        result = transform(previous)
        if result is None or result is previous:
            return previous

        had_undo, had_redo = self.can_undo, self.can_redo
        if record_history:
            self._history.append(snapshot_from_document(previous))
            if len(self._history) > self.history_limit:
                del self._history[: len(self._history) - self.history_limit]
            self._future.clear()

        self._document = result
        self._publish_change(operation, had_undo, had_redo)
        return result

    # ============================================================
    # Frames
    # ============================================================

    def add_frame(self, frame: Union[SpriteFrame, Mapping[str, Any]], index: Optional[int] = None) -> SpriteFrame:
        """Insert a frame (generated id if missing), shift sequences, select it."""
        new_frame = coerce_frame(frame)

        def transform(doc: SpriteDocument) -> SpriteDocument:
            count = len(doc.frames)
            target = count if index is None else _clamp_index(index, 0, count)
            frames = doc.frames[:target] + (new_frame,) + doc.frames[target:]
            animations = shift_animation_indexes(doc.animations, target, 1)
            return doc.evolve(
                frames=frames,
                animations=animations,
                animations_meta=sync_animations_meta(animations, doc.animations_meta),
                selected=(new_frame.id,),
            )

        self.apply(transform, operation=EditOperation.INSERT_FRAME)
        return new_frame

    insert_frame = add_frame

    def update_frame(
        self,
        frame_id: str,
        patch: Optional[Mapping[str, Any]] = None,
        **fields,
    ) -> Optional[SpriteFrame]:
        """Merge fields into one frame; returns the updated frame or None."""
        patch = {**(patch or {}), **fields}
        updated: List[SpriteFrame] = []

        def transform(doc: SpriteDocument) -> SpriteDocument:
            index = doc.index_of(frame_id)
            if index < 0:
                return doc
            frame = doc.frames[index].with_changes(**patch)
            if frame == doc.frames[index]:
                return doc
            updated.append(frame)
            return doc.evolve(frames=doc.frames[:index] + (frame,) + doc.frames[index + 1:])

        self.apply(transform, operation=EditOperation.UPDATE_FRAME)
        if updated:
            return updated[0]
        return self._document.get_frame(frame_id)

    def remove_frames(self, ids: Iterable[str]) -> None:
        """Remove frames by id; every sequence is repaired, selection filtered."""
        ids = list(ids)
        if not ids:
            return

        def transform(doc: SpriteDocument) -> SpriteDocument:
            indexes = sorted({doc.index_of(fid) for fid in ids} - {-1}, reverse=True)
            if not indexes:
                return doc
            frames = list(doc.frames)
            animations = dict(doc.animations)
            for index in indexes:
                del frames[index]
                animations = remove_index_from_animations(animations, index)
            removed = set(ids)
            return doc.evolve(
                frames=tuple(frames),
                animations=animations,
                animations_meta=sync_animations_meta(animations, doc.animations_meta),
                selected=tuple(fid for fid in doc.selected if fid not in removed),
            )

        self.apply(transform, operation=EditOperation.REMOVE_FRAMES)
        log.debug("Frames removed", requested=len(ids), remaining=len(self._document.frames))

    def remove_frame(self, frame_id: str) -> None:
        self.remove_frames([frame_id])

    def reorder_frames(self, from_index: int, to_index: int) -> None:
        """
        Move a frame within the array.

        Sequences are NOT repaired: after a move every sequence entry points at
        whatever frame now occupies its position.
        """
        def transform(doc: SpriteDocument) -> SpriteDocument:
            count = len(doc.frames)
            if from_index == to_index or not count or not 0 <= from_index < count:
                return doc
            target = _clamp_index(to_index, 0, count - 1)
            frames = list(doc.frames)
            moved = frames.pop(from_index)
            frames.insert(target, moved)
            if tuple(frames) == doc.frames:
                return doc
            return doc.evolve(frames=tuple(frames))

        self.apply(transform, operation=EditOperation.REORDER_FRAMES)

    # ============================================================
    # Selection
    # ============================================================

    def _apply_selection(self, build: Callable[[SpriteDocument], Sequence[str]]) -> None:
        def transform(doc: SpriteDocument) -> SpriteDocument:
            allowed = set(doc.frame_ids())
            selected = tuple(dict.fromkeys(fid for fid in build(doc) if fid in allowed))
            if selected == doc.selected:
                return doc
            return doc.evolve(selected=selected)

        self.apply(
            transform,
            record_history=self.track_selection_in_history,
            operation=EditOperation.SELECTION,
        )

    def set_selection(self, ids: Iterable[str], append: bool = False) -> None:
        ids = list(ids)
        self._apply_selection(lambda doc: list(doc.selected) + ids if append else ids)

    def select_frame(self, frame_id: str, additive: bool = False, toggle: bool = False) -> None:
        def build(doc: SpriteDocument) -> Sequence[str]:
            already = frame_id in doc.selected
            if toggle:
                if already:
                    return [fid for fid in doc.selected if fid != frame_id]
                return list(doc.selected) + [frame_id]
            if additive:
                return list(doc.selected) if already else list(doc.selected) + [frame_id]
            return [frame_id]

        self._apply_selection(build)

    def select_all(self) -> None:
        self._apply_selection(lambda doc: doc.frame_ids())

    def clear_selection(self) -> None:
        self._apply_selection(lambda doc: ())

    # ============================================================
    # Clipboard
    # ============================================================

    def copy_selected(self) -> None:
        """Copy selected frames (by value, selection order) into the clipboard."""
        def transform(doc: SpriteDocument) -> SpriteDocument:
            frames = tuple(
                frame for frame in (doc.get_frame(fid) for fid in doc.selected)
                if frame is not None
            )
            if not frames:
                return doc
            return doc.evolve(clipboard=frames)

        self.apply(transform, record_history=False, operation=EditOperation.CLIPBOARD)

    def cut_selected(self) -> None:
        selected = list(self._document.selected)
        self.copy_selected()
        self.remove_frames(selected)

    def paste_clipboard(self, index: Optional[int] = None) -> List[SpriteFrame]:
        """
        Insert clipboard clones (fresh ids) after the last selected frame, at
        the end, or at an explicit (clamped) index. The clones become the
        selection.
        """
        pasted: List[SpriteFrame] = []

        def transform(doc: SpriteDocument) -> SpriteDocument:
            if not doc.clipboard:
                return doc
            count = len(doc.frames)
            if index is not None:
                target = _clamp_index(index, 0, count)
            else:
                positions = [doc.index_of(fid) for fid in doc.selected]
                positions = [p for p in positions if p >= 0]
                target = max(positions) + 1 if positions else count
            clones = tuple(
                SpriteFrame(
                    id=create_frame_id(),
                    x=frame.x,
                    y=frame.y,
                    w=frame.w,
                    h=frame.h,
                    duration=frame.duration,
                    image_ref=frame.image_ref,
                )
                for frame in doc.clipboard
            )
            pasted.extend(clones)
            animations = shift_animation_indexes(doc.animations, target, len(clones))
            return doc.evolve(
                frames=doc.frames[:target] + clones + doc.frames[target:],
                animations=animations,
                animations_meta=sync_animations_meta(animations, doc.animations_meta),
                selected=tuple(clone.id for clone in clones),
            )

        self.apply(transform, operation=EditOperation.PASTE)
        return pasted

    # ============================================================
    # History
    # ============================================================

    def undo(self) -> bool:
        """Restore the latest history snapshot; clipboard is untouched."""
        if not self._history:
            return False
        had_undo, had_redo = self.can_undo, self.can_redo
        snapshot = self._history.pop()
        self._future.insert(0, snapshot_from_document(self._document))
        self._document = apply_snapshot(self._document, snapshot)
        self._publish_change(EditOperation.UNDO, had_undo, had_redo)
        return True

    def redo(self) -> bool:
        if not self._future:
            return False
        had_undo, had_redo = self.can_undo, self.can_redo
        snapshot = self._future.pop(0)
        self._history.append(snapshot_from_document(self._document))
        self._document = apply_snapshot(self._document, snapshot)
        self._publish_change(EditOperation.REDO, had_undo, had_redo)
        return True

    # ============================================================
    # Import / export
    # ============================================================

    def export_json(self, codec=None) -> Any:
        active = codec or self.codec
        return active.to_json(self._document)

    def import_json(self, payload: Any, codec=None) -> bool:
        """
        Replace the document content with a decoded payload.

        Raises:
            CodecCapabilityError: The codec has no from_json

        Returns:
            False when the codec rejected the payload (document unchanged)
        """
        active = codec or self.codec
        if not supports_import(active):
            raise CodecCapabilityError(getattr(active, "name", type(active).__name__))

        snapshot = active.from_json(payload)
        if snapshot is None:
            log.warn("Import skipped, payload rejected by codec", codec=getattr(active, "name", "?"))
            return False

        if isinstance(snapshot, Snapshot):
            state: Mapping[str, Any] = {
                "frames": snapshot.frames,
                "animations": snapshot.animations,
                "animations_meta": snapshot.animations_meta,
                "selected": snapshot.selected,
                "meta": snapshot.meta,
                "auto_play_animation": snapshot.auto_play_animation,
            }
        else:
            state = dict(snapshot)
        imported = SpriteDocument.from_state({**state, "clipboard": ()})

        had_undo, had_redo = self.can_undo, self.can_redo
        self._history.clear()
        self._future.clear()
        self._document = imported
        log.info(
            "Document imported",
            frames=len(imported.frames),
            animations=len(imported.animations),
        )
        self._publish_change(EditOperation.IMPORT, had_undo, had_redo)
        self._bus.publish(DocumentImportedEvent(imported))
        return True

    # ============================================================
    # Animations and meta
    # ============================================================

    def set_animations(self, animations: Mapping[str, Sequence[int]]) -> None:
        def transform(doc: SpriteDocument) -> SpriteDocument:
            count = len(doc.frames)
            cloned = {
                name: tuple(v for v in sequence if 0 <= v < count)
                for name, sequence in clone_animations(animations).items()
            }
            if cloned == doc.animations:
                return doc
            auto_play = doc.auto_play_animation if doc.auto_play_animation in cloned else None
            return doc.evolve(
                animations=cloned,
                animations_meta=sync_animations_meta(cloned, doc.animations_meta),
                auto_play_animation=auto_play,
            )

        self.apply(transform, operation=EditOperation.SET_ANIMATIONS)

    def set_animations_meta(self, meta: Optional[Mapping[str, Any]]) -> None:
        def transform(doc: SpriteDocument) -> SpriteDocument:
            cloned = sync_animations_meta(doc.animations, clone_animations_meta(meta))
            if cloned == doc.animations_meta:
                return doc
            return doc.evolve(animations_meta=cloned)

        self.apply(transform, operation=EditOperation.SET_ANIMATIONS_META)

    def set_animation_meta(self, name: str, meta: Optional[AnimationMeta]) -> None:
        """Replace (or with None, drop) the meta of one animation."""
        current = dict(self._document.animations_meta)
        if meta is None:
            current.pop(name, None)
        else:
            current[name] = meta
        self.set_animations_meta(current)

    def update_meta(self, patch: Mapping[str, Any]) -> None:
        """Shallow merge into meta; a None value deletes the key."""
        def transform(doc: SpriteDocument) -> SpriteDocument:
            merged = dict(doc.meta)
            for key, value in patch.items():
                if value is None:
                    merged.pop(key, None)
                else:
                    merged[key] = value
            if merged == doc.meta:
                return doc
            return doc.evolve(meta=merged)

        self.apply(transform, operation=EditOperation.UPDATE_META)

    def set_auto_play_animation(self, name: Optional[str]) -> None:
        def transform(doc: SpriteDocument) -> SpriteDocument:
            value = name if name in doc.animations else None
            if value == doc.auto_play_animation:
                return doc
            return doc.evolve(auto_play_animation=value)

        self.apply(transform, operation=EditOperation.UPDATE_META)

    def reset(self, state: Optional[Union[SpriteDocument, Mapping[str, Any]]] = None) -> None:
        """Start over from state (or empty), dropping both history stacks."""
        had_undo, had_redo = self.can_undo, self.can_redo
        self._document = SpriteDocument.from_state(state)
        self._history.clear()
        self._future.clear()
        self._publish_change(EditOperation.RESET, had_undo, had_redo)

    # ============================================================
    # Events
    # ============================================================

    def _publish_change(self, operation: EditOperation, had_undo: bool, had_redo: bool) -> None:
        log.debug("Document changed", operation=operation.name, frames=len(self._document.frames))
        self._bus.publish(DocumentChangedEvent(self._document, operation))
        if (had_undo, had_redo) != (self.can_undo, self.can_redo):
            self._bus.publish(HistoryChangedEvent(self.can_undo, self.can_redo))
