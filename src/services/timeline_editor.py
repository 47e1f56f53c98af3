"""
Timeline editing - entry-level edits of one animation sequence

Operates on sequence positions (not frames). Each edit is a single
DocumentEngine transform, so one edit = one undo step. When an animation
carries multipliers, they move with their entries: inserted entries get 1.0,
removed entries take their multiplier with them.
"""

from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from engine.document_engine import DocumentEngine
from models.animation import AnimationMeta, DEFAULT_MULTIPLIER, clamp_multiplier
from models.document import SpriteDocument
from models.enums import EditOperation, LogCategory
from utils.logger import get_category_logger

log = get_category_logger(LogCategory.EDITOR)

SequenceEdit = Callable[[List[int], Optional[List[float]]], Optional[Tuple[List[int], Optional[List[float]]]]]


def _fit(multipliers: Optional[List[float]], length: int) -> Optional[List[float]]:
    if multipliers is None:
        return None
    fitted = list(multipliers[:length])
    fitted.extend([DEFAULT_MULTIPLIER] * (length - len(fitted)))
    return fitted


class TimelineEditor:
    """
    Per-session timeline state: a selected entry index and a sequence clipboard.

    Example:
        timeline = TimelineEditor(engine)
        timeline.select_index(2)
        timeline.copy_selection("walk")
        timeline.paste("walk")          # inserted after entry 2
        timeline.set_multiplier("walk", 3, 2.0)
    """

    def __init__(self, engine: DocumentEngine):
        self._engine = engine
        self.selected_index: Optional[int] = None
        self.clipboard: Optional[Tuple[int, ...]] = None

    @property
    def has_clipboard(self) -> bool:
        return bool(self.clipboard)

    def sequence(self, animation: str) -> Tuple[int, ...]:
        return tuple(self._engine.document.animations.get(animation, ()))

    def select_index(self, index: Optional[int], animation: Optional[str] = None) -> None:
        """Select an entry (None clears); out-of-range indexes are ignored when animation is given."""
        if index is not None and animation is not None:
            if not 0 <= index < len(self.sequence(animation)):
                return
        self.selected_index = index

    def clear_clipboard(self) -> None:
        self.clipboard = None

    def copy_selection(self, animation: str, index: Optional[int] = None) -> Optional[Tuple[int, ...]]:
        """Copy the frame position of the selected (or given) entry."""
        position = self.selected_index if index is None else index
        sequence = self.sequence(animation)
        if position is None or not 0 <= position < len(sequence):
            return None
        self.clipboard = (sequence[position],)
        return self.clipboard

    def paste(self, animation: str, index: Optional[int] = None) -> bool:
        """Insert the clipboard after the selected entry (or at index / the end)."""
        if not self.clipboard:
            return False
        payload = list(self.clipboard)
        inserted_at: List[int] = []

        def edit(sequence, multipliers):
            if index is not None:
                target = max(0, min(len(sequence), index))
            elif self.selected_index is not None:
                target = min(len(sequence), self.selected_index + 1)
            else:
                target = len(sequence)
            multipliers = _fit(multipliers, len(sequence))
            sequence[target:target] = payload
            if multipliers is not None:
                multipliers[target:target] = [DEFAULT_MULTIPLIER] * len(payload)
            inserted_at.append(target)
            return sequence, multipliers

        if not self._edit(animation, edit):
            return False
        self.selected_index = inserted_at[0]
        return True

    def insert_entry(self, animation: str, frame_index: int, position: Optional[int] = None) -> bool:
        def edit(sequence, multipliers):
            if not 0 <= frame_index < len(self._engine.document.frames):
                return None
            target = len(sequence) if position is None else max(0, min(len(sequence), position))
            multipliers = _fit(multipliers, len(sequence))
            sequence.insert(target, frame_index)
            if multipliers is not None:
                multipliers.insert(target, DEFAULT_MULTIPLIER)
            return sequence, multipliers

        return self._edit(animation, edit)

    def remove_entry(self, animation: str, position: Optional[int] = None) -> bool:
        """Remove an entry (default: the selected one); the selection is clamped."""
        target = self.selected_index if position is None else position

        def edit(sequence, multipliers):
            if target is None or not 0 <= target < len(sequence):
                return None
            multipliers = _fit(multipliers, len(sequence))
            del sequence[target]
            if multipliers is not None:
                del multipliers[target]
            return sequence, multipliers

        if not self._edit(animation, edit):
            return False
        if self.selected_index is not None:
            remaining = len(self.sequence(animation))
            self.selected_index = max(0, min(remaining - 1, self.selected_index)) if remaining else None
        return True

    def move_entry(self, animation: str, from_position: int, to_position: int) -> bool:
        def edit(sequence, multipliers):
            if from_position == to_position:
                return None
            if not 0 <= from_position < len(sequence) or not 0 <= to_position < len(sequence):
                return None
            multipliers = _fit(multipliers, len(sequence))
            sequence.insert(to_position, sequence.pop(from_position))
            if multipliers is not None:
                multipliers.insert(to_position, multipliers.pop(from_position))
            return sequence, multipliers

        if not self._edit(animation, edit):
            return False
        if self.selected_index == from_position:
            self.selected_index = to_position
        return True

    def set_multiplier(self, animation: str, position: int, value: float) -> bool:
        """Set one entry's multiplier (clamped to the 0.1 floor)."""
        def edit(sequence, multipliers):
            if not 0 <= position < len(sequence):
                return None
            multipliers = _fit(multipliers, len(sequence)) or [DEFAULT_MULTIPLIER] * len(sequence)
            safe = clamp_multiplier(value)
            if multipliers[position] == safe:
                return None
            multipliers[position] = safe
            return sequence, multipliers

        return self._edit(animation, edit)

    def multiplier_at(self, animation: str, position: int) -> float:
        return self._engine.document.meta_for(animation).multiplier_at(position)

    def _edit(self, animation: str, edit: SequenceEdit) -> bool:
        def transform(doc: SpriteDocument) -> SpriteDocument:
            if animation not in doc.animations:
                return doc
            meta = doc.animations_meta.get(animation)
            multipliers = list(meta.multipliers) if meta is not None and meta.multipliers is not None else None
            result = edit(list(doc.animations[animation]), multipliers)
            if result is None:
                return doc
            sequence, multipliers = result
            animations = dict(doc.animations)
            animations[animation] = tuple(sequence)
            animations_meta = dict(doc.animations_meta)
            if multipliers is not None:
                animations_meta[animation] = replace(meta or AnimationMeta(), multipliers=tuple(multipliers))
            return doc.evolve(animations=animations, animations_meta=animations_meta)

        before = self._engine.document
        changed = self._engine.apply(transform, operation=EditOperation.SET_ANIMATIONS) is not before
        if changed:
            log.debug("Timeline edited", animation=animation, length=len(self.sequence(animation)))
        return changed
