"""
Preview service - keeps a PlaybackScheduler in sync with a DocumentEngine

Every DOCUMENT_CHANGED / DOCUMENT_IMPORTED event swaps the new document value
into the scheduler, which keeps playing against the previous value until then.
"""

from typing import Callable, List, Optional

from engine.document_engine import DocumentEngine
from engine.playback_scheduler import PlaybackScheduler
from models.enums import LogCategory, PlaybackDirection
from models.events import DocumentChangedEvent, DocumentImportedEvent, EventType
from utils.logger import get_category_logger

log = get_category_logger(LogCategory.PLAYBACK)


class PreviewService:
    """
    Playback controls for an editing surface.

    Example:
        preview = PreviewService(engine, PlaybackScheduler(engine.document, clock))
        preview.play("walk")
        preview.seek_frame(3)
        preview.dispose()
    """

    def __init__(self, engine: DocumentEngine, scheduler: PlaybackScheduler):
        self.engine = engine
        self.scheduler = scheduler
        self._unsubscribers: List[Callable[[], None]] = [
            engine.event_bus.subscribe(EventType.DOCUMENT_CHANGED, self._on_document),
            engine.event_bus.subscribe(EventType.DOCUMENT_IMPORTED, self._on_document),
        ]
        if scheduler.document is not engine.document:
            scheduler.set_document(engine.document)

    # ===== State =====

    @property
    def is_playing(self) -> bool:
        return self.scheduler.playing

    @property
    def animation_name(self) -> Optional[str]:
        return self.scheduler.animation_name

    @property
    def frame_index(self) -> int:
        return self.scheduler.frame_index

    @property
    def cursor(self) -> Optional[int]:
        """Timeline cursor, None when there is no sequence."""
        return self.scheduler.cursor if self.scheduler.sequence else None

    @property
    def direction(self) -> PlaybackDirection:
        return self.scheduler.direction

    # ===== Controls =====

    def play(
        self,
        name: Optional[str] = None,
        from_cursor: Optional[int] = None,
        direction: Optional[PlaybackDirection] = None,
    ) -> None:
        self.scheduler.play(name, from_cursor=from_cursor, direction=direction)

    def play_forward(self, name: Optional[str] = None) -> None:
        self.play(name, direction=PlaybackDirection.FORWARD)

    def play_reverse(self, name: Optional[str] = None) -> None:
        self.play(name, direction=PlaybackDirection.REVERSE)

    def pause(self) -> None:
        self.scheduler.pause()

    def stop(self) -> None:
        self.scheduler.stop()

    def toggle_playback(self) -> None:
        if self.scheduler.playing:
            self.scheduler.pause()
        else:
            self.scheduler.play()

    def seek_frame(
        self,
        frame_index: int,
        cursor: Optional[int] = None,
        animation: Optional[str] = None,
    ) -> None:
        """
        Show a frame: by timeline cursor when given, otherwise the first entry
        of the active sequence showing frame_index.
        """
        if animation is not None:
            self.scheduler.set_animation(animation)
        if cursor is not None:
            self.scheduler.set_cursor(cursor)
        else:
            self.scheduler.seek(frame_index)

    def set_speed_scale(self, speed_scale: float) -> None:
        self.scheduler.set_speed_scale(speed_scale)

    def dispose(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.scheduler.dispose()

    # ===== Event handlers =====

    def _on_document(self, event) -> None:
        if isinstance(event, (DocumentChangedEvent, DocumentImportedEvent)):
            self.scheduler.set_document(event.document)
