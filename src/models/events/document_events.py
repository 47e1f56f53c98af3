from dataclasses import dataclass

from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource
from models.enums import EditOperation
from models.document import SpriteDocument


@dataclass(init=False)
class DocumentChangedEvent(Event):
    document: SpriteDocument
    operation: EditOperation

    def __init__(self, document: SpriteDocument, operation: EditOperation):
        super().__init__(
            type=EventType.DOCUMENT_CHANGED,
            source=EventSource.DOCUMENT_ENGINE,
        )
        self.document = document
        self.operation = operation


@dataclass(init=False)
class DocumentImportedEvent(Event):
    document: SpriteDocument

    def __init__(self, document: SpriteDocument):
        super().__init__(
            type=EventType.DOCUMENT_IMPORTED,
            source=EventSource.DOCUMENT_ENGINE,
        )
        self.document = document


@dataclass(init=False)
class HistoryChangedEvent(Event):
    can_undo: bool
    can_redo: bool

    def __init__(self, can_undo: bool, can_redo: bool):
        super().__init__(
            type=EventType.HISTORY_CHANGED,
            source=EventSource.DOCUMENT_ENGINE,
        )
        self.can_undo = can_undo
        self.can_redo = can_redo
