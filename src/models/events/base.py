from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.events.types import EventType
from models.events.sources import EventSource

_METADATA = ("type", "source", "timestamp")


@dataclass(init=False)
class Event:
    """
    Base event.

    Subclasses declare their payload fields and call super().__init__ with
    their fixed type and source; timestamp is wall-clock seconds.
    """

    type: EventType
    source: Optional[EventSource]
    timestamp: float = field(default_factory=time.time)

    def __init__(self, *, type: EventType, source: Optional[EventSource] = None):
        self.type = type
        self.source = source
        self.timestamp = time.time()

    @property
    def name(self) -> str:
        return self.type.name

    def to_data(self) -> Dict[str, Any]:
        """Payload fields only (type, source and timestamp left out)."""
        return {k: v for k, v in vars(self).items() if k not in _METADATA}
