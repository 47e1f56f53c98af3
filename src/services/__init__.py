"""Services layer

Only the event bus is re-exported here: the editor services import the
engines, which themselves depend on the bus.
"""

from .event_bus import EventBus

__all__ = [
    "EventBus",
]
