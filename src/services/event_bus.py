"""
Event Bus - synchronous pub/sub between the engines and their observers

    unsubscribe = bus.subscribe(EventType.FRAME_CHANGED, on_frame, priority=10)
    bus.publish(FrameChangedEvent("walk", 3))
    unsubscribe()

Delivery is synchronous: publish() returns after every handler ran, so
handlers see events in emission order. Handlers with a higher priority run
first; equal priorities run in subscription order.
"""

import itertools
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from models.events import Event, EventType
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.EVENT)

Handler = Callable[[Event], None]
EventFilter = Callable[[Event], bool]
Middleware = Callable[[Event], Optional[Event]]

_sequence = itertools.count()


@dataclass(eq=False)
class Subscription:
    """One handler registration"""
    event_type: EventType
    handler: Handler
    priority: int = 0
    filter_fn: Optional[EventFilter] = None
    order: int = field(default_factory=lambda: next(_sequence))

    @property
    def sort_key(self):
        return (-self.priority, self.order)

    def accepts(self, event: Event) -> bool:
        return self.filter_fn is None or bool(self.filter_fn(event))


def _name(fn) -> str:
    return getattr(fn, "__name__", repr(fn))


class EventBus:
    """
    Central event bus

    Features:
    - Priority-ordered delivery
    - Per-handler filters
    - Middleware chain (may rewrite or drop an event)
    - Idempotent unsubscribe callables
    - A failing handler is logged and does not stop delivery
    - Bounded history of delivered events
    """

    def __init__(self, history_limit: int = 100):
        self._subscriptions: Dict[EventType, List[Subscription]] = {}
        self._middleware: List[Middleware] = []
        self._history: Deque[Event] = deque(maxlen=max(1, int(history_limit)))

    def subscribe(
        self,
        event_type: EventType,
        handler: Handler,
        priority: int = 0,
        filter_fn: Optional[EventFilter] = None
    ) -> Callable[[], None]:
        """
        Register handler for event_type.

        Args:
            event_type: Which events to listen for
            handler: Called with the event
            priority: Higher runs first (default 0)
            filter_fn: Optional predicate; False skips this handler

        Returns:
            Callable removing this registration (safe to call twice)
        """
        subscription = Subscription(event_type, handler, priority, filter_fn)
        entries = self._subscriptions.setdefault(event_type, [])
        entries.append(subscription)
        entries.sort(key=lambda s: s.sort_key)

        log.debug("Handler subscribed", event_type=event_type.name, handler=_name(handler), priority=priority)

        def unsubscribe() -> None:
            current = self._subscriptions.get(event_type, [])
            if subscription in current:
                current.remove(subscription)
                log.debug("Handler unsubscribed", event_type=event_type.name, handler=_name(handler))

        return unsubscribe

    def add_middleware(self, middleware: Middleware) -> None:
        """Append to the middleware chain (runs in registration order)."""
        self._middleware.append(middleware)
        log.debug("Middleware registered", middleware=_name(middleware))

    def publish(self, event: Event) -> int:
        """
        Deliver event to its subscribers.

        Returns:
            Number of handlers invoked (0 when middleware dropped the event)
        """
        for middleware in self._middleware:
            event = middleware(event)
            if event is None:
                return 0

        self._history.append(event)

        # snapshot: handlers may unsubscribe while being notified
        delivered = 0
        for subscription in list(self._subscriptions.get(event.type, ())):
            if not subscription.accepts(event):
                continue
            delivered += 1
            try:
                subscription.handler(event)
            except Exception as e:
                log.error(
                    f"Event handler failed: {_name(subscription.handler)} for {event.name}",
                    exception=e
                )
        return delivered

    def handler_count(self, event_type: Optional[EventType] = None) -> int:
        """Registrations for one event type, or for all types."""
        if event_type is not None:
            return len(self._subscriptions.get(event_type, ()))
        return sum(len(entries) for entries in self._subscriptions.values())

    def get_event_history(self, limit: int = 10) -> List[Event]:
        """Most recent events, newest last"""
        return list(self._history)[-limit:]

    def clear_history(self) -> None:
        self._history.clear()
