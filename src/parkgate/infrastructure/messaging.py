# File: src/parkgate/infrastructure/messaging.py
"""
In-process messaging for facility domain events

Implements publish/subscribe within one process so side effects (receipt
archiving, notifications, metrics) stay out of the facility core. Handlers
run synchronously on the publishing thread; a failing handler is logged and
does not affect the other handlers or the publisher.
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, List
import logging

from ..domain.models import DomainEvent, EventType


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""

    def can_handle(self, event: DomainEvent) -> bool:
        return True


class RecordingEventHandler(EventHandler):
    """Keeps every handled event in memory (for testing and diagnostics)"""

    def __init__(self):
        self._lock = Lock()
        self._events: List[DomainEvent] = []

    def handle(self, event: DomainEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[DomainEvent]:
        with self._lock:
            return list(self._events)


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """Thread-safe in-memory event bus keyed by event type"""

    def __init__(self):
        self._subscribers: Dict[EventType, List[EventHandler]] = {}
        self._lock = Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type.value}")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                self._logger.debug(f"Unsubscribed {handler.__class__.__name__} from {event_type.value}")
                return True
            return False

    def publish(self, event: DomainEvent) -> int:
        """
        Deliver an event to its subscribers
        Returns: number of handlers that handled it without error
        """
        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        self._logger.debug(f"Publishing event: {event.event_type.value} (ID: {event.event_id})")

        delivered = 0
        for handler in handlers:
            if not handler.can_handle(event):
                continue
            try:
                handler.handle(event)
                delivered += 1
            except Exception as e:
                self._logger.error(
                    f"Error handling event {event.event_type.value} with "
                    f"{handler.__class__.__name__}: {e}"
                )
        return delivered

    def clear_subscribers(self) -> None:
        with self._lock:
            self._subscribers.clear()
