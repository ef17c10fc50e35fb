# grammar_detector/core/events/event_emitter.py

"""Listener registration and dispatch for detector notifications"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Union
import structlog

logger = structlog.get_logger()


class DetectorEvent(str, Enum):
    """Notifications emitted by the recognition session"""
    START = "start"  # payload: None
    END = "end"  # payload: None
    ERROR = "error"  # payload: EngineErrorEvent
    SENTENCE = "sentence"  # payload: Sentence
    MATCH = "match"  # payload: Sentence


Handler = Callable[[Any], None]
EventName = Union[DetectorEvent, str]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by on(), pass it to off() to unsubscribe"""
    event: DetectorEvent
    handler: Handler
    id: int


class EventEmitter:
    """
    Observer registry.

    Handlers run in registration order. A failing handler is logged and
    does not stop the remaining handlers.
    """

    def __init__(self):
        self._listeners: Dict[DetectorEvent, List[Subscription]] = {e: [] for e in DetectorEvent}
        self._ids = itertools.count(1)

    def on(self, event: EventName, handler: Handler) -> Subscription:
        """Register handler for event, returns Subscription."""
        event = DetectorEvent(event)
        subscription = Subscription(event=event, handler=handler, id=next(self._ids))
        self._listeners[event].append(subscription)
        return subscription

    def off(self, subscription: Subscription) -> bool:
        """Remove subscription. Returns False when it was not registered."""
        listeners = self._listeners[subscription.event]
        if subscription in listeners:
            listeners.remove(subscription)
            return True
        return False

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners[DetectorEvent(event)])

    def notify(self, event: EventName, payload: Any = None) -> None:
        """Dispatch payload to every handler of event."""
        event = DetectorEvent(event)
        # Copy - handler may unsubscribe during dispatch
        for subscription in list(self._listeners[event]):
            try:
                subscription.handler(payload)
            except Exception as e:
                logger.error(
                    "listener_failed",
                    event_name=event.value,
                    subscription_id=subscription.id,
                    error=str(e),
                    exc_info=True
                )
