"""
Trial Events
Event types published by BetaTrialManager and the per-instance bus that
delivers them.
"""

import queue
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Type

from trial_state import AccessTier

logger = logging.getLogger(__name__)


class TrialEvent:
    """Base class for all trial events."""


@dataclass(frozen=True)
class StateChanged(TrialEvent):
    previous: AccessTier
    next: AccessTier


@dataclass(frozen=True)
class TimeUpdated(TrialEvent):
    remaining_time: float
    total_paused_duration: float


@dataclass(frozen=True)
class TrialExpired(TrialEvent):
    pass


@dataclass(frozen=True)
class CountdownPaused(TrialEvent):
    pass


@dataclass(frozen=True)
class CountdownResumed(TrialEvent):
    remaining_time: float
    total_paused_duration: float


Listener = Callable[[TrialEvent], None]


class TrialEventBus:
    """
    Ordered, synchronous broadcast to zero or more listeners.

    Listeners run on the publishing thread, in subscription order. A listener
    that raises is logged and skipped; the remaining listeners still receive
    the event.
    """

    def __init__(self):
        self._listeners: List[Tuple[Listener, Optional[Type[TrialEvent]]]] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener, event_type: Optional[Type[TrialEvent]] = None) -> Callable[[], None]:
        """
        Register a listener, optionally for a single event type.

        Returns:
            A callable that removes the subscription.
        """
        entry = (listener, event_type)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def subscribe_queue(self, event_type: Optional[Type[TrialEvent]] = None) -> "queue.Queue[TrialEvent]":
        """Deliver events into a queue the host drains at its own pace."""
        events = queue.Queue()
        self.subscribe(events.put, event_type)
        return events

    def publish(self, event: TrialEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener, event_type in listeners:
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                listener(event)
            except Exception:
                logger.exception(f"Trial event listener {listener!r} failed on {event!r}")

    def __len__(self):
        with self._lock:
            return len(self._listeners)
