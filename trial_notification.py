import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from asyncio_manager import AsyncioEventLoopManager, asyncio_manager
from localization import LanguageManager
from notification_manager import send_safe_notification, show_system_notification_fallback
from time_format import format_remaining_time
from trial_events import StateChanged, TimeUpdated, TrialEvent, TrialEventBus, TrialExpired
from trial_state import AccessTier

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]


class TrialNotifier:
    """
    Turns trial events into desktop notifications.

    Sends one notification when the trial expires, one when beta access is
    unlocked, and one per warning threshold (seconds of remaining time) the
    countdown crosses.

    Args:
        event_bus: Bus of the BetaTrialManager to follow.
        notify: Callable(title, message). Defaults to a desktop notification
            sent through the asyncio loop manager.
        warning_thresholds: Remaining-time marks, in seconds, that trigger a warning.
    """

    def __init__(self, event_bus: TrialEventBus, notify: Optional[Notify] = None,
                 warning_thresholds: Iterable[float] = (60,),
                 loop_manager: Optional[AsyncioEventLoopManager] = None,
                 icon_path: Optional[Path] = None, lang: Optional[LanguageManager] = None):
        self.loop_manager = loop_manager or asyncio_manager
        self.icon_path = icon_path
        self.lang = lang or LanguageManager()
        self._notify = notify or self._send_desktop_notification
        self._thresholds = sorted(set(warning_thresholds), reverse=True)
        self._warned = set()
        self._last_remaining = None
        self.sent_count = 0
        self._unsubscribe = event_bus.subscribe(self._on_event)
        logger.info(f"TrialNotifier attached with warning thresholds {self._thresholds}")

    def detach(self):
        self._unsubscribe()

    def _on_event(self, event: TrialEvent):
        if isinstance(event, TrialExpired):
            self._send("notify_expired_title", "notify_expired_body")
        elif isinstance(event, StateChanged) and event.next == AccessTier.BETA:
            self._send("notify_unlocked_title", "notify_unlocked_body")
        elif isinstance(event, TimeUpdated):
            self._check_thresholds(event.remaining_time)

    def _check_thresholds(self, remaining: float):
        previous = self._last_remaining
        self._last_remaining = remaining
        if remaining <= 0:
            return
        if previous is not None and remaining > previous:
            # The trial was reset; arm the warnings again
            self._warned.clear()

        for threshold in self._thresholds:
            if threshold in self._warned or remaining > threshold:
                continue
            self._warned.update(t for t in self._thresholds if remaining <= t)
            self._send("notify_warning_title", "notify_warning_body",
                       remaining=format_remaining_time(remaining))
            break

    def _send(self, title_key: str, body_key: str, **kwargs):
        title = self.lang.get_string(title_key)
        message = self.lang.get_string(body_key, **kwargs)
        logger.info(f"Sending notification: {title}")
        self._notify(title, message)
        self.sent_count += 1

    def _send_desktop_notification(self, title: str, message: str):
        self.loop_manager.start()
        future = self.loop_manager.submit_coroutine(send_safe_notification(title, message, self.icon_path))
        if future is None:
            show_system_notification_fallback(title, message)
            return

        def _on_done(done):
            if done.cancelled() or done.exception() is not None or not done.result():
                logger.warning("Async notification failed, trying system fallback")
                show_system_notification_fallback(title, message)

        future.add_done_callback(_on_done)
