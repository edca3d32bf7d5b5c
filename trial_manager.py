"""
Beta Trial Lifecycle Manager
Owns the trial ledger of one persistence partition and keeps the access
tier, the countdown tick and the published events consistent with it.

Tier rules (first match wins):
1. Build is not from the beta channel -> PRODUCTION
2. Unlocked with the beta password   -> BETA
3. Started trial with no time left   -> EXPIRED_TRIAL
4. Otherwise                         -> TRIAL (starts the trial if needed)

All state changes run under one re-entrant lock, including the tick
callback, so the ledger invariants hold no matter which thread the host
scheduler calls back on.
"""

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, Optional

from channel_detection import ChannelProbe, default_probe
from localization import LanguageManager, status_description
from tick_scheduler import ThreadingTickScheduler, TickScheduler
from time_format import format_clock
from trial_config import TrialConfiguration
from trial_events import (CountdownPaused, CountdownResumed, StateChanged, TimeUpdated,
                          TrialEventBus, TrialExpired)
from trial_state import AccessTier, SystemClock, derive_tier, remaining_time
from trial_store import JsonFileStore, PersistentStore, TrialLedger

logger = logging.getLogger(__name__)


class BetaTrialManager:
    """
    Trial lifecycle for a beta build.

    Args:
        configuration: Immutable trial settings.
        store: Ledger persistence. Defaults to a JsonFileStore for the configured suite.
        channel_probe: Callable answering whether the build comes from the beta channel.
        scheduler: Tick producer. Defaults to a ThreadingTickScheduler.
        clock: Object with now() -> epoch seconds.
        event_bus: Bus to publish on. Pass one in to observe the initial state change.
    """

    def __init__(self, configuration: TrialConfiguration, store: Optional[PersistentStore] = None,
                 channel_probe: Optional[ChannelProbe] = None, scheduler: Optional[TickScheduler] = None,
                 clock=None, event_bus: Optional[TrialEventBus] = None):
        self.configuration = configuration
        self._config = configuration
        self.store = store if store is not None else JsonFileStore(suite_name=configuration.suite_name)
        self.ledger = TrialLedger(self.store)
        self._channel_probe = channel_probe or default_probe()
        self._scheduler = scheduler or ThreadingTickScheduler()
        self._clock = clock or SystemClock()
        self.events = event_bus or TrialEventBus()

        self._lock = threading.RLock()
        self._tick_handle = None
        self._tick_generation = 0
        self._configured_password = configuration.password
        self._simulating = configuration.simulation_mode
        self._current_tier = AccessTier.PRODUCTION

        self.ledger.set_duration(configuration.trial_duration)
        if configuration.password is not None:
            self.ledger.set_password(configuration.password)

        logger.info(f"BetaTrialManager initialized (suite={self.store.suite_name}, "
                    f"duration={configuration.trial_duration}s, simulation={self._simulating})")

        with self._lock:
            self._update_current_state()
            self._start_timer_if_needed()

    # --- Read-outs ---

    @property
    def current_tier(self) -> AccessTier:
        with self._lock:
            return self._current_tier

    @property
    def trial_duration(self) -> float:
        return self._config.trial_duration

    @property
    def remaining_time(self) -> float:
        """Remaining trial time in seconds, excluding paused time."""
        with self._lock:
            return self._remaining()

    @property
    def is_paused(self) -> bool:
        return self.ledger.is_paused

    @property
    def is_unlocked(self) -> bool:
        return self.ledger.is_unlocked

    @property
    def has_trial_started(self) -> bool:
        return self.ledger.has_trial_started

    @property
    def total_paused_duration(self) -> float:
        return self.ledger.total_paused_duration

    @property
    def is_ticking(self) -> bool:
        with self._lock:
            return self._tick_handle is not None

    def is_in_beta_channel(self) -> bool:
        """True when the build comes from the beta channel or the channel is simulated."""
        if self._simulating:
            return True
        try:
            return bool(self._channel_probe())
        except Exception as e:
            logger.warning(f"Channel probe failed, treating build as production: {e}")
            return False

    # --- Lifecycle operations ---

    def start_trial_if_needed(self):
        """Start the trial if in the beta channel, not unlocked and not already started."""
        with self._lock:
            if not self.is_in_beta_channel() or self.ledger.is_unlocked:
                return
            if self.ledger.has_trial_started:
                return

            now = self._clock.now()
            self.ledger.mark_started(now)
            logger.info(f"Trial started at {now:.0f} for {self._config.trial_duration:.0f}s")
            self._update_current_state()
            self._start_timer_if_needed()

    def reset_trial_time(self):
        """Forget the trial timing. Unlock status and password are kept."""
        with self._lock:
            self.ledger.clear_timing()
            logger.info("Trial time reset")
            self._update_current_state()
            self._start_timer_if_needed()

    def pause_countdown(self):
        """Pause the countdown, e.g. when the app goes to the background."""
        with self._lock:
            if not self.is_in_beta_channel() or self.ledger.is_unlocked:
                return
            if self._current_tier != AccessTier.TRIAL or self.ledger.is_paused:
                return

            self.ledger.mark_paused(self._clock.now())
            self._stop_timer()
            logger.info("Trial countdown paused")
            self.events.publish(CountdownPaused())

    def resume_countdown(self):
        """Resume the countdown; the paused interval is not charged to the trial."""
        with self._lock:
            if not self.is_in_beta_channel() or self.ledger.is_unlocked:
                return
            if not self.ledger.is_paused:
                return

            paused_for = self.ledger.mark_resumed(self._clock.now())
            self._update_current_state()
            self._start_timer_if_needed()

            total_paused = self.ledger.total_paused_duration
            logger.info(f"Trial countdown resumed after {paused_for:.0f}s (total paused: {total_paused:.0f}s)")
            self.events.publish(CountdownResumed(remaining_time=self._remaining(),
                                                 total_paused_duration=total_paused))

    def unlock(self, entered_password: str) -> bool:
        """
        Unlock beta mode. The password must match exactly; no trimming and
        no case folding.

        Returns:
            bool: True if the password matched and the trial is unlocked
        """
        with self._lock:
            configured = self._configured_password
            if configured is None:
                logger.warning("Unlock rejected: no password configured")
                return False
            if entered_password != configured:
                logger.warning("Unlock rejected: wrong password")
                return False

            self.ledger.set_unlocked(True)
            self._update_current_state()
            self._stop_timer()
            logger.info(f"Trial unlocked (tier: {self._current_tier.value})")
            return True

    def lock(self):
        """Remove the unlock status."""
        with self._lock:
            self.ledger.set_unlocked(False)
            self._update_current_state()
            self._start_timer_if_needed()
            logger.info(f"Trial locked (tier: {self._current_tier.value})")

    def refresh_state(self) -> AccessTier:
        """Re-derive the tier now, publishing StateChanged if it moved."""
        with self._lock:
            self._update_current_state()
            should_tick = self._current_tier == AccessTier.TRIAL and not self.ledger.is_paused
            if not should_tick:
                self._stop_timer()
            elif self._tick_handle is None:
                self._start_timer_if_needed()
            return self._current_tier

    def set_password(self, password: Optional[str]):
        """Replace the unlock password and its persisted copy."""
        with self._lock:
            self._configured_password = password
            self.ledger.set_password(password)

    def shutdown(self):
        """Stop the tick producer. The ledger is left as is."""
        with self._lock:
            self._stop_timer()

    # --- Internals ---

    def _remaining(self) -> float:
        return remaining_time(self.ledger.snapshot(), self._config, self.is_in_beta_channel(), self._clock.now())

    def _update_current_state(self):
        tier = derive_tier(self.ledger.snapshot(), self._config, self.is_in_beta_channel(), self._clock.now())
        self._set_tier(tier)

        # Entering the channel for the first time starts the trial
        if tier == AccessTier.TRIAL and not self.ledger.has_trial_started:
            self.start_trial_if_needed()

    def _set_tier(self, tier: AccessTier):
        previous = self._current_tier
        self._current_tier = tier
        if previous != tier:
            logger.info(f"Access tier changed: {previous.value} -> {tier.value}")
            self.events.publish(StateChanged(previous=previous, next=tier))

    def _start_timer_if_needed(self):
        if self._current_tier != AccessTier.TRIAL or self.ledger.is_paused:
            self._stop_timer()
            return

        self._stop_timer()
        self._tick_generation += 1
        generation = self._tick_generation
        self._tick_handle = self._scheduler.start(self._config.tick_interval, lambda: self._on_tick(generation))

    def _stop_timer(self):
        if self._tick_handle is not None:
            self._scheduler.cancel(self._tick_handle)
            self._tick_handle = None
        self._tick_generation += 1

    def _on_tick(self, generation: int):
        with self._lock:
            if generation != self._tick_generation or self._tick_handle is None:
                return

            remaining = self._remaining()
            self.events.publish(TimeUpdated(remaining_time=remaining,
                                            total_paused_duration=self.ledger.total_paused_duration))
            if remaining <= 0:
                self._handle_trial_expiration()

    def _handle_trial_expiration(self):
        self._stop_timer()
        self._update_current_state()
        logger.warning("Trial period has expired")
        self.events.publish(TrialExpired())

    # --- Convenience ---

    @property
    def formatted_remaining_time(self) -> str:
        return format_clock(self.remaining_time)

    @property
    def formatted_paused_time(self) -> str:
        return format_clock(self.total_paused_duration)

    @property
    def is_in_trial_mode(self) -> bool:
        return self.current_tier == AccessTier.TRIAL

    @property
    def is_trial_active(self) -> bool:
        """Trial tier, time left and not paused."""
        with self._lock:
            return self._current_tier == AccessTier.TRIAL and self._remaining() > 0 and not self.ledger.is_paused

    @property
    def is_trial_running(self) -> bool:
        """Trial tier with time left, paused or not."""
        with self._lock:
            return self._current_tier == AccessTier.TRIAL and self._remaining() > 0

    def status_description(self, lang: Optional[LanguageManager] = None) -> str:
        with self._lock:
            return status_description(self._current_tier, format_clock(self._remaining()),
                                      self.ledger.is_paused, lang)

    # --- Development & testing helpers ---

    @property
    def is_simulating_channel(self) -> bool:
        return self._simulating

    def simulate_channel(self, enabled: bool):
        """Pretend the build does (or does not) come from the beta channel."""
        with self._lock:
            self._simulating = enabled
            self._update_current_state()
            self._start_timer_if_needed()
            logger.info(f"Beta channel simulation: {'ENABLED' if enabled else 'DISABLED'}")

    def simulate_state(self, tier: AccessTier):
        """Drive the ledger into the given tier."""
        with self._lock:
            if tier == AccessTier.PRODUCTION:
                self.simulate_channel(False)

            elif tier == AccessTier.TRIAL:
                self.simulate_channel(True)
                self.lock()
                self.reset_trial_time()
                self.start_trial_if_needed()

            elif tier == AccessTier.EXPIRED_TRIAL:
                self.simulate_channel(True)
                self.lock()
                self.ledger.clear_timing()
                self.ledger.set_start_time(self._clock.now() - self._config.trial_duration - 1)

            elif tier == AccessTier.BETA:
                self.simulate_channel(True)
                if self._configured_password is not None:
                    self.unlock(self._configured_password)
                else:
                    # No password configured; force the flag
                    self.ledger.set_unlocked(True)

            self._update_current_state()
            self._start_timer_if_needed()
            logger.info(f"Simulated state: {tier.value} (tier now {self._current_tier.value})")

    def set_test_trial_duration(self, seconds: float):
        """Change the trial duration at runtime."""
        with self._lock:
            self._config = replace(self._config, trial_duration=seconds)
            self.ledger.set_duration(seconds)
            self._update_current_state()
            self._start_timer_if_needed()
            logger.info(f"Trial duration set to {seconds:.0f} seconds")

    def reset_all_trial_data(self):
        """Clear timing and unlock status and turn off channel simulation."""
        with self._lock:
            self._stop_timer()
            self.ledger.clear_all()
            self._simulating = False
            self._update_current_state()
            self._start_timer_if_needed()
            logger.info("All trial data reset")

    def debug_info(self) -> Dict[str, Any]:
        with self._lock:
            info = {
                "current_state": self._current_tier.value,
                "is_beta_channel_simulated": self._simulating,
                "is_beta_channel": self.is_in_beta_channel(),
                "trial_duration": self._config.trial_duration,
                "remaining_time": self._remaining(),
                "formatted_remaining_time": format_clock(self._remaining()),
                "is_unlocked": self.ledger.is_unlocked,
                "has_trial_started": self.ledger.has_trial_started,
                "is_paused": self.ledger.is_paused,
                "total_paused_duration": self.ledger.total_paused_duration,
                "trial_start_time": self.ledger.trial_started_at,
                "password_configured": self._configured_password is not None,
                "is_ticking": self._tick_handle is not None,
            }
        logger.info("=== Beta Trial Manager Debug Info ===")
        for key, value in info.items():
            logger.info(f"{key}: {value}")
        return info


def configure(configuration: TrialConfiguration, previous: Optional[BetaTrialManager] = None,
              **kwargs) -> BetaTrialManager:
    """
    Build a manager for a new configuration. The previous instance, if given,
    has its tick producer stopped first.
    """
    if previous is not None:
        previous.shutdown()
    return BetaTrialManager(configuration, **kwargs)
