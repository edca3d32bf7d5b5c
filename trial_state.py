import time
from enum import Enum
from typing import Optional

from trial_config import TrialConfiguration
from trial_store import LedgerRecord


class AccessTier(Enum):
    PRODUCTION = "production"        # General release build
    TRIAL = "trial"                  # Countdown running or paused
    EXPIRED_TRIAL = "expired_trial"  # Countdown reached zero
    BETA = "beta"                    # Unlocked with the beta password


class SystemClock:
    """Wall clock in epoch seconds."""

    def now(self) -> float:
        return time.time()


def remaining_time(record: LedgerRecord, config: TrialConfiguration, is_channel_member: bool, now: float) -> float:
    """
    Remaining trial time in seconds, excluding every paused interval.

    The current pause session is not yet part of total_paused_duration,
    so it is subtracted separately.
    """
    if not is_channel_member or record.is_unlocked:
        return 0.0

    if record.trial_started_at is None:
        return float(config.trial_duration)

    current_session_pause = 0.0
    if record.is_paused and record.last_pause_at is not None:
        current_session_pause = max(0.0, now - record.last_pause_at)

    total_elapsed = now - record.trial_started_at
    active_elapsed = total_elapsed - record.total_paused_duration - current_session_pause
    return max(0.0, config.trial_duration - active_elapsed)


def derive_tier(record: LedgerRecord, config: TrialConfiguration, is_channel_member: bool,
                now: Optional[float] = None) -> AccessTier:
    """
    Compute the access tier from the persisted facts. First match wins:
    production outside the channel, then beta when unlocked, then expired
    once a started trial has no time left, otherwise trial.
    """
    if now is None:
        now = time.time()

    if not is_channel_member:
        return AccessTier.PRODUCTION
    if record.is_unlocked:
        return AccessTier.BETA
    if remaining_time(record, config, is_channel_member, now) <= 0 and record.has_trial_started:
        return AccessTier.EXPIRED_TRIAL
    return AccessTier.TRIAL
