"""
Tests for tier derivation and remaining time.
"""

import pytest

from conftest import START_TIME
from trial_config import TrialConfiguration
from trial_state import AccessTier, derive_tier, remaining_time
from trial_store import LedgerRecord

CONFIG = TrialConfiguration(trial_duration=60)


def started(offset=0.0, **kwargs):
    return LedgerRecord(trial_started_at=START_TIME + offset, has_trial_started=True, **kwargs)


class TestRemainingTime:
    def test_zero_outside_channel(self):
        assert remaining_time(started(), CONFIG, False, START_TIME) == 0

    def test_zero_when_unlocked(self):
        assert remaining_time(started(is_unlocked=True), CONFIG, True, START_TIME) == 0

    def test_full_duration_before_start(self):
        assert remaining_time(LedgerRecord(), CONFIG, True, START_TIME + 500) == 60

    def test_elapsed_time_is_charged(self):
        assert remaining_time(started(), CONFIG, True, START_TIME + 25) == 35

    def test_clamped_at_zero(self):
        assert remaining_time(started(), CONFIG, True, START_TIME + 1000) == 0

    def test_finished_pauses_are_excluded(self):
        record = started(total_paused_duration=40)
        assert remaining_time(record, CONFIG, True, START_TIME + 50) == 50

    def test_current_pause_session_is_excluded(self):
        record = started(is_paused=True, last_pause_at=START_TIME + 10, total_paused_duration=5)
        assert remaining_time(record, CONFIG, True, START_TIME + 200) == pytest.approx(55)


class TestDeriveTier:
    @pytest.mark.parametrize("record", [
        LedgerRecord(),
        LedgerRecord(is_unlocked=True),
        started(),
        started(is_unlocked=True),
    ])
    def test_production_wins_outside_channel(self, record):
        assert derive_tier(record, CONFIG, False, START_TIME + 1000) == AccessTier.PRODUCTION

    def test_unlock_wins_over_expiry(self):
        assert derive_tier(started(is_unlocked=True), CONFIG, True, START_TIME + 1000) == AccessTier.BETA

    def test_expired_once_time_is_used(self):
        assert derive_tier(started(), CONFIG, True, START_TIME + 60) == AccessTier.EXPIRED_TRIAL

    def test_trial_while_time_left(self):
        assert derive_tier(started(), CONFIG, True, START_TIME + 59) == AccessTier.TRIAL

    def test_unstarted_is_trial(self):
        assert derive_tier(LedgerRecord(), CONFIG, True, START_TIME) == AccessTier.TRIAL

    def test_same_inputs_same_answer(self):
        record = started(total_paused_duration=3)
        answers = {derive_tier(record, CONFIG, True, START_TIME + 30) for _ in range(10)}
        assert answers == {AccessTier.TRIAL}
