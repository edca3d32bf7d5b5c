"""
Beta Trial Configuration
Immutable settings supplied when a BetaTrialManager is constructed.

Features:
- Trial duration, unlock password and persistence partition
- Channel simulation switch for development builds
- Environment variable loading
- Ready-made presets for manual testing
"""

import os
import math
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TRIAL_DURATION = 15 * 60
DEFAULT_TICK_INTERVAL = 1.0

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TrialConfiguration:
    """
    Configuration for a BetaTrialManager.

    Args:
        trial_duration: Trial duration in seconds (default: 15 minutes)
        password: Password for unlocking beta mode. None means unlock is impossible.
        suite_name: Name of the persistence partition. None uses the default one.
        simulation_mode: Pretend the build comes from the beta channel.
        tick_interval: Seconds between countdown ticks.
    """
    trial_duration: float = DEFAULT_TRIAL_DURATION
    password: Optional[str] = None
    suite_name: Optional[str] = None
    simulation_mode: bool = False
    tick_interval: float = DEFAULT_TICK_INTERVAL

    def __post_init__(self):
        if not math.isfinite(self.trial_duration) or self.trial_duration <= 0:
            raise ValueError(f"trial_duration must be a positive finite number, got {self.trial_duration}")
        if not math.isfinite(self.tick_interval) or self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be a positive finite number, got {self.tick_interval}")

    @classmethod
    def from_env(cls) -> "TrialConfiguration":
        """Build a configuration from BETA_TRIAL_* environment variables."""
        duration = os.getenv("BETA_TRIAL_DURATION")
        simulate = os.getenv("BETA_TRIAL_SIMULATE", "")
        config = cls(
            trial_duration=float(duration) if duration else DEFAULT_TRIAL_DURATION,
            password=os.getenv("BETA_TRIAL_PASSWORD") or None,
            suite_name=os.getenv("BETA_TRIAL_SUITE") or None,
            simulation_mode=simulate.strip().lower() in _TRUTHY,
        )
        logger.debug(f"Configuration loaded from environment: duration={config.trial_duration}s, "
                     f"suite={config.suite_name}, simulation={config.simulation_mode}")
        return config


DEFAULT_CONFIGURATION = TrialConfiguration()


# --- Testing presets ---

def short_trial_config() -> TrialConfiguration:
    """Active trial with a one minute duration."""
    return TrialConfiguration(trial_duration=60, password="test123", simulation_mode=True)


def expired_trial_config() -> TrialConfiguration:
    """Same values as the short trial; pair it with simulate_state(EXPIRED_TRIAL)."""
    return TrialConfiguration(trial_duration=60, password="test123", simulation_mode=True)


def beta_config() -> TrialConfiguration:
    return TrialConfiguration(trial_duration=60, password="test123", simulation_mode=True)


def quick_test_config() -> TrialConfiguration:
    """Ten second trial for very quick manual checks."""
    return TrialConfiguration(trial_duration=10, password="quick", simulation_mode=True)
