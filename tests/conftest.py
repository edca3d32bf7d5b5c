"""
Beta Trial Test Fixtures
========================

Shared fixtures for all test modules.
"""

import pytest

from tick_scheduler import TickScheduler
from trial_config import TrialConfiguration
from trial_events import TrialEventBus
from trial_manager import BetaTrialManager
from trial_store import MemoryStore


START_TIME = 1_700_000_000.0


# ============================================
# TEST DOUBLES
# ============================================

class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start=START_TIME):
        self.current = start

    def now(self):
        return self.current

    def advance(self, seconds):
        self.current += seconds


class ManualTickScheduler(TickScheduler):
    """Keeps callbacks instead of running them; tests fire ticks by hand."""

    def __init__(self):
        self.active = {}
        self.started = 0
        self.cancelled = 0
        self._next_handle = 0

    def start(self, interval, callback):
        self._next_handle += 1
        self.active[self._next_handle] = callback
        self.started += 1
        return self._next_handle

    def cancel(self, handle):
        if self.active.pop(handle, None) is not None:
            self.cancelled += 1

    def fire(self, times=1):
        for _ in range(times):
            for callback in list(self.active.values()):
                callback()


class ChannelSwitch:
    """Mutable channel probe."""

    def __init__(self, member=True):
        self.member = member

    def __call__(self):
        return self.member


class EventRecorder:
    def __init__(self, bus):
        self.events = []
        bus.subscribe(self.events.append)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self):
        self.events.clear()


# ============================================
# FIXTURES
# ============================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualTickScheduler()


@pytest.fixture
def channel():
    return ChannelSwitch(member=True)


@pytest.fixture
def backing():
    """Backing dict shared by every MemoryStore of a test, like a disk."""
    return {}


@pytest.fixture
def store(backing):
    return MemoryStore(backing=backing)


@pytest.fixture
def bus():
    return TrialEventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def config():
    return TrialConfiguration(trial_duration=60, password="p1")


@pytest.fixture
def make_manager(store, channel, scheduler, clock, bus, recorder):
    """Build a manager wired to the test doubles; keyword arguments override them.
    The recorder is subscribed before construction so it sees the initial tier change."""

    def _make(configuration=None, **overrides):
        kwargs = dict(store=store, channel_probe=channel, scheduler=scheduler, clock=clock, event_bus=bus)
        kwargs.update(overrides)
        return BetaTrialManager(configuration or TrialConfiguration(trial_duration=60, password="p1"), **kwargs)

    return _make


@pytest.fixture
def manager(make_manager, config):
    return make_manager(config)
