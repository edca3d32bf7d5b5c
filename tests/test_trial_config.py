import pytest

from trial_config import (DEFAULT_CONFIGURATION, TrialConfiguration, quick_test_config,
                          short_trial_config)


def test_defaults():
    assert DEFAULT_CONFIGURATION.trial_duration == 15 * 60
    assert DEFAULT_CONFIGURATION.password is None
    assert DEFAULT_CONFIGURATION.suite_name is None
    assert not DEFAULT_CONFIGURATION.simulation_mode


@pytest.mark.parametrize("kwargs", [
    {"trial_duration": 0},
    {"trial_duration": -1},
    {"tick_interval": 0},
    {"trial_duration": float("inf")},
    {"trial_duration": float("nan")},
    {"tick_interval": float("inf")},
])
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        TrialConfiguration(**kwargs)


def test_immutable():
    config = TrialConfiguration()
    with pytest.raises(AttributeError):
        config.password = "changed"


def test_from_env(monkeypatch):
    monkeypatch.setenv("BETA_TRIAL_DURATION", "120")
    monkeypatch.setenv("BETA_TRIAL_PASSWORD", "env-code")
    monkeypatch.setenv("BETA_TRIAL_SUITE", "env-suite")
    monkeypatch.setenv("BETA_TRIAL_SIMULATE", "Yes")
    config = TrialConfiguration.from_env()
    assert config == TrialConfiguration(trial_duration=120, password="env-code",
                                        suite_name="env-suite", simulation_mode=True)


def test_from_env_without_variables(monkeypatch):
    for name in ("BETA_TRIAL_DURATION", "BETA_TRIAL_PASSWORD", "BETA_TRIAL_SUITE", "BETA_TRIAL_SIMULATE"):
        monkeypatch.delenv(name, raising=False)
    assert TrialConfiguration.from_env() == DEFAULT_CONFIGURATION


def test_presets():
    assert short_trial_config().trial_duration == 60
    assert short_trial_config().simulation_mode
    assert quick_test_config().password == "quick"
