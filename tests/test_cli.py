"""
Tests for the developer tool and the demo's argument handling.
"""

import json
import logging

import pytest

import run
import trial_cleanup


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BETA_CHANNEL", "BETA_TRIAL_DURATION", "BETA_TRIAL_PASSWORD",
                 "BETA_TRIAL_SUITE", "BETA_TRIAL_SIMULATE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The tool reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def invoke(capsys, tmp_path, *args):
    code = trial_cleanup.main(["--directory", str(tmp_path), "--simulate", "--password", "p1", *args])
    out = capsys.readouterr().out
    return code, out


def status_of(out):
    return json.loads(out[out.index("{"):])


def test_status_starts_trial(capsys, tmp_path):
    code, out = invoke(capsys, tmp_path, "status")
    assert code == 0
    info = status_of(out)
    assert info["current_state"] == "trial"
    assert info["has_trial_started"] is True
    assert (tmp_path / "standard.json").exists()


def test_unlock_and_lock(capsys, tmp_path):
    code, out = invoke(capsys, tmp_path, "unlock", "p1")
    assert code == 0
    assert status_of(out)["current_state"] == "beta"

    _, out = invoke(capsys, tmp_path, "status")
    assert status_of(out)["is_unlocked"] is True

    _, out = invoke(capsys, tmp_path, "lock")
    assert status_of(out)["current_state"] == "trial"


def test_invalid_code(capsys, tmp_path):
    code, out = invoke(capsys, tmp_path, "unlock", "nope")
    assert code == 1
    assert "Invalid beta code." in out


def test_simulate_expired_then_reset(capsys, tmp_path):
    _, out = invoke(capsys, tmp_path, "simulate", "expired")
    assert status_of(out)["current_state"] == "expired_trial"

    _, out = invoke(capsys, tmp_path, "reset")
    info = status_of(out)
    assert info["current_state"] == "trial"
    assert info["remaining_time"] > 0


def test_not_simulated_is_production(capsys, tmp_path):
    trial_cleanup.main(["--directory", str(tmp_path), "status"])
    assert status_of(capsys.readouterr().out)["current_state"] == "production"


def test_suites_are_separate(capsys, tmp_path):
    invoke(capsys, tmp_path, "--suite", "other", "unlock", "p1")
    _, out = invoke(capsys, tmp_path, "status")
    assert status_of(out)["is_unlocked"] is False


def test_run_config_from_args():
    args = run.build_parser().parse_args(["--duration", "30", "--password", "x", "--simulate", "--suite", "demo"])
    config = run.config_from_args(args)
    assert config.trial_duration == 30
    assert config.password == "x"
    assert config.suite_name == "demo"
    assert config.simulation_mode


def test_run_config_defaults():
    config = run.config_from_args(run.build_parser().parse_args([]))
    assert config.trial_duration == 15 * 60
    assert not config.simulation_mode
