"""
Tests for ledger persistence.
"""

import os

import pytest

from trial_store import ENCRYPTED_HEADER, JsonFileStore, Keys, MemoryStore, TrialLedger


class TestMemoryStore:
    def test_typed_getters_reject_wrong_types(self, store):
        store.set("flag", 1)
        store.set("number", True)
        store.set("text", 3.5)
        assert store.get_bool("flag") is None
        assert store.get_float("number") is None
        assert store.get_string("text") is None

    def test_typed_getters(self, store):
        store.set("flag", False)
        store.set("number", 7)
        store.set("text", "abc")
        assert store.get_bool("flag") is False
        assert store.get_float("number") == 7.0
        assert store.get_string("text") == "abc"

    def test_zero_and_negative_timestamps_are_kept(self, store):
        store.set("ts", 0)
        assert store.get_timestamp("ts") == 0.0
        store.set("ts", -5.0)
        assert store.get_timestamp("ts") == -5.0
        store.remove("ts")
        assert store.get_timestamp("ts") is None

    def test_setting_none_removes(self, store):
        store.set("key", "value")
        store.set("key", None)
        assert "key" not in store.keys()

    def test_partitions(self, backing):
        first = MemoryStore("first", backing)
        second = MemoryStore("second", backing)
        first.set(Keys.is_trial_unlocked, True)
        assert second.get_bool(Keys.is_trial_unlocked) is None
        assert MemoryStore("first", backing).get_bool(Keys.is_trial_unlocked) is True

    def test_default_suite(self):
        assert MemoryStore().suite_name == "standard"


class TestJsonFileStore:
    def test_values_survive_reopen(self, tmp_path):
        store = JsonFileStore(directory=tmp_path, suite_name="demo")
        store.set(Keys.trial_start_time, 1234.5)
        store.set(Keys.has_trial_started, True)

        reopened = JsonFileStore(directory=tmp_path, suite_name="demo")
        assert reopened.get_timestamp(Keys.trial_start_time) == 1234.5
        assert reopened.get_bool(Keys.has_trial_started) is True
        assert (tmp_path / "demo.json").exists()

    def test_suites_use_separate_files(self, tmp_path):
        JsonFileStore(directory=tmp_path, suite_name="a").set("k", "v")
        assert JsonFileStore(directory=tmp_path, suite_name="b").get_string("k") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        (tmp_path / "standard.json").write_text("{not json")
        store = JsonFileStore(directory=tmp_path)
        assert store.get_string("anything") is None
        store.set("k", "v")
        assert JsonFileStore(directory=tmp_path).get_string("k") == "v"

    def test_reload(self, tmp_path):
        store = JsonFileStore(directory=tmp_path)
        JsonFileStore(directory=tmp_path).set("k", "v")
        assert store.get_string("k") is None
        store.reload()
        assert store.get_string("k") == "v"

    def test_encrypted_file(self, tmp_path):
        key = os.urandom(32)
        store = JsonFileStore(directory=tmp_path, encryption_key=key)
        store.set(Keys.configured_password, "secret")

        raw = (tmp_path / "standard.json").read_bytes()
        assert raw.startswith(ENCRYPTED_HEADER)
        assert b"secret" not in raw
        assert JsonFileStore(directory=tmp_path, encryption_key=key).get_string(Keys.configured_password) == "secret"

    @pytest.mark.parametrize("other_key", [None, b"\x00" * 32])
    def test_encrypted_file_with_wrong_key_reads_empty(self, tmp_path, other_key):
        JsonFileStore(directory=tmp_path, encryption_key=os.urandom(32)).set("k", "v")
        assert JsonFileStore(directory=tmp_path, encryption_key=other_key).get_string("k") is None


class TestTrialLedger:
    @pytest.fixture
    def ledger(self, store):
        return TrialLedger(store)

    def test_defaults(self, ledger):
        record = ledger.snapshot()
        assert record.trial_started_at is None
        assert not record.has_trial_started
        assert not record.is_unlocked
        assert not record.is_paused
        assert record.total_paused_duration == 0

    def test_pause_cycle(self, ledger):
        ledger.mark_started(100.0)
        ledger.mark_paused(110.0)
        assert ledger.is_paused
        assert ledger.mark_resumed(135.0) == 25.0
        ledger.mark_paused(140.0)
        assert ledger.mark_resumed(145.0) == 5.0
        assert ledger.total_paused_duration == 30.0
        assert ledger.last_pause_at is None

    def test_resume_before_pause_time(self, ledger):
        ledger.mark_paused(200.0)
        assert ledger.mark_resumed(150.0) == 0.0
        assert ledger.total_paused_duration == 0.0

    def test_clear_timing_keeps_unlock(self, ledger, store):
        ledger.mark_started(100.0)
        ledger.mark_paused(110.0)
        ledger.set_unlocked(True)
        ledger.clear_timing()
        assert ledger.is_unlocked
        assert not ledger.has_trial_started
        assert store.keys() == [Keys.is_trial_unlocked]

    def test_clear_all_keeps_mirrors(self, ledger, store):
        ledger.set_duration(60)
        ledger.set_password("p1")
        ledger.set_unlocked(True)
        ledger.mark_started(100.0)
        ledger.clear_all()
        assert store.keys() == sorted([Keys.configured_password, Keys.trial_duration])
