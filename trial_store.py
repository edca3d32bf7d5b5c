"""
Trial Ledger Storage
Durable key/value persistence for the trial ledger.

A store is a flat map of string keys to JSON-compatible values, partitioned
by an optional suite name. Keys are the same in every partition, so two
suites never see each other's values.
"""

import os
import json
import base64
import logging
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

DEFAULT_SUITE = "standard"
ENCRYPTED_HEADER = b"ENC_V1:"


class Keys:
    """Persisted ledger keys."""
    trial_start_time = "BetaTrial.startTime"
    trial_duration = "BetaTrial.duration"
    is_trial_unlocked = "BetaTrial.isUnlocked"
    configured_password = "BetaTrial.password"
    has_trial_started = "BetaTrial.hasStarted"
    is_paused = "BetaTrial.isPaused"
    paused_time = "BetaTrial.pausedTime"
    last_pause_time = "BetaTrial.lastPauseTime"
    total_paused_duration = "BetaTrial.totalPausedDuration"


def _atomic_write(path: Path, data: bytes) -> None:
    """Atomically write data to path using a temp file + os.replace."""
    fd, tmp = tempfile.mkstemp(dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


class PersistentStore:
    """
    Base class for ledger stores. Subclasses implement _read, _write and _delete.
    Typed getters return None when the key is absent or holds the wrong type.
    """

    def __init__(self, suite_name: Optional[str] = None):
        self.suite_name = suite_name or DEFAULT_SUITE

    def _read(self, key: str) -> Any:
        raise NotImplementedError

    def _write(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    def get_bool(self, key: str) -> Optional[bool]:
        value = self._read(key)
        return value if isinstance(value, bool) else None

    def get_float(self, key: str) -> Optional[float]:
        value = self._read(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    def get_timestamp(self, key: str) -> Optional[float]:
        """Timestamps are stored as epoch seconds. Only a missing key reads as None."""
        return self.get_float(key)

    def get_string(self, key: str) -> Optional[str]:
        value = self._read(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: Any) -> None:
        if value is None:
            self._delete(key)
        else:
            self._write(key, value)

    def remove(self, key: str) -> None:
        self._delete(key)


class MemoryStore(PersistentStore):
    """
    In-process store. Instances created with the same backing dict and suite
    name share their values, which mimics a process restart in tests.
    """

    def __init__(self, suite_name: Optional[str] = None, backing: Optional[Dict[str, Dict[str, Any]]] = None):
        super().__init__(suite_name)
        self._backing = backing if backing is not None else {}
        self._lock = threading.Lock()

    @property
    def _partition(self) -> Dict[str, Any]:
        return self._backing.setdefault(self.suite_name, {})

    def _read(self, key):
        with self._lock:
            return self._partition.get(key)

    def _write(self, key, value):
        with self._lock:
            self._partition[key] = value

    def _delete(self, key):
        with self._lock:
            self._partition.pop(key, None)

    def keys(self):
        with self._lock:
            return sorted(self._partition.keys())


class JsonFileStore(PersistentStore):
    """
    One JSON file per suite inside a directory. Every mutation rewrites the
    file atomically. When an encryption key (16, 24 or 32 bytes) is given the
    file is sealed with AES-GCM and prefixed with the ENC_V1 header.
    """

    def __init__(self, directory: Optional[str] = None, suite_name: Optional[str] = None,
                 encryption_key: Optional[bytes] = None):
        super().__init__(suite_name)
        self.directory = Path(directory) if directory else self.default_directory()
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path = self.directory / f"{self.suite_name}.json"
        self.encryption_key = encryption_key
        self._lock = threading.Lock()
        self._cache = self._load()
        logger.info(f"JsonFileStore ready: {self.path} ({len(self._cache)} keys)")

    @staticmethod
    def default_directory() -> Path:
        if os.name == 'nt':
            appdata = os.getenv('LOCALAPPDATA') or os.path.expanduser('~')
            return Path(appdata) / 'BetaTrial'
        return Path(os.path.expanduser('~/.local/share/betatrial'))

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw_data = self.path.read_bytes()
        except OSError:
            logger.exception(f"Failed to read store file {self.path}")
            return {}

        if raw_data.startswith(ENCRYPTED_HEADER):
            if not self.encryption_key:
                logger.warning(f"Store file {self.path} is encrypted but no key was supplied.")
                return {}
            try:
                bundle = base64.b64decode(raw_data[len(ENCRYPTED_HEADER):])
                nonce, ciphertext = bundle[:12], bundle[12:]
                raw_data = AESGCM(self.encryption_key).decrypt(nonce, ciphertext, None)
            except (InvalidTag, ValueError) as e:
                logger.error(f"Failed to decrypt store file {self.path}: {e}")
                return {}

        try:
            data = json.loads(raw_data.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Store file {self.path} is not valid JSON: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} does not hold an object; ignoring it.")
            return {}
        return data

    def _flush(self) -> None:
        payload = json.dumps(self._cache, indent=2, sort_keys=True).encode('utf-8')
        if self.encryption_key:
            nonce = os.urandom(12)
            sealed = AESGCM(self.encryption_key).encrypt(nonce, payload, None)
            payload = ENCRYPTED_HEADER + base64.b64encode(nonce + sealed)
        try:
            _atomic_write(self.path, payload)
        except OSError:
            logger.exception(f"Failed to write store file {self.path}")

    def _read(self, key):
        with self._lock:
            return self._cache.get(key)

    def _write(self, key, value):
        with self._lock:
            self._cache[key] = value
            self._flush()

    def _delete(self, key):
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._flush()

    def reload(self) -> None:
        """Re-read the file, dropping the in-memory copy."""
        with self._lock:
            self._cache = self._load()


@dataclass(frozen=True)
class LedgerRecord:
    """Point-in-time copy of the persisted trial facts."""
    trial_started_at: Optional[float] = None
    has_trial_started: bool = False
    is_unlocked: bool = False
    is_paused: bool = False
    last_pause_at: Optional[float] = None
    total_paused_duration: float = 0.0
    configured_password: Optional[str] = None


class TrialLedger:
    """Typed view over a PersistentStore. Absent values read as defaults."""

    def __init__(self, store: PersistentStore):
        self.store = store

    @property
    def trial_started_at(self) -> Optional[float]:
        return self.store.get_timestamp(Keys.trial_start_time)

    @property
    def has_trial_started(self) -> bool:
        return bool(self.store.get_bool(Keys.has_trial_started))

    @property
    def is_unlocked(self) -> bool:
        return bool(self.store.get_bool(Keys.is_trial_unlocked))

    @property
    def is_paused(self) -> bool:
        return bool(self.store.get_bool(Keys.is_paused))

    @property
    def last_pause_at(self) -> Optional[float]:
        return self.store.get_timestamp(Keys.last_pause_time)

    @property
    def total_paused_duration(self) -> float:
        return self.store.get_float(Keys.total_paused_duration) or 0.0

    @property
    def configured_password(self) -> Optional[str]:
        return self.store.get_string(Keys.configured_password)

    def snapshot(self) -> LedgerRecord:
        return LedgerRecord(
            trial_started_at=self.trial_started_at,
            has_trial_started=self.has_trial_started,
            is_unlocked=self.is_unlocked,
            is_paused=self.is_paused,
            last_pause_at=self.last_pause_at,
            total_paused_duration=self.total_paused_duration,
            configured_password=self.configured_password,
        )

    def mark_started(self, now: float) -> None:
        self.store.set(Keys.trial_start_time, now)
        self.store.set(Keys.has_trial_started, True)
        self.store.set(Keys.is_paused, False)

    def mark_paused(self, now: float) -> None:
        self.store.set(Keys.is_paused, True)
        self.store.set(Keys.last_pause_time, now)

    def mark_resumed(self, now: float) -> float:
        """Fold the current pause session into the total; returns the session length."""
        last_pause_at = self.last_pause_at
        paused_for = 0.0
        if last_pause_at is not None:
            paused_for = max(0.0, now - last_pause_at)
            self.store.set(Keys.total_paused_duration, self.total_paused_duration + paused_for)
        self.store.set(Keys.is_paused, False)
        self.store.remove(Keys.last_pause_time)
        return paused_for

    def set_unlocked(self, unlocked: bool) -> None:
        self.store.set(Keys.is_trial_unlocked, unlocked)

    def set_start_time(self, timestamp: float) -> None:
        self.store.set(Keys.trial_start_time, timestamp)
        self.store.set(Keys.has_trial_started, True)

    def set_duration(self, seconds: float) -> None:
        self.store.set(Keys.trial_duration, float(seconds))

    def set_password(self, password: Optional[str]) -> None:
        self.store.set(Keys.configured_password, password)

    def clear_timing(self) -> None:
        for key in (Keys.trial_start_time, Keys.has_trial_started, Keys.is_paused,
                    Keys.paused_time, Keys.last_pause_time, Keys.total_paused_duration):
            self.store.remove(key)

    def clear_all(self) -> None:
        """Everything except the password mirror and the duration mirror."""
        self.clear_timing()
        self.store.remove(Keys.is_trial_unlocked)
