"""Local key-value persistence.

Values are opaque strings, the same shape a browser ``localStorage`` exposes.
Callers own their encoding; the storage layer only guarantees that a ``set``
has reached the backing medium before it returns.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import orjson

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Abstract synchronous key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist a value. Must not return before the write is durable."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key. Deleting a missing key is a no-op."""
        ...


class MemoryStorage(KeyValueStorage):
    """Process-local storage, used by tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStorage(KeyValueStorage):
    """All keys in one JSON object on disk, rewritten atomically on every mutation."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._data: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError:
            logger.warning("Could not read state file %s, starting empty", self.path, exc_info=True)
            return {}

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("State file %s is not valid JSON, starting empty", self.path)
            return {}

        if not isinstance(data, dict):
            logger.warning("State file %s does not hold an object, starting empty", self.path)
            return {}

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(self._data, option=orjson.OPT_SORT_KEYS)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        previous = self._data.get(key)
        self._data[key] = value
        try:
            self._flush()
        except OSError:
            # Keep memory consistent with what is on disk
            if previous is None:
                self._data.pop(key, None)
            else:
                self._data[key] = previous
            raise

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        previous = self._data.pop(key)
        try:
            self._flush()
        except OSError:
            self._data[key] = previous
            raise
