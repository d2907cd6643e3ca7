from __future__ import annotations

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, Optional, Union

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


# PUBLIC_INTERFACE
class KeyValueBackend(ABC):
    """
    Abstract string key-value store holding serialized slots.

    Mirrors the browser localStorage contract: values are opaque strings,
    a missing key reads as None, writes replace the whole value.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @property
    def name(self) -> str:
        return "unknown"


class MemoryBackend(KeyValueBackend):
    """
    Process-local backend suitable for testing and default runtime.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    @property
    def name(self) -> str:
        return "memory"


class FileBackend(KeyValueBackend):
    """
    Directory-backed store: one ``<key>.json`` file per slot.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written slot.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=str(self._dir))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    @property
    def name(self) -> str:
        return "file"


# PUBLIC_INTERFACE
def get_backend(settings: Optional[Settings] = None) -> KeyValueBackend:
    """
    Factory to return the configured backend based on settings.
    - memory: MemoryBackend
    - file: FileBackend rooted at settings.data_dir
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "file":
        logger.info("Using file backend dir=%s", settings.data_dir)
        return FileBackend(settings.data_dir)
    return MemoryBackend()
