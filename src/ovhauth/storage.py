"""Consumer key persistence.

The consumer key survives process restarts through a small key-value
storage backend. Backends may fail; the credential store then keeps working
from memory for the rest of the session.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .types import Credentials, StorageUnavailable

logger = logging.getLogger(__name__)

CONSUMER_KEY_STORAGE_KEY = "ovh-ck"


class Storage(Protocol):
    """Key-value storage used to persist the consumer key."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage, shared by passing the same instance around."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """JSON file storage.

    The whole file is a flat ``{key: value}`` object, rewritten on each
    change. Every I/O or decode failure surfaces as StorageUnavailable.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageUnavailable(f"Unexpected content in {self.path}")
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class CredentialStore:
    """Holds the application key, application secret and consumer key.

    The consumer key is mirrored to ``storage`` under ``"ovh-ck"`` and
    rehydrated from it on construction. ``storage=None`` disables persistence.
    """

    def __init__(
        self,
        application_key: str = "",
        application_secret: str = "",
        storage: Optional[Storage] = None,
    ):
        self._application_key = application_key
        self._application_secret = application_secret
        self._storage = storage
        self._consumer_key: Optional[str] = None

        if storage is not None:
            try:
                stored = storage.get(CONSUMER_KEY_STORAGE_KEY)
                if stored is not None and not isinstance(stored, str):
                    raise StorageUnavailable(f"Stored consumer key is a {type(stored).__name__}")
                self._consumer_key = stored or None
            except StorageUnavailable as e:
                logger.warning("Consumer key storage unavailable, not restoring: %s", e)

    def get(self) -> Credentials:
        return Credentials(
            application_key=self._application_key,
            application_secret=self._application_secret,
            consumer_key=self._consumer_key,
        )

    def set_application_key(self, application_key: str) -> None:
        self._application_key = application_key

    def set_application_secret(self, application_secret: str) -> None:
        self._application_secret = application_secret

    def set_consumer_key(self, consumer_key: str) -> None:
        """Set the consumer key and persist it."""
        self._consumer_key = consumer_key or None
        if self._storage is None:
            return
        try:
            if self._consumer_key:
                self._storage.set(CONSUMER_KEY_STORAGE_KEY, self._consumer_key)
            else:
                self._storage.remove(CONSUMER_KEY_STORAGE_KEY)
        except StorageUnavailable as e:
            logger.warning("Consumer key storage unavailable, keeping key in memory: %s", e)

    def clear_consumer_key(self) -> None:
        """Forget the consumer key, in memory and in storage."""
        self._consumer_key = None
        if self._storage is None:
            return
        try:
            self._storage.remove(CONSUMER_KEY_STORAGE_KEY)
        except StorageUnavailable as e:
            logger.warning("Consumer key storage unavailable, cleared in memory only: %s", e)

    def is_authenticated(self) -> bool:
        return bool(self._consumer_key)
