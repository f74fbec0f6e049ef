"""Secure storage for the device's key material.

The vault is persisted as one JSON document so that replacing an identity and
registering its domain happen in a single write.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

_FILE_MODE = 0o600


class StorageError(RuntimeError):
    """Raised when the vault document cannot be read or written."""


class SecureStorage(ABC):
    """Backend holding the vault document."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return the stored document, or an empty one."""

    @abstractmethod
    def save(self, document: dict[str, Any]) -> None:
        """Atomically replace the stored document."""


class MemorySecureStorage(SecureStorage):
    """Process-local storage, used by tests and ephemeral sessions."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self._document = copy.deepcopy(document or {})
        self._lock = Lock()
        self.writes = 0

    def load(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._document)

    def save(self, document: dict[str, Any]) -> None:
        with self._lock:
            self._document = copy.deepcopy(document)
            self.writes += 1


class FileSecureStorage(SecureStorage):
    """Vault file encrypted at rest with Fernet and readable only by its owner."""

    def __init__(self, path: str | Path, key: str | bytes) -> None:
        self.path = Path(path).expanduser()
        try:
            self._fernet = Fernet(key)
        except ValueError as err:
            raise StorageError(f"Invalid vault key: {err}") from err

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def load(self) -> dict[str, Any]:
        try:
            token = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageError(f"Cannot read vault {self.path}: {err}") from err

        try:
            plaintext = self._fernet.decrypt(token)
        except InvalidToken as err:
            raise StorageError(f"Vault {self.path} cannot be decrypted with this key") from err
        document = json.loads(plaintext)
        if not isinstance(document, dict):
            raise StorageError(f"Vault {self.path} is corrupt")
        return document

    def save(self, document: dict[str, Any]) -> None:
        token = self._fernet.encrypt(json.dumps(document, sort_keys=True).encode("utf-8"))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
            with os.fdopen(fd, "wb") as handle:
                handle.write(token)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except OSError as err:
            raise StorageError(f"Cannot write vault {self.path}: {err}") from err
        logger.debug("Wrote vault %s", self.path)
