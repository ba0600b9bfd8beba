"""Physical key-value media for the persisted and encrypted backends.

``JsonStateStore`` is a cross-session key-value file: whole values are read
at startup and written back on every update. ``FernetSecretStore`` keeps each
value encrypted at rest and deliberately offers no key enumeration.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

KDF_ITERATIONS = 100_000
SALT_LENGTH = 32


@runtime_checkable
class StateStore(Protocol):
    """Cross-session key-value state."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def update(self, key: str, value: Any) -> None:
        """Store *value*; None removes the key."""
        ...


class JsonStateStore:
    """State persisted as one JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        return json.loads(text)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def update(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value
        self._flush()

    def keys(self) -> list[str]:
        return list(self._data)

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)


@runtime_checkable
class SecretStore(Protocol):
    """Encrypted key-value storage without enumeration."""

    def get(self, key: str) -> str | None: ...

    def store(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class FernetSecretStore:
    """One Fernet token per secret, in files named by the key's SHA-256."""

    def __init__(self, directory: Path, key: bytes) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)
        self._fernet = Fernet(key)

    @classmethod
    def open(cls, directory: Path, password: str | None = None) -> FernetSecretStore:
        """Unlock *directory* with a password, or with its generated key file."""
        directory.mkdir(parents=True, exist_ok=True)
        if password:
            return cls(directory, _derive_key(password, _load_salt(directory)))

        key_file = directory / "master.key"
        if key_file.exists():
            return cls(directory, key_file.read_bytes().strip())

        logger.info("Generating new secret store key at %s", key_file)
        key = Fernet.generate_key()
        key_file.write_bytes(key)
        os.chmod(key_file, 0o600)
        return cls(directory, key)

    def _path(self, key: str) -> Path:
        return self.directory / f"{hashlib.sha256(key.encode('utf-8')).hexdigest()}.secret"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return self._fernet.decrypt(path.read_bytes()).decode("utf-8")
        except InvalidToken:
            logger.error("Cannot decrypt secret %s: wrong key or corrupt data", path.name)
            raise

    def store(self, key: str, value: str) -> None:
        self._path(key).write_bytes(self._fernet.encrypt(value.encode("utf-8")))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def _load_salt(directory: Path) -> bytes:
    salt_file = directory / "salt"
    if salt_file.exists():
        return salt_file.read_bytes()
    salt = os.urandom(SALT_LENGTH)
    salt_file.write_bytes(salt)
    return salt


def _derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))
