"""Configuration loading from environment variables and memfiles.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_HOME_DIR = Path.home() / ".memfiles"
_CONFIG_FILENAME = "memfiles.toml"

BACKENDS = ("memory", "persisted", "secret", "disk")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StorageConfig:
    """Which backend to build, and where its media live."""

    backend: str = "memory"
    branch_aware: bool = False
    disk_dir: str = ".memory"
    state_file: Path = _HOME_DIR / "state.json"
    secrets_dir: Path = _HOME_DIR / "secrets"
    secret_password: str | None = None


@dataclass
class PinConfig:
    """Pin tracker scope."""

    global_scope: bool = False


@dataclass
class SyncConfig:
    """Mirror target, relative to the workspace. Empty disables syncing."""

    file: str = ""


@dataclass
class MemfilesConfig:
    """Top-level configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    pins: PinConfig = field(default_factory=PinConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> MemfilesConfig:
    """Load configuration from environment variables and optional memfiles.toml.

    Priority: environment variables > memfiles.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memfiles/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _HOME_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    storage_data = file_data.get("storage", {})
    pins_data = file_data.get("pins", {})
    sync_data = file_data.get("sync", {})

    backend = os.getenv("MEMFILES_BACKEND", storage_data.get("backend", "memory"))
    if backend not in BACKENDS:
        raise ValueError(f"Unknown storage backend '{backend}'. Choose one of: {', '.join(BACKENDS)}")

    config = MemfilesConfig(
        storage=StorageConfig(
            backend=backend,
            branch_aware=_env_flag(
                "MEMFILES_BRANCH_AWARE", bool(storage_data.get("branch_aware", False))
            ),
            disk_dir=storage_data.get("disk_dir", ".memory"),
            state_file=Path(
                os.getenv("MEMFILES_STATE_FILE", storage_data.get("state_file", _HOME_DIR / "state.json"))
            ).expanduser(),
            secrets_dir=Path(
                os.getenv("MEMFILES_SECRETS_DIR", storage_data.get("secrets_dir", _HOME_DIR / "secrets"))
            ).expanduser(),
            secret_password=os.getenv(
                "MEMFILES_SECRET_PASSWORD", storage_data.get("secret_password")
            ),
        ),
        pins=PinConfig(global_scope=bool(pins_data.get("global_scope", False))),
        sync=SyncConfig(file=os.getenv("MEMFILES_SYNC_FILE", sync_data.get("file", ""))),
        log_level=os.getenv("MEMFILES_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
