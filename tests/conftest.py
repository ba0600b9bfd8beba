"""Shared fixtures: one memory store per storage backend."""

from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.fernet import Fernet

from memfiles.pins import StatePinTracker
from memfiles.state import FernetSecretStore, JsonStateStore
from memfiles.store import MemoryStore
from memfiles.substrates import (
    DiskSubstrate,
    EncryptedSubstrate,
    PersistedSubstrate,
    VolatileSubstrate,
)

BACKENDS = ["memory", "persisted", "secret", "disk"]


def build_substrate(backend: str, tmp_path: Path):
    if backend == "memory":
        return VolatileSubstrate()
    if backend == "persisted":
        return PersistedSubstrate(JsonStateStore(tmp_path / "state.json"), "test-workspace")
    if backend == "secret":
        secrets = FernetSecretStore(tmp_path / "secrets", Fernet.generate_key())
        return EncryptedSubstrate(secrets, "test-workspace")
    return DiskSubstrate(tmp_path / "workspace" / ".memory")


@pytest.fixture
def state(tmp_path: Path) -> JsonStateStore:
    return JsonStateStore(tmp_path / "pins.json")


@pytest.fixture(params=BACKENDS)
def store(request, tmp_path: Path, state: JsonStateStore) -> MemoryStore:
    pins = StatePinTracker(state, "test-workspace")
    return MemoryStore(build_substrate(request.param, tmp_path), "test-workspace", pins)
