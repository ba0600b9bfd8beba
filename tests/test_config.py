"""Tests for configuration loading."""

import pytest
from pathlib import Path

from memfiles.config import load_config

ENV_KEYS = [
    "MEMFILES_BACKEND",
    "MEMFILES_BRANCH_AWARE",
    "MEMFILES_STATE_FILE",
    "MEMFILES_SECRETS_DIR",
    "MEMFILES_SECRET_PASSWORD",
    "MEMFILES_SYNC_FILE",
    "MEMFILES_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_config(tmp_path / "missing.toml")
        assert config.storage.backend == "memory"
        assert config.storage.branch_aware is False
        assert config.storage.disk_dir == ".memory"
        assert config.pins.global_scope is False
        assert config.sync.file == ""
        assert config.log_level == "INFO"

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMFILES_BACKEND", "persisted")
        monkeypatch.setenv("MEMFILES_BRANCH_AWARE", "true")
        monkeypatch.setenv("MEMFILES_STATE_FILE", str(tmp_path / "state.json"))

        config = load_config(tmp_path / "missing.toml")
        assert config.storage.backend == "persisted"
        assert config.storage.branch_aware is True
        assert config.storage.state_file == tmp_path / "state.json"

    def test_toml_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        toml_path = tmp_path / "memfiles.toml"
        toml_path.write_text("""
log_level = "DEBUG"

[storage]
backend = "disk"
disk_dir = ".agent-memory"

[pins]
global_scope = true

[sync]
file = "AGENTS.md"
""")
        config = load_config(toml_path)
        assert config.storage.backend == "disk"
        assert config.storage.disk_dir == ".agent-memory"
        assert config.pins.global_scope is True
        assert config.sync.file == "AGENTS.md"
        assert config.log_level == "DEBUG"

    def test_toml_found_in_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "memfiles.toml").write_text('[storage]\nbackend = "secret"\n')

        config = load_config()
        assert config.storage.backend == "secret"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMFILES_BACKEND", "persisted")

        toml_path = tmp_path / "memfiles.toml"
        toml_path.write_text("""
[storage]
backend = "disk"
""")
        config = load_config(toml_path)
        assert config.storage.backend == "persisted"  # env wins

    def test_unknown_backend(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MEMFILES_BACKEND", "cloud")
        with pytest.raises(ValueError, match="Unknown storage backend"):
            load_config(tmp_path / "missing.toml")
