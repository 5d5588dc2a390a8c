"""Tests for the client configuration loader."""

from pathlib import Path

import pytest

from learning.config import app_config
from learning.config.app_config import clear_config_cache, load_app_config


@pytest.fixture
def no_config_file(monkeypatch, tmp_path):
    monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "missing.yaml")


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_defaults(self, monkeypatch, no_config_file):
        """Without a file or env vars the built-in defaults apply."""
        monkeypatch.delenv("LEARNING_API_BASE_URL")
        monkeypatch.delenv("LEARNING_DATA_DIR")
        config = load_app_config(force_reload=True)

        assert config.api.base_url == "http://localhost:8080"
        assert config.api.timeout == 10.0
        assert config.state_dir == Path("data/state")

    def test_env_overrides(self, monkeypatch, no_config_file, tmp_path):
        """Environment variables win."""
        monkeypatch.setenv("LEARNING_API_BASE_URL", "http://lms.example/")
        monkeypatch.setenv("LEARNING_API_TIMEOUT", "2.5")
        monkeypatch.setenv("LEARNING_DATA_DIR", str(tmp_path))
        config = load_app_config(force_reload=True)

        assert config.api.base_url == "http://lms.example"
        assert config.api.timeout == 2.5
        assert config.state_dir == tmp_path / "state"

    def test_bad_timeout_ignored(self, monkeypatch, no_config_file):
        """An unparseable timeout keeps the default."""
        monkeypatch.setenv("LEARNING_API_TIMEOUT", "soon")
        assert load_app_config(force_reload=True).api.timeout == 10.0

    def test_yaml_file(self, monkeypatch, tmp_path):
        """Values come from the YAML file when present."""
        config_file = tmp_path / "app_config_v1.yaml"
        config_file.write_text(
            "api:\n  base_url: http://yaml.example\n  timeout: 4\n"
            "paths:\n  state_dir: /var/lib/learning\n",
            encoding="utf-8",
        )
        monkeypatch.setattr(app_config, "CONFIG_FILE", config_file)
        monkeypatch.delenv("LEARNING_API_BASE_URL")
        monkeypatch.delenv("LEARNING_DATA_DIR")

        config = load_app_config(force_reload=True)
        assert config.api.base_url == "http://yaml.example"
        assert config.api.timeout == 4.0
        assert config.state_dir == Path("/var/lib/learning")

    def test_cached_until_cleared(self, monkeypatch, no_config_file):
        """The loaded config is cached."""
        first = load_app_config()
        monkeypatch.setenv("LEARNING_API_BASE_URL", "http://other.example")
        assert load_app_config() is first
        clear_config_cache()
        assert load_app_config().api.base_url == "http://other.example"
