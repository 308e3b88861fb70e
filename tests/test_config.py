"""Unit tests for KitConfig (starterkit.config).

Tests cover:
- Defaults and derived paths
- Field validation
- save / load round trip
- from_env overrides
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from starterkit.config import KitConfig

pytestmark = pytest.mark.unit

_ENV_VARS = (
    "STARTERKIT_REGISTRY_DIR",
    "STARTERKIT_PLUGIN_DIR",
    "PLUGIN_CONFIG_FILE",
    "STARTERKIT_MAX_PLUGINS",
    "STARTERKIT_PLUGIN_TIMEOUT",
    "STARTERKIT_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_default_values(self):
        config = KitConfig()
        assert config.registry_dir == Path.home() / ".ai-dev-kit"
        assert config.plugin_dir.name == "plugins"
        assert (config.plugin_dir / "api_fastapi").is_dir()
        assert config.plugin_config_file.name == ".ai-driven-dev-config.json"
        assert config.max_plugins == 50
        assert config.plugin_timeout == 30.0
        assert config.health_check_timeout == 5.0
        assert config.auto_load is True
        assert config.log_level == "INFO"

    def test_derived_paths(self, tmp_path: Path):
        config = KitConfig(registry_dir=tmp_path)
        assert config.registry_path == tmp_path / "templates" / "index.json"
        assert config.cache_dir == tmp_path / "template-cache"


class TestValidation:
    def test_log_level_normalised(self):
        assert KitConfig(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            KitConfig(log_level="chatty")

    @pytest.mark.parametrize(
        "field,value", [("max_plugins", 0), ("plugin_timeout", 0), ("health_check_timeout", -1)]
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            KitConfig(**{field: value})


class TestPersistence:
    def test_save_and_load(self, tmp_path: Path):
        config = KitConfig(registry_dir=tmp_path / "reg", max_plugins=3, log_level="WARNING")
        path = config.save(tmp_path / "nested" / "kit.json")
        assert path.exists()
        loaded = KitConfig.load(path)
        assert loaded == config


class TestFromEnv:
    def test_no_env_uses_defaults(self, clean_env):
        assert KitConfig.from_env().max_plugins == 50

    def test_env_overrides(self, clean_env, tmp_path: Path):
        clean_env.setenv("STARTERKIT_REGISTRY_DIR", str(tmp_path / "reg"))
        clean_env.setenv("STARTERKIT_PLUGIN_DIR", str(tmp_path / "plugins"))
        clean_env.setenv("PLUGIN_CONFIG_FILE", str(tmp_path / "cfg.json"))
        clean_env.setenv("STARTERKIT_MAX_PLUGINS", "7")
        clean_env.setenv("STARTERKIT_PLUGIN_TIMEOUT", "2.5")
        clean_env.setenv("STARTERKIT_LOG_LEVEL", "error")

        config = KitConfig.from_env()

        assert config.registry_dir == tmp_path / "reg"
        assert config.plugin_dir == tmp_path / "plugins"
        assert config.plugin_config_file == tmp_path / "cfg.json"
        assert config.max_plugins == 7
        assert config.plugin_timeout == 2.5
        assert config.log_level == "ERROR"

    def test_invalid_number_raises(self, clean_env):
        clean_env.setenv("STARTERKIT_MAX_PLUGINS", "many")
        with pytest.raises(ValueError):
            KitConfig.from_env()
