"""Starter Kit configuration.

Centralised, typed configuration for the kit. All settings use Pydantic v2
models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

_BUNDLED_PLUGIN_DIR = Path(__file__).parent / "plugins"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class KitConfig(BaseModel):
    """Global Starter Kit configuration.

    Holds every tuneable parameter and derived path used by the template
    registry and the plugin manager.  Instances are typically created once by
    the CLI entry point and then passed through the rest of the system.
    """

    registry_dir: Path = Field(default_factory=lambda: Path.home() / ".ai-dev-kit")
    plugin_dir: Path = Field(default=_BUNDLED_PLUGIN_DIR)
    plugin_config_file: Path = Field(
        default_factory=lambda: Path.cwd() / ".ai-driven-dev-config.json"
    )
    max_plugins: int = Field(default=50, ge=1, description="Upper bound on loaded plugins")
    plugin_timeout: float = Field(
        default=30.0, gt=0, description="Per-plugin initialize/cleanup timeout in seconds"
    )
    health_check_timeout: float = Field(
        default=5.0, gt=0, description="Per-plugin health check timeout in seconds"
    )
    auto_load: bool = Field(default=True, description="Load every discovered plugin on initialize")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def registry_path(self) -> Path:
        """Path to the template registry document."""
        return self.registry_dir / "templates" / "index.json"

    @property
    def cache_dir(self) -> Path:
        """Directory holding per-template cache subdirectories."""
        return self.registry_dir / "template-cache"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "KitConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "KitConfig":
        """Build a ``KitConfig`` from environment variables.

        Recognised variables (all optional):
            STARTERKIT_REGISTRY_DIR, STARTERKIT_PLUGIN_DIR, PLUGIN_CONFIG_FILE,
            STARTERKIT_MAX_PLUGINS, STARTERKIT_PLUGIN_TIMEOUT,
            STARTERKIT_LOG_LEVEL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("STARTERKIT_REGISTRY_DIR"):
            kwargs["registry_dir"] = Path(os.environ["STARTERKIT_REGISTRY_DIR"]).expanduser()
        if os.environ.get("STARTERKIT_PLUGIN_DIR"):
            kwargs["plugin_dir"] = Path(os.environ["STARTERKIT_PLUGIN_DIR"]).expanduser()
        if os.environ.get("PLUGIN_CONFIG_FILE"):
            kwargs["plugin_config_file"] = Path(os.environ["PLUGIN_CONFIG_FILE"]).expanduser()
        if os.environ.get("STARTERKIT_MAX_PLUGINS"):
            kwargs["max_plugins"] = int(os.environ["STARTERKIT_MAX_PLUGINS"])
        if os.environ.get("STARTERKIT_PLUGIN_TIMEOUT"):
            kwargs["plugin_timeout"] = float(os.environ["STARTERKIT_PLUGIN_TIMEOUT"])
        if os.environ.get("STARTERKIT_LOG_LEVEL"):
            kwargs["log_level"] = os.environ["STARTERKIT_LOG_LEVEL"]
        return cls(**kwargs)
