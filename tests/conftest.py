"""Shared pytest fixtures for the Starter Kit test suite.

Provides reusable fixtures for:
- Kit configurations pointing every path at ``tmp_path``
- A quiet, non-interactive PluginContext
- Sample template trees
- Writing throwaway plugin modules into a plugin directory
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from starterkit.config import KitConfig
from starterkit.paths import expand_path
from starterkit.plugin.context import PluginConfigStore, PluginContext


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    """Empty plugin directory."""
    directory = tmp_path / "plugins"
    directory.mkdir()
    return directory


@pytest.fixture
def kit_config(tmp_path: Path, plugin_dir: Path) -> KitConfig:
    """KitConfig whose registry, plugin and config paths all live in tmp_path."""
    return KitConfig(
        registry_dir=tmp_path / "registry",
        plugin_dir=plugin_dir,
        plugin_config_file=tmp_path / "plugin-config.json",
        plugin_timeout=1.0,
        health_check_timeout=0.5,
    )


@pytest.fixture
def bundled_config(tmp_path: Path) -> KitConfig:
    """KitConfig using the bundled first-party plugins."""
    return KitConfig(
        registry_dir=tmp_path / "registry",
        plugin_config_file=tmp_path / "plugin-config.json",
    )


@pytest.fixture
def quiet_context(tmp_path: Path) -> PluginContext:
    """Non-interactive PluginContext with its config file in tmp_path."""
    store = PluginConfigStore(tmp_path / "context-config.json")
    return PluginContext(name="test", config=store, interactive=False)


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_template_dir(tmp_path: Path) -> Path:
    """A small template tree exercising suffixes and placeholder names.

    Layout::

        template/
            README.md.template          "# {{PROJECT_NAME}} ..."
            LICENSE                     plain file, no suffix
            config.json.template
            src/
                {{MODULE}}/
                    __init__.py.template
                    {{MODULE}}_core.py
    """
    root = tmp_path / "template"
    module_dir = root / "src" / "{{MODULE}}"
    module_dir.mkdir(parents=True)
    (root / "README.md.template").write_text(
        "# {{PROJECT_NAME}}\n\nBy {{AUTHOR}}. Docs use {{UNKNOWN}} braces.\n", encoding="utf-8"
    )
    (root / "LICENSE").write_text("MIT License for {{PROJECT_NAME}}\n", encoding="utf-8")
    (root / "config.json.template").write_text(
        '{"name": "{{PROJECT_NAME}}", "module": "{{MODULE}}"}\n', encoding="utf-8"
    )
    (module_dir / "__init__.py.template").write_text(
        '"""{{PROJECT_NAME}} package."""\n', encoding="utf-8"
    )
    (module_dir / "{{MODULE}}_core.py").write_text(
        "NAME = '{{PROJECT_NAME}}'\n", encoding="utf-8"
    )
    return root


@pytest.fixture
def sample_variables() -> dict[str, str]:
    return {"PROJECT_NAME": "demo-app", "MODULE": "demo_app", "AUTHOR": "Alice"}


# ---------------------------------------------------------------------------
# Plugin modules
# ---------------------------------------------------------------------------

@pytest.fixture
def write_plugin(plugin_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing ``<plugin_dir>/<name>.py`` from dedented source."""

    def _write(name: str, source: str) -> Path:
        path = plugin_dir / f"{name}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Generation targets
# ---------------------------------------------------------------------------

@pytest.fixture
def allow_tmp_targets(monkeypatch: pytest.MonkeyPatch) -> None:
    """Let generation targets live under tmp_path.

    tmp_path sits below /tmp, which the target safety check rejects, so
    target resolution is reduced to plain expansion.
    """
    monkeypatch.setattr("starterkit.plugin.manager.safe_expand_path", expand_path)
    monkeypatch.setattr("starterkit.generator.safe_expand_path", expand_path)
