"""Unit tests for the capabilities handed to plugins (starterkit.plugin.context).

Tests cover:
- PluginLogger metadata suffix and levels
- PluginFileSystem operations (use tmp_path)
- PluginConfigStore persistence
- PluginUI non-interactive prompting and messages
- PluginContext wiring
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from starterkit import KIT_VERSION
from starterkit.plugin.context import (
    PluginConfigStore,
    PluginContext,
    PluginFileSystem,
    PluginLogger,
    PluginUI,
    ProgressIndicator,
)
from starterkit.plugin.models import UIChoice, UIQuestion
from starterkit.scaffolder.templates import TemplateProcessor
from starterkit.utils import console

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# PluginLogger
# ---------------------------------------------------------------------------


class TestPluginLogger:
    def test_meta_appended_as_json(self, caplog):
        plugin_logger = PluginLogger("starterkit.plugins.demo")
        with caplog.at_level(logging.INFO, logger="starterkit.plugins.demo"):
            plugin_logger.info("Generated", {"files": 3})
        assert 'Generated {"files": 3}' in caplog.text

    def test_levels(self, caplog):
        plugin_logger = PluginLogger("starterkit.plugins.levels")
        with caplog.at_level(logging.DEBUG, logger="starterkit.plugins.levels"):
            plugin_logger.debug("d")
            plugin_logger.warn("w")
            plugin_logger.warning("w2")
            plugin_logger.error("e")
        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.DEBUG, logging.WARNING, logging.WARNING, logging.ERROR]

    def test_message_without_meta_unchanged(self, caplog):
        plugin_logger = PluginLogger("starterkit.plugins.plain")
        with caplog.at_level(logging.INFO, logger="starterkit.plugins.plain"):
            plugin_logger.info("plain")
        assert caplog.records[-1].getMessage() == "plain"


# ---------------------------------------------------------------------------
# PluginFileSystem
# ---------------------------------------------------------------------------


class TestPluginFileSystem:
    @pytest.mark.asyncio
    async def test_write_read_exists(self, tmp_path: Path):
        fs = PluginFileSystem()
        path = tmp_path / "a" / "b.txt"

        assert await fs.exists(path) is False
        await fs.write_file(path, "hello")

        assert await fs.exists(path) is True
        assert await fs.read_file(path) == "hello"

    @pytest.mark.asyncio
    async def test_ensure_dir_and_read_dir(self, tmp_path: Path):
        fs = PluginFileSystem()
        await fs.ensure_dir(tmp_path / "d" / "e")
        await fs.ensure_dir(tmp_path / "d" / "e")
        await fs.write_file(tmp_path / "d" / "z.txt", "")
        await fs.write_file(tmp_path / "d" / "a.txt", "")

        assert await fs.read_dir(tmp_path / "d") == ["a.txt", "e", "z.txt"]

    @pytest.mark.asyncio
    async def test_copy_file_and_tree(self, tmp_path: Path):
        fs = PluginFileSystem()
        (tmp_path / "src" / "sub").mkdir(parents=True)
        (tmp_path / "src" / "sub" / "f.txt").write_text("x", encoding="utf-8")

        await fs.copy(tmp_path / "src", tmp_path / "dst")
        await fs.copy(tmp_path / "src" / "sub" / "f.txt", tmp_path / "single" / "g.txt")

        assert (tmp_path / "dst" / "sub" / "f.txt").read_text(encoding="utf-8") == "x"
        assert (tmp_path / "single" / "g.txt").read_text(encoding="utf-8") == "x"

    @pytest.mark.asyncio
    async def test_remove(self, tmp_path: Path):
        fs = PluginFileSystem()
        (tmp_path / "tree" / "x").mkdir(parents=True)
        (tmp_path / "file.txt").write_text("x", encoding="utf-8")

        await fs.remove(tmp_path / "tree")
        await fs.remove(tmp_path / "file.txt")
        await fs.remove(tmp_path / "missing")

        assert not (tmp_path / "tree").exists()
        assert not (tmp_path / "file.txt").exists()

    @pytest.mark.asyncio
    async def test_read_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            await PluginFileSystem().read_file(tmp_path / "nope.txt")


# ---------------------------------------------------------------------------
# PluginConfigStore
# ---------------------------------------------------------------------------


class TestPluginConfigStore:
    @pytest.mark.asyncio
    async def test_set_get_persist(self, tmp_path: Path):
        path = tmp_path / "cfg.json"
        store = PluginConfigStore(path)

        await store.set("author", "Alice")
        await store.set("nested", {"a": [1, 2]})

        assert store.get("author") == "Alice"
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "author": "Alice",
            "nested": {"a": [1, 2]},
        }
        assert PluginConfigStore(path).get_all() == store.get_all()

    @pytest.mark.asyncio
    async def test_delete_rewrites_file(self, tmp_path: Path):
        path = tmp_path / "cfg.json"
        store = PluginConfigStore(path)
        await store.set("a", 1)
        await store.set("b", 2)

        await store.delete("a")
        await store.delete("missing")

        assert json.loads(path.read_text(encoding="utf-8")) == {"b": 2}

    def test_get_default(self, tmp_path: Path):
        store = PluginConfigStore(tmp_path / "cfg.json")
        assert store.get("nope") is None
        assert store.get("nope", 5) == 5
        assert not (tmp_path / "cfg.json").exists()

    def test_unreadable_file_starts_empty(self, tmp_path: Path, caplog):
        path = tmp_path / "cfg.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            store = PluginConfigStore(path)
        assert store.get_all() == {}
        assert "Ignoring unreadable plugin config" in caplog.text

    def test_env_var_location(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PLUGIN_CONFIG_FILE", str(tmp_path / "env.json"))
        assert PluginConfigStore().config_file == tmp_path / "env.json"

    def test_default_location_in_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("PLUGIN_CONFIG_FILE", raising=False)
        monkeypatch.chdir(tmp_path)
        assert PluginConfigStore().config_file == tmp_path / ".ai-driven-dev-config.json"

    def test_get_all_is_a_copy(self, tmp_path: Path):
        store = PluginConfigStore(tmp_path / "cfg.json")
        store.get_all()["x"] = 1
        assert store.get("x") is None


# ---------------------------------------------------------------------------
# PluginUI
# ---------------------------------------------------------------------------


class TestPluginUINonInteractive:
    @pytest.mark.asyncio
    async def test_defaults_per_question_type(self):
        ui = PluginUI(interactive=False)
        answers = await ui.prompt([
            {"type": "input", "name": "name", "message": "Name?", "default": "demo"},
            {"type": "input", "name": "blank", "message": "Blank?"},
            {"type": "confirm", "name": "docker", "message": "Docker?"},
            {
                "type": "list",
                "name": "db",
                "message": "Database?",
                "choices": [{"name": "PostgreSQL", "value": "postgresql"}, {"name": "SQLite"}],
            },
            {
                "type": "checkbox",
                "name": "features",
                "message": "Features?",
                "choices": [
                    {"name": "auth", "checked": True},
                    {"name": "cors"},
                    {"name": "tests", "checked": True},
                ],
            },
        ])

        assert answers == {
            "name": "demo",
            "blank": "",
            "docker": False,
            "db": "postgresql",
            "features": ["auth", "tests"],
        }

    @pytest.mark.asyncio
    async def test_when_skips_questions(self):
        ui = PluginUI(interactive=False)
        answers = await ui.prompt([
            UIQuestion(type="confirm", name="db", message="DB?", default=False),
            UIQuestion(name="url", message="URL?", default="x", when=lambda a: a["db"]),
            UIQuestion(name="after", message="After?", default="y", when=lambda a: "db" in a),
        ])
        assert answers == {"db": False, "after": "y"}

    @pytest.mark.asyncio
    async def test_validate_accepts_default(self):
        ui = PluginUI(interactive=False)
        question = UIQuestion(
            name="port", message="Port?", default="8000", validate=lambda v: v.isdigit()
        )
        assert await ui.prompt([question]) == {"port": "8000"}

    @pytest.mark.asyncio
    async def test_validate_rejects_default(self):
        ui = PluginUI(interactive=False)
        question = UIQuestion(
            name="port",
            message="Port?",
            default="http",
            validate=lambda v: True if v.isdigit() else "Port must be numeric",
        )
        with pytest.raises(ValueError, match="Port must be numeric"):
            await ui.prompt([question])

    def test_choice_value_defaults_to_name(self):
        assert UIChoice(name="yarn").value == "yarn"

    def test_messages_printed(self):
        ui = PluginUI(interactive=False)
        with console.capture() as capture:
            ui.show_info("info [x]")
            ui.show_warning("warn")
            ui.show_error("err")
        output = capture.get()
        assert "info [x]" in output
        assert "warn" in output
        assert "err" in output

    def test_progress_disabled_when_not_interactive(self):
        progress = PluginUI(interactive=False).show_progress("Working")
        assert isinstance(progress, ProgressIndicator)
        with console.capture() as capture:
            progress.update("Still working")
            progress.succeed()
        assert "Still working" in capture.get()

    def test_progress_fail_message(self):
        progress = ProgressIndicator("Step", enabled=False)
        with console.capture() as capture:
            progress.fail("Step broke")
        assert "Step broke" in capture.get()


# ---------------------------------------------------------------------------
# PluginContext
# ---------------------------------------------------------------------------


class TestPluginContext:
    def test_wiring(self, quiet_context):
        assert quiet_context.kit_version == KIT_VERSION
        assert quiet_context.logger.name == "starterkit.plugins.test"
        assert isinstance(quiet_context.file_system, PluginFileSystem)
        assert isinstance(quiet_context.template_processor, TemplateProcessor)
        assert quiet_context.user_interface.interactive is False

    def test_shared_store(self, tmp_path: Path):
        store = PluginConfigStore(tmp_path / "shared.json")
        first = PluginContext(name="a", config=store)
        second = PluginContext(name="b", config=store)
        assert first.config is second.config
