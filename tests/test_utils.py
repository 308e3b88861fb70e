"""Unit tests for utility functions (starterkit.utils).

Tests cover:
- get_logger / setup_logging
- load_json / save_json (use tmp_path)
- Rich output helpers
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler
from rich.progress import Progress

from starterkit.utils import (
    ROOT_LOGGER_NAME,
    console,
    create_progress,
    get_logger,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
    setup_logging,
)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    @pytest.mark.unit
    def test_get_logger_attaches_single_rich_handler(self):
        get_logger("starterkit.a")
        get_logger("starterkit.b")
        root = logging.getLogger(ROOT_LOGGER_NAME)
        handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1

    @pytest.mark.unit
    def test_child_logger_name(self):
        assert get_logger("starterkit.plugin.manager").name == "starterkit.plugin.manager"

    @pytest.mark.unit
    def test_setup_logging_sets_level(self):
        root = setup_logging("debug")
        try:
            assert root.level == logging.DEBUG
        finally:
            setup_logging("INFO")


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


class TestJsonIO:
    @pytest.mark.unit
    def test_load_json_dict(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text('{"a": 1}', encoding="utf-8")
        assert load_json(path) == {"a": 1}

    @pytest.mark.unit
    def test_load_json_rejects_non_object(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_json(path)

    @pytest.mark.unit
    def test_load_json_invalid(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_json(path)

    @pytest.mark.unit
    def test_load_json_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_pretty_and_creates_parents(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "out.json"
        await save_json({"name": "kit", "tags": ["x"]}, path)
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert '\n  "name": "kit"' in text
        assert json.loads(text) == {"name": "kit", "tags": ["x"]}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_keeps_unicode(self, tmp_path: Path):
        path = tmp_path / "u.json"
        await save_json({"name": "テンプレート"}, path)
        assert "テンプレート" in path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    @pytest.mark.unit
    def test_print_helpers_render_text(self):
        with console.capture() as capture:
            print_success("done [ok]")
            print_error("broken")
            print_warning("careful")
        output = capture.get()
        assert "done [ok]" in output
        assert "broken" in output
        assert "careful" in output

    @pytest.mark.unit
    def test_summary_table_from_dict(self):
        with console.capture() as capture:
            print_summary_table({"templates": "4"}, title="Stats")
        output = capture.get()
        assert "Stats" in output
        assert "templates" in output

    @pytest.mark.unit
    def test_summary_table_from_rows(self):
        with console.capture() as capture:
            print_summary_table([("1", "cd app", "x")], title="Steps", columns=("#", "Step", "Cmd"))
        assert "cd app" in capture.get()

    @pytest.mark.unit
    def test_create_progress(self):
        assert isinstance(create_progress(), Progress)
