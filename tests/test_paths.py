"""Unit tests for path expansion and safety checks (starterkit.paths).

Tests cover:
- expand_path (home expansion, relative resolution, invalid input)
- is_safe_path (system directories, roots, parent segments, dot-directories)
- safe_expand_path / safe_join
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from starterkit.paths import (
    PathExpansionError,
    expand_path,
    is_safe_path,
    safe_expand_path,
    safe_join,
)

pytestmark = pytest.mark.unit

HOME = os.path.normpath(str(Path.home()))


def _no_home() -> Path:
    raise RuntimeError("home directory unavailable")


# ---------------------------------------------------------------------------
# expand_path
# ---------------------------------------------------------------------------


class TestExpandPath:
    def test_tilde_is_home(self):
        assert expand_path("~") == HOME

    def test_tilde_slash_prefix(self):
        assert expand_path("~/projects/app") == os.path.join(HOME, "projects", "app")

    def test_surrounding_whitespace_trimmed(self):
        assert expand_path("  ~/app  ") == os.path.join(HOME, "app")

    def test_relative_resolves_against_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert expand_path("./my-project") == os.path.join(os.getcwd(), "my-project")

    def test_absolute_is_normalised(self):
        assert expand_path("/opt//kit/./templates/../plugins") == "/opt/kit/plugins"

    @pytest.mark.parametrize("value", ["", "   ", "\t\n"])
    def test_empty_or_blank_raises(self, value):
        with pytest.raises(PathExpansionError) as exc_info:
            expand_path(value)
        assert exc_info.value.original_path == value

    @pytest.mark.parametrize("value", [None, 42, ["~"]])
    def test_non_string_raises(self, value):
        with pytest.raises(PathExpansionError):
            expand_path(value)

    def test_missing_home_raises(self, monkeypatch):
        monkeypatch.setattr(Path, "home", staticmethod(_no_home))
        with pytest.raises(PathExpansionError, match="home directory"):
            expand_path("~/app")

    def test_missing_home_irrelevant_for_absolute(self, monkeypatch):
        monkeypatch.setattr(Path, "home", staticmethod(_no_home))
        assert expand_path("/opt/app") == "/opt/app"


# ---------------------------------------------------------------------------
# is_safe_path
# ---------------------------------------------------------------------------


class TestIsSafePath:
    @pytest.mark.parametrize(
        "path",
        [
            "/etc/passwd",
            "/etc",
            "/bin",
            "/usr/bin/python",
            "/usr/local/sbin/tool",
            "/var/log/app",
            "/tmp/project",
            "/dev/null",
            "/proc/1",
            "/sys/kernel",
        ],
    )
    def test_system_directories_rejected(self, path):
        assert is_safe_path(path) is False

    @pytest.mark.parametrize("path", ["/", "C:\\", "c:/", "D:"])
    def test_roots_rejected(self, path):
        assert is_safe_path(path) is False

    @pytest.mark.parametrize(
        "path",
        [
            "C:\\Windows\\Temp",
            "C:\\Program Files\\App",
            "c:/program files (x86)/app",
            "D:\\tools\\System32\\x",
        ],
    )
    def test_windows_system_paths_rejected(self, path):
        assert is_safe_path(path) is False

    @pytest.mark.parametrize("path", ["../outside", "~/../../etc", "projects/../../up"])
    def test_parent_segments_rejected(self, path):
        assert is_safe_path(path) is False

    def test_parent_segment_that_normalises_away_is_allowed(self, monkeypatch):
        monkeypatch.chdir(Path.home())
        assert is_safe_path("projects/../my-project") is True

    @pytest.mark.parametrize("path", ["~/.ssh", "~/.config", "/opt/app/.git"])
    def test_dot_directory_last_segment_rejected(self, path):
        assert is_safe_path(path) is False

    def test_dot_directory_in_middle_allowed(self):
        assert is_safe_path("~/.config/my-app") is True

    def test_relative_project_path_is_safe(self, monkeypatch):
        monkeypatch.chdir(Path.home())
        assert is_safe_path("./my-project") is True

    @pytest.mark.parametrize("path", ["~/projects/new-app", "/opt/work/app", "/etcetera/app"])
    def test_regular_paths_are_safe(self, path):
        assert is_safe_path(path) is True

    @pytest.mark.parametrize("path", ["", "   ", None])
    def test_invalid_input_is_unsafe(self, path):
        assert is_safe_path(path) is False


# ---------------------------------------------------------------------------
# safe_expand_path / safe_join
# ---------------------------------------------------------------------------


class TestSafeExpandPath:
    def test_returns_expanded_path(self):
        assert safe_expand_path("~/projects/app") == os.path.join(HOME, "projects", "app")

    def test_unsafe_path_raises(self):
        with pytest.raises(PathExpansionError, match="Unsafe") as exc_info:
            safe_expand_path("/etc/app")
        assert exc_info.value.original_path == "/etc/app"

    def test_empty_raises(self):
        with pytest.raises(PathExpansionError):
            safe_expand_path("")


class TestSafeJoin:
    def test_joins_segments_under_home(self):
        assert safe_join("~", "projects", "app") == os.path.join(HOME, "projects", "app")

    def test_tilde_segment_restarts_at_home(self):
        assert safe_join("/opt/work", "~/app") == os.path.join(HOME, "app")

    def test_climbing_segment_rejected(self):
        with pytest.raises(PathExpansionError, match="climbs out"):
            safe_join("~/projects", "../../etc")

    def test_compound_path_rechecked(self):
        with pytest.raises(PathExpansionError, match="not safe"):
            safe_join("/", "etc")

    def test_dot_directory_result_rejected(self):
        with pytest.raises(PathExpansionError):
            safe_join("~", ".ssh")

    def test_empty_segment_rejected(self):
        with pytest.raises(PathExpansionError):
            safe_join("~", "")

    def test_no_segments_rejected(self):
        with pytest.raises(PathExpansionError):
            safe_join()
