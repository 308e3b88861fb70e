"""Path expansion and traversal guarding.

Scaffold generation writes and removes whole trees under user control, so
every user-supplied location goes through :func:`safe_expand_path` or
:func:`safe_join` before the filesystem is touched.  The safety check is
conservative: it over-rejects edge cases rather than under-rejects.
"""

from __future__ import annotations

import ntpath
import os
import re
from pathlib import Path

# Unix system trees that must never be a scaffold target (or live under one).
SYSTEM_DIRECTORIES: tuple[str, ...] = (
    "/bin",
    "/sbin",
    "/usr/bin",
    "/usr/sbin",
    "/usr/local/bin",
    "/usr/local/sbin",
    "/etc",
    "/var",
    "/tmp",
    "/dev",
    "/proc",
    "/sys",
)

_WINDOWS_DRIVE_ROOT = re.compile(r"^[a-zA-Z]:[\\/]?$")
_WINDOWS_SYSTEM_TREE = re.compile(
    r"^[a-zA-Z]:[\\/]+(windows|program files|program files \(x86\))([\\/]|$)",
    re.IGNORECASE,
)
_WINDOWS_SYSTEM32 = re.compile(r"[\\/]system32([\\/]|$)", re.IGNORECASE)


class PathExpansionError(Exception):
    """Raised when a path cannot be expanded or is not safe to use."""

    def __init__(self, message: str, original_path: object) -> None:
        self.original_path = original_path
        super().__init__(message)


def _home_directory(original_path: object) -> str:
    try:
        home = str(Path.home())
    except (RuntimeError, KeyError) as exc:
        raise PathExpansionError("Cannot determine the home directory", original_path) from exc
    if not home:
        raise PathExpansionError("Cannot determine the home directory", original_path)
    return home


def expand_path(input_path: str) -> str:
    """Expand *input_path* to a normalised absolute path.

    * ``~`` and ``~/...`` are expanded to the current user's home directory.
    * Relative paths are resolved against the current working directory.
    * Separators and ``.``/``..`` segments are normalised.

    Raises:
        PathExpansionError: If the input is not a string, is empty or
            whitespace-only, or the home directory cannot be determined.
    """
    if not isinstance(input_path, str):
        raise PathExpansionError("No path given", input_path)

    trimmed = input_path.strip()
    if not trimmed:
        raise PathExpansionError("Path must not be empty", input_path)

    if trimmed == "~":
        return os.path.normpath(_home_directory(input_path))
    if trimmed.startswith(("~/", "~\\")):
        home = _home_directory(input_path)
        return os.path.normpath(os.path.join(home, trimmed[2:]))
    return os.path.abspath(trimmed)


def _has_parent_segment(raw_path: str) -> bool:
    normalised = os.path.normpath(raw_path.replace("\\", "/"))
    return ".." in Path(normalised).parts


def _is_filesystem_root(expanded: str) -> bool:
    return os.path.dirname(expanded) == expanded


def _in_system_directory(expanded: str) -> bool:
    posix = expanded.replace("\\", "/")
    return any(posix == sys_dir or posix.startswith(sys_dir + "/") for sys_dir in SYSTEM_DIRECTORIES)


def _is_windows_system_path(raw_path: str) -> bool:
    return bool(
        _WINDOWS_DRIVE_ROOT.match(raw_path)
        or _WINDOWS_SYSTEM_TREE.match(raw_path)
        or _WINDOWS_SYSTEM32.search(raw_path)
    )


def _targets_dot_directory(expanded: str) -> bool:
    name = ntpath.basename(expanded.rstrip("\\/")) if "\\" in expanded else os.path.basename(expanded)
    return name.startswith(".") and name not in (".", "..")


def is_safe_path(file_path: str) -> bool:
    """Return ``True`` if *file_path* is safe to generate into.

    Rejected:
        * paths that still contain a ``..`` segment once normalised,
        * filesystem roots (``/``, ``C:\\``),
        * operating-system directories and anything below them,
        * paths whose last segment is a dot-directory (``~/.ssh``).
    """
    if not isinstance(file_path, str) or not file_path.strip():
        return False

    raw = file_path.strip()
    if _is_windows_system_path(raw):
        return False
    if _has_parent_segment(raw):
        return False

    try:
        expanded = expand_path(raw)
    except PathExpansionError:
        return False

    if _is_filesystem_root(expanded):
        return False
    if _in_system_directory(expanded):
        return False
    if _is_windows_system_path(expanded):
        return False
    if _targets_dot_directory(expanded):
        return False
    return True


def safe_expand_path(input_path: str) -> str:
    """Expand *input_path*, failing if the result is not safe.

    Raises:
        PathExpansionError: If the path is invalid or unsafe.
    """
    expanded = expand_path(input_path)
    if not is_safe_path(input_path):
        raise PathExpansionError(f"Unsafe path: {input_path}", input_path)
    return expanded


def safe_join(*segments: str) -> str:
    """Join path segments and re-check the safety of the combined path.

    The first segment is expanded like :func:`expand_path`; every following
    segment is expanded independently (``~`` restarts at the home directory,
    absolute segments replace what came before) and then resolved in order.
    A segment that climbs out with ``..`` is rejected even when the joined
    result would land somewhere harmless.

    Raises:
        PathExpansionError: If no segments are given, a segment is invalid, or
            the joined path is unsafe.
    """
    if not segments:
        raise PathExpansionError("No paths to join", "")

    joined = expand_path(segments[0])
    for segment in segments[1:]:
        if not isinstance(segment, str) or not segment.strip():
            raise PathExpansionError("Path segment must not be empty", segment)
        if _has_parent_segment(segment.strip()):
            raise PathExpansionError(f"Path segment climbs out of its parent: {segment}", segment)
        trimmed = segment.strip()
        if trimmed == "~" or trimmed.startswith(("~/", "~\\")):
            joined = expand_path(trimmed)
        else:
            joined = os.path.normpath(os.path.join(joined, trimmed))

    if not is_safe_path(joined):
        raise PathExpansionError(
            f"Joined path is not safe: {joined}", " + ".join(str(s) for s in segments)
        )
    return joined
