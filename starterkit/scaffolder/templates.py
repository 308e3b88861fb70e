"""Placeholder rendering for project scaffolding.

Provides the TemplateProcessor class which mirrors a template directory into
a target directory, substituting ``{{TOKEN}}`` placeholders in file contents
and in file/directory names and stripping the ``.template`` suffix.

Substitution is deliberately permissive: tokens whose key is not in the
variable map are left untouched so templates may carry documentation-only
braces.
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path
from typing import Any, Mapping

from starterkit.utils import get_logger

logger = get_logger(__name__)

TEMPLATE_SUFFIX = ".template"

_DIR = "dir"
_FILE = "file"
_SYMLINKED_DIR = "symlinked-dir"
_SPECIAL = "special"


class TemplateRenderError(Exception):
    """Raised when a template file or directory cannot be rendered.

    Attributes:
        source: The template path being rendered when the failure happened.
        target: The output path being written.
        written: Every output file fully written before the failure.
    """

    def __init__(
        self,
        message: str,
        source: Path,
        target: Path,
        written: list[Path] | None = None,
    ) -> None:
        self.source = source
        self.target = target
        self.written = list(written or [])
        super().__init__(message)


# ---------------------------------------------------------------------------
# TemplateProcessor
# ---------------------------------------------------------------------------


class TemplateProcessor:
    """Renders ``{{TOKEN}}`` templates from files and directory trees.

    The processor holds no state between calls: each render is a function of
    (source, target, variables) only.
    """

    # -- Placeholder substitution ------------------------------------------

    def replace_placeholders(self, content: str, variables: Mapping[str, Any]) -> str:
        """Replace every ``{{KEY}}`` whose key is in *variables*.

        All keys are substituted in a single pass, so text coming from a
        substituted value is never substituted again.
        """
        if not variables:
            return content
        pattern = re.compile(
            r"\{\{(" + "|".join(re.escape(str(key)) for key in variables) + r")\}\}"
        )
        return pattern.sub(lambda match: str(variables[match.group(1)]), content)

    def render_entry_name(self, name: str, variables: Mapping[str, Any]) -> str:
        """Return the output name for a template entry.

        Strips a trailing ``.template`` and substitutes placeholders.  A
        rendered name may not introduce path separators or climb out of its
        directory.

        Raises:
            ValueError: If the rendered name is not a single path segment.
        """
        if name.endswith(TEMPLATE_SUFFIX) and len(name) > len(TEMPLATE_SUFFIX):
            name = name[: -len(TEMPLATE_SUFFIX)]
        rendered = self.replace_placeholders(name, variables)
        if (
            not rendered
            or rendered in (".", "..")
            or "/" in rendered
            or "\\" in rendered
            or os.sep in rendered
        ):
            raise ValueError(f"Template entry {name!r} renders to an invalid name {rendered!r}")
        return rendered

    # -- File rendering ----------------------------------------------------

    async def process_template_file(
        self,
        source: str | Path,
        target: str | Path,
        variables: Mapping[str, Any],
    ) -> Path:
        """Render a single text template from *source* into *target*.

        Parent directories of *target* are created as needed.

        Returns:
            The written target path.

        Raises:
            TemplateRenderError: If the source cannot be read as UTF-8 text or
                the target cannot be written.
        """
        source_path = Path(source)
        target_path = Path(target)
        try:
            content = await asyncio.to_thread(source_path.read_text, encoding="utf-8")
            rendered = self.replace_placeholders(content, variables)
            await asyncio.to_thread(_write_file, target_path, rendered)
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateRenderError(
                f"Cannot render {source_path} -> {target_path}: {exc}",
                source_path,
                target_path,
            ) from exc
        logger.debug("Rendered %s -> %s", source_path, target_path)
        return target_path

    # -- Tree rendering ----------------------------------------------------

    async def process_template_directory(
        self,
        source: str | Path,
        target: str | Path,
        variables: Mapping[str, Any],
    ) -> list[Path]:
        """Recursively mirror *source* into *target*, rendering every file.

        Entries are visited in directory-listing order.  Symlinked
        directories and special files are skipped; symlinked files are
        rendered like regular files.  Every file is fully written before
        this coroutine returns.

        Returns:
            Every written file path.

        Raises:
            TemplateRenderError: On the first failure.  ``written`` on the
                error lists the files produced before it.
        """
        source_dir = Path(source)
        target_dir = Path(target)
        try:
            entries = await asyncio.to_thread(_list_entries, source_dir)
            await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise TemplateRenderError(
                f"Cannot render directory {source_dir} -> {target_dir}: {exc}",
                source_dir,
                target_dir,
            ) from exc

        written: list[Path] = []
        for name, kind in entries:
            entry_source = source_dir / name
            if kind == _SYMLINKED_DIR:
                logger.warning("Skipping symlinked template directory %s", entry_source)
                continue
            if kind == _SPECIAL:
                logger.debug("Skipping special file %s", entry_source)
                continue

            try:
                entry_target = target_dir / self.render_entry_name(name, variables)
            except ValueError as exc:
                raise TemplateRenderError(str(exc), entry_source, target_dir, written) from exc

            try:
                if kind == _DIR:
                    written.extend(
                        await self.process_template_directory(entry_source, entry_target, variables)
                    )
                else:
                    written.append(
                        await self.process_template_file(entry_source, entry_target, variables)
                    )
            except TemplateRenderError as exc:
                exc.written = written + exc.written
                raise

        return written


# ---------------------------------------------------------------------------
# Case helpers (used to derive template variables)
# ---------------------------------------------------------------------------


def to_pascal_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[^A-Za-z0-9]+", value.lstrip("0123456789"))
    pascal = "".join(word[:1].upper() + word[1:] for word in parts if word)
    return pascal.lstrip("0123456789")


def to_snake_case(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    snake = re.sub(r"[^A-Za-z0-9]+", "_", s2).strip("_").lower()
    return snake.lstrip("0123456789_")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _list_entries(directory: Path) -> list[tuple[str, str]]:
    """Synchronous helper: classify the entries of *directory*."""
    entries: list[tuple[str, str]] = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.is_symlink():
                if entry.is_dir():
                    kind = _SYMLINKED_DIR
                elif entry.is_file():
                    kind = _FILE
                else:
                    kind = _SPECIAL
            elif entry.is_dir(follow_symlinks=False):
                kind = _DIR
            elif entry.is_file(follow_symlinks=False):
                kind = _FILE
            else:
                kind = _SPECIAL
            entries.append((entry.name, kind))
    return entries


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
