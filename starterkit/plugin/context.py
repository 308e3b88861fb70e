"""Capabilities injected into every plugin.

A :class:`PluginContext` bundles everything a plugin may use: a leveled
logger, a scoped filesystem API, a JSON-backed key-value config store, the
template processor and a small user-interface surface (prompts, messages and
progress spinners).  Plugins never receive raw native APIs beyond these.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Iterable

from rich.markup import escape
from rich.prompt import Confirm, Prompt

from starterkit import KIT_VERSION
from starterkit.plugin.models import QuestionType, UIQuestion
from starterkit.scaffolder.templates import TemplateProcessor
from starterkit.utils import console, get_logger, load_json, save_json

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE_NAME = ".ai-driven-dev-config.json"


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------


class PluginLogger:
    """Leveled logger that appends structured metadata as a JSON suffix."""

    def __init__(self, name: str = "starterkit.plugins") -> None:
        self._logger = get_logger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, meta: Any = None) -> None:
        if meta is not None:
            message = f"{message} {json.dumps(meta, default=str, ensure_ascii=False)}"
        self._logger.log(level, message)

    def debug(self, message: str, meta: Any = None) -> None:
        self._log(logging.DEBUG, message, meta)

    def info(self, message: str, meta: Any = None) -> None:
        self._log(logging.INFO, message, meta)

    def warn(self, message: str, meta: Any = None) -> None:
        self._log(logging.WARNING, message, meta)

    warning = warn

    def error(self, message: str, meta: Any = None) -> None:
        self._log(logging.ERROR, message, meta)


# ---------------------------------------------------------------------------
# File system
# ---------------------------------------------------------------------------


class PluginFileSystem:
    """The filesystem operations available to plugins.

    Every method runs the blocking call in a worker thread.
    """

    async def exists(self, path: str | Path) -> bool:
        return await asyncio.to_thread(os.path.exists, path)

    async def read_file(self, path: str | Path, encoding: str = "utf-8") -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding=encoding)

    async def write_file(self, path: str | Path, content: str, encoding: str = "utf-8") -> None:
        """Write *content*, creating parent directories as needed."""
        await asyncio.to_thread(_write_text, Path(path), content, encoding)

    async def ensure_dir(self, path: str | Path) -> None:
        await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)

    async def copy(self, source: str | Path, destination: str | Path) -> None:
        """Copy a file or a whole directory tree (merging into *destination*)."""
        await asyncio.to_thread(_copy, Path(source), Path(destination))

    async def remove(self, path: str | Path) -> None:
        """Remove a file or directory tree. Missing paths are ignored."""
        await asyncio.to_thread(_remove, Path(path))

    async def read_dir(self, path: str | Path) -> list[str]:
        """Return the entry names of a directory, sorted."""
        return sorted(await asyncio.to_thread(os.listdir, path))


def _write_text(path: Path, content: str, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding=encoding)


def _copy(source: Path, destination: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, destination, dirs_exist_ok=True)
    else:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


# ---------------------------------------------------------------------------
# Config store
# ---------------------------------------------------------------------------


class PluginConfigStore:
    """Flat key-value store persisted as one JSON object.

    The whole file is loaded on construction and rewritten on every
    :meth:`set` and :meth:`delete`.  There is no locking, so concurrent
    writers to the same file lose updates (last writer wins).

    Args:
        config_file: Location of the JSON file.  Defaults to the
            ``PLUGIN_CONFIG_FILE`` environment variable, then
            ``./.ai-driven-dev-config.json``.
    """

    def __init__(self, config_file: str | Path | None = None) -> None:
        if config_file is None:
            config_file = os.environ.get("PLUGIN_CONFIG_FILE") or (
                Path.cwd() / DEFAULT_CONFIG_FILE_NAME
            )
        self.config_file = Path(config_file)
        self._values: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.config_file.exists():
            return
        try:
            self._values = load_json(self.config_file)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable plugin config %s: %s", self.config_file, exc)
            self._values = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        await save_json(self._values, self.config_file)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        await save_json(self._values, self.config_file)

    def get_all(self) -> dict[str, Any]:
        return dict(self._values)


# ---------------------------------------------------------------------------
# User interface
# ---------------------------------------------------------------------------


class ProgressIndicator:
    """A spinner shown while a long-running step executes."""

    def __init__(self, message: str, enabled: bool = True) -> None:
        self.message = message
        self._status = console.status(escape(message)) if enabled else None
        if self._status is not None:
            self._status.start()

    def update(self, message: str) -> None:
        self.message = message
        if self._status is not None:
            self._status.update(escape(message))
        else:
            logger.debug(message)

    def succeed(self, message: str | None = None) -> None:
        self.stop()
        console.print(f"[green]✔[/green] {escape(message or self.message)}")

    def fail(self, message: str | None = None) -> None:
        self.stop()
        console.print(f"[red]✖[/red] {escape(message or self.message)}")

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


class PluginUI:
    """Prompts and messages for plugins.

    Args:
        interactive: When ``False`` every question is answered with its
            default and progress spinners are suppressed.
    """

    def __init__(self, interactive: bool = True) -> None:
        self.interactive = interactive

    async def prompt(self, questions: Iterable[UIQuestion | dict[str, Any]]) -> dict[str, Any]:
        """Ask *questions* in order and return ``{name: answer}``.

        Raises:
            ValueError: In non-interactive mode, if a default answer fails
                the question's ``validate`` callback.
        """
        answers: dict[str, Any] = {}
        for raw in questions:
            question = raw if isinstance(raw, UIQuestion) else UIQuestion.model_validate(raw)
            if question.when is not None and not question.when(dict(answers)):
                continue
            if self.interactive:
                answers[question.name] = await asyncio.to_thread(self._ask, question)
            else:
                answer = _default_answer(question)
                outcome = _run_validate(question, answer)
                if outcome is not True:
                    raise ValueError(f"{question.name}: {outcome}")
                answers[question.name] = answer
        return answers

    def _ask(self, question: UIQuestion) -> Any:
        while True:
            answer = self._ask_once(question)
            outcome = _run_validate(question, answer)
            if outcome is True:
                return answer
            console.print(f"[red]{escape(str(outcome))}[/red]")

    def _ask_once(self, question: UIQuestion) -> Any:
        default = _default_answer(question)
        if question.type == QuestionType.CONFIRM:
            return Confirm.ask(question.message, default=bool(default), console=console)
        if question.type == QuestionType.LIST:
            names = [choice.name for choice in question.choices]
            default_name = next(
                (c.name for c in question.choices if c.value == default), names[0] if names else None
            )
            picked = Prompt.ask(
                question.message, choices=names, default=default_name, console=console
            )
            return next(c.value for c in question.choices if c.name == picked)
        if question.type == QuestionType.CHECKBOX:
            listing = ", ".join(choice.name for choice in question.choices)
            default_names = ",".join(c.name for c in question.choices if c.value in default)
            raw = Prompt.ask(
                f"{question.message} ({listing}; comma separated)",
                default=default_names,
                console=console,
            )
            picked = {part.strip() for part in raw.split(",") if part.strip()}
            return [c.value for c in question.choices if c.name in picked]
        return Prompt.ask(
            question.message,
            default=None if default is None else str(default),
            console=console,
        )

    def show_info(self, message: str) -> None:
        console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def show_warning(self, message: str) -> None:
        console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def show_error(self, message: str) -> None:
        console.print(f"[red]✖[/red] {escape(message)}")

    def show_progress(self, message: str) -> ProgressIndicator:
        return ProgressIndicator(message, enabled=self.interactive)


def _default_answer(question: UIQuestion) -> Any:
    if question.type == QuestionType.CONFIRM:
        return bool(question.default) if question.default is not None else False
    if question.type == QuestionType.LIST:
        if question.default is not None:
            return question.default
        return question.choices[0].value if question.choices else None
    if question.type == QuestionType.CHECKBOX:
        if question.default is not None:
            return list(question.default)
        return [choice.value for choice in question.choices if choice.checked]
    return "" if question.default is None else question.default


def _run_validate(question: UIQuestion, answer: Any) -> Any:
    if question.validate_answer is None:
        return True
    outcome = question.validate_answer(answer)
    if outcome is True:
        return True
    return outcome or "Invalid answer"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class PluginContext:
    """The dependency bundle handed to plugins.

    Args:
        name: Logger name suffix, typically the plugin id.
        config: Shared config store.  A new store on the default file is
            created when omitted.
        interactive: Whether the UI may prompt the user.
    """

    def __init__(
        self,
        name: str | None = None,
        config: PluginConfigStore | None = None,
        interactive: bool = True,
    ) -> None:
        self.kit_version = KIT_VERSION
        self.logger = PluginLogger(f"starterkit.plugins.{name}" if name else "starterkit.plugins")
        self.file_system = PluginFileSystem()
        self.config = config if config is not None else PluginConfigStore()
        self.template_processor = TemplateProcessor()
        self.user_interface = PluginUI(interactive=interactive)
