"""Scaffold generation facade.

Ties the pieces together for callers such as the CLI: validates the request,
resolves the target directory safely, loads plugins, dispatches generation
and reports the outcome on the console.

Usage::

    async with ScaffoldGenerator(KitConfig.from_env()) as generator:
        result = await generator.generate(
            "api-fastapi", "my-api", "~/projects/my-api", {"database": "postgresql"}
        )
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from starterkit.config import KitConfig
from starterkit.paths import PathExpansionError, safe_expand_path
from starterkit.plugin.base import UnknownTemplateError
from starterkit.plugin.manager import PluginManager
from starterkit.plugin.models import ProjectTemplate, ScaffoldOptions, ScaffoldResult
from starterkit.utils import (
    console,
    get_logger,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)
from starterkit.validator import validate_project_name

logger = get_logger(__name__)


class ScaffoldGenerator:
    """Validates generation requests and routes them to the plugin manager.

    Args:
        config: Kit configuration.
        manager: An existing manager to use.  When omitted, one is created
            from *config* and owned (initialised and shut down) by this
            generator.
        interactive: Passed to a newly created manager.
    """

    def __init__(
        self,
        config: KitConfig | None = None,
        manager: PluginManager | None = None,
        interactive: bool = True,
    ) -> None:
        self.config = config or KitConfig()
        self._owns_manager = manager is None
        self.manager = manager or PluginManager(self.config, interactive=interactive)

    async def __aenter__(self) -> "ScaffoldGenerator":
        await self.manager.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._owns_manager:
            await self.manager.shutdown()

    def list_templates(self) -> list[ProjectTemplate]:
        return self.manager.list_all_templates()

    async def generate(
        self,
        template_id: str,
        project_name: str,
        target_path: str,
        options: dict[str, Any] | None = None,
        force: bool = False,
    ) -> ScaffoldResult:
        """Generate *template_id* into *target_path*.

        Every failure, including invalid input, is returned as
        ``ScaffoldResult(success=False)``.

        Args:
            template_id: Id of a template exposed by a loaded plugin.
            project_name: Project name substituted into the template.
            target_path: Destination directory (``~`` and relative paths
                allowed).  Must resolve to a safe location.
            options: Template-specific options.
            force: Generate into a non-empty existing directory.
        """
        outcome = validate_project_name(project_name)
        if outcome is not True:
            return _failure(str(outcome))

        try:
            target = safe_expand_path(target_path)
        except PathExpansionError as exc:
            return _failure(f"Invalid target path: {exc}")

        problem = _target_problem(Path(target), force)
        if problem:
            return _failure(problem)

        request = ScaffoldOptions(
            target_path=target,
            project_name=project_name,
            project_type=template_id,
            options=dict(options or {}),
        )
        try:
            return await self.manager.generate(template_id, request)
        except UnknownTemplateError as exc:
            return _failure(str(exc))

    def report(self, result: ScaffoldResult) -> None:
        """Print a generation result to the console."""
        if not result.success:
            print_error(f"Generation failed: {result.error}")
            if result.generated_files:
                print_warning(
                    f"{len(result.generated_files)} file(s) were written before the failure "
                    "and left in place"
                )
            return

        print_success(f"Generated {len(result.generated_files)} file(s)")
        for warning in result.warnings:
            print_warning(warning)
        if result.next_steps:
            print_summary_table(
                [
                    (str(index), step.title, step.command or step.description)
                    for index, step in enumerate(result.next_steps, start=1)
                ],
                title="Next steps",
                columns=("#", "Step", "Command"),
            )
        else:
            console.print()


def _target_problem(target: Path, force: bool) -> str | None:
    if not target.exists():
        return None
    if not target.is_dir():
        return f"Target exists and is not a directory: {target}"
    if not force and any(target.iterdir()):
        return f"Target directory is not empty: {target} (use --force to generate anyway)"
    return None


def _failure(message: str) -> ScaffoldResult:
    logger.debug("Generation rejected: %s", message)
    return ScaffoldResult(success=False, error=message)
