"""Shared base for plugins that render a bundled template directory.

A first-party plugin is a package holding a ``templates/`` tree and a
subclass of :class:`TemplateDirectoryPlugin` that declares its template
(id, requirements, config options), its extra variables and its next steps.
"""

from __future__ import annotations

import inspect
from datetime import date
from pathlib import Path
from typing import Any, ClassVar

from starterkit.plugin.base import Plugin
from starterkit.plugin.context import PluginContext
from starterkit.plugin.models import (
    ConfigOption,
    ConfigOptionType,
    HealthCheckResult,
    NextStep,
    PluginMetadata,
    ProjectTemplate,
    ScaffoldOptions,
    ScaffoldResult,
    TemplateCategory,
    TemplateRequirement,
)
from starterkit.scaffolder.templates import TemplateRenderError, to_pascal_case, to_snake_case
from starterkit.scaffolder.verifier import ProjectVerifier
from starterkit.validator import generate_slug_from_name

DEFAULT_AUTHOR = "Your Name"

_SCHEMA_TYPES = {
    ConfigOptionType.STRING: "string",
    ConfigOptionType.NUMBER: "number",
    ConfigOptionType.BOOLEAN: "boolean",
    ConfigOptionType.SELECT: "string",
    ConfigOptionType.MULTISELECT: "array",
}


class TemplateDirectoryPlugin(Plugin):
    """Renders ``<package>/templates`` into the requested target directory.

    Subclasses set the class attributes and may override
    :meth:`extra_variables`, :meth:`extra_files` and :meth:`next_steps`.
    """

    metadata: ClassVar[PluginMetadata]
    template_id: ClassVar[str]
    template_name: ClassVar[str]
    template_description: ClassVar[str] = ""
    category: ClassVar[TemplateCategory] = TemplateCategory.OTHER
    requirements: ClassVar[list[TemplateRequirement]] = []
    config_options: ClassVar[list[ConfigOption]] = []
    # Entries (relative to the template directory) a healthy install must have.
    required_entries: ClassVar[tuple[str, ...]] = ()

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root else Path(inspect.getfile(type(self))).parent
        self.context: PluginContext | None = None

    @property
    def template_path(self) -> Path:
        return self.root / "templates"

    # -- Lifecycle ---------------------------------------------------------

    async def initialize(self, context: PluginContext) -> None:
        self.context = context
        if not await context.file_system.exists(self.template_path):
            context.logger.warn(
                "Template directory is missing", {"templatePath": str(self.template_path)}
            )
        context.logger.debug(f"{self.metadata.name} v{self.metadata.version} initialised")

    async def cleanup(self) -> None:
        if self.context is not None:
            self.context.logger.debug(f"{self.metadata.name} cleaned up")
        self.context = None

    # -- Templates ---------------------------------------------------------

    def get_project_templates(self) -> list[ProjectTemplate]:
        return [
            ProjectTemplate(
                id=self.template_id,
                name=self.template_name,
                description=self.template_description,
                category=self.category,
                template_path=str(self.template_path),
                requirements=list(self.requirements),
                config_options=list(self.config_options),
            )
        ]

    def resolve_options(self, options: ScaffoldOptions) -> dict[str, Any]:
        """Return the request's options with config-option defaults filled in."""
        resolved = {
            option.name: option.default_value
            for option in self.config_options
            if option.default_value is not None
        }
        resolved.update(options.options)
        return resolved

    def template_variables(self, options: ScaffoldOptions) -> dict[str, str]:
        """Build the ``{{TOKEN}}`` map for a generation request."""
        settings = self.resolve_options(options)
        name = options.project_name
        variables = {
            "PROJECT_NAME": name,
            "PROJECT_SLUG": generate_slug_from_name(name) or "project",
            "PROJECT_MODULE": to_snake_case(name) or "app",
            "PROJECT_CLASS_NAME": to_pascal_case(name) or "App",
            "PROJECT_DESCRIPTION": str(
                settings.get("description")
                or f"{name} - {self.template_name} generated by AI Driven Dev Starter Kit"
            ),
            "AUTHOR": str(settings.get("author") or DEFAULT_AUTHOR),
            "DATE": date.today().isoformat(),
            "KIT_VERSION": self.context.kit_version if self.context else "",
        }
        variables.update(self.extra_variables(options, settings))
        return variables

    def extra_variables(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        return {}

    def extra_files(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        """Optional files (relative path -> content) generated after rendering."""
        return {}

    def next_steps(self, options: ScaffoldOptions, settings: dict[str, Any]) -> list[NextStep]:
        return [
            NextStep(
                title="Enter the project directory",
                description="Move into the generated project",
                command=f"cd {options.target_path}",
                required=True,
            ),
            NextStep(
                title="Complete PRD.md",
                description="Describe the product requirements in detail",
                required=True,
            ),
        ]

    # -- Generation --------------------------------------------------------

    async def generate_scaffold(
        self,
        template: ProjectTemplate,
        options: ScaffoldOptions,
        context: PluginContext,
    ) -> ScaffoldResult:
        """Render the template, then the optional extra files.

        A rendering failure yields ``success=False`` and lists the files
        written before it.  A failed extra file only adds a warning, as does
        every problem the post-generation verification finds.
        """
        progress = context.user_interface.show_progress(f"Generating {template.name} project...")
        settings = self.resolve_options(options)
        variables = self.template_variables(options)

        try:
            written = await context.template_processor.process_template_directory(
                template.template_path, options.target_path, variables
            )
        except TemplateRenderError as exc:
            progress.fail(f"{template.name} generation failed")
            context.logger.error("Template rendering failed", {"error": str(exc)})
            return ScaffoldResult(
                success=False,
                generated_files=[str(path) for path in exc.written],
                error=str(exc),
            )

        generated = [str(path) for path in written]
        warnings: list[str] = []
        extras = self.extra_files(options, settings)
        if extras:
            progress.update("Applying project specific configuration...")
        for relative, content in extras.items():
            target = Path(options.target_path) / relative
            try:
                await context.file_system.write_file(target, content)
            except OSError as exc:
                warnings.append(f"Could not generate {relative}: {exc}")
                continue
            generated.append(str(target))

        verification = await ProjectVerifier(template.id, options.target_path).verify(generated)
        warnings.extend(verification.problems)

        progress.succeed(f"{template.name} project generated")
        return ScaffoldResult(
            success=True,
            generated_files=generated,
            warnings=warnings,
            next_steps=self.next_steps(options, settings),
        )

    # -- Optional capabilities ---------------------------------------------

    def get_config_schema(self) -> dict[str, Any]:
        """Describe the config options as a JSON-schema object."""
        properties: dict[str, Any] = {}
        for option in self.config_options:
            prop: dict[str, Any] = {
                "type": _SCHEMA_TYPES[ConfigOptionType(option.type)],
                "description": option.description,
            }
            if option.default_value is not None:
                prop["default"] = option.default_value
            if option.choices:
                values = [choice.value for choice in option.choices]
                if option.type == ConfigOptionType.MULTISELECT:
                    prop["items"] = {"type": "string", "enum": values}
                else:
                    prop["enum"] = values
            properties[option.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [option.name for option in self.config_options if option.required],
        }

    async def health_check(self, context: PluginContext) -> HealthCheckResult:
        details: dict[str, Any] = {"templatePath": str(self.template_path)}
        exists = await context.file_system.exists(self.template_path)
        details["templateExists"] = exists
        if not exists:
            return HealthCheckResult(
                healthy=False, message="Template directory not found", details=details
            )

        missing = [
            entry for entry in self.required_entries
            if not await context.file_system.exists(self.template_path / entry)
        ]
        if missing:
            details["missing"] = missing
            return HealthCheckResult(
                healthy=False, message="Template entries are missing", details=details
            )
        return HealthCheckResult(
            healthy=True, message=f"{self.metadata.name} plugin is healthy", details=details
        )
