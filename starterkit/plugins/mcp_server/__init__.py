"""Model Context Protocol server project template."""

from __future__ import annotations

from typing import Any

from starterkit.plugin.builtin import TemplateDirectoryPlugin
from starterkit.plugin.models import (
    ConfigChoice,
    ConfigOption,
    ConfigOptionType,
    NextStep,
    PluginMetadata,
    RequirementType,
    ScaffoldOptions,
    TemplateCategory,
    TemplateRequirement,
    ValidationRule,
)


class McpServerPlugin(TemplateDirectoryPlugin):
    metadata = PluginMetadata(
        id="mcp-server",
        name="MCP Server Template",
        version="1.0.0",
        description="TypeScript Model Context Protocol servers",
        author="AI Driven Dev Starter Kit",
        license="MIT",
        tags=["mcp", "typescript", "node", "server"],
        minimum_kit_version="1.0.0",
    )

    template_id = "mcp-server"
    template_name = "MCP Server"
    template_description = "A Model Context Protocol server in TypeScript"
    category = TemplateCategory.MCP_SERVER
    required_entries = ("package.json.template", "src")
    requirements = [
        TemplateRequirement(
            type=RequirementType.RUNTIME,
            name="Node.js",
            version_range=">=18.0.0",
            install_instructions="Install Node.js from https://nodejs.org",
        ),
        TemplateRequirement(
            type=RequirementType.TOOL,
            name="npm",
            version_range=">=8.0.0",
            install_instructions="Installed together with Node.js",
        ),
        TemplateRequirement(
            type=RequirementType.DEPENDENCY,
            name="@modelcontextprotocol/sdk",
            version_range=">=1.0.0",
            install_instructions="Installed automatically by npm install",
        ),
    ]
    config_options = [
        ConfigOption(
            name="server_name",
            type=ConfigOptionType.STRING,
            description="Name the server announces to clients",
            default_value="my-mcp-server",
            required=True,
            validation=ValidationRule(pattern=r"^[a-z0-9-]+$", min=3, max=50),
        ),
        ConfigOption(
            name="include_example_tools", type=ConfigOptionType.BOOLEAN,
            description="Include an example tool", default_value=True,
        ),
        ConfigOption(
            name="include_example_resources", type=ConfigOptionType.BOOLEAN,
            description="Include an example resource", default_value=True,
        ),
        ConfigOption(
            name="auth_required", type=ConfigOptionType.BOOLEAN,
            description="Require authentication", default_value=False,
        ),
        ConfigOption(
            name="log_level",
            type=ConfigOptionType.SELECT,
            description="Default log level",
            default_value="info",
            choices=[
                ConfigChoice(value=level, label=level.upper())
                for level in ("debug", "info", "warn", "error")
            ],
        ),
    ]

    def extra_variables(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        server_name = options.options.get("server_name") or options.project_name
        return {
            "MCP_SERVER_NAME": str(server_name),
            "LOG_LEVEL": str(settings.get("log_level", "info")),
            "INCLUDE_EXAMPLE_TOOLS": "true" if settings.get("include_example_tools") else "false",
            "INCLUDE_EXAMPLE_RESOURCES": (
                "true" if settings.get("include_example_resources") else "false"
            ),
            "AUTH_REQUIRED": "true" if settings.get("auth_required") else "false",
        }

    def next_steps(self, options: ScaffoldOptions, settings: dict[str, Any]) -> list[NextStep]:
        steps = super().next_steps(options, settings)
        steps += [
            NextStep(title="Install dependencies", command="npm install", required=True),
            NextStep(title="Configure the environment", command="cp .env.example .env", required=True),
            NextStep(title="Build the server", command="npm run build", required=True),
            NextStep(
                title="Initialise a git repository",
                command='git init && git add . && git commit -m "Initial commit"',
            ),
        ]
        if settings.get("auth_required"):
            steps.append(NextStep(
                title="Configure authentication",
                description="Set the credentials the server expects in .env",
                required=True,
            ))
        return steps


plugin = McpServerPlugin()
