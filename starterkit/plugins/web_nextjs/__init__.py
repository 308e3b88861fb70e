"""Next.js web application project template."""

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
)


class WebNextjsPlugin(TemplateDirectoryPlugin):
    metadata = PluginMetadata(
        id="web-nextjs",
        name="Next.js Web Application",
        version="1.0.0",
        description="Web applications built on Next.js and React",
        author="AI Driven Dev Starter Kit",
        license="MIT",
        tags=["web", "nextjs", "react", "typescript"],
        minimum_kit_version="1.0.0",
    )

    template_id = "web-nextjs"
    template_name = "Next.js Web Application"
    template_description = "A Next.js application with the App Router and TypeScript"
    category = TemplateCategory.WEB
    required_entries = ("package.json.template", "app")
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
    ]
    config_options = [
        ConfigOption(
            name="ui_framework",
            type=ConfigOptionType.SELECT,
            description="UI framework",
            default_value="tailwindcss",
            required=True,
            choices=[
                ConfigChoice(value="tailwindcss", label="Tailwind CSS"),
                ConfigChoice(value="chakra-ui", label="Chakra UI"),
                ConfigChoice(value="mui", label="Material UI"),
                ConfigChoice(value="none", label="None"),
            ],
        ),
        ConfigOption(
            name="state_management",
            type=ConfigOptionType.SELECT,
            description="State management library",
            default_value="zustand",
            choices=[
                ConfigChoice(value="zustand", label="Zustand"),
                ConfigChoice(value="redux", label="Redux Toolkit"),
                ConfigChoice(value="none", label="None"),
            ],
        ),
        ConfigOption(
            name="authentication", type=ConfigOptionType.BOOLEAN,
            description="Include NextAuth.js", default_value=False,
        ),
        ConfigOption(
            name="database",
            type=ConfigOptionType.SELECT,
            description="Database access",
            default_value="none",
            choices=[
                ConfigChoice(value="none", label="None"),
                ConfigChoice(value="prisma", label="Prisma"),
            ],
        ),
        ConfigOption(
            name="testing", type=ConfigOptionType.BOOLEAN,
            description="Include Jest and Testing Library", default_value=True,
        ),
    ]

    def extra_variables(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        return {
            "UI_FRAMEWORK": str(settings.get("ui_framework", "tailwindcss")),
            "STATE_MANAGEMENT": str(settings.get("state_management", "zustand")),
            "DATABASE": str(settings.get("database", "none")),
            "AUTHENTICATION": "true" if settings.get("authentication") else "false",
        }

    def next_steps(self, options: ScaffoldOptions, settings: dict[str, Any]) -> list[NextStep]:
        steps = super().next_steps(options, settings)
        steps += [
            NextStep(title="Install dependencies", command="npm install", required=True),
            NextStep(
                title="Configure the environment",
                command="cp .env.local.example .env.local",
                required=True,
            ),
            NextStep(title="Start the development server", command="npm run dev"),
            NextStep(
                title="Initialise a git repository",
                command='git init && git add . && git commit -m "Initial commit"',
            ),
        ]
        if settings.get("database") == "prisma":
            steps.append(NextStep(
                title="Set up Prisma",
                command="npx prisma generate && npx prisma db push",
                required=True,
            ))
        return steps


plugin = WebNextjsPlugin()
