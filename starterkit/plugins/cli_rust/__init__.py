"""Rust command-line tool project template."""

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
from starterkit.scaffolder.templates import to_snake_case

_CRATES = {
    "clap": 'clap = { version = "4", features = ["derive"] }',
    "tokio": 'tokio = { version = "1", features = ["full"] }',
    "async-std": 'async-std = "1"',
    "anyhow": 'anyhow = "1"',
    "thiserror": 'thiserror = "1"',
    "serde": 'serde = { version = "1", features = ["derive"] }',
    "json": 'serde_json = "1"',
    "toml": 'toml = "0.8"',
    "yaml": 'serde_yaml = "0.9"',
    "logging": 'log = "0.4"\nenv_logger = "0.11"',
}


class CliRustPlugin(TemplateDirectoryPlugin):
    metadata = PluginMetadata(
        id="cli-rust",
        name="Rust CLI Tool",
        version="1.0.0",
        description="Command-line tools written in Rust",
        author="AI Driven Dev Starter Kit",
        license="MIT",
        tags=["cli", "rust", "clap"],
        minimum_kit_version="1.0.0",
    )

    template_id = "cli-rust"
    template_name = "Rust CLI Tool"
    template_description = "A Rust command-line tool using clap"
    category = TemplateCategory.CLI
    required_entries = ("Cargo.toml.template", "src")
    requirements = [
        TemplateRequirement(
            type=RequirementType.RUNTIME,
            name="Rust",
            version_range=">=1.70.0",
            install_instructions="Install Rust from https://rustup.rs",
        ),
        TemplateRequirement(
            type=RequirementType.TOOL,
            name="cargo",
            version_range=">=1.70.0",
            install_instructions="Installed together with Rust",
        ),
    ]
    config_options = [
        ConfigOption(
            name="async_runtime",
            type=ConfigOptionType.SELECT,
            description="Async runtime",
            default_value="none",
            choices=[
                ConfigChoice(value="none", label="None", description="Synchronous only"),
                ConfigChoice(value="tokio", label="Tokio"),
                ConfigChoice(value="async-std", label="async-std"),
            ],
        ),
        ConfigOption(
            name="error_handling",
            type=ConfigOptionType.SELECT,
            description="Error handling crate",
            default_value="anyhow",
            choices=[
                ConfigChoice(value="anyhow", label="anyhow"),
                ConfigChoice(value="thiserror", label="thiserror"),
                ConfigChoice(value="std", label="Standard library only"),
            ],
        ),
        ConfigOption(
            name="serialization",
            type=ConfigOptionType.MULTISELECT,
            description="Serialization formats",
            default_value=["json"],
            choices=[
                ConfigChoice(value="json", label="JSON"),
                ConfigChoice(value="toml", label="TOML"),
                ConfigChoice(value="yaml", label="YAML"),
            ],
        ),
        ConfigOption(
            name="logging", type=ConfigOptionType.BOOLEAN,
            description="Include log and env_logger", default_value=True,
        ),
        ConfigOption(
            name="testing", type=ConfigOptionType.BOOLEAN,
            description="Include integration tests", default_value=True,
        ),
        ConfigOption(
            name="benchmarking", type=ConfigOptionType.BOOLEAN,
            description="Include criterion benchmarks", default_value=False,
        ),
    ]

    def cargo_dependencies(self, settings: dict[str, Any]) -> list[str]:
        crates = [_CRATES["clap"]]
        runtime = settings.get("async_runtime")
        if runtime in _CRATES:
            crates.append(_CRATES[runtime])
        errors = settings.get("error_handling")
        if errors in _CRATES:
            crates.append(_CRATES[errors])
        formats = [f for f in settings.get("serialization") or [] if f in _CRATES]
        if formats:
            crates.append(_CRATES["serde"])
            crates.extend(_CRATES[f] for f in formats)
        if settings.get("logging"):
            crates.append(_CRATES["logging"])
        return crates

    def extra_variables(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        package = to_snake_case(options.project_name).replace("_", "-") or "app"
        return {
            "PACKAGE_NAME": package,
            "STRUCT_NAME": package.title().replace("-", ""),
            "CARGO_DEPENDENCIES": "\n".join(self.cargo_dependencies(settings)),
            "ASYNC_RUNTIME": str(settings.get("async_runtime", "none")),
            "ERROR_HANDLING": str(settings.get("error_handling", "anyhow")),
        }

    def extra_files(self, options: ScaffoldOptions, settings: dict[str, Any]) -> dict[str, str]:
        files: dict[str, str] = {}
        if settings.get("testing"):
            package = self.extra_variables(options, settings)["PACKAGE_NAME"]
            files["tests/cli.rs"] = (
                "use std::process::Command;\n\n"
                "#[test]\n"
                "fn prints_help() {\n"
                f'    let output = Command::new(env!("CARGO_BIN_EXE_{package}"))\n'
                '        .arg("--help")\n'
                "        .output()\n"
                '        .expect("binary runs");\n'
                "    assert!(output.status.success());\n"
                "}\n"
            )
        if settings.get("benchmarking"):
            files["benches/main.rs"] = (
                "use criterion::{criterion_group, criterion_main, Criterion};\n\n"
                "fn bench(c: &mut Criterion) {\n"
                '    c.bench_function("noop", |b| b.iter(|| 1 + 1));\n'
                "}\n\n"
                "criterion_group!(benches, bench);\n"
                "criterion_main!(benches);\n"
            )
        return files

    def next_steps(self, options: ScaffoldOptions, settings: dict[str, Any]) -> list[NextStep]:
        steps = super().next_steps(options, settings)
        steps += [
            NextStep(title="Check the Rust toolchain", command="rustc --version && cargo --version"),
            NextStep(title="Build the project", command="cargo build", required=True),
            NextStep(title="Run the tests", command="cargo test"),
            NextStep(title="Run the application", command="cargo run -- --help"),
            NextStep(
                title="Initialise a git repository",
                command='git init && git add . && git commit -m "Initial commit"',
            ),
        ]
        if settings.get("benchmarking"):
            steps.append(NextStep(title="Run the benchmarks", command="cargo bench"))
        return steps


plugin = CliRustPlugin()
