"""Command-line interface for the Starter Kit.

Usage::

    starterkit templates
    starterkit generate api-fastapi my-api --target ~/projects/my-api -O database=postgresql
    starterkit registry list --source builtin
    starterkit registry add my-template --source local --path ./my-template
    starterkit health
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from starterkit import __version__
from starterkit.config import KitConfig
from starterkit.generator import ScaffoldGenerator
from starterkit.plugin.manager import PluginManager
from starterkit.scaffolder.registry import RegistryError, TemplateRegistry
from starterkit.utils import (
    console,
    create_progress,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_templates(args: argparse.Namespace, config: KitConfig) -> int:
    async with PluginManager(config, interactive=False) as manager:
        templates = manager.list_all_templates()
        if not templates:
            print_warning("No templates available")
            return 1
        print_summary_table(
            [
                (t.id, t.name, t.category.value, manager.get_template_owner(t.id) or "")
                for t in templates
            ],
            title="Available templates",
            columns=("Id", "Name", "Category", "Plugin"),
        )
        for path, reason in manager.failures.items():
            print_warning(f"Plugin skipped ({path}): {reason}")
    return 0


async def _cmd_generate(args: argparse.Namespace, config: KitConfig) -> int:
    try:
        options = _parse_options(args.option)
    except ValueError as exc:
        print_error(str(exc))
        return 1

    target = args.target or f"./{args.project_name}"
    async with ScaffoldGenerator(config, interactive=not args.non_interactive) as generator:
        result = await generator.generate(
            args.template, args.project_name, target, options, force=args.force
        )
        generator.report(result)
    return 0 if result.success else 1


async def _cmd_registry(args: argparse.Namespace, config: KitConfig) -> int:
    registry = TemplateRegistry(config.registry_dir)
    try:
        if args.registry_command == "list":
            templates = await registry.list_templates(
                source=args.source, project_type=args.project_type, tag=args.tag
            )
            print_summary_table(
                [
                    (t.name, t.version, t.source, t.project_type or "", ", ".join(t.tags or []))
                    for t in templates
                ],
                title=f"Registered templates ({len(templates)})",
                columns=("Name", "Version", "Source", "Type", "Tags"),
            )
        elif args.registry_command == "add":
            entry = await registry.add_template({
                "name": args.name,
                "version": args.version,
                "description": args.description,
                "author": args.author,
                "source": args.source,
                "path": str(Path(args.path).expanduser().resolve()) if args.path else None,
                "url": args.url,
                "project_type": args.project_type,
                "tags": args.tag or None,
            })
            print_success(f"Registered template '{entry.name}'")
        elif args.registry_command == "remove":
            await registry.remove_template(args.name)
            print_success(f"Removed template '{args.name}'")
        elif args.registry_command == "stats":
            stats = await registry.get_stats()
            rows = [("total", str(stats.total))]
            rows += [(f"source: {k}", str(v)) for k, v in sorted(stats.by_source.items())]
            rows += [(f"type: {k}", str(v)) for k, v in sorted(stats.by_project_type.items())]
            print_summary_table(rows, title="Registry statistics", columns=("Group", "Count"))
    except RegistryError as exc:
        print_error(str(exc))
        return 1
    return 0


async def _cmd_health(args: argparse.Namespace, config: KitConfig) -> int:
    async with PluginManager(config, interactive=False) as manager:
        with create_progress() as progress:
            progress.add_task("Checking plugin health...", total=None)
            results = await manager.health_check(args.plugin)
    if not results:
        print_warning("No plugins to check")
        return 1
    print_summary_table(
        [
            (plugin_id, "healthy" if r.healthy else "UNHEALTHY", r.message)
            for plugin_id, r in results.items()
        ],
        title="Plugin health",
        columns=("Plugin", "Status", "Message"),
    )
    return 0 if all(r.healthy for r in results.values()) else 1


_COMMANDS = {
    "templates": _cmd_templates,
    "generate": _cmd_generate,
    "registry": _cmd_registry,
    "health": _cmd_health,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_options(pairs: list[str] | None) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a dict, decoding JSON literals."""
    options: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid option '{pair}', expected key=value")
        try:
            value: Any = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        options[key.strip()] = value
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="starterkit",
        description="AI Driven Dev Starter Kit -- plugin driven project scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  starterkit templates\n"
            "  starterkit generate mcp-server my-server --target ~/work/my-server\n"
            "  starterkit generate api-fastapi my-api -O database=postgresql -O testing=false\n"
            "  starterkit registry stats\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--registry-dir", default=None, help="Registry root (default: ~/.ai-dev-kit)")
    parser.add_argument("--plugin-dir", default=None, help="Directory to load plugins from")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("templates", help="List templates provided by plugins")

    gen = sub.add_parser("generate", help="Generate a project from a template")
    gen.add_argument("template", help="Template id (see 'starterkit templates')")
    gen.add_argument("project_name", help="Project name")
    gen.add_argument("--target", "-t", default=None, help="Target directory (default: ./<name>)")
    gen.add_argument(
        "--option", "-O", action="append", default=[], metavar="KEY=VALUE",
        help="Template option; values are parsed as JSON when possible",
    )
    gen.add_argument("--force", action="store_true", help="Allow a non-empty target directory")
    gen.add_argument(
        "--non-interactive", action="store_true", help="Never prompt; use defaults"
    )

    reg = sub.add_parser("registry", help="Manage the template registry")
    reg_sub = reg.add_subparsers(dest="registry_command", required=True)

    reg_list = reg_sub.add_parser("list", help="List registered templates")
    reg_list.add_argument("--source", default=None)
    reg_list.add_argument("--type", dest="project_type", default=None)
    reg_list.add_argument("--tag", default=None)

    reg_add = reg_sub.add_parser("add", help="Register a template")
    reg_add.add_argument("name")
    reg_add.add_argument("--source", choices=("local", "git", "npm"), default="local")
    reg_add.add_argument("--path", default=None)
    reg_add.add_argument("--url", default=None)
    reg_add.add_argument("--version", default="1.0.0")
    reg_add.add_argument("--description", default="")
    reg_add.add_argument("--author", default="")
    reg_add.add_argument("--type", dest="project_type", default=None)
    reg_add.add_argument("--tag", action="append", default=[])

    reg_remove = reg_sub.add_parser("remove", help="Remove a registered template")
    reg_remove.add_argument("name")

    reg_sub.add_parser("stats", help="Show registry statistics")

    health = sub.add_parser("health", help="Run plugin health checks")
    health.add_argument("plugin", nargs="?", default=None, help="Only check this plugin")

    return parser


def _config_from_args(args: argparse.Namespace) -> KitConfig:
    config = KitConfig.from_env()
    updates: dict[str, Any] = {}
    if args.registry_dir:
        updates["registry_dir"] = Path(args.registry_dir).expanduser()
    if args.plugin_dir:
        updates["plugin_dir"] = Path(args.plugin_dir).expanduser()
    if args.log_level:
        updates["log_level"] = args.log_level
    return KitConfig.model_validate({**config.model_dump(), **updates})


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``starterkit`` and ``python -m starterkit``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _config_from_args(args)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    setup_logging(config.log_level)

    code = asyncio.run(_COMMANDS[args.command](args, config))
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
