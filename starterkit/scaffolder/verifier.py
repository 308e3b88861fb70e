"""Post-generation checks for a scaffolded project.

Provides the ProjectVerifier class which inspects a freshly generated tree
and reports what a user would trip over first:

- files every project of a given type needs (README.md, manifests, entry
  points) that are missing
- ``{{TOKEN}}`` placeholders that survived rendering
- manifests (package.json, tsconfig*.json, Cargo.toml) that do not parse or
  lack their basic fields

Problems are reported, never raised; the generated files stay on disk.
"""

from __future__ import annotations

import asyncio
import json
import re
import tomllib
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field

from starterkit.utils import get_logger

logger = get_logger(__name__)

LEFTOVER_TOKEN = re.compile(r"\{\{[A-Z][A-Z0-9_]*\}\}")

COMMON_REQUIRED_FILES: tuple[str, ...] = ("README.md",)

REQUIRED_FILES: dict[str, tuple[str, ...]] = {
    "api-fastapi": ("requirements.txt",),
    "cli-rust": ("Cargo.toml", "src/main.rs"),
    "mcp-server": ("package.json", "src/index.ts"),
    "web-nextjs": ("package.json",),
}

_PACKAGE_JSON_FIELDS = ("name", "version", "scripts")
_CARGO_PACKAGE_FIELDS = ("name", "version")


class VerificationResult(BaseModel):
    """Outcome of :meth:`ProjectVerifier.verify`."""

    checked_files: int = 0
    missing_files: list[str] = Field(default_factory=list)
    leftover_tokens: list[str] = Field(default_factory=list)
    problems: list[str] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.problems


# ---------------------------------------------------------------------------
# ProjectVerifier
# ---------------------------------------------------------------------------


class ProjectVerifier:
    """Checks a generated project tree for the given project type.

    Unknown project types only get the common checks.
    """

    def __init__(self, project_type: str, target_path: str | Path) -> None:
        self.project_type = project_type
        self.target_path = Path(target_path)

    @property
    def required_files(self) -> tuple[str, ...]:
        return COMMON_REQUIRED_FILES + REQUIRED_FILES.get(self.project_type, ())

    async def verify(self, generated_files: Iterable[str | Path] | None = None) -> VerificationResult:
        """Run every check over the target directory.

        Args:
            generated_files: Files to scan for leftover placeholders.  Defaults
                to every regular file under the target.
        """
        result = VerificationResult()
        files = (
            [Path(path) for path in generated_files]
            if generated_files is not None
            else await asyncio.to_thread(self._walk)
        )

        for relative in self.required_files:
            if not (self.target_path / relative).is_file():
                result.missing_files.append(relative)
                result.problems.append(f"Required file is missing: {relative}")

        for path in files:
            result.checked_files += 1
            try:
                content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Not scanning %s: %s", path, exc)
                continue
            for token in sorted(set(LEFTOVER_TOKEN.findall(content))):
                entry = f"{self._display(path)}: {token}"
                result.leftover_tokens.append(entry)
                result.problems.append(f"Unreplaced placeholder in {entry}")
            result.problems.extend(self._check_manifest(path, content))

        if result.problems:
            logger.warning(
                "Verification of %s found %d problem(s)", self.target_path, len(result.problems)
            )
        else:
            logger.debug("Verified %s (%d files)", self.target_path, result.checked_files)
        return result

    # -- Manifests ---------------------------------------------------------

    def _check_manifest(self, path: Path, content: str) -> list[str]:
        name = self._display(path)
        if path.name == "package.json":
            return self._check_package_json(name, content)
        if path.name.startswith("tsconfig") and path.suffix == ".json":
            try:
                json.loads(content)
            except json.JSONDecodeError as exc:
                return [f"{name}: invalid JSON ({exc})"]
            return []
        if path.name == "Cargo.toml":
            return self._check_cargo_toml(name, content)
        return []

    def _check_package_json(self, name: str, content: str) -> list[str]:
        try:
            manifest = json.loads(content)
        except json.JSONDecodeError as exc:
            return [f"{name}: invalid JSON ({exc})"]
        if not isinstance(manifest, dict):
            return [f"{name}: expected a JSON object"]
        problems = [
            f"{name}: missing field '{field}'"
            for field in _PACKAGE_JSON_FIELDS
            if not manifest.get(field)
        ]
        scripts = manifest.get("scripts")
        if self.project_type == "mcp-server" and isinstance(scripts, dict) and "build" not in scripts:
            problems.append(f"{name}: an MCP server needs a 'build' script")
        return problems

    def _check_cargo_toml(self, name: str, content: str) -> list[str]:
        try:
            manifest = tomllib.loads(content)
        except tomllib.TOMLDecodeError as exc:
            return [f"{name}: invalid TOML ({exc})"]
        package = manifest.get("package")
        if not isinstance(package, dict):
            return [f"{name}: missing [package] table"]
        return [
            f"{name}: missing package field '{field}'"
            for field in _CARGO_PACKAGE_FIELDS
            if field not in package
        ]

    # -- Helpers -----------------------------------------------------------

    def _walk(self) -> list[Path]:
        if not self.target_path.is_dir():
            return []
        return sorted(path for path in self.target_path.rglob("*") if path.is_file())

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.target_path).as_posix()
        except ValueError:
            return str(path)
