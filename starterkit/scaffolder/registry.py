"""Template metadata registry.

Keeps the catalog of known templates (builtin and user-registered) in a
single JSON document, ``<registry_dir>/templates/index.json``::

    {
      "version": "1.0.0",
      "lastSync": "2026-01-15T10:30:00+00:00",
      "templates": {"mcp-server": {"name": "mcp-server", ...}}
    }

Every operation reads the whole document and every mutation rewrites it.
There is no locking: two processes mutating the same registry concurrently
can lose an update (last writer wins).  Callers only depend on the public
methods of :class:`TemplateRegistry`, so a locked or transactional store
can replace the file handling without touching them.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from starterkit.utils import get_logger, load_json, save_json

logger = get_logger(__name__)

REGISTRY_FORMAT_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RegistryError(Exception):
    """Raised when the registry cannot be read, written or mutated."""

    def __init__(self, message: str, template_name: str | None = None) -> None:
        self.template_name = template_name
        super().__init__(message)


class TemplateNotFoundError(RegistryError):
    """The named template is not registered."""


class DuplicateTemplateError(RegistryError):
    """A template with the same name is already registered."""


class BuiltinTemplateError(RegistryError):
    """Builtin templates cannot be added, removed or modified."""


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TemplateSource(str, Enum):
    """Where a registered template comes from."""
    BUILTIN = "builtin"
    LOCAL = "local"
    GIT = "git"
    NPM = "npm"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class TemplateMetadata(_CamelModel):
    """A registry entry describing one template."""

    name: str = Field(..., min_length=1)
    version: str
    description: str
    author: str
    source: TemplateSource
    path: Optional[str] = None
    url: Optional[str] = None
    checksum: Optional[str] = None
    last_updated: str = Field(default="")
    project_type: Optional[str] = None
    tags: Optional[list[str]] = None


class TemplateRegistryConfig(_CamelModel):
    """The entire persisted registry document."""

    version: str = REGISTRY_FORMAT_VERSION
    last_sync: str = Field(default="")
    templates: dict[str, TemplateMetadata] = Field(default_factory=dict)


class RegistryStats(BaseModel):
    """Counts of registered templates."""

    total: int
    by_source: dict[str, int]
    by_project_type: dict[str, int]


# ---------------------------------------------------------------------------
# Builtin templates
# ---------------------------------------------------------------------------

_BUILTIN_AUTHOR = "AI Driven Dev Starter Kit"

BUILTIN_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "name": "mcp-server",
        "description": "Model Context Protocol Server template",
        "tags": ["typescript", "node", "mcp"],
    },
    {
        "name": "web-nextjs",
        "description": "Next.js Web Application template",
        "tags": ["typescript", "react", "nextjs", "web"],
    },
    {
        "name": "api-fastapi",
        "description": "FastAPI REST API template",
        "tags": ["python", "fastapi", "api", "rest"],
    },
    {
        "name": "cli-rust",
        "description": "Rust CLI Application template",
        "tags": ["rust", "cli", "clap"],
    },
)


def _builtin_entry(spec: dict[str, Any], timestamp: str) -> TemplateMetadata:
    name = spec["name"]
    return TemplateMetadata(
        name=name,
        version="1.0.0",
        description=spec["description"],
        author=_BUILTIN_AUTHOR,
        source=TemplateSource.BUILTIN,
        path=f"templates/project-structures/{name}",
        last_updated=timestamp,
        project_type=name,
        tags=list(spec["tags"]),
    )


def _next_timestamp(*previous: str) -> str:
    """Return an ISO timestamp no earlier than any of *previous*."""
    now = datetime.now(timezone.utc)
    for value in previous:
        if not value:
            continue
        try:
            earlier = datetime.fromisoformat(value)
        except ValueError:
            continue
        if earlier.tzinfo is None:
            earlier = earlier.replace(tzinfo=timezone.utc)
        if earlier > now:
            now = earlier
    return now.isoformat()


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Registers, looks up and removes template metadata.

    Args:
        registry_dir: Root directory of the registry.  Defaults to
            ``~/.ai-dev-kit``.
    """

    def __init__(self, registry_dir: str | Path | None = None) -> None:
        self.registry_dir = (
            Path(registry_dir).expanduser() if registry_dir else Path.home() / ".ai-dev-kit"
        )

    @property
    def registry_path(self) -> Path:
        return self.registry_dir / "templates" / "index.json"

    @property
    def cache_dir(self) -> Path:
        return self.registry_dir / "template-cache"

    # -- Lifecycle ---------------------------------------------------------

    async def initialize(self) -> None:
        """Create the registry layout and seed the builtin templates.

        Idempotent.  A missing registry file is created with every builtin
        template; an existing one only gains builtin entries it lacks.
        """
        try:
            for directory in (self.registry_dir, self.registry_path.parent, self.cache_dir):
                await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise RegistryError(f"Cannot create registry directories: {exc}") from exc

        if not self.registry_path.exists():
            timestamp = _next_timestamp()
            registry = TemplateRegistryConfig(
                last_sync=timestamp,
                templates={
                    spec["name"]: _builtin_entry(spec, timestamp) for spec in BUILTIN_TEMPLATES
                },
            )
            await self.save_registry(registry)
            logger.info("Initialised template registry at %s", self.registry_path)
            return

        registry = await self._read_registry()
        missing = [spec for spec in BUILTIN_TEMPLATES if spec["name"] not in registry.templates]
        if missing:
            timestamp = _next_timestamp(registry.last_sync)
            for spec in missing:
                registry.templates[spec["name"]] = _builtin_entry(spec, timestamp)
            registry.last_sync = timestamp
            await self.save_registry(registry)
            logger.info("Restored %d builtin template(s)", len(missing))

    # -- Persistence -------------------------------------------------------

    async def load_registry(self) -> TemplateRegistryConfig:
        """Read the registry document, initialising it first if absent.

        Raises:
            RegistryError: If the document cannot be read or parsed.
        """
        if not self.registry_path.exists():
            await self.initialize()
        return await self._read_registry()

    async def _read_registry(self) -> TemplateRegistryConfig:
        try:
            raw = await asyncio.to_thread(load_json, self.registry_path)
            registry = TemplateRegistryConfig.model_validate(raw)
        except (OSError, ValueError, ValidationError) as exc:
            raise RegistryError(f"Failed to load registry {self.registry_path}: {exc}") from exc

        for key, entry in registry.templates.items():
            if key != entry.name:
                raise RegistryError(
                    f"Registry entry {key!r} is named {entry.name!r}", template_name=key
                )
        return registry

    async def save_registry(self, registry: TemplateRegistryConfig) -> None:
        """Write the whole registry document.

        Raises:
            RegistryError: If the document cannot be written.
        """
        data = registry.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            await save_json(data, self.registry_path)
        except OSError as exc:
            raise RegistryError(f"Failed to save registry {self.registry_path}: {exc}") from exc

    # -- Mutations ---------------------------------------------------------

    async def add_template(self, metadata: TemplateMetadata | dict[str, Any]) -> TemplateMetadata:
        """Register a new template.

        Registration is insert-only: an existing name is never overwritten,
        callers must remove it first.

        Returns:
            The stored entry with ``last_updated`` populated.

        Raises:
            DuplicateTemplateError: If the name is already registered.
            BuiltinTemplateError: If the entry claims ``source = builtin``.
        """
        entry = _coerce_metadata(metadata)
        if entry.source == TemplateSource.BUILTIN.value:
            raise BuiltinTemplateError(
                f"Builtin templates cannot be registered: {entry.name}", entry.name
            )

        registry = await self.load_registry()
        if entry.name in registry.templates:
            raise DuplicateTemplateError(
                f"Template '{entry.name}' is already registered", entry.name
            )

        timestamp = _next_timestamp(registry.last_sync)
        stored = entry.model_copy(update={"last_updated": timestamp})
        registry.templates[stored.name] = stored
        registry.last_sync = timestamp
        await self.save_registry(registry)
        logger.info("Registered template '%s'", stored.name)
        return stored

    async def remove_template(self, name: str) -> None:
        """Remove a template and its cache directory.

        Raises:
            TemplateNotFoundError: If the name is not registered.
            BuiltinTemplateError: If the entry is a builtin template.
        """
        registry = await self.load_registry()
        entry = registry.templates.get(name)
        if entry is None:
            raise TemplateNotFoundError(f"Template '{name}' not found", name)
        if entry.source == TemplateSource.BUILTIN.value:
            raise BuiltinTemplateError(f"Builtin template '{name}' cannot be removed", name)

        del registry.templates[name]
        registry.last_sync = _next_timestamp(registry.last_sync)
        await self.save_registry(registry)

        cache_path = self.cache_dir / name
        if cache_path.exists():
            try:
                await asyncio.to_thread(shutil.rmtree, cache_path)
            except OSError as exc:
                raise RegistryError(
                    f"Template '{name}' removed but its cache could not be deleted: {exc}", name
                ) from exc
        logger.info("Removed template '%s'", name)

    async def update_template(self, name: str, updates: dict[str, Any]) -> TemplateMetadata:
        """Merge *updates* into an existing entry and bump ``last_updated``.

        Raises:
            TemplateNotFoundError: If the name is not registered.
            BuiltinTemplateError: If the entry is builtin or the update would
                make it builtin.
            RegistryError: If the update renames the entry or is invalid.
        """
        registry = await self.load_registry()
        entry = registry.templates.get(name)
        if entry is None:
            raise TemplateNotFoundError(f"Template '{name}' not found", name)
        if entry.source == TemplateSource.BUILTIN.value:
            raise BuiltinTemplateError(f"Builtin template '{name}' cannot be modified", name)

        merged = {**entry.model_dump(), **_normalise_update_keys(updates)}
        if merged.get("name") != name:
            raise RegistryError(f"Template '{name}' cannot be renamed", name)
        try:
            candidate = TemplateMetadata.model_validate(merged)
        except ValidationError as exc:
            raise RegistryError(f"Invalid update for template '{name}': {exc}", name) from exc
        if candidate.source == TemplateSource.BUILTIN.value:
            raise BuiltinTemplateError(f"Template '{name}' cannot be made builtin", name)

        timestamp = _next_timestamp(registry.last_sync, entry.last_updated)
        updated = candidate.model_copy(update={"last_updated": timestamp})
        registry.templates[name] = updated
        registry.last_sync = timestamp
        await self.save_registry(registry)
        logger.info("Updated template '%s'", name)
        return updated

    # -- Queries -----------------------------------------------------------

    async def find_template(self, name: str) -> TemplateMetadata | None:
        registry = await self.load_registry()
        return registry.templates.get(name)

    async def exists(self, name: str) -> bool:
        return await self.find_template(name) is not None

    async def list_templates(
        self,
        *,
        source: str | None = None,
        project_type: str | None = None,
        tag: str | None = None,
    ) -> list[TemplateMetadata]:
        """Return templates matching every given filter, sorted by name.

        ``source`` and ``project_type`` match exactly (case-sensitive);
        ``tag`` matches entries whose tag list contains it.
        """
        registry = await self.load_registry()
        templates = list(registry.templates.values())
        if source:
            templates = [t for t in templates if t.source == source]
        if project_type:
            templates = [t for t in templates if t.project_type == project_type]
        if tag:
            templates = [t for t in templates if t.tags and tag in t.tags]
        return sorted(templates, key=lambda t: t.name)

    async def get_stats(self) -> RegistryStats:
        """Count templates in total, by source and by project type."""
        templates = await self.list_templates()
        by_source: dict[str, int] = {}
        by_project_type: dict[str, int] = {}
        for template in templates:
            by_source[template.source] = by_source.get(template.source, 0) + 1
            if template.project_type:
                by_project_type[template.project_type] = (
                    by_project_type.get(template.project_type, 0) + 1
                )
        return RegistryStats(
            total=len(templates), by_source=by_source, by_project_type=by_project_type
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_FIELD_NAMES = {
    to_camel(field_name): field_name for field_name in TemplateMetadata.model_fields
}


def _normalise_update_keys(updates: dict[str, Any]) -> dict[str, Any]:
    """Accept both ``projectType`` and ``project_type`` style keys."""
    return {_FIELD_NAMES.get(key, key): value for key, value in updates.items()}


def _coerce_metadata(metadata: TemplateMetadata | dict[str, Any]) -> TemplateMetadata:
    if isinstance(metadata, TemplateMetadata):
        return metadata
    try:
        return TemplateMetadata.model_validate(metadata)
    except ValidationError as exc:
        name = metadata.get("name") if isinstance(metadata, dict) else None
        raise RegistryError(f"Invalid template metadata: {exc}", name) from exc
