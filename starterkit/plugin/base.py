"""The plugin contract.

A plugin is any object that provides the required capabilities:

* ``metadata`` -- a :class:`PluginMetadata` (or a mapping with at least
  string ``id``, ``name`` and ``version``),
* ``initialize(context)``,
* ``get_project_templates()``,
* ``generate_scaffold(template, options, context)``.

and optionally any of ``cleanup()``, ``execute_command(command, args,
context)``, ``get_config_schema()`` and ``health_check(context)``.  Callers
must query :func:`supports` before invoking an optional capability.  Every
capability may be a coroutine function or a plain function.

Subclassing :class:`Plugin` is convenient but not required; objects are
checked with :func:`validate_plugin` right after loading.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from starterkit.plugin.models import (
    PluginMetadata,
    ProjectTemplate,
    ScaffoldOptions,
    ScaffoldResult,
)

if TYPE_CHECKING:
    from starterkit.plugin.context import PluginContext

REQUIRED_CAPABILITIES: tuple[str, ...] = (
    "initialize",
    "get_project_templates",
    "generate_scaffold",
)

OPTIONAL_CAPABILITIES: tuple[str, ...] = (
    "cleanup",
    "execute_command",
    "get_config_schema",
    "health_check",
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PluginError(Exception):
    """Base class for plugin failures."""

    def __init__(self, message: str, plugin_id: str | None = None) -> None:
        self.plugin_id = plugin_id
        super().__init__(message)


class PluginLoadError(PluginError):
    """A plugin could not be imported, validated or initialised."""

    def __init__(
        self, message: str, plugin_id: str | None = None, path: str | None = None
    ) -> None:
        self.path = path
        super().__init__(message, plugin_id)


class PluginExecutionError(PluginError):
    """A plugin capability raised while running."""


class UnknownTemplateError(PluginError):
    """No active plugin owns the requested template id."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class Plugin(ABC):
    """Optional base class declaring the required plugin capabilities."""

    metadata: PluginMetadata

    @abstractmethod
    async def initialize(self, context: PluginContext) -> None:
        """Prepare the plugin. Called exactly once before any other capability."""

    @abstractmethod
    def get_project_templates(self) -> list[ProjectTemplate]:
        """Return every template this plugin owns."""

    @abstractmethod
    async def generate_scaffold(
        self,
        template: ProjectTemplate,
        options: ScaffoldOptions,
        context: PluginContext,
    ) -> ScaffoldResult:
        """Render *template* into ``options.target_path``."""


def supports(plugin: Any, capability: str) -> bool:
    """Return ``True`` if *plugin* provides the callable *capability*."""
    return callable(getattr(plugin, capability, None))


async def call_capability(plugin: Any, capability: str, *args: Any) -> Any:
    """Invoke a plugin capability, awaiting the result when it is awaitable."""
    result = getattr(plugin, capability)(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def validate_plugin(plugin: Any, source: str | None = None) -> PluginMetadata:
    """Check that *plugin* satisfies the contract and return its metadata.

    Raises:
        PluginLoadError: If the metadata is missing or malformed, or a
            required capability is absent.
    """
    raw = getattr(plugin, "metadata", None)
    if raw is None:
        raise PluginLoadError("Plugin has no metadata", path=source)

    if isinstance(raw, PluginMetadata):
        metadata = raw
    else:
        fields = raw if isinstance(raw, dict) else getattr(raw, "__dict__", {})
        for key in ("id", "name", "version"):
            if not isinstance(fields.get(key), str) or not fields.get(key):
                raise PluginLoadError(
                    f"Plugin metadata field '{key}' must be a non-empty string", path=source
                )
        try:
            metadata = PluginMetadata.model_validate(fields)
        except ValidationError as exc:
            raise PluginLoadError(
                f"Invalid plugin metadata: {exc}", plugin_id=fields.get("id"), path=source
            ) from exc

    missing = [name for name in REQUIRED_CAPABILITIES if not supports(plugin, name)]
    if missing:
        raise PluginLoadError(
            f"Plugin '{metadata.id}' is missing required capabilities: {', '.join(missing)}",
            plugin_id=metadata.id,
            path=source,
        )
    return metadata
