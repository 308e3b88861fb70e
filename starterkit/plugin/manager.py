"""Plugin discovery, lifecycle and dispatch.

The :class:`PluginManager` discovers plugin modules under a plugin
directory, imports and validates them, initialises each one with its own
:class:`~starterkit.plugin.context.PluginContext`, aggregates the project
templates they expose and dispatches generation requests to the owning
plugin.

Per-plugin lifecycle::

    DISCOVERED -> LOADED -> INITIALIZED -> ACTIVE -> CLEANED_UP
                    \\            \\
                     +-> FAILED   +-> FAILED

Failures are isolated per plugin: a plugin that cannot be imported,
validated or initialised (or that exceeds the plugin limit or the
initialisation timeout) is skipped and the reason kept in
:attr:`PluginManager.failures`; its siblings load normally.
"""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any, Awaitable, Optional

from pydantic import ValidationError

from starterkit.config import KitConfig
from starterkit.paths import PathExpansionError, safe_expand_path
from starterkit.plugin.base import (
    PluginError,
    PluginExecutionError,
    PluginLoadError,
    UnknownTemplateError,
    call_capability,
    supports,
    validate_plugin,
)
from starterkit.plugin.context import PluginConfigStore, PluginContext
from starterkit.plugin.models import (
    HealthCheckResult,
    PluginMetadata,
    ProjectTemplate,
    ScaffoldOptions,
    ScaffoldResult,
)
from starterkit.utils import get_logger

logger = get_logger(__name__)

PLUGIN_EXPORT_NAME = "plugin"


class PluginState(str, Enum):
    """Lifecycle state of a plugin."""
    DISCOVERED = "discovered"
    LOADED = "loaded"
    INITIALIZED = "initialized"
    ACTIVE = "active"
    CLEANED_UP = "cleaned_up"
    FAILED = "failed"


@dataclass
class PluginRegistration:
    """Book-keeping for one registered plugin."""

    plugin: Any
    metadata: PluginMetadata
    source: str
    context: PluginContext
    state: PluginState = PluginState.LOADED
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    templates: list[ProjectTemplate] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state == PluginState.ACTIVE


@dataclass(frozen=True)
class TemplateConflict:
    """A template id declared again by a later plugin and therefore rejected."""

    template_id: str
    plugin_id: str
    owner_id: str


class PluginManager:
    """Loads plugins and routes generation requests to them.

    Args:
        config: Kit configuration (plugin directory, limits and timeouts).
        interactive: Passed to every plugin's UI; ``False`` answers prompts
            with their defaults.

    Usable as an async context manager::

        async with PluginManager(KitConfig()) as manager:
            templates = manager.list_all_templates()
    """

    def __init__(self, config: KitConfig | None = None, interactive: bool = True) -> None:
        self.config = config or KitConfig()
        self.interactive = interactive
        self.config_store = PluginConfigStore(self.config.plugin_config_file)
        self.failures: dict[str, str] = {}
        self.template_conflicts: list[TemplateConflict] = []
        self._plugins: dict[str, PluginRegistration] = {}
        self._templates: dict[str, tuple[str, ProjectTemplate]] = {}
        self._abandoned: set[asyncio.Future[Any]] = set()
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load every discovered plugin when ``auto_load`` is enabled. Idempotent."""
        if self._initialized:
            return
        self._initialized = True
        if self.config.auto_load:
            await self.load_all_plugins()

    async def __aenter__(self) -> "PluginManager":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    def discover_plugins(self) -> list[Path]:
        """Return plugin module paths under the plugin directory, in name order.

        A plugin is a ``*.py`` file or a package directory (with
        ``__init__.py``) whose name does not start with ``_`` or ``.``.
        """
        plugin_dir = Path(self.config.plugin_dir)
        if not plugin_dir.is_dir():
            logger.warning("Plugin directory not found: %s", plugin_dir)
            return []

        found: list[Path] = []
        for entry in sorted(plugin_dir.iterdir(), key=lambda p: p.name):
            if entry.name.startswith(("_", ".")):
                continue
            if entry.is_file() and entry.suffix == ".py":
                found.append(entry)
            elif entry.is_dir() and (entry / "__init__.py").is_file():
                found.append(entry)
        logger.debug("Discovered %d plugin(s) in %s", len(found), plugin_dir)
        return found

    async def load_all_plugins(self) -> list[str]:
        """Load every discovered plugin, isolating failures.

        Returns:
            Ids of the plugins that became active.
        """
        loaded: list[str] = []
        for path in self.discover_plugins():
            try:
                metadata = await self.load_plugin(path)
            except PluginLoadError as exc:
                self.failures[str(path)] = str(exc)
                logger.error("Skipping plugin %s: %s", path.name, exc)
                continue
            loaded.append(metadata.id)
        logger.info("Loaded %d plugin(s), %d skipped", len(loaded), len(self.failures))
        return loaded

    async def load_plugin(self, path: str | Path) -> PluginMetadata:
        """Import the plugin module at *path* and register its export.

        Raises:
            PluginLoadError: If the module cannot be imported, has no valid
                export, or registration fails.
        """
        path = Path(path)
        self._check_capacity(str(path))
        module = _import_plugin_module(path)

        export = getattr(module, PLUGIN_EXPORT_NAME, None)
        if export is None:
            raise PluginLoadError(
                f"Module does not export '{PLUGIN_EXPORT_NAME}'", path=str(path)
            )
        if inspect.isclass(export):
            try:
                export = export()
            except Exception as exc:
                raise PluginLoadError(
                    f"Cannot instantiate plugin class {export.__name__}: {exc}", path=str(path)
                ) from exc

        return await self.register_plugin(export, source=str(path))

    async def register_plugin(self, plugin: Any, source: str = "<memory>") -> PluginMetadata:
        """Validate, initialise and activate an already constructed plugin.

        Raises:
            PluginLoadError: If the plugin is malformed, its id is taken, the
                plugin limit is reached, or ``initialize`` fails or times out.
        """
        self._check_capacity(source)
        metadata = validate_plugin(plugin, source)
        if metadata.id in self._plugins:
            raise PluginLoadError(
                f"Plugin id '{metadata.id}' is already registered",
                plugin_id=metadata.id,
                path=source,
            )

        registration = PluginRegistration(
            plugin=plugin,
            metadata=metadata,
            source=source,
            context=PluginContext(
                name=metadata.id, config=self.config_store, interactive=self.interactive
            ),
        )

        try:
            await self._with_timeout(
                call_capability(plugin, "initialize", registration.context),
                self.config.plugin_timeout,
            )
        except asyncio.TimeoutError as exc:
            registration.state = PluginState.FAILED
            raise PluginLoadError(
                f"Plugin '{metadata.id}' initialisation timed out after "
                f"{self.config.plugin_timeout}s",
                plugin_id=metadata.id,
                path=source,
            ) from exc
        except Exception as exc:
            registration.state = PluginState.FAILED
            raise PluginLoadError(
                f"Plugin '{metadata.id}' failed to initialise: {exc}",
                plugin_id=metadata.id,
                path=source,
            ) from exc
        registration.state = PluginState.INITIALIZED
        self._plugins[metadata.id] = registration

        try:
            templates = await call_capability(plugin, "get_project_templates")
            registration.templates = [_coerce_template(t) for t in templates or []]
        except Exception as exc:
            registration.error = str(exc)
            await self._teardown(registration)
            registration.state = PluginState.FAILED
            raise PluginLoadError(
                f"Plugin '{metadata.id}' returned invalid templates: {exc}",
                plugin_id=metadata.id,
                path=source,
            ) from exc

        self._register_templates(registration)
        registration.state = PluginState.ACTIVE
        logger.info("Loaded plugin %s v%s", metadata.name, metadata.version)
        return metadata

    async def unload_plugin(self, plugin_id: str) -> None:
        """Clean up a plugin and drop it with its templates.

        The plugin is removed even if its ``cleanup`` fails.

        Raises:
            PluginError: If the plugin is unknown or its cleanup failed.
        """
        registration = self._plugins.get(plugin_id)
        if registration is None:
            raise PluginError(f"Plugin not found: {plugin_id}", plugin_id)
        error = await self._teardown(registration)
        if error is not None:
            raise PluginError(f"Plugin '{plugin_id}' cleanup failed: {error}", plugin_id)
        logger.info("Unloaded plugin %s", plugin_id)

    async def shutdown(self) -> list[PluginError]:
        """Tear down every plugin, collecting (not short-circuiting on) failures.

        Returns:
            One error per plugin whose cleanup failed.
        """
        errors: list[PluginError] = []
        for plugin_id in reversed(list(self._plugins)):
            try:
                await self.unload_plugin(plugin_id)
            except PluginError as exc:
                logger.error("Plugin shutdown error (%s): %s", plugin_id, exc)
                errors.append(exc)

        await self._drain_abandoned()
        self._initialized = False
        return errors

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_loaded_plugins(self) -> list[PluginMetadata]:
        return [registration.metadata for registration in self._plugins.values()]

    def get_plugin_info(self, plugin_id: str) -> PluginRegistration | None:
        return self._plugins.get(plugin_id)

    def list_all_templates(self) -> list[ProjectTemplate]:
        """Return the templates of every active plugin, first-registered first."""
        return [template for _, template in self._templates.values()]

    def get_template(self, template_id: str) -> ProjectTemplate | None:
        entry = self._templates.get(template_id)
        return entry[1] if entry else None

    def get_template_owner(self, template_id: str) -> str | None:
        entry = self._templates.get(template_id)
        return entry[0] if entry else None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def generate(
        self, template_id: str, options: ScaffoldOptions | dict[str, Any]
    ) -> ScaffoldResult:
        """Generate a project from *template_id* via its owning plugin.

        ``options.target_path`` is expanded (``~``, relative paths) and must
        resolve to a safe location before the plugin sees it.  An unsafe
        target and failures raised by the plugin are reported as
        ``ScaffoldResult(success=False)``; nothing is retried.

        Raises:
            UnknownTemplateError: If no active plugin owns the template.
        """
        entry = self._templates.get(template_id)
        if entry is None:
            raise UnknownTemplateError(template_id)
        plugin_id, template = entry
        registration = self._active_registration(plugin_id)
        if not isinstance(options, ScaffoldOptions):
            options = ScaffoldOptions.model_validate(options)

        try:
            target = safe_expand_path(options.target_path)
        except PathExpansionError as exc:
            logger.error("Rejected target for '%s': %s", template_id, exc)
            return ScaffoldResult(success=False, error=f"Invalid target path: {exc}")
        options = options.model_copy(update={"target_path": target})

        logger.info("Generating '%s' into %s", template_id, options.target_path)
        try:
            raw = await call_capability(
                registration.plugin, "generate_scaffold", template, options, registration.context
            )
        except Exception as exc:
            logger.error("Plugin '%s' failed generating '%s': %s", plugin_id, template_id, exc)
            written = [str(p) for p in getattr(exc, "written", [])]
            return ScaffoldResult(
                success=False,
                generated_files=written,
                error=str(exc) or type(exc).__name__,
            )

        try:
            result = raw if isinstance(raw, ScaffoldResult) else ScaffoldResult.model_validate(raw)
        except ValidationError as exc:
            logger.error("Plugin '%s' returned an invalid result: %s", plugin_id, exc)
            return ScaffoldResult(
                success=False,
                error=f"Plugin '{plugin_id}' returned an invalid result: {exc}",
            )

        if result.success:
            logger.info("Generated %d file(s) for '%s'", len(result.generated_files), template_id)
        else:
            logger.warning("Generation of '%s' failed: %s", template_id, result.error)
        return result

    async def execute_command(
        self, plugin_id: str, command: str, args: list[str] | None = None
    ) -> Any:
        """Run a plugin's optional ``execute_command`` capability.

        Raises:
            PluginError: If the plugin is unknown or inactive.
            PluginExecutionError: If the plugin lacks the capability or the
                command raised.
        """
        registration = self._active_registration(plugin_id)
        if not supports(registration.plugin, "execute_command"):
            raise PluginExecutionError(
                f"Plugin '{plugin_id}' does not support commands", plugin_id
            )
        try:
            return await call_capability(
                registration.plugin, "execute_command", command, list(args or []),
                registration.context,
            )
        except PluginError:
            raise
        except Exception as exc:
            raise PluginExecutionError(
                f"Command '{command}' failed in plugin '{plugin_id}': {exc}", plugin_id
            ) from exc

    async def get_config_schema(self, plugin_id: str) -> dict[str, Any] | None:
        """Return a plugin's config schema, or ``None`` if it declares none."""
        registration = self._active_registration(plugin_id)
        if not supports(registration.plugin, "get_config_schema"):
            return None
        return await call_capability(registration.plugin, "get_config_schema")

    async def health_check(self, plugin_id: str | None = None) -> dict[str, HealthCheckResult]:
        """Check one plugin (or all of them) within ``health_check_timeout``.

        Plugins without a ``health_check`` capability report their state.
        """
        if plugin_id is None:
            registrations = list(self._plugins.values())
        else:
            registrations = [r for r in (self._plugins.get(plugin_id),) if r is not None]

        results: dict[str, HealthCheckResult] = {}
        for registration in registrations:
            pid = registration.metadata.id
            if not supports(registration.plugin, "health_check"):
                results[pid] = HealthCheckResult(
                    healthy=registration.active,
                    message="Plugin is active" if registration.active else "Plugin is inactive",
                )
                continue
            try:
                raw = await self._with_timeout(
                    call_capability(registration.plugin, "health_check", registration.context),
                    self.config.health_check_timeout,
                )
                results[pid] = (
                    raw if isinstance(raw, HealthCheckResult)
                    else HealthCheckResult.model_validate(raw)
                )
            except asyncio.TimeoutError:
                results[pid] = HealthCheckResult(
                    healthy=False,
                    message=f"Health check timed out after {self.config.health_check_timeout}s",
                )
            except Exception as exc:
                results[pid] = HealthCheckResult(
                    healthy=False,
                    message=f"Health check failed: {exc}",
                    details={"error": str(exc)},
                )
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_capacity(self, source: str) -> None:
        if len(self._plugins) >= self.config.max_plugins:
            raise PluginLoadError(
                f"Maximum number of plugins reached ({self.config.max_plugins})", path=source
            )

    def _active_registration(self, plugin_id: str) -> PluginRegistration:
        registration = self._plugins.get(plugin_id)
        if registration is None:
            raise PluginError(f"Plugin not found: {plugin_id}", plugin_id)
        if not registration.active:
            raise PluginExecutionError(f"Plugin '{plugin_id}' is not active", plugin_id)
        return registration

    def _register_templates(self, registration: PluginRegistration) -> None:
        plugin_id = registration.metadata.id
        for template in registration.templates:
            owner = self._templates.get(template.id)
            if owner is not None:
                conflict = TemplateConflict(template.id, plugin_id, owner[0])
                self.template_conflicts.append(conflict)
                logger.warning(
                    "Template id '%s' from plugin '%s' conflicts with plugin '%s'; ignored",
                    template.id, plugin_id, owner[0],
                )
                continue
            self._templates[template.id] = (plugin_id, template)
            logger.debug("Registered template %s (%s)", template.id, plugin_id)

    async def _teardown(self, registration: PluginRegistration) -> str | None:
        """Run ``cleanup`` once and drop the plugin. Returns the cleanup error, if any."""
        plugin_id = registration.metadata.id
        error: str | None = None
        if supports(registration.plugin, "cleanup"):
            try:
                await self._with_timeout(
                    call_capability(registration.plugin, "cleanup"), self.config.plugin_timeout
                )
            except asyncio.TimeoutError:
                error = f"cleanup timed out after {self.config.plugin_timeout}s"
            except Exception as exc:
                error = str(exc) or type(exc).__name__

        for template_id in [t for t, (owner, _) in self._templates.items() if owner == plugin_id]:
            del self._templates[template_id]
        self._plugins.pop(plugin_id, None)
        registration.state = PluginState.CLEANED_UP
        if error is not None:
            registration.error = error
        return error

    async def _with_timeout(self, awaitable: Awaitable[Any], timeout: float) -> Any:
        """Await *awaitable* for at most *timeout* seconds.

        On timeout the underlying task is abandoned, not cancelled, so a
        plugin is never interrupted mid-I/O.  :meth:`shutdown` gives abandoned
        tasks another ``plugin_timeout`` to finish and only then cancels the
        ones still running.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except asyncio.TimeoutError:
            self._abandoned.add(task)
            task.add_done_callback(self._forget)
            raise

    async def _drain_abandoned(self) -> None:
        pending = set(self._abandoned)
        if pending:
            _, pending = await asyncio.wait(pending, timeout=self.config.plugin_timeout)
        for task in pending:
            logger.warning("Cancelling plugin task still running at shutdown")
            task.cancel()
        self._abandoned.clear()

    def _forget(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Abandoned plugin task failed: %s", task.exception())


# ---------------------------------------------------------------------------
# Module loading helpers
# ---------------------------------------------------------------------------


def _import_plugin_module(path: Path) -> ModuleType:
    """Import a plugin file or package under a private module name."""
    module_name = f"_starterkit_plugin_{path.stem.replace('-', '_')}"
    if path.is_dir():
        spec = importlib.util.spec_from_file_location(
            module_name, path / "__init__.py", submodule_search_locations=[str(path)]
        )
    else:
        spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Cannot import plugin from {path}", path=str(path))

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(f"Failed to import plugin {path.name}: {exc}", path=str(path)) from exc
    return module


def _coerce_template(template: Any) -> ProjectTemplate:
    if isinstance(template, ProjectTemplate):
        return template
    return ProjectTemplate.model_validate(template)
