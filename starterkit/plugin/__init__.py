"""Starter kit plugin system.

Plugins contribute project templates and know how to generate them.  The
:class:`PluginManager` discovers them, drives their lifecycle and routes
generation requests by template id.
"""

from starterkit.plugin.base import (
    OPTIONAL_CAPABILITIES,
    Plugin,
    PluginError,
    PluginExecutionError,
    PluginLoadError,
    UnknownTemplateError,
    supports,
    validate_plugin,
)
from starterkit.plugin.builtin import TemplateDirectoryPlugin
from starterkit.plugin.context import (
    PluginConfigStore,
    PluginContext,
    PluginFileSystem,
    PluginLogger,
    PluginUI,
    ProgressIndicator,
)
from starterkit.plugin.manager import (
    PluginManager,
    PluginRegistration,
    PluginState,
    TemplateConflict,
)
from starterkit.plugin.models import (
    ConfigChoice,
    ConfigOption,
    ConfigOptionType,
    HealthCheckResult,
    NextStep,
    PluginDependency,
    PluginMetadata,
    ProjectTemplate,
    QuestionType,
    RequirementType,
    ScaffoldOptions,
    ScaffoldResult,
    TemplateCategory,
    TemplateRequirement,
    UIChoice,
    UIQuestion,
    ValidationRule,
)

__all__ = [
    "OPTIONAL_CAPABILITIES",
    "ConfigChoice",
    "ConfigOption",
    "ConfigOptionType",
    "HealthCheckResult",
    "NextStep",
    "Plugin",
    "PluginConfigStore",
    "PluginContext",
    "PluginDependency",
    "PluginError",
    "PluginExecutionError",
    "PluginFileSystem",
    "PluginLoadError",
    "PluginLogger",
    "PluginManager",
    "PluginMetadata",
    "PluginRegistration",
    "PluginState",
    "PluginUI",
    "ProgressIndicator",
    "ProjectTemplate",
    "QuestionType",
    "RequirementType",
    "ScaffoldOptions",
    "ScaffoldResult",
    "TemplateCategory",
    "TemplateConflict",
    "TemplateDirectoryPlugin",
    "TemplateRequirement",
    "UIChoice",
    "UIQuestion",
    "UnknownTemplateError",
    "ValidationRule",
    "supports",
    "validate_plugin",
]
