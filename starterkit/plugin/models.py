"""Pydantic v2 models for the plugin system.

Defines the data exchanged between the kit and its plugins: plugin metadata,
the project templates a plugin exposes, generation requests and results,
health reports and interactive questions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TemplateCategory(str, Enum):
    """Broad kind of project a template produces."""
    CLI = "cli"
    WEB = "web"
    API = "api"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    MCP_SERVER = "mcp-server"
    LIBRARY = "library"
    TOOL = "tool"
    OTHER = "other"


class RequirementType(str, Enum):
    """What kind of prerequisite a template needs."""
    RUNTIME = "runtime"
    TOOL = "tool"
    DEPENDENCY = "dependency"


class ConfigOptionType(str, Enum):
    """Value type of a template configuration option."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"


class QuestionType(str, Enum):
    """Interactive question kinds supported by the plugin UI."""
    INPUT = "input"
    CONFIRM = "confirm"
    LIST = "list"
    CHECKBOX = "checkbox"


# ---------------------------------------------------------------------------
# Plugin metadata
# ---------------------------------------------------------------------------

class PluginDependency(BaseModel):
    """A declared dependency on another plugin (recorded, never resolved)."""
    plugin_id: str = Field(..., description="Id of the plugin depended upon")
    version_range: str = Field(default="*", description="Accepted version range")
    required: bool = Field(default=True)


class PluginMetadata(BaseModel):
    """Identity and description of a plugin. ``id`` is globally unique."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    description: str = Field(default="")
    author: str = Field(default="")
    license: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[PluginDependency] = Field(default_factory=list)
    minimum_kit_version: Optional[str] = None


# ---------------------------------------------------------------------------
# Project templates
# ---------------------------------------------------------------------------

class TemplateRequirement(BaseModel):
    """A prerequisite that must be installed to use a generated project."""
    type: RequirementType
    name: str
    version_range: Optional[str] = None
    required: bool = True
    install_instructions: Optional[str] = None


class ConfigChoice(BaseModel):
    """One selectable value of a ``select``/``multiselect`` option."""
    value: str
    label: str
    description: Optional[str] = None


class ValidationRule(BaseModel):
    """Constraints on a configuration option's value."""
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None


class ConfigOption(BaseModel):
    """A user-tunable option a template understands."""
    name: str
    type: ConfigOptionType
    description: str = ""
    default_value: Any = None
    required: bool = False
    choices: list[ConfigChoice] = Field(default_factory=list)
    validation: Optional[ValidationRule] = None


class ProjectTemplate(BaseModel):
    """A template exposed by a plugin. The owning plugin is its source of truth."""
    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    category: TemplateCategory = TemplateCategory.OTHER
    template_path: str = Field(..., description="Directory holding the template tree")
    requirements: list[TemplateRequirement] = Field(default_factory=list)
    config_options: list[ConfigOption] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Generation request / result
# ---------------------------------------------------------------------------

class ScaffoldOptions(BaseModel):
    """A generation request."""
    target_path: str = Field(..., description="Directory to generate into")
    project_name: str
    project_type: str
    options: dict[str, Any] = Field(default_factory=dict)
    environment: Optional[dict[str, str]] = None


class NextStep(BaseModel):
    """A human-actionable follow-up after generation."""
    title: str
    description: str = ""
    command: Optional[str] = None
    required: bool = False


class ScaffoldResult(BaseModel):
    """Outcome of a generation. A failed result always carries an ``error``."""
    success: bool
    generated_files: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _failure_has_error(self) -> "ScaffoldResult":
        if not self.success and not (self.error and self.error.strip()):
            raise ValueError("A failed ScaffoldResult must carry a non-empty error")
        return self


class HealthCheckResult(BaseModel):
    """Health report of a single plugin."""
    healthy: bool
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Interactive questions
# ---------------------------------------------------------------------------

class UIChoice(BaseModel):
    """A choice offered by a ``list`` or ``checkbox`` question."""
    name: str
    value: Any = None
    checked: bool = False

    @model_validator(mode="after")
    def _value_defaults_to_name(self) -> "UIChoice":
        if self.value is None:
            self.value = self.name
        return self


class UIQuestion(BaseModel):
    """A question asked through :class:`~starterkit.plugin.context.PluginUI`.

    ``validate`` returns ``True`` or an error message; ``when`` receives the
    answers collected so far and decides whether the question is asked.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    type: QuestionType = QuestionType.INPUT
    name: str
    message: str
    default: Any = None
    choices: list[UIChoice] = Field(default_factory=list)
    validate_answer: Optional[Callable[[Any], Any]] = Field(default=None, alias="validate")
    when: Optional[Callable[[dict[str, Any]], bool]] = None
