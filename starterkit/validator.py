"""Input validation and sanitisation for project settings.

Every function here is pure: no I/O and no exceptions.  Single-field
validators return ``True`` or a user-facing error message so interactive
flows can show the message inline; composite validators return a
:class:`ValidationResult` holding every error found, not just the first.
"""

from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

PROJECT_NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200

SUPPORTED_REPOSITORY_HOSTS: tuple[str, ...] = ("github.com",)

TECH_STACK_FIELDS: tuple[str, ...] = (
    "frontend",
    "backend",
    "database",
    "infrastructure",
    "deployment",
    "monitoring",
)

_PROJECT_NAME_PATTERN = re.compile(r"[A-Za-z0-9 _.\-]+")
_PROJECT_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9 _.\-]")
_GITHUB_URL_PATTERN = re.compile(r"https://github\.com/[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+/?")
_GITHUB_REPO_PATTERN = re.compile(r"github\.com[/:]([^/]+)/([^/?#]+)")


class ValidationResult(BaseModel):
    """Aggregated outcome of a multi-field validation."""

    valid: bool = Field(default=True)
    errors: list[str] = Field(default_factory=list)


class RepoInfo(BaseModel):
    """Owner and repository name extracted from a hosting URL."""

    owner: str
    repo: str


# ---------------------------------------------------------------------------
# Single-field validators
# ---------------------------------------------------------------------------


def validate_project_name(name: Any) -> bool | str:
    """Validate a project name: non-empty, at most 50 chars, ``[A-Za-z0-9 _.-]``."""
    if not isinstance(name, str) or not name.strip():
        return "Project name is required"
    if len(name) > PROJECT_NAME_MAX_LENGTH:
        return f"Project name must be at most {PROJECT_NAME_MAX_LENGTH} characters"
    if not _PROJECT_NAME_PATTERN.fullmatch(name):
        return (
            "Project name may only contain letters, digits, spaces, "
            "hyphens, underscores and dots"
        )
    return True


def validate_description(description: Any) -> bool | str:
    """Validate a project description: non-empty, at most 200 chars."""
    if not isinstance(description, str) or not description.strip():
        return "Project description is required"
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
    return True


def _is_supported_host(hostname: str) -> bool:
    host = hostname.lower()
    return any(host == h or host.endswith("." + h) for h in SUPPORTED_REPOSITORY_HOSTS)


def validate_repository_url(url: Any) -> bool | str:
    """Validate a repository URL: parseable and on a supported hosting domain."""
    if not isinstance(url, str) or not url.strip():
        return "Repository URL is required"

    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname or ""
    except ValueError:
        return "Enter a valid URL"
    if not parts.scheme or not parts.netloc or not hostname:
        return "Enter a valid URL"

    if not _is_supported_host(hostname):
        supported = ", ".join(SUPPORTED_REPOSITORY_HOSTS)
        return f"Only repositories hosted on {supported} are supported"
    return True


# ---------------------------------------------------------------------------
# Composite validators
# ---------------------------------------------------------------------------


def validate_tech_stack(tech_stack: Mapping[str, Any] | None) -> ValidationResult:
    """Check that every required tech-stack field is present and non-blank."""
    stack = tech_stack or {}
    errors = []
    for field in TECH_STACK_FIELDS:
        value = stack.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{field} is required")
    return ValidationResult(valid=not errors, errors=errors)


def validate_project_config(config: Mapping[str, Any]) -> ValidationResult:
    """Validate a whole project configuration.

    Checks ``projectName``, ``description`` and ``repositoryUrl`` (snake_case
    keys are accepted too) and, when present, ``techStack``.
    """

    def _get(camel: str, snake: str) -> Any:
        return config.get(camel, config.get(snake, ""))

    errors: list[str] = []
    for check, value in (
        (validate_project_name, _get("projectName", "project_name")),
        (validate_description, _get("description", "description")),
        (validate_repository_url, _get("repositoryUrl", "repository_url")),
    ):
        outcome = check(value)
        if outcome is not True:
            errors.append(outcome)

    tech_stack = config.get("techStack", config.get("tech_stack"))
    if tech_stack:
        errors.extend(validate_tech_stack(tech_stack).errors)

    return ValidationResult(valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Sanitisers
# ---------------------------------------------------------------------------


def sanitize_project_name(name: str) -> str:
    """Strip disallowed characters and truncate to the name length limit."""
    if not isinstance(name, str):
        return ""
    return _PROJECT_NAME_DISALLOWED.sub("", name.strip())[:PROJECT_NAME_MAX_LENGTH]


def sanitize_description(description: str) -> str:
    """Trim and truncate to the description length limit."""
    if not isinstance(description, str):
        return ""
    return description.strip()[:DESCRIPTION_MAX_LENGTH]


def generate_slug_from_name(name: str) -> str:
    """Convert a project name to a lowercase, hyphenated slug.

    Examples::

        generate_slug_from_name("My Cool Project") -> "my-cool-project"
        generate_slug_from_name("  API v2!  ") -> "api-v2"
    """
    if not isinstance(name, str):
        return ""
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


# ---------------------------------------------------------------------------
# GitHub helpers
# ---------------------------------------------------------------------------


def is_valid_github_url(url: str) -> bool:
    """Return ``True`` for ``https://github.com/<owner>/<repo>`` URLs."""
    return isinstance(url, str) and bool(_GITHUB_URL_PATTERN.fullmatch(url))


def extract_repo_info(url: str) -> RepoInfo | None:
    """Extract owner and repository name from a GitHub URL."""
    if not isinstance(url, str):
        return None
    match = _GITHUB_REPO_PATTERN.search(url)
    if not match:
        return None
    repo = re.sub(r"\.git$", "", match.group(2))
    return RepoInfo(owner=match.group(1), repo=repo)
