"""Unit tests for input validation (starterkit.validator).

Tests cover:
- Single-field validators return True or a message, never raise
- Tech-stack and whole-config validation aggregate every error
- Sanitisers, slug generation and GitHub URL helpers
"""

from __future__ import annotations

import pytest

from starterkit.validator import (
    DESCRIPTION_MAX_LENGTH,
    PROJECT_NAME_MAX_LENGTH,
    TECH_STACK_FIELDS,
    extract_repo_info,
    generate_slug_from_name,
    is_valid_github_url,
    sanitize_description,
    sanitize_project_name,
    validate_description,
    validate_project_config,
    validate_project_name,
    validate_repository_url,
    validate_tech_stack,
)

pytestmark = pytest.mark.unit

FULL_STACK = {
    "frontend": "React",
    "backend": "FastAPI",
    "database": "PostgreSQL",
    "infrastructure": "Docker",
    "deployment": "Fly.io",
    "monitoring": "Sentry",
}


# ---------------------------------------------------------------------------
# validate_project_name
# ---------------------------------------------------------------------------


class TestValidateProjectName:
    @pytest.mark.parametrize("name", ["my-project_1", "My Project", "app.v2", "a"])
    def test_valid_names(self, name):
        assert validate_project_name(name) is True

    def test_max_length_accepted(self):
        assert validate_project_name("a" * PROJECT_NAME_MAX_LENGTH) is True

    def test_too_long_returns_message(self):
        outcome = validate_project_name("a" * 51)
        assert isinstance(outcome, str)
        assert "50" in outcome

    @pytest.mark.parametrize("name", ["", "   ", None, 12])
    def test_missing_name(self, name):
        assert validate_project_name(name) == "Project name is required"

    @pytest.mark.parametrize("name", ["my/project", "rm -rf *", "名前", "a@b"])
    def test_disallowed_characters(self, name):
        assert isinstance(validate_project_name(name), str)

    @pytest.mark.parametrize("name", ["my-project\n", "my-project\r\n", "\nmy-project", "my\tproject"])
    def test_control_characters_rejected(self, name):
        assert validate_project_name(name) is not True


# ---------------------------------------------------------------------------
# validate_description / validate_repository_url
# ---------------------------------------------------------------------------


class TestValidateDescription:
    def test_valid(self):
        assert validate_description("A tool that scaffolds projects") is True

    def test_limit(self):
        assert validate_description("x" * DESCRIPTION_MAX_LENGTH) is True
        assert isinstance(validate_description("x" * (DESCRIPTION_MAX_LENGTH + 1)), str)

    def test_blank(self):
        assert isinstance(validate_description("  "), str)


class TestValidateRepositoryUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/owner/repo",
            "https://github.com/owner/repo.git",
            "http://www.github.com/owner/repo",
        ],
    )
    def test_supported_host(self, url):
        assert validate_repository_url(url) is True

    @pytest.mark.parametrize("url", ["not a url", "github.com/owner/repo", "https://"])
    def test_unparseable(self, url):
        assert validate_repository_url(url) == "Enter a valid URL"

    @pytest.mark.parametrize(
        "url", ["https://gitlab.com/owner/repo", "https://github.com.evil.io/owner/repo"]
    )
    def test_unsupported_host(self, url):
        outcome = validate_repository_url(url)
        assert isinstance(outcome, str)
        assert "github.com" in outcome

    def test_missing(self):
        assert validate_repository_url("") == "Repository URL is required"


# ---------------------------------------------------------------------------
# Composite validators
# ---------------------------------------------------------------------------


class TestValidateTechStack:
    def test_complete_stack(self):
        result = validate_tech_stack(FULL_STACK)
        assert result.valid is True
        assert result.errors == []

    def test_reports_every_missing_field(self):
        result = validate_tech_stack({"frontend": "React", "backend": "  "})
        assert result.valid is False
        assert len(result.errors) == len(TECH_STACK_FIELDS) - 1
        assert "backend is required" in result.errors

    def test_none_means_all_missing(self):
        assert len(validate_tech_stack(None).errors) == len(TECH_STACK_FIELDS)


class TestValidateProjectConfig:
    def test_valid_camel_case(self):
        result = validate_project_config({
            "projectName": "my-app",
            "description": "Demo",
            "repositoryUrl": "https://github.com/me/my-app",
            "techStack": FULL_STACK,
        })
        assert result.valid is True

    def test_valid_snake_case(self):
        result = validate_project_config({
            "project_name": "my-app",
            "description": "Demo",
            "repository_url": "https://github.com/me/my-app",
        })
        assert result.valid is True

    def test_aggregates_errors(self):
        result = validate_project_config({
            "projectName": "",
            "description": "",
            "repositoryUrl": "https://gitlab.com/me/app",
            "techStack": {"frontend": "React"},
        })
        assert result.valid is False
        # three field errors plus five missing tech-stack fields
        assert len(result.errors) == 3 + len(TECH_STACK_FIELDS) - 1


# ---------------------------------------------------------------------------
# Sanitisers and helpers
# ---------------------------------------------------------------------------


class TestSanitizers:
    def test_project_name_strips_and_truncates(self):
        assert sanitize_project_name("  my/app!  ") == "myapp"
        assert len(sanitize_project_name("x" * 80)) == PROJECT_NAME_MAX_LENGTH

    def test_description_truncates(self):
        assert sanitize_description("  hi  ") == "hi"
        assert len(sanitize_description("y" * 500)) == DESCRIPTION_MAX_LENGTH

    def test_non_strings(self):
        assert sanitize_project_name(None) == ""
        assert sanitize_description(3) == ""


class TestSlugAndGithub:
    @pytest.mark.parametrize(
        "name,slug",
        [
            ("My Cool Project", "my-cool-project"),
            ("  API v2!  ", "api-v2"),
            ("a -- b", "a-b"),
            ("!!!", ""),
        ],
    )
    def test_generate_slug(self, name, slug):
        assert generate_slug_from_name(name) == slug

    def test_is_valid_github_url(self):
        assert is_valid_github_url("https://github.com/owner/repo") is True
        assert is_valid_github_url("https://github.com/owner/repo/") is True
        assert is_valid_github_url("https://github.com/owner") is False
        assert is_valid_github_url("http://github.com/owner/repo") is False
        assert is_valid_github_url("https://github.com/owner/repo\n") is False

    def test_extract_repo_info(self):
        info = extract_repo_info("https://github.com/owner/repo.git")
        assert info is not None
        assert (info.owner, info.repo) == ("owner", "repo")

    def test_extract_repo_info_ssh(self):
        info = extract_repo_info("git@github.com:owner/tool.git")
        assert info is not None
        assert info.repo == "tool"

    def test_extract_repo_info_no_match(self):
        assert extract_repo_info("https://example.com/x") is None
