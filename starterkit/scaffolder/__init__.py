"""Starter kit scaffolder -- template rendering, verification and the catalog.

The processor uses paths verbatim; expand ``~`` first with
:func:`starterkit.paths.safe_expand_path`.  The registry expands its own
directory.

Quick usage::

    from starterkit.scaffolder import ProjectVerifier, TemplateProcessor, TemplateRegistry

    processor = TemplateProcessor()
    written = await processor.process_template_directory(
        "templates/api", "/home/me/projects/my-api", {"PROJECT_NAME": "my-api"}
    )
    report = await ProjectVerifier("api-fastapi", "/home/me/projects/my-api").verify(written)

    registry = TemplateRegistry("~/.ai-dev-kit")
    await registry.initialize()
    builtin = await registry.list_templates(source="builtin")
"""

from starterkit.scaffolder.registry import (
    BuiltinTemplateError,
    DuplicateTemplateError,
    RegistryError,
    RegistryStats,
    TemplateMetadata,
    TemplateNotFoundError,
    TemplateRegistry,
    TemplateRegistryConfig,
    TemplateSource,
)
from starterkit.scaffolder.templates import TemplateProcessor, TemplateRenderError
from starterkit.scaffolder.verifier import ProjectVerifier, VerificationResult

__all__ = [
    "BuiltinTemplateError",
    "DuplicateTemplateError",
    "ProjectVerifier",
    "RegistryError",
    "RegistryStats",
    "TemplateMetadata",
    "TemplateNotFoundError",
    "TemplateProcessor",
    "TemplateRegistry",
    "TemplateRegistryConfig",
    "TemplateRenderError",
    "TemplateSource",
    "VerificationResult",
]
