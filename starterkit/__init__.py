"""AI Driven Dev Starter Kit.

Scaffolds new software projects from a catalog of named templates. Template
sources are contributed by plugins discovered under a plugin directory; the
kit renders each plugin's template tree with project-specific values.

Quick usage::

    from starterkit.config import KitConfig
    from starterkit.plugin import PluginManager, ScaffoldOptions

    async with PluginManager(KitConfig()) as manager:
        result = await manager.generate(
            "mcp-server",
            ScaffoldOptions(
                target_path="./my-server",
                project_name="my-server",
                project_type="mcp-server",
            ),
        )
"""

__version__ = "1.0.0"

KIT_VERSION = __version__
