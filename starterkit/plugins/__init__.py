"""First-party plugins bundled with the kit.

Each subpackage holds a ``templates/`` tree and exports ``plugin``.  They
are discovered from this directory like any third-party plugin.
"""
