"""Allow ``python -m starterkit``."""

from starterkit.cli import main

main()
