"""Allow running as ``python -m apexscan``."""

from apexscan.cli import cli

cli()
