"""apexscan: Apex antipattern detection with type-level remediation guidance."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("apexscan")
except PackageNotFoundError:
    __version__ = "dev"
