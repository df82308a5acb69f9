"""Standardized CLI exit codes for apexscan.

Exit code scheme (POSIX + SAST tool conventions):

    0  SUCCESS        -- scan completed, nothing at or above --fail-on
    1  GENERAL_ERROR  -- unexpected failure, crash, unhandled exception
    2  USAGE_ERROR    -- invalid arguments or configuration (Click default)
    5  GATE_FAILURE   -- findings at or above the --fail-on severity
    6  PARTIAL        -- scan completed but some files could not be read

CI tools can tell "antipatterns found" (5) apart from "tool crashed" (1).
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_GATE_FAILURE: int = 5
EXIT_PARTIAL: int = 6

# ---------------------------------------------------------------------------
# Custom exceptions (caught by the Click error handler)
# ---------------------------------------------------------------------------


class ApexScanError(click.ClickException):
    """Base class for apexscan errors with exit codes."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class ConfigError(ApexScanError):
    """Raised for an unreadable or invalid configuration."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_USAGE)


class GateFailureError(ApexScanError):
    """Raised when findings reach the --fail-on severity."""

    def __init__(self, message: str = "Antipattern gate failed."):
        super().__init__(message, EXIT_GATE_FAILURE)

