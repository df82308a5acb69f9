"""MCP (Model Context Protocol) server for apexscan.

Exposes the antipattern scan as one structured MCP tool so AI coding agents
can check an Apex class before or after editing it.

Usage:
    apexscan mcp                    # stdio
    apexscan mcp --transport sse    # SSE on localhost:8000
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from apexscan.antipatterns.registry import build_default_registry
from apexscan.config import ScanConfig, load_config
from apexscan.exit_codes import EXIT_ERROR
from apexscan.output.formatter import json_envelope
from apexscan.scanner import collect_files, scan_files

try:
    from fastmcp import FastMCP
except ImportError:
    FastMCP = None

log = logging.getLogger(__name__)

TOOL_NAME = "scan_apex_class_for_antipatterns"

if FastMCP is not None:
    mcp = FastMCP(
        "apexscan",
        instructions=(
            "Static antipattern scanner for Salesforce Apex. "
            "Reports Schema.getGlobalDescribe() calls, unbounded SOQL queries "
            "and over-fetched SOQL fields, with one fix instruction per rule."
        ),
    )
else:
    mcp = None


def scan_payload(path: str, config: ScanConfig | None = None) -> dict:
    """Scan a file or directory and return the JSON envelope used by ``scan --json``."""
    target = Path(path)
    if not target.exists():
        return {"error": f"path not found: {path}"}
    config = config or load_config()
    registry = build_default_registry(config)
    files = collect_files([target], config.file_extensions)
    base = target if target.is_dir() else target.parent
    report = scan_files(registry, files, min_severity=config.min_severity, base=base)
    return json_envelope(
        "scan",
        summary={
            "files_scanned": len(report.files),
            "files_unreadable": len(report.unreadable),
            "findings": report.finding_count,
            "max_severity": report.max_severity.value if report.max_severity else None,
            "by_severity": report.severity_counts(),
        },
        results=[r.to_dict() for r in report.rules],
        unreadable=report.unreadable,
    )


def scan_apex_class_for_antipatterns(path: str) -> dict:
    """Scan an Apex class, trigger, or directory of them for antipatterns.

    Returns findings grouped per rule. Each rule carries its fix instruction
    once; each finding has file, line, method, severity and a code snippet.
    """
    log.debug("MCP scan of %s", path)
    return scan_payload(path)


if mcp is not None:
    mcp.tool(name=TOOL_NAME)(scan_apex_class_for_antipatterns)


@click.command()
@click.option('--transport', type=click.Choice(['stdio', 'sse', 'streamable-http']), default='stdio',
              help='transport protocol (default: stdio)')
@click.option('--host', default='127.0.0.1', help='host for network transports')
@click.option('--port', type=int, default=8000, help='port for network transports')
def mcp_cmd(transport, host, port):
    """Start the apexscan MCP server.

    \b
    requires:
      pip install apexscan[mcp]
    """
    if mcp is None:
        click.echo(
            "error: fastmcp is required for the MCP server.\n"
            "install it with:  pip install apexscan[mcp]",
            err=True,
        )
        raise SystemExit(EXIT_ERROR)

    if transport == "stdio":
        mcp.run()
    else:
        mcp.run(transport=transport, host=host, port=port)
