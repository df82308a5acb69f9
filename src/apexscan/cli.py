"""Click CLI entry point with lazy-loaded subcommands."""

import logging
import os
import sys

# Fix Unicode output on Windows consoles (cp1253, cp1252, etc.)
if sys.platform == "win32" and not os.environ.get("PYTHONIOENCODING"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click

# Lazy-loading command group: imports command modules only when invoked,
# so `apexscan --help` does not load tree-sitter grammars.
_COMMANDS = {
    "scan":  ("apexscan.commands.cmd_scan",  "scan"),
    "rules": ("apexscan.commands.cmd_rules", "rules"),
    "mcp":   ("apexscan.mcp_server",         "mcp_cmd"),
}


class LazyGroup(click.Group):
    """A Click group that lazy-loads command modules on first access."""

    def list_commands(self, ctx):
        return sorted(_COMMANDS.keys())

    def get_command(self, ctx, cmd_name):
        if cmd_name not in _COMMANDS:
            return None
        module_path, attr_name = _COMMANDS[cmd_name]
        import importlib
        mod = importlib.import_module(module_path)
        return getattr(mod, attr_name)


def _configure_logging(verbose: bool) -> None:
    # Without -v, warnings reach stderr through logging's last-resort handler.
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            force=True,
        )


@click.group(cls=LazyGroup)
@click.version_option(package_name="apexscan")
@click.option('--json', 'json_mode', is_flag=True, help='Output in JSON format')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging on stderr')
@click.option('--config', 'config_path', default=None, type=click.Path(dir_okay=False),
              help='Path to .apexscan.yml (default: $APEXSCAN_CONFIG or ./.apexscan.yml)')
@click.pass_context
def cli(ctx, json_mode, verbose, config_path):
    """apexscan: Salesforce Apex antipattern scanner."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['json'] = json_mode
    ctx.obj['config_path'] = config_path


def get_config(ctx):
    """Load (once per invocation) the ScanConfig selected by --config."""
    from apexscan.config import load_config

    obj = ctx.find_root().ensure_object(dict)
    if 'config' not in obj:
        obj['config'] = load_config(obj.get('config_path'))
    return obj['config']
