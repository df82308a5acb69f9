"""List the registered antipattern rules."""

from __future__ import annotations

import click

from apexscan.antipatterns.registry import build_default_registry
from apexscan.cli import get_config
from apexscan.output.formatter import format_table, indent, json_envelope, to_json


@click.command()
@click.option("--detail", is_flag=True, help="Print each rule's full fix instruction.")
@click.pass_context
def rules(ctx, detail):
    """List enabled rules and whether each has remediation guidance."""
    json_mode = ctx.obj.get("json") if ctx.obj else False
    config = get_config(ctx)
    registry = build_default_registry(config)
    disabled = sorted(k.value for k in config.disabled_rules)

    if json_mode:
        items = [
            {
                "kind": module.kind.value,
                "name": module.kind.name,
                "has_recommender": module.has_recommender(),
                "fix_instruction": module.fix_instruction(),
            }
            for module in registry
        ]
        click.echo(to_json(json_envelope(
            "rules",
            summary={"verdict": "listed", "count": len(items), "disabled": len(disabled)},
            rules=items,
            disabled=disabled,
        )))
        return

    click.echo("Rules ({}):".format(len(registry)))
    rows = [
        [module.kind.value, module.kind.name, "yes" if module.has_recommender() else "no"]
        for module in registry
    ]
    click.echo(format_table(["KIND", "NAME", "GUIDANCE"], rows))
    if disabled:
        click.echo()
        click.echo("Disabled: {}".format(", ".join(disabled)))
    if detail:
        for module in registry:
            click.echo()
            click.echo("=== {} ===".format(module.kind.value))
            click.echo(indent(module.fix_instruction()))
