"""packlint CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from packlint import __version__


@click.group()
@click.version_option(version=__version__, prog_name="packlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """packlint - declarative policy checks for data packs."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument(
    "pack_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: packlint.yml in PACK_DIR).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if violations or invalid rule configurations are found.",
)
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=1, help="Rules run in parallel.")
def check(
    *,
    pack_dir: Path,
    config_path: Path | None,
    fmt: str | None,
    strict: bool,
    jobs: int,
) -> None:
    """Run the configured rules against a data pack.

    Exit codes: 0 = clean or findings without --strict,
    1 = findings with --strict, 2 = unusable configuration file or pack.
    """
    from packlint.checker import CheckError, format_json, format_porcelain, render_rich
    from packlint.checker import check as run_check

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_check(pack_dir, config_path=config_path, jobs=jobs)
    except CheckError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt == "rich":
        from rich.console import Console

        render_rich(result, Console())
    else:
        output = format_json(result) if fmt == "json" else format_porcelain(result)
        if output:
            click.echo(output)

    if strict and not result.ok:
        sys.exit(1)


@main.command("rules")
def rules_cmd() -> None:
    """List the built-in rules."""
    from rich.console import Console
    from rich.table import Table

    from packlint.rules import BUILTIN_RULES

    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Rule", style="bold")
    table.add_column("Title")
    for rule in BUILTIN_RULES:
        table.add_row(rule.name, rule.title)
    Console().print(table)


@main.command()
@click.argument("rule_name")
def explain(*, rule_name: str) -> None:
    """Show what RULE_NAME checks and how to configure it."""
    from packlint.rules import RULES_BY_NAME

    rule = RULES_BY_NAME.get(rule_name)
    if rule is None:
        click.echo(
            f"Error: unknown rule '{rule_name}'. Run `packlint rules` for the list.", err=True
        )
        sys.exit(2)

    click.echo(rule.name)
    click.echo(rule.title)
    click.echo("")
    click.echo(rule.description)
    click.echo("")
    if rule.config_example:
        click.echo("Configuration:")
        click.echo(f"  {rule.name}:")
        for line in rule.config_example.splitlines():
            click.echo(f"    {line}")
    else:
        click.echo("This rule takes no configuration.")
