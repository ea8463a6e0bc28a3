"""flowlint CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from flowlint import __version__


@click.group()
@click.version_option(version=__version__, prog_name="flowlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """flowlint - structural checks for flow files."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument(
    "flow_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML rule config (default: all rules with default options).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich on a TTY, porcelain otherwise).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if findings are reported.",
)
def lint(
    flow_file: Path,
    *,
    config_path: Path | None,
    fmt: str | None,
    strict: bool,
) -> None:
    """Check a flow file for loops, dangling HTTP nodes, and other defects.

    Exit codes: 0 = clean or findings without --strict,
    1 = findings with --strict, 2 = configuration error.
    """
    from flowlint.graph.linter import LintError, format_json, format_porcelain, render_rich
    from flowlint.graph.linter import lint as run_lint

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_lint(flow_file, config_path=config_path)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt == "rich":
        from rich.console import Console

        render_rich(result, Console())
    else:
        formatters = {
            "json": format_json,
            "porcelain": format_porcelain,
        }
        output = formatters[fmt](result)
        if output:
            click.echo(output)

    if strict and result.findings:
        sys.exit(1)


@main.command()
def rules() -> None:
    """List the rule names usable in a config's ``subrules``."""
    from flowlint.graph.rule_engine import RULE_DESCRIPTIONS

    for kind, description in RULE_DESCRIPTIONS.items():
        click.echo(f"{kind.value:<14} {description}")
