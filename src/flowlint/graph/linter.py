"""Linter orchestrator: load flows and rule config, dispatch, format results."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from flowlint.graph.flowset import FlowSet
from flowlint.graph.rule_engine import Finding, check, default_config, load_config

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when the flow file or rule config cannot be loaded."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a lint run."""

    findings: list[Finding] = field(default_factory=list)
    context: Any = None
    rules_evaluated: int = 0
    nodes_scanned: int = 0
    flows_scanned: int = 0
    elapsed_ms: float = 0.0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def lint(
    flow_path: Path,
    *,
    config_path: Path | None = None,
    context: Any = None,
) -> LintResult:
    """Load a flow file, run the configured rules, and return the results.

    Parameters
    ----------
    flow_path:
        Flow JSON file to analyze.
    config_path:
        Optional YAML rule config.  When *None* every known rule runs with
        its default options.
    context:
        Initial context handed to the first rule and threaded through the
        rest.  Returned unchanged by the built-in rules.

    Raises
    ------
    LintError
        When either file is missing or malformed.
    """
    start = time.monotonic()

    if not flow_path.is_file():
        msg = f"Flow file not found: {flow_path}"
        raise LintError(msg)
    try:
        flowset = FlowSet.from_file(flow_path)
    except ValueError as exc:
        msg = f"Invalid flow file: {exc}"
        raise LintError(msg) from exc

    if config_path is None:
        config = default_config()
    elif not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise LintError(msg)
    else:
        try:
            config = load_config(config_path)
        except ValueError as exc:
            msg = f"Invalid rule configuration: {exc}"
            raise LintError(msg) from exc

    outcome = check(flowset, config, context)
    elapsed = (time.monotonic() - start) * 1000

    return LintResult(
        findings=list(outcome.result),
        context=outcome.context,
        rules_evaluated=len(config.subrules),
        nodes_scanned=len(flowset.get_all_nodes()),
        flows_scanned=len(flowset.flows),
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _summary_line(result: LintResult) -> str:
    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"
    if result.findings:
        return (
            f"{len(result.findings)} finding{'' if len(result.findings) == 1 else 's'} "
            f"({result.rules_evaluated} rules evaluated, {elapsed_str})"
        )
    return f"No findings ({result.rules_evaluated} rules evaluated, {elapsed_str})"


def render_rich(result: LintResult, console: Console) -> None:
    """Render a LintResult as a Rich table followed by a summary line."""
    from rich.markup import escape
    from rich.table import Table

    console.print(
        f"Flows: [bold]{result.flows_scanned}[/]   Nodes: [bold]{result.nodes_scanned}[/]"
    )
    console.print()

    if result.findings:
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
        table.add_column("severity", style="yellow")
        table.add_column("rule", style="cyan")
        table.add_column("name")
        table.add_column("ids")
        table.add_column("message")
        for f in result.findings:
            table.add_row(
                escape(f.severity),
                escape(f.rule),
                escape(f.name),
                escape(" → ".join(f.ids)),
                escape(f.message),
            )
        console.print(table)
        console.print()
        console.print(f"[yellow]✗ {_summary_line(result)}[/yellow]")
    else:
        console.print(f"[green]✓ {_summary_line(result)}[/green]")


def format_json(result: LintResult) -> str:
    """Format a LintResult as JSON with a ``findings`` array and ``summary`` object."""
    output: dict[str, object] = {
        "findings": [
            {
                "rule": f.rule,
                "ids": list(f.ids),
                "name": f.name,
                "severity": f.severity,
                "message": f.message,
            }
            for f in result.findings
        ],
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "findings_count": len(result.findings),
            "nodes_scanned": result.nodes_scanned,
            "flows_scanned": result.flows_scanned,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """Format findings one per line as ``rule:name:severity:id1,id2,...``.

    Returns an empty string when there are no findings.
    """
    return "\n".join(
        f"{f.rule}:{f.name}:{f.severity}:{','.join(f.ids)}" for f in result.findings
    )
