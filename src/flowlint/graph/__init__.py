"""Graph domain — flow loader, loop enumeration, rule engine, linter."""

from flowlint.graph.flowset import Flow, FlowSet, GraphAccessor, Node
from flowlint.graph.linter import (
    LintError,
    LintResult,
    format_json,
    format_porcelain,
    lint,
    render_rich,
)
from flowlint.graph.loops import enumerate_loops
from flowlint.graph.rule_engine import (
    RULE_DESCRIPTIONS,
    CheckResult,
    CoreConfig,
    Finding,
    RuleKind,
    SubruleConfig,
    check,
    check_flow_size,
    check_http_in_resp,
    check_loop,
    check_no_func_name,
    default_config,
    load_config,
    parse_core_config,
)

__all__ = [
    "RULE_DESCRIPTIONS",
    "CheckResult",
    "CoreConfig",
    "Finding",
    "Flow",
    "FlowSet",
    "GraphAccessor",
    "LintError",
    "LintResult",
    "Node",
    "RuleKind",
    "SubruleConfig",
    "check",
    "check_flow_size",
    "check_http_in_resp",
    "check_loop",
    "check_no_func_name",
    "default_config",
    "enumerate_loops",
    "format_json",
    "format_porcelain",
    "lint",
    "load_config",
    "parse_core_config",
    "render_rich",
]
