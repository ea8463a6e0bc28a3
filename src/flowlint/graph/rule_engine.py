"""Flow rule engine: parse rule config, run structural checks, dispatch by rule name."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import yaml

from flowlint.graph.loops import enumerate_loops

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from flowlint.graph.flowset import GraphAccessor

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
DEFAULT_MAX_FLOW_SIZE = 100
SEVERITY_WARN = "warn"

MSG_FLOW_SIZE = "too large flow size"
MSG_NO_FUNC_NAME = "function node has no name"
MSG_DANGLING_HTTP_IN = "dangling http-in node"
MSG_DANGLING_HTTP_RESP = "dangling http-response node"
MSG_LOOP = "possible infinite loop detected"


class RuleKind(enum.Enum):
    """The closed set of rules the dispatcher knows how to run."""

    FLOW_SIZE = "flowsize"
    NO_FUNC_NAME = "no-func-name"
    HTTP_IN_RESP = "http-in-resp"
    LOOP = "loop"

    @classmethod
    def from_name(cls, name: str) -> RuleKind | None:
        """Return the kind for *name*, or None if no rule has that name."""
        try:
            return cls(name)
        except ValueError:
            return None


RULE_DESCRIPTIONS: dict[RuleKind, str] = {
    RuleKind.FLOW_SIZE: "Flow has more nodes than maxSize (default 100)",
    RuleKind.NO_FUNC_NAME: "Function node has no name",
    RuleKind.HTTP_IN_RESP: "http in / http response node without its counterpart",
    RuleKind.LOOP: "Wiring forms a possible infinite loop",
}

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

C = TypeVar("C")


@dataclass(frozen=True)
class Finding:
    """A single reported defect."""

    rule: str  # "core" | "no-func-name" | "http-in-resp" | "loop"
    ids: tuple[str, ...]  # node or flow ids
    name: str
    severity: str
    message: str


@dataclass(frozen=True)
class SubruleConfig:
    """One entry of the ``subrules`` list.

    ``max_size`` is only read by the flowsize rule; ``None`` means the
    default of 100.  ``options`` keeps the raw entry for rules that need
    anything else.
    """

    name: str
    max_size: int | None = None
    options: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CoreConfig:
    """Ordered list of sub-rules to run."""

    subrules: tuple[SubruleConfig, ...] = ()


@dataclass(frozen=True)
class CheckResult(Generic[C]):
    """Findings of one rule (or a whole run) plus the context to carry on."""

    context: C
    result: tuple[Finding, ...] = ()


if TYPE_CHECKING:
    Validator = Callable[[GraphAccessor, SubruleConfig, C], CheckResult[C]]

# ---------------------------------------------------------------------------
# Config parsing
# ---------------------------------------------------------------------------


def _parse_max_size(entry: Mapping[str, Any], name: str) -> int | None:
    raw = entry.get("maxSize")
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        logger.warning(
            "Sub-rule '%s': ignoring non-integer maxSize %r, using %d",
            name,
            raw,
            DEFAULT_MAX_FLOW_SIZE,
        )
        return None
    return raw


def parse_core_config(data: Mapping[str, Any]) -> CoreConfig:
    """Build a CoreConfig from a raw mapping.

    Never raises: a missing or non-sequence ``subrules`` (a string counts as
    non-sequence) gives an empty config, and entries that are not mappings or
    have no string ``name`` are dropped.
    """
    raw = data.get("subrules")
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return CoreConfig()

    subrules: list[SubruleConfig] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str):
            logger.debug("Skipping malformed sub-rule entry at index %d", idx)
            continue
        name = entry["name"]
        subrules.append(
            SubruleConfig(name=name, max_size=_parse_max_size(entry, name), options=dict(entry))
        )
    return CoreConfig(subrules=tuple(subrules))


def default_config() -> CoreConfig:
    """Config that enables every known rule with default options."""
    return CoreConfig(subrules=tuple(SubruleConfig(name=kind.value) for kind in RuleKind))


def load_config(config_path: Path) -> CoreConfig:
    """Parse a YAML rule config file.

    Raises ``ValueError`` when the document is not a mapping or declares an
    unsupported ``version``.  Problems inside ``subrules`` are tolerated as
    described in :func:`parse_core_config`.
    """
    with config_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"{config_path.name}: invalid YAML: {exc}"
            raise ValueError(msg) from exc

    if data is None:
        return CoreConfig()
    if not isinstance(data, dict):
        msg = f"{config_path.name} must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version", 1)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{config_path.name}: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    return parse_core_config(data)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def check_flow_size(graph: GraphAccessor, conf: SubruleConfig, cxt: C) -> CheckResult[C]:
    """Report every flow holding more than ``max_size`` nodes."""
    max_size = conf.max_size if conf.max_size is not None else DEFAULT_MAX_FLOW_SIZE
    findings = tuple(
        Finding(
            rule="core",
            ids=(flow.id,),
            name="flowsize",
            severity=SEVERITY_WARN,
            message=MSG_FLOW_SIZE,
        )
        for flow in graph.flows
        if len(flow.nodes) > max_size
    )
    return CheckResult(context=cxt, result=findings)


def check_no_func_name(graph: GraphAccessor, conf: SubruleConfig, cxt: C) -> CheckResult[C]:
    """Report function nodes whose name is missing, null, or empty."""
    findings = tuple(
        Finding(
            rule="no-func-name",
            ids=(node.id,),
            name="no-func-name",
            severity=SEVERITY_WARN,
            message=MSG_NO_FUNC_NAME,
        )
        for node in graph.get_all_nodes()
        if node.type == "function" and not node.name
    )
    return CheckResult(context=cxt, result=findings)


def _lacks_partner(graph: GraphAccessor, neighbours: list[str], partner_type: str) -> bool:
    return all(graph.get_node(i).type != partner_type for i in neighbours)


def check_http_in_resp(graph: GraphAccessor, conf: SubruleConfig, cxt: C) -> CheckResult[C]:
    """Report http in nodes not wired to a response, and responses not fed by an http in.

    ``all()`` over an empty neighbour list is True, so a node with no
    neighbours at all is reported too.
    """
    nodes = graph.get_all_nodes()
    dangling_in = [
        Finding(
            rule="http-in-resp",
            ids=(node.id,),
            name="dangling-http-in",
            severity=SEVERITY_WARN,
            message=MSG_DANGLING_HTTP_IN,
        )
        for node in nodes
        if node.type == "http in"
        and _lacks_partner(graph, graph.downstream(node.id), "http response")
    ]
    dangling_resp = [
        Finding(
            rule="http-in-resp",
            ids=(node.id,),
            name="dangling-http-resp",
            severity=SEVERITY_WARN,
            message=MSG_DANGLING_HTTP_RESP,
        )
        for node in nodes
        if node.type == "http response"
        and _lacks_partner(graph, graph.upstream(node.id), "http in")
    ]
    return CheckResult(context=cxt, result=(*dangling_in, *dangling_resp))


def check_loop(graph: GraphAccessor, conf: SubruleConfig, cxt: C) -> CheckResult[C]:
    """Report each minimal wiring loop."""
    findings = tuple(
        Finding(
            rule="loop",
            ids=loop,
            name="loop",
            severity=SEVERITY_WARN,
            message=MSG_LOOP,
        )
        for loop in enumerate_loops(graph)
    )
    return CheckResult(context=cxt, result=findings)


_RULE_MAP: dict[RuleKind, Validator[Any]] = {
    RuleKind.FLOW_SIZE: check_flow_size,
    RuleKind.NO_FUNC_NAME: check_no_func_name,
    RuleKind.HTTP_IN_RESP: check_http_in_resp,
    RuleKind.LOOP: check_loop,
}

# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def check(
    graph: GraphAccessor,
    config: CoreConfig | Mapping[str, Any],
    cxt: C,
) -> CheckResult[C]:
    """Run the configured sub-rules in order and collect their findings.

    Each rule receives the context returned by the previous one.  Sub-rules
    with unknown names contribute nothing and leave the context untouched.
    """
    if not isinstance(config, CoreConfig):
        config = parse_core_config(config)

    findings: list[Finding] = []
    for conf in config.subrules:
        kind = RuleKind.from_name(conf.name)
        if kind is None:
            logger.debug("Skipping unknown sub-rule '%s'", conf.name)
            continue
        retval = _RULE_MAP[kind](graph, conf, cxt)
        findings.extend(retval.result)
        cxt = retval.context

    return CheckResult(context=cxt, result=tuple(findings))
