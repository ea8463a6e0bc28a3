"""Flow graph: parse a flow file into nodes, flows, and wire queries.

A flow file is a JSON array of objects.  Objects of type ``tab`` or
``subflow`` define flows; objects carrying a ``z`` key are wired nodes that
belong to the flow with that id.  Everything else (configuration nodes) is
kept aside and takes no part in the wiring.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

FLOW_TYPES: frozenset[str] = frozenset({"tab", "subflow"})


@dataclass(frozen=True)
class Node:
    """A single wired node."""

    id: str
    type: str
    z: str | None = None  # owning flow id
    name: str | None = None
    wires: tuple[tuple[str, ...], ...] = ()  # one tuple of target ids per output port
    attrs: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Flow:
    """A tab or subflow and its member nodes, in file order."""

    id: str
    label: str
    kind: str  # "tab" | "subflow"
    nodes: tuple[Node, ...] = ()


class GraphAccessor(Protocol):
    """Read-only graph queries consumed by the rule engine."""

    @property
    def flows(self) -> Sequence[Flow]: ...

    def get_all_nodes(self) -> Sequence[Node]: ...

    def get_node(self, node_id: str) -> Node: ...

    def next(self, node_id: str) -> list[str]: ...

    def upstream(self, node_id: str) -> list[str]: ...

    def downstream(self, node_id: str) -> list[str]: ...


def _parse_wires(raw: object, node_id: str) -> tuple[tuple[str, ...], ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = f"Node '{node_id}': 'wires' must be a list of lists"
        raise ValueError(msg)
    ports: list[tuple[str, ...]] = []
    for port in raw:
        if not isinstance(port, list):
            msg = f"Node '{node_id}': each output port in 'wires' must be a list"
            raise ValueError(msg)
        ports.append(tuple(str(target) for target in port))
    return tuple(ports)


def _parse_node(data: dict[str, Any]) -> Node:
    node_id = str(data["id"])
    name_raw = data.get("name")
    return Node(
        id=node_id,
        type=str(data.get("type", "")),
        z=str(data["z"]) if data.get("z") is not None else None,
        name=str(name_raw) if name_raw is not None else None,
        wires=_parse_wires(data.get("wires"), node_id),
        attrs=dict(data),
    )


class FlowSet:
    """The complete set of flows and nodes from one flow file."""

    def __init__(self, flows: Iterable[Flow], nodes: Iterable[Node]) -> None:
        self._flows: tuple[Flow, ...] = tuple(flows)
        self._nodes: tuple[Node, ...] = tuple(nodes)
        self._by_id: dict[str, Node] = {n.id: n for n in self._nodes}

        self._downstream: dict[str, list[str]] = {}
        self._upstream: dict[str, list[str]] = {n.id: [] for n in self._nodes}
        for node in self._nodes:
            targets: list[str] = []
            for port in node.wires:
                for target in port:
                    if target not in self._by_id:
                        logger.debug("Dropping wire %s -> %s: unknown target", node.id, target)
                        continue
                    if target not in targets:
                        targets.append(target)
            self._downstream[node.id] = targets
            for target in targets:
                self._upstream[target].append(node.id)

    # -- construction -----------------------------------------------------

    @classmethod
    def from_objects(cls, objects: Sequence[object]) -> FlowSet:
        """Build a FlowSet from the decoded object list of a flow file.

        Raises ``ValueError`` on objects that are not mappings, lack an
        ``id``, or reuse an id.
        """
        seen: set[str] = set()
        flow_data: list[dict[str, Any]] = []
        nodes: list[Node] = []

        for idx, obj in enumerate(objects):
            if not isinstance(obj, dict):
                msg = f"Flow object at index {idx} must be a mapping"
                raise ValueError(msg)
            if obj.get("id") is None:
                msg = f"Flow object at index {idx} missing required 'id' field"
                raise ValueError(msg)
            obj_id = str(obj["id"])
            if obj_id in seen:
                msg = f"Duplicate id '{obj_id}'"
                raise ValueError(msg)
            seen.add(obj_id)

            obj_type = str(obj.get("type", ""))
            if obj_type in FLOW_TYPES:
                flow_data.append(obj)
            elif obj.get("z") is not None:
                nodes.append(_parse_node(obj))

        members: dict[str, list[Node]] = {}
        for node in nodes:
            if node.z is not None:
                members.setdefault(node.z, []).append(node)

        flows = [
            Flow(
                id=str(data["id"]),
                label=str(data.get("label") or data.get("name") or ""),
                kind=str(data["type"]),
                nodes=tuple(members.get(str(data["id"]), [])),
            )
            for data in flow_data
        ]
        return cls(flows, nodes)

    @classmethod
    def from_file(cls, path: Path) -> FlowSet:
        """Read a flow JSON file.

        Accepts either a bare array of objects or a mapping whose ``flows``
        key holds that array.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"{path.name}: invalid JSON: {exc}"
            raise ValueError(msg) from exc

        if isinstance(data, dict):
            data = data.get("flows")
        if not isinstance(data, list):
            msg = f"{path.name}: flow file must contain a list of objects"
            raise ValueError(msg)
        return cls.from_objects(data)

    # -- queries ----------------------------------------------------------

    @property
    def flows(self) -> tuple[Flow, ...]:
        return self._flows

    def get_all_nodes(self) -> tuple[Node, ...]:
        return self._nodes

    def get_node(self, node_id: str) -> Node:
        """Return the node with *node_id*; raise ``LookupError`` if absent."""
        try:
            return self._by_id[node_id]
        except KeyError:
            msg = f"Node '{node_id}' not found"
            raise LookupError(msg) from None

    def downstream(self, node_id: str) -> list[str]:
        return list(self._downstream.get(node_id, []))

    def upstream(self, node_id: str) -> list[str]:
        return list(self._upstream.get(node_id, []))

    def next(self, node_id: str) -> list[str]:
        """Direct successors, including link-out to link-in jumps."""
        hops = self.downstream(node_id)
        node = self._by_id.get(node_id)
        if node is not None and node.type == "link out":
            for target in node.attrs.get("links") or []:
                target_id = str(target)
                if target_id in self._by_id and target_id not in hops:
                    hops.append(target_id)
        return hops
