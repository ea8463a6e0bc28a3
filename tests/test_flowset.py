"""Tests for flowlint.graph.flowset — flow file parsing and wire queries."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from flowlint.graph.flowset import FlowSet, Node

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def http_flow() -> list[dict[str, object]]:
    """One tab with http in -> function -> http response, plus a config node."""
    return [
        {"id": "t1", "type": "tab", "label": "API"},
        {"id": "in1", "type": "http in", "z": "t1", "url": "/x", "wires": [["fn1"]]},
        {"id": "fn1", "type": "function", "z": "t1", "name": "handle", "wires": [["res1"]]},
        {"id": "res1", "type": "http response", "z": "t1", "wires": []},
        {"id": "cfg1", "type": "mqtt-broker", "broker": "localhost"},
    ]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestFromObjects:
    def test_flows_and_members(self, http_flow: list[dict[str, object]]) -> None:
        fs = FlowSet.from_objects(http_flow)
        assert [f.id for f in fs.flows] == ["t1"]
        flow = fs.flows[0]
        assert flow.label == "API"
        assert flow.kind == "tab"
        assert [n.id for n in flow.nodes] == ["in1", "fn1", "res1"]

    def test_config_nodes_are_not_wired_nodes(self, http_flow: list[dict[str, object]]) -> None:
        fs = FlowSet.from_objects(http_flow)
        assert "cfg1" not in {n.id for n in fs.get_all_nodes()}

    def test_subflow_is_a_flow(self) -> None:
        fs = FlowSet.from_objects(
            [
                {"id": "sf1", "type": "subflow", "name": "Retry"},
                {"id": "n1", "type": "delay", "z": "sf1", "wires": []},
            ]
        )
        assert fs.flows[0].kind == "subflow"
        assert fs.flows[0].label == "Retry"
        assert [n.id for n in fs.flows[0].nodes] == ["n1"]

    def test_node_attributes(self, http_flow: list[dict[str, object]]) -> None:
        fs = FlowSet.from_objects(http_flow)
        node = fs.get_node("in1")
        assert isinstance(node, Node)
        assert node.type == "http in"
        assert node.z == "t1"
        assert node.name is None
        assert node.wires == (("fn1",),)
        assert node.attrs["url"] == "/x"

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate id 'n1'"):
            FlowSet.from_objects(
                [
                    {"id": "n1", "type": "inject", "z": "t1"},
                    {"id": "n1", "type": "debug", "z": "t1"},
                ]
            )

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="missing required 'id'"):
            FlowSet.from_objects([{"type": "inject", "z": "t1"}])

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(ValueError, match="must be a mapping"):
            FlowSet.from_objects(["not-a-node"])

    def test_malformed_wires_rejected(self) -> None:
        with pytest.raises(ValueError, match="wires"):
            FlowSet.from_objects([{"id": "n1", "type": "inject", "z": "t1", "wires": "n2"}])

    def test_node_in_unknown_flow(self) -> None:
        fs = FlowSet.from_objects([{"id": "n1", "type": "inject", "z": "ghost"}])
        assert [n.id for n in fs.get_all_nodes()] == ["n1"]
        assert fs.flows == ()


class TestFromFile:
    def test_array_file(
        self,
        write_flow: Callable[[list[dict[str, object]]], Path],
        http_flow: list[dict[str, object]],
    ) -> None:
        fs = FlowSet.from_file(write_flow(http_flow))
        assert len(fs.get_all_nodes()) == 3

    def test_wrapped_flows_key(self, tmp_path: Path, http_flow: list[dict[str, object]]) -> None:
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"rev": "abc", "flows": http_flow}), encoding="utf-8")
        fs = FlowSet.from_file(path)
        assert len(fs.flows) == 1

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ValueError, match="invalid JSON"):
            FlowSet.from_file(path)

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "obj.json"
        path.write_text('{"id": "x"}', encoding="utf-8")
        with pytest.raises(ValueError, match="list of objects"):
            FlowSet.from_file(path)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_downstream_and_upstream(self, http_flow: list[dict[str, object]]) -> None:
        fs = FlowSet.from_objects(http_flow)
        assert fs.downstream("in1") == ["fn1"]
        assert fs.upstream("res1") == ["fn1"]
        assert fs.upstream("in1") == []
        assert fs.downstream("res1") == []

    def test_multiple_ports_deduplicated(self) -> None:
        fs = FlowSet.from_objects(
            [
                {"id": "sw", "type": "switch", "z": "t1", "wires": [["a", "b"], ["a"]]},
                {"id": "a", "type": "debug", "z": "t1"},
                {"id": "b", "type": "debug", "z": "t1"},
            ]
        )
        assert fs.downstream("sw") == ["a", "b"]
        assert fs.upstream("a") == ["sw"]

    def test_dangling_wire_target_dropped(self) -> None:
        fs = FlowSet.from_objects(
            [{"id": "a", "type": "inject", "z": "t1", "wires": [["missing"]]}]
        )
        assert fs.downstream("a") == []

    def test_get_node_not_found(self, http_flow: list[dict[str, object]]) -> None:
        fs = FlowSet.from_objects(http_flow)
        with pytest.raises(LookupError, match="not found"):
            fs.get_node("nope")

    def test_next_matches_downstream_for_plain_nodes(
        self, http_flow: list[dict[str, object]]
    ) -> None:
        fs = FlowSet.from_objects(http_flow)
        assert fs.next("fn1") == fs.downstream("fn1")

    def test_next_follows_link_nodes(self) -> None:
        fs = FlowSet.from_objects(
            [
                {"id": "lo", "type": "link out", "z": "t1", "links": ["li"], "wires": []},
                {"id": "li", "type": "link in", "z": "t2", "links": ["lo"], "wires": [["d"]]},
                {"id": "d", "type": "debug", "z": "t2"},
            ]
        )
        assert fs.downstream("lo") == []
        assert fs.next("lo") == ["li"]
        assert fs.next("li") == ["d"]
