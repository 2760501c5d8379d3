"""Tests for the graph lookup index."""

from __future__ import annotations

from resourcemap.graph.lookup import make_graph_lookup
from resourcemap.graph.models import GraphEdge, GraphNode

_NODES = [GraphNode(id="1", data={}), GraphNode(id="2", data={}), GraphNode(id="3", data={})]
_EDGES = [
    GraphEdge(id="e1", source="1", target="2"),
    GraphEdge(id="e2", source="2", target="3"),
    GraphEdge(id="e3", source="1", target="3"),
]


class TestGraphLookup:
    def setup_method(self) -> None:
        self.lookup = make_graph_lookup(_NODES, _EDGES)

    def test_outgoing_edges_in_input_order(self) -> None:
        assert self.lookup.get_outgoing_edges("1") == (_EDGES[0], _EDGES[2])

    def test_incoming_edges_in_input_order(self) -> None:
        assert self.lookup.get_incoming_edges("3") == (_EDGES[1], _EDGES[2])

    def test_get_node(self) -> None:
        assert self.lookup.get_node("2") == GraphNode(id="2", data={})

    def test_unknown_node_is_none(self) -> None:
        assert self.lookup.get_node("non-existent") is None

    def test_unknown_outgoing_is_none(self) -> None:
        assert self.lookup.get_outgoing_edges("non-existent") is None

    def test_unknown_incoming_is_none(self) -> None:
        assert self.lookup.get_incoming_edges("non-existent") is None

    def test_node_without_outgoing_edges_is_none(self) -> None:
        assert self.lookup.get_outgoing_edges("3") is None

    def test_neighbor_ids_outgoing_then_incoming(self) -> None:
        assert self.lookup.get_neighbor_ids("2") == ["3", "1"]

    def test_contains(self) -> None:
        assert "1" in self.lookup
        assert "4" not in self.lookup


class TestEmptyLookup:
    def test_empty_inputs(self) -> None:
        lookup = make_graph_lookup([], [])
        assert lookup.get_node("1") is None
        assert lookup.get_outgoing_edges("1") is None
        assert lookup.get_neighbor_ids("1") == []

    def test_every_edge_is_indexed_both_ways(self) -> None:
        lookup = make_graph_lookup(_NODES, _EDGES)
        for e in _EDGES:
            assert e in (lookup.get_outgoing_edges(e.source) or ())
            assert e in (lookup.get_incoming_edges(e.target) or ())
