"""O(1) adjacency lookups over a node/edge set."""

from __future__ import annotations

from collections.abc import Iterable

from resourcemap.graph.models import GraphEdge, GraphNode


class GraphLookup:
    """Node-by-id and edges-by-endpoint maps built once per graph.

    Accessors return None for ids they have never seen. Edge sequences
    preserve the order the edges were supplied in.
    """

    def __init__(
        self,
        nodes_by_id: dict[str, GraphNode],
        outgoing: dict[str, tuple[GraphEdge, ...]],
        incoming: dict[str, tuple[GraphEdge, ...]],
    ) -> None:
        self._nodes = nodes_by_id
        self._outgoing = outgoing
        self._incoming = incoming

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._nodes.get(node_id)

    def get_outgoing_edges(self, node_id: str) -> tuple[GraphEdge, ...] | None:
        return self._outgoing.get(node_id)

    def get_incoming_edges(self, node_id: str) -> tuple[GraphEdge, ...] | None:
        return self._incoming.get(node_id)

    def get_neighbor_ids(self, node_id: str) -> list[str]:
        """Ids adjacent to ``node_id`` in either direction, outgoing first."""
        ids = [edge.target for edge in self._outgoing.get(node_id, ())]
        ids.extend(edge.source for edge in self._incoming.get(node_id, ()))
        return ids

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes


def make_graph_lookup(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> GraphLookup:
    """Build a :class:`GraphLookup` in O(n + e)."""
    nodes_by_id: dict[str, GraphNode] = {}
    for node in nodes:
        nodes_by_id[node.id] = node

    outgoing: dict[str, list[GraphEdge]] = {}
    incoming: dict[str, list[GraphEdge]] = {}
    for edge in edges:
        outgoing.setdefault(edge.source, []).append(edge)
        incoming.setdefault(edge.target, []).append(edge)

    return GraphLookup(
        nodes_by_id,
        {k: tuple(v) for k, v in outgoing.items()},
        {k: tuple(v) for k, v in incoming.items()},
    )
