"""Filtering of a graph down to matching nodes plus one hop of context."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import ClassVar

import structlog

from resourcemap.graph.lookup import make_graph_lookup
from resourcemap.graph.models import GraphData, GraphEdge, GraphNode
from resourcemap.graph.status import KubeObjectStatus, get_status
from resourcemap.models.kube import KubeObject

_log = structlog.get_logger(component="graph.filtering")


@dataclass(frozen=True)
class NamespaceFilter:
    """Keep nodes whose backing object lives in one of ``namespaces``.

    An empty set places no restriction.
    """

    namespaces: frozenset[str] = field(default_factory=frozenset)
    type: ClassVar[str] = "namespace"

    def __post_init__(self) -> None:
        if not isinstance(self.namespaces, frozenset):
            object.__setattr__(self, "namespaces", frozenset(self.namespaces))

    def matches(self, node: GraphNode) -> bool:
        if not self.namespaces:
            return True
        obj = node.kube_object
        return obj is not None and obj.namespace in self.namespaces


@dataclass(frozen=True)
class HasErrorsFilter:
    """Keep nodes whose derived status is an error."""

    status_of: Callable[[KubeObject | None], KubeObjectStatus] = field(default=get_status, compare=False)
    type: ClassVar[str] = "hasErrors"

    def matches(self, node: GraphNode) -> bool:
        if node.kube_object is None:
            return False
        return self.status_of(node.kube_object) == KubeObjectStatus.ERROR


GraphFilter = NamespaceFilter | HasErrorsFilter


def filter_graph(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    filters: Iterable[GraphFilter],
) -> GraphData:
    """Reduce the graph to nodes matching every filter, plus their neighbours.

    Matching nodes come first in input order, followed by the nodes one edge
    away from them in edge traversal order (outgoing, then incoming). The
    result keeps every edge whose two endpoints both survived; an edge from
    a kept neighbour to a node outside the result is dropped on purpose, so
    the filtered graph never holds a dangling edge. With no filters the
    input is returned unchanged.
    """
    filters = list(filters)
    if not filters:
        return {"nodes": list(nodes), "edges": list(edges)}

    matched = [node for node in nodes if all(f.matches(node) for f in filters)]
    if not matched:
        return {"nodes": [], "edges": []}

    lookup = make_graph_lookup(nodes, edges)
    kept_ids = {node.id for node in matched}
    result = list(matched)
    for node in matched:
        for neighbor_id in lookup.get_neighbor_ids(node.id):
            if neighbor_id in kept_ids:
                continue
            neighbor = lookup.get_node(neighbor_id)
            if neighbor is None:
                continue
            kept_ids.add(neighbor_id)
            result.append(neighbor)

    kept_edges = [edge for edge in edges if edge.source in kept_ids and edge.target in kept_ids]
    _log.debug(
        "graph_filtered",
        filters=[f.type for f in filters],
        matched=len(matched),
        nodes=len(result),
        edges=len(kept_edges),
    )
    return {"nodes": result, "edges": kept_edges}
