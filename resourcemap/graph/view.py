"""End-to-end computation of the graph the map displays.

Pure: every refresh of cluster data calls
:func:`compute_graph_view` again with the new inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

import structlog

from resourcemap.graph.filtering import GraphFilter, filter_graph
from resourcemap.graph.grouping import ROOT_ID, GroupBy, group_graph, sort_by_rank
from resourcemap.graph.models import DEFAULT_NODE_WEIGHTS, GraphEdge, GraphNode, Relation
from resourcemap.graph.relations import infer_edges
from resourcemap.models.kube import KubeObject
from resourcemap.observability.metrics import graph_compute_duration_seconds

if TYPE_CHECKING:
    from resourcemap.models.config import GraphConfig

_log = structlog.get_logger(component="graph.view")


def compute_graph_view(
    nodes: Sequence[GraphNode],
    relations: Iterable[Relation],
    *,
    extra_edges: Iterable[GraphEdge] = (),
    filters: Iterable[GraphFilter] = (),
    group_by: GroupBy | str | None = None,
    grouping: bool = True,
    namespaces: Iterable[KubeObject] = (),
    k8s_nodes: Iterable[KubeObject] = (),
    weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS,
) -> GraphNode:
    """Infer edges, filter, then group ``nodes`` into the root node.

    ``extra_edges`` are edges a source supplied directly; they are kept
    after the inferred ones unless an inferred edge already has their id.
    With ``grouping`` off the filtered graph is returned flat under the
    root, ordered the same way grouped top levels are.
    """
    with graph_compute_duration_seconds.labels(stage="relations").time():
        edges = infer_edges(nodes, relations)
    seen = {edge.id for edge in edges}
    for edge in extra_edges:
        if edge.id not in seen:
            seen.add(edge.id)
            edges.append(edge)

    with graph_compute_duration_seconds.labels(stage="filter").time():
        filtered = filter_graph(nodes, edges, filters)
    view_nodes = filtered.get("nodes", [])
    view_edges = filtered.get("edges", [])

    if not grouping:
        _log.debug("graph_view_computed", nodes=len(view_nodes), edges=len(view_edges), grouped=False)
        return GraphNode(id=ROOT_ID, nodes=tuple(sort_by_rank(view_nodes, weights)), edges=tuple(view_edges))

    with graph_compute_duration_seconds.labels(stage="group").time():
        root = group_graph(
            view_nodes,
            view_edges,
            group_by,
            namespaces=namespaces,
            k8s_nodes=k8s_nodes,
            weights=weights,
        )
    _log.debug("graph_view_computed", nodes=len(view_nodes), edges=len(view_edges), grouped=True)
    return root


def compute_graph_view_from_config(
    nodes: Sequence[GraphNode],
    relations: Iterable[Relation],
    config: GraphConfig,
    *,
    extra_edges: Iterable[GraphEdge] = (),
    filters: Iterable[GraphFilter] = (),
    namespaces: Iterable[KubeObject] = (),
    k8s_nodes: Iterable[KubeObject] = (),
) -> GraphNode:
    """:func:`compute_graph_view` with grouping options taken from ``config``."""
    return compute_graph_view(
        nodes,
        relations,
        extra_edges=extra_edges,
        filters=filters,
        group_by=config.group_by,
        grouping=config.grouping_enabled,
        namespaces=namespaces,
        k8s_nodes=k8s_nodes,
        weights=config.node_weights(),
    )
