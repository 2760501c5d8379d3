"""Resource relationship graph.

Infers edges between Kubernetes objects (owner references, label
selectors, name references in specs), groups the resulting graph by
namespace, host node, instance label or connected component, and filters
it while keeping one hop of context around matches.
"""

from resourcemap.graph.filtering import GraphFilter, HasErrorsFilter, NamespaceFilter, filter_graph
from resourcemap.graph.grouping import GroupBy, get_connected_components, get_main_node, group_graph
from resourcemap.graph.lookup import GraphLookup, make_graph_lookup
from resourcemap.graph.models import (
    DEFAULT_NODE_WEIGHTS,
    GraphData,
    GraphEdge,
    GraphNode,
    GraphSource,
    Relation,
    for_each_node,
    get_node_weight,
)
from resourcemap.graph.relations import STATIC_RELATIONS, RelationRegistry, infer_edges
from resourcemap.graph.status import KubeObjectStatus, get_status
from resourcemap.graph.view import compute_graph_view

__all__ = [
    "DEFAULT_NODE_WEIGHTS",
    "GraphData",
    "GraphEdge",
    "GraphFilter",
    "GraphLookup",
    "GraphNode",
    "GraphSource",
    "GroupBy",
    "HasErrorsFilter",
    "KubeObjectStatus",
    "NamespaceFilter",
    "Relation",
    "RelationRegistry",
    "STATIC_RELATIONS",
    "compute_graph_view",
    "filter_graph",
    "for_each_node",
    "get_connected_components",
    "get_main_node",
    "get_node_weight",
    "get_status",
    "group_graph",
    "infer_edges",
    "make_graph_lookup",
]
