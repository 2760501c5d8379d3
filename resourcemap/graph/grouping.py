"""Grouping of a flat graph into one level of hierarchy.

Nodes are nested under synthetic group nodes, either by an explicit key
(namespace, host node, instance label) or, without a key, by connected
component. The input is never mutated; every call builds a new tree.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from resourcemap.graph.lookup import make_graph_lookup
from resourcemap.graph.models import (
    DEFAULT_NODE_WEIGHTS,
    GraphEdge,
    GraphNode,
    get_node_weight,
    iter_leaf_nodes,
)
from resourcemap.models.kube import KubeObject

_log = structlog.get_logger(component="graph.grouping")

INSTANCE_LABEL = "app.kubernetes.io/instance"
ROOT_ID = "root"

# Added to the weight of nodes with child edges when ordering the top level,
# so connected groups come before isolated nodes of similar importance.
CONNECTED_RANK_BONUS = 10000


class GroupBy(StrEnum):
    """Explicit grouping keys."""

    NAMESPACE = "namespace"
    NODE = "node"
    INSTANCE = "instance"


_GROUP_PREFIX = {
    GroupBy.NAMESPACE: "Namespace",
    GroupBy.NODE: "Node",
    GroupBy.INSTANCE: "Instance",
}


def _namespace_key(obj: KubeObject) -> str | None:
    return obj.namespace or None


def _node_name_key(obj: KubeObject) -> str | None:
    node_name = obj.get_path("spec", "nodeName")
    return node_name if isinstance(node_name, str) and node_name else None


def _instance_key(obj: KubeObject) -> str | None:
    return obj.labels.get(INSTANCE_LABEL) or None


_KEY_FUNCS: dict[GroupBy, Callable[[KubeObject], str | None]] = {
    GroupBy.NAMESPACE: _namespace_key,
    GroupBy.NODE: _node_name_key,
    GroupBy.INSTANCE: _instance_key,
}


def get_group_key(node: GraphNode, group_by: GroupBy) -> str | None:
    """Return the value ``node`` is grouped under, or None if it has none."""
    if node.kube_object is None:
        return None
    return _KEY_FUNCS[group_by](node.kube_object)


def get_main_node(
    nodes: Iterable[GraphNode], weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS
) -> GraphNode | None:
    """Return the node with the highest effective weight.

    Ties go to the smallest id so the choice never depends on input order.
    """
    return min(nodes, key=lambda n: (-get_node_weight(n, weights), n.id), default=None)


def get_rank_weight(node: GraphNode, weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS) -> int:
    """Weight used to order top-level nodes."""
    bonus = CONNECTED_RANK_BONUS if node.edges else 0
    return get_node_weight(node, weights) + bonus


def sort_by_rank(nodes: Iterable[GraphNode], weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS) -> list[GraphNode]:
    """Order nodes by rank weight, descending, then id ascending."""
    return sorted(nodes, key=lambda n: (-get_rank_weight(n, weights), n.id))


def get_graph_size(graph: GraphNode) -> int:
    """Number of leaf nodes in ``graph``."""
    return sum(1 for _ in iter_leaf_nodes(graph))


@dataclass
class _Component:
    members: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)


def _known_edges(edges: Iterable[GraphEdge], known_ids: set[str]) -> list[GraphEdge]:
    kept = []
    for edge in edges:
        if edge.source in known_ids and edge.target in known_ids:
            kept.append(edge)
        else:
            _log.debug("dangling_edge_dropped", edge=edge.id, source=edge.source, target=edge.target)
    return kept


def get_connected_components(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS,
) -> list[GraphNode]:
    """Split the graph into connected components, ignoring edge direction.

    Single-node components are returned as the node itself; larger ones as
    a ``group-<mainNodeId>`` node holding the members (in input order) and
    the edges between them (in input order).
    """
    position = {node.id: i for i, node in enumerate(nodes)}
    kept_edges = _known_edges(edges, set(position))
    lookup = make_graph_lookup(nodes, kept_edges)

    component_of: dict[str, int] = {}
    components: list[_Component] = []
    for node in nodes:
        if node.id in component_of:
            continue
        index = len(components)
        component = _Component()
        components.append(component)
        stack = [node.id]
        component_of[node.id] = index
        while stack:
            current = stack.pop()
            member = lookup.get_node(current)
            assert member is not None
            component.members.append(member)
            for neighbor in lookup.get_neighbor_ids(current):
                if neighbor not in component_of:
                    component_of[neighbor] = index
                    stack.append(neighbor)

    for edge in kept_edges:
        components[component_of[edge.source]].edges.append(edge)

    result = []
    for component in components:
        members = sorted(component.members, key=lambda n: position[n.id])
        if len(members) == 1:
            result.append(members[0])
            continue
        main = get_main_node(members, weights)
        assert main is not None
        result.append(GraphNode(id=f"group-{main.id}", nodes=tuple(members), edges=tuple(component.edges)))
    return result


def _group_by_key(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    group_by: GroupBy,
    group_objects: Mapping[str, KubeObject],
) -> tuple[list[GraphNode], list[GraphEdge]]:
    prefix = _GROUP_PREFIX[group_by]
    members: dict[str, list[GraphNode]] = {}
    container_of: dict[str, str] = {}
    # Either an ungrouped node or the key of a group, in first-seen order.
    entries: list[GraphNode | str] = []

    for node in nodes:
        key = get_group_key(node, group_by)
        if key is None:
            container_of[node.id] = node.id
            entries.append(node)
            continue
        if key not in members:
            members[key] = []
            entries.append(key)
        members[key].append(node)
        container_of[node.id] = f"{prefix}-{key}"

    child_edges: dict[str, list[GraphEdge]] = {}
    top_edges: list[GraphEdge] = []
    for edge in _known_edges(edges, set(container_of)):
        source = container_of[edge.source]
        target = container_of[edge.target]
        if source == target and source != edge.source:
            child_edges.setdefault(source, []).append(edge)
        elif source == edge.source and target == edge.target:
            top_edges.append(edge)
        else:
            top_edges.append(GraphEdge(id=edge.id, source=source, target=target, label=edge.label, data=edge.data))

    top_level: list[GraphNode] = []
    for entry in entries:
        if isinstance(entry, GraphNode):
            top_level.append(entry)
            continue
        group_id = f"{prefix}-{entry}"
        top_level.append(
            GraphNode(
                id=group_id,
                label=entry,
                kube_object=group_objects.get(entry),
                nodes=tuple(members[entry]),
                edges=tuple(child_edges.get(group_id, ())),
            )
        )
    return top_level, top_edges


def group_graph(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    group_by: GroupBy | str | None = None,
    *,
    namespaces: Iterable[KubeObject] = (),
    k8s_nodes: Iterable[KubeObject] = (),
    weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS,
) -> GraphNode:
    """Group ``nodes`` into one level of hierarchy under a root node.

    With ``group_by`` set, nodes sharing a key are nested in a
    ``<Kind>-<key>`` group; keyless nodes stay at the top level and edges
    crossing groups are re-pointed at the groups. Without it, connected
    components of two or more nodes become ``group-<mainNodeId>`` groups.

    ``namespaces`` and ``k8s_nodes`` supply the Namespace and Node objects
    that back namespace and node groups, when the caller has them.
    """
    if group_by is not None and not isinstance(group_by, GroupBy):
        try:
            group_by = GroupBy(group_by)
        except ValueError:
            raise ValueError(f"Unknown group by: {group_by!r}") from None

    if group_by is None:
        top_level = get_connected_components(nodes, edges, weights)
        top_edges: list[GraphEdge] = []
    else:
        if group_by is GroupBy.NAMESPACE:
            group_objects = {obj.name: obj for obj in namespaces}
        elif group_by is GroupBy.NODE:
            group_objects = {obj.name: obj for obj in k8s_nodes}
        else:
            group_objects = {}
        top_level, top_edges = _group_by_key(nodes, edges, group_by, group_objects)

    ordered = sort_by_rank(top_level, weights)
    _log.debug(
        "graph_grouped",
        group_by=group_by.value if group_by else None,
        nodes=len(nodes),
        top_level=len(ordered),
    )
    return GraphNode(id=ROOT_ID, nodes=tuple(ordered), edges=tuple(top_edges))
