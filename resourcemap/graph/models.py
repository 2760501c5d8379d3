"""Data structures for the resource relationship graph."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypedDict

from resourcemap.models.kube import KubeObject


@dataclass(frozen=True)
class GraphEdge:
    """A directed edge between two node ids at the same graph level."""

    id: str
    source: str
    target: str
    label: str | None = None
    data: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class GraphNode:
    """A node on the map.

    Either backed by a Kubernetes object (``kube_object``) or synthetic,
    e.g. a group. A node may contain child ``nodes`` and the ``edges``
    connecting them, so a graph is a rooted tree of graphs.
    """

    id: str  # uid of the backing object when there is one
    label: str | None = None
    subtitle: str | None = None
    kube_object: KubeObject | None = None
    nodes: tuple[GraphNode, ...] | None = None
    edges: tuple[GraphEdge, ...] | None = None
    collapsed: bool | None = None  # display hint only
    weight: int | None = None
    data: Any = field(default=None, compare=False)
    custom_resource_definition: str | None = None

    @property
    def display_label(self) -> str:
        if self.label is not None:
            return self.label
        if self.kube_object is not None:
            return self.kube_object.name
        return self.id

    @property
    def display_subtitle(self) -> str | None:
        if self.subtitle is not None:
            return self.subtitle
        if self.kube_object is not None:
            return self.kube_object.kind
        return None

    @property
    def kind(self) -> str | None:
        return self.kube_object.kind if self.kube_object is not None else None


def for_each_node(graph: GraphNode, cb: Callable[[GraphNode], None]) -> None:
    """Call ``cb`` on ``graph`` and every descendant, parents first."""
    cb(graph)
    for child in graph.nodes or ():
        for_each_node(child, cb)


def iter_leaf_nodes(graph: GraphNode) -> Iterator[GraphNode]:
    """Yield every node below ``graph`` that has no children of its own."""
    for child in graph.nodes or ():
        if child.nodes:
            yield from iter_leaf_nodes(child)
        else:
            yield child


class GraphData(TypedDict, total=False):
    """Nodes and edges contributed by a source or produced by a filter."""

    nodes: list[GraphNode]
    edges: list[GraphEdge]


@dataclass(frozen=True)
class GraphSource:
    """A named, toggleable contributor of nodes and edges.

    Sources form a tree: a source lists child ``sources`` or exposes a
    ``load`` callable returning its data, or None while not yet loaded.
    """

    id: str
    label: str
    sources: tuple[GraphSource, ...] | None = None
    load: Callable[[], GraphData | None] | None = field(default=None, compare=False)
    is_enabled_by_default: bool = True

    def __post_init__(self) -> None:
        if (self.sources is None) == (self.load is None):
            raise ValueError(f"GraphSource {self.id!r} needs exactly one of sources or load")


@dataclass(frozen=True)
class Relation:
    """A rule for inferring edges from ``from_source`` nodes.

    ``from_source`` and ``to_source`` are object kinds. Without
    ``to_source`` every other node is a candidate target. The predicate
    must be pure; :meth:`matches` guards it so that objects from different
    clusters are never related.
    """

    key: str
    from_source: str
    predicate: Callable[[GraphNode, GraphNode], bool] = field(compare=False)
    to_source: str | None = None
    allows_self: bool = False

    def matches(self, from_node: GraphNode, to_node: GraphNode) -> bool:
        from_obj = from_node.kube_object
        to_obj = to_node.kube_object
        if from_obj is None or to_obj is None:
            return False
        if from_obj.cluster != to_obj.cluster:
            return False
        return bool(self.predicate(from_node, to_node))


# Higher weight = more important. Drives the main node of a group and the
# ordering of top-level nodes.
DEFAULT_NODE_WEIGHTS: Mapping[str, int] = MappingProxyType(
    {
        # Scaling
        "HorizontalPodAutoscaler": 1000,
        # Workload controllers
        "Deployment": 980,
        "StatefulSet": 960,
        "DaemonSet": 960,
        "CronJob": 960,
        "ReplicaSet": 960,
        "Job": 920,
        # Runtime
        "Pod": 800,
        # Direct pod dependencies
        "ServiceAccount": 960,
        "RoleBinding": 960,
        "ClusterRoleBinding": 960,
        "Role": 790,
        "ClusterRole": 790,
        "Service": 790,
        "NetworkPolicy": 790,
        "PersistentVolumeClaim": 790,
        "ConfigMap": 790,
        "Secret": 790,
        # Supporting network resources
        "Endpoints": 780,
        "EndpointSlice": 780,
        "MutatingWebhookConfiguration": 780,
        "ValidatingWebhookConfiguration": 780,
        "IngressClass": 780,
        "Ingress": 780,
        # Storage
        "StorageClass": 770,
        "CSIDriver": 760,
        "PersistentVolume": 750,
        # Extensions
        "CustomResourceDefinition": 600,
        "default": 500,
    }
)


def get_node_weight(node: GraphNode, weights: Mapping[str, int] = DEFAULT_NODE_WEIGHTS) -> int:
    """Return the effective weight of ``node``.

    The explicit ``node.weight`` wins; otherwise the weight of the backing
    object's kind, falling back to the table's ``default`` entry.
    """
    if node.weight is not None:
        return node.weight
    kind = node.kind
    if kind and kind in weights:
        return weights[kind]
    return weights.get("default", DEFAULT_NODE_WEIGHTS["default"])
