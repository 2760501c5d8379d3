"""Graph sources: the toggleable contributors of nodes and edges.

A source tree is walked to find the enabled leaves, whose data is merged
into the single flat node/edge set the engines work on.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from itertools import groupby

import structlog

from resourcemap.graph.models import GraphData, GraphEdge, GraphNode, GraphSource
from resourcemap.models.kube import KubeObject, crd_custom_kind, crd_group, crd_preferred_version

_log = structlog.get_logger(component="graph.sources")


def kube_object_node_id(obj: KubeObject) -> str:
    """The uid of ``obj``, or a name-derived id for objects without one."""
    if obj.uid:
        return obj.uid
    parts = [obj.cluster, obj.kind, obj.namespace or "", obj.name]
    return "-".join(part for part in parts if part)


def make_kube_object_node(obj: KubeObject, custom_resource_definition: str | None = None) -> GraphNode:
    """Wrap a backing object in a graph node."""
    return GraphNode(
        id=kube_object_node_id(obj),
        kube_object=obj,
        custom_resource_definition=custom_resource_definition,
    )


def make_kube_source(
    kind: str,
    list_objects: Callable[[], Sequence[KubeObject] | None],
    label: str | None = None,
    custom_resource_definition: str | None = None,
) -> GraphSource:
    """A leaf source exposing every object ``list_objects`` returns.

    ``list_objects`` returns None while the store has not listed the kind
    yet; the source then reports itself as not loaded.
    """

    def load() -> GraphData | None:
        items = list_objects()
        if items is None:
            return None
        return {"nodes": [make_kube_object_node(obj, custom_resource_definition) for obj in items]}

    return GraphSource(id=kind, label=label or kind, load=load)


def make_crd_sources(
    crds: Iterable[KubeObject],
    list_custom_resources: Callable[[KubeObject], Sequence[KubeObject] | None],
) -> list[GraphSource]:
    """One parent source per API group, holding a source per custom kind.

    Leaf labels carry the version the resources are listed at, e.g.
    ``Widget (v1)``.
    """
    leaves: list[tuple[str, GraphSource]] = []
    for crd in crds:
        kind = crd_custom_kind(crd)
        if kind is None:
            continue

        def list_objects(crd: KubeObject = crd) -> Sequence[KubeObject] | None:
            return list_custom_resources(crd)

        version = crd_preferred_version(crd)
        label = f"{kind} ({version})" if version else kind
        source = make_kube_source(kind, list_objects, label=label, custom_resource_definition=crd.name)
        leaves.append((crd_group(crd), source))

    leaves.sort(key=lambda item: item[0])
    return [
        GraphSource(id=f"crd-{group}", label=group, sources=tuple(source for _, source in items))
        for group, items in groupby(leaves, key=lambda item: item[0])
    ]


# (id, label, enabled by default, kinds)
_BUILTIN_SOURCE_GROUPS: tuple[tuple[str, str, bool, tuple[str, ...]], ...] = (
    ("workloads", "Workloads", True, ("Pod", "Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job", "CronJob")),
    ("storage", "Storage", True, ("PersistentVolumeClaim",)),
    ("network", "Network", True, ("Service", "Endpoints", "Ingress", "IngressClass", "NetworkPolicy")),
    ("security", "Security", False, ("ServiceAccount", "Role", "RoleBinding")),
    (
        "configuration",
        "Configuration",
        False,
        (
            "ConfigMap",
            "Secret",
            "MutatingWebhookConfiguration",
            "ValidatingWebhookConfiguration",
            "HorizontalPodAutoscaler",
        ),
    ),
)


def build_default_sources(
    list_objects: Callable[[str], Sequence[KubeObject] | None],
    crds: Iterable[KubeObject] = (),
    list_custom_resources: Callable[[KubeObject], Sequence[KubeObject] | None] | None = None,
) -> list[GraphSource]:
    """The built-in source tree, plus custom resource sources when given.

    ``list_objects`` is asked for the objects of one kind at load time.
    """
    sources = []
    for source_id, label, enabled, kinds in _BUILTIN_SOURCE_GROUPS:
        children = tuple(make_kube_source(kind, lambda kind=kind: list_objects(kind)) for kind in kinds)
        sources.append(GraphSource(id=source_id, label=label, sources=children, is_enabled_by_default=enabled))

    if list_custom_resources is not None:
        crd_sources = make_crd_sources(crds, list_custom_resources)
        if crd_sources:
            sources.append(
                GraphSource(
                    id="custom-resources",
                    label="Custom Resources",
                    sources=tuple(crd_sources),
                    is_enabled_by_default=False,
                )
            )
    return sources


def iter_leaf_sources(sources: Iterable[GraphSource]) -> Iterator[GraphSource]:
    """Yield every source that loads data, depth first."""
    for source in sources:
        if source.sources is not None:
            yield from iter_leaf_sources(source.sources)
        else:
            yield source


def get_default_selected_sources(sources: Iterable[GraphSource]) -> set[str]:
    """Ids of the leaves enabled by default.

    A parent disabled by default disables its whole subtree.
    """
    selected: set[str] = set()
    for source in sources:
        if not source.is_enabled_by_default:
            continue
        if source.sources is not None:
            selected |= get_default_selected_sources(source.sources)
        else:
            selected.add(source.id)
    return selected


def load_sources(sources: Iterable[GraphSource], selected_ids: Iterable[str]) -> GraphData | None:
    """Merge the data of every selected leaf source.

    Nodes and edges are deduplicated by id, first occurrence wins. Returns
    None while any selected source has not loaded yet.
    """
    selected = set(selected_ids)
    nodes: dict[str, GraphNode] = {}
    edges: dict[str, GraphEdge] = {}
    pending: list[str] = []
    for source in iter_leaf_sources(sources):
        if source.id not in selected:
            continue
        assert source.load is not None
        data = source.load()
        if data is None:
            pending.append(source.id)
            continue
        for node in data.get("nodes", ()):
            nodes.setdefault(node.id, node)
        for edge in data.get("edges", ()):
            edges.setdefault(edge.id, edge)

    if pending:
        _log.debug("sources_not_loaded", sources=pending)
        return None
    return {"nodes": list(nodes.values()), "edges": list(edges.values())}
