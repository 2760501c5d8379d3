"""Relation inference: turns a node set into the edges between them.

Each relation covers one pair of object kinds (or one kind and every
other node, for ownership). Static relations are known up front; custom
resources get one ownership relation per discovered
CustomResourceDefinition through :class:`RelationRegistry`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import structlog

from resourcemap.graph.models import GraphEdge, GraphNode, Relation
from resourcemap.models.kube import CRD_KIND, KubeObject, crd_custom_kind
from resourcemap.observability.metrics import (
    graph_edges_inferred_total,
    relation_predicate_errors_total,
)

_log = structlog.get_logger(component="graph.relations")

_APPS_V1 = "apps/v1"


def _dig(value: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _items(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def matches_labels(match_labels: Mapping[str, str] | None, item: KubeObject) -> bool:
    """Whether every selector pair is present and equal in ``item``'s labels.

    An empty or missing selector matches nothing.
    """
    if not match_labels or not isinstance(match_labels, Mapping):
        return False
    labels = item.labels
    if not labels:
        return False
    return all(labels.get(key) == value for key, value in match_labels.items())


def _same_namespace(a: KubeObject, b: KubeObject) -> bool:
    return a.namespace == b.namespace


def make_relation(
    key: str,
    from_kind: str,
    to_kind: str,
    selector: Callable[[KubeObject, KubeObject], Any],
) -> Relation:
    """Build a cross-kind relation from a selector over the two objects."""

    def predicate(from_node: GraphNode, to_node: GraphNode) -> bool:
        assert from_node.kube_object is not None and to_node.kube_object is not None
        return bool(selector(from_node.kube_object, to_node.kube_object))

    return Relation(key=key, from_source=from_kind, to_source=to_kind, predicate=predicate)


def make_owner_relation(kind: str) -> Relation:
    """Edges from a ``kind`` object to whatever it lists as an owner."""

    def predicate(from_node: GraphNode, to_node: GraphNode) -> bool:
        assert from_node.kube_object is not None and to_node.kube_object is not None
        return from_node.kube_object.is_owned_by(to_node.kube_object.uid)

    return Relation(key=f"{kind.lower()}-owner", from_source=kind, predicate=predicate)


def make_owner_relation_reversed(kind: str) -> Relation:
    """Edges from a ``kind`` object to whatever lists it as an owner.

    Used for custom resources, which are the owners of the built-in
    objects they manage rather than owned by them.
    """

    def predicate(from_node: GraphNode, to_node: GraphNode) -> bool:
        assert from_node.kube_object is not None and to_node.kube_object is not None
        return to_node.kube_object.is_owned_by(from_node.kube_object.uid)

    return Relation(key=f"{kind.lower()}-owns", from_source=kind, predicate=predicate)


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


def _volumes_reference_configmap(volumes: list[Any], name: str) -> bool:
    return any(_dig(volume, "configMap", "name") == name for volume in _items(volumes))


def _env_references_secret(containers: list[Any], name: str) -> bool:
    return any(
        _dig(env, "valueFrom", "secretKeyRef", "name") == name
        for container in _items(containers)
        for env in _items(container.get("env"))
    )


def _volumes_reference_secret(volumes: list[Any], name: str) -> bool:
    for volume in _items(volumes):
        if _dig(volume, "secret", "secretName") == name:
            return True
        for source in _items(_dig(volume, "projected", "sources")):
            if _dig(source, "secret", "name") == name:
                return True
    return False


def _configmap_in_pod(pod: KubeObject, cm: KubeObject) -> bool:
    return _same_namespace(pod, cm) and _volumes_reference_configmap(pod.get_list("spec", "volumes"), cm.name)


def _configmap_in_job(job: KubeObject, cm: KubeObject) -> bool:
    volumes = job.get_list("spec", "template", "spec", "volumes")
    return _same_namespace(job, cm) and _volumes_reference_configmap(volumes, cm.name)


def _secret_in_pod(pod: KubeObject, secret: KubeObject) -> bool:
    if not _same_namespace(pod, secret):
        return False
    return _env_references_secret(pod.get_list("spec", "containers"), secret.name) or _volumes_reference_secret(
        pod.get_list("spec", "volumes"), secret.name
    )


def _secret_in_job(job: KubeObject, secret: KubeObject) -> bool:
    containers = job.get_list("spec", "template", "spec", "containers")
    return _same_namespace(job, secret) and _env_references_secret(containers, secret.name)


def _hpa_targets(kind: str) -> Callable[[KubeObject, KubeObject], bool]:
    def selector(hpa: KubeObject, target: KubeObject) -> bool:
        ref = hpa.get_path("spec", "scaleTargetRef")
        return (
            _same_namespace(hpa, target)
            and _dig(ref, "apiVersion") == _APPS_V1
            and _dig(ref, "kind") == kind
            and _dig(ref, "name") == target.name
        )

    return selector


def _webhook_calls_service(config: KubeObject, service: KubeObject) -> bool:
    for webhook in config.get_list("webhooks"):
        ref = _dig(webhook, "clientConfig", "service")
        if _dig(ref, "name") == service.name and _dig(ref, "namespace") in (None, service.namespace):
            return True
    return False


def _service_selects_pod(service: KubeObject, pod: KubeObject) -> bool:
    return _same_namespace(service, pod) and matches_labels(service.get_path("spec", "selector"), pod)


def _endpoints_of_service(endpoints: KubeObject, service: KubeObject) -> bool:
    return _same_namespace(endpoints, service) and endpoints.name == service.name


def _ingress_routes_to_service(ingress: KubeObject, service: KubeObject) -> bool:
    if not _same_namespace(ingress, service):
        return False
    if _dig(ingress.get_path("spec", "defaultBackend"), "service", "name") == service.name:
        return True
    return any(
        _dig(path, "backend", "service", "name") == service.name
        for rule in ingress.get_list("spec", "rules")
        for path in _items(_dig(rule, "http", "paths"))
    )


def _ingress_uses_secret(ingress: KubeObject, secret: KubeObject) -> bool:
    return _same_namespace(ingress, secret) and any(
        tls.get("secretName") == secret.name for tls in _items(ingress.get_path("spec", "tls"))
    )


def _network_policy_selects_pod(policy: KubeObject, pod: KubeObject) -> bool:
    selector = policy.get_path("spec", "podSelector", "matchLabels")
    return _same_namespace(policy, pod) and matches_labels(selector, pod)


def _role_binding_to_role(binding: KubeObject, role: KubeObject) -> bool:
    ref = binding.get_path("roleRef")
    return _same_namespace(binding, role) and _dig(ref, "kind") in (None, "Role") and _dig(ref, "name") == role.name


def _role_binding_to_service_account(binding: KubeObject, sa: KubeObject) -> bool:
    for subject in _items(binding.get_path("subjects")):
        if subject.get("kind") != "ServiceAccount" or subject.get("name") != sa.name:
            continue
        if (subject.get("namespace") or binding.namespace) == sa.namespace:
            return True
    return False


def _service_account_runs(sa: KubeObject, workload: KubeObject) -> bool:
    name = workload.get_path("spec", "template", "spec", "serviceAccountName") or "default"
    return name == sa.name and _same_namespace(sa, workload)


def _pvc_mounted_by_pod(pvc: KubeObject, pod: KubeObject) -> bool:
    return _same_namespace(pvc, pod) and any(
        _dig(volume, "persistentVolumeClaim", "claimName") == pvc.name for volume in pod.get_list("spec", "volumes")
    )


def _job_owned_by_cronjob(job: KubeObject, cronjob: KubeObject) -> bool:
    return job.is_owned_by(cronjob.uid)


STATIC_RELATIONS: tuple[Relation, ...] = (
    make_relation("pod-configmap", "Pod", "ConfigMap", _configmap_in_pod),
    make_relation("job-configmap", "Job", "ConfigMap", _configmap_in_job),
    make_relation("pod-secret", "Pod", "Secret", _secret_in_pod),
    make_relation("job-secret", "Job", "Secret", _secret_in_job),
    make_relation("hpa-deployment", "HorizontalPodAutoscaler", "Deployment", _hpa_targets("Deployment")),
    make_relation("hpa-statefulset", "HorizontalPodAutoscaler", "StatefulSet", _hpa_targets("StatefulSet")),
    make_relation("vwc-service", "ValidatingWebhookConfiguration", "Service", _webhook_calls_service),
    make_relation("mwc-service", "MutatingWebhookConfiguration", "Service", _webhook_calls_service),
    make_relation("service-pod", "Service", "Pod", _service_selects_pod),
    make_relation("endpoints-service", "Endpoints", "Service", _endpoints_of_service),
    make_relation("ingress-service", "Ingress", "Service", _ingress_routes_to_service),
    make_relation("ingress-secret", "Ingress", "Secret", _ingress_uses_secret),
    make_relation("networkpolicy-pod", "NetworkPolicy", "Pod", _network_policy_selects_pod),
    make_relation("rolebinding-role", "RoleBinding", "Role", _role_binding_to_role),
    make_relation("rolebinding-serviceaccount", "RoleBinding", "ServiceAccount", _role_binding_to_service_account),
    make_relation("serviceaccount-deployment", "ServiceAccount", "Deployment", _service_account_runs),
    make_relation("serviceaccount-daemonset", "ServiceAccount", "DaemonSet", _service_account_runs),
    make_relation("pvc-pod", "PersistentVolumeClaim", "Pod", _pvc_mounted_by_pod),
    make_owner_relation("Pod"),
    make_owner_relation("ReplicaSet"),
    make_relation("job-cronjob", "Job", "CronJob", _job_owned_by_cronjob),
)


class RelationRegistry:
    """Static relations plus one ownership relation per discovered CRD.

    Custom resource kinds are only known once the cluster has been asked
    for its CustomResourceDefinitions, so they are registered at runtime.
    """

    def __init__(self, static_relations: Sequence[Relation] = STATIC_RELATIONS) -> None:
        self._static = tuple(static_relations)
        self._crd_relations: tuple[Relation, ...] = ()

    def register_crds(self, crds: Iterable[KubeObject]) -> None:
        """Replace the CRD-derived relations with ones for ``crds``."""
        seen: set[str] = set()
        relations = []
        for crd in crds:
            if crd.kind != CRD_KIND:
                _log.debug("register_crds_skipped_object", kind=crd.kind, name=crd.name)
                continue
            kind = crd_custom_kind(crd)
            if kind is None:
                _log.warning("crd_without_kind", crd=crd.name)
                continue
            if kind in seen:
                continue
            seen.add(kind)
            relations.append(make_owner_relation_reversed(kind))
        self._crd_relations = tuple(relations)
        _log.info("crd_relations_registered", count=len(relations))

    @property
    def crd_relations(self) -> tuple[Relation, ...]:
        return self._crd_relations

    def relations(self) -> tuple[Relation, ...]:
        """Static relations followed by CRD relations."""
        return self._static + self._crd_relations


def _evaluate(relation: Relation, from_node: GraphNode, to_node: GraphNode) -> bool:
    """Evaluate one pair; a raising predicate counts as no edge."""
    try:
        return relation.matches(from_node, to_node)
    except Exception as exc:  # noqa: BLE001
        relation_predicate_errors_total.labels(relation=relation.key).inc()
        _log.warning(
            "relation_predicate_failed",
            relation=relation.key,
            from_node=from_node.id,
            to_node=to_node.id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return False


def infer_edges(nodes: Iterable[GraphNode], relations: Iterable[Relation]) -> list[GraphEdge]:
    """Evaluate every relation over every candidate pair of ``nodes``.

    Edges come out grouped by relation (in relation order), then by source
    node and target node in input order. Self edges are only produced by
    relations that allow them.
    """
    node_list = list(nodes)
    by_kind: dict[str, list[GraphNode]] = {}
    for node in node_list:
        if node.kind:
            by_kind.setdefault(node.kind, []).append(node)

    edges: list[GraphEdge] = []
    for relation in relations:
        from_nodes = by_kind.get(relation.from_source)
        if not from_nodes:
            continue
        candidates = node_list if relation.to_source is None else by_kind.get(relation.to_source, [])
        emitted = 0
        for from_node in from_nodes:
            for to_node in candidates:
                if from_node.id == to_node.id and not relation.allows_self:
                    continue
                if _evaluate(relation, from_node, to_node):
                    edges.append(
                        GraphEdge(
                            id=f"{relation.key}-{from_node.id}-{to_node.id}",
                            source=from_node.id,
                            target=to_node.id,
                        )
                    )
                    emitted += 1
        if emitted:
            graph_edges_inferred_total.labels(relation=relation.key).inc(emitted)

    _log.debug("edges_inferred", nodes=len(node_list), edges=len(edges))
    return edges
