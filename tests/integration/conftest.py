"""Shared fixtures for resourcemap integration tests.

Provides a small but realistic cluster (a web app with its controllers,
networking, configuration and RBAC, plus a custom resource) so the
engines can be exercised end to end without a real cluster.
"""

from __future__ import annotations

import pytest

from resourcemap.graph.models import GraphNode
from resourcemap.graph.relations import RelationRegistry
from resourcemap.graph.sources import make_kube_object_node
from resourcemap.models.kube import KubeObject
from tests.factories import make_object

_INSTANCE = {"app.kubernetes.io/instance": "shop"}


def _cluster_objects() -> list[KubeObject]:
    deployment = make_object(
        "Deployment",
        "web",
        namespace="shop",
        labels=_INSTANCE,
        spec={"replicas": 2, "template": {"spec": {"serviceAccountName": "web"}}},
        status={"availableReplicas": 1},
    )
    replicaset = make_object(
        "ReplicaSet",
        "web-7b4f8c6d",
        namespace="shop",
        labels=_INSTANCE,
        owners=[deployment],
        spec={"replicas": 2},
        status={"availableReplicas": 1},
    )
    pod_spec = {
        "nodeName": "worker-1",
        "volumes": [
            {"name": "config", "configMap": {"name": "web-config"}},
            {"name": "data", "persistentVolumeClaim": {"claimName": "web-data"}},
        ],
        "containers": [
            {"name": "web", "env": [{"name": "DB_PASSWORD", "valueFrom": {"secretKeyRef": {"name": "db-creds"}}}]}
        ],
    }
    healthy_pod = make_object(
        "Pod",
        "web-7b4f8c6d-a",
        namespace="shop",
        labels={"app": "web", **_INSTANCE},
        owners=[replicaset],
        spec=pod_spec,
        status={"phase": "Running"},
    )
    crashing_pod = make_object(
        "Pod",
        "web-7b4f8c6d-b",
        namespace="shop",
        labels={"app": "web", **_INSTANCE},
        owners=[replicaset],
        spec={**pod_spec, "nodeName": "worker-2"},
        status={
            "phase": "Running",
            "containerStatuses": [{"name": "web", "state": {"waiting": {"reason": "CrashLoopBackOff"}}}],
        },
    )
    widget = make_object("Widget", "storefront", namespace="shop")
    return [
        deployment,
        replicaset,
        healthy_pod,
        crashing_pod,
        make_object("Service", "web", namespace="shop", spec={"selector": {"app": "web"}}),
        make_object("Endpoints", "web", namespace="shop"),
        make_object(
            "Ingress",
            "web",
            namespace="shop",
            spec={
                "rules": [{"http": {"paths": [{"backend": {"service": {"name": "web"}}}]}}],
                "tls": [{"secretName": "web-tls"}],
            },
        ),
        make_object("Secret", "web-tls", namespace="shop"),
        make_object("Secret", "db-creds", namespace="shop"),
        make_object("ConfigMap", "web-config", namespace="shop"),
        make_object("PersistentVolumeClaim", "web-data", namespace="shop", status={"phase": "Bound"}),
        make_object(
            "HorizontalPodAutoscaler",
            "web",
            namespace="shop",
            spec={"scaleTargetRef": {"apiVersion": "apps/v1", "kind": "Deployment", "name": "web"}},
        ),
        make_object("ServiceAccount", "web", namespace="shop"),
        make_object(
            "RoleBinding",
            "web-reader",
            namespace="shop",
            roleRef={"kind": "Role", "name": "reader"},
            subjects=[{"kind": "ServiceAccount", "name": "web"}],
        ),
        make_object("Role", "reader", namespace="shop"),
        widget,
        make_object("Deployment", "storefront-worker", namespace="shop", owners=[widget], status={}),
        make_object("ConfigMap", "unrelated", namespace="tools"),
        make_object("Pod", "debug", namespace="tools", status={"phase": "Running"}),
    ]


@pytest.fixture
def cluster_objects() -> list[KubeObject]:
    return _cluster_objects()


@pytest.fixture
def cluster_nodes(cluster_objects: list[KubeObject]) -> list[GraphNode]:
    return [make_kube_object_node(obj) for obj in cluster_objects]


@pytest.fixture
def widget_crd() -> KubeObject:
    return make_object(
        "CustomResourceDefinition",
        "widgets.example.com",
        namespace=None,
        spec={
            "group": "example.com",
            "names": {"kind": "Widget", "plural": "widgets"},
            "versions": [{"name": "v1", "served": True, "storage": True}],
        },
    )


@pytest.fixture
def registry(widget_crd: KubeObject) -> RelationRegistry:
    registry = RelationRegistry()
    registry.register_crds([widget_crd])
    return registry
