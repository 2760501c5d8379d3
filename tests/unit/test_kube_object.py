"""Tests for the KubeObject wrapper and CRD helpers."""

from __future__ import annotations

from resourcemap.models.kube import KubeObject, crd_custom_kind, crd_group, crd_preferred_version
from tests.factories import make_object


class TestFromDict:
    def test_reads_metadata(self) -> None:
        owner = make_object("ReplicaSet", "web-abc")
        pod = make_object("Pod", "web-abc-1", namespace="prod", labels={"app": "web"}, owners=[owner], cluster="c1")
        assert pod.kind == "Pod"
        assert pod.name == "web-abc-1"
        assert pod.namespace == "prod"
        assert pod.uid == "uid-pod-web-abc-1"
        assert pod.labels == {"app": "web"}
        assert pod.cluster == "c1"
        assert pod.metadata.owner_references[0].uid == owner.uid

    def test_tolerates_missing_and_malformed_fields(self) -> None:
        obj = KubeObject.from_dict({"kind": "Pod", "metadata": {"labels": "nope", "ownerReferences": [1, {}]}})
        assert obj.name == ""
        assert obj.namespace is None
        assert obj.uid is None
        assert dict(obj.labels) == {}
        assert obj.metadata.owner_references == ()
        assert dict(obj.spec) == {}

    def test_empty_namespace_is_none(self) -> None:
        assert make_object("ClusterRole", "admin", namespace="").namespace is None


class TestGetPath:
    def setup_method(self) -> None:
        self.pod = make_object(
            "Pod",
            "web",
            spec={"volumes": [{"name": "cfg", "configMap": {"name": "app-config"}}]},
            webhooks=[{"name": "hook"}],
        )

    def test_walks_mappings_and_lists(self) -> None:
        assert self.pod.get_path("spec", "volumes", 0, "configMap", "name") == "app-config"

    def test_missing_step_is_none(self) -> None:
        assert self.pod.get_path("spec", "containers", 0, "env") is None
        assert self.pod.get_path("spec", "volumes", 5) is None
        assert self.pod.get_path("spec", "volumes", "name") is None

    def test_root_fields_come_from_raw(self) -> None:
        assert self.pod.get_list("webhooks") == [{"name": "hook"}]

    def test_get_list_of_non_list_is_empty(self) -> None:
        assert self.pod.get_list("spec", "volumes", 0) == []

    def test_empty_path_is_none(self) -> None:
        assert self.pod.get_path() is None


class TestOwnership:
    def test_is_owned_by(self) -> None:
        owner = make_object("ReplicaSet", "rs")
        pod = make_object("Pod", "p", owners=[owner])
        assert pod.is_owned_by(owner.uid)
        assert not pod.is_owned_by("other")
        assert not pod.is_owned_by(None)


class TestCRDHelpers:
    def test_reads_kind_group_and_storage_version(self) -> None:
        crd = make_object(
            "CustomResourceDefinition",
            "widgets.example.com",
            namespace=None,
            spec={
                "group": "example.com",
                "names": {"kind": "Widget", "plural": "widgets"},
                "versions": [{"name": "v1beta1", "served": True}, {"name": "v1", "served": True, "storage": True}],
            },
        )
        assert crd_custom_kind(crd) == "Widget"
        assert crd_group(crd) == "example.com"
        assert crd_preferred_version(crd) == "v1"

    def test_falls_back_to_first_served_version(self) -> None:
        crd = make_object(
            "CustomResourceDefinition",
            "gadgets.example.com",
            namespace=None,
            spec={"versions": [{"name": "v1alpha1", "served": False}, {"name": "v1beta1"}]},
        )
        assert crd_preferred_version(crd) == "v1beta1"
        assert crd_custom_kind(crd) is None
        assert crd_group(crd) == ""
