"""Backing cluster object representation.

The object store hands over plain decoded API objects (``dict``). They are
wrapped in an immutable :class:`KubeObject` so every engine reads the same
fields the same way, and so a missing field reads as ``None`` instead of
raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

CRD_KIND = "CustomResourceDefinition"


@dataclass(frozen=True)
class OwnerReference:
    """One entry of ``metadata.ownerReferences``."""

    kind: str
    name: str
    uid: str


@dataclass(frozen=True)
class KubeMetadata:
    """The subset of ``metadata`` the graph engines read."""

    name: str = ""
    namespace: str | None = None
    uid: str | None = None
    labels: Mapping[str, str] = field(default_factory=dict)
    owner_references: tuple[OwnerReference, ...] = ()


def _mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _str_mapping(value: Any) -> dict[str, str]:
    return {str(k): str(v) for k, v in _mapping(value).items()}


def _owner_references(value: Any) -> tuple[OwnerReference, ...]:
    if not isinstance(value, list):
        return ()
    refs = []
    for item in value:
        if not isinstance(item, Mapping) or not item.get("uid"):
            continue
        refs.append(
            OwnerReference(
                kind=str(item.get("kind", "")),
                name=str(item.get("name", "")),
                uid=str(item["uid"]),
            )
        )
    return tuple(refs)


@dataclass(frozen=True)
class KubeObject:
    """A Kubernetes object as seen by the graph engines.

    ``spec`` and ``status`` stay generic mappings; kind-specific fields are
    read through :meth:`get_path`. ``cluster`` names the cluster the object
    was listed from so relations never connect objects across clusters.
    """

    kind: str
    metadata: KubeMetadata
    spec: Mapping[str, Any] = field(default_factory=dict)
    status: Mapping[str, Any] = field(default_factory=dict)
    cluster: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], cluster: str = "") -> KubeObject:
        """Build a KubeObject from a decoded API object."""
        meta = _mapping(data.get("metadata"))
        namespace = meta.get("namespace")
        uid = meta.get("uid")
        return cls(
            kind=str(data.get("kind", "")),
            metadata=KubeMetadata(
                name=str(meta.get("name", "")),
                namespace=str(namespace) if namespace else None,
                uid=str(uid) if uid else None,
                labels=_str_mapping(meta.get("labels")),
                owner_references=_owner_references(meta.get("ownerReferences")),
            ),
            spec=_mapping(data.get("spec")),
            status=_mapping(data.get("status")),
            cluster=cluster,
            raw=data,
        )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def uid(self) -> str | None:
        return self.metadata.uid

    @property
    def labels(self) -> Mapping[str, str]:
        return self.metadata.labels

    def get_path(self, *path: str | int) -> Any:
        """Walk ``path`` from the object root, returning None on any miss.

        String steps index mappings, integer steps index lists. ``spec`` and
        ``status`` resolve to the parsed fields; any other first step is
        looked up in the raw object.
        """
        if not path:
            return None
        head, *rest = path
        if head == "spec":
            current: Any = self.spec
        elif head == "status":
            current = self.status
        else:
            current = self.raw.get(head) if isinstance(head, str) else None
        for step in rest:
            if isinstance(step, int):
                if not isinstance(current, list) or not -len(current) <= step < len(current):
                    return None
                current = current[step]
            else:
                if not isinstance(current, Mapping):
                    return None
                current = current.get(step)
            if current is None:
                return None
        return current

    def get_list(self, *path: str | int) -> list[Any]:
        """Like :meth:`get_path` but always returns a list."""
        value = self.get_path(*path)
        return value if isinstance(value, list) else []

    def is_owned_by(self, uid: str | None) -> bool:
        """Whether an owner reference points at ``uid``."""
        if not uid:
            return False
        return any(ref.uid == uid for ref in self.metadata.owner_references)


def crd_custom_kind(crd: KubeObject) -> str | None:
    """Return the kind a CustomResourceDefinition declares."""
    kind = crd.get_path("spec", "names", "kind")
    return kind if isinstance(kind, str) and kind else None


def crd_group(crd: KubeObject) -> str:
    group = crd.get_path("spec", "group")
    return group if isinstance(group, str) else ""


def crd_preferred_version(crd: KubeObject) -> str | None:
    """Return the storage version of a CRD, else its first served version."""
    versions = [v for v in crd.get_list("spec", "versions") if isinstance(v, Mapping)]
    for version in versions:
        if version.get("storage") and version.get("name"):
            return str(version["name"])
    for version in versions:
        if version.get("served", True) and version.get("name"):
            return str(version["name"])
    return None
