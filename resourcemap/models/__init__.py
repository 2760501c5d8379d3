"""Core data structures for resourcemap."""

from resourcemap.models.kube import (
    CRD_KIND,
    KubeMetadata,
    KubeObject,
    OwnerReference,
    crd_custom_kind,
    crd_group,
    crd_preferred_version,
)

__all__ = [
    "CRD_KIND",
    "KubeMetadata",
    "KubeObject",
    "OwnerReference",
    "crd_custom_kind",
    "crd_group",
    "crd_preferred_version",
]
