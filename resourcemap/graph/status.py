"""Derived health status of a backing object."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from resourcemap.models.kube import KubeObject


class KubeObjectStatus(StrEnum):
    """Coarse health of an object, as shown on the map."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_CONTAINER_ERROR_REASONS = frozenset(
    {
        "CrashLoopBackOff",
        "ErrImagePull",
        "ImagePullBackOff",
        "InvalidImageName",
        "CreateContainerConfigError",
        "CreateContainerError",
        "RunContainerError",
        "OOMKilled",
        "Error",
    }
)

_REPLICATED_KINDS = frozenset({"Deployment", "StatefulSet", "ReplicaSet"})


def _as_int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _conditions(obj: KubeObject) -> list[Mapping[str, Any]]:
    return [c for c in obj.get_list("status", "conditions") if isinstance(c, Mapping)]


def _container_statuses(pod: KubeObject) -> list[Mapping[str, Any]]:
    statuses = []
    for key in ("initContainerStatuses", "containerStatuses", "ephemeralContainerStatuses"):
        statuses.extend(s for s in pod.get_list("status", key) if isinstance(s, Mapping))
    return statuses


def _container_failed(status: Mapping[str, Any]) -> bool:
    state = status.get("state")
    if not isinstance(state, Mapping):
        return False
    waiting = state.get("waiting")
    if isinstance(waiting, Mapping) and waiting.get("reason") in _CONTAINER_ERROR_REASONS:
        return True
    terminated = state.get("terminated")
    if isinstance(terminated, Mapping):
        return _as_int(terminated.get("exitCode")) != 0 and terminated.get("reason") != "Completed"
    return False


def _pod_status(pod: KubeObject) -> KubeObjectStatus:
    phase = pod.get_path("status", "phase")
    if phase == "Failed":
        return KubeObjectStatus.ERROR
    if any(_container_failed(s) for s in _container_statuses(pod)):
        return KubeObjectStatus.ERROR
    if phase == "Succeeded":
        return KubeObjectStatus.SUCCESS
    if phase in (None, "Pending", "Unknown"):
        return KubeObjectStatus.WARNING
    for condition in _conditions(pod):
        if condition.get("type") == "Ready" and condition.get("status") != "True":
            return KubeObjectStatus.WARNING
    return KubeObjectStatus.SUCCESS


def _replica_status(desired: int, available: int) -> KubeObjectStatus:
    if desired > 0 and available == 0:
        return KubeObjectStatus.ERROR
    if available < desired:
        return KubeObjectStatus.WARNING
    return KubeObjectStatus.SUCCESS


def _job_status(job: KubeObject) -> KubeObjectStatus:
    for condition in _conditions(job):
        if condition.get("type") == "Failed" and condition.get("status") == "True":
            return KubeObjectStatus.ERROR
    if _as_int(job.get_path("status", "failed")) > 0:
        return KubeObjectStatus.WARNING
    return KubeObjectStatus.SUCCESS


def get_status(obj: KubeObject | None) -> KubeObjectStatus:
    """Derive the health of ``obj``. Objects without known signals are healthy."""
    if obj is None:
        return KubeObjectStatus.SUCCESS
    kind = obj.kind
    if kind == "Pod":
        return _pod_status(obj)
    if kind in _REPLICATED_KINDS:
        replicas = obj.get_path("spec", "replicas")
        desired = 1 if replicas is None else _as_int(replicas)
        return _replica_status(desired, _as_int(obj.get_path("status", "availableReplicas")))
    if kind == "DaemonSet":
        return _replica_status(
            _as_int(obj.get_path("status", "desiredNumberScheduled")),
            _as_int(obj.get_path("status", "numberAvailable")),
        )
    if kind == "Job":
        return _job_status(obj)
    if kind in ("PersistentVolumeClaim", "PersistentVolume"):
        phase = obj.get_path("status", "phase")
        if phase in ("Lost", "Failed"):
            return KubeObjectStatus.ERROR
        if phase in ("Pending", "Released"):
            return KubeObjectStatus.WARNING
        return KubeObjectStatus.SUCCESS
    return KubeObjectStatus.SUCCESS
