"""Workload Security Analyzer.

Checks Pods and the pod templates of workload controllers for privileged
execution, host namespace sharing, risky mounts, weak security contexts,
mutable images, missing resource bounds, and secrets handed to containers.
"""

from __future__ import annotations

from typing import Any

from kubeposture.adapter import format_finding
from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.config import ScanConfig
from kubeposture.engine import Severity, catalog_signal
from kubeposture.manifests import metadata

CONTROLLER_KINDS = ("Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job")
WORKLOAD_KINDS = ("Pod", "CronJob") + CONTROLLER_KINDS

_INSECURE_CAPS = {"ALL", "NET_ADMIN", "SYS_ADMIN"}
_SENSITIVE_HOST_PATHS = ("/etc", "/var/run/docker.sock", "/proc", "/var/log")


def pod_spec(obj: dict[str, Any]) -> dict[str, Any] | None:
    """The pod spec of a Pod or a controller's template (CronJob nests one deeper)."""
    kind = obj.get("kind")
    spec = obj.get("spec") or {}
    if kind == "Pod":
        return spec
    if kind == "CronJob":
        spec = ((spec.get("jobTemplate") or {}).get("spec")) or {}
    template = spec.get("template") or {}
    return template.get("spec")


def _containers(spec: dict[str, Any]) -> list[dict[str, Any]]:
    return list(spec.get("initContainers") or []) + list(spec.get("containers") or [])


def _uses_mutable_tag(image: str) -> bool:
    if "@" in image:
        return False
    last = image.rsplit("/", 1)[-1]
    return ":" not in last or last.endswith(":latest")


def check_pod_spec(kind: str, name: str, ns: str, spec: dict[str, Any], controller: bool = False) -> list[str]:
    """Return text findings for one pod spec."""
    findings: list[str] = []

    def emit(sev: Severity, message: str) -> None:
        findings.append(format_finding(sev, kind, name, ns, message))

    if spec.get("hostNetwork"):
        emit(Severity.HIGH, "uses hostNetwork")
    if spec.get("hostPID"):
        emit(Severity.CRITICAL, "has hostPID access which can expose host processes")
    if spec.get("hostIPC"):
        emit(Severity.CRITICAL, "has hostIPC access which can expose the host IPC namespace")

    for volume in spec.get("volumes") or []:
        host_path = (volume.get("hostPath") or {}).get("path")
        if host_path:
            if host_path.startswith(_SENSITIVE_HOST_PATHS):
                emit(Severity.CRITICAL, f"mounts sensitive host path {host_path}")
            else:
                emit(Severity.MEDIUM, f"mounts host path {host_path}")
        secret = (volume.get("secret") or {}).get("secretName")
        if secret:
            emit(Severity.MEDIUM, f"mounts secret {secret} as a volume")

    if not spec.get("securityContext"):
        emit(Severity.INFO, "no pod security context defined")
    pod_non_root = (spec.get("securityContext") or {}).get("runAsNonRoot")

    for c in _containers(spec):
        cname = c.get("name", "?")
        sc = c.get("securityContext") or {}

        if sc.get("privileged"):
            emit(Severity.HIGH, f"container {cname} runs privileged")
        added = {str(cap).upper() for cap in (sc.get("capabilities") or {}).get("add") or []}
        for cap in sorted(added & _INSECURE_CAPS):
            emit(Severity.HIGH, f"container {cname} adds capability {cap}")
        if sc.get("allowPrivilegeEscalation"):
            emit(Severity.MEDIUM, f"container {cname} allows privilege escalation")
        if not sc.get("runAsNonRoot", pod_non_root):
            emit(Severity.INFO, f"container {cname} may run as root")
        if not sc.get("readOnlyRootFilesystem"):
            emit(Severity.INFO, f"container {cname} has writable root filesystem")

        image = str(c.get("image", ""))
        if image and _uses_mutable_tag(image):
            emit(Severity.MEDIUM, f"container {cname} uses mutable image tag ({image})")

        if controller:
            resources = c.get("resources") or {}
            if not resources.get("limits"):
                emit(Severity.MEDIUM, f"container {cname} has no resource limits defined")
            if not resources.get("requests"):
                emit(Severity.INFO, f"container {cname} has no resource requests defined")

        for env in c.get("env") or []:
            ref = ((env.get("valueFrom") or {}).get("secretKeyRef")) or {}
            if ref.get("name"):
                emit(Severity.HIGH, f"container {cname} reads secret {ref['name']} through env")
        for source in c.get("envFrom") or []:
            ref = source.get("secretRef") or {}
            if ref.get("name"):
                emit(Severity.HIGH, f"container {cname} loads secret {ref['name']} into env")

    return findings


def analyze(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    """Run workload checks over Pods and controller templates."""
    result = AnalyzerResult()
    for obj in manifests:
        kind = obj.get("kind")
        if kind not in WORKLOAD_KINDS:
            continue
        name, ns = metadata(obj)
        ns = ns or "default"

        if kind == "Deployment" and not (obj.get("metadata") or {}).get("labels"):
            result.signals.append(catalog_signal("DeploymentMissingLabels"))
            result.evidence.append(format_finding(Severity.MEDIUM, kind, name, ns, "deployment has no labels"))

        spec = pod_spec(obj)
        if spec is None:
            continue
        result.findings.extend(check_pod_spec(kind, name, ns, spec, controller=kind != "Pod"))
    return result
