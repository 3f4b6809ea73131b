"""Network isolation check: namespaces running workloads without any NetworkPolicy."""

from __future__ import annotations

from typing import Any

from kubeposture.adapter import format_finding
from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.analyzers.workloads import WORKLOAD_KINDS
from kubeposture.config import ScanConfig
from kubeposture.engine import Severity
from kubeposture.manifests import by_kind, metadata

SYSTEM_NAMESPACES = {"kube-system", "kube-public", "kube-node-lease"}


def unprotected_namespaces(manifests: list[dict[str, Any]]) -> dict[str, int]:
    """Namespace -> workload count, for namespaces with workloads and no policy."""
    workloads: dict[str, int] = {}
    for obj in manifests:
        if obj.get("kind") in WORKLOAD_KINDS:
            _, ns = metadata(obj)
            ns = ns or "default"
            workloads[ns] = workloads.get(ns, 0) + 1

    covered = {metadata(p)[1] or "default" for p in by_kind(manifests, "NetworkPolicy")}
    return {
        ns: count for ns, count in sorted(workloads.items())
        if ns not in covered and ns not in SYSTEM_NAMESPACES
    }


def analyze(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    result = AnalyzerResult()
    for ns, count in unprotected_namespaces(manifests).items():
        result.namespaces.append(ns)
        result.findings.append(format_finding(
            Severity.HIGH, "Namespace", ns, ns,
            f"no NetworkPolicy defined for {count} workload(s)"))
    return result
