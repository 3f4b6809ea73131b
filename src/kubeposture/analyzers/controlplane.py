"""Control-plane checks: expected ClusterRoles and anonymous access grants."""

from __future__ import annotations

from typing import Any

from kubeposture.adapter import format_finding
from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.config import ScanConfig
from kubeposture.engine import Severity, catalog_signal
from kubeposture.manifests import by_kind, metadata

_ANONYMOUS = {"system:anonymous", "system:unauthenticated"}


def missing_cluster_roles(manifests: list[dict[str, Any]], required: list[str]) -> list[str]:
    """Required ClusterRoles absent from the object set.

    Nothing is reported when no ClusterRole was collected at all; that is
    missing evidence, not a missing role.
    """
    present = {metadata(r)[0] for r in by_kind(manifests, "ClusterRole")}
    if not present:
        return []
    return [name for name in required if name not in present]


def analyze(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    config = config or ScanConfig()
    result = AnalyzerResult()

    for name in missing_cluster_roles(manifests, config.required_cluster_roles):
        result.signals.append(catalog_signal("MissingRequiredClusterRole"))
        result.evidence.append(format_finding(
            Severity.MEDIUM, "ClusterRole", name, "", "required cluster role is missing"))

    for binding in by_kind(manifests, "RoleBinding", "ClusterRoleBinding"):
        name, ns = metadata(binding)
        anonymous = sorted({str(s.get("name")) for s in binding.get("subjects") or []} & _ANONYMOUS)
        if anonymous:
            role = (binding.get("roleRef") or {}).get("name", "?")
            result.findings.append(format_finding(
                Severity.CRITICAL, binding.get("kind", "RoleBinding"), name, ns,
                f"grants role {role} to {', '.join(anonymous)}"))
    return result
