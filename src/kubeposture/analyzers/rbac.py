"""RBAC Rule Analyzer.

Inspects Roles and ClusterRoles for wildcard, escalation, and secret-reading
permissions (emitted as typed signals), and RoleBindings/ClusterRoleBindings
that hand out ``cluster-admin`` (emitted as text for the adapter).
"""

from __future__ import annotations

from typing import Any

from kubeposture.adapter import format_finding
from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.config import ScanConfig
from kubeposture.engine import Severity, catalog_signal
from kubeposture.manifests import by_kind, metadata

_DANGEROUS_VERBS = {"create", "delete", "update", "patch"}
_SENSITIVE_RESOURCES = {"secrets", "roles", "rolebindings", "clusterroles", "clusterrolebindings"}
_READ_VERBS = {"get", "list", "watch"}
_ESCALATION_VERBS = {"escalate", "bind", "impersonate"}
_BUILTIN_ROLES = {"cluster-admin"}
# Bound to cluster-admin by the control plane itself.
_BUILTIN_SUBJECTS = {"system:masters"}


def is_system(name: str) -> bool:
    return name.startswith("system:")


def extract_facts(role: dict[str, Any]) -> dict[str, Any]:
    """Collect the risky permission patterns of a single Role/ClusterRole."""
    facts: dict[str, Any] = {
        "wildcard_verbs": False,
        "wildcard_resources": False,
        "dangerous_permissions": [],  # "verb resource" pairs
        "reads_secrets": False,
        "escalation_verbs": [],
    }
    for rule in role.get("rules") or []:
        verbs = set(rule.get("verbs") or [])
        resources = set(rule.get("resources") or [])

        if "*" in verbs:
            facts["wildcard_verbs"] = True
        if "*" in resources:
            facts["wildcard_resources"] = True

        for resource in sorted(resources & _SENSITIVE_RESOURCES):
            for verb in sorted(verbs & _DANGEROUS_VERBS):
                facts["dangerous_permissions"].append(f"{verb} {resource}")

        if "secrets" in resources and (verbs & _READ_VERBS or "*" in verbs):
            facts["reads_secrets"] = True

        for verb in sorted(verbs & _ESCALATION_VERBS):
            if verb not in facts["escalation_verbs"]:
                facts["escalation_verbs"].append(verb)
    return facts


def _check_role(role: dict[str, Any]) -> AnalyzerResult:
    result = AnalyzerResult()
    kind = role.get("kind", "Role")
    name, ns = metadata(role)
    facts = extract_facts(role)

    def emit(signal_name: str, message: str) -> None:
        signal = catalog_signal(signal_name)
        result.signals.append(signal)
        result.evidence.append(format_finding(signal.severity, kind, name, ns, message))

    if facts["wildcard_verbs"]:
        emit("WildcardRBAC", "wildcard verbs")
    if facts["wildcard_resources"]:
        emit("WildcardRBACResources", "wildcard resources")
    if facts["dangerous_permissions"]:
        emit("DangerousRBACVerbs",
             "sensitive permissions: " + ", ".join(facts["dangerous_permissions"]))
    if facts["reads_secrets"]:
        emit("SecretsAccess", "can read secrets")
    if facts["escalation_verbs"]:
        emit("RBACEscalationVerbs",
             "escalation verbs: " + ", ".join(facts["escalation_verbs"]))
    return result


def _subject_label(subject: dict[str, Any]) -> str:
    ns = subject.get("namespace")
    name = subject.get("name", "")
    return f"{subject.get('kind', 'Subject')} {ns}/{name}" if ns else f"{subject.get('kind', 'Subject')} {name}"


def _check_binding(binding: dict[str, Any]) -> list[str]:
    name, ns = metadata(binding)
    if is_system(name):
        return []
    role_ref = binding.get("roleRef") or {}
    if role_ref.get("name") != "cluster-admin":
        return []
    subjects = [s for s in binding.get("subjects") or [] if str(s.get("name", "")) not in _BUILTIN_SUBJECTS]
    if not subjects:
        return []
    who = ", ".join(_subject_label(s) for s in subjects)
    return [format_finding(Severity.CRITICAL, binding.get("kind", "RoleBinding"), name, ns,
                           f"cluster-admin bound to {who}")]


def analyze(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    """Run RBAC analysis over the loaded objects."""
    result = AnalyzerResult()
    for role in by_kind(manifests, "Role", "ClusterRole"):
        name, _ = metadata(role)
        if is_system(name) or name in _BUILTIN_ROLES:
            continue
        result.merge(_check_role(role))
    for binding in by_kind(manifests, "RoleBinding", "ClusterRoleBinding"):
        result.findings.extend(_check_binding(binding))
    return result
