"""Secret object checks: default and long-lived tokens, sensitive key names."""

from __future__ import annotations

from typing import Any

from kubeposture.adapter import format_finding
from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.config import ScanConfig
from kubeposture.engine import Severity
from kubeposture.manifests import by_kind, metadata

SA_TOKEN_TYPE = "kubernetes.io/service-account-token"
_SENSITIVE_KEYS = ("password", "token", "key", "secret", "credential", "cert")


def sensitive_keys(secret: dict[str, Any]) -> list[str]:
    keys = list((secret.get("data") or {}).keys()) + list((secret.get("stringData") or {}).keys())
    return sorted({k for k in keys if any(s in k.lower() for s in _SENSITIVE_KEYS)})


def analyze(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    result = AnalyzerResult()
    for secret in by_kind(manifests, "Secret"):
        name, ns = metadata(secret)
        ns = ns or "default"
        stype = secret.get("type", "Opaque")

        if stype == SA_TOKEN_TYPE:
            if name.startswith("default-token-"):
                result.findings.append(format_finding(
                    Severity.INFO, "Secret", name, ns, "default service account token created"))
            else:
                result.findings.append(format_finding(
                    Severity.LOW, "Secret", name, ns, "long-lived service account token"))
        elif stype == "Opaque":
            for key in sensitive_keys(secret):
                result.findings.append(format_finding(
                    Severity.INFO, "Secret", name, ns, f"contains potentially sensitive key {key}"))
    return result
