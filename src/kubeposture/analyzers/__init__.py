"""Inspection routines that turn Kubernetes objects into findings and signals."""

from __future__ import annotations

import importlib
from typing import Any

from kubeposture.analyzers.base import AnalyzerResult
from kubeposture.config import ScanConfig

ANALYZERS: dict[str, str] = {
    "rbac": "kubeposture.analyzers.rbac",
    "workloads": "kubeposture.analyzers.workloads",
    "secrets": "kubeposture.analyzers.secrets",
    "network": "kubeposture.analyzers.network",
    "controlplane": "kubeposture.analyzers.controlplane",
}


def run_analyzer(name: str, manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> AnalyzerResult:
    """Run a single analyzer by name. Unknown names raise KeyError."""
    module = importlib.import_module(ANALYZERS[name])
    return module.analyze(manifests, config)


__all__ = ["ANALYZERS", "AnalyzerResult", "run_analyzer"]
