"""Collection: run the analyzers concurrently and merge into one aggregate.

Analyzers share nothing and run on a thread pool. Their results are merged on
the calling thread, in configured analyzer order, so the aggregate sees a
single writer and the same input always yields the same signal order.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from kubeposture.adapter import signals_from_findings
from kubeposture.analyzers import ANALYZERS, AnalyzerResult, run_analyzer
from kubeposture.config import ScanConfig
from kubeposture.posture import PostureAggregate

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    aggregate: PostureAggregate
    findings: list[str] = field(default_factory=list)   # adapted text findings
    evidence: list[str] = field(default_factory=list)   # text behind typed signals
    skipped: list[str] = field(default_factory=list)    # analyzers that failed
    namespaces: list[str] = field(default_factory=list)  # remediation targets

    @property
    def all_findings(self) -> list[str]:
        return self.findings + self.evidence

    def remediation_namespaces(self, fallback: str) -> list[str]:
        """Namespaces flagged during collection, or *fallback* when none were."""
        return list(self.namespaces) or [fallback]


def collect(manifests: list[dict[str, Any]], config: ScanConfig | None = None) -> CollectionResult:
    """Run the configured analyzers and return a frozen posture aggregate."""
    config = config or ScanConfig()
    names = []
    for name in config.analyzers:
        if name in ANALYZERS:
            names.append(name)
        else:
            logger.warning("unknown analyzer %r skipped", name)

    aggregate = PostureAggregate()
    result = CollectionResult(aggregate=aggregate)

    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        futures: list[tuple[str, Future[AnalyzerResult]]] = [
            (name, pool.submit(run_analyzer, name, manifests, config)) for name in names
        ]
        for name, future in futures:
            try:
                part = future.result()
            except Exception as exc:
                logger.warning("analyzer %r failed, contributing no signals: %s", name, exc)
                result.skipped.append(name)
                continue
            result.findings.extend(part.findings)
            result.evidence.extend(part.evidence)
            for ns in part.namespaces:
                if ns not in result.namespaces:
                    result.namespaces.append(ns)
            aggregate.extend(part.signals)
            logger.debug("analyzer %r: %d finding(s), %d typed signal(s)",
                         name, len(part.findings), len(part.signals))

    aggregate.extend(signals_from_findings(result.findings, config.rules_dir))
    aggregate.freeze()
    return result


def collect_findings(findings: list[str], config: ScanConfig | None = None) -> CollectionResult:
    """Build a frozen aggregate from free-text findings alone."""
    config = config or ScanConfig()
    aggregate = PostureAggregate(signals_from_findings(findings, config.rules_dir)).freeze()
    return CollectionResult(aggregate=aggregate, findings=list(findings))
