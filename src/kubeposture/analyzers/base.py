"""Shared result type for the inspection routines."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubeposture.engine import Signal


@dataclass
class AnalyzerResult:
    """What one inspection routine observed.

    ``findings`` are free text normalized later by the adapter. ``signals``
    are typed and bypass the adapter; ``evidence`` is the report-only text
    behind them, never adapted, so a typed issue is not counted twice.
    ``namespaces`` are the namespaces a fix template should be rendered for.
    """

    findings: list[str] = field(default_factory=list)
    signals: list[Signal] = field(default_factory=list)
    evidence: list[str] = field(default_factory=list)
    namespaces: list[str] = field(default_factory=list)

    def merge(self, other: AnalyzerResult) -> None:
        self.findings.extend(other.findings)
        self.signals.extend(other.signals)
        self.evidence.extend(other.evidence)
        for ns in other.namespaces:
            if ns not in self.namespaces:
                self.namespaces.append(ns)
