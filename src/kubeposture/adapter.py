"""Finding-to-signal adapter.

Collaborators that only produce free text (``"[HIGH] Pod/web (default): ..."``)
are normalized here. Severity comes from a leading bracketed tag; named
categories come from the substring rules in ``rules/categories.yaml``; anything
else falls back to a severity-only category.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from kubeposture.engine import CategoryRule, Severity, Signal, load_category_rules

logger = logging.getLogger(__name__)

# LOW and INFO findings carry no fallback signal.
_FALLBACK: dict[Severity, tuple[str, int]] = {
    Severity.CRITICAL: ("CriticalFindingsPresent", 20),
    Severity.HIGH: ("HighFindingsPresent", 10),
    Severity.MEDIUM: ("MediumFindingsPresent", 5),
}


def parse_severity(finding: str) -> Severity:
    """Infer the severity of a free-text finding.

    ``[TAG] ...`` wins when TAG names a severity; otherwise a
    ``vulnerability:`` prefix means HIGH; anything else is INFO.
    """
    text = finding.strip()
    if text.startswith("["):
        end = text.find("]")
        if end > 1:
            sev = Severity.parse(text[1:end])
            if sev is not None:
                return sev
    if text.lower().startswith("vulnerability:"):
        return Severity.HIGH
    return Severity.INFO


def format_finding(severity: Severity, kind: str, name: str, namespace: str, message: str) -> str:
    """Render a finding in the tagged text form the adapter reads back."""
    return f"[{severity.value}] {kind}/{name} ({namespace or 'cluster-wide'}): {message}"


def classify(finding: str, rules: list[CategoryRule]) -> Signal | None:
    """Return the category signal for a single finding, ignoring run-level dedup."""
    lowered = finding.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.signal()
    severity = parse_severity(finding)
    fallback = _FALLBACK.get(severity)
    if fallback is None:
        return None
    name, weight = fallback
    return Signal(name=name, severity=severity, weight=weight)


def signals_from_findings(
    findings: Iterable[str],
    rules_dir: str | Path | None = None,
) -> list[Signal]:
    """Convert free-text findings into signals, one per category per run."""
    rules = load_category_rules(rules_dir)
    out: list[Signal] = []
    seen: set[str] = set()
    for finding in findings:
        signal = classify(finding, rules)
        if signal is None or signal.name in seen:
            continue
        seen.add(signal.name)
        out.append(signal)
    logger.debug("adapted %d signal(s) from findings", len(out))
    return out
