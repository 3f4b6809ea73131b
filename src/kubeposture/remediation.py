"""Remediation mapper: fix templates keyed by signal category."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from kubeposture.engine import RemediationRule, Severity, Signal, load_remediation_rules

NAMESPACE_PLACEHOLDER = "{{NAMESPACE}}"


@dataclass
class Remediation:
    id: str
    title: str
    priority: Severity
    applies_to: str
    template: str

    def render(self, namespace: str) -> str:
        """Return the template with the namespace placeholder filled in."""
        return self.template.replace(NAMESPACE_PLACEHOLDER, namespace)


def map_remediations(
    signals: Iterable[Signal],
    rules: list[RemediationRule] | None = None,
    rules_dir: str | Path | None = None,
) -> list[Remediation]:
    """One remediation per occurrence of a triggering signal.

    Not deduplicated; use :func:`unique_remediations` for one entry per id.
    """
    if rules is None:
        rules = load_remediation_rules(rules_dir)
    by_signal: dict[str, list[RemediationRule]] = {}
    for rule in rules:
        by_signal.setdefault(rule.signal, []).append(rule)

    fixes: list[Remediation] = []
    for s in signals:
        for rule in by_signal.get(s.name, []):
            fixes.append(
                Remediation(
                    id=rule.id,
                    title=rule.title,
                    priority=rule.priority,
                    applies_to=rule.applies_to,
                    template=rule.template,
                )
            )
    return fixes


def unique_remediations(fixes: Iterable[Remediation]) -> list[Remediation]:
    seen: set[str] = set()
    out: list[Remediation] = []
    for fix in fixes:
        if fix.id not in seen:
            seen.add(fix.id)
            out.append(fix)
    return out
