"""Attack path deriver: rule-table matching of dangerous signal co-occurrences."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from kubeposture.engine import AttackPathRule, Severity, Signal, load_attack_path_rules


@dataclass
class AttackStep:
    kind: str
    why: str
    namespace: str = ""
    name: str = ""


@dataclass
class AttackPath:
    id: str
    title: str
    severity: Severity
    confidence: int
    steps: list[AttackStep] = field(default_factory=list)
    evidence: list[str] = field(default_factory=list)


def match_rule(rule: AttackPathRule, present: set[str]) -> AttackPath | None:
    """Return the path for *rule* if every step is supported by *present*."""
    evidence: list[str] = []
    for step in rule.steps:
        hit = next((n for n in step.requires_any if n in present), None)
        if hit is None:
            return None
        evidence.append(hit)
    return AttackPath(
        id=rule.id,
        title=rule.title,
        severity=rule.severity,
        confidence=rule.confidence,
        steps=[AttackStep(kind=s.kind, why=s.why) for s in rule.steps],
        evidence=evidence,
    )


def derive_attack_paths(
    signals: Iterable[Signal],
    rules: list[AttackPathRule] | None = None,
    rules_dir: str | Path | None = None,
) -> list[AttackPath]:
    """Evaluate every rule independently; several paths may fire at once."""
    if rules is None:
        rules = load_attack_path_rules(rules_dir)
    present = {s.name for s in signals}
    paths: list[AttackPath] = []
    for rule in rules:
        path = match_rule(rule, present)
        if path is not None:
            paths.append(path)
    return paths
