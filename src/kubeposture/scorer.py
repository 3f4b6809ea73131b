"""Posture Scorer: reduces a run's signals to a 0-100 risk score.

Higher is riskier. Only the deduplicated projection feeds the score, so
volume alone (ten pods with the same problem) cannot push it up; the
Euclidean norm keeps many small categories sub-additive while letting a few
serious ones dominate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from kubeposture.attack_paths import AttackPath, derive_attack_paths
from kubeposture.engine import Signal
from kubeposture.posture import RiskLevelCounts, count_risk_levels, deduplicate
from kubeposture.remediation import Remediation, map_remediations

SCORE_MULTIPLIER = 1.5
MAX_SCORE = 100
MAX_DRIVERS = 5
NO_DRIVERS = "No high-risk signals detected"


@dataclass
class PostureReport:
    """Everything the reporting layer needs for one run."""
    score: int                 # 0-100, higher is riskier
    drivers: list[str]
    counts: RiskLevelCounts
    attack_paths: list[AttackPath] = field(default_factory=list)
    remediations: list[Remediation] = field(default_factory=list)
    distinct_signals: int = 0
    total_signals: int = 0
    risk_summary: str = ""


def compute_score(signals: Iterable[Signal]) -> int:
    """``min(100, floor(sqrt(sum of squared max weights) * 1.5))``."""
    sum_squared = sum(s.weight * s.weight for s in deduplicate(signals))
    return min(MAX_SCORE, int(math.sqrt(sum_squared) * SCORE_MULTIPLIER))


def rank_drivers(signals: Iterable[Signal], limit: int = MAX_DRIVERS) -> list[str]:
    """Heaviest categories first, name ascending on equal weight."""
    ranked = sorted(deduplicate(signals), key=lambda s: (-s.weight, s.name))
    drivers = [f"{s.name} ({s.severity.value}, +{s.weight})" for s in ranked[:limit]]
    return drivers or [NO_DRIVERS]


def summarize(score: int) -> str:
    if score == 0:
        return "No risk signals. Nothing to act on."
    if score < 30:
        return "Low risk. A few hygiene issues to clean up."
    if score < 60:
        return "Moderate risk. Several categories of misconfiguration present."
    if score < 80:
        return "High risk. Serious, independent weaknesses detected."
    return "CRITICAL RISK. Escalation to cluster control is plausible."


def assess(signals: Iterable[Signal], rules_dir: str | Path | None = None) -> PostureReport:
    """Run every read-only pass over a frozen signal set."""
    signals = tuple(signals)
    score = compute_score(signals)
    return PostureReport(
        score=score,
        drivers=rank_drivers(signals),
        counts=count_risk_levels(signals),
        attack_paths=derive_attack_paths(signals, rules_dir=rules_dir),
        remediations=map_remediations(signals, rules_dir=rules_dir),
        distinct_signals=len(deduplicate(signals)),
        total_signals=len(signals),
        risk_summary=summarize(score),
    )
