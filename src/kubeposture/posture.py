"""Posture aggregate: every signal seen during one assessment run."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable

from kubeposture.engine import Severity, Signal

logger = logging.getLogger(__name__)


class PostureFrozenError(RuntimeError):
    """Raised when a signal is added after scoring has begun."""


@dataclass
class RiskLevelCounts:
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low


def count_risk_levels(signals: Iterable[Signal]) -> RiskLevelCounts:
    """Tally every signal occurrence by severity; INFO is not counted."""
    counts = RiskLevelCounts()
    for s in signals:
        if s.severity == Severity.CRITICAL:
            counts.critical += 1
        elif s.severity == Severity.HIGH:
            counts.high += 1
        elif s.severity == Severity.MEDIUM:
            counts.medium += 1
        elif s.severity == Severity.LOW:
            counts.low += 1
    return counts


def deduplicate(signals: Iterable[Signal]) -> list[Signal]:
    """One signal per name, keeping the heaviest instance.

    Names keep their first-seen order. Ties keep the earlier instance and
    zero-weight signals never enter the projection.
    """
    best: dict[str, Signal] = {}
    for s in signals:
        current = best.get(s.name)
        if s.weight > (current.weight if current else 0):
            best[s.name] = s
    return list(best.values())


class PostureAggregate:
    """Append-only signal collection, safe for concurrent writers until frozen."""

    def __init__(self, signals: Iterable[Signal] = ()) -> None:
        self._signals: list[Signal] = list(signals)
        self._lock = threading.Lock()
        self._frozen = False

    def add(self, signal: Signal) -> None:
        self.extend([signal])

    def extend(self, signals: Iterable[Signal]) -> None:
        batch = list(signals)
        with self._lock:
            if self._frozen:
                raise PostureFrozenError("posture aggregate is frozen")
            self._signals.extend(batch)
        logger.debug("merged %d signal(s)", len(batch))

    def freeze(self) -> PostureAggregate:
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def signals(self) -> tuple[Signal, ...]:
        with self._lock:
            return tuple(self._signals)

    def deduplicated(self) -> list[Signal]:
        return deduplicate(self.signals)

    def count_risk_levels(self) -> RiskLevelCounts:
        return count_risk_levels(self.signals)

    def __len__(self) -> int:
        return len(self._signals)

    def __iter__(self):
        return iter(self.signals)
