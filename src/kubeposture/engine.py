"""Shared risk model: severities, signals, and the YAML rule tables that drive them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

BUNDLED_RULES_DIR = Path(__file__).resolve().parent / "rules"


class RuleError(ValueError):
    """Raised when a rule table file is malformed."""


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        return {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3, "INFO": 4}[self.value]

    @classmethod
    def parse(cls, text: str) -> Severity | None:
        """Return the severity named by *text* (any case), or None."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Signal:
    """A named, weighted unit of risk evidence."""

    name: str
    severity: Severity
    weight: int

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"signal {self.name!r} has negative weight {self.weight}")


# Typed categories emitted directly by the inspection routines. PrivilegedPod
# has no emitter here; it is kept for callers that extend an aggregate with
# typed pod signals of their own, and the bundled attack path accepts it.
SIGNAL_CATALOG: dict[str, tuple[Severity, int]] = {
    "WildcardRBAC": (Severity.HIGH, 25),
    "WildcardRBACResources": (Severity.HIGH, 20),
    "DangerousRBACVerbs": (Severity.MEDIUM, 15),
    "SecretsAccess": (Severity.HIGH, 20),
    "RBACEscalationVerbs": (Severity.HIGH, 25),
    "DeploymentMissingLabels": (Severity.MEDIUM, 15),
    "MissingRequiredClusterRole": (Severity.MEDIUM, 15),
    "PrivilegedPod": (Severity.HIGH, 25),
}


def catalog_signal(name: str) -> Signal:
    """Build the catalog signal for *name*."""
    severity, weight = SIGNAL_CATALOG[name]
    return Signal(name=name, severity=severity, weight=weight)


@dataclass
class CategoryRule:
    """Promotes a free-text finding to a named signal by substring match."""

    name: str
    severity: Severity
    weight: int
    contains_any: list[str] = field(default_factory=list)
    contains_all: list[str] = field(default_factory=list)

    def matches(self, lowered: str) -> bool:
        if self.contains_all and not all(s in lowered for s in self.contains_all):
            return False
        if self.contains_any and not any(s in lowered for s in self.contains_any):
            return False
        return bool(self.contains_any or self.contains_all)

    def signal(self) -> Signal:
        return Signal(name=self.name, severity=self.severity, weight=self.weight)


@dataclass
class StepRule:
    kind: str
    why: str
    requires_any: list[str]


@dataclass
class AttackPathRule:
    """Co-occurrence pattern: fires when every step has a supporting signal."""

    id: str
    title: str
    severity: Severity
    confidence: int
    steps: list[StepRule]


@dataclass
class RemediationRule:
    id: str
    title: str
    priority: Severity
    applies_to: str
    signal: str
    template: str


def _load_entries(path: Path) -> list[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise RuleError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        data = [data]
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise RuleError(f"{path}: entry {i} is not a mapping")
    return data


def _severity(path: Path, entry: dict[str, Any], key: str) -> Severity:
    sev = Severity.parse(str(entry.get(key, "")))
    if sev is None:
        raise RuleError(f"{path}: entry {entry.get('id') or entry.get('name')!r} has bad {key} {entry.get(key)!r}")
    return sev


def _names(values: Any) -> list[str]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]
    return [str(v) for v in values]


def _lowered(values: Any) -> list[str]:
    return [v.lower() for v in _names(values)]


def _integer(path: Path, entry: dict[str, Any], key: str, low: int, high: int | None = None) -> int:
    value = entry[key]
    label = entry.get("id") or entry.get("name")
    if isinstance(value, bool):
        raise RuleError(f"{path}: entry {label!r} has bad {key} {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise RuleError(f"{path}: entry {label!r} has bad {key} {value!r}") from exc
    if number < low or (high is not None and number > high):
        raise RuleError(f"{path}: entry {label!r} has {key} {number} out of range")
    return number


def _resolve(rules_dir: str | Path | None, filename: str) -> Path:
    base = Path(rules_dir) if rules_dir is not None else BUNDLED_RULES_DIR
    path = base / filename
    if not path.is_file() and rules_dir is not None:
        logger.debug("%s missing from %s, using bundled table", filename, base)
        path = BUNDLED_RULES_DIR / filename
    return path


_CACHE: dict[tuple[str, str], list[Any]] = {}


def _cached(filename: str, rules_dir: str | Path | None, parse) -> list[Any]:
    path = _resolve(rules_dir, filename)
    key = (filename, str(path))
    if key not in _CACHE:
        entries = _load_entries(path)
        try:
            _CACHE[key] = [parse(path, e) for e in entries]
        except KeyError as exc:
            raise RuleError(f"{path}: entry missing required field {exc}") from exc
        logger.debug("loaded %d rules from %s", len(_CACHE[key]), path)
    return _CACHE[key]


def _parse_category(path: Path, entry: dict[str, Any]) -> CategoryRule:
    rule = CategoryRule(
        name=entry["name"],
        severity=_severity(path, entry, "severity"),
        weight=_integer(path, entry, "weight", 0),
        contains_any=_lowered(entry.get("contains_any")),
        contains_all=_lowered(entry.get("contains_all")),
    )
    if not (rule.contains_any or rule.contains_all):
        raise RuleError(f"{path}: category {rule.name!r} has no match terms")
    return rule


def _parse_step(path: Path, rule_id: str, step: Any) -> StepRule:
    if not isinstance(step, dict):
        raise RuleError(f"{path}: attack path {rule_id!r} has a step that is not a mapping")
    requires_any = _names(step["requires_any"])
    if not requires_any:
        raise RuleError(f"{path}: attack path {rule_id!r} has a step with no required signals")
    return StepRule(kind=str(step["kind"]), why=str(step["why"]), requires_any=requires_any)


def _parse_attack_path(path: Path, entry: dict[str, Any]) -> AttackPathRule:
    raw_steps = entry["steps"]
    if not isinstance(raw_steps, list) or not raw_steps:
        raise RuleError(f"{path}: attack path {entry['id']!r} has no steps")
    steps = [_parse_step(path, entry["id"], s) for s in raw_steps]
    confidence = _integer(path, entry, "confidence", 0, 100)
    return AttackPathRule(
        id=entry["id"],
        title=entry["title"],
        severity=_severity(path, entry, "severity"),
        confidence=confidence,
        steps=steps,
    )


def _parse_remediation(path: Path, entry: dict[str, Any]) -> RemediationRule:
    return RemediationRule(
        id=entry["id"],
        title=entry["title"],
        priority=_severity(path, entry, "priority"),
        applies_to=entry["applies_to"],
        signal=entry["signal"],
        template=entry["template"],
    )


def load_category_rules(rules_dir: str | Path | None = None) -> list[CategoryRule]:
    """Finding-category rules, in evaluation order."""
    return _cached("categories.yaml", rules_dir, _parse_category)


def load_attack_path_rules(rules_dir: str | Path | None = None) -> list[AttackPathRule]:
    return _cached("attack_paths.yaml", rules_dir, _parse_attack_path)


def load_remediation_rules(rules_dir: str | Path | None = None) -> list[RemediationRule]:
    return _cached("remediations.yaml", rules_dir, _parse_remediation)


def clear_rule_cache() -> None:
    _CACHE.clear()
