"""Scan configuration: defaults, optionally overridden by a YAML file."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ANALYZERS = ["rbac", "workloads", "secrets", "network", "controlplane"]


class ConfigError(ValueError):
    """Raised for an unreadable or invalid configuration file."""


@dataclass
class ScanConfig:
    rules_dir: Path | None = None
    analyzers: list[str] = field(default_factory=lambda: list(DEFAULT_ANALYZERS))
    namespace: str = "default"     # fills the remediation template placeholder
    required_cluster_roles: list[str] = field(default_factory=lambda: ["admin", "edit", "view"])
    max_workers: int = 4
    fail_threshold: int | None = None


_LIST_KEYS = {"analyzers", "required_cluster_roles"}


def _coerce(key: str, value: Any) -> Any:
    if key == "rules_dir":
        return None if value is None else Path(value)
    if key in _LIST_KEYS:
        if isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"{key} must be a list of strings")
        return value
    if key in ("max_workers", "fail_threshold"):
        if value is None and key == "fail_threshold":
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{key} must be an integer")
        if key == "max_workers" and value < 1:
            raise ConfigError("max_workers must be at least 1")
        if key == "fail_threshold" and not 0 <= value <= 100:
            raise ConfigError("fail_threshold must be between 0 and 100")
        return value
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


def load_config(path: str | Path | None = None) -> ScanConfig:
    """Load a :class:`ScanConfig` from YAML; ``None`` returns the defaults."""
    config = ScanConfig()
    if path is None:
        return config

    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    known = {f.name for f in fields(ScanConfig)}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"{path}: unknown setting {key!r}")
        setattr(config, key, _coerce(key, value))
    return config
