"""Manifest loading: Kubernetes objects from YAML/JSON files on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_MANIFEST_EXTS = {".yaml", ".yml", ".json"}


def _flatten(doc: Any) -> list[dict[str, Any]]:
    if not isinstance(doc, dict):
        return []
    if doc.get("kind") == "List" or (str(doc.get("kind", "")).endswith("List") and "items" in doc):
        out: list[dict[str, Any]] = []
        for item in doc.get("items") or []:
            out.extend(_flatten(item))
        return out
    if "kind" not in doc:
        return []
    return [doc]


def parse_manifests(content: str, source: str = "") -> list[dict[str, Any]]:
    """Parse one file's content; multi-document YAML and ``kind: List`` are flattened."""
    if source.endswith(".json"):
        docs = [json.loads(content)]
    else:
        docs = list(yaml.safe_load_all(content))
    objects: list[dict[str, Any]] = []
    for doc in docs:
        objects.extend(_flatten(doc))
    return objects


def load_manifests(path: str | Path) -> list[dict[str, Any]]:
    """Load every Kubernetes object under *path* (file or directory)."""
    path = Path(path)
    if path.is_dir():
        files = [f for f in sorted(path.rglob("*")) if f.is_file() and f.suffix.lower() in _MANIFEST_EXTS]
    elif path.is_file():
        files = [path]
    else:
        files = []

    objects: list[dict[str, Any]] = []
    for f in files:
        try:
            objects.extend(parse_manifests(f.read_text(encoding="utf-8"), str(f)))
        except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as exc:
            logger.warning("skipping unreadable manifest %s: %s", f, exc)
    logger.debug("loaded %d object(s) from %d file(s)", len(objects), len(files))
    return objects


def by_kind(objects: list[dict[str, Any]], *kinds: str) -> list[dict[str, Any]]:
    return [o for o in objects if o.get("kind") in kinds]


def metadata(obj: dict[str, Any]) -> tuple[str, str]:
    """(name, namespace) of an object; namespace is empty for cluster scope."""
    meta = obj.get("metadata") or {}
    return str(meta.get("name", "")), str(meta.get("namespace", "") or "")
