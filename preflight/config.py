"""Locate and validate preflight.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .errors import ManifestError
from .models import SiteManifest

MANIFEST_FILENAME = "preflight.yaml"


def find_manifest(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    """Return the manifest to load: --config first, then <root>/preflight.yaml."""

    if explicit is not None:
        if not explicit.is_file():
            raise ManifestError(f"Manifest not found: {explicit}")
        return explicit
    candidate = root / MANIFEST_FILENAME
    return candidate if candidate.is_file() else None


def load_manifest(root: Path, explicit: Optional[Path] = None) -> SiteManifest:
    path = find_manifest(root, explicit)
    if path is None:
        return SiteManifest()

    try:
        payload: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"{path} must contain a mapping of manifest settings.")
    try:
        return SiteManifest.model_validate(payload)
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest in {path}: {exc}") from exc


__all__ = ["MANIFEST_FILENAME", "find_manifest", "load_manifest"]
