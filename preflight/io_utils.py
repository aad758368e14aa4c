"""Helpers for stable JSON output and stderr warnings."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any


def stable_json_dumps(obj: object) -> str:
    """Serialize JSON in a stable, human-readable way with a trailing newline."""
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, indent=2, default=str) + "\n"


def write_json_stable(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(stable_json_dumps(data), encoding="utf-8")
    return path


def warn(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)
