"""Replace %%NAME%% build tokens in static HTML with environment values."""

from __future__ import annotations

import argparse
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from .config import load_manifest
from .errors import ManifestError
from .io_utils import warn
from .models import SiteManifest

TOKEN_RE = re.compile(r"%%([A-Z][A-Z0-9_]*)%%")


def resolve_tokens(manifest: SiteManifest, environ: Mapping[str, str]) -> dict[str, str]:
    """Environment values win over manifest defaults for every known token."""

    tokens = dict(manifest.tokens)
    for key in list(tokens):
        if environ.get(key):
            tokens[key] = environ[key]
    site_url = tokens.get("SITE_URL")
    derive_og = environ.get("SITE_URL") or not tokens.get("OG_IMAGE_URL")
    if site_url and derive_og and not environ.get("OG_IMAGE_URL") and "OG_IMAGE_URL" in tokens:
        tokens["OG_IMAGE_URL"] = f"{site_url.rstrip('/')}/og-image.png"
    if not environ.get("CONTACT_EMAIL") and environ.get("CONTACT_FORM_EMAIL"):
        tokens["CONTACT_EMAIL"] = environ["CONTACT_FORM_EMAIL"]
    return tokens


def substitute(text: str, tokens: Mapping[str, str]) -> str:
    """Replace known tokens; unknown ones are left for the audit to flag."""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in tokens:
            return tokens[key] or ""
        return match.group(0)

    return TOKEN_RE.sub(replace, text)


def unresolved_tokens(text: str, tokens: Mapping[str, str]) -> list[str]:
    return sorted({match.group(1) for match in TOKEN_RE.finditer(text) if match.group(1) not in tokens})


@dataclass
class TokenResult:
    path: Path
    changed: bool
    unresolved: list[str]


def apply_tokens(path: Path, tokens: Mapping[str, str], *, write: bool = True) -> TokenResult:
    text = path.read_text(encoding="utf-8")
    updated = substitute(text, tokens)
    changed = updated != text
    if changed and write:
        path.write_text(updated, encoding="utf-8")
    return TokenResult(path=path, changed=changed, unresolved=unresolved_tokens(text, tokens))


def apply_all(
    root: Path,
    files: Iterable[str],
    tokens: Mapping[str, str],
    *,
    write: bool = True,
) -> list[TokenResult]:
    results: list[TokenResult] = []
    for rel in files:
        path = root / rel
        if not path.exists():
            warn(f"[tokens] WARNING: {path} not found, skipping")
            continue
        results.append(apply_tokens(path, tokens, write=write))
    return results


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="preflight-tokens",
        description="Replace %%NAME%% placeholders in static HTML with environment values.",
    )
    parser.add_argument("files", nargs="*", help="HTML files relative to the root (default: manifest token_files).")
    parser.add_argument("--root", type=Path, default=Path("."), help="Site root directory.")
    parser.add_argument("--config", type=Path, help="Path to preflight.yaml.")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report pending and unresolved tokens without writing; exit 1 if any remain.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        manifest = load_manifest(args.root, args.config)
    except ManifestError as exc:
        print(exc, file=sys.stderr)
        return 1

    tokens = resolve_tokens(manifest, os.environ)
    files = args.files or manifest.token_files
    print("[tokens] Using values:")
    for key in sorted(tokens):
        print(f"  {key}={tokens[key]}")

    results = apply_all(args.root, files, tokens, write=not args.check)
    pending = False
    for result in results:
        if result.unresolved:
            pending = True
            warn(f"[tokens] {result.path}: unresolved tokens {', '.join(result.unresolved)}")
        if args.check:
            if result.changed:
                pending = True
                print(f"[tokens] {result.path} has tokens to replace")
        elif result.changed:
            print(f"[tokens] Updated {result.path}")
        else:
            print(f"[tokens] No tokens found in {result.path}, unchanged")

    if args.check and pending:
        return 1
    print("[tokens] No pending tokens." if args.check else "[tokens] Token replacement complete.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
