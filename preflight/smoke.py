"""HTTP smoke tests against the local server."""

from __future__ import annotations

from http.client import HTTPException
from typing import Callable, Iterable
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from .console import Console
from .errors import SmokeTestError
from .models import SmokeResult


def fetch_status(url: str, timeout: float = 5.0) -> int:
    """Return the HTTP status for ``url``; 0 when nothing answered."""

    try:
        with urlopen(url, timeout=timeout) as response:
            return response.status
    except HTTPError as exc:
        return exc.code
    except (URLError, HTTPException, OSError):
        return 0


def run_smoke_tests(
    base_url: str,
    paths: Iterable[str],
    console: Console,
    *,
    fetch: Callable[[str], int] = fetch_status,
) -> list[SmokeResult]:
    """GET each path in order; the first non-200 response aborts the run."""

    console.info("Smoke testing key endpoints (HTTP 200 expected)")
    results: list[SmokeResult] = []
    for path in paths:
        result = SmokeResult(path=path, status_code=fetch(f"{base_url.rstrip('/')}{path}"))
        console.line(f"{result.status_code} {result.path}")
        results.append(result)
        if not result.ok:
            raise SmokeTestError(result.path, result.status_code)
    console.ok("All smoke tests passed")
    return results


__all__ = ["fetch_status", "run_smoke_tests"]
