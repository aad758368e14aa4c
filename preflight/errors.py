"""Exceptions raised by preflight stages and turned into exit codes by the CLI."""

from __future__ import annotations

from typing import Optional


class PreflightError(Exception):
    """Base class for every fatal preflight condition."""


class ManifestError(PreflightError):
    """preflight.yaml could not be read or validated."""


class MissingDependencyError(PreflightError):
    """A required file or command is absent before checks can start."""


class CheckFailedError(PreflightError):
    """A required check reported at least one failure."""

    def __init__(self, check: str, message: str) -> None:
        super().__init__(message)
        self.check = check


class ServerUnavailableError(PreflightError):
    """No launcher could start a local server, or it died while starting."""


class ReadinessTimeoutError(ServerUnavailableError):
    """The server did not answer within the readiness timeout."""


class ReportWriteError(PreflightError):
    """Reports could not be written to --report-dir.

    ``failure`` holds the check failure that was being reported, if any.
    """

    def __init__(self, report_dir: object, error: OSError, failure: Optional[PreflightError] = None) -> None:
        message = f"Could not write reports to {report_dir}: {error}"
        if failure is not None:
            message = f"{failure} {message}"
        super().__init__(message)
        self.failure = failure


class SmokeTestError(PreflightError):
    """A smoke-tested path returned something other than HTTP 200."""

    def __init__(self, path: str, status_code: int) -> None:
        super().__init__(f"Smoke test failed for {path} (HTTP {status_code})")
        self.path = path
        self.status_code = status_code


__all__ = [
    "CheckFailedError",
    "ManifestError",
    "MissingDependencyError",
    "PreflightError",
    "ReadinessTimeoutError",
    "ReportWriteError",
    "ServerUnavailableError",
    "SmokeTestError",
]
