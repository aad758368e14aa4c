"""Preflight pipeline: dependency probe, static checks, then the optional dev server."""

from __future__ import annotations

import shutil
import time
from typing import Callable, Optional, Sequence

from .checks import CHECKS, Check, CheckRunner, SiteContext
from .console import Console
from .errors import CheckFailedError, MissingDependencyError, ReportWriteError
from .lifecycle import ServerLifecycle
from .models import CheckResult, RunConfig, SiteManifest, SmokeResult
from .report import collect_meta, write_reports
from .server import Launcher, ServerHandle, start_server
from .smoke import run_smoke_tests


class Preflight:
    """One run of the tool for a fixed RunConfig and SiteManifest."""

    def __init__(
        self,
        config: RunConfig,
        manifest: SiteManifest,
        console: Console,
        lifecycle: ServerLifecycle,
        *,
        checks: Sequence[Check] = CHECKS,
        launchers: Optional[Sequence[Launcher]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.manifest = manifest
        self.console = console
        self.lifecycle = lifecycle
        self.checks = checks
        self.launchers = launchers
        self._sleep = sleep
        self.results: list[CheckResult] = []
        self.smoke_results: list[SmokeResult] = []
        self.handle: Optional[ServerHandle] = None

    def check_dependencies(self) -> None:
        root = self.config.root
        if not root.is_dir():
            raise MissingDependencyError(f"Site root not found: {root}")
        index = root / self.manifest.index
        if not index.is_file():
            raise MissingDependencyError(f"{self.manifest.index} not found at site root: {root}")
        for command in self.manifest.required_commands:
            if shutil.which(command) is None:
                raise MissingDependencyError(f"Missing required command: {command}")

    def run_checks(self) -> list[CheckResult]:
        self.console.banner("AUDIT")
        runner = CheckRunner(SiteContext(self.config.root, self.manifest), self.console, self.checks)
        failure: Optional[CheckFailedError] = None
        try:
            runner.run()
        except CheckFailedError as exc:
            failure = exc
        self.results = runner.results
        if self.config.report_dir is not None:
            self.save_reports(failure)
        if failure is not None:
            raise failure
        return self.results

    def save_reports(self, failure: Optional[CheckFailedError] = None) -> None:
        report_dir = self.config.report_dir
        try:
            json_path, md_path, html_path = write_reports(
                report_dir,
                self.results,
                meta=collect_meta(self.config),
                failed_check=failure.check if failure is not None else None,
            )
        except OSError as exc:
            raise ReportWriteError(report_dir, exc, failure) from exc
        self.console.info(f"Wrote reports to {md_path}, {html_path} and {json_path}")

    def serve(self) -> ServerHandle:
        self.console.banner("DEV SERVER")
        self.handle = start_server(self.config, self.console, self.lifecycle, self.launchers)
        self.smoke_results = run_smoke_tests(self.config.base_url, self.manifest.smoke_paths, self.console)
        if self.config.show_logs:
            self.console.line("---- server log ----")
            for line in self.handle.log_tail():
                self.console.line(line)
        return self.handle

    def idle_wait(self, handle: ServerHandle) -> None:
        """Announce the running server, then block until interrupted."""

        try:
            self.console.ok(f"Dev mode complete. Server is still running (pid={handle.pid}). Ctrl+C to stop.")
            while True:
                self._sleep(1)
        except KeyboardInterrupt:
            self.console.line()
            self.console.info("Interrupted; shutting down")

    def run(self) -> int:
        self.console.info(f"Repo: {self.config.root}")
        self.console.info(f"Mode: {self.config.mode}")
        self.check_dependencies()
        self.run_checks()

        if self.config.mode == "dev":
            if not self.config.wants_server:
                self.console.warn("--no-dev set; skipping server start and smoke tests")
            else:
                self.idle_wait(self.serve())
                return 0

        self.console.ok("Audit complete")
        return 0


__all__ = ["Preflight"]
