"""Start a local HTTP server for the site and wait until it answers.

Launchers form an ordered capability-probe chain: the Vercel dev CLI when it
is installed, otherwise Python's built-in ``http.server``. Only the first
available launcher is ever started.
"""

from __future__ import annotations

import math
import shutil
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass, field
from http.client import HTTPException
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from .console import Console
from .errors import ReadinessTimeoutError, ServerUnavailableError
from .lifecycle import ServerLifecycle
from .models import RunConfig
from .util_fs import tail_lines

POLL_INTERVAL = 0.25
STOP_GRACE = 0.3
LOG_TAIL_LINES = 40


@dataclass
class ServerHandle:
    """A spawned server process and the log file it writes to."""

    launcher: str
    process: subprocess.Popen
    log_path: Path
    _stopped: bool = field(default=False, init=False, repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    def alive(self) -> bool:
        return self.process.poll() is None

    def stop(self, grace: float = STOP_GRACE) -> bool:
        """Terminate, then kill after ``grace`` seconds. Safe to call repeatedly.

        Returns True only for the call that actually stopped a live process.
        """

        if self._stopped:
            return False
        self._stopped = True
        if self.process.poll() is not None:
            return False
        try:
            self.process.terminate()
        except ProcessLookupError:
            return False
        try:
            self.process.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
        return True

    def log_tail(self, count: int = LOG_TAIL_LINES) -> list[str]:
        return tail_lines(self.log_path, count)


class Launcher:
    """One way of serving the site root on a port."""

    name = ""
    label = ""
    log_name = ""

    def is_available(self) -> bool:
        raise NotImplementedError

    def command(self, config: RunConfig) -> List[str]:
        raise NotImplementedError

    @property
    def log_path(self) -> Path:
        return Path(tempfile.gettempdir()) / self.log_name

    def start(self, config: RunConfig) -> ServerHandle:
        log_path = self.log_path
        with log_path.open("w", encoding="utf-8") as log_file:
            process = subprocess.Popen(
                self.command(config),
                cwd=str(config.root),
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
            )
        return ServerHandle(launcher=self.name, process=process, log_path=log_path)


class VercelDevLauncher(Launcher):
    name = "vercel"
    label = "Vercel dev"
    log_name = "preflight-vercel-dev.log"

    def __init__(self, executable: str = "vercel") -> None:
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def command(self, config: RunConfig) -> List[str]:
        cmd = [shutil.which(self.executable) or self.executable, "dev"]
        if config.non_interactive:
            cmd.append("--yes")
        cmd.extend(["--listen", str(config.port)])
        return cmd


class PythonStaticLauncher(Launcher):
    name = "python"
    label = "python http.server"
    log_name = "preflight-httpserver.log"

    def __init__(self, executable: Optional[str] = None) -> None:
        self.executable = executable

    def _resolve(self) -> Optional[str]:
        if self.executable:
            return shutil.which(self.executable)
        return sys.executable or shutil.which("python3")

    def is_available(self) -> bool:
        return self._resolve() is not None

    def command(self, config: RunConfig) -> List[str]:
        return [
            self._resolve() or "python3",
            "-m",
            "http.server",
            str(config.port),
            "--bind",
            "127.0.0.1",
            "--directory",
            str(config.root),
        ]


def launcher_chain(config: RunConfig) -> list[Launcher]:
    candidates: list[Launcher] = [VercelDevLauncher(), PythonStaticLauncher()]
    if config.launcher == "auto":
        return candidates
    return [launcher for launcher in candidates if launcher.name == config.launcher]


def select_launcher(candidates: Sequence[Launcher]) -> Launcher:
    for launcher in candidates:
        if launcher.is_available():
            return launcher
    tried = ", ".join(launcher.label for launcher in candidates) or "none"
    raise ServerUnavailableError(f"No server tool available to run a local server (tried: {tried}).")


def probe_url(url: str, timeout: float = 1.0) -> bool:
    """True when anything answers HTTP at ``url``, whatever the status."""

    try:
        with urlopen(url, timeout=timeout):
            return True
    except HTTPError:
        return True
    except (URLError, HTTPException, OSError):
        return False


def wait_until_ready(
    handle: Optional[ServerHandle],
    url: str,
    timeout: float,
    *,
    interval: float = POLL_INTERVAL,
    probe: Callable[[str], bool] = probe_url,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll ``url`` until it answers; return the number of attempts used."""

    attempts = max(1, math.ceil(timeout / interval))
    for attempt in range(1, attempts + 1):
        if probe(url):
            return attempt
        if handle is not None and not handle.alive():
            raise ServerUnavailableError(
                f"{handle.launcher} server exited with code {handle.process.returncode} before becoming ready"
            )
        sleep(interval)
    raise ReadinessTimeoutError(f"Server did not become ready on {url} within {timeout:g}s")


def start_server(
    config: RunConfig,
    console: Console,
    lifecycle: ServerLifecycle,
    launchers: Optional[Sequence[Launcher]] = None,
) -> ServerHandle:
    """Start the first available launcher, hand it to ``lifecycle``, wait for readiness."""

    candidates = list(launchers) if launchers is not None else launcher_chain(config)
    launcher = select_launcher(candidates)
    if candidates and launcher is not candidates[0]:
        console.warn(f"{candidates[0].label} not found. Falling back to {launcher.label} on port {config.port}")
    else:
        console.info(f"Starting {launcher.label} on port {config.port}")

    handle = launcher.start(config)
    lifecycle.adopt(handle)

    console.info(f"Waiting for {config.base_url}/ to respond")
    try:
        attempts = wait_until_ready(handle, f"{config.base_url}/", config.readiness_timeout)
    except ServerUnavailableError:
        console.line("---- server log ----")
        for line in handle.log_tail():
            console.line(line)
        raise
    console.ok(f"Server responsive (pid={handle.pid}, {attempts} attempt(s))")
    return handle


__all__ = [
    "Launcher",
    "PythonStaticLauncher",
    "ServerHandle",
    "VercelDevLauncher",
    "launcher_chain",
    "probe_url",
    "select_launcher",
    "start_server",
    "wait_until_ready",
]
