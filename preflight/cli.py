"""Command-line interface for preflight."""

import argparse
from pathlib import Path
from typing import Iterable, Optional

from . import __version__
from .config import load_manifest
from .console import Console
from .errors import PreflightError
from .lifecycle import ServerLifecycle
from .models import RunConfig
from .runner import Preflight


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from exc
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value!r}") from exc
    if seconds <= 0:
        raise argparse.ArgumentTypeError("timeout must be greater than zero")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="preflight",
        description=(
            "Static site preflight: structural, SEO, accessibility and performance "
            "checks, plus an optional local server with smoke tests."
        ),
        allow_abbrev=False,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"preflight {__version__}",
        help="Show the preflight version and exit.",
    )
    parser.add_argument(
        "--audit",
        dest="mode",
        action="store_const",
        const="audit",
        default="audit",
        help="Run all checks only (default).",
    )
    parser.add_argument(
        "--dev",
        dest="mode",
        action="store_const",
        const="dev",
        help="Run checks, start a local server, smoke-test endpoints, then wait for Ctrl+C.",
    )
    parser.add_argument("--port", type=_port, default=3000, help="Port for the local server (default 3000).")
    parser.add_argument(
        "--yes",
        "--non-interactive",
        dest="non_interactive",
        action="store_true",
        help="Non-interactive where the server tool supports it.",
    )
    parser.add_argument(
        "--no-dev",
        "--skip-server",
        dest="skip_server",
        action="store_true",
        help="Skip starting the server (useful if you run it elsewhere).",
    )
    parser.add_argument(
        "--timeout",
        dest="readiness_timeout",
        type=_positive_seconds,
        default=12.0,
        help="Seconds to wait for the local server to respond (default 12).",
    )
    parser.add_argument("--root", type=Path, default=Path("."), help="Site root directory (default: cwd).")
    parser.add_argument("--config", dest="config_path", type=Path, help="Path to preflight.yaml.")
    parser.add_argument(
        "--logs",
        dest="show_logs",
        action="store_true",
        help="Print server logs even when smoke tests pass.",
    )
    parser.add_argument("--report-dir", type=Path, help="Write JSON/Markdown/HTML reports to this directory.")
    parser.add_argument(
        "--launcher",
        choices=["auto", "vercel", "python"],
        default="auto",
        help="Server tool to use (default: vercel if installed, else python).",
    )
    parser.add_argument("--no-color", dest="color", action="store_false", help="Disable colored output.")
    return parser


def parse_run_config(argv: Optional[Iterable[str]] = None) -> RunConfig:
    """Parse arguments into a RunConfig; --help and bad flags exit via argparse."""

    args = build_parser().parse_args(list(argv) if argv is not None else None)
    return RunConfig(
        mode=args.mode,
        port=args.port,
        non_interactive=args.non_interactive,
        skip_server=args.skip_server,
        readiness_timeout=args.readiness_timeout,
        root=args.root.resolve(),
        config_path=args.config_path,
        show_logs=args.show_logs,
        report_dir=args.report_dir,
        launcher=args.launcher,
        color=args.color,
    )


def main(argv: Optional[Iterable[str]] = None) -> int:
    config = parse_run_config(argv)
    console = Console(color=config.color)
    with ServerLifecycle(console) as lifecycle:
        try:
            manifest = load_manifest(config.root, config.config_path)
            return Preflight(config, manifest, console, lifecycle).run()
        except PreflightError as exc:
            console.fail(str(exc))
            return 1
        except KeyboardInterrupt:
            console.line()
            console.warn("Interrupted")
            return 130


__all__ = ["build_parser", "main", "parse_run_config"]
