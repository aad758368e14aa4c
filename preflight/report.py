"""Write audit results as JSON, Markdown and HTML reports."""

from __future__ import annotations

import datetime as dt
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markdown import markdown

from .io_utils import write_json_stable
from .models import CheckResult, RunConfig
from .util_fs import ensure_dir, write_text

STATUS_ORDER = ["fail", "warn", "pass"]
REPORT_STEM = "preflight_report"
TEMPLATES_DIR = Path(__file__).parent / "templates"


def _git_sha(root: Path) -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=str(root),
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None


def collect_meta(config: RunConfig) -> dict:
    sha = _git_sha(config.root)
    return {
        "executedAt": dt.datetime.now(dt.timezone.utc).isoformat(),
        "python": sys.version.split()[0],
        "git": {"sha": sha} if sha else {},
        "root": str(config.root),
        "mode": config.mode,
    }


def summarize(results: Sequence[CheckResult]) -> dict[str, int]:
    summary = {status: 0 for status in STATUS_ORDER}
    for result in results:
        summary[result.status] += 1
    return summary


def build_payload(
    results: Sequence[CheckResult],
    *,
    meta: dict,
    failed_check: Optional[str] = None,
) -> dict:
    return {
        "meta": meta,
        "outcome": "failed" if failed_check else "passed",
        "failedCheck": failed_check,
        "summary": summarize(results),
        "results": [result.model_dump() for result in results],
    }


def render_markdown(payload: dict) -> str:
    meta = payload["meta"]
    lines = [
        "# Preflight Report",
        "",
        "## Overview",
        "",
        f"- Executed: {meta.get('executedAt')}",
        f"- Root: `{meta.get('root')}`",
        f"- Mode: {meta.get('mode')}",
        f"- Outcome: **{payload['outcome']}**",
    ]
    if payload.get("failedCheck"):
        lines.append(f"- Stopped at: `{payload['failedCheck']}`")
    lines.extend(["", "## Summary", "", "| Status | Count |", "| --- | ---: |"])
    for status in STATUS_ORDER:
        lines.append(f"| {status.upper()} | {payload['summary'].get(status, 0)} |")
    lines.extend(["", "## Results", ""])

    ordered = sorted(
        enumerate(payload["results"]),
        key=lambda pair: (STATUS_ORDER.index(pair[1]["status"]), pair[0]),
    )
    for _, result in ordered:
        lines.append(f"### [{result['status'].upper()}] {result['message']}")
        lines.append("")
        lines.append(f"- Check: `{result['name']}`")
        for detail in result["details"]:
            lines.append(f"- `{detail}`")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def render_html(markdown_text: str, outcome: str) -> str:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "jinja"]),
        undefined=StrictUndefined,
    )
    template = env.get_template("report.html.jinja")
    body_html = markdown(markdown_text, extensions=["tables"])
    return template.render(body_html=body_html, outcome=outcome)


def write_reports(
    report_dir: Path,
    results: Sequence[CheckResult],
    *,
    meta: dict,
    failed_check: Optional[str] = None,
) -> tuple[Path, Path, Path]:
    ensure_dir(report_dir)
    payload = build_payload(results, meta=meta, failed_check=failed_check)
    json_path = write_json_stable(report_dir / f"{REPORT_STEM}.json", payload)
    md_text = render_markdown(payload)
    md_path = write_text(report_dir / f"{REPORT_STEM}.md", md_text)
    html_path = write_text(report_dir / f"{REPORT_STEM}.html", render_html(md_text, payload["outcome"]))
    return json_path, md_path, html_path


__all__ = [
    "build_payload",
    "collect_meta",
    "render_html",
    "render_markdown",
    "summarize",
    "write_reports",
]
