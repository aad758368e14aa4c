import json
from pathlib import Path

from preflight.models import CheckResult
from preflight.report import render_markdown, build_payload, summarize, write_reports

RESULTS = [
    CheckResult(name="structure", status="pass", message="HTML structure clean"),
    CheckResult(name="required-files", status="fail", message="Missing 1 required file(s)", details=["MISSING: css/base.css"]),
    CheckResult(name="structure", status="warn", message="Missing END-OF-DOCUMENT guard comment."),
]
META = {"executedAt": "2026-01-01T00:00:00+00:00", "root": "/site", "mode": "audit"}


def test_summarize_counts_each_status():
    assert summarize(RESULTS) == {"fail": 1, "warn": 1, "pass": 1}


def test_markdown_orders_failures_first():
    md = render_markdown(build_payload(RESULTS, meta=META, failed_check="required-files"))
    assert md.index("[FAIL]") < md.index("[WARN]") < md.index("[PASS]")
    assert "- Stopped at: `required-files`" in md
    assert "- `MISSING: css/base.css`" in md


def test_write_reports_emits_three_formats(tmp_path: Path):
    json_path, md_path, html_path = write_reports(
        tmp_path / "reports", RESULTS, meta=META, failed_check="required-files"
    )
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["outcome"] == "failed"
    assert payload["failedCheck"] == "required-files"
    assert [result["status"] for result in payload["results"]] == ["pass", "fail", "warn"]
    assert md_path.read_text(encoding="utf-8").startswith("# Preflight Report")

    html = html_path.read_text(encoding="utf-8")
    assert '<body data-outcome="failed">' in html
    assert "<table>" in html
    assert "<h1>Preflight Report</h1>" in html


def test_passed_outcome_without_failed_check(tmp_path: Path):
    json_path, _, _ = write_reports(tmp_path, RESULTS[:1], meta=META)
    assert json.loads(json_path.read_text(encoding="utf-8"))["outcome"] == "passed"
