import io
from pathlib import Path

import pytest

from preflight.checks import (
    CheckRunner,
    SiteContext,
    absolute_refs,
    check_accessibility,
    check_deployment,
    check_internal_refs,
    check_optional_files,
    check_performance,
    check_placeholders,
    check_required_files,
    check_seo,
    check_structure,
)
from preflight.console import Console
from preflight.errors import CheckFailedError
from preflight.models import SiteManifest

from conftest import VALID_INDEX, write_index


def _statuses(results) -> list[str]:
    return [result.status for result in results]


def _messages(results, status: str) -> list[str]:
    return [result.message for result in results if result.status == status]


@pytest.mark.parametrize(
    ("html", "passes"),
    [
        (VALID_INDEX.replace("<!doctype html>", ""), False),
        (VALID_INDEX, True),
        ("<!DOCTYPE html>\n" + VALID_INDEX, False),
    ],
)
def test_structure_requires_exactly_one_doctype(site: Path, html: str, passes: bool):
    write_index(site, html)
    results = check_structure(SiteContext(site))
    assert ("fail" not in _statuses(results)) is passes


def test_structure_counts_closing_html_tags(site: Path):
    write_index(site, VALID_INDEX + "</HTML>\n")
    results = check_structure(SiteContext(site))
    assert "Expected exactly 1 </html>, found 2" in _messages(results, "fail")


def test_structure_flags_citation_artifacts(site: Path):
    write_index(site, VALID_INDEX.replace("<h1>", "oai_citation:3 <h1>"))
    results = check_structure(SiteContext(site))
    failures = [result for result in results if result.failed]
    assert len(failures) == 1
    assert failures[0].details == ["line 20: oai_citation:"]


def test_structure_missing_end_marker_is_only_a_warning(site: Path):
    write_index(site, VALID_INDEX.replace("END OF DOCUMENT", "end"))
    results = check_structure(SiteContext(site))
    assert _statuses(results) == ["warn", "pass"]


def test_required_files_reports_every_missing_path(site: Path):
    for rel in ("css/base.css", "js/main.js", "sitemap.xml"):
        (site / rel).unlink()
    results = check_required_files(SiteContext(site))
    assert _statuses(results) == ["fail"]
    assert results[0].details == [
        "MISSING: sitemap.xml",
        "MISSING: css/base.css",
        "MISSING: js/main.js",
    ]


def test_required_files_rejects_directories(site: Path):
    (site / "robots.txt").unlink()
    (site / "robots.txt").mkdir()
    results = check_required_files(SiteContext(site))
    assert results[0].details == ["MISSING: robots.txt"]


def test_absolute_refs_skip_external_and_protocol_relative():
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(
        '<a href="/a.html"></a><img src="//cdn.example/x.png">'
        '<a href="https://example.com/"></a><a href="rel.html"></a><script src="/a.html"></script>',
        "html.parser",
    )
    assert absolute_refs(soup) == ["/a.html"]


def test_internal_refs_name_the_broken_path(site: Path):
    write_index(site, VALID_INDEX.replace("/js/main.js", "/js/missing.js"))
    results = check_internal_refs(SiteContext(site))
    assert _statuses(results) == ["fail"]
    assert results[0].details == ["BROKEN: /js/missing.js (missing js/missing.js)"]


def test_internal_refs_resolve_directories_and_strip_queries(site: Path):
    (site / "about").mkdir()
    (site / "about" / "index.html").write_text("<!doctype html>", encoding="utf-8")
    html = VALID_INDEX.replace("/css/base.css", "/css/base.css?v=3").replace(
        "/downloads/jeffrey-plewak-resume.pdf", "/about/#team"
    )
    write_index(site, html)
    assert _statuses(check_internal_refs(SiteContext(site))) == ["pass"]


def test_internal_refs_reject_paths_outside_the_root(site: Path):
    (site.parent / "outside.html").write_text("<!doctype html>", encoding="utf-8")
    write_index(site, VALID_INDEX.replace("/js/main.js", "/../outside.html"))
    results = check_internal_refs(SiteContext(site))
    assert _statuses(results) == ["fail"]
    assert results[0].details == ["BROKEN: /../outside.html (outside site root)"]


def test_seo_missing_title_fails(site: Path):
    write_index(site, VALID_INDEX.replace("<title>Jeffrey Plewak | Engineer</title>", ""))
    results = check_seo(SiteContext(site))
    assert _messages(results, "fail") == ["Missing <title>"]


def test_seo_missing_canonical_only_warns(site: Path):
    write_index(site, VALID_INDEX.replace('<link rel="canonical" href="https://jeffreyplewak.com/">', ""))
    results = check_seo(SiteContext(site))
    assert _statuses(results) == ["warn", "pass"]
    assert _messages(results, "warn") == ["Missing canonical link"]


def test_seo_reports_all_optional_tags(tmp_path: Path):
    write_index(tmp_path, "<!doctype html><html><head><title>x</title>"
                "<meta name='Description' content='d'></head></html>")
    results = check_seo(SiteContext(tmp_path))
    assert len(_messages(results, "warn")) == 7
    assert "fail" not in _statuses(results)


def test_accessibility_warnings(site: Path):
    html = (
        VALID_INDEX.replace('<html lang="en">', "<html>")
        .replace(' alt="Portrait"', "")
        .replace("</header>", "<h1>Second</h1></header>")
    )
    write_index(site, html)
    results = check_accessibility(SiteContext(site))
    assert _messages(results, "warn") == [
        "Missing lang attribute on <html>",
        "Expected 1 <h1>, found 2",
        "Found <img> without alt attribute",
    ]
    assert results[2].details == ["/assets/images/jeffrey-plewak-portrait.jpg"]
    assert "fail" not in _statuses(results)


def test_performance_lists_oversized_assets(site: Path):
    big = site / "downloads" / "big.pdf"
    big.write_bytes(b"0" * (300 * 1024 + 1))
    (site / "assets" / "ok.png").write_bytes(b"0" * (300 * 1024))
    results = check_performance(SiteContext(site))
    warnings = [result for result in results if result.status == "warn"]
    assert len(warnings) == 1
    assert warnings[0].details == ["300.0K downloads/big.pdf"]


def test_performance_hero_without_dimensions(site: Path):
    write_index(site, VALID_INDEX.replace(' width="160" height="160"', ""))
    results = check_performance(SiteContext(site))
    assert "Hero image missing explicit width/height (CLS risk)." in _messages(results, "warn")


def test_placeholders_warn_for_booking_link_and_tokens(site: Path):
    html = VALID_INDEX.replace("calendly.com/plewak-jeff/intro", "calendly.com/YOUR_HANDLE").replace(
        "Book a call", "%%SITE_NAME%%"
    )
    write_index(site, html)
    results = check_placeholders(SiteContext(site))
    assert _statuses(results) == ["warn", "warn"]
    assert results[1].details == ["%%SITE_NAME%%"]


def test_deployment_checks(site: Path):
    (site / "vercel.json").unlink()
    (site / "package.json").write_text("{}", encoding="utf-8")
    results = check_deployment(SiteContext(site))
    assert _statuses(results) == ["warn", "pass", "warn"]


def test_optional_files_never_fail(site: Path):
    manifest = SiteManifest(optional_files=["assets/logos/aws.svg"])
    results = check_optional_files(SiteContext(site, manifest))
    assert _statuses(results) == ["warn"]
    assert results[0].details == ["assets/logos/aws.svg"]


def test_runner_stops_after_first_failing_check(site: Path):
    (site / "css" / "base.css").unlink()
    stream = io.StringIO()
    runner = CheckRunner(SiteContext(site), Console(color=False, stream=stream))
    with pytest.raises(CheckFailedError) as excinfo:
        runner.run()
    assert excinfo.value.check == "required-files"
    assert {result.name for result in runner.results} == {"structure", "required-files"}
    output = stream.getvalue()
    assert "MISSING: css/base.css" in output
    assert "SEO checks" not in output


def test_runner_is_idempotent(site: Path):
    write_index(site, VALID_INDEX.replace('<html lang="en">', "<html>"))
    first = CheckRunner(SiteContext(site), Console(color=False, stream=io.StringIO())).run()
    second = CheckRunner(SiteContext(site), Console(color=False, stream=io.StringIO())).run()
    assert first == second
    assert any(result.status == "warn" for result in first)
