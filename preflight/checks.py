"""Static checks over the site source tree.

Each check inspects the main document (and, where relevant, the files around
it) and returns every finding it has as a list of CheckResult objects. The
CheckRunner executes the checks in a fixed order and stops after the first
check that reported a failure; warnings are printed and never stop the run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from .console import Console
from .errors import CheckFailedError
from .models import CheckResult, CheckStatus, SiteManifest
from .tokens import TOKEN_RE
from .util_fs import human_size, iter_files

DOCTYPE_RE = re.compile(r"<!doctype\s+html", re.IGNORECASE)
HTML_END_RE = re.compile(r"</html\s*>", re.IGNORECASE)


@dataclass
class SiteContext:
    """The site root plus a lazily parsed main document."""

    root: Path
    manifest: SiteManifest = field(default_factory=SiteManifest)
    _text: Optional[str] = field(default=None, init=False, repr=False)
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False)

    @property
    def index_path(self) -> Path:
        return self.root / self.manifest.index

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self.index_path.read_text(encoding="utf-8", errors="replace")
        return self._text

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.text, "html.parser")
        return self._soup

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)


def _result(
    name: str, status: CheckStatus, message: str, details: Iterable[str] = ()
) -> CheckResult:
    return CheckResult(name=name, status=status, message=message, details=list(details))


def _has_failure(results: Sequence[CheckResult]) -> bool:
    return any(result.failed for result in results)


def _lines_containing(text: str, needle: str) -> list[int]:
    return [number for number, line in enumerate(text.splitlines(), start=1) if needle in line]


def check_structure(site: SiteContext) -> list[CheckResult]:
    name = "structure"
    text = site.text
    index = site.manifest.index
    results: list[CheckResult] = []

    doctypes = len(DOCTYPE_RE.findall(text))
    if doctypes != 1:
        results.append(_result(name, "fail", f"Expected exactly 1 <!doctype html>, found {doctypes}"))
    html_ends = len(HTML_END_RE.findall(text))
    if html_ends != 1:
        results.append(_result(name, "fail", f"Expected exactly 1 </html>, found {html_ends}"))

    artifacts = [
        f"line {number}: {artifact}"
        for artifact in site.manifest.citation_artifacts
        for number in _lines_containing(text, artifact)
    ]
    if artifacts:
        results.append(
            _result(
                name,
                "fail",
                f"Found citation artifacts. Remove them from {index}.",
                artifacts,
            )
        )

    if site.manifest.end_marker and site.manifest.end_marker not in text:
        results.append(
            _result(
                name,
                "warn",
                "Missing END-OF-DOCUMENT guard comment. Add: "
                f"<!-- {site.manifest.end_marker}: do not paste below this line -->",
            )
        )

    if not _has_failure(results):
        results.append(_result(name, "pass", "HTML structure clean"))
    return results


def check_required_files(site: SiteContext) -> list[CheckResult]:
    name = "required-files"
    missing = [rel for rel in site.manifest.required_files if not (site.root / rel).is_file()]
    if missing:
        return [
            _result(
                name,
                "fail",
                f"Missing {len(missing)} required file(s)",
                [f"MISSING: {rel}" for rel in missing],
            )
        ]
    return [_result(name, "pass", f"All {len(site.manifest.required_files)} required files present")]


def absolute_refs(soup: BeautifulSoup) -> list[str]:
    """Return sorted, unique root-relative href/src values from the document."""

    refs: set[str] = set()
    for tag in soup.find_all(True):
        for attr in ("href", "src"):
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            value = value.strip()
            if value.startswith("/") and not value.startswith("//"):
                refs.add(value)
    return sorted(refs)


def resolve_ref(root: Path, ref: str) -> Optional[Path]:
    """Map a root-relative reference to the file a static host would serve.

    Returns None when the reference climbs out of the site root.
    """

    target = root / unquote(urlparse(ref).path).lstrip("/")
    try:
        target.resolve().relative_to(root.resolve())
    except ValueError:
        return None
    if target.is_dir():
        target = target / "index.html"
    return target


def check_internal_refs(site: SiteContext) -> list[CheckResult]:
    name = "internal-refs"
    refs = absolute_refs(site.soup)
    broken: list[str] = []
    for ref in refs:
        target = resolve_ref(site.root, ref)
        if target is None:
            broken.append(f"BROKEN: {ref} (outside site root)")
        elif not target.is_file():
            broken.append(f"BROKEN: {ref} (missing {site.relative(target)})")
    if broken:
        return [_result(name, "fail", f"Broken internal asset references ({len(broken)})", broken)]
    return [_result(name, "pass", f"All {len(refs)} internal href/src references resolve")]


def _meta_matcher(expected: str) -> Callable[[Optional[str]], bool]:
    return lambda value: bool(value) and value.strip().lower() == expected


def _find_meta(soup: BeautifulSoup, attr: str, value: str):
    return soup.find("meta", attrs={attr: _meta_matcher(value)})


def check_seo(site: SiteContext) -> list[CheckResult]:
    name = "seo"
    soup = site.soup
    results: list[CheckResult] = []

    if soup.title is None:
        results.append(_result(name, "fail", "Missing <title>"))
    if _find_meta(soup, "name", "description") is None:
        results.append(_result(name, "fail", "Missing meta description"))

    optional = [
        ("canonical link", soup.find("link", rel=lambda value: value and "canonical" in value)),
        ("robots meta", _find_meta(soup, "name", "robots")),
        ("og:title", _find_meta(soup, "property", "og:title")),
        ("og:description", _find_meta(soup, "property", "og:description")),
        ("og:image", _find_meta(soup, "property", "og:image")),
        ("twitter:card", _find_meta(soup, "name", "twitter:card")),
        (
            "JSON-LD schema script",
            soup.find("script", attrs={"type": _meta_matcher("application/ld+json")}),
        ),
    ]
    for label, found in optional:
        if found is None:
            results.append(_result(name, "warn", f"Missing {label}"))

    if not _has_failure(results):
        results.append(_result(name, "pass", "SEO baseline present"))
    return results


def check_accessibility(site: SiteContext) -> list[CheckResult]:
    name = "accessibility"
    soup = site.soup
    results: list[CheckResult] = []

    html_tag = soup.find("html")
    lang = html_tag.get("lang") if html_tag is not None else None
    if not isinstance(lang, str) or not lang.strip():
        results.append(_result(name, "warn", "Missing lang attribute on <html>"))

    h1_count = len(soup.find_all("h1"))
    if h1_count != 1:
        results.append(_result(name, "warn", f"Expected 1 <h1>, found {h1_count}"))

    no_alt = [img.get("src") or "<img without src>" for img in soup.find_all("img") if not img.has_attr("alt")]
    if no_alt:
        results.append(_result(name, "warn", "Found <img> without alt attribute", no_alt))

    results.append(_result(name, "pass", "A11y baseline checked"))
    return results


def check_performance(site: SiteContext) -> list[CheckResult]:
    name = "performance"
    manifest = site.manifest
    results: list[CheckResult] = []
    limit = manifest.max_asset_bytes

    large = [
        (path, path.stat().st_size)
        for path in iter_files(site.root / rel for rel in manifest.asset_dirs)
        if path.stat().st_size > limit
    ]
    if large:
        results.append(
            _result(
                name,
                "warn",
                f"Found {len(large)} asset(s) over {human_size(limit)}. Consider compressing to reduce LCP.",
                [f"{human_size(size)} {site.relative(path)}" for path, size in large],
            )
        )
    else:
        results.append(_result(name, "pass", f"No assets over {human_size(limit)}"))

    hero = site.soup.select_one(manifest.hero_selector)
    if hero is None:
        results.append(
            _result(name, "warn", f"Hero image ({manifest.hero_selector}) not found; cannot confirm dimensions.")
        )
    elif not (hero.has_attr("width") and hero.has_attr("height")):
        results.append(_result(name, "warn", "Hero image missing explicit width/height (CLS risk)."))
    else:
        results.append(_result(name, "pass", "Hero image has explicit dimensions"))
    return results


def check_placeholders(site: SiteContext) -> list[CheckResult]:
    name = "placeholders"
    text = site.text
    results: list[CheckResult] = []

    found = [pattern for pattern in site.manifest.placeholder_patterns if pattern in text]
    if found:
        results.append(
            _result(name, "warn", "Booking link is still a placeholder. Replace it with your real link.", found)
        )
    else:
        results.append(_result(name, "pass", "Booking link looks non-placeholder"))

    tokens = sorted({match.group(0) for match in TOKEN_RE.finditer(text)})
    if tokens:
        results.append(
            _result(name, "warn", "Unreplaced build tokens; run preflight-tokens before deploying.", tokens)
        )
    return results


def check_deployment(site: SiteContext) -> list[CheckResult]:
    name = "deployment"
    manifest = site.manifest
    results: list[CheckResult] = []

    if (site.root / manifest.platform_config).is_file():
        results.append(_result(name, "pass", f"{manifest.platform_config} present"))
    else:
        results.append(
            _result(
                name,
                "warn",
                f"{manifest.platform_config} missing (optional for pure static; "
                "recommended if you need headers/redirects).",
            )
        )

    if (site.root / manifest.build_script).is_file():
        results.append(_result(name, "pass", f"{manifest.build_script} present"))
    else:
        results.append(
            _result(
                name,
                "warn",
                f"{manifest.build_script} missing. A platform build step that expects it may fail.",
            )
        )

    if (site.root / manifest.package_manifest).is_file():
        results.append(
            _result(
                name,
                "warn",
                f"{manifest.package_manifest} present. Ensure it doesn't set a build command "
                "that conflicts with static hosting.",
            )
        )
    return results


def check_optional_files(site: SiteContext) -> list[CheckResult]:
    name = "optional-files"
    optional = site.manifest.optional_files
    missing = [rel for rel in optional if not (site.root / rel).is_file()]
    if missing:
        return [
            _result(
                name,
                "warn",
                f"Missing {len(missing)} optional file(s); pages will use their fallbacks.",
                missing,
            )
        ]
    return [_result(name, "pass", f"All {len(optional)} optional files present")]


@dataclass(frozen=True)
class Check:
    name: str
    title: str
    func: Callable[[SiteContext], List[CheckResult]]


CHECKS: tuple[Check, ...] = (
    Check("structure", "HTML structural checks (single document, no junk artifacts)", check_structure),
    Check("required-files", "Required file presence checks", check_required_files),
    Check("internal-refs", "Internal href/src references resolve to real files", check_internal_refs),
    Check("seo", "SEO checks (static, high-signal)", check_seo),
    Check("accessibility", "A11y checks (static)", check_accessibility),
    Check("performance", "Performance risk checks (file sizes, LCP candidates)", check_performance),
    Check("placeholders", "Placeholder checks (booking link, build tokens)", check_placeholders),
    Check("deployment", "Deployment config checks", check_deployment),
    Check("optional-files", "Optional file checks", check_optional_files),
)


class CheckRunner:
    """Run checks in order, printing results and stopping at the first failing check."""

    def __init__(
        self,
        site: SiteContext,
        console: Console,
        checks: Sequence[Check] = CHECKS,
    ) -> None:
        self.site = site
        self.console = console
        self.checks = tuple(checks)
        self.results: list[CheckResult] = []

    def run(self) -> list[CheckResult]:
        for check in self.checks:
            self.console.info(check.title)
            results = check.func(self.site)
            for result in results:
                self.results.append(result)
                self.console.status(result.status, result.message, result.details)
            if _has_failure(results):
                raise CheckFailedError(
                    check.name, f"Required check '{check.name}' failed; stopping before later checks."
                )
        return self.results

    @property
    def warnings(self) -> list[CheckResult]:
        return [result for result in self.results if result.status == "warn"]


__all__ = [
    "CHECKS",
    "Check",
    "CheckRunner",
    "SiteContext",
    "absolute_refs",
    "check_accessibility",
    "check_deployment",
    "check_internal_refs",
    "check_optional_files",
    "check_performance",
    "check_placeholders",
    "check_required_files",
    "check_seo",
    "check_structure",
    "resolve_ref",
]
