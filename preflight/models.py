"""Pydantic models for preflight runs."""

from pathlib import Path
from typing import Dict, List, Literal, Optional

import soupsieve
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_REQUIRED_FILES = [
    "index.html",
    "robots.txt",
    "sitemap.xml",
    "site.webmanifest",
    "css/reset.css",
    "css/tokens.css",
    "css/base.css",
    "css/layout.css",
    "css/components.css",
    "css/effects.css",
    "js/main.js",
    "js/a11y.js",
    "js/parallax.js",
    "downloads/jeffrey-plewak-resume.pdf",
    "downloads/jeffrey-plewak.vcf",
    "assets/favicon.png",
    "assets/icon-192.png",
    "assets/icon-512.png",
    "assets/images/og-image.png",
    "assets/images/jeffrey-plewak-portrait.jpg",
    "assets/images/jeffrey-plewak-portrait.webp",
    "assets/images/jeffrey-plewak-portrait.avif",
]

DEFAULT_SMOKE_PATHS = [
    "/",
    "/css/base.css",
    "/css/layout.css",
    "/css/components.css",
    "/css/effects.css",
    "/js/main.js",
    "/js/a11y.js",
    "/js/parallax.js",
    "/downloads/jeffrey-plewak-resume.pdf",
    "/downloads/jeffrey-plewak.vcf",
    "/assets/favicon.png",
    "/assets/images/og-image.png",
]

DEFAULT_TOKENS = {
    "SITE_NAME": "Jeffrey Plewak",
    "SITE_URL": "https://jeffreyplewak.com",
    "OG_IMAGE_URL": "https://jeffreyplewak.com/og-image.png",
    "FAVICON_URL": "/favicon.svg",
    "CONTACT_EMAIL": "plewak.jeff@gmail.com",
    "CONTACT_ENDPOINT": "https://jeffreyplewak.com/api/contact",
    "CALENDLY_URL": "https://calendly.com/plewak-jeff/intro",
    "STRIPE_PUBLISHABLE_KEY": "",
    "STRIPE_STARTER_BUTTON_ID": "",
    "STRIPE_BUILDER_BUTTON_ID": "",
}

CheckStatus = Literal["pass", "warn", "fail"]


class RunConfig(BaseModel):
    """Immutable configuration for a single preflight run."""

    mode: Literal["audit", "dev"] = Field(
        "audit", description="audit runs checks only; dev also serves and smoke-tests."
    )
    port: int = Field(3000, ge=1, le=65535, description="Local server port.")
    non_interactive: bool = Field(
        False, description="Suppress prompts in the server tool where supported."
    )
    skip_server: bool = Field(
        False, description="Never start the server, even in dev mode."
    )
    readiness_timeout: float = Field(
        12.0, gt=0, description="Seconds to wait for the server to respond."
    )
    root: Path = Field(default_factory=Path.cwd, description="Site root directory.")
    config_path: Optional[Path] = Field(
        None, description="Explicit preflight.yaml location."
    )
    show_logs: bool = Field(
        False, description="Print the server log tail after successful smoke tests."
    )
    report_dir: Optional[Path] = Field(
        None, description="Directory for JSON/Markdown/HTML audit reports."
    )
    launcher: Literal["auto", "vercel", "python"] = Field(
        "auto", description="Restrict the server launcher chain to one candidate."
    )
    color: bool = Field(True, description="Colorize status prefixes.")

    model_config = ConfigDict(frozen=True)

    @property
    def wants_server(self) -> bool:
        return self.mode == "dev" and not self.skip_server

    @property
    def base_url(self) -> str:
        return f"http://127.0.0.1:{self.port}"


class CheckResult(BaseModel):
    """Outcome of one assertion made by a check."""

    name: str = Field(..., description="Check that produced the result.")
    status: CheckStatus
    message: str
    details: List[str] = Field(
        default_factory=list,
        description="Offending paths or references, one per entry.",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def failed(self) -> bool:
        return self.status == "fail"


class SmokeResult(BaseModel):
    """HTTP status observed for one smoke-tested path."""

    path: str
    status_code: int

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class SiteManifest(BaseModel):
    """What the site must (and should) contain, usually loaded from preflight.yaml."""

    index: str = Field("index.html", description="Main document, relative to the root.")
    required_files: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_FILES))
    optional_files: List[str] = Field(
        default_factory=list,
        description="Files reported as warnings when missing (e.g. client logos).",
    )
    smoke_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_SMOKE_PATHS))
    asset_dirs: List[str] = Field(default_factory=lambda: ["assets", "downloads"])
    max_asset_bytes: int = Field(300 * 1024, gt=0)
    hero_selector: str = Field("img.hero-avatar", description="CSS selector of the hero image.")
    citation_artifacts: List[str] = Field(
        default_factory=lambda: ["oai_citation:", "sediment://", "file_0000"]
    )
    end_marker: str = "END OF DOCUMENT"
    placeholder_patterns: List[str] = Field(
        default_factory=lambda: ["calendly.com/YOUR_HANDLE"]
    )
    platform_config: str = "vercel.json"
    build_script: str = "build.sh"
    package_manifest: str = "package.json"
    required_commands: List[str] = Field(
        default_factory=list, description="Executables that must be on PATH."
    )
    tokens: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_TOKENS),
        description="Default values for %%TOKEN%% substitution.",
    )
    token_files: List[str] = Field(default_factory=lambda: ["index.html"])

    model_config = ConfigDict(extra="forbid")

    @field_validator("hero_selector")
    @classmethod
    def _validate_hero_selector(cls, value: str) -> str:
        try:
            soupsieve.compile(value)
        except soupsieve.SelectorSyntaxError as exc:
            raise ValueError(f"Invalid CSS selector {value!r}: {exc}") from exc
        return value


__all__ = [
    "CheckResult",
    "CheckStatus",
    "DEFAULT_REQUIRED_FILES",
    "DEFAULT_SMOKE_PATHS",
    "DEFAULT_TOKENS",
    "RunConfig",
    "SiteManifest",
    "SmokeResult",
]
