import socket
from pathlib import Path

import pytest

from preflight.models import DEFAULT_REQUIRED_FILES

REPO_ROOT = Path(__file__).resolve().parents[1]

VALID_INDEX = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>Jeffrey Plewak | Engineer</title>
    <meta name="description" content="Portfolio and resume.">
    <meta name="robots" content="index,follow">
    <link rel="canonical" href="https://jeffreyplewak.com/">
    <meta property="og:title" content="Jeffrey Plewak">
    <meta property="og:description" content="Portfolio and resume.">
    <meta property="og:image" content="https://jeffreyplewak.com/assets/images/og-image.png">
    <meta name="twitter:card" content="summary_large_image">
    <link rel="stylesheet" href="/css/base.css">
    <link rel="icon" href="/assets/favicon.png">
    <script type="application/ld+json">{"@type": "Person"}</script>
  </head>
  <body>
    <header>
      <img class="hero-avatar" src="/assets/images/jeffrey-plewak-portrait.jpg" alt="Portrait" width="160" height="160">
      <h1>Jeffrey Plewak</h1>
      <a href="https://calendly.com/plewak-jeff/intro">Book a call</a>
      <a href="/downloads/jeffrey-plewak-resume.pdf">Resume</a>
    </header>
    <script src="/js/main.js" defer></script>
  </body>
</html>
<!-- END OF DOCUMENT: do not paste below this line -->
"""


def write_index(root: Path, html: str) -> Path:
    path = root / "index.html"
    path.write_text(html, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A minimal site tree that passes every required check."""

    root = tmp_path / "site"
    for rel in DEFAULT_REQUIRED_FILES:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"/* {rel} */\n", encoding="utf-8")
    write_index(root, VALID_INDEX)
    (root / "vercel.json").write_text("{}\n", encoding="utf-8")
    (root / "build.sh").write_text("#!/usr/bin/env bash\n", encoding="utf-8")
    return root


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
