from __future__ import annotations

from pathlib import Path

import pytest

from postforge.config import BuildConfig

HEADER = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{title}}</title>
  <!-- INLINE_CRITICAL_CSS -->
  <link rel="stylesheet" href="/css/style.min.css">
</head>
<body class="{{body_class}}">
<header><h1><a href="/">Home</a></h1></header>
<main id="skip">
<section class="main">
<!-- POST_START -->
"""

FOOTER = """<!-- POST_END -->
</section>
</main>
<footer><p class="copyright">&copy; {{site_title}}</p></footer>
</body>
</html>
"""

STYLESHEET = """/* base styles */
body {
    font-family:   sans-serif;
}
"""

CONFIG = """POSTS_DIR: posts
TEMPLATES_DIR: templates
FEED_DIR: feeds
TAGS_DIR: tags
SITE_TITLE: Test Site
BASE_URL: https://example.com
"""


def write_post(root: Path, slug: str, front_matter: str, body: str = "Hello there.\n") -> Path:
    post_dir = root / "posts" / slug
    post_dir.mkdir(parents=True, exist_ok=True)
    source = post_dir / "index.md"
    source.write_text(f"---\n{front_matter.strip()}\n---\n{body}", encoding="utf-8")
    return post_dir


@pytest.fixture
def site(tmp_path: Path) -> Path:
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "header.html").write_text(HEADER, encoding="utf-8")
    (tmp_path / "templates" / "footer.html").write_text(FOOTER, encoding="utf-8")
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "style.css").write_text(STYLESHEET, encoding="utf-8")
    (tmp_path / "config.yml").write_text(CONFIG, encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(site: Path) -> BuildConfig:
    return BuildConfig(root=site, site_title="Test Site", base_url="https://example.com")


@pytest.fixture
def make_post(site: Path):
    def _make(slug: str, front_matter: str, body: str = "Hello there.\n") -> Path:
        return write_post(site, slug, front_matter, body)

    return _make
