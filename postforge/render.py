from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import markdown

from .config import BuildConfig
from .utils import BuildError

CRITICAL_CSS_MARKER = "<!-- INLINE_CRITICAL_CSS -->"
MULTI_SPACE_RE = re.compile(r" {2,}")
IMG_SRC_RE = re.compile(r'<img([^>]*?)src="([^"]+)"', re.IGNORECASE)
MARKDOWN_EXTENSIONS = ["abbr", "def_list", "fenced_code", "footnotes", "tables", "codehilite"]

Renderer = Callable[[str], str]


class TemplateError(BuildError):
    """Raised when the header or footer template cannot be read."""


class MarkdownRenderer:
    """Markdown to HTML with tables, definition lists and fenced code."""

    def __init__(self) -> None:
        self._md = markdown.Markdown(
            extensions=MARKDOWN_EXTENSIONS,
            extension_configs={"codehilite": {"guess_lang": False}},
        )

    def __call__(self, text: str) -> str:
        if not text.strip():
            return ""
        html_content = self._md.convert(text)
        self._md.reset()
        return html_content


def render_inline(render: Renderer, text: str) -> str:
    return render(text).replace("\r", "").replace("\n", "")


@dataclass(frozen=True)
class Templates:
    header: str
    footer: str


def read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TemplateError(f"Template not found: {path}") from exc


def load_templates(config: BuildConfig) -> Templates:
    return Templates(
        header=read_template(config.templates_path / "header.html"),
        footer=read_template(config.templates_path / "footer.html"),
    )


def read_critical_css(path: Path) -> str:
    if not path.exists():
        return ""
    text = path.read_text(encoding="utf-8").replace("\n", "")
    return MULTI_SPACE_RE.sub(" ", text)


def render_template(template: str, **context: str) -> str:
    output = template
    for key, value in context.items():
        output = output.replace(f"{{{{{key}}}}}", value)
    return output


def _ensure_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def compose_page(
    templates: Templates,
    body: str,
    *,
    title: str,
    body_class: str,
    site_title: str,
    critical_css: str,
) -> str:
    header = render_template(templates.header, title=title, body_class=body_class)
    header = header.replace(CRITICAL_CSS_MARKER, f"<style>{critical_css}</style>")
    footer = render_template(templates.footer, site_title=site_title)
    return _ensure_newline(header) + _ensure_newline(body) + footer


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def fix_relative_img_src(html_text: str, root: str) -> str:
    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        src = match.group(2)
        if src.startswith(("http://", "https://", "data:", "#", "/")):
            return match.group(0)
        if src.startswith("./"):
            src = src[2:]
        return f'<img{attrs}src="{root}/{src}"'

    return IMG_SRC_RE.sub(repl, html_text)
