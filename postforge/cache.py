from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
WHITESPACE_RUN_RE = re.compile(r"\s{2,}")


@dataclass(frozen=True)
class CssAsset:
    path: Path
    fingerprint: str
    minted: bool

    @property
    def filename(self) -> str:
        return self.path.name


def new_fingerprint() -> str:
    return secrets.token_hex(4)


def minify_css(text: str) -> str:
    text = COMMENT_RE.sub("", text)
    return WHITESPACE_RUN_RE.sub(" ", text)


def fingerprint_pattern(stem: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(stem)}(\.[A-Za-z0-9]+)?\.min\.css")


def list_published(source: Path) -> list[Path]:
    pattern = re.compile(rf"{re.escape(source.stem)}\.([A-Za-z0-9]+)\.min\.css")
    return sorted(path for path in source.parent.iterdir() if path.is_file() and pattern.fullmatch(path.name))


def publish_stylesheet(source: Path, token_factory: Callable[[], str] = new_fingerprint) -> CssAsset:
    """Publish the minified stylesheet under a content fingerprint.

    An already-published file with identical minified bytes is reused; any
    other fingerprinted copies are removed.
    """
    minified = minify_css(source.read_text(encoding="utf-8")).encode("utf-8")
    existing = list_published(source)
    current = next((path for path in existing if path.read_bytes() == minified), None)
    minted = current is None
    if current is None:
        fingerprint = token_factory()
        current = source.with_name(f"{source.stem}.{fingerprint}.min.css")
        current.write_bytes(minified)
    else:
        fingerprint = current.name[len(source.stem) + 1 : -len(".min.css")]
    for path in existing:
        if path != current:
            path.unlink(missing_ok=True)
    return CssAsset(current, fingerprint, minted)


def rewrite_stylesheet_refs(header_path: Path, asset: CssAsset, stem: str) -> bool:
    text = header_path.read_text(encoding="utf-8")
    updated = fingerprint_pattern(stem).sub(asset.filename, text)
    if updated == text:
        return False
    header_path.write_text(updated, encoding="utf-8")
    return True
