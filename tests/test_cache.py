from __future__ import annotations

import os
from pathlib import Path

from postforge.cache import CssAsset, list_published, minify_css, publish_stylesheet, rewrite_stylesheet_refs


def tokens(*values: str):
    queue = list(values)

    def factory() -> str:
        return queue.pop(0)

    return factory


def no_token() -> str:
    raise AssertionError("a new fingerprint should not be minted")


def test_minify_strips_comments_and_collapses_whitespace() -> None:
    css = "/* header */\nbody {\n    color:  red; /* inline */\n}\n/* multi\n   line */\na { }"

    assert minify_css(css) == "\nbody { color: red; } a { }"


def test_publish_mints_then_reuses(tmp_path: Path) -> None:
    source = tmp_path / "style.css"
    source.write_text("body {  color: red; }", encoding="utf-8")

    first = publish_stylesheet(source, tokens("deadbeef"))
    second = publish_stylesheet(source, no_token)

    assert first == CssAsset(tmp_path / "style.deadbeef.min.css", "deadbeef", True)
    assert second.fingerprint == "deadbeef"
    assert second.minted is False
    assert first.path.read_text(encoding="utf-8") == "body { color: red; }"


def test_comment_only_change_keeps_fingerprint(tmp_path: Path) -> None:
    source = tmp_path / "style.css"
    source.write_text("a { color: blue; }", encoding="utf-8")
    publish_stylesheet(source, tokens("0000aaaa"))

    source.write_text("/* note */a { color: blue; }", encoding="utf-8")
    asset = publish_stylesheet(source, no_token)

    assert asset.fingerprint == "0000aaaa"


def test_touching_source_keeps_fingerprint(tmp_path: Path) -> None:
    source = tmp_path / "style.css"
    source.write_text("a { color: blue; }", encoding="utf-8")
    publish_stylesheet(source, tokens("1111bbbb"))
    os.utime(source, (source.stat().st_atime + 100, source.stat().st_mtime + 100))

    assert publish_stylesheet(source, no_token).fingerprint == "1111bbbb"


def test_content_change_mints_and_removes_stale(tmp_path: Path) -> None:
    source = tmp_path / "style.css"
    source.write_text("a { color: blue; }", encoding="utf-8")
    publish_stylesheet(source, tokens("aaaa0000"))
    (tmp_path / "style.cafe1234.min.css").write_text("stale", encoding="utf-8")

    source.write_text("a { color: green; }", encoding="utf-8")
    asset = publish_stylesheet(source, tokens("bbbb1111"))

    assert asset.minted is True
    assert [path.name for path in list_published(source)] == ["style.bbbb1111.min.css"]


def test_rewrite_header_references(tmp_path: Path) -> None:
    header = tmp_path / "header.html"
    header.write_text(
        '<link href="/css/style.min.css">\n<link href="/css/style.0123abcd.min.css">\n',
        encoding="utf-8",
    )
    asset = CssAsset(tmp_path / "style.feedface.min.css", "feedface", True)

    assert rewrite_stylesheet_refs(header, asset, "style") is True
    assert header.read_text(encoding="utf-8") == (
        '<link href="/css/style.feedface.min.css">\n<link href="/css/style.feedface.min.css">\n'
    )
    assert rewrite_stylesheet_refs(header, asset, "style") is False
