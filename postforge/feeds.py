"""RSS, JSON feed and sitemap output.

Posts only carry a calendar date, so feed timestamps get a synthetic time of
day derived from the post slug:

    digest = md5(slug.encode("utf-8")).digest()
    hour, minute, second = digest[0] % 24, digest[1] % 60, digest[2] % 60

The same slug always maps to the same time, across runs and machines.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import html
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .config import BuildConfig
from .content import Post
from .render import write_text
from .utils import iso_date, join_url, parse_iso_date, rfc822_date, warn

POST_START_MARKER = "<!-- POST_START -->"
POST_END_MARKER = "<!-- POST_END -->"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(frozen=True)
class FeedEntry:
    date: str
    title: str
    tags: tuple[str, ...]
    slug: str
    description_html: str
    section: str

    @classmethod
    def from_post(cls, post: Post, description_html: str) -> "FeedEntry":
        return cls(post.date, post.title, post.tags, post.slug, description_html, post.section)


def sort_entries(entries: Sequence[FeedEntry]) -> list[FeedEntry]:
    # Stable: entries sharing a date keep corpus order.
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


def synthetic_time(slug: str) -> dt.time:
    digest = hashlib.md5(slug.encode("utf-8"), usedforsecurity=False).digest()
    return dt.time(digest[0] % 24, digest[1] % 60, digest[2] % 60)


def pub_datetime(entry: FeedEntry) -> dt.datetime | None:
    date = parse_iso_date(entry.date)
    if date is None:
        return None
    return dt.datetime.combine(date, synthetic_time(entry.slug))


def extract_post_content(page_html: str) -> str:
    lines = []
    inside = False
    for line in page_html.split("\n"):
        if POST_START_MARKER in line:
            inside = True
            continue
        if POST_END_MARKER in line:
            inside = False
            continue
        if inside:
            lines.append(line)
    return "\n".join(lines)


def read_post_content(config: BuildConfig, slug: str) -> str:
    page = config.posts_path / slug / "index.html"
    if not page.exists():
        return ""
    return extract_post_content(page.read_text(encoding="utf-8"))


def cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _pub_date_or_warn(entry: FeedEntry) -> dt.datetime | None:
    published = pub_datetime(entry)
    if published is None:
        warn(f"Post {entry.slug} has an unparseable date {entry.date!r}; leaving its feed date empty.")
    return published


def build_rss(config: BuildConfig, entries: Sequence[FeedEntry]) -> Path:
    lines = [
        "<?xml version='1.0' encoding='UTF-8'?>",
        "<rss version='2.0'>",
        "<channel>",
        f"<title>{html.escape(config.site_title)}</title>",
        f"<link>{html.escape(config.base_url)}</link>",
        f"<description>{html.escape(config.site_description)}</description>",
    ]
    for entry in entries:
        link = html.escape(join_url(config.base_url, config.post_url(entry.slug)))
        lines.append("  <item>")
        lines.append(f"    <title>{cdata(entry.title)}</title>")
        lines.append(f"    <link>{link}</link>")
        lines.append(f"    <guid>{link}</guid>")
        published = _pub_date_or_warn(entry)
        if published is not None:
            lines.append(f"    <pubDate>{rfc822_date(published)}</pubDate>")
        for tag in entry.tags:
            lines.append(f"    <category>{cdata(tag)}</category>")
        lines.append(f"    <description>{cdata(read_post_content(config, entry.slug))}</description>")
        lines.append("  </item>")
    lines.extend(["</channel>", "</rss>"])
    path = config.feed_path / "feed.xml"
    write_text(path, "\n".join(lines) + "\n")
    return path


def build_json_feed(config: BuildConfig, entries: Sequence[FeedEntry]) -> Path:
    items = []
    for entry in entries:
        published = _pub_date_or_warn(entry)
        content = read_post_content(config, entry.slug).replace("\r\n", "\n")
        items.append(
            {
                "title": entry.title,
                "link": config.post_url(entry.slug),
                "date": iso_date(published) if published is not None else "",
                "tags": list(entry.tags),
                "content": content,
            }
        )
    path = config.feed_path / "feed.json"
    write_text(path, json.dumps(items, indent=2, ensure_ascii=False) + "\n")
    return path


def build_sitemap(config: BuildConfig, posts: Sequence[Post], tag_slugs: Sequence[str], today: dt.date) -> Path:
    build_date = today.isoformat()
    urls = [(join_url(config.base_url, "") + "/", build_date)]
    for post in sorted(posts, key=lambda p: p.date, reverse=True):
        lastmod = post.parsed_date.isoformat() if post.parsed_date else None
        urls.append((join_url(config.base_url, config.post_url(post.slug)), lastmod))
    for tag_slug in tag_slugs:
        urls.append((join_url(config.base_url, config.tag_url(tag_slug)), build_date))
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f'<urlset xmlns="{SITEMAP_NS}">']
    for loc, lastmod in urls:
        lines.extend(["  <url>", f"    <loc>{html.escape(loc)}</loc>"])
        # lastmod is optional; undated posts leave it out
        if lastmod:
            lines.append(f"    <lastmod>{html.escape(lastmod)}</lastmod>")
        lines.append("  </url>")
    lines.append("</urlset>")
    path = config.root / "sitemap.xml"
    write_text(path, "\n".join(lines) + "\n")
    return path
