from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from pathlib import Path

from .config import BuildConfig
from .tags import slugify
from .utils import BuildError, parse_bool, parse_iso_date, warn

POST_SOURCE = "index.md"
FRONT_MATTER_KEYS = ("title", "date", "tags", "hide_from_feed", "photo_page", "section", "description")
KEY_LINE_RE = re.compile(r"^[A-Za-z0-9_]+:")

SCAFFOLD_TEMPLATE = """---
title: {title}
description:
date: {date}
tags:
section:
hide_from_feed: 0
photo_page: 0
---
"""


@dataclass(frozen=True)
class FrontMatter:
    title: str = ""
    date: str = ""
    tags: tuple[str, ...] = ()
    hide_from_feed: bool = False
    photo_page: bool = False
    section: str = ""
    description: str = ""


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    date: str
    tags: tuple[str, ...]
    section: str
    hide_from_feed: bool
    photo_page: bool
    description_markdown: str
    body_markdown: str
    source_dir: Path = field(compare=False)

    @property
    def parsed_date(self) -> dt.date | None:
        return parse_iso_date(self.date)


def parse_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def split_front_matter(text: str) -> tuple[list[str], str]:
    """Return the metadata lines and the body that follows the closing ``---``."""
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.split("\n")
    if not lines or lines[0].rstrip("\r") != "---":
        return [], clean_text
    for i in range(1, len(lines)):
        if lines[i].rstrip("\r") == "---":
            return [line.rstrip("\r") for line in lines[1:i]], "\n".join(lines[i + 1 :])
    return [], clean_text


def extract_description(meta_lines: list[str]) -> str:
    """Collect a possibly multi-line ``description:`` value.

    The value runs until the next line that looks like a ``key:`` line, so a
    description line such as ``Note: ...`` ends it early.
    """
    collected: list[str] = []
    in_description = False
    for line in meta_lines:
        if not in_description:
            if line.startswith("description:"):
                in_description = True
                first = line[len("description:") :].strip()
                if first:
                    collected.append(first)
            continue
        if KEY_LINE_RE.match(line):
            break
        collected.append(line)
    return "\n".join(collected)


def parse_front_matter(text: str) -> tuple[FrontMatter, str]:
    meta_lines, body = split_front_matter(text)
    values: dict[str, str] = {}
    for line in meta_lines:
        for key in FRONT_MATTER_KEYS:
            prefix = f"{key}: "
            if key in values or not line.startswith(prefix):
                continue
            values[key] = line[len(prefix) :].strip()
    meta = FrontMatter(
        title=values.get("title", ""),
        date=values.get("date", ""),
        tags=parse_list(values.get("tags", "")),
        hide_from_feed=parse_bool(values.get("hide_from_feed")),
        photo_page=parse_bool(values.get("photo_page")),
        section=values.get("section", ""),
        description=extract_description(meta_lines),
    )
    return meta, body


def load_post(post_dir: Path) -> Post | None:
    source = post_dir / POST_SOURCE
    if not source.is_file():
        return None
    meta, body = parse_front_matter(source.read_text(encoding="utf-8"))
    slug = post_dir.name
    if slugify(slug) != slug:
        warn(f"Post directory {post_dir} is not URL-safe; links to it may break.")
    return Post(
        slug=slug,
        title=meta.title,
        date=meta.date,
        tags=meta.tags,
        section=meta.section,
        hide_from_feed=meta.hide_from_feed,
        photo_page=meta.photo_page,
        description_markdown=meta.description,
        body_markdown=body,
        source_dir=post_dir,
    )


def discover_posts(posts_dir: Path) -> list[Path]:
    if not posts_dir.exists():
        return []
    return sorted((path for path in posts_dir.iterdir() if path.is_dir()), key=lambda p: p.name)


def scaffold_post(config: BuildConfig, title: str, today: dt.date | None = None) -> Path:
    title = title.strip()
    slug = slugify(title)
    if not slug:
        raise BuildError(f"Cannot derive a post slug from title {title!r}.")
    post_dir = config.posts_path / slug
    if post_dir.exists():
        raise BuildError(f"{post_dir} already exists")
    today = today or dt.date.today()
    post_dir.mkdir(parents=True)
    source = post_dir / POST_SOURCE
    source.write_text(SCAFFOLD_TEMPLATE.format(title=title, date=today.isoformat()), encoding="utf-8")
    return source
