from __future__ import annotations

import html
from typing import Sequence

from .config import BuildConfig
from .content import Post
from .feeds import FeedEntry
from .render import Templates, compose_page, read_critical_css, write_text
from .tags import TagIndex, TagRecord, slugify


def body_class(post: Post) -> str:
    if post.section:
        return f"{post.slug} {post.section}"
    return post.slug


def render_page(templates: Templates, config: BuildConfig, body: str, title: str, page_class: str) -> str:
    return compose_page(
        templates,
        body,
        title=html.escape(title),
        body_class=html.escape(page_class),
        site_title=html.escape(config.site_title),
        critical_css=read_critical_css(config.critical_css_path),
    )


def build_tag_links(tags: Sequence[str], config: BuildConfig) -> str:
    links = []
    for tag in tags:
        tag_slug = slugify(tag)
        if not tag_slug:
            continue
        links.append(f"<a href='{config.tag_url(tag_slug)}' class='tag'>{html.escape(tag)}</a>")
    return " ".join(links)


def build_post_body(post: Post, content_html: str, gallery_html: str, config: BuildConfig) -> str:
    return (
        f"<div class='header-row'><time>{html.escape(post.date)}</time>"
        f"<h2 class='post-title'>{html.escape(post.title)}</h2></div>\n"
        "<article class='post-body'>\n"
        f"{content_html}\n"
        f"{gallery_html}\n"
        f"<div class='post-tags'><strong>Tags:</strong> {build_tag_links(post.tags, config)}</div>"
        "</article>"
    )


def build_post_page(
    templates: Templates, config: BuildConfig, post: Post, content_html: str, gallery_html: str
) -> str:
    body = build_post_body(post, content_html, gallery_html, config)
    return render_page(templates, config, body, f"{post.title} - {config.site_title}", body_class(post))


def build_post_item(
    date: str, title: str, slug: str, description_html: str, config: BuildConfig, tag_links: str | None = None
) -> str:
    tags_html = f"<div class='post-tags'>{tag_links}</div>" if tag_links is not None else ""
    return (
        "<li class='post-item'>"
        f"<div class='post-date'><time>{html.escape(date)}</time></div>"
        "<div class='post-content'>"
        f"<h3 class='post-title'><a href='{config.post_url(slug)}'>{html.escape(title)}</a></h3>"
        f"<div class='post-description'>{description_html}</div>"
        f"{tags_html}"
        "</div></li>"
    )


def build_index(templates: Templates, config: BuildConfig, entries: Sequence[FeedEntry]) -> None:
    items = [
        build_post_item(
            entry.date,
            entry.title,
            entry.slug,
            entry.description_html,
            config,
            tag_links=build_tag_links(entry.tags, config),
        )
        for entry in entries
    ]
    body = "<h2 class='post-title'>Home</h2>\n<ul class='postlist'>\n" + "\n".join(items) + "\n</ul>"
    write_text(config.index_path, render_page(templates, config, body, config.site_title, "index"))


def build_tag_page(templates: Templates, config: BuildConfig, record: TagRecord) -> None:
    items = [
        build_post_item(member.date, member.title, member.slug, member.description_html, config)
        for member in record.members
    ]
    display = html.escape(record.display_name)
    body = f"<h2 class='post-title'>Tag: {display}</h2><ul class='postlist'>\n" + "\n".join(items) + "\n</ul>"
    title = f"Tag: {record.display_name} - {config.site_title}"
    write_text(
        config.tags_path / record.slug / "index.html",
        render_page(templates, config, body, title, f"tag-{record.slug}"),
    )


def build_tags_index(templates: Templates, config: BuildConfig, records: Sequence[TagRecord]) -> None:
    rows = [
        f"<li><a href='{config.tag_url(record.slug)}'>{html.escape(record.display_name)}</a></li>"
        for record in records
    ]
    body = "<h2>Tags</h2><ul class='postlist tagslist'>\n" + "\n".join(rows) + "\n</ul>"
    write_text(
        config.tags_path / "index.html",
        render_page(templates, config, body, f"Tags - {config.site_title}", "tags-index"),
    )


def build_tag_pages(templates: Templates, config: BuildConfig, tag_index: TagIndex) -> list[TagRecord]:
    records = tag_index.tags_in_order()
    for record in records:
        build_tag_page(templates, config, record)
    build_tags_index(templates, config, records)
    return records
