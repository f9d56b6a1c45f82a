from __future__ import annotations

import argparse
import datetime as dt
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .cache import CssAsset, new_fingerprint, publish_stylesheet, rewrite_stylesheet_refs
from .config import DEFAULT_CONFIG, BuildConfig, load_build_config
from .content import Post, discover_posts, load_post, scaffold_post
from .feeds import FeedEntry, build_json_feed, build_rss, build_sitemap, sort_entries
from .gallery import Resizer, build_gallery, resize_image
from .pages import build_index, build_post_page, build_tag_pages
from .render import MarkdownRenderer, Renderer, fix_relative_img_src, load_templates, render_inline, write_text
from .tags import TagIndex
from .utils import BuildError, warn

CRITICAL_CSS_PLACEHOLDER = "/* critical css */\n"


def _rel(path: Path, config: BuildConfig) -> str:
    try:
        return path.relative_to(config.root).as_posix()
    except ValueError:
        return str(path)


@dataclass(frozen=True)
class BuildResult:
    posts: list[Post]
    feed_entries: list[FeedEntry]
    tag_slugs: list[str]
    stylesheet: Optional[CssAsset]


def ensure_directories(config: BuildConfig) -> None:
    for path in (config.posts_path, config.templates_path, config.feed_path, config.tags_path):
        path.mkdir(parents=True, exist_ok=True)


def ensure_critical_css(config: BuildConfig) -> None:
    path = config.critical_css_path
    if path.exists():
        return
    write_text(path, CRITICAL_CSS_PLACEHOLDER)
    print(f"Created {_rel(path, config)}")


def bust_stylesheet_cache(config: BuildConfig, token_factory: Callable[[], str]) -> Optional[CssAsset]:
    source = config.stylesheet_path
    if not source.exists():
        warn(f"Stylesheet {config.stylesheet} not found; skipping cache busting.")
        return None
    asset = publish_stylesheet(source, token_factory)
    rel = _rel(asset.path, config)
    if asset.minted:
        print(f"Created new CSS: {rel}")
    else:
        print(f"No changes in {config.stylesheet}; using existing minified CSS.")
    header_path = config.templates_path / "header.html"
    if rewrite_stylesheet_refs(header_path, asset, source.stem):
        print(f"Updated {_rel(header_path, config)} to reference {rel}")
    return asset


def build_site(
    config: BuildConfig,
    *,
    render: Optional[Renderer] = None,
    resize: Resizer = resize_image,
    today: Optional[dt.date] = None,
    token_factory: Callable[[], str] = new_fingerprint,
) -> BuildResult:
    render = render or MarkdownRenderer()
    today = today or dt.date.today()

    ensure_directories(config)
    # Fail on missing templates before anything under the site root is rewritten.
    load_templates(config)
    ensure_critical_css(config)
    stylesheet = bust_stylesheet_cache(config, token_factory)
    templates = load_templates(config)

    posts: list[Post] = []
    feed_entries: list[FeedEntry] = []
    tag_index = TagIndex()

    for post_dir in discover_posts(config.posts_path):
        try:
            post = load_post(post_dir)
        except UnicodeDecodeError as exc:
            raise BuildError(f"Failed to build post {post_dir.name}: {exc}") from exc
        if post is None:
            print(f"Skipping {_rel(post_dir, config)} (no index.md)")
            continue
        try:
            description_html = fix_relative_img_src(
                render_inline(render, post.description_markdown), config.post_url(post.slug)
            )
            content_html = render(post.body_markdown)
            gallery_html = build_gallery(post, config, resize)
        except Exception as exc:
            raise BuildError(f"Failed to build post {post.slug}: {exc}") from exc
        page = build_post_page(templates, config, post, content_html, gallery_html)
        write_text(post_dir / "index.html", page)
        posts.append(post)
        print(
            f"Built {_rel(post_dir, config)} "
            f"(hide_from_feed={int(post.hide_from_feed)} photo_page={int(post.photo_page)})"
        )

        for tag in post.tags:
            tag_index.record(tag, post.date, post.title, post.slug, description_html)
        if not post.hide_from_feed:
            feed_entries.append(FeedEntry.from_post(post, description_html))

    feed_entries = sort_entries(feed_entries)

    build_index(templates, config, feed_entries)
    print(f"Generated {config.index_file}")

    records = build_tag_pages(templates, config, tag_index)
    print(f"Generated {len(records)} tag pages and {config.tags_dir}/index.html")

    rss_path = build_rss(config, feed_entries)
    json_path = build_json_feed(config, feed_entries)
    print(f"Feeds generated: {_rel(rss_path, config)} and {_rel(json_path, config)}")

    tag_slugs = [record.slug for record in records]
    sitemap_path = build_sitemap(config, posts, tag_slugs, today)
    print(f"Created {_rel(sitemap_path, config)}")

    return BuildResult(posts, feed_entries, tag_slugs, stylesheet)


def run_build(args: argparse.Namespace) -> None:
    config = load_build_config(Path(args.config)).with_overrides(
        site_title=args.site_title,
        base_url=args.base_url,
    )
    start = time.perf_counter()
    result = build_site(config)
    elapsed = time.perf_counter() - start
    print(f"Build complete: {len(result.posts)} posts, {len(result.tag_slugs)} tags.")
    print(f"Build completed in {elapsed:.2f}s.")


def run_scaffold(args: argparse.Namespace) -> None:
    config_path = Path(args.config)
    if config_path.exists():
        config = load_build_config(config_path)
    else:
        config = BuildConfig(root=config_path.resolve().parent)
    source = scaffold_post(config, " ".join(args.title))
    print(f"Scaffolded new post at {_rel(source, config)}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Static site builder for Markdown posts.")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to site config file (YAML/TOML/JSON).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Rebuild every page, feed and the sitemap.")
    build_parser.add_argument("--site-title", default="", help="Override the configured site title.")
    build_parser.add_argument("--base-url", default="", help="Override the configured base URL.")
    build_parser.set_defaults(handler=run_build)

    scaffold_parser = subparsers.add_parser("scaffold", help="Create a new post skeleton.")
    scaffold_parser.add_argument("title", nargs="+", help="Title of the new post.")
    scaffold_parser.set_defaults(handler=run_scaffold)

    args = parser.parse_args(argv)
    try:
        args.handler(args)
    except BuildError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
