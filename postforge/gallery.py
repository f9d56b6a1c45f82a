from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError

from .config import BuildConfig
from .content import Post
from .utils import warn

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
SEPARATOR_RE = re.compile(r"[-_]+")

Resizer = Callable[[Path, Path, tuple[int, int]], None]


def resize_image(source: Path, dest: Path, box: tuple[int, int]) -> None:
    """Shrink ``source`` to fit ``box`` and save it to ``dest``; never upscales."""
    with Image.open(source) as img:
        image_format = img.format
        img.thumbnail(box)
        img.save(dest, format=image_format)


def caption_from_filename(filename: str) -> str:
    caption = SEPARATOR_RE.sub(" ", Path(filename).stem)
    return caption[:1].upper() + caption[1:]


def list_images(photos_dir: Path) -> list[Path]:
    return sorted(
        (path for path in photos_dir.iterdir() if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS),
        key=lambda p: p.name,
    )


def ensure_thumbnail(source: Path, thumb: Path, box: tuple[int, int], resize: Resizer) -> bool:
    """Create or refresh ``thumb``; returns False when ``source`` is missing or unreadable."""
    try:
        source_mtime = source.stat().st_mtime
    except FileNotFoundError:
        return False
    if thumb.exists() and thumb.stat().st_mtime >= source_mtime:
        return True
    try:
        resize(source, thumb, box)
    except FileNotFoundError:
        return False
    except (UnidentifiedImageError, PermissionError) as exc:
        warn(f"Skipping unreadable image {source.name}: {exc}")
        return False
    return True


def build_gallery(post: Post, config: BuildConfig, resize: Resizer = resize_image) -> str:
    photos_dir = post.source_dir / "photos"
    if not post.photo_page or not photos_dir.is_dir():
        return ""
    thumbs_dir = photos_dir / "thumbs"
    thumbs_dir.mkdir(exist_ok=True)
    box = (config.thumbnail_size, config.thumbnail_size)
    base = f"{config.post_url(post.slug)}/photos"
    figures = []
    for image in list_images(photos_dir):
        if not ensure_thumbnail(image, thumbs_dir / image.name, box, resize):
            continue
        caption = html.escape(caption_from_filename(image.name), quote=True)
        name = html.escape(image.name, quote=True)
        figures.append(
            "<figure class='photo-item'>"
            f"<a href='{base}/{name}' class='photo-link'>"
            f"<img src='{base}/thumbs/{name}' alt='{caption}'>"
            "</a>"
            f"<figcaption>{caption}</figcaption>"
            "</figure>"
        )
    if not figures:
        return ""
    return "<div class='photo-gallery'>" + "\n".join(figures) + "</div>"
