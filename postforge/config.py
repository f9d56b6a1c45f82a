from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

from .utils import BuildError, parse_int, warn

DEFAULT_CONFIG = "config.yml"


class ConfigError(BuildError):
    """Raised when the site configuration is missing or malformed."""


@dataclass(frozen=True)
class BuildConfig:
    """Site settings, read once per run and passed to every build step."""

    root: Path
    posts_dir: str = "posts"
    templates_dir: str = "templates"
    feed_dir: str = "feeds"
    tags_dir: str = "tags"
    critical_css_file: str = "css/critical.css"
    index_file: str = "index.html"
    site_title: str = "Site Title"
    base_url: str = "http://localhost:8000"
    stylesheet: str = "css/style.css"
    site_description: str = "Latest posts"
    thumbnail_size: int = 400

    @classmethod
    def from_mapping(cls, root: Path, data: dict) -> "BuildConfig":
        known = {field.name for field in fields(cls)} - {"root"}
        values: dict[str, object] = {}
        for raw_key, value in data.items():
            key = str(raw_key).strip().lower()
            if key not in known:
                warn(f"Ignoring unknown config key: {raw_key}")
                continue
            if isinstance(value, (dict, list)):
                raise ConfigError(f"Config value for {raw_key} must be a plain value, not nested data.")
            if value is None or str(value).strip() == "":
                continue
            values[key] = value
        if "thumbnail_size" in values:
            values["thumbnail_size"] = max(1, parse_int(values["thumbnail_size"], 400))
        for key, value in values.items():
            if key != "thumbnail_size":
                values[key] = str(value).strip()
        return cls(root=root, **values)

    def with_overrides(self, **overrides: object) -> "BuildConfig":
        changes = {key: value for key, value in overrides.items() if value}
        return replace(self, **changes) if changes else self

    @property
    def posts_path(self) -> Path:
        return self.root / self.posts_dir

    @property
    def templates_path(self) -> Path:
        return self.root / self.templates_dir

    @property
    def feed_path(self) -> Path:
        return self.root / self.feed_dir

    @property
    def tags_path(self) -> Path:
        return self.root / self.tags_dir

    @property
    def critical_css_path(self) -> Path:
        return self.root / self.critical_css_file

    @property
    def index_path(self) -> Path:
        return self.root / self.index_file

    @property
    def stylesheet_path(self) -> Path:
        return self.root / self.stylesheet

    def post_url(self, slug: str) -> str:
        return f"/{self.posts_dir.strip('/')}/{slug}"

    def tag_url(self, tag_slug: str) -> str:
        return f"/{self.tags_dir.strip('/')}/{tag_slug}/"


def parse_flat_config(text: str, path: Path, yaml_error: Exception) -> dict:
    """Read plain `key: value` lines, splitting each on its first colon."""
    data = {}
    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition(":")
        if not sep or not key.strip():
            raise ConfigError(f"Invalid YAML in config file {path} (line {line_no}): {yaml_error}")
        data[key.strip()] = value.strip()
    return data


def load_config(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"{path.name} not found, cannot build.")
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            # Flat "key: value" files may hold values YAML rejects, e.g. "Notes: A Blog".
            data = parse_flat_config(text, path, exc)
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def load_build_config(path: Path) -> BuildConfig:
    path = path.resolve()
    return BuildConfig.from_mapping(path.parent, load_config(path))
