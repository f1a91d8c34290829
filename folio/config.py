"""Build configuration for Folio.

Configuration is an explicit value passed to the build, never process-wide
state. It can come from a YAML file (``folio.yaml``) with command-line
overrides applied on top.

Key items:
- BuildConfig: Dataclass with every setting of a build run.
- load_config: Read settings from a YAML file with defaults applied.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .paths import DEFAULT_PERMALINK, validate_permalink

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "content",
    "output_dir": "output",
    "layouts_dir": None,
    "page_size": 10,
    "feed_length": 20,
    "permalink": DEFAULT_PERMALINK,
    "title": "Folio",
    "url": "",
    "description": "",
    "workers": None,
}


def _default_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class BuildConfig:
    """Settings for one build run.

    Attributes:
        content_root: Directory holding the content sources.
        output_root: Directory the site is written to.
        layouts_dir: Optional directory with user layouts.
        page_size: Units per listing page.
        feed_length: Units in the RSS feed.
        permalink: Pattern for post URLs.
        title: Site title.
        url: Absolute site URL; links stay root-relative when empty.
        description: Site description used by the feed.
        workers: Size of the worker pool.
        include_drafts: Whether draft units are built.
    """

    content_root: Path
    output_root: Path
    layouts_dir: Path | None = None
    page_size: int = 10
    feed_length: int = 20
    permalink: str = DEFAULT_PERMALINK
    title: str = "Folio"
    url: str = ""
    description: str = ""
    workers: int = field(default_factory=_default_workers)
    include_drafts: bool = False

    @property
    def site(self) -> dict[str, Any]:
        """Site-wide values exposed to layouts and feeds."""
        return {
            "title": self.title,
            "url": self.url.rstrip("/"),
            "description": self.description,
        }

    def validate(self) -> None:
        """Reject settings that make the run itself invalid.

        Raises:
            ConfigError: On the first invalid setting.
        """
        if not isinstance(self.page_size, int) or self.page_size < 1:
            raise ConfigError(f"page_size must be an integer >= 1, got {self.page_size!r}")
        if not isinstance(self.feed_length, int) or self.feed_length < 0:
            raise ConfigError(
                f"feed_length must be an integer >= 0, got {self.feed_length!r}"
            )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers must be an integer >= 1, got {self.workers!r}")
        validate_permalink(self.permalink)
        if not self.content_root.is_dir():
            raise ConfigError("content root is not a directory", self.content_root)
        if self.layouts_dir is not None and not self.layouts_dir.is_dir():
            raise ConfigError("layouts directory does not exist", self.layouts_dir)
        content = self.content_root.resolve()
        output = self.output_root.resolve()
        if output == content or output in content.parents:
            raise ConfigError("output root must not contain the content root", self.output_root)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load settings from a YAML file.

    Args:
        config_path: Path to the file; a missing file yields the defaults.

    Returns:
        Dictionary containing configuration values, with defaults applied.
        Relative directories are resolved against the file's directory.

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML.
    """
    config = DEFAULT_CONFIG.copy()
    if config_path is None or not config_path.exists():
        return config
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", config_path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read config file: {exc}", config_path) from exc
    if isinstance(loaded, dict):
        config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    base = config_path.parent
    for key in ("content_dir", "output_dir", "layouts_dir"):
        if config.get(key):
            config[key] = base / str(config[key])
    return config


def config_from_mapping(
    values: dict[str, Any],
    content_root: Path | None = None,
    output_root: Path | None = None,
    include_drafts: bool = False,
) -> BuildConfig:
    """Create a BuildConfig from loaded values and explicit roots.

    Args:
        values: Output of load_config, possibly with overrides applied.
        content_root: Overrides ``content_dir``.
        output_root: Overrides ``output_dir``.
        include_drafts: Whether to build drafts.
    """
    layouts = values.get("layouts_dir")
    return BuildConfig(
        content_root=Path(content_root or values["content_dir"]),
        output_root=Path(output_root or values["output_dir"]),
        layouts_dir=Path(layouts) if layouts else None,
        page_size=values["page_size"],
        feed_length=values["feed_length"],
        permalink=str(values["permalink"]),
        title=str(values["title"]),
        url=str(values["url"] or ""),
        description=str(values["description"] or ""),
        workers=_default_workers() if values["workers"] is None else values["workers"],
        include_drafts=include_drafts,
    )
