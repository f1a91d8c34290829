"""Output URL and path derivation for Folio.

Every generated page has a root-relative URL ending in ``/`` and is written
to ``<output>/<url>/index.html``. Feeds and other files use a URL ending in a
filename and are written at that exact path.

Key functions:
    validate_permalink: Check a permalink pattern.
    permalink_for: URL of a content unit.
    listing_url: URL of a page of the main post listing.
    tag_url: URL of a page of a tag listing.
    url_to_path: Map a URL to a file under the output directory.
"""

from __future__ import annotations

import string
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from .errors import ConfigError
from .utils import slugify

if TYPE_CHECKING:
    from .content import ContentUnit

DEFAULT_PERMALINK = "/{slug}/"
PERMALINK_FIELDS = frozenset({"slug", "year", "month", "day"})


def validate_permalink(pattern: str) -> None:
    """Ensure a permalink pattern only uses known fields and includes ``{slug}``.

    Raises:
        ConfigError: If the pattern is invalid.
    """
    try:
        fields = {
            name for _, name, _, _ in string.Formatter().parse(pattern) if name is not None
        }
    except ValueError as exc:
        raise ConfigError(f"invalid permalink pattern {pattern!r}: {exc}") from exc
    unknown = fields - PERMALINK_FIELDS
    if unknown:
        raise ConfigError(
            f"unknown permalink field(s) {', '.join(sorted(unknown))} in {pattern!r}"
        )
    if "slug" not in fields:
        raise ConfigError(f"permalink pattern {pattern!r} must contain {{slug}}")


def _normalize(url: str) -> str:
    parts = [p for p in url.split("/") if p]
    return "/" + "/".join(parts) + "/" if parts else "/"


def permalink_for(unit: ContentUnit, pattern: str = DEFAULT_PERMALINK) -> str:
    """Derive the URL of a unit from its slug and date.

    Examples:
        ``/{year}/{month}/{slug}/`` for a post dated 2020-06-01 with slug
        ``b`` gives ``/2020/06/b/``.
    """
    url = pattern.format(
        slug=unit.slug,
        year=f"{unit.date.year:04d}",
        month=f"{unit.date.month:02d}",
        day=f"{unit.date.day:02d}",
    )
    return _normalize(url)


def listing_url(number: int, base: str = "/") -> str:
    """URL of page ``number`` (1-based) of a listing rooted at ``base``."""
    base = _normalize(base)
    if number <= 1:
        return base
    return f"{base}page/{number}/"


def tag_url(tag: str, number: int = 1) -> str:
    """URL of page ``number`` of the listing for ``tag``."""
    return listing_url(number, f"/tags/{slugify(tag)}/")


def url_to_path(output_dir: Path, url: str) -> Path:
    """Map a URL to the file it is written to.

    Directory-style URLs (trailing slash) map to ``index.html`` inside the
    directory; other URLs map to the file itself.

    Raises:
        ConfigError: If the URL would escape the output directory.
    """
    posix = PurePosixPath(url.lstrip("/"))
    if any(part == ".." for part in posix.parts):
        raise ConfigError(f"output URL {url!r} escapes the output directory")
    target = output_dir.joinpath(*posix.parts)
    if url.endswith("/") or not posix.parts:
        target = target / "index.html"
    return target
