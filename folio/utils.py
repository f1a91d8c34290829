"""Utility functions for Folio.

This module contains small helpers shared across the codebase: slug
derivation, date parsing, tag normalization and output directory handling.

Key functions:
    slugify: Convert names to URL slugs.
    parse_date: Parse a front-matter date value into a naive date.
    parse_tags: Normalize a front-matter tags value into a list.
    first_paragraph: Plain-text first paragraph of a Markdown body.
    is_markdown: Check if a path is a Markdown file.
    is_ignored: Check if a content root child should be skipped.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime
from pathlib import Path
from typing import Any

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")


def slugify(name: str) -> str:
    """Convert a name to a slug, dropping any YYYY-MM-DD- prefix.

    Args:
        name: Filename stem, directory name or explicit slug.

    Returns:
        Lower-cased, URL-friendly slug. Empty input yields "index".

    Examples:
        >>> slugify("2024-01-15-Hello World")
        'hello-world'
    """
    cleaned = DATE_PREFIX_RE.sub("", name.strip())
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def parse_date(value: Any) -> date:
    """Parse a front-matter date value into a naive calendar date.

    YAML already turns unquoted ``2024-01-15`` into a ``date`` and a full
    timestamp into a ``datetime``; quoted strings are parsed as ISO dates or
    timestamps; the whole string must parse. Time and time zone information is
    discarded.

    Args:
        value: Raw value from the front matter.

    Returns:
        The calendar date.

    Raises:
        ValueError: If the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise ValueError(f"malformed date {value!r}")


def parse_tags(value: Any) -> list[str]:
    """Normalize a tags value into a de-duplicated list of strings.

    Accepts a YAML list or a comma-separated string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = [str(item) for item in value]
    else:
        items = [str(value)]
    tags: list[str] = []
    for item in items:
        tag = item.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract the first prose paragraph from Markdown text.

    Skips headings, images, code fences and rules, strips HTML tags and
    collapses whitespace.

    Args:
        text: Markdown text content.
        limit: Maximum character length of result.

    Returns:
        Cleaned first paragraph, truncated to limit characters.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "![", "```", "~~~", "---", "<")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", para)
        collapsed = " ".join(para.split())
        return collapsed[:limit]
    return ""


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (case-insensitive .md)."""
    return path.suffix.lower() == ".md"


def is_ignored(path: Path) -> bool:
    """Check if a path is hidden or internal (name starts with . or _)."""
    return path.name.startswith(("_", "."))


def ensure_clean_dir(path: Path) -> None:
    """Create ``path`` if needed and remove everything inside it.

    The directory itself is kept, so a mount point or a directory with
    custom permissions survives a rebuild.

    Raises:
        OSError: If the directory or one of its children cannot be removed.
    """
    path.mkdir(parents=True, exist_ok=True)
    for child in sorted(path.iterdir()):
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
