"""Front matter parsing and metadata extractors for Folio.

The front matter is a YAML mapping fenced by ``---`` lines at the very top of
a content source. Each extractor pulls one recognized field out of it (with
validation), and CompositeMetadataExtractor merges their results. Keys no
extractor recognizes are passed through untouched as opaque metadata.

Key classes:
- TitleExtractor: Required title.
- DateExtractor: Required naive date.
- SlugExtractor: Explicit slug or one derived from the source path.
- TagExtractor: Optional tags list.
- DescriptionExtractor: Description from front matter or first paragraph.
- OptionsExtractor: Layout and draft flags.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .utils import first_paragraph, parse_date, parse_tags, slugify

FRONTMATTER_RE = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

RECOGNIZED_KEYS = frozenset(
    {"title", "date", "slug", "tags", "description", "layout", "draft"}
)


class MetadataError(ValueError):
    """Front matter is missing, malformed or fails validation."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from the body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front matter dict, remaining body).

    Raises:
        MetadataError: If there is no front matter block, the YAML does not
            parse, or it is not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        raise MetadataError("missing front matter block")
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except (yaml.YAMLError, ValueError) as exc:
        # PyYAML raises ValueError for timestamps like 2024-02-30
        raise MetadataError(f"malformed front matter: {exc}") from exc
    if not isinstance(data, dict):
        raise MetadataError("front matter must be a mapping")
    return {str(k): v for k, v in data.items()}, text[match.end() :]


class TitleExtractor:
    """Extracts the required ``title`` field."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        title = frontmatter.get("title")
        if title is None or not str(title).strip():
            raise MetadataError("missing required field 'title'")
        return {"title": str(title).strip()}


class DateExtractor:
    """Extracts the required ``date`` field as a naive date."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        if frontmatter.get("date") is None:
            raise MetadataError("missing required field 'date'")
        try:
            return {"date": parse_date(frontmatter["date"])}
        except ValueError as exc:
            raise MetadataError(str(exc)) from exc


class SlugExtractor:
    """Uses an explicit ``slug`` or derives one from the source path.

    ``path`` is relative to the content root. For bundles
    (``<dir>/index.md``) the directory name is used, otherwise the file stem,
    so a root-level ``index.md`` gets the slug ``index``.
    """

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        explicit = frontmatter.get("slug")
        if explicit is not None and str(explicit).strip():
            return {"slug": slugify(str(explicit))}
        name = path.stem
        if name.lower() == "index" and path.parent.name:
            name = path.parent.name
        return {"slug": slugify(name)}


class TagExtractor:
    """Extracts the optional ``tags`` field."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        return {"tags": parse_tags(frontmatter.get("tags"))}


class DescriptionExtractor:
    """Uses ``description`` when present, else the first paragraph of the body."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        description = frontmatter.get("description")
        if description is not None and str(description).strip():
            return {"description": " ".join(str(description).split())}
        return {"description": first_paragraph(body)}


class OptionsExtractor:
    """Extracts ``layout`` and ``draft``."""

    def extract(self, frontmatter: dict[str, Any], body: str, path: Path) -> dict[str, Any]:
        layout = str(frontmatter.get("layout") or "post").strip()
        draft = frontmatter.get("draft", False)
        if isinstance(draft, str):
            draft = draft.strip().lower() in {"1", "true", "yes", "on"}
        return {"layout": layout, "draft": bool(draft)}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every extractor over the front matter and merges their results;
    later extractors override earlier ones. The unrecognized front-matter
    keys are returned under ``metadata``.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                SlugExtractor(),
                TagExtractor(),
                DescriptionExtractor(),
                OptionsExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, text: str, path: Path) -> dict[str, Any]:
        """Parse front matter and extract all metadata.

        Args:
            text: Raw source content.
            path: Source path relative to the content root.

        Returns:
            Dictionary with extracted fields plus ``body`` and ``metadata``.

        Raises:
            MetadataError: If the front matter is invalid or a required field
                is missing.
        """
        frontmatter, body = extract_frontmatter(text)
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(frontmatter, body, path))
        result["body"] = body
        result["metadata"] = {
            k: v for k, v in frontmatter.items() if k not in RECOGNIZED_KEYS
        }
        return result


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()
