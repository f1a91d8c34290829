"""Content loading for Folio.

This module discovers content sources under a content root, parses their
front matter and produces ContentUnit objects. Loading never stops at the
first bad source: every failure becomes a LoadError and the rest carry on.

A content source is an immediate child of the content root that is either:
- a Markdown file (``hello.md``), or
- a directory holding an ``index.md`` plus sibling assets (a bundle).

Key classes:
- ContentUnit: Dataclass representing one post.
- FileContentLoader: Discovers content sources in a directory.
- UnitBuilder: Builds a ContentUnit from one source.
- ContentLoader: Facade producing (units, errors) for a whole content root.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .errors import DuplicateSlugError, LoadError
from .extractors import (
    CompositeMetadataExtractor,
    MetadataError,
    default_metadata_extractor,
)
from .utils import is_ignored, is_markdown

logger = logging.getLogger(__name__)


@dataclass
class ContentUnit:
    """Represents one post with its metadata and content.

    Attributes:
        slug: Unique URL-friendly identifier.
        title: Human-readable title.
        date: Publication date (naive).
        raw_body: Markdown body with the front matter removed.
        source_path: Path to the Markdown source file.
        bundle_dir: Bundle directory, or None for a single-file post.
        assets: Files co-located with the post inside its bundle.
        tags: Tags from the front matter.
        description: Short description for listings and feeds.
        layout: Name of the layout used to compose the post.
        draft: Whether the post is a draft.
        metadata: Front-matter keys Folio does not interpret.
    """

    slug: str
    title: str
    date: date
    raw_body: str
    source_path: Path
    bundle_dir: Path | None = None
    assets: frozenset[Path] = frozenset()
    tags: list[str] = field(default_factory=list)
    description: str = ""
    layout: str = "post"
    draft: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    _rendered_body: str | None = field(default=None, init=False, repr=False)

    @property
    def rendered_body(self) -> str | None:
        """Rendered HTML fragment, or None until the render stage runs."""
        return self._rendered_body

    @rendered_body.setter
    def rendered_body(self, html: str) -> None:
        if self._rendered_body is not None:
            raise ValueError(f"rendered_body of '{self.slug}' is already set")
        self._rendered_body = html

    @property
    def is_rendered(self) -> bool:
        return self._rendered_body is not None


class FileContentLoader:
    """Discovers content sources under a content root.

    Only immediate children of the root are considered. Names starting with
    ``_`` or ``.`` are skipped, as are directories without an ``index.md``
    and files that are not Markdown.
    """

    def __init__(self, content_root: Path):
        self.content_root = content_root

    def iter_sources(self) -> list[Path]:
        """Return Markdown source paths in a stable order.

        Returns:
            Paths to single-file posts and to bundle ``index.md`` files,
            sorted by path.
        """
        sources: list[Path] = []
        for child in sorted(self.content_root.iterdir()):
            if is_ignored(child):
                continue
            if child.is_dir():
                index = self._bundle_index(child)
                if index is not None:
                    sources.append(index)
            elif child.is_file() and is_markdown(child):
                sources.append(child)
        return sources

    @staticmethod
    def _bundle_index(directory: Path) -> Path | None:
        for candidate in sorted(directory.iterdir()):
            if candidate.is_file() and is_markdown(candidate) and candidate.stem.lower() == "index":
                return candidate
        return None

    @staticmethod
    def bundle_assets(directory: Path, index: Path) -> frozenset[Path]:
        """Collect every non-hidden file of a bundle except its index."""
        assets = set()
        for path in directory.rglob("*"):
            if path == index or not path.is_file():
                continue
            rel = path.relative_to(directory)
            if any(part.startswith(".") for part in rel.parts):
                continue
            assets.add(path)
        return frozenset(assets)


class UnitBuilder:
    """Builds ContentUnit objects from source files.

    Attributes:
        content_root: Root of the content tree.
        metadata_extractor: Composite front-matter extractor.
    """

    def __init__(
        self,
        content_root: Path,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.content_root = content_root
        self.metadata_extractor = metadata_extractor or default_metadata_extractor

    def _relative(self, path: Path) -> Path:
        if path.is_relative_to(self.content_root):
            return path.relative_to(self.content_root)
        return path

    def build(self, path: Path) -> ContentUnit:
        """Build a ContentUnit from a Markdown source.

        Args:
            path: Path to a single-file post or a bundle's ``index.md``.

        Returns:
            The loaded unit.

        Raises:
            LoadError: If the file cannot be read or its front matter is
                invalid.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(path, f"unreadable file: {exc}") from exc

        try:
            meta = self.metadata_extractor.extract(text, self._relative(path))
        except MetadataError as exc:
            raise LoadError(path, str(exc)) from exc

        bundle_dir = path.parent if path.parent != self.content_root else None
        assets = (
            FileContentLoader.bundle_assets(bundle_dir, path)
            if bundle_dir is not None
            else frozenset()
        )
        return ContentUnit(
            slug=meta["slug"],
            title=meta["title"],
            date=meta["date"],
            raw_body=meta["body"],
            source_path=path,
            bundle_dir=bundle_dir,
            assets=assets,
            tags=meta.get("tags", []),
            description=meta.get("description", ""),
            layout=meta.get("layout", "post"),
            draft=meta.get("draft", False),
            metadata=meta.get("metadata", {}),
        )


class ContentLoader:
    """Loads every content unit under a content root.

    Attributes:
        content_root: Root of the content tree.
    """

    def __init__(
        self,
        content_root: Path,
        source_finder: FileContentLoader | None = None,
        unit_builder: UnitBuilder | None = None,
        workers: int = 1,
    ):
        self.content_root = content_root
        self._source_finder = source_finder or FileContentLoader(content_root)
        self._unit_builder = unit_builder or UnitBuilder(content_root)
        self.workers = max(1, workers)

    def load_all(
        self, include_drafts: bool = False
    ) -> tuple[list[ContentUnit], list[LoadError]]:
        """Load all content units, collecting failures instead of raising.

        Args:
            include_drafts: Whether to keep units marked ``draft: true``.

        Returns:
            Tuple of (units sorted by source path, load errors). Units whose
            slug collides with another source are reported once per slug as
            a DuplicateSlugError and left out of the unit list.
        """
        sources = self._source_finder.iter_sources()
        if self.workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                outcomes = list(executor.map(self._load_one, sources))
        else:
            outcomes = [self._load_one(path) for path in sources]

        units: list[ContentUnit] = []
        errors: list[LoadError] = []
        for outcome in outcomes:
            if isinstance(outcome, LoadError):
                errors.append(outcome)
            elif outcome.draft and not include_drafts:
                logger.debug("Skipping draft %s", outcome.source_path)
            else:
                units.append(outcome)

        units, duplicates = self._split_duplicates(units)
        errors.extend(duplicates)
        errors.sort(key=lambda e: str(e.source_path))
        return units, errors

    def _load_one(self, path: Path) -> ContentUnit | LoadError:
        try:
            unit = self._unit_builder.build(path)
        except LoadError as exc:
            logger.debug("Failed to load %s: %s", path, exc.reason)
            return exc
        logger.debug("Loaded %s as '%s'", path, unit.slug)
        return unit

    @staticmethod
    def _split_duplicates(
        units: list[ContentUnit],
    ) -> tuple[list[ContentUnit], list[DuplicateSlugError]]:
        by_slug: dict[str, list[ContentUnit]] = {}
        for unit in units:
            by_slug.setdefault(unit.slug, []).append(unit)
        kept: list[ContentUnit] = []
        duplicates: list[DuplicateSlugError] = []
        for unit in units:
            group = by_slug[unit.slug]
            if len(group) == 1:
                kept.append(unit)
            elif group[0] is unit:
                duplicates.append(
                    DuplicateSlugError(unit.slug, [u.source_path for u in group])
                )
        return kept, duplicates


def load_all(
    content_root: Path, include_drafts: bool = False, workers: int = 1
) -> tuple[list[ContentUnit], list[LoadError]]:
    """Load every content unit under ``content_root``.

    Convenience wrapper around ContentLoader.
    """
    return ContentLoader(content_root, workers=workers).load_all(include_drafts)
