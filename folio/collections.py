from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from .content import ContentUnit
from .errors import ConfigError
from .utils import slugify


def sort_key(unit: ContentUnit):
    """Newest first, ties broken by slug ascending."""
    return (-unit.date.toordinal(), unit.slug)


@dataclass(frozen=True)
class IndexPage:
    """One page of a paginated listing.

    Attributes:
        number: 1-based page number.
        total: Total number of pages in the listing.
        units: Units shown on this page, in index order.
    """

    number: int
    total: int
    units: tuple[ContentUnit, ...]

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total


class SiteIndex(Sequence[ContentUnit]):
    """Read-only, date-ordered view over the units of a build.

    Holds references to the units; units never point back at the index, so
    navigation such as previous/next is always computed from the current
    order.
    """

    def __init__(self, units: Iterable[ContentUnit]):
        self._units = tuple(sorted(units, key=sort_key))
        self._positions = {unit.slug: i for i, unit in enumerate(self._units)}

    @property
    def ordered_units(self) -> tuple[ContentUnit, ...]:
        return self._units

    def __iter__(self) -> Iterator[ContentUnit]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def __getitem__(self, item):
        return self._units[item]

    def __contains__(self, unit) -> bool:
        return getattr(unit, "slug", None) in self._positions

    def paginate(self, page_size: int) -> list[IndexPage]:
        """Split the ordered units into fixed-size pages.

        The last page may be shorter. An empty index yields a single empty
        page so that the first listing page always exists.

        Raises:
            ConfigError: If page_size is less than 1.
        """
        if page_size < 1:
            raise ConfigError(f"page size must be at least 1, got {page_size}")
        chunks = [
            self._units[start : start + page_size]
            for start in range(0, len(self._units), page_size)
        ] or [()]
        total = len(chunks)
        return [
            IndexPage(number=i, total=total, units=chunk)
            for i, chunk in enumerate(chunks, start=1)
        ]

    def feed(self, count: int) -> tuple[ContentUnit, ...]:
        """Return the ``count`` most recent units (all of them if fewer)."""
        if count < 0:
            raise ConfigError(f"feed length must not be negative, got {count}")
        return self._units[:count]

    def neighbors(self, slug: str) -> tuple[ContentUnit | None, ContentUnit | None]:
        """Return the (newer, older) units around ``slug``.

        Raises:
            KeyError: If no unit has that slug.
        """
        position = self._positions[slug]
        newer = self._units[position - 1] if position > 0 else None
        older = self._units[position + 1] if position + 1 < len(self._units) else None
        return newer, older

    def with_tag(self, tag: str) -> SiteIndex:
        """Units carrying ``tag``, compared by slug so "Python" matches "python"."""
        wanted = slugify(tag)
        return SiteIndex(u for u in self._units if wanted in {slugify(t) for t in u.tags})

    def tags(self) -> dict[str, SiteIndex]:
        """Map every tag slug, sorted, to the index of its units."""
        slugs = sorted({slugify(tag) for unit in self._units for tag in unit.tags})
        return {slug: self.with_tag(slug) for slug in slugs}

    def tag_names(self) -> dict[str, str]:
        """Map every tag slug to the first spelling of the tag in index order."""
        names: dict[str, str] = {}
        for unit in self._units:
            for tag in unit.tags:
                names.setdefault(slugify(tag), tag)
        return dict(sorted(names.items()))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SiteIndex({len(self._units)} units)"


def build_index(units: Iterable[ContentUnit]) -> SiteIndex:
    """Build the site index over successfully processed units."""
    return SiteIndex(units)
