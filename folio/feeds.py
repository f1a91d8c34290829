"""Feed generation for Folio.

This module generates the RSS feed and the sitemap from the site index.
Output is deterministic: the feed's build date is the date of the newest
post rather than the wall clock, so rebuilding unchanged content produces
identical bytes.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates rss.xml.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import date
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html, join_root_url

if TYPE_CHECKING:
    from .collections import SiteIndex
    from .content import ContentUnit

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def rfc822_date(value: date) -> str:
    """Format a date for RSS without depending on the process locale."""
    return (
        f"{_DAYS[value.weekday()]}, {value.day:02d} {_MONTHS[value.month - 1]} "
        f"{value.year:04d} 00:00:00 +0000"
    )


class FeedGenerator(ABC):
    """Base class for feed generators.

    Subclasses implement specific feed formats; ``url`` is the output URL
    of the feed (e.g. ``/rss.xml``).
    """

    @property
    @abstractmethod
    def url(self) -> str:
        ...

    @abstractmethod
    def generate(
        self,
        index: SiteIndex,
        site: dict[str, Any],
        permalink: Callable[[ContentUnit], str],
    ) -> str | None:
        """Generate feed content.

        Args:
            index: The site index.
            site: Site values (``title``, ``url``, ``description``).
            permalink: Function returning a unit's root-relative URL.

        Returns:
            Feed content, or None if the feed cannot be generated
            (e.g., missing required configuration).
        """
        ...


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml for search engine indexing.

    Requires ``url`` in the site values to build absolute URLs.
    """

    @property
    def url(self) -> str:
        return "/sitemap.xml"

    def generate(self, index, site, permalink) -> str | None:
        base_url = str(site.get("url") or "").rstrip("/")
        if not base_url:
            return None
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        if len(index):
            lines.append(
                f"  <url><loc>{escape_html(join_root_url(base_url, '/'))}</loc>"
                f"<lastmod>{index[0].date.isoformat()}</lastmod></url>"
            )
        for unit in index:
            loc = escape_html(join_root_url(base_url, permalink(unit)))
            lines.append(
                f"  <url><loc>{loc}</loc><lastmod>{unit.date.isoformat()}</lastmod></url>"
            )
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the most recent units.

    Attributes:
        length: Number of units in the feed.
    """

    def __init__(self, length: int = 20):
        self.length = length

    @property
    def url(self) -> str:
        return "/rss.xml"

    def generate(self, index, site, permalink) -> str | None:
        base_url = str(site.get("url") or "").rstrip("/")
        title = str(site.get("title") or "Folio")
        description = str(site.get("description") or title)
        items: Sequence[ContentUnit] = index.feed(self.length)

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_html(title)}</title>",
            f"<link>{escape_html(join_root_url(base_url, '/'))}</link>",
            f"<description>{escape_html(description)}</description>",
        ]
        if items:
            rss.append(f"<lastBuildDate>{rfc822_date(items[0].date)}</lastBuildDate>")
        for unit in items:
            link = escape_html(join_root_url(base_url, permalink(unit)))
            summary = unit.description or unit.title
            rss.append(
                f"<item><title>{escape_html(unit.title)}</title><link>{link}</link>"
                f'<guid isPermaLink="true">{link}</guid>'
                f"<description>{escape_html(summary)}</description>"
                f"<pubDate>{rfc822_date(unit.date)}</pubDate></item>"
            )
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for feed generators run at the end of a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self,
        index: SiteIndex,
        site: dict[str, Any],
        permalink: Callable[[ContentUnit], str],
    ) -> dict[str, str]:
        """Generate every registered feed.

        Returns:
            Mapping of feed URL to content for the feeds that were produced.
        """
        generated: dict[str, str] = {}
        for generator in self._generators:
            content = generator.generate(index, site, permalink)
            if content is not None:
                generated[generator.url] = content
        return generated


def create_default_feed_registry(feed_length: int = 20) -> FeedRegistry:
    """Create a registry with the RSS and sitemap generators."""
    registry = FeedRegistry()
    registry.register(RSSGenerator(feed_length))
    registry.register(SitemapGenerator())
    return registry
