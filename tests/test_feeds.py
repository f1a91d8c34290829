from datetime import date
from pathlib import Path

from folio.collections import build_index
from folio.content import ContentUnit
from folio.feeds import (
    FeedRegistry,
    RSSGenerator,
    SitemapGenerator,
    create_default_feed_registry,
    rfc822_date,
)


def make_unit(slug, title, when, description=""):
    return ContentUnit(
        slug=slug,
        title=title,
        date=when,
        raw_body="",
        source_path=Path(f"/content/{slug}.md"),
        description=description,
    )


def permalink(unit):
    return f"/{unit.slug}/"


def sample_index():
    return build_index(
        [
            make_unit("a", "Alpha & Omega", date(2020, 1, 1), "First <post>"),
            make_unit("b", "Beta", date(2020, 6, 1)),
        ]
    )


def test_rfc822_date():
    assert rfc822_date(date(2020, 1, 1)) == "Wed, 01 Jan 2020 00:00:00 +0000"
    assert rfc822_date(date(2020, 6, 1)) == "Mon, 01 Jun 2020 00:00:00 +0000"


def test_rss_feed_lists_newest_first():
    site = {"title": "T & Co", "url": "https://example.com/"}
    rss = RSSGenerator(20).generate(sample_index(), site, permalink)
    assert "<title>T &amp; Co</title>" in rss
    assert "<link>https://example.com/</link>" in rss
    assert "<lastBuildDate>Mon, 01 Jun 2020 00:00:00 +0000</lastBuildDate>" in rss
    assert rss.index("<title>Beta</title>") < rss.index("<title>Alpha &amp; Omega</title>")
    assert '<guid isPermaLink="true">https://example.com/b/</guid>' in rss
    assert "<description>First &lt;post&gt;</description>" in rss


def test_rss_feed_respects_length_and_missing_url():
    rss = RSSGenerator(1).generate(sample_index(), {}, permalink)
    assert "<title>Beta</title>" in rss
    assert "Alpha" not in rss
    assert "<link>/b/</link>" in rss
    assert "<title>Folio</title>" in rss

    empty = RSSGenerator(0).generate(sample_index(), {}, permalink)
    assert "<item>" not in empty
    assert "lastBuildDate" not in empty


def test_rss_feed_is_deterministic():
    site = {"title": "Site", "url": "https://example.com"}
    generator = RSSGenerator(5)
    assert generator.generate(sample_index(), site, permalink) == generator.generate(
        sample_index(), site, permalink
    )


def test_sitemap_requires_site_url():
    generator = SitemapGenerator()
    assert generator.generate(sample_index(), {}, permalink) is None

    sitemap = generator.generate(sample_index(), {"url": "https://example.com"}, permalink)
    assert "<loc>https://example.com/</loc><lastmod>2020-06-01</lastmod>" in sitemap
    assert "<loc>https://example.com/a/</loc><lastmod>2020-01-01</lastmod>" in sitemap
    assert "<loc>https://example.com/b/</loc>" in sitemap


def test_feed_registry():
    registry = create_default_feed_registry(10)
    feeds = registry.generate_all(sample_index(), {"title": "Site"}, permalink)
    assert list(feeds) == ["/rss.xml"]

    feeds = registry.generate_all(sample_index(), {"url": "https://x.com"}, permalink)
    assert list(feeds) == ["/rss.xml", "/sitemap.xml"]

    assert FeedRegistry().generate_all(sample_index(), {}, permalink) == {}
