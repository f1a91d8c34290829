from datetime import date
from pathlib import Path

import pytest

from folio.collections import SiteIndex, build_index
from folio.content import ContentUnit
from folio.errors import ConfigError


def make_unit(slug, when, tags=()):
    return ContentUnit(
        slug=slug,
        title=slug.upper(),
        date=when,
        raw_body="",
        source_path=Path(f"/content/{slug}.md"),
        tags=list(tags),
    )


def make_index(count):
    return build_index(make_unit(f"post-{i:02d}", date(2020, 1, i + 1)) for i in range(count))


def test_index_orders_newest_first():
    a = make_unit("a", date(2020, 1, 1))
    b = make_unit("b", date(2020, 6, 1))
    index = build_index([a, b])
    assert list(index) == [b, a]
    assert index.ordered_units == (b, a)
    assert len(index) == 2
    assert a in index
    assert make_unit("zzz", date(2020, 1, 1)) not in index


def test_same_date_ties_break_by_slug():
    units = [make_unit(s, date(2021, 3, 3)) for s in ("delta", "alpha", "charlie")]
    index = build_index(units + [make_unit("older", date(2020, 1, 1))])
    assert [u.slug for u in index] == ["alpha", "charlie", "delta", "older"]


def test_index_is_independent_of_input_order():
    units = [make_unit(f"p{i}", date(2020, 1 + i % 12, 1)) for i in range(20)]
    assert list(build_index(units)) == list(build_index(reversed(units)))


@pytest.mark.parametrize("count", [1, 5, 7])
def test_pagination_concatenates_to_index(count):
    index = make_index(count)
    for page_size in range(1, count + 3):
        pages = index.paginate(page_size)
        flattened = [u for page in pages for u in page.units]
        assert flattened == list(index)
        assert [p.number for p in pages] == list(range(1, len(pages) + 1))
        assert all(p.total == len(pages) for p in pages)
        assert all(len(p.units) == page_size for p in pages[:-1])
        assert 1 <= len(pages[-1].units) <= page_size


def test_pagination_navigation_flags():
    pages = make_index(5).paginate(2)
    assert [(p.has_previous, p.has_next) for p in pages] == [
        (False, True),
        (True, True),
        (True, False),
    ]


def test_empty_index_has_one_empty_page():
    pages = build_index([]).paginate(10)
    assert len(pages) == 1
    assert pages[0].units == ()
    assert pages[0].total == 1


@pytest.mark.parametrize("page_size", [0, -3])
def test_invalid_page_size(page_size):
    with pytest.raises(ConfigError):
        make_index(3).paginate(page_size)


def test_feed_returns_most_recent():
    a = make_unit("a", date(2020, 1, 1))
    b = make_unit("b", date(2020, 6, 1))
    index = build_index([a, b])
    assert index.feed(1) == (b,)
    assert index.feed(10) == (b, a)
    assert index.feed(0) == ()
    with pytest.raises(ConfigError):
        index.feed(-1)


def test_neighbors():
    index = make_index(3)
    newest, middle, oldest = index
    assert index.neighbors(newest.slug) == (None, middle)
    assert index.neighbors(middle.slug) == (newest, oldest)
    assert index.neighbors(oldest.slug) == (middle, None)
    with pytest.raises(KeyError):
        index.neighbors("missing")


def test_tags_group_by_slug():
    a = make_unit("a", date(2020, 1, 1), ["Python", "web"])
    b = make_unit("b", date(2020, 6, 1), ["python"])
    c = make_unit("c", date(2020, 3, 1), [])
    index = SiteIndex([a, b, c])

    tags = index.tags()
    assert list(tags) == ["python", "web"]
    assert list(tags["python"]) == [b, a]
    assert list(tags["web"]) == [a]
    assert list(index.with_tag("PYTHON")) == [b, a]
    assert index.tag_names() == {"python": "python", "web": "web"}
