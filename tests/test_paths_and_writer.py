from datetime import date
from pathlib import Path

import pytest

from folio.content import ContentUnit
from folio.errors import ConfigError
from folio.paths import listing_url, permalink_for, tag_url, url_to_path, validate_permalink
from folio.writer import OutputWriter


def make_unit(slug="b", when=date(2020, 6, 1), bundle_dir=None, assets=()):
    return ContentUnit(
        slug=slug,
        title=slug,
        date=when,
        raw_body="",
        source_path=Path(f"/content/{slug}.md"),
        bundle_dir=bundle_dir,
        assets=frozenset(assets),
    )


def test_permalink_for_patterns():
    unit = make_unit()
    assert permalink_for(unit) == "/b/"
    assert permalink_for(unit, "/{year}/{month}/{day}/{slug}/") == "/2020/06/01/b/"
    assert permalink_for(unit, "{slug}") == "/b/"
    assert permalink_for(unit, "//posts//{slug}") == "/posts/b/"


@pytest.mark.parametrize("pattern", ["/{title}/", "/{year}/", "/{slug", "/posts/"])
def test_invalid_permalink_patterns(pattern):
    with pytest.raises(ConfigError):
        validate_permalink(pattern)


def test_listing_and_tag_urls():
    assert listing_url(1) == "/"
    assert listing_url(2) == "/page/2/"
    assert listing_url(3, "/tags/py/") == "/tags/py/page/3/"
    assert tag_url("Python") == "/tags/python/"
    assert tag_url("Web Dev", 2) == "/tags/web-dev/page/2/"


def test_url_to_path(tmp_path):
    assert url_to_path(tmp_path, "/") == tmp_path / "index.html"
    assert url_to_path(tmp_path, "/a/b/") == tmp_path / "a" / "b" / "index.html"
    assert url_to_path(tmp_path, "/rss.xml") == tmp_path / "rss.xml"
    with pytest.raises(ConfigError):
        url_to_path(tmp_path, "/../escape/")


def test_writer_writes_and_refuses_duplicates(tmp_path):
    writer = OutputWriter(tmp_path / "out")
    writer.prepare()
    path = writer.write("/hello/", "<p>é</p>\n")
    assert path == tmp_path / "out" / "hello" / "index.html"
    assert path.read_bytes() == "<p>é</p>\n".encode("utf-8")
    with pytest.raises(ConfigError):
        writer.write("/hello/", "again")


def test_prepare_cleans_previous_output(tmp_path):
    out = tmp_path / "out"
    (out / "stale").mkdir(parents=True)
    (out / "stale" / "old.html").write_text("old", encoding="utf-8")
    writer = OutputWriter(out)
    writer.prepare()
    assert out.exists()
    assert list(out.iterdir()) == []


def test_copy_assets_keeps_relative_layout(tmp_path):
    bundle = tmp_path / "content" / "trip"
    (bundle / "img").mkdir(parents=True)
    (bundle / "photo.jpg").write_bytes(b"jpg")
    (bundle / "img" / "map.png").write_bytes(b"png")
    unit = make_unit(
        "trip", bundle_dir=bundle, assets=[bundle / "photo.jpg", bundle / "img" / "map.png"]
    )

    writer = OutputWriter(tmp_path / "out")
    writer.prepare()
    copied = writer.copy_assets(unit, "/2020/trip/")
    page_dir = tmp_path / "out" / "2020" / "trip"
    assert copied == [page_dir / "img" / "map.png", page_dir / "photo.jpg"]
    assert (page_dir / "photo.jpg").read_bytes() == b"jpg"
    assert (page_dir / "img" / "map.png").read_bytes() == b"png"

    assert writer.copy_assets(make_unit("plain"), "/plain/") == []


def test_asset_colliding_with_page_is_refused(tmp_path):
    bundle = tmp_path / "content" / "post"
    bundle.mkdir(parents=True)
    (bundle / "index.html").write_text("x", encoding="utf-8")
    unit = make_unit("post", bundle_dir=bundle, assets=[bundle / "index.html"])

    writer = OutputWriter(tmp_path / "out")
    writer.prepare()
    writer.write("/post/", "page")
    with pytest.raises(ConfigError):
        writer.copy_assets(unit, "/post/")


def test_check_targets_finds_clashes_without_touching_disk(tmp_path):
    bundle = tmp_path / "content" / "post"
    bundle.mkdir(parents=True)
    (bundle / "index.html").write_text("x", encoding="utf-8")
    (bundle / "photo.jpg").write_bytes(b"jpg")
    unit = make_unit("post", bundle_dir=bundle, assets=[bundle / "photo.jpg"])

    writer = OutputWriter(tmp_path / "out")
    writer.check_targets([("/post/", unit), ("/", None), ("/rss.xml", None)])

    clashing = make_unit("post", bundle_dir=bundle, assets=[bundle / "index.html"])
    with pytest.raises(ConfigError) as excinfo:
        writer.check_targets([("/post/", clashing)])
    assert excinfo.value.source_path == tmp_path / "out" / "post" / "index.html"
    with pytest.raises(ConfigError):
        writer.check_targets([("/rss.xml", None), ("/rss.xml", None)])
    assert not (tmp_path / "out").exists()


def test_check_writable(tmp_path):
    OutputWriter(tmp_path / "not" / "yet" / "there").check_writable()
    assert not (tmp_path / "not").exists()

    blocker = tmp_path / "file.txt"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(ConfigError):
        OutputWriter(blocker).check_writable()
    with pytest.raises(ConfigError):
        OutputWriter(blocker / "sub").check_writable()
