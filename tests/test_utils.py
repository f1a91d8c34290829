from datetime import date, datetime

import pytest

from folio import utils


def test_slugify_strips_date_prefix():
    assert utils.slugify("2024-01-02-post-title") == "post-title"
    assert utils.slugify("Foo") == "foo"
    assert utils.slugify("Hello, World!") == "hello-world"
    assert utils.slugify("!!!") == "index"


def test_parse_date_accepts_yaml_and_iso_values():
    assert utils.parse_date(date(2020, 1, 1)) == date(2020, 1, 1)
    assert utils.parse_date(datetime(2020, 1, 1, 23, 30)) == date(2020, 1, 1)
    assert utils.parse_date("2020-06-01") == date(2020, 6, 1)
    assert utils.parse_date(" 2020-06-01T10:00:00+02:00 ") == date(2020, 6, 1)


@pytest.mark.parametrize(
    "value", ["not a date", "2020-13-01", "2020-01-01 not a date", 2020, True, None]
)
def test_parse_date_rejects_malformed(value):
    with pytest.raises(ValueError):
        utils.parse_date(value)


def test_parse_tags():
    assert utils.parse_tags(None) == []
    assert utils.parse_tags("python, web, python") == ["python", "web"]
    assert utils.parse_tags(["a", 1, " a "]) == ["a", "1"]
    assert utils.parse_tags(42) == ["42"]


def test_first_paragraph_skips_headings_and_markup():
    text = "# Title\n\n![img](a.png)\n\nFirst para with [a link](http://x).\n\nSecond."
    assert utils.first_paragraph(text) == "First para with a link."
    assert utils.first_paragraph("word " * 100, limit=10) == "word word "
    assert utils.first_paragraph("") == ""


def test_path_predicates(tmp_path):
    assert utils.is_markdown(tmp_path / "a.MD")
    assert not utils.is_markdown(tmp_path / "a.txt")
    assert utils.is_ignored(tmp_path / "_drafts")
    assert utils.is_ignored(tmp_path / ".git")
    assert not utils.is_ignored(tmp_path / "post.md")


def test_ensure_clean_dir_empties_but_keeps_directory(tmp_path):
    out = tmp_path / "out"
    (out / "posts" / "old").mkdir(parents=True)
    (out / "posts" / "old" / "index.html").write_text("old", encoding="utf-8")
    (out / "rss.xml").write_text("old", encoding="utf-8")
    (out / "link").symlink_to(tmp_path / "elsewhere")
    inode = out.stat().st_ino

    utils.ensure_clean_dir(out)
    assert list(out.iterdir()) == []
    assert out.stat().st_ino == inode

    fresh = tmp_path / "a" / "b"
    utils.ensure_clean_dir(fresh)
    assert fresh.is_dir()
