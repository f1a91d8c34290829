from datetime import date

import pytest

from folio.content import ContentUnit
from folio.errors import RenderError
from folio.renderers import MarkdownRenderer, _generate_heading_id, render_unit


def make_unit(tmp_path, body):
    return ContentUnit(
        slug="post",
        title="Post",
        date=date(2020, 1, 1),
        raw_body=body,
        source_path=tmp_path / "post.md",
    )


def test_markdown_renderer_basic_output():
    renderer = MarkdownRenderer()
    html = renderer.render("# Title\n\nHello *world* and ~~gone~~.\n")
    assert renderer.source_type == "markdown"
    assert '<h1 id="title">Title</h1>' in html
    assert "<em>world</em>" in html
    assert "<del>gone</del>" in html


def test_raw_html_is_escaped():
    html = MarkdownRenderer().render("<script>alert(1)</script>\n\nInline <b>bold</b>\n")
    assert "<script>" not in html
    assert "<b>" not in html
    assert "&lt;script&gt;" in html


def test_duplicate_heading_ids_are_unique():
    html = MarkdownRenderer().render("# Intro\n\n## Intro\n\n### Intro\n")
    assert 'id="intro"' in html
    assert 'id="intro-1"' in html
    assert 'id="intro-2"' in html


def test_code_blocks_are_highlighted_when_language_known():
    renderer = MarkdownRenderer()
    html = renderer.render("```python\nprint('hi')\n```\n")
    assert 'class="highlight"' in html

    html = renderer.render("```nosuchlang\n<tag>\n```\n")
    assert '<pre><code class="language-nosuchlang">&lt;tag&gt;' in html

    html = renderer.render("    plain code\n")
    assert "<pre><code>plain code" in html


def test_rendering_is_deterministic():
    body = "# A\n\n# A\n\nText with a [link](https://example.com).\n"
    renderer = MarkdownRenderer()
    assert renderer.render(body) == renderer.render(body)


def test_heading_id_generation():
    assert _generate_heading_id("Hello <em>World</em>!") == "hello-world"
    assert _generate_heading_id("!!!") == "section"


def test_render_unit_stores_rendered_body(tmp_path):
    unit = make_unit(tmp_path, "Some *text*.")
    html = render_unit(unit)
    assert unit.rendered_body == html
    assert "<em>text</em>" in html


def test_render_unit_wraps_renderer_failures(tmp_path):
    class ExplodingRenderer:
        source_type = "markdown"

        def render(self, raw_body):
            raise RuntimeError("boom")

    unit = make_unit(tmp_path, "text")
    with pytest.raises(RenderError) as excinfo:
        render_unit(unit, ExplodingRenderer())
    assert excinfo.value.source_path == tmp_path / "post.md"
    assert excinfo.value.reason == "RuntimeError: boom"
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert excinfo.value.stage == "render"
    assert unit.rendered_body is None


def test_render_unit_rejects_non_string_output(tmp_path):
    class BadRenderer:
        def render(self, raw_body):
            return None

    unit = make_unit(tmp_path, "text")
    with pytest.raises(RenderError) as excinfo:
        render_unit(unit, BadRenderer())
    assert "renderer returned NoneType" in excinfo.value.reason
