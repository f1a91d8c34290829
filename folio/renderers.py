"""Markdown rendering for Folio.

Rendering turns a unit's raw Markdown body into a sanitized HTML fragment.
It is a pure function of the body: every call builds its own mistune parser
and renderer, so there is no state shared between units or threads.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- render_unit: Renders a ContentUnit, wrapping failures in RenderError.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import RenderError
from .html_utils import escape_html

if TYPE_CHECKING:
    from .content import ContentUnit

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text (may contain inline HTML).

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and Pygments code highlighting.

    Raw HTML in the source is escaped rather than passed through.
    """

    def __init__(self):
        super().__init__(escape=True)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known."""
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = escape_html(code)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to sanitized HTML."""

    @property
    def source_type(self) -> str:
        return "markdown"

    def render(self, raw_body: str) -> str:
        """Render Markdown to an HTML fragment.

        Args:
            raw_body: Markdown source without front matter.

        Returns:
            Rendered HTML.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=MARKDOWN_PLUGINS
        )
        return markdown(raw_body)


def render_unit(unit: ContentUnit, renderer: MarkdownRenderer | None = None) -> str:
    """Render a unit's body and store the result on the unit.

    Args:
        unit: Unit to render.
        renderer: Renderer to use; a MarkdownRenderer by default.

    Returns:
        The rendered HTML fragment.

    Raises:
        RenderError: If the renderer raises for any reason.
    """
    renderer = renderer or MarkdownRenderer()
    try:
        html = renderer.render(unit.raw_body)
    except Exception as exc:
        raise RenderError(unit.source_path, exc) from exc
    if not isinstance(html, str):
        raise RenderError(
            unit.source_path, TypeError(f"renderer returned {type(html).__name__}")
        )
    unit.rendered_body = html
    return html
