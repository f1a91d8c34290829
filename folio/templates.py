"""Template composition for Folio.

This module uses Jinja2 to merge a rendered HTML fragment and page metadata
into a complete HTML document. A layout is addressed by name and receives a
mapping of named slots ("blocks"); ``content`` is the only required slot.

Layouts are searched in the user's layouts directory first and then in the
layouts bundled with Folio, so a site only needs to override what it changes.
Template inheritance (``{% extends %}`` / ``{% block %}``) is left entirely to
Jinja2.

Key class:
- TemplateEngine: Resolves, validates and renders layouts.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    nodes,
    select_autoescape,
)
from markupsafe import Markup

from .errors import ConfigError
from .html_utils import join_root_url

BUILTIN_LAYOUTS_DIR = Path(__file__).parent / "layouts"
REQUIRED_SLOT = "content"
LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html", "")


class TemplateEngine:
    """Template composition engine using Jinja2.

    Attributes:
        layouts_dir: Optional directory with user layouts.
        site: Site-wide values exposed to every template as ``site``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        layouts_dir: Path | None = None,
        site: Mapping[str, Any] | None = None,
    ):
        """Initialize the template engine.

        Args:
            layouts_dir: Directory with user layouts, searched before the
                bundled ones.
            site: Site-wide values such as ``title`` and ``url``.
        """
        self.layouts_dir = layouts_dir
        self.site = dict(site or {})
        search_path = [BUILTIN_LAYOUTS_DIR]
        if layouts_dir is not None:
            search_path.insert(0, layouts_dir)
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "html.jinja"]),
            undefined=ChainableUndefined,
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["site"] = self.site
        self.env.globals["url_for"] = self._url_for

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, prefixed with the site URL if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(str(self.site.get("url") or ""), path)

    def resolve_layout_name(self, layout: str, fallback: bool = True) -> str:
        """Resolve a layout name to a template file name.

        Searches ``<layout>.html.jinja``, ``<layout>.jinja``,
        ``<layout>.html`` and ``<layout>``, then the same for ``default``.

        Raises:
            ConfigError: If neither the layout nor ``default`` exists (or the
                layout is missing and ``fallback`` is False).
        """
        candidates = [f"{layout}{suffix}" for suffix in LAYOUT_SUFFIXES]
        if fallback and layout != "default":
            candidates.extend(f"default{suffix}" for suffix in LAYOUT_SUFFIXES)
        for name in candidates:
            try:
                self.env.loader.get_source(self.env, name)
            except TemplateNotFound:
                continue
            return name
        raise ConfigError(f"layout '{layout}' not found", self.layouts_dir)

    def _get_template(self, layout: str, fallback: bool = True) -> Template:
        name = self.resolve_layout_name(layout, fallback)
        try:
            return self.env.get_template(name)
        except TemplateSyntaxError as exc:
            raise ConfigError(
                f"template syntax error in '{name}' on line {exc.lineno}: {exc.message}"
            ) from exc

    def _parse(self, name: str) -> nodes.Template:
        try:
            source, _, _ = self.env.loader.get_source(self.env, name)
            return self.env.parse(source)
        except TemplateNotFound as exc:
            raise ConfigError(f"template '{exc.name}' not found") from exc
        except TemplateSyntaxError as exc:
            raise ConfigError(
                f"template syntax error in '{name}' on line {exc.lineno}: {exc.message}"
            ) from exc

    def renders_slot(self, layout: str, slot: str = REQUIRED_SLOT) -> bool:
        """Tell whether rendering a layout can output ``slot``.

        Blocks are resolved the way Jinja2 resolves them at render time: the
        most derived definition replaces those it extends, and ``super()``
        reaches the next one up. Includes with a constant name are followed.

        Raises:
            ConfigError: If the layout or one of its parents is missing, does
                not parse or extends itself.
        """
        return self._template_renders(self.resolve_layout_name(layout), slot, set())

    def _template_renders(self, name: str, slot: str, included: set[str]) -> bool:
        if name in included:
            return False
        included.add(name)
        blocks: dict[str, list[nodes.Block]] = {}
        chain: list[str] = []
        while True:
            if name in chain:
                raise ConfigError(f"template '{name}' extends itself")
            chain.append(name)
            ast = self._parse(name)
            for block in ast.find_all(nodes.Block):
                blocks.setdefault(block.name, []).append(block)
            parent = ast.find(nodes.Extends)
            if parent is None:
                break
            if not isinstance(parent.template, nodes.Const):
                # parent chosen at render time
                return True
            name = parent.template.value
        return any(self._node_renders(node, slot, blocks, included) for node in ast.body)

    def _node_renders(
        self,
        node: nodes.Node,
        slot: str,
        blocks: dict[str, list[nodes.Block]],
        included: set[str],
        current: tuple[str, int] | None = None,
    ) -> bool:
        if isinstance(node, nodes.Name):
            return node.name == slot and node.ctx == "load"
        if isinstance(node, nodes.Block):
            return self._block_renders(node.name, 0, slot, blocks, included)
        if (
            isinstance(node, nodes.Call)
            and isinstance(node.node, nodes.Name)
            and node.node.name == "super"
            and current is not None
        ):
            name, depth = current
            if self._block_renders(name, depth + 1, slot, blocks, included):
                return True
        if isinstance(node, nodes.Include) and isinstance(node.template, nodes.Const):
            if self._template_renders(node.template.value, slot, included):
                return True
        return any(
            self._node_renders(child, slot, blocks, included, current)
            for child in node.iter_child_nodes()
        )

    def _block_renders(
        self,
        name: str,
        depth: int,
        slot: str,
        blocks: dict[str, list[nodes.Block]],
        included: set[str],
    ) -> bool:
        chain = blocks.get(name, [])
        if depth >= len(chain):
            return False
        return any(
            self._node_renders(child, slot, blocks, included, (name, depth))
            for child in chain[depth].body
        )

    def validate(self, layouts: Iterable[str]) -> None:
        """Check that every layout exists, parses and outputs ``content``.

        Raises:
            ConfigError: On the first broken layout.
        """
        for layout in sorted(set(layouts)):
            if not self.renders_slot(layout):
                raise ConfigError(
                    f"layout '{layout}' has no '{REQUIRED_SLOT}' slot",
                    self.layouts_dir,
                )
            self._get_template(layout)

    def compose(self, layout: str, blocks: Mapping[str, Any]) -> str:
        """Merge slot values into a layout.

        Args:
            layout: Layout name.
            blocks: Slot values. ``content`` (HTML) is required; any other
                slot the layout uses but the mapping lacks renders empty.

        Returns:
            The complete HTML document.

        Raises:
            ConfigError: If ``content`` is missing or the layout is broken.
        """
        if REQUIRED_SLOT not in blocks:
            raise ConfigError(f"missing required slot '{REQUIRED_SLOT}' for layout '{layout}'")
        context = dict(blocks)
        context[REQUIRED_SLOT] = Markup(context[REQUIRED_SLOT] or "")
        return self._get_template(layout).render(**context)

    def render_fragment(self, name: str, context: Mapping[str, Any]) -> Markup:
        """Render a partial template (no layout) to safe HTML."""
        return Markup(self._get_template(name, fallback=False).render(**context))
