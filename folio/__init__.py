"""Folio static site generator.

This package turns a directory of Markdown posts with YAML front matter into a
static HTML site using Jinja2 layouts. It covers loading and validating content
units, rendering Markdown, composing pages with layouts, building date-ordered
listings, feeds and tag pages, and writing the resulting tree to disk.

The main entry point is the CLI module, which provides commands for building
a site and scaffolding new posts.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
