"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build a content directory into an output directory.
- post: Create a new post (single file or bundle), optionally interactively.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import CONFIG_FILENAME, config_from_mapping, load_config
from .content import FileContentLoader
from .errors import ConfigError
from .extractors import MetadataError, SlugExtractor, extract_frontmatter
from .utils import parse_date, parse_tags, slugify


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio static site generator."""


@cli.command()
@click.argument("content_root", type=click.Path(path_type=Path))
@click.argument("output_root", type=click.Path(path_type=Path))
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help=f"Configuration file (defaults to ./{CONFIG_FILENAME} when present)",
)
@click.option("--layouts", type=click.Path(path_type=Path), help="Directory with layouts")
@click.option("--page-size", type=int, help="Posts per listing page")
@click.option("--feed-length", type=int, help="Posts in the RSS feed")
@click.option("--workers", type=int, help="Size of the worker pool")
@click.option("--permalink", help="Post URL pattern, e.g. /{year}/{month}/{slug}/")
@click.option("--url", help="Absolute site URL")
@click.option("--title", help="Site title")
@click.option("--drafts", is_flag=True, help="Include draft posts")
@click.option("-v", "--verbose", is_flag=True, help="Log every build step")
def build(
    content_root: Path,
    output_root: Path,
    config_file: Path | None,
    layouts: Path | None,
    page_size: int | None,
    feed_length: int | None,
    workers: int | None,
    permalink: str | None,
    url: str | None,
    title: str | None,
    drafts: bool,
    verbose: bool,
):
    """Build CONTENT_ROOT into OUTPUT_ROOT."""
    _configure_logging(verbose)
    from .build import build_site

    try:
        values = load_config(config_file or Path.cwd() / CONFIG_FILENAME)
        overrides = {
            "layouts_dir": layouts,
            "page_size": page_size,
            "feed_length": feed_length,
            "workers": workers,
            "permalink": permalink,
            "url": url,
            "title": title,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        config = config_from_mapping(values, content_root, output_root, drafts)
        result = build_site(config)
    except ConfigError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        if exc.source_path is not None:
            click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None

    click.echo(
        f"Built {result.units_written} posts and {len(result.index_pages)} index pages "
        f"into {result.output_dir}"
    )
    if result.failures:
        click.echo(
            click.style(f"Skipped {len(result.failures)} posts:", fg="yellow", bold=True),
            err=True,
        )
        for failure in result.failures:
            click.echo(f"  {failure.source_path} [{failure.stage}]: {failure.reason}", err=True)


@cli.command()
@click.argument("title", required=False)
@click.option(
    "--content",
    "content_root",
    type=click.Path(path_type=Path, file_okay=False),
    default="content",
    show_default=True,
    help="Content directory",
)
@click.option("--bundle", is_flag=True, help="Create <slug>/index.md for co-located assets")
@click.option("--date", "date_text", help="Post date (YYYY-MM-DD), defaults to today")
@click.option("--tags", help="Comma-separated tags")
@click.option("-i", "--interactive", is_flag=True, help="Ask for missing values")
def post(
    title: str | None,
    content_root: Path,
    bundle: bool,
    date_text: str | None,
    tags: str | None,
    interactive: bool,
):
    """Create a new post with front matter."""
    if interactive:
        title, bundle, tags = _ask(title, bundle, tags)
    if not title or not title.strip():
        raise click.UsageError("A title is required (pass TITLE or use --interactive).")
    title = title.strip()

    try:
        post_date = parse_date(date_text) if date_text else date.today()
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--date") from None

    slug = slugify(title)
    content_root.mkdir(parents=True, exist_ok=True)
    existing = _existing_slugs(content_root)
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug]}"
        )

    target = content_root / slug / "index.md" if bundle else content_root / f"{slug}.md"
    if target.exists() or (content_root / slug).exists():
        raise click.ClickException(f"File already exists: {target}")

    frontmatter = {"title": title, "date": post_date}
    tag_list = parse_tags(tags)
    if tag_list:
        frontmatter["tags"] = tag_list
    text = "---\n" + yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    text += "---\n\n"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    click.echo(f"Created {target}")


def _ask(
    title: str | None, bundle: bool, tags: str | None
) -> tuple[str, bool, str | None]:
    """Prompt for the values not given on the command line."""
    if not title:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    if not bundle:
        bundle = questionary.confirm(
            "Create a bundle directory for images and other assets?",
            default=False,
            style=_questionary_style(),
        ).ask()
        if bundle is None:
            raise click.Abort()
    if tags is None:
        tags = questionary.text(
            "Tags (comma-separated, optional):", style=_questionary_style()
        ).ask()
        if tags is None:
            raise click.Abort()
    return title, bundle, tags


def _existing_slugs(content_root: Path) -> dict[str, Path]:
    """Map the slug of every existing source to its path."""
    slugs: dict[str, Path] = {}
    extractor = SlugExtractor()
    for path in FileContentLoader(content_root).iter_sources():
        try:
            frontmatter, _ = extract_frontmatter(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, MetadataError):
            frontmatter = {}
        slug = extractor.extract(frontmatter, "", path.relative_to(content_root))["slug"]
        slugs.setdefault(slug, path)
    return slugs


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main():
    """Entry point for the CLI application."""
    cli()
