"""Site building for Folio.

This module drives one build run end to end:

    LOADING -> RENDERING -> COMPOSING -> INDEXING -> WRITING -> DONE

Per-unit work (render, compose, write) fans out over a thread pool and every
task returns either its result or a UnitError. Failed units are dropped from
all later stages, including the site index, and reported in the BuildResult.
Only a ConfigError stops a run; it is raised before the output directory is
touched.

Key items:
- BuildOrchestrator: Runs the pipeline for a BuildConfig.
- BuildResult: Outcome of a run that reached DONE.
- build_site: Convenience wrapper around BuildOrchestrator.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, TypeVar

from .collections import IndexPage, SiteIndex, build_index
from .config import BuildConfig
from .content import ContentLoader, ContentUnit
from .errors import ComposeError, ConfigError, DuplicateSlugError, UnitError
from .feeds import FeedRegistry, create_default_feed_registry
from .paths import listing_url, permalink_for, tag_url
from .renderers import MarkdownRenderer, render_unit
from .templates import TemplateEngine
from .writer import OutputWriter

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

POST_LAYOUT = "post"
LISTING_LAYOUT = "listing"
POST_LIST_FRAGMENT = "_post_list"


class BuildState(enum.Enum):
    LOADING = "loading"
    RENDERING = "rendering"
    COMPOSING = "composing"
    INDEXING = "indexing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildResult:
    """Result of a build that reached DONE.

    Attributes:
        units_written: Number of content units written.
        failures: Per-unit errors, sorted by source path.
        index_pages: URLs of generated listing, tag and feed pages.
        output_dir: Directory where the site was built.
        state: Final state (always DONE).
    """

    units_written: int
    failures: list[UnitError]
    index_pages: list[str]
    output_dir: Path
    state: BuildState = BuildState.DONE
    unit_urls: dict[str, str] = field(default_factory=dict)


@dataclass
class _Page:
    url: str
    html: str
    unit: ContentUnit | None = None


class BuildOrchestrator:
    """Runs one build for a configuration.

    Attributes:
        config: Settings of the run.
        engine: Template engine used to compose pages.
        renderer: Markdown renderer.
        feeds: Feed generators run after indexing.
        writer: Output writer.
        state: Current BuildState.
    """

    def __init__(
        self,
        config: BuildConfig,
        engine: TemplateEngine | None = None,
        renderer: MarkdownRenderer | None = None,
        feeds: FeedRegistry | None = None,
        writer: OutputWriter | None = None,
    ):
        self.config = config
        self.engine = engine or TemplateEngine(config.layouts_dir, config.site)
        self.renderer = renderer or MarkdownRenderer()
        self.feeds = feeds or create_default_feed_registry(config.feed_length)
        self.writer = writer or OutputWriter(config.output_root)
        self.state = BuildState.LOADING
        self._permalink = partial(permalink_for, pattern=config.permalink)

    def run(self) -> BuildResult:
        """Run the build.

        Returns:
            BuildResult for a run that reached DONE.

        Raises:
            ConfigError: On any global error; the state is then FAILED.
        """
        try:
            return self._run()
        except ConfigError:
            self.state = BuildState.FAILED
            raise

    def _run(self) -> BuildResult:
        config = self.config
        config.validate()
        self.writer.check_writable()
        self.engine.validate([POST_LAYOUT, LISTING_LAYOUT])
        failures: list[UnitError] = []

        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            self._enter(BuildState.LOADING)
            loader = ContentLoader(config.content_root, workers=config.workers)
            units, load_errors = loader.load_all(config.include_drafts)
            duplicates = [e for e in load_errors if isinstance(e, DuplicateSlugError)]
            if duplicates:
                raise ConfigError(duplicates[0].reason, duplicates[0].source_path)
            failures.extend(load_errors)
            self.engine.validate({unit.layout for unit in units})

            self._enter(BuildState.RENDERING)
            units = self._collect(executor, self._render_one, units, failures)

            self._enter(BuildState.COMPOSING)
            units, post_pages = self._compose_posts(executor, units, failures)

            self._enter(BuildState.INDEXING)
            index = build_index(units)
            generated = self._compose_listings(index)
            generated.extend(
                _Page(url, text)
                for url, text in self.feeds.generate_all(
                    index, config.site, self._permalink
                ).items()
            )

            self.writer.check_targets((page.url, page.unit) for page in post_pages + generated)

            self._enter(BuildState.WRITING)
            self.writer.prepare()
            try:
                list(executor.map(self._write_page, post_pages + generated))
            except OSError as exc:
                raise ConfigError(f"failed to write output: {exc}", config.output_root) from exc

        for failure in failures:
            logger.info("Skipped %s (%s): %s", failure.source_path, failure.stage, failure.reason)
        self._enter(BuildState.DONE)
        failures.sort(key=lambda e: str(e.source_path))
        return BuildResult(
            units_written=len(post_pages),
            failures=failures,
            index_pages=[page.url for page in generated],
            output_dir=config.output_root,
            unit_urls={page.unit.slug: page.url for page in post_pages if page.unit},
        )

    def _enter(self, state: BuildState) -> None:
        logger.debug("Build state %s -> %s", self.state.value, state.value)
        self.state = state

    @staticmethod
    def _collect(
        executor: ThreadPoolExecutor,
        task: Callable[[T], R | UnitError],
        items: Iterable[T],
        failures: list[UnitError],
    ) -> list[R]:
        """Run a per-unit task on the pool, keeping successes in input order."""
        succeeded: list[R] = []
        for outcome in executor.map(task, items):
            if isinstance(outcome, UnitError):
                failures.append(outcome)
            else:
                succeeded.append(outcome)
        return succeeded

    def _render_one(self, unit: ContentUnit) -> ContentUnit | UnitError:
        try:
            render_unit(unit, self.renderer)
        except UnitError as exc:
            return exc
        return unit

    def _compose_posts(
        self,
        executor: ThreadPoolExecutor,
        units: list[ContentUnit],
        failures: list[UnitError],
    ) -> tuple[list[ContentUnit], list[_Page]]:
        """Compose every post page.

        Navigation links depend on the set of surviving units, so when a unit
        fails to compose the remaining ones are composed again against the
        smaller index. The set only shrinks, so this terminates.
        """
        while True:
            index = build_index(units)
            compose = partial(self._compose_one, index=index)
            outcomes = list(executor.map(compose, units))
            errors = [o for o in outcomes if isinstance(o, UnitError)]
            if not errors:
                return units, outcomes
            failures.extend(errors)
            failed = {e.source_path for e in errors}
            units = [u for u in units if u.source_path not in failed]

    def _compose_one(self, unit: ContentUnit, index: SiteIndex) -> _Page | UnitError:
        url = self._permalink(unit)
        try:
            html = self.engine.compose(unit.layout, self.post_blocks(unit, index))
        except ConfigError:
            raise
        except Exception as exc:
            return ComposeError(unit.source_path, f"{type(exc).__name__}: {exc}")
        return _Page(url, html, unit)

    def _link(self, unit: ContentUnit | None) -> dict[str, str] | None:
        if unit is None:
            return None
        return {"title": unit.title, "url": self._permalink(unit)}

    def post_blocks(self, unit: ContentUnit, index: SiteIndex) -> dict[str, Any]:
        """Slot values for a post page."""
        newer, older = index.neighbors(unit.slug)
        return {
            "title": unit.title,
            "content": unit.rendered_body,
            "date": unit.date.isoformat(),
            "description": unit.description,
            "slug": unit.slug,
            "url": self._permalink(unit),
            "tags": [{"name": tag, "url": tag_url(tag)} for tag in unit.tags],
            "metadata": unit.metadata,
            "newer": self._link(newer),
            "older": self._link(older),
            **self._site_blocks(),
        }

    def _site_blocks(self) -> dict[str, str]:
        site = self.config.site
        return {"site_title": site["title"], "site_url": site["url"]}

    def _summary(self, unit: ContentUnit) -> dict[str, str]:
        return {
            "title": unit.title,
            "url": self._permalink(unit),
            "date": unit.date.isoformat(),
            "description": unit.description,
        }

    def listing_blocks(
        self, page: IndexPage, base: str = "/", heading: str = ""
    ) -> dict[str, Any]:
        """Slot values for one page of a listing rooted at ``base``."""
        content = self.engine.render_fragment(
            POST_LIST_FRAGMENT, {"units": [self._summary(u) for u in page.units]}
        )
        title = heading
        if page.number > 1:
            title = f"{heading} (page {page.number})" if heading else f"Page {page.number}"
        return {
            "title": title,
            "heading": heading,
            "content": content,
            "url": listing_url(page.number, base),
            "pagination": {
                "number": page.number,
                "total": page.total,
                "previous_url": listing_url(page.number - 1, base) if page.has_previous else None,
                "next_url": listing_url(page.number + 1, base) if page.has_next else None,
            },
            **self._site_blocks(),
        }

    def _compose_listings(self, index: SiteIndex) -> list[_Page]:
        pages: list[_Page] = []
        listings: list[tuple[str, str, SiteIndex]] = [("/", "", index)]
        names = index.tag_names()
        for tag_slug, tagged in index.tags().items():
            listings.append((tag_url(tag_slug), f"Tagged {names[tag_slug]}", tagged))
        for base, heading, sub_index in listings:
            for page in sub_index.paginate(self.config.page_size):
                blocks = self.listing_blocks(page, base, heading)
                try:
                    html = self.engine.compose(LISTING_LAYOUT, blocks)
                except ConfigError:
                    raise
                except Exception as exc:
                    raise ConfigError(
                        f"failed to compose listing {blocks['url']}: {type(exc).__name__}: {exc}"
                    ) from exc
                pages.append(_Page(blocks["url"], html))
        return pages

    def _write_page(self, page: _Page) -> None:
        self.writer.write(page.url, page.html)
        if page.unit is not None:
            self.writer.copy_assets(page.unit, page.url)


def build_site(
    config: BuildConfig,
    engine: TemplateEngine | None = None,
    renderer: MarkdownRenderer | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        config: Settings of the run.
        engine: Optional template engine (defaults to one for config).
        renderer: Optional Markdown renderer.

    Returns:
        BuildResult describing the written site and skipped units.

    Raises:
        ConfigError: If the run is mis-specified; nothing is written then.
    """
    return BuildOrchestrator(config, engine=engine, renderer=renderer).run()

