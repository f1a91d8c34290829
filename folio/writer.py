"""Output writing for Folio.

The writer persists composed pages, feeds and co-located assets under the
output root. Writes to distinct paths may run concurrently; writing the same
path twice in one build is refused.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import ConfigError
from .paths import url_to_path
from .utils import ensure_clean_dir

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .content import ContentUnit

logger = logging.getLogger(__name__)


class OutputWriter:
    """Writes build output beneath ``output_root``.

    Attributes:
        output_root: Directory receiving the site.
        written: Every file written so far in this build.
    """

    def __init__(self, output_root: Path):
        self.output_root = output_root
        self.written: set[Path] = set()
        self._lock = threading.Lock()

    def check_writable(self) -> None:
        """Make sure the output root can be created and written.

        Nothing is created; the nearest existing ancestor is inspected.

        Raises:
            ConfigError: If the output root is not a writable directory.
        """
        target = self.output_root.resolve()
        probe = target
        while not probe.exists():
            if probe.parent == probe:
                break
            probe = probe.parent
        if probe.exists() and not probe.is_dir():
            raise ConfigError("output root is not a directory", probe)
        if not os.access(probe, os.W_OK | os.X_OK):
            raise ConfigError("output root is not writable", probe)

    def prepare(self) -> None:
        """Empty (or create) the output root.

        Raises:
            ConfigError: If the directory cannot be created.
        """
        try:
            ensure_clean_dir(self.output_root)
        except OSError as exc:
            raise ConfigError(f"cannot prepare output root: {exc}", self.output_root) from exc
        self.written.clear()

    def targets(self, url: str, unit: ContentUnit | None = None) -> list[Path]:
        """Paths a page and its bundle assets will be written to."""
        page = url_to_path(self.output_root, url)
        paths = [page]
        if unit is not None and unit.bundle_dir is not None:
            paths.extend(
                page.parent / asset.relative_to(unit.bundle_dir) for asset in sorted(unit.assets)
            )
        return paths

    def check_targets(self, outputs: Iterable[tuple[str, ContentUnit | None]]) -> None:
        """Refuse a build in which two outputs map to the same file.

        Runs before the output root is emptied, so a refused build leaves the
        previous output in place.

        Args:
            outputs: (url, unit) pairs; ``unit`` is None for listings and feeds.

        Raises:
            ConfigError: Naming the first path claimed twice.
        """
        seen: dict[Path, str] = {}
        for url, unit in outputs:
            for target in self.targets(url, unit):
                if target in seen:
                    raise ConfigError(
                        f"'{seen[target]}' and '{url}' both write this path", target
                    )
                seen[target] = url

    def _claim(self, target: Path) -> None:
        with self._lock:
            if target in self.written:
                raise ConfigError("two outputs resolve to the same path", target)
            self.written.add(target)

    def write(self, url: str, text: str) -> Path:
        """Write text to the file a URL maps to.

        Args:
            url: Root-relative URL, e.g. ``/hello/`` or ``/rss.xml``.
            text: Content to write (UTF-8).

        Returns:
            The path written.
        """
        target = url_to_path(self.output_root, url)
        self._claim(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        logger.debug("Wrote %s", target)
        return target

    def copy_assets(self, unit: ContentUnit, url: str) -> list[Path]:
        """Copy a bundle's assets beside its page, keeping relative paths.

        Args:
            unit: Unit whose assets are copied.
            url: The unit's page URL.

        Returns:
            Paths of the copies, sorted.
        """
        if unit.bundle_dir is None:
            return []
        copied: list[Path] = []
        targets = self.targets(url, unit)[1:]
        for asset, target in zip(sorted(unit.assets), targets):
            self._claim(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(asset, target)
            copied.append(target)
        return copied
