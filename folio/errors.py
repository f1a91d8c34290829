"""Error types for Folio builds.

Errors fall into two families:

- UnitError and its subclasses describe a problem with a single content unit.
  The build orchestrator collects them and keeps going with the other units.
- ConfigError describes a mis-specified run (bad configuration, broken layout,
  duplicate slugs, unwritable output). It aborts the build before anything is
  written.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class ConfigError(FolioError):
    """Global, fatal build error.

    Attributes:
        message: Human-readable error message.
        source_path: Optional path the error relates to (layout, config file).
    """

    def __init__(self, message: str, source_path: Path | None = None):
        self.message = message
        self.source_path = source_path
        if source_path is not None:
            super().__init__(f"{source_path}: {message}")
        else:
            super().__init__(message)


class UnitError(FolioError):
    """Per-unit, recoverable error with file context.

    Attributes:
        source_path: Path to the content source that caused the error.
        reason: Human-readable reason.
    """

    stage = "unit"

    def __init__(self, source_path: Path, reason: str):
        self.source_path = source_path
        self.reason = reason
        super().__init__(f"{source_path}: {reason}")


class LoadError(UnitError):
    """A content source could not be loaded or validated."""

    stage = "load"


class DuplicateSlugError(LoadError):
    """Two or more content sources resolved to the same slug.

    Attributes:
        slug: The colliding slug.
        source_paths: Every source path that produced the slug.
    """

    def __init__(self, slug: str, source_paths: list[Path]):
        self.slug = slug
        self.source_paths = sorted(source_paths)
        joined = ", ".join(str(p) for p in self.source_paths)
        super().__init__(self.source_paths[0], f"duplicate slug '{slug}' ({joined})")


class RenderError(UnitError):
    """The renderer rejected a unit's body.

    Attributes:
        cause: The original exception raised by the renderer.
    """

    stage = "render"

    def __init__(self, source_path: Path, cause: Exception):
        self.cause = cause
        super().__init__(source_path, f"{type(cause).__name__}: {cause}")


class ComposeError(UnitError):
    """A layout failed while composing a single unit."""

    stage = "compose"
