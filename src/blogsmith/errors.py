"""Exception hierarchy shared by the blogsmith modules."""

from __future__ import annotations

from pathlib import Path


class BlogsmithError(Exception):
    """Base class for every error raised by blogsmith."""


class ConfigurationError(BlogsmithError):
    """Raised when the site layout or settings make work impossible."""


class FrontMatterError(BlogsmithError):
    """Raised for a front-matter block that is present but malformed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path is not None else message)


class ConversionError(BlogsmithError):
    """Raised when the document converter fails for a single file."""

    def __init__(self, source: Path, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Failed to convert {source}: {detail}")
