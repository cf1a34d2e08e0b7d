"""Core blogsmith data models."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict

RECOGNIZED_KEYS = ("title", "subtitle", "date", "word_count", "generate_toc")


class FrontMatter(BaseModel):
    """Recognized front-matter keys of a content file; absent keys stay ``None``."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    title: str | None = None
    subtitle: str | None = None
    date: datetime.date | None = None
    word_count: str | None = None
    generate_toc: bool = False


@dataclass(slots=True)
class IndexEntry:
    """Listing record derived from one post's front-matter."""

    title: str
    subtitle: str | None
    date: datetime.date | None
    word_count: str | None
    link: str


@dataclass(slots=True)
class BuildFailure:
    """A content file that failed to build and the reason."""

    path: Path
    error: str
