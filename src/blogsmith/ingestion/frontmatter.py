"""Front-matter extraction for markdown content files.

A front-matter block starts on the very first line with ``---`` and ends at the
next ``---`` or ``...`` line. The block is a YAML mapping, the same one pandoc
reads. Only the keys in :data:`blogsmith.models.RECOGNIZED_KEYS` are kept;
pandoc still receives the whole block when it converts the file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from blogsmith.errors import FrontMatterError
from blogsmith.models import RECOGNIZED_KEYS, FrontMatter

LOGGER = logging.getLogger(__name__)

OPENING_MARKER = "---"
CLOSING_MARKERS = ("---", "...")


def split_front_matter(text: str, path: Path | None = None) -> tuple[list[str] | None, str]:
    """Split raw text into the front-matter lines (or ``None``) and the body."""
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != OPENING_MARKER:
        return None, text

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in CLOSING_MARKERS:
            block = [raw.rstrip("\r\n") for raw in lines[1:index]]
            return block, "".join(lines[index + 1 :])

    raise FrontMatterError("front-matter block is not closed", path)


def parse_block(lines: list[str], path: Path | None = None) -> dict[str, Any]:
    """Load the block as YAML and return its recognized keys."""
    try:
        data = yaml.safe_load("\n".join(lines))
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid YAML: {exc}", path) from exc
    except ValueError as exc:
        # Timestamps such as 2023-13-45 match the YAML date pattern but fail to construct.
        raise FrontMatterError(f"invalid value: {exc}", path) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"expected a mapping of keys to values, got {type(data).__name__}", path
        )

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in RECOGNIZED_KEYS:
            LOGGER.debug("Ignoring front-matter key %r in %s", key, path)
            continue
        if value is None or value == "":
            continue
        values[key] = value
    return values


def parse_front_matter(text: str, path: Path | None = None) -> tuple[FrontMatter | None, str]:
    """Parse the front-matter of ``text``.

    Returns ``(None, text)`` when there is no block at all. Raises
    :class:`FrontMatterError` when a block is present but malformed.
    """
    block, body = split_front_matter(text, path)
    if block is None:
        return None, body

    values = parse_block(block, path)
    try:
        return FrontMatter.model_validate(values), body
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise FrontMatterError(problems, path) from exc


def read_front_matter(path: Path) -> FrontMatter | None:
    """Read ``path`` and return its front-matter, or ``None`` when it has none."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FrontMatterError(f"not valid UTF-8 text: {exc.reason}", path) from exc
    front_matter, _ = parse_front_matter(text, path)
    return front_matter
