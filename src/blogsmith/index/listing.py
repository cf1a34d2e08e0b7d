"""Reverse-chronological post listing generation."""

from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path
from typing import Iterable, Sequence

import yaml

from blogsmith.errors import ConfigurationError
from blogsmith.ingestion.frontmatter import read_front_matter
from blogsmith.models import FrontMatter, IndexEntry
from blogsmith.utils.files import atomic_write_text, iter_content_paths

LOGGER = logging.getLogger(__name__)

MARKDOWN_SPECIAL = "\\[]*"


def collect_entries(
    content_root: Path,
    section: str,
    *,
    extension: str = ".md",
    output_ext: str = ".html",
    link_base: Path | None = None,
) -> list[IndexEntry]:
    """Read the front-matter of every post directly inside ``content_root/section``.

    Links point at each post's output file and are relative to ``link_base``, the
    directory of the listing page (``content_root`` by default). The output tree
    mirrors the content tree, so the same relative link works in both.
    """
    section_dir = content_root / section
    if not section_dir.is_dir():
        raise ConfigurationError(f"Section directory not found: {section_dir}")
    base = link_base if link_base is not None else content_root

    entries: list[IndexEntry] = []
    for relative in iter_content_paths(section_dir, max_depth=1, extension=extension):
        front_matter = read_front_matter(section_dir / relative)
        if front_matter is None:
            LOGGER.debug("%s has no front-matter, using defaults", relative)
            front_matter = FrontMatter()
        target = section_dir / relative.with_suffix(output_ext)
        entries.append(
            IndexEntry(
                title=front_matter.title or relative.stem,
                subtitle=front_matter.subtitle,
                date=front_matter.date,
                word_count=front_matter.word_count,
                link=Path(os.path.relpath(target, base)).as_posix(),
            )
        )
    return entries


def sort_entries(entries: Iterable[IndexEntry]) -> list[IndexEntry]:
    """Newest first; equal dates keep their original order and undated posts go last."""
    # sorted() stays stable with reverse=True.
    return sorted(
        entries,
        key=lambda entry: (entry.date is not None, entry.date or datetime.date.min),
        reverse=True,
    )


def _escape(text: str) -> str:
    return "".join(f"\\{char}" if char in MARKDOWN_SPECIAL else char for char in text)


def _render_entry(entry: IndexEntry) -> str:
    lines = [f"## [{_escape(entry.title)}]({entry.link})", ""]
    if entry.subtitle:
        lines += [f"*{_escape(entry.subtitle)}*", ""]
    details = [entry.date.isoformat()] if entry.date else []
    if entry.word_count:
        details.append(entry.word_count)
    if details:
        lines += [" · ".join(details), ""]
    return "\n".join(lines)


def render_listing(entries: Sequence[IndexEntry], *, title: str = "Posts") -> str:
    """Render a content file listing ``entries`` in the given order."""
    meta = yaml.safe_dump(
        {"title": title, "generate_toc": False}, sort_keys=False, allow_unicode=True
    )
    header = f"---\n{meta}---\n"
    body = "\n".join(_render_entry(entry) for entry in entries)
    return f"{header}\n{body}" if body else header


def write_listing(
    content_root: Path,
    section: str,
    *,
    destination: Path | None = None,
    title: str = "Posts",
    extension: str = ".md",
    output_ext: str = ".html",
) -> list[IndexEntry]:
    """Regenerate the listing page for ``section`` and return its entries in listed order."""
    target = destination if destination is not None else content_root / f"{section}{extension}"
    entries = sort_entries(
        collect_entries(
            content_root,
            section,
            extension=extension,
            output_ext=output_ext,
            link_base=target.parent,
        )
    )
    target.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(target, render_listing(entries, title=title))
    LOGGER.info("Wrote %d entries to %s", len(entries), target)
    return entries
