"""Utility helpers for working with the content and output trees."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

from blogsmith.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


def _walk_content(root: Path, extension: str, max_depth: int, depth: int = 1) -> Iterator[Path]:
    # Symlinks are skipped rather than followed, so the walk cannot leave the root or loop.
    for child in sorted(root.iterdir()):
        if child.name.startswith(".") or child.is_symlink():
            continue
        if child.is_dir():
            if depth < max_depth:
                yield from _walk_content(child, extension, max_depth, depth + 1)
        elif child.is_file() and child.suffix.lower() == extension:
            yield child


def iter_content_paths(root: Path, *, max_depth: int, extension: str = ".md") -> list[Path]:
    """Return paths relative to ``root`` of every content file up to ``max_depth`` levels deep.

    A file directly inside ``root`` sits at depth 1. Hidden entries and symlinks
    are skipped. The result is sorted, so repeated calls yield the same order.
    """
    if not root.exists():
        raise ConfigurationError(f"Content root not found: {root}")
    if not root.is_dir():
        raise ConfigurationError(f"Content root is not a directory: {root}")

    extension = extension.lower()
    return sorted(path.relative_to(root) for path in _walk_content(root, extension, max_depth))


def output_path_for(relative: Path, output_root: Path, output_ext: str = ".html") -> Path:
    """Mirror a content-relative path under ``output_root`` with the output extension."""
    return output_root / relative.with_suffix(output_ext)


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a sibling temporary file and a rename."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _protected_paths() -> list[Path]:
    return [path.resolve() for path in (Path.cwd(), Path.home(), Path(Path.cwd().anchor))]


def remove_output_tree(output_root: Path, *, protected: Iterable[Path] = ()) -> bool:
    """Delete the build output tree.

    Returns ``False`` when there is nothing to delete. Refuses to touch a symlink,
    a plain file, or any directory that is or contains the working directory, the
    home directory or the filesystem root. Paths in ``protected`` (the content
    root) are guarded in both directions: the target may neither contain them nor
    lie inside them.
    """
    if output_root.is_symlink():
        raise ConfigurationError(f"Refusing to remove symlinked output directory: {output_root}")
    if not output_root.exists():
        LOGGER.debug("Output directory %s does not exist, nothing to clean", output_root)
        return False
    if not output_root.is_dir():
        raise ConfigurationError(f"Output path is not a directory: {output_root}")

    target = output_root.resolve()
    sources = [path.resolve() for path in protected]
    for guarded in _protected_paths() + sources:
        if guarded.is_relative_to(target):
            raise ConfigurationError(
                f"Refusing to remove {output_root}: it contains protected path {guarded}"
            )
    for source in sources:
        if target.is_relative_to(source):
            raise ConfigurationError(
                f"Refusing to remove {output_root}: it is inside protected path {source}"
            )

    shutil.rmtree(target)
    LOGGER.info("Removed %s", target)
    return True
