"""Parallel site build pipeline."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from blogsmith.build.converter import Converter
from blogsmith.config import SiteConfig
from blogsmith.ingestion.frontmatter import read_front_matter
from blogsmith.models import BuildFailure
from blogsmith.utils.files import iter_content_paths, output_path_for, remove_output_tree

LOGGER = logging.getLogger(__name__)


class BuildCancelled(Exception):
    """Raised inside a task that was dequeued after cancellation was requested."""


@dataclass(slots=True)
class BuildStats:
    found: int = 0
    built: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[BuildFailure] = field(default_factory=list)
    built_files: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    def record_success(self, output: Path) -> None:
        self.built += 1
        self.built_files.append(output)

    def record_failure(self, path: Path, error: BaseException) -> None:
        self.failed += 1
        self.failures.append(BuildFailure(path=path, error=str(error)))


class BuildPipeline:
    """Converts every content file into its mirrored output file."""

    def __init__(
        self,
        converter: Converter,
        config: SiteConfig,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.converter = converter
        self.config = config
        self.cancel_event = cancel_event or threading.Event()

    def discover(self) -> list[Path]:
        """List content files relative to the content root."""
        return iter_content_paths(
            Path(self.config.content_dir),
            max_depth=self.config.max_depth,
            extension=self.config.content_ext,
        )

    def clean(self) -> bool:
        return remove_output_tree(
            Path(self.config.output_dir), protected=[Path(self.config.content_dir)]
        )

    def build(self, *, clean_first: bool = True) -> BuildStats:
        """Build the whole site and wait for every conversion before returning."""
        sources = self.discover()
        if clean_first:
            self.clean()
        return self.build_paths(sources)

    def build_paths(self, sources: Sequence[Path]) -> BuildStats:
        stats = BuildStats(found=len(sources))
        if not sources:
            LOGGER.warning("No content files found in %s", self.config.content_dir)
            return stats

        workers = self.config.workers or os.cpu_count() or 1
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="blogsmith")
        try:
            futures: dict[Future[Path], Path] = {
                executor.submit(self._build_single, relative): relative for relative in sources
            }
            for future in as_completed(futures):
                relative = futures[future]
                try:
                    output = future.result()
                except BuildCancelled:
                    stats.skipped += 1
                except Exception as exc:
                    LOGGER.error("Failed to build %s: %s", relative, exc)
                    stats.record_failure(relative, exc)
                else:
                    LOGGER.info("Built %s", output)
                    stats.record_success(output)
        except BaseException:
            self.cancel_event.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        stats.built_files.sort()
        stats.failures.sort(key=lambda failure: failure.path)
        return stats

    def _build_single(self, relative: Path) -> Path:
        """Convert one content file; the destination is private to this task."""
        if self.cancel_event.is_set():
            raise BuildCancelled(str(relative))

        source = Path(self.config.content_dir) / relative
        destination = output_path_for(relative, Path(self.config.output_dir), self.config.output_ext)
        destination.parent.mkdir(parents=True, exist_ok=True)

        front_matter = read_front_matter(source)
        toc = front_matter.generate_toc if front_matter is not None else False
        self.converter.convert(source, destination, toc=toc)
        return destination
