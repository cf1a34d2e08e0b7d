"""Site configuration defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from blogsmith.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

# Applied under the optional metadata file; a document's own front-matter wins over both.
DEFAULT_METADATA: dict[str, Any] = {
    "title": "Untitled",
    "lang": "en",
}


def resolve_path(path: Path, base_dir: Path | None = None) -> Path:
    """Anchor a relative path at ``base_dir`` and leave absolute ones untouched."""
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path


@dataclass(slots=True)
class SiteConfig:
    content_dir: Path = Path("content")
    output_dir: Path = Path("public")
    template_path: Path | None = None
    metadata_path: Path = Path("metadata.yaml")
    content_ext: str = ".md"
    output_ext: str = ".html"
    max_depth: int = 4
    workers: int | None = None
    timeout: float | None = None
    index_section: str = "posts"
    index_title: str = "Posts"

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ConfigurationError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")

    def resolve(self, base_dir: Path | None = None) -> "SiteConfig":
        """Return a copy with every path anchored at ``base_dir``."""
        return SiteConfig(
            content_dir=resolve_path(Path(self.content_dir), base_dir),
            output_dir=resolve_path(Path(self.output_dir), base_dir),
            template_path=(
                resolve_path(Path(self.template_path), base_dir)
                if self.template_path is not None
                else None
            ),
            metadata_path=resolve_path(Path(self.metadata_path), base_dir),
            content_ext=self.content_ext,
            output_ext=self.output_ext,
            max_depth=self.max_depth,
            workers=self.workers,
            timeout=self.timeout,
            index_section=self.index_section,
            index_title=self.index_title,
        )

    def load_metadata(self) -> dict[str, Any]:
        """Merge the YAML metadata file (when present) over the built-in defaults."""
        metadata = dict(DEFAULT_METADATA)
        path = Path(self.metadata_path)
        if not path.exists():
            LOGGER.debug("No metadata file at %s, using defaults", path)
            return metadata

        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8-sig"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read metadata file {path}: {exc}") from exc

        if loaded is None:
            return metadata
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Metadata file {path} must contain a mapping")
        metadata.update(loaded)
        return metadata
