"""Pandoc-backed document conversion."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import ExitStack
from importlib.resources import as_file, files
from pathlib import Path
from typing import Any, Mapping, Protocol

import yaml

from blogsmith.errors import ConfigurationError, ConversionError

LOGGER = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "pandoc"


class Converter(Protocol):
    def convert(self, source: Path, destination: Path, *, toc: bool = False) -> None:
        ...


class PandocConverter:
    """Runs pandoc once per file with a shared template and global metadata.

    Use as a context manager: the global metadata is written to a private YAML
    file on enter and removed on close. Output goes to a temporary sibling of the
    destination and is renamed into place only after pandoc succeeds.
    """

    def __init__(
        self,
        template: Path | None = None,
        metadata: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
        executable: str = DEFAULT_EXECUTABLE,
    ) -> None:
        self.template = template
        self.metadata = dict(metadata or {})
        self.timeout = timeout
        self.executable = executable
        self._stack: ExitStack | None = None
        self._template_path: Path | None = None
        self._metadata_path: Path | None = None

    def ensure_available(self) -> str:
        """Return the resolved pandoc executable or raise if it is missing."""
        resolved = shutil.which(self.executable)
        if resolved is None:
            raise ConfigurationError(
                f"'{self.executable}' was not found on PATH; install pandoc to build the site"
            )
        return resolved

    def open(self) -> "PandocConverter":
        if self._stack is not None:
            return self
        stack = ExitStack()
        try:
            if self.template is None:
                bundled = files("blogsmith").joinpath("templates").joinpath("default.html")
                self._template_path = stack.enter_context(as_file(bundled))
            else:
                if not self.template.is_file():
                    raise ConfigurationError(f"Template not found: {self.template}")
                self._template_path = self.template

            workdir = Path(stack.enter_context(tempfile.TemporaryDirectory(prefix="blogsmith-")))
            self._metadata_path = workdir / "metadata.yaml"
            self._metadata_path.write_text(
                yaml.safe_dump(self.metadata, sort_keys=True, allow_unicode=True),
                encoding="utf-8",
            )
        except BaseException:
            stack.close()
            raise
        self._stack = stack
        LOGGER.debug("Using template %s and metadata %s", self._template_path, self._metadata_path)
        return self

    def close(self) -> None:
        if self._stack is not None:
            self._stack.close()
        self._stack = None
        self._template_path = None
        self._metadata_path = None

    def __enter__(self) -> "PandocConverter":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def command(self, source: Path, output: Path, *, toc: bool = False) -> list[str]:
        if self._template_path is None or self._metadata_path is None:
            raise RuntimeError("PandocConverter must be opened before converting")
        args = [
            self.executable,
            "--from",
            "markdown",
            "--standalone",
            "--embed-resources",
            "--template",
            str(self._template_path),
            "--metadata-file",
            str(self._metadata_path),
        ]
        if toc:
            args.append("--toc")
        args += ["--output", str(output), str(source)]
        return args

    def convert(self, source: Path, destination: Path, *, toc: bool = False) -> None:
        """Convert ``source`` into ``destination`` or raise :class:`ConversionError`."""
        fd, tmp_name = tempfile.mkstemp(
            dir=destination.parent,
            prefix=f".{destination.stem}.",
            suffix=destination.suffix,
        )
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            # Resources referenced by the document are resolved relative to its directory.
            args = self.command(source.resolve(), tmp_path.resolve(), toc=toc)
            try:
                result = subprocess.run(
                    args,
                    cwd=source.parent,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as exc:
                raise ConversionError(source, f"timed out after {exc.timeout} seconds") from exc
            except OSError as exc:
                raise ConversionError(source, str(exc)) from exc

            if result.returncode != 0:
                detail = (result.stderr or "").strip() or f"pandoc exited with {result.returncode}"
                raise ConversionError(source, detail)
            if result.stderr:
                LOGGER.debug("pandoc warnings for %s: %s", source, result.stderr.strip())

            tmp_path.chmod(0o644)
            os.replace(tmp_path, destination)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
