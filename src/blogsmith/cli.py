"""Command line interface for blogsmith."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import NoReturn, Optional

import typer
import uvicorn
from rich.console import Console

from blogsmith.build.converter import PandocConverter
from blogsmith.build.pipeline import BuildPipeline
from blogsmith.config import SiteConfig, resolve_path
from blogsmith.errors import ConfigurationError, FrontMatterError
from blogsmith.index.listing import write_listing
from blogsmith.utils.files import remove_output_tree
from blogsmith.web.app import create_app

EXIT_BUILD_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_FRONT_MATTER_ERROR = 3
EXIT_INTERRUPTED = 130

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)
app = typer.Typer(help="blogsmith - build a pandoc-rendered blog", no_args_is_help=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _stop_server(signum: int, frame: object) -> None:
    raise KeyboardInterrupt


def _fail(message: str, code: int) -> NoReturn:
    err_console.print(f"Error: {message}", style="bold red", markup=False, highlight=False)
    raise typer.Exit(code)


@app.command()
def build(
    content: Path = typer.Option(SiteConfig().content_dir, "--content", help="Content root"),
    output: Path = typer.Option(SiteConfig().output_dir, "--output", "-o", help="Build output root"),
    template: Optional[Path] = typer.Option(None, "--template", help="Pandoc HTML template"),
    metadata: Path = typer.Option(
        SiteConfig().metadata_path, "--metadata", help="YAML file with default metadata"
    ),
    max_depth: int = typer.Option(SiteConfig().max_depth, "--max-depth", min=1, help="Directory depth"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Parallel conversions"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds allowed per file"),
    clean: bool = typer.Option(True, "--clean/--no-clean", help="Remove old output before building"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Convert every content file into a self-contained HTML page."""
    _setup_logging(verbose)
    try:
        config = SiteConfig(
            content_dir=content,
            output_dir=output,
            template_path=template,
            metadata_path=metadata,
            max_depth=max_depth,
            workers=jobs,
            timeout=timeout,
        ).resolve(Path.cwd())
        converter = PandocConverter(
            config.template_path, config.load_metadata(), timeout=config.timeout
        )
        converter.ensure_available()
        with converter:
            pipeline = BuildPipeline(converter, config)
            stats = pipeline.build(clean_first=clean)
    except (ConfigurationError, OSError) as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        _fail("build interrupted", EXIT_INTERRUPTED)

    console.print(f"Found {stats.found} content files in {config.content_dir}", highlight=False)
    console.print(f"Built {stats.built} files into {config.output_dir}", highlight=False)
    if stats.skipped:
        console.print(f"[yellow]Skipped {stats.skipped} files[/yellow]")
    if stats.failed:
        for failure in stats.failures:
            err_console.print(f"FAILED {failure.path}: {failure.error}", markup=False, highlight=False)
        _fail(f"{stats.failed} of {stats.found} files failed to build", EXIT_BUILD_FAILED)


@app.command("index")
def index_command(
    content: Path = typer.Option(SiteConfig().content_dir, "--content", help="Content root"),
    section: str = typer.Option(SiteConfig().index_section, "--section", help="Directory of posts"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Listing file (default: <content>/<section>.md)"
    ),
    title: str = typer.Option(SiteConfig().index_title, "--title", help="Listing page title"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Regenerate the post listing page from front-matter."""
    _setup_logging(verbose)
    config = SiteConfig(content_dir=content, index_section=section, index_title=title).resolve(
        Path.cwd()
    )
    destination = (
        resolve_path(output, Path.cwd())
        if output is not None
        else config.content_dir / f"{config.index_section}{config.content_ext}"
    )
    try:
        entries = write_listing(
            config.content_dir,
            config.index_section,
            destination=destination,
            title=config.index_title,
            extension=config.content_ext,
            output_ext=config.output_ext,
        )
    except FrontMatterError as exc:
        _fail(str(exc), EXIT_FRONT_MATTER_ERROR)
    except (ConfigurationError, OSError) as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)

    console.print(f"Wrote {len(entries)} entries to {destination}", highlight=False)


@app.command()
def serve(
    output: Path = typer.Option(SiteConfig().output_dir, "--output", "-o", help="Build output root"),
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Preview the built site until interrupted.

    Ctrl+C and SIGTERM both stop the server and exit with status 0.
    """
    _setup_logging(verbose)
    output_root = resolve_path(output, Path.cwd())
    try:
        site = create_app(output_root)
    except ConfigurationError as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)

    console.print(f"Serving {output_root} on http://{host}:{port} (Ctrl+C to stop)", highlight=False)
    # uvicorn re-raises the signal it caught after shutting down.
    previous = signal.signal(signal.SIGTERM, _stop_server)
    try:
        uvicorn.run(site, host=host, port=port, log_level="debug" if verbose else "info")
    except KeyboardInterrupt:
        pass
    finally:
        signal.signal(signal.SIGTERM, previous)
    console.print("Server stopped.")


@app.command()
def clean(
    output: Path = typer.Option(SiteConfig().output_dir, "--output", "-o", help="Build output root"),
    content: Path = typer.Option(SiteConfig().content_dir, "--content", help="Content root"),
) -> None:
    """Remove the build output directory and nothing else."""
    config = SiteConfig(content_dir=content, output_dir=output).resolve(Path.cwd())
    try:
        removed = remove_output_tree(config.output_dir, protected=[config.content_dir])
    except (ConfigurationError, OSError) as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)

    if removed:
        console.print(f"Removed {config.output_dir}", highlight=False)
    else:
        console.print(f"Nothing to clean: {config.output_dir} does not exist", highlight=False)


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show usage and exit."""
    typer.echo((ctx.parent or ctx).get_help())


if __name__ == "__main__":
    app()
