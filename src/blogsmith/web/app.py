"""FastAPI application serving the built site for local preview."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles

from blogsmith.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


def create_app(output_root: Path) -> FastAPI:
    """Serve ``output_root`` as a static tree; ``/dir/`` falls back to ``dir/index.html``."""
    if not output_root.is_dir():
        raise ConfigurationError(
            f"Output directory not found: {output_root}. Run 'blogsmith build' first."
        )

    app = FastAPI(title="blogsmith preview", docs_url=None, redoc_url=None, openapi_url=None)

    @app.middleware("http")
    async def disable_caching(request: Request, call_next) -> Response:
        response = await call_next(request)
        # Previews must always reflect the latest build.
        response.headers["Cache-Control"] = "no-store"
        return response

    app.mount("/", StaticFiles(directory=output_root, html=True), name="site")
    LOGGER.debug("Serving %s", output_root)
    return app
