"""FastAPI application entrypoint and configuration.

This module provides the FastAPI application factory that sets up CORS
middleware, includes the tile index router and exposes a health check
endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ uvicorn tileindex.main:app --reload
"""

import fastapi
from fastapi.middleware import cors

from tileindex import __version__
from tileindex.api import catalog
from tileindex.core import config
from tileindex.core import logging as logging_setup


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Sets up logging and CORS middleware from settings, includes the tile
    index router and adds a health check endpoint.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    logging_setup.configure_logging(settings.log_level)
    app = fastapi.FastAPI(title="Tile Index", version=__version__)

    app.include_router(catalog.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
