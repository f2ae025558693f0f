"""Tests for the FastAPI main application factory and health checks.

This module validates that:
    - The FastAPI app is correctly instantiated via main.create_app,
    - OpenAPI metadata (title, version) matches the package,
    - The tile index routes and the health route are registered,
    - The /health endpoint returns the expected response.

See Also:
    - backend/tileindex/main.py for the application factory.
"""

from __future__ import annotations

from typing import cast

from fastapi import testclient

from tileindex import __version__, main


def test_create_app() -> None:
    """Test that create_app returns a configured FastAPI instance."""
    app = main.create_app()
    assert app is not None
    assert app.title == "Tile Index"
    assert app.version == __version__


def test_health_endpoint() -> None:
    """Test the health check endpoint returns ok status."""
    app = main.create_app()
    client = testclient.TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_includes_routers() -> None:
    """Test that the tile index routes are included in the app."""
    app = main.create_app()
    routes: list[str] = [
        cast(str, getattr(route, "path", ""))
        for route in app.routes  # type: ignore[attr-defined]
        if hasattr(route, "path")
    ]
    assert "/health" in routes
    assert "/api/tileindex/{catalog_name}/build" in routes
    assert "/api/tileindex/{catalog_name}/entries" in routes
