"""Tests for application configuration and settings.

This module contains unit tests for the Settings Pydantic model in
tileindex.core.config. It ensures that default values, environment
overrides, directory creation logic, and get_settings caching work as
expected.

All tests are safe to run in isolation. Temporary directories are used
to verify filesystem interactions where needed.
"""

from __future__ import annotations

import pathlib

import pydantic
import pytest

from tileindex.core import config


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that Settings has expected default values."""
    monkeypatch.delenv("TILEINDEX_OUTPUT_FORMAT", raising=False)
    settings = config.Settings(_env_file=None)  # type: ignore[call-arg]
    assert settings.output_format == "ESRI Shapefile"
    assert settings.location_field == "LOCATION"
    assert settings.location_field_width == 200
    assert settings.catalog_layer_name == "tileindex"
    assert not settings.write_absolute_path
    assert not settings.skip_different_projection
    assert not settings.accept_different_schemas
    assert settings.allow_origins == ["*"]


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that TILEINDEX_ variables override defaults."""
    monkeypatch.setenv("TILEINDEX_OUTPUT_FORMAT", "GPKG")
    monkeypatch.setenv("TILEINDEX_SKIP_DIFFERENT_PROJECTION", "true")
    monkeypatch.setenv("TILEINDEX_LOG_LEVEL", "debug")
    settings = config.Settings(_env_file=None)  # type: ignore[call-arg]
    assert settings.output_format == "GPKG"
    assert settings.skip_different_projection
    assert settings.log_level == "DEBUG"


def test_settings_rejects_non_positive_width() -> None:
    """Test that the location field width must be positive."""
    with pytest.raises(pydantic.ValidationError):
        config.Settings(location_field_width=0)


def test_settings_ensure_directories(tmp_path: pathlib.Path) -> None:
    """Test that ensure_directories creates the catalog directory."""
    catalog_dir = tmp_path / "catalogs"
    settings = config.Settings(catalog_dir=catalog_dir)
    assert not catalog_dir.exists()
    settings.ensure_directories()
    assert catalog_dir.exists()


def test_get_settings_cached() -> None:
    """Test that get_settings returns cached instance."""
    config.get_settings.cache_clear()
    settings1 = config.get_settings()
    settings2 = config.get_settings()
    assert settings1 is settings2
    config.get_settings.cache_clear()


def test_get_settings_creates_directories(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that get_settings ensures the catalog directory exists."""
    config.get_settings.cache_clear()
    catalog_dir = tmp_path / "catalogs"
    monkeypatch.setenv("TILEINDEX_CATALOG_DIR", str(catalog_dir))
    try:
        result = config.get_settings()
        assert result.catalog_dir == catalog_dir
        assert catalog_dir.exists()
    finally:
        config.get_settings.cache_clear()
