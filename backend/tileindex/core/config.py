"""Application settings and configuration management.

This module provides Pydantic-based settings management that loads
configuration from environment variables (prefixed with ``TILEINDEX_``) or
a .env file. Settings hold the defaults of a tile index run: output format,
location field name, enforcement policies, plus the directory where the
HTTP API keeps its catalogs.

Example:
    Settings can be accessed via the cached get_settings() function:
        >>> from tileindex.core.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.output_format)
        ESRI Shapefile

    Environment variables can override defaults:
        >>> TILEINDEX_OUTPUT_FORMAT=GPKG
        >>> TILEINDEX_LOCATION_FIELD=location
        >>> TILEINDEX_SKIP_DIFFERENT_PROJECTION=true
"""

import functools
import pathlib

import pydantic
import pydantic_settings


class Settings(pydantic_settings.BaseSettings):
    """Runtime configuration pulled from environment variables or defaults.

    Attributes:
        output_format: OGR driver used when the catalog has to be created.
        location_field: Name of the string field holding location tokens.
        location_field_width: Declared width of the location field.
        catalog_layer_name: Name of the layer created in a new catalog.
        write_absolute_path: Rewrite relative source paths as absolute.
        skip_different_projection: Skip layers whose spatial reference
            differs from the catalog baseline instead of only warning.
        accept_different_schemas: Disable the attribute schema check.
        log_level: Level name passed to logging configuration.
        catalog_dir: Directory holding catalogs built through the HTTP API.
        allow_origins: List of allowed CORS origins (["*"] allows all).
    """

    output_format: str = "ESRI Shapefile"
    location_field: str = "LOCATION"
    location_field_width: int = pydantic.Field(default=200, gt=0)
    catalog_layer_name: str = "tileindex"
    write_absolute_path: bool = False
    skip_different_projection: bool = False
    accept_different_schemas: bool = False
    log_level: str = "INFO"
    catalog_dir: pathlib.Path = pathlib.Path("/tmp/tileindex/catalogs")
    allow_origins: list[str] = ["*"]

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="TILEINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @pydantic.field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()

    def ensure_directories(self) -> None:
        """Create the API catalog directory if it does not exist."""
        self.catalog_dir.mkdir(parents=True, exist_ok=True)


@functools.lru_cache
def get_settings() -> Settings:
    """Get cached settings instance with directories initialized.

    Settings are loaded from environment variables or .env file and cached
    for the lifetime of the process. Subsequent calls return the same
    instance.

    Returns:
        Settings instance with all configuration values populated and
        the catalog directory ensured to exist.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
