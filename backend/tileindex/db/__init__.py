"""Vector store interfaces, backends and data models.

This package holds the boundary between the assembly services and concrete
vector formats. It provides a stable import location for the store
protocols and their factory, supporting the GDAL/OGR backend in production
and the in-memory backend in tests.

Example:
    Use in a service or FastAPI dependency:
        >>> from tileindex.db import store
        >>> vector_store = store.get_vector_store(settings)
"""
