"""API router subpackage for the tile index service.

Submodules:
    - catalog: endpoints to build a tile index from source datasets and to
      query its entries by bounding box.
"""
