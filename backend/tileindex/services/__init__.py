"""Tile index assembly services.

Submodules:
    - location: encode/decode ``<path>,<layer>`` tokens.
    - selection: layer filters by number or name.
    - dedup: rejection of layers already in the catalog.
    - validation: schema and spatial reference consistency checks.
    - geometry: extent to polygon conversion.
    - paths: absolute path rewriting.
    - catalog: catalog opening, loading and appending.
    - assembler: the pipeline tying them together.
"""
