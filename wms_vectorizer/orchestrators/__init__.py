"""Pipeline orchestration.

Manages the end-to-end vectorization run:
1. Parse bbox → load raster
2. Extract colors → trace regions → project polygons
3. Enrich features → write GeoJSON document
"""
