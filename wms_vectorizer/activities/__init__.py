"""Pipeline activity functions.

Each activity performs a single unit of work within a vectorization run:
- extract_colors: Sample representative colors from the raster
- trace_regions: Flood-fill same-color regions into pixel trails
- project_coordinates: Pixel <-> geographic coordinate math
- assemble_result: Compose the above into a VectorizationResult
- enrich_features: Classify features via a point-query lookup
- write_document: Serialise the result as a GeoJSON FeatureCollection
- georeference: Write world-file and .prj sidecars for a map tile
"""
