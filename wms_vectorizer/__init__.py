"""WMS Map Vectorizer.

Turns a raster map tile covering a known bounding box into a GeoJSON
feature collection: representative colors are discovered by sampling,
same-colored pixel regions are traced and projected into geographic
coordinates, and each feature is optionally classified through a WMS
GetFeatureInfo query at its centroid.
"""

__version__ = "0.1.0"
