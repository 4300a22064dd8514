"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- Color, PixelImage, BoundingBox: raster-side value types
- Feature, VectorizationResult: traced and projected map features
- WmsCapabilities, WmsLayer: parsed WMS service description
"""

from wms_vectorizer.models.capabilities import WmsCapabilities, WmsLayer
from wms_vectorizer.models.feature import (
    Feature,
    GeoPolygon,
    PixelPolygon,
    VectorizationResult,
)
from wms_vectorizer.models.raster import (
    BoundingBox,
    Color,
    InvalidBoundingBoxError,
    ModelValidationError,
    PixelImage,
)

__all__ = [
    "BoundingBox",
    "Color",
    "Feature",
    "GeoPolygon",
    "InvalidBoundingBoxError",
    "ModelValidationError",
    "PixelImage",
    "PixelPolygon",
    "VectorizationResult",
    "WmsCapabilities",
    "WmsLayer",
]
