"""Pixel <-> geographic coordinate conversion for a north-up raster.

The raster is assumed to cover its bounding box exactly, with pixel row
0 on the northern (``maxy``) edge.  No CRS transformation is involved:
coordinates stay in whatever CRS the bounding box is expressed in.

Precondition: ``width`` and ``height`` are positive.  A zero dimension
raises ``ZeroDivisionError``; it is not checked here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wms_vectorizer.models.feature import GeoPolygon, PixelPolygon
    from wms_vectorizer.models.raster import BoundingBox


def pixel_to_geo(
    px: float,
    py: float,
    width: int,
    height: int,
    bbox: BoundingBox,
) -> tuple[float, float]:
    """Map pixel ``(px, py)`` to geographic ``(x, y)``.

    ``x = minx + px / width * (maxx - minx)`` and
    ``y = maxy - py / height * (maxy - miny)`` (Y axis inverted).
    """
    x = bbox.minx + (px / width) * (bbox.maxx - bbox.minx)
    y = bbox.maxy - (py / height) * (bbox.maxy - bbox.miny)
    return (x, y)


def geo_to_pixel(
    x: float,
    y: float,
    width: int,
    height: int,
    bbox: BoundingBox,
) -> tuple[int, int]:
    """Map geographic ``(x, y)`` back to an integer pixel (truncated toward zero)."""
    px = int((x - bbox.minx) / (bbox.maxx - bbox.minx) * width)
    py = int((bbox.maxy - y) / (bbox.maxy - bbox.miny) * height)
    return (px, py)


def project_polygon(
    polygon: PixelPolygon,
    width: int,
    height: int,
    bbox: BoundingBox,
) -> GeoPolygon:
    """Project every vertex of *polygon*, preserving order."""
    return [pixel_to_geo(px, py, width, height, bbox) for px, py in polygon]
