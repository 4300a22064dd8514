"""Shared pytest fixtures for the WMS vectorizer test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from wms_vectorizer.models.raster import BoundingBox, Color, PixelImage

# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

BROWN = Color(180, 120, 80)
BLUE = Color(30, 60, 200)
GREEN = Color(40, 160, 60)
WHITE = Color(255, 255, 255)


def _quadrant_image(size: int, colors: tuple[Color, Color, Color, Color]) -> PixelImage:
    """Build a ``size`` x ``size`` RGB image split into four colored quadrants.

    Order: top-left, top-right, bottom-left, bottom-right.
    """
    half = size // 2
    data = bytearray()
    for y in range(size):
        for x in range(size):
            index = (0 if y < half else 2) + (0 if x < half else 1)
            c = colors[index]
            data.extend((c.r, c.g, c.b))
    return PixelImage(width=size, height=size, channels=3, data=bytes(data))


# ---------------------------------------------------------------------------
# Image fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def solid_image() -> PixelImage:
    """A 16x16 image of a single brown color."""
    return PixelImage.solid(16, 16, BROWN)


@pytest.fixture()
def quadrant_16() -> PixelImage:
    """A 16x16 image with four distinct 8x8 quadrants."""
    return _quadrant_image(16, (BROWN, BLUE, GREEN, WHITE))


@pytest.fixture()
def pixel_bbox() -> BoundingBox:
    """A bbox whose units equal the pixels of a 16x16 image."""
    return BoundingBox(0.0, 0.0, 16.0, 16.0)


@pytest.fixture()
def geo_bbox() -> BoundingBox:
    """A small lon/lat bbox."""
    return BoundingBox(-1.0, 50.0, 1.0, 52.0)


@pytest.fixture()
def image_from_rows():
    """Factory: build an RGB image from rows of ``Color`` values."""

    def _build(rows: list[list[Color]]) -> PixelImage:
        data = bytearray()
        for row in rows:
            for c in row:
                data.extend((c.r, c.g, c.b))
        return PixelImage(width=len(rows[0]), height=len(rows), channels=3, data=bytes(data))

    return _build


@pytest.fixture()
def write_geotiff():
    """Factory: write a ``(bands, H, W)`` array to a GeoTIFF and return its path."""
    import numpy as np
    import rasterio
    from rasterio.transform import from_origin

    def _write(path: Path, array: np.ndarray) -> Path:
        bands, height, width = array.shape
        with rasterio.open(
            path,
            "w",
            driver="GTiff",
            width=width,
            height=height,
            count=bands,
            dtype=array.dtype,
            crs="EPSG:4326",
            transform=from_origin(0.0, float(height), 1.0, 1.0),
        ) as dst:
            dst.write(array)
        return path

    return _write
