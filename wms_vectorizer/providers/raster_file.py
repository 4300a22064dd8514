"""Local raster file image source (rasterio).

Reads PNG, JPEG, GeoTIFF or any other GDAL-readable raster from disk and
converts it to a ``PixelImage``.  Only the first three bands are kept
(RGB); single- and two-band rasters keep their first band as grey.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import rasterio
from rasterio.errors import RasterioError

from wms_vectorizer.models.raster import PixelImage
from wms_vectorizer.providers.base import ImageSource, ImageSourceUnavailableError

logger = logging.getLogger(__name__)

_RGB_BANDS = 3


class RasterFileImageSource(ImageSource):
    """Load rasters from the local filesystem.

    Args:
        base_dir: Optional directory that relative identifiers resolve against.
    """

    name = "raster_file"

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else None

    def load(self, identifier: str) -> PixelImage:
        """Read *identifier* (a file path) into a ``PixelImage``.

        Raises:
            ImageSourceUnavailableError: If the file is missing, unreadable,
                or has no bands.
        """
        path = Path(identifier)
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path

        if not path.is_file():
            msg = f"Raster not found: {path}"
            raise ImageSourceUnavailableError(provider=self.name, message=msg)

        try:
            with rasterio.open(path) as src:
                if src.count < 1:
                    msg = f"Raster has no bands: {path}"
                    raise ImageSourceUnavailableError(provider=self.name, message=msg)
                band_count = _RGB_BANDS if src.count >= _RGB_BANDS else 1
                bands = src.read(indexes=list(range(1, band_count + 1)))
        except RasterioError as exc:
            msg = f"Failed to read raster {path}: {exc}"
            raise ImageSourceUnavailableError(provider=self.name, message=msg) from exc

        image = PixelImage.from_array(_to_uint8(np.transpose(bands, (1, 2, 0))))
        logger.info(
            "Raster loaded | path=%s | size=%dx%d | channels=%d",
            path,
            image.width,
            image.height,
            image.channels,
        )
        return image


def _to_uint8(array: np.ndarray) -> np.ndarray:
    """Convert to uint8, rescaling wider integer or float data into 0-255."""
    if array.dtype == np.uint8:
        return array
    data = array.astype(np.float64)
    lo = float(np.nanmin(data)) if data.size else 0.0
    hi = float(np.nanmax(data)) if data.size else 0.0
    if hi <= lo:
        return np.zeros(array.shape, dtype=np.uint8)
    scaled = (data - lo) / (hi - lo) * 255.0
    return np.nan_to_num(scaled).round().astype(np.uint8)
