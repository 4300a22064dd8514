"""Extract representative colors from a decoded raster.

Samples the pixel grid at a fixed row/column stride in row-major order
and greedily clusters what it sees: a sampled pixel becomes a new
representative color only if it is at least ``tolerance`` away (RGB
Euclidean distance) from every color accepted so far.  The result is
deterministic for a given image, stride and tolerance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wms_vectorizer.core.constants import (
    DEFAULT_COLOR_TOLERANCE,
    DEFAULT_MAX_COLORS,
    DEFAULT_SAMPLE_STRIDE,
)

if TYPE_CHECKING:
    from wms_vectorizer.models.raster import Color, PixelImage

logger = logging.getLogger("wms_vectorizer.activities.extract_colors")


def extract_colors(
    image: PixelImage,
    *,
    max_colors: int = DEFAULT_MAX_COLORS,
    tolerance: float = DEFAULT_COLOR_TOLERANCE,
    stride: int = DEFAULT_SAMPLE_STRIDE,
) -> list[Color]:
    """Return up to *max_colors* representative colors, in first-seen order.

    Args:
        image: The decoded raster.
        max_colors: Upper bound on returned colors.  Once reached,
            further samples have no effect.
        tolerance: A sample is accepted only if its minimum distance to
            every accepted color is ``>= tolerance``.
        stride: Row and column step between samples.

    Returns:
        The accepted colors.  An image with no pixels yields ``[]``.
    """
    colors: list[Color] = []

    for y in range(0, image.height, stride):
        if len(colors) >= max_colors:
            break
        for x in range(0, image.width, stride):
            if len(colors) >= max_colors:
                break
            pixel = image.pixel(x, y)
            if all(pixel.distance(accepted) >= tolerance for accepted in colors):
                colors.append(pixel)

    logger.info(
        "Colors extracted | count=%d | image=%dx%d | stride=%d | tolerance=%.1f",
        len(colors),
        image.width,
        image.height,
        stride,
        tolerance,
    )
    return colors
