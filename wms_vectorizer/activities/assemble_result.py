"""Assemble a VectorizationResult from a decoded raster.

Composes the clustering, tracing and projection activities:

1. ``extract_colors`` finds the representative colors.
2. ``trace_regions`` runs once per color, in color order, each call with
   its own visited bitmap.
3. Every vertex of every kept region is projected with ``pixel_to_geo``.
4. One ``Feature`` is emitted per color that kept at least one region;
   colors that kept none are dropped, never emitted empty.

An image with no colors or no kept regions yields an empty result.  That
is a valid outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wms_vectorizer.activities.extract_colors import extract_colors
from wms_vectorizer.activities.project_coordinates import project_polygon
from wms_vectorizer.activities.trace_regions import trace_regions
from wms_vectorizer.core.config import VectorizerConfig
from wms_vectorizer.models.feature import Feature, VectorizationResult

if TYPE_CHECKING:
    from wms_vectorizer.models.raster import BoundingBox, PixelImage

logger = logging.getLogger("wms_vectorizer.activities.assemble_result")


def assemble_result(
    image: PixelImage,
    bbox: BoundingBox,
    crs: str,
    *,
    config: VectorizerConfig | None = None,
) -> VectorizationResult:
    """Vectorize *image* into one feature per traced color.

    Args:
        image: The decoded raster covering *bbox*.
        bbox: Geographic extent of the raster.
        crs: CRS label recorded on the result.
        config: Clustering/tracing parameters.  Defaults to
            ``VectorizerConfig()``.

    Returns:
        A ``VectorizationResult`` whose features are in color order.
    """
    config = config or VectorizerConfig()
    result = VectorizationResult(bbox=bbox, crs=crs)

    colors = extract_colors(
        image,
        max_colors=config.max_colors,
        tolerance=config.color_tolerance,
        stride=config.sample_stride,
    )

    for color_index, color in enumerate(colors):
        regions = trace_regions(
            image,
            color,
            max_regions=config.max_regions,
            seed_stride=config.seed_stride,
            pixel_tolerance=config.pixel_tolerance,
            min_region_size=config.min_region_size,
            max_region_size=config.max_region_size,
        )
        if not regions:
            continue

        polygons = [project_polygon(r, image.width, image.height, bbox) for r in regions]
        result.features.append(Feature(dominant_color=color, polygons=polygons))
        logger.debug(
            "Feature assembled | color_index=%d | color=%s | polygons=%d",
            color_index,
            color.css(),
            len(polygons),
        )

    if result.is_empty:
        logger.warning(
            "No features extracted | colors=%d | image=%dx%d",
            len(colors),
            image.width,
            image.height,
        )
    else:
        logger.info(
            "Result assembled | features=%d | colors=%d | crs=%s",
            result.feature_count,
            len(colors),
            crs,
        )
    return result
