"""End-to-end vectorization orchestrator.

Sequences the pipeline stages strictly one after another:

1. Parse the ``"minx,miny,maxx,maxy"`` bounding box (before any image work).
2. Load the raster through the ``ImageSource`` collaborator.
3. Assemble features (colors -> regions -> projected polygons).
4. Enrich each feature through the ``FeatureInfoLookup``, if one is given.
5. Write the GeoJSON document.

Failure contract:
    Any ``PipelineError`` raised by steps 1-3 or 5 aborts the run and
    propagates to the caller; no document is written (the writer itself
    discards partial output).  Lookup failures in step 4 are absorbed per
    feature and never abort the run.  An image yielding no features is
    not an error: an empty FeatureCollection is written.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, TypedDict

from wms_vectorizer.activities.assemble_result import assemble_result
from wms_vectorizer.activities.enrich_features import enrich_features
from wms_vectorizer.activities.write_document import write_document
from wms_vectorizer.core.config import VectorizerConfig
from wms_vectorizer.core.exceptions import PipelineError
from wms_vectorizer.models.raster import BoundingBox

if TYPE_CHECKING:
    from collections.abc import Callable

    from wms_vectorizer.providers.base import ImageSource

logger = logging.getLogger("wms_vectorizer.orchestrators.vectorize_pipeline")


class VectorizationSummary(TypedDict):
    """Outcome of one successful vectorization run."""

    output_path: str
    crs: str
    bbox: list[float]
    image_width: int
    image_height: int
    feature_count: int
    polygon_count: int
    classified_count: int
    enriched: bool
    duration_seconds: float


def run_vectorization(
    identifier: str,
    bbox_text: str,
    crs: str,
    output_path: str | Path,
    *,
    image_source: ImageSource,
    lookup: Callable[[float, float], str] | None = None,
    config: VectorizerConfig | None = None,
) -> VectorizationSummary:
    """Vectorize the raster named *identifier* into a GeoJSON document.

    Args:
        identifier: Raster identifier understood by *image_source*.
        bbox_text: Extent covered by the raster, ``"minx,miny,maxx,maxy"``.
        crs: CRS label written to the document.
        output_path: Where the GeoJSON document is written.
        image_source: Collaborator that decodes the raster.
        lookup: Optional point-query collaborator for classification.
        config: Clustering/tracing parameters (defaults when ``None``).

    Returns:
        A ``VectorizationSummary``.

    Raises:
        InvalidBoundingBoxError: If *bbox_text* is malformed.
        ImageSourceUnavailableError: If the raster cannot be loaded.
        DocumentWriteError: If the document cannot be written.
    """
    config = config or VectorizerConfig()
    run_id = str(output_path)
    start = time.monotonic()

    logger.info(
        "Vectorization started | source=%s | bbox=%s | crs=%s | output=%s",
        identifier,
        bbox_text,
        crs,
        run_id,
    )

    try:
        bbox = BoundingBox.parse(bbox_text)
        image = image_source.load(identifier)
        result = assemble_result(image, bbox, crs, config=config)

        classified = 0
        enriched = lookup is not None and not result.is_empty
        if enriched:
            classified = enrich_features(result, lookup)

        written = write_document(result, output_path)
    except PipelineError as exc:
        if not exc.correlation_id:
            exc.correlation_id = run_id
        logger.error(
            "Vectorization failed | stage=%s | code=%s | output=%s | error=%s",
            exc.stage,
            exc.code,
            run_id,
            exc,
        )
        raise

    duration = time.monotonic() - start
    polygon_count = sum(f.polygon_count for f in result.features)

    logger.info(
        "Vectorization complete | output=%s | features=%d | polygons=%d | "
        "classified=%d | duration=%.2fs",
        written,
        result.feature_count,
        polygon_count,
        classified,
        duration,
    )

    return VectorizationSummary(
        output_path=str(written),
        crs=crs,
        bbox=list(bbox.as_tuple()),
        image_width=image.width,
        image_height=image.height,
        feature_count=result.feature_count,
        polygon_count=polygon_count,
        classified_count=classified,
        enriched=enriched,
        duration_seconds=round(duration, 3),
    )
