"""Data model for vectorized map features.

A ``Feature`` groups every traced region that shares one representative
color.  It is created by the ``assemble_result`` activity, optionally
annotated in place by ``enrich_features``, and finally serialised by
``write_document``.  A ``VectorizationResult`` is the root aggregate
handed from stage to stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wms_vectorizer.models.raster import BoundingBox, Color

PixelPolygon = list[tuple[int, int]]
"""Visited-pixel trail of one region, in visitation order."""

GeoPolygon = list[tuple[float, float]]
"""A ``PixelPolygon`` projected to ``(x, y)`` geographic coordinates."""


@dataclass(slots=True)
class Feature:
    """All regions of one dominant color, plus optional classification.

    Attributes:
        dominant_color: The representative color the regions were traced for.
        polygons: One ``GeoPolygon`` per kept region, in tracing order.
        classification: Keyword label (e.g. ``"Sandstone"``), if one matched.
        temporal_info: Age/period annotation from the lookup text, if any.
        unit_name: Unit/formation annotation from the lookup text, if any.
        feature_info: Raw lookup text, stored verbatim.
    """

    dominant_color: Color
    polygons: list[GeoPolygon] = field(default_factory=list)
    classification: str | None = None
    temporal_info: str | None = None
    unit_name: str | None = None
    feature_info: str | None = None

    @property
    def polygon_count(self) -> int:
        return len(self.polygons)


@dataclass(slots=True)
class VectorizationResult:
    """Ordered features of one raster, with its extent and CRS label.

    Attributes:
        bbox: Geographic extent the raster covers.
        crs: Coordinate reference system label (e.g. ``"EPSG:4326"``).
        features: Features in extraction order; a feature's index in this
            list is its ``feature_id`` in the output document.
    """

    bbox: BoundingBox
    crs: str
    features: list[Feature] = field(default_factory=list)

    @property
    def feature_count(self) -> int:
        return len(self.features)

    @property
    def is_empty(self) -> bool:
        """True when no color produced a kept region (a valid outcome)."""
        return not self.features
