"""Classify features through a point-query lookup at their centroid.

For each feature the centroid of its first polygon (the arithmetic mean
of its vertices) is sent to a ``FeatureInfoLookup``, typically a WMS
GetFeatureInfo request.  The returned text is stored verbatim and
searched against a fixed, ordered keyword table; the first keyword found
sets ``classification``.  Attribute lines in the text may also supply an
age (``temporal_info``) and a unit name (``unit_name``).

Lookup failures are per-feature and non-fatal: the feature is left
exactly as it was and the next feature is processed.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from wms_vectorizer.core.constants import (
    CLASSIFICATION_KEYWORDS,
    TEMPORAL_ATTRIBUTE_KEYS,
    UNIT_ATTRIBUTE_KEYS,
)
from wms_vectorizer.core.exceptions import PipelineError

if TYPE_CHECKING:
    from collections.abc import Callable

    from wms_vectorizer.models.feature import Feature, GeoPolygon, VectorizationResult

logger = logging.getLogger("wms_vectorizer.activities.enrich_features")

_QUOTED_ASSIGNMENT = re.compile(r"^([\w.]+)\s*=\s*['\"]([^'\"]*)['\"]")
_ASSIGNMENT = re.compile(r"^([\w.]+)\s*=\s*(.+)$")


def enrich_features(
    result: VectorizationResult,
    lookup: Callable[[float, float], str],
) -> int:
    """Enrich every feature of *result* in place.

    Returns:
        The number of features that received a classification.
    """
    classified = 0
    for feature_id, feature in enumerate(result.features):
        enrich_feature(feature, lookup, feature_id=feature_id)
        if feature.classification is not None:
            classified += 1

    logger.info(
        "Features enriched | features=%d | classified=%d",
        result.feature_count,
        classified,
    )
    return classified


def enrich_feature(
    feature: Feature,
    lookup: Callable[[float, float], str],
    *,
    feature_id: int = 0,
) -> Feature:
    """Query *lookup* at the feature's centroid and annotate it in place.

    Args:
        feature: The feature to annotate.
        lookup: ``lookup(x, y) -> text``; raises ``PipelineError``
            (normally ``LookupFailedError``) on failure.
        feature_id: Index of the feature, for logging only.

    Returns:
        The same feature.
    """
    if not feature.polygons or not feature.polygons[0]:
        return feature

    cx, cy = compute_centroid(feature.polygons[0])

    try:
        text = lookup(cx, cy)
    except PipelineError as exc:
        logger.warning(
            "Lookup failed, feature left unclassified | feature=%d | centroid=(%.6f, %.6f) "
            "| code=%s | error=%s",
            feature_id,
            cx,
            cy,
            exc.code,
            exc,
        )
        return feature

    if not text:
        return feature

    feature.feature_info = text
    classification = classify_text(text)
    if classification is not None:
        feature.classification = classification

    attributes = parse_attribute_text(text)
    temporal = _first_attribute(attributes, TEMPORAL_ATTRIBUTE_KEYS)
    if temporal:
        feature.temporal_info = temporal
    unit = _first_attribute(attributes, UNIT_ATTRIBUTE_KEYS)
    if unit:
        feature.unit_name = unit

    logger.info(
        "Feature %d: %s at (%.6f, %.6f) -> %s",
        feature_id,
        feature.dominant_color.css(),
        cx,
        cy,
        classification or "Unknown",
    )
    return feature


def compute_centroid(polygon: GeoPolygon) -> tuple[float, float]:
    """Arithmetic mean of the polygon's vertices.  *polygon* must be non-empty."""
    count = len(polygon)
    return (
        sum(x for x, _ in polygon) / count,
        sum(y for _, y in polygon) / count,
    )


def classify_text(text: str) -> str | None:
    """Return the label of the first keyword found in *text*, or ``None``.

    A keyword matches when its lower-case or capitalized form occurs in
    the text (``"shale"`` or ``"Shale"``).  Keywords are tried in table
    order and the first hit wins.
    """
    for keyword, label in CLASSIFICATION_KEYWORDS:
        if keyword in text or keyword.capitalize() in text:
            return label
    return None


def parse_attribute_text(text: str) -> dict[str, str]:
    """Parse ``text/plain`` GetFeatureInfo output into a key/value dict.

    Recognised line shapes, tried in order:

    - ``key = 'value'`` / ``key = "value"`` (MapServer)
    - ``key = value``
    - ``key: value`` (split on the first colon)
    - ``key<TAB>value``

    Section headers starting with ``Feature `` or ``Layer `` are skipped.
    Keys are lower-cased; the first occurrence of a key wins.
    """
    out: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("Feature ", "Layer ")):
            continue

        key = value = ""
        match = _QUOTED_ASSIGNMENT.match(line) or _ASSIGNMENT.match(line)
        if match:
            key, value = match.group(1), match.group(2)
        elif ":" in line:
            key, _, value = line.partition(":")
        elif "\t" in line:
            key, _, value = line.partition("\t")

        key = key.strip().lower()
        value = value.strip()
        if key and value and key not in out:
            out[key] = value
    return out


def _first_attribute(attributes: dict[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = attributes.get(key)
        if value:
            return value
    return None
