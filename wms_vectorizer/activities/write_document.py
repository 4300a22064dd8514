"""Write a VectorizationResult as a GeoJSON FeatureCollection document.

The document text is rendered by hand rather than through ``json`` so
that its layout is fixed byte for byte:

- ``bbox`` values are printed with 6 decimals, coordinates with 8.
- Property order is ``feature_id``, ``dominant_color``, then the
  optional ``classification``, ``temporal_info``, ``unit_name`` and
  ``wms_info``, then ``polygon_count``.
- A feature with exactly one polygon is a ``Polygon``; any other count
  is a ``MultiPolygon`` with one single-ring polygon per region.
- Every non-empty ring is closed by re-appending its first coordinate,
  even when the ring already ends on it.
- Lookup-derived strings escape ``"``, newline and carriage return only.

Writes go to a sibling temporary file that replaces the target only on
success, so a failed write never leaves a partial document behind.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from wms_vectorizer.core.exceptions import PermanentError

if TYPE_CHECKING:
    from wms_vectorizer.models.feature import Feature, GeoPolygon, VectorizationResult

logger = logging.getLogger("wms_vectorizer.activities.write_document")

_ESCAPES = {'"': '\\"', "\n": "\\n", "\r": "\\r"}


class DocumentWriteError(PermanentError):
    """Raised when the output document cannot be written."""

    default_stage = "write_document"
    default_code = "DOCUMENT_WRITE_FAILED"


def write_document(result: VectorizationResult, output_path: str | Path) -> Path:
    """Render *result* and write it to *output_path* atomically.

    Returns:
        The path written.

    Raises:
        DocumentWriteError: If the file cannot be created or written.
            Any partially written temporary file is removed.
    """
    path = Path(output_path)
    text = render_document(result)
    tmp_name = ""

    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent if str(path.parent) else ".",
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text.encode("utf-8"))
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name:
            with contextlib.suppress(OSError):
                Path(tmp_name).unlink()
        msg = f"Failed to write GeoJSON document {path}: {exc}"
        raise DocumentWriteError(msg, correlation_id=str(path)) from exc

    logger.info(
        "GeoJSON written | path=%s | features=%d | bytes=%d",
        path,
        result.feature_count,
        len(text.encode("utf-8")),
    )
    return path


def render_document(result: VectorizationResult) -> str:
    """Render *result* as FeatureCollection text (UTF-8 safe ``str``)."""
    bbox = result.bbox
    parts: list[str] = [
        "{\n",
        '  "type": "FeatureCollection",\n',
        '  "crs": {\n',
        '    "type": "name",\n',
        '    "properties": {\n',
        f'      "name": "{result.crs}"\n',
        "    }\n",
        "  },\n",
        f'  "bbox": [{bbox.minx:.6f}, {bbox.miny:.6f}, {bbox.maxx:.6f}, {bbox.maxy:.6f}],\n',
        '  "features": [\n',
    ]

    for feature_id, feature in enumerate(result.features):
        if feature_id > 0:
            parts.append(",\n")
        _render_feature(parts, feature_id, feature)

    parts.append("\n  ]\n")
    parts.append("}\n")
    return "".join(parts)


def escape_string(value: str) -> str:
    """Escape double quotes, newlines and carriage returns; nothing else."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def _render_feature(parts: list[str], feature_id: int, feature: Feature) -> None:
    parts.append("    {\n")
    parts.append('      "type": "Feature",\n')
    parts.append('      "properties": {\n')
    parts.append(f'        "feature_id": {feature_id},\n')
    parts.append(f'        "dominant_color": "{feature.dominant_color.css()}",\n')

    if feature.classification is not None:
        parts.append(f'        "classification": "{feature.classification}",\n')
    if feature.temporal_info is not None:
        parts.append(f'        "temporal_info": "{escape_string(feature.temporal_info)}",\n')
    if feature.unit_name is not None:
        parts.append(f'        "unit_name": "{escape_string(feature.unit_name)}",\n')
    if feature.feature_info is not None:
        parts.append(f'        "wms_info": "{escape_string(feature.feature_info)}",\n')

    parts.append(f'        "polygon_count": {feature.polygon_count}\n')
    parts.append("      },\n")

    parts.append('      "geometry": {\n')
    if feature.polygon_count == 1:
        parts.append('        "type": "Polygon",\n')
        parts.append('        "coordinates": [[\n')
        parts.append(_render_ring(feature.polygons[0], indent="          "))
        parts.append("\n        ]]\n")
    else:
        parts.append('        "type": "MultiPolygon",\n')
        parts.append('        "coordinates": [\n')
        for index, polygon in enumerate(feature.polygons):
            if index > 0:
                parts.append(",\n")
            parts.append("          [[\n")
            parts.append(_render_ring(polygon, indent="            "))
            parts.append("\n          ]]")
        parts.append("\n        ]\n")
    parts.append("      }\n")
    parts.append("    }")


def _render_ring(polygon: GeoPolygon, *, indent: str) -> str:
    """One coordinate per line, closed by repeating the first point."""
    ring = list(polygon)
    if ring:
        ring.append(ring[0])
    return ",\n".join(f"{indent}[{x:.8f}, {y:.8f}]" for x, y in ring)
