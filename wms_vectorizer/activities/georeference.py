"""Georeference a downloaded map tile with world-file and .prj sidecars.

A WMS GetMap response is a plain image with no embedded georeferencing.
This activity writes the two sidecar files GIS tools look for next to
the image:

- ``<image>.wld``: six-line ESRI world file: pixel size in x, two
  rotation terms, (negative) pixel size in y, then the x/y coordinate of
  the centre of the upper-left pixel.
- ``<image>.prj``: the SRS as WKT1 (GDAL flavour) via ``pyproj``, or
  the raw SRS string when pyproj cannot resolve it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from wms_vectorizer.core.exceptions import PermanentError

if TYPE_CHECKING:
    from wms_vectorizer.models.raster import BoundingBox

logger = logging.getLogger("wms_vectorizer.activities.georeference")

WORLD_FILE_SUFFIX = ".wld"
PROJECTION_FILE_SUFFIX = ".prj"


class GeoreferenceError(PermanentError):
    """Raised when sidecar files cannot be written."""

    default_stage = "georeference"
    default_code = "GEOREFERENCE_FAILED"


def georeference_image(
    image_path: str | Path,
    bbox: BoundingBox,
    srs: str,
    *,
    width: int,
    height: int,
) -> dict[str, str]:
    """Write ``.wld`` and ``.prj`` sidecars for *image_path*.

    Returns:
        A dict with ``world_file`` and ``projection_file`` paths.

    Raises:
        GeoreferenceError: If either file cannot be written.
    """
    image = Path(image_path)
    world_file = write_world_file(
        image.with_name(image.name + WORLD_FILE_SUFFIX), bbox, width=width, height=height
    )
    projection_file = write_projection_file(image.with_name(image.name + PROJECTION_FILE_SUFFIX), srs)

    logger.info(
        "Image georeferenced | image=%s | srs=%s | bbox=[%.6f, %.6f, %.6f, %.6f]",
        image,
        srs,
        *bbox.as_tuple(),
    )
    return {"world_file": str(world_file), "projection_file": str(projection_file)}


def world_file_lines(bbox: BoundingBox, *, width: int, height: int) -> list[str]:
    """Return the six world-file lines for a north-up raster covering *bbox*."""
    pixel_size_x = (bbox.maxx - bbox.minx) / width
    pixel_size_y = -(bbox.maxy - bbox.miny) / height
    return [
        f"{pixel_size_x:.10f}",
        "0.0",
        "0.0",
        f"{pixel_size_y:.10f}",
        f"{bbox.minx + pixel_size_x / 2.0:.10f}",
        f"{bbox.maxy + pixel_size_y / 2.0:.10f}",
    ]


def write_world_file(path: str | Path, bbox: BoundingBox, *, width: int, height: int) -> Path:
    """Write an ESRI world file.  Raises ``GeoreferenceError``."""
    target = Path(path)
    content = "\n".join(world_file_lines(bbox, width=width, height=height)) + "\n"
    try:
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to create world file {target}: {exc}"
        raise GeoreferenceError(msg) from exc
    logger.debug("World file written | path=%s", target)
    return target


def srs_to_wkt(srs: str) -> str:
    """Resolve *srs* to WKT1_GDAL, falling back to the SRS string itself."""
    from pyproj import CRS
    from pyproj.enums import WktVersion
    from pyproj.exceptions import CRSError

    try:
        wkt = CRS.from_user_input(srs).to_wkt(WktVersion.WKT1_GDAL)
    except CRSError as exc:
        logger.warning("SRS not resolvable, writing it verbatim | srs=%s | error=%s", srs, exc)
        return srs
    return wkt or srs


def write_projection_file(path: str | Path, srs: str) -> Path:
    """Write a ``.prj`` file for *srs*.  Raises ``GeoreferenceError``."""
    target = Path(path)
    try:
        target.write_text(srs_to_wkt(srs) + "\n", encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to create projection file {target}: {exc}"
        raise GeoreferenceError(msg) from exc
    logger.debug("Projection file written | path=%s", target)
    return target
