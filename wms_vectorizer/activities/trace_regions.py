"""Trace connected same-color pixel regions of a raster.

For one target color, seed candidates are scanned on a coarse grid and
each unvisited, matching candidate is flood-filled (4-connected) into a
``PixelPolygon``: the ordered trail of pixels absorbed by the fill.  The
trail is not a boundary ring; it is the visitation order of the fill,
capped at ``max_region_size`` points.

Traversal order:
    Neighbors are tried in the fixed priority +x, -x, +y, -y, depth
    first.  The fill keeps an explicit stack of ``[x, y, next_neighbor]``
    frames instead of recursing, so large regions cannot exhaust the call
    stack and the output is identical to a recursive depth-first fill.

Visited state:
    One bitmap per call, shared by every region of this color.  Pixels of
    a discarded (too small) region stay visited, so they never seed
    again.  Pixels left unabsorbed by a capped region stay unvisited and
    may seed further regions of the same color.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from wms_vectorizer.core.constants import (
    DEFAULT_MAX_REGION_SIZE,
    DEFAULT_MAX_REGIONS,
    DEFAULT_MIN_REGION_SIZE,
    DEFAULT_PIXEL_TOLERANCE,
    DEFAULT_SEED_STRIDE,
)

if TYPE_CHECKING:
    from wms_vectorizer.models.feature import PixelPolygon
    from wms_vectorizer.models.raster import Color, PixelImage

logger = logging.getLogger("wms_vectorizer.activities.trace_regions")

# Neighbor priority: +x, -x, +y, -y
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


def trace_regions(
    image: PixelImage,
    target: Color,
    *,
    max_regions: int = DEFAULT_MAX_REGIONS,
    seed_stride: int = DEFAULT_SEED_STRIDE,
    pixel_tolerance: float = DEFAULT_PIXEL_TOLERANCE,
    min_region_size: int = DEFAULT_MIN_REGION_SIZE,
    max_region_size: int = DEFAULT_MAX_REGION_SIZE,
) -> list[PixelPolygon]:
    """Find disjoint connected regions of *target* in *image*.

    Args:
        image: The decoded raster.
        target: Color to trace.
        max_regions: Stop seeding once this many regions have been kept.
        seed_stride: Row and column step between seed candidates.
        pixel_tolerance: A seed must be strictly closer than this to
            *target*; a filled pixel may be at most this far.
        min_region_size: Regions with this many points or fewer are
            discarded (their pixels remain visited).
        max_region_size: Hard cap on points per region.

    Returns:
        Kept regions, each an ordered list of ``(x, y)`` pixel coordinates.
    """
    visited = bytearray(image.width * image.height)
    regions: list[PixelPolygon] = []
    discarded = 0

    for y in range(0, image.height, seed_stride):
        if len(regions) >= max_regions:
            break
        for x in range(0, image.width, seed_stride):
            if len(regions) >= max_regions:
                break
            if visited[y * image.width + x]:
                continue
            if _distance_at(image, x, y, target) >= pixel_tolerance:
                continue

            polygon = _flood_fill(
                image,
                x,
                y,
                target,
                visited,
                pixel_tolerance=pixel_tolerance,
                max_region_size=max_region_size,
            )
            if len(polygon) > min_region_size:
                regions.append(polygon)
            else:
                discarded += 1
                logger.debug(
                    "Region discarded | color=%s | seed=(%d, %d) | points=%d",
                    target.css(),
                    x,
                    y,
                    len(polygon),
                )

    logger.info(
        "Regions traced | color=%s | kept=%d | discarded=%d",
        target.css(),
        len(regions),
        discarded,
    )
    return regions


def _flood_fill(
    image: PixelImage,
    seed_x: int,
    seed_y: int,
    target: Color,
    visited: bytearray,
    *,
    pixel_tolerance: float,
    max_region_size: int,
) -> PixelPolygon:
    """Depth-first 4-connected fill from a seed, halting at *max_region_size*."""
    polygon: PixelPolygon = []
    if max_region_size < 1:
        return polygon
    if not _absorb(image, seed_x, seed_y, target, visited, polygon, pixel_tolerance):
        return polygon

    stack: list[list[int]] = [[seed_x, seed_y, 0]]
    while stack and len(polygon) < max_region_size:
        frame = stack[-1]
        if frame[2] >= len(NEIGHBOR_OFFSETS):
            stack.pop()
            continue
        dx, dy = NEIGHBOR_OFFSETS[frame[2]]
        frame[2] += 1
        nx = frame[0] + dx
        ny = frame[1] + dy
        if _absorb(image, nx, ny, target, visited, polygon, pixel_tolerance):
            stack.append([nx, ny, 0])

    return polygon


def _absorb(
    image: PixelImage,
    x: int,
    y: int,
    target: Color,
    visited: bytearray,
    polygon: PixelPolygon,
    pixel_tolerance: float,
) -> bool:
    """Mark ``(x, y)`` visited and append it if it is in bounds, unvisited and matching."""
    if x < 0 or x >= image.width or y < 0 or y >= image.height:
        return False
    offset = y * image.width + x
    if visited[offset]:
        return False
    if _distance_at(image, x, y, target) > pixel_tolerance:
        return False
    visited[offset] = 1
    polygon.append((x, y))
    return True


def _distance_at(image: PixelImage, x: int, y: int, target: Color) -> float:
    """RGB distance between pixel ``(x, y)`` and *target*, without allocating a Color."""
    idx = (y * image.width + x) * image.channels
    data = image.data
    if image.channels >= 3:
        dr = data[idx] - target.r
        dg = data[idx + 1] - target.g
        db = data[idx + 2] - target.b
    else:
        dr = data[idx] - target.r
        dg = data[idx] - target.g
        db = data[idx] - target.b
    return math.sqrt(dr * dr + dg * dg + db * db)
