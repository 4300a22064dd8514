"""Raster-side value types: colors, decoded images and bounding boxes.

- ``Color``: an 8-bit RGB triple compared by Euclidean distance
- ``PixelImage``: an immutable, row-major decoded raster
- ``BoundingBox``: the geographic extent covered by a raster

Design notes:
- All models are frozen dataclasses; a ``PixelImage`` is shared
  read-only by every stage of one pipeline run.
- ``BoundingBox`` assumes ``minx < maxx`` and ``miny < maxy``.  This is
  a caller precondition and is not checked here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wms_vectorizer.core.exceptions import PipelineError, ValidationError

if TYPE_CHECKING:
    import numpy as np


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, PipelineError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        PipelineError.__init__(self, formatted)


class InvalidBoundingBoxError(ValidationError):
    """Raised when a ``"minx,miny,maxx,maxy"`` string cannot be parsed."""

    default_stage = "parse_bbox"
    default_code = "INVALID_BBOX"


# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Color:
    """An RGB color with 8-bit channels."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ModelValidationError("Color", name, value, "must be in [0, 255]")

    def distance(self, other: Color) -> float:
        """Euclidean distance to *other* in RGB space."""
        dr = self.r - other.r
        dg = self.g - other.g
        db = self.b - other.b
        return math.sqrt(dr * dr + dg * dg + db * db)

    def css(self) -> str:
        """Render as ``rgb(r,g,b)`` (no spaces)."""
        return f"rgb({self.r},{self.g},{self.b})"


# ---------------------------------------------------------------------------
# PixelImage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PixelImage:
    """A decoded raster held as a row-major byte buffer.

    Pixel ``(x, y)`` starts at byte offset ``(y * width + x) * channels``.
    Images with fewer than three channels are read as grey.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        channels: Bytes per pixel (1 = grey, 3 = RGB, 4 = RGBA, ...).
        data: Pixel bytes, ``width * height * channels`` long.
    """

    width: int
    height: int
    channels: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width < 0:
            raise ModelValidationError("PixelImage", "width", self.width, "must be >= 0")
        if self.height < 0:
            raise ModelValidationError("PixelImage", "height", self.height, "must be >= 0")
        if self.channels < 1:
            raise ModelValidationError("PixelImage", "channels", self.channels, "must be >= 1")
        expected = self.width * self.height * self.channels
        if len(self.data) != expected:
            raise ModelValidationError(
                "PixelImage",
                "data",
                f"<{len(self.data)} bytes>",
                f"expected {expected} bytes for {self.width}x{self.height}x{self.channels}",
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def pixel(self, x: int, y: int) -> Color:
        """Return the color at pixel ``(x, y)``.  No bounds checking."""
        idx = (y * self.width + x) * self.channels
        if self.channels >= 3:
            return Color(self.data[idx], self.data[idx + 1], self.data[idx + 2])
        grey = self.data[idx]
        return Color(grey, grey, grey)

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelImage:
        """Build an image from a ``(H, W)`` or ``(H, W, C)`` uint8 array.

        Raises:
            ModelValidationError: If the array has an unsupported shape.
        """
        import numpy as np

        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3:
            raise ModelValidationError(
                "PixelImage", "array", array.shape, "expected (H, W) or (H, W, C)"
            )
        height, width, channels = array.shape
        buffer = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
        return cls(width=int(width), height=int(height), channels=int(channels), data=buffer)

    @classmethod
    def solid(cls, width: int, height: int, color: Color) -> PixelImage:
        """Build a single-color RGB image."""
        return cls(
            width=width,
            height=height,
            channels=3,
            data=bytes((color.r, color.g, color.b)) * (width * height),
        )


# ---------------------------------------------------------------------------
# BoundingBox
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Geographic extent ``(minx, miny, maxx, maxy)`` covered by a raster.

    Precondition: ``minx < maxx`` and ``miny < maxy``.  Callers are
    responsible for this; it is not enforced.
    """

    minx: float
    miny: float
    maxx: float
    maxy: float

    @classmethod
    def parse(cls, text: str) -> BoundingBox:
        """Parse a ``"minx,miny,maxx,maxy"`` string.

        Raises:
            InvalidBoundingBoxError: If the text does not hold exactly
                four finite comma-separated numbers.
        """
        parts = (text or "").split(",")
        if len(parts) != 4:
            msg = f"Invalid bbox {text!r}: expected 'minx,miny,maxx,maxy'"
            raise InvalidBoundingBoxError(msg)
        try:
            values = [float(p) for p in parts]
        except ValueError as exc:
            msg = f"Invalid bbox {text!r}: {exc}"
            raise InvalidBoundingBoxError(msg) from exc
        if not all(math.isfinite(v) for v in values):
            msg = f"Invalid bbox {text!r}: values must be finite"
            raise InvalidBoundingBoxError(msg)
        return cls(*values)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.minx, self.miny, self.maxx, self.maxy)

    def as_wms_param(self) -> str:
        """Render as the ``BBOX`` query parameter value."""
        return ",".join(repr(v) for v in self.as_tuple())
