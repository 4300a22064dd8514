"""Vectorizer configuration loaded from environment variables.

All values default to the constants in ``core.constants``.  Every
variable is prefixed with ``WMS_VECTORIZER_`` (e.g.
``WMS_VECTORIZER_MAX_COLORS=20``).

``from_env()`` raises ``ConfigValidationError`` if any numeric value is
out of its valid range, so bad configuration is caught before an image
is ever loaded.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from wms_vectorizer.core import constants
from wms_vectorizer.core.exceptions import ValidationError

ENV_PREFIX = "WMS_VECTORIZER_"


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class VectorizerConfig:
    """Immutable vectorizer configuration.

    Loaded once per run and threaded through the orchestrator into the
    clustering and tracing activities.

    Attributes:
        max_colors: Maximum representative colors extracted per image.
        color_tolerance: Minimum RGB distance between representative colors.
        sample_stride: Row/column step used when sampling for colors.
        max_regions: Maximum kept regions per color.
        seed_stride: Row/column step between region seed candidates.
        pixel_tolerance: RGB distance within which a pixel matches a color.
        min_region_size: Regions with this many points or fewer are dropped.
        max_region_size: Hard cap on points collected per region.
        http_timeout_s: Timeout for WMS requests in seconds.
        default_srs: SRS used when none is given explicitly.
    """

    max_colors: int = constants.DEFAULT_MAX_COLORS
    color_tolerance: float = constants.DEFAULT_COLOR_TOLERANCE
    sample_stride: int = constants.DEFAULT_SAMPLE_STRIDE
    max_regions: int = constants.DEFAULT_MAX_REGIONS
    seed_stride: int = constants.DEFAULT_SEED_STRIDE
    pixel_tolerance: float = constants.DEFAULT_PIXEL_TOLERANCE
    min_region_size: int = constants.DEFAULT_MIN_REGION_SIZE
    max_region_size: int = constants.DEFAULT_MAX_REGION_SIZE
    http_timeout_s: float = constants.DEFAULT_HTTP_TIMEOUT_S
    default_srs: str = constants.DEFAULT_CRS

    @classmethod
    def from_env(cls) -> VectorizerConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``WMS_VECTORIZER_MAX_COLORS=abc``).
        """
        config = cls(
            max_colors=int(_env("MAX_COLORS", constants.DEFAULT_MAX_COLORS)),
            color_tolerance=float(_env("COLOR_TOLERANCE", constants.DEFAULT_COLOR_TOLERANCE)),
            sample_stride=int(_env("SAMPLE_STRIDE", constants.DEFAULT_SAMPLE_STRIDE)),
            max_regions=int(_env("MAX_REGIONS", constants.DEFAULT_MAX_REGIONS)),
            seed_stride=int(_env("SEED_STRIDE", constants.DEFAULT_SEED_STRIDE)),
            pixel_tolerance=float(_env("PIXEL_TOLERANCE", constants.DEFAULT_PIXEL_TOLERANCE)),
            min_region_size=int(_env("MIN_REGION_SIZE", constants.DEFAULT_MIN_REGION_SIZE)),
            max_region_size=int(_env("MAX_REGION_SIZE", constants.DEFAULT_MAX_REGION_SIZE)),
            http_timeout_s=float(_env("HTTP_TIMEOUT_S", constants.DEFAULT_HTTP_TIMEOUT_S)),
            default_srs=_env("DEFAULT_SRS", constants.DEFAULT_CRS),
        )
        validate_config(config)
        return config


def _env(name: str, default: object) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", str(default))


def validate_config(config: VectorizerConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    for key, value in (
        ("MAX_COLORS", config.max_colors),
        ("SAMPLE_STRIDE", config.sample_stride),
        ("MAX_REGIONS", config.max_regions),
        ("SEED_STRIDE", config.seed_stride),
        ("MAX_REGION_SIZE", config.max_region_size),
    ):
        if value < 1:
            raise ConfigValidationError(f"{ENV_PREFIX}{key}", value, "must be >= 1")

    if config.color_tolerance < 0:
        raise ConfigValidationError(
            f"{ENV_PREFIX}COLOR_TOLERANCE",
            config.color_tolerance,
            "must be >= 0 (RGB distance)",
        )

    if config.pixel_tolerance < 0:
        raise ConfigValidationError(
            f"{ENV_PREFIX}PIXEL_TOLERANCE",
            config.pixel_tolerance,
            "must be >= 0 (RGB distance)",
        )

    if config.min_region_size < 0:
        raise ConfigValidationError(
            f"{ENV_PREFIX}MIN_REGION_SIZE",
            config.min_region_size,
            "must be >= 0 (points)",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            f"{ENV_PREFIX}HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.default_srs:
        raise ConfigValidationError(
            f"{ENV_PREFIX}DEFAULT_SRS",
            config.default_srs,
            "must not be empty",
        )
