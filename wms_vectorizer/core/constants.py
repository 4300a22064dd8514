"""Shared pipeline constants: single source of truth.

Centralises the clustering and tracing defaults, the classification
keyword table, and the WMS request defaults that are otherwise needed by
activities, providers, the orchestrator and the CLI.
"""

from __future__ import annotations

from wms_vectorizer import __version__

# ---------------------------------------------------------------------------
# Color clustering
# ---------------------------------------------------------------------------

DEFAULT_MAX_COLORS: int = 50
"""Upper bound on representative colors extracted from one image."""

DEFAULT_COLOR_TOLERANCE: float = 30.0
"""Minimum RGB distance between two accepted representative colors."""

DEFAULT_SAMPLE_STRIDE: int = 4
"""Row/column step used when sampling pixels for clustering."""

# ---------------------------------------------------------------------------
# Region tracing
# ---------------------------------------------------------------------------

DEFAULT_MAX_REGIONS: int = 10
"""Maximum kept regions per representative color."""

DEFAULT_SEED_STRIDE: int = 8
"""Row/column step between seed candidates."""

DEFAULT_PIXEL_TOLERANCE: float = 20.0
"""RGB distance within which a pixel matches the target color."""

DEFAULT_MIN_REGION_SIZE: int = 10
"""A region is kept only if it holds strictly more points than this."""

DEFAULT_MAX_REGION_SIZE: int = 1000
"""Hard cap on points collected for a single region."""

# ---------------------------------------------------------------------------
# Classification (ordered: first match wins)
# ---------------------------------------------------------------------------

CLASSIFICATION_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("sandstone", "Sandstone"),
    ("limestone", "Limestone"),
    ("shale", "Shale"),
    ("water", "Water"),
    ("forest", "Forest"),
    ("urban", "Urban"),
    ("agricultural", "Agricultural"),
)

TEMPORAL_ATTRIBUTE_KEYS: tuple[str, ...] = ("age", "period", "epoch", "era", "temporal_info")
UNIT_ATTRIBUTE_KEYS: tuple[str, ...] = ("unit_name", "unit", "formation", "geological_unit")

# ---------------------------------------------------------------------------
# Output / WMS
# ---------------------------------------------------------------------------

DEFAULT_CRS: str = "EPSG:4326"
DEFAULT_IMAGE_FORMAT: str = "image/png"
DEFAULT_TILE_WIDTH: int = 256
DEFAULT_TILE_HEIGHT: int = 256
DEFAULT_HTTP_TIMEOUT_S: float = 30.0

GEOJSON_SUFFIX: str = ".geojson"

USER_AGENT: str = f"wms-vectorizer/{__version__}"
