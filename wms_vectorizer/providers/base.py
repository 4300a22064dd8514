"""Collaborator interfaces consumed by the vectorization pipeline.

The orchestrator interacts exclusively with these two abstractions; it
never knows which concrete source or service is behind them.

- ``ImageSource.load(identifier)``  : produce a decoded ``PixelImage``.
- ``FeatureInfoLookup.query(x, y)`` : return attribute text for a
  geographic point (e.g. WMS GetFeatureInfo).

A lookup instance is also callable as ``lookup(x, y)``, so plain
functions with the same signature can stand in for it in tests.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from wms_vectorizer.core.exceptions import PipelineError

if TYPE_CHECKING:
    from wms_vectorizer.models.raster import PixelImage


class ImageSource(abc.ABC):
    """Abstract source of decoded rasters."""

    #: Short provider name used in error messages and logs.
    name: str = "image_source"

    @abc.abstractmethod
    def load(self, identifier: str) -> PixelImage:
        """Load and decode the raster named by *identifier*.

        Raises:
            ImageSourceUnavailableError: If no image can be produced.
        """


class FeatureInfoLookup(abc.ABC):
    """Abstract point-query service returning attribute text."""

    name: str = "feature_info"

    @abc.abstractmethod
    def query(self, x: float, y: float) -> str:
        """Return attribute text for geographic point ``(x, y)``.

        A single synchronous call: no retry, timeout or cancellation
        policy is applied by the pipeline.

        Raises:
            LookupFailedError: If the query fails.
        """

    def __call__(self, x: float, y: float) -> str:
        return self.query(x, y)


# ---------------------------------------------------------------------------
# Provider exceptions
# ---------------------------------------------------------------------------


class ProviderError(PipelineError):
    """Base exception for collaborator errors.

    Attributes:
        provider: Name of the provider that raised the error.
        message: Human-readable error description.
        retryable: Whether the caller could retry the operation.
    """

    default_stage = "provider"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"


class ImageSourceUnavailableError(ProviderError):
    """The image source could not produce a decoded raster."""

    default_stage = "load_image"
    default_code = "IMAGE_SOURCE_UNAVAILABLE"


class LookupFailedError(ProviderError):
    """A point query failed.  Non-fatal: the feature stays unclassified."""

    default_stage = "enrich_features"
    default_code = "LOOKUP_FAILED"

    def __init__(self, provider: str, message: str, *, retryable: bool = True) -> None:
        super().__init__(provider, message, retryable=retryable)


class WmsRequestError(ProviderError):
    """A WMS request returned a transport error or a non-200 status."""

    default_stage = "wms_request"
    default_code = "WMS_REQUEST_FAILED"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        self.status_code = status_code
        super().__init__(provider, message, retryable=retryable)
