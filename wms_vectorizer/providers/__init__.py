"""Collaborator adapters.

Implements the interfaces the pipeline consumes:
- ImageSource / FeatureInfoLookup: Abstract collaborator interfaces
- RasterFileImageSource: Decodes local rasters with rasterio
- WmsClient: GetMap / GetCapabilities / GetFeatureInfo over httpx
- WmsFeatureInfoLookup: GetFeatureInfo as a FeatureInfoLookup

Heavy adapters (rasterio, httpx, lxml) are imported from their own
modules so that the core activities can be used without them.
"""

from wms_vectorizer.providers.base import (
    FeatureInfoLookup,
    ImageSource,
    ImageSourceUnavailableError,
    LookupFailedError,
    ProviderError,
    WmsRequestError,
)

__all__ = [
    "FeatureInfoLookup",
    "ImageSource",
    "ImageSourceUnavailableError",
    "LookupFailedError",
    "ProviderError",
    "WmsRequestError",
]
