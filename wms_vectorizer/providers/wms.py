"""OGC Web Map Service (WMS) client and GetFeatureInfo lookup adapter.

Three requests are supported:

- ``GetMap`` (WMS 1.1.1)        : download a map tile to disk.
- ``GetCapabilities`` (WMS 1.3.0): describe the service; parsed with
  ``lxml`` into a ``WmsCapabilities`` model.
- ``GetFeatureInfo`` (WMS 1.1.1) : ``text/plain`` attributes at a pixel.

Every non-200 response, transport failure, or OGC ``ServiceException``
body is raised as ``WmsRequestError``.  Transport errors, throttling and
5xx responses are flagged retryable; the client itself never retries.

``WmsFeatureInfoLookup`` adapts the client to the ``FeatureInfoLookup``
interface used by the enrichment activity: it converts a geographic
point to the tile's pixel grid and maps request failures to
``LookupFailedError``.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from lxml import etree

from wms_vectorizer.activities.project_coordinates import geo_to_pixel
from wms_vectorizer.core.constants import (
    DEFAULT_HTTP_TIMEOUT_S,
    DEFAULT_IMAGE_FORMAT,
    USER_AGENT,
)
from wms_vectorizer.core.exceptions import ContractError, PermanentError
from wms_vectorizer.models.capabilities import WmsCapabilities, WmsLayer
from wms_vectorizer.providers.base import (
    FeatureInfoLookup,
    LookupFailedError,
    WmsRequestError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from lxml.etree import _Element

    from wms_vectorizer.models.raster import BoundingBox

logger = logging.getLogger(__name__)

MAP_VERSION = "1.1.1"
CAPABILITIES_VERSION = "1.3.0"
INFO_FORMAT = "text/plain"

# Content types a WMS uses to report errors with an HTTP 200 status.
_SERVICE_EXCEPTION_TYPES = ("application/vnd.ogc.se_xml", "text/xml", "application/xml")

_RETRYABLE_STATUS = frozenset({429, 502, 503, 504})


class CapabilitiesParseError(ContractError):
    """The GetCapabilities response is not well-formed XML."""

    default_stage = "wms_capabilities"
    default_code = "CAPABILITIES_PARSE_FAILED"


class TileWriteError(PermanentError):
    """A downloaded tile could not be written to disk."""

    default_stage = "wms_get_map"
    default_code = "TILE_WRITE_FAILED"


class WmsClient:
    """Minimal synchronous WMS client built on ``httpx``.

    Args:
        base_url: Service endpoint (without query string).
        timeout_s: Per-request timeout in seconds.
        http_client: Optional pre-built ``httpx.Client`` (kept open;
            the caller owns it).  When ``None`` a short-lived client is
            created per request.
    """

    name = "wms"

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not base_url:
            msg = "WMS base URL must be non-empty"
            raise ValueError(msg)
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._http_client = http_client

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # GetMap
    # ------------------------------------------------------------------

    def get_map(
        self,
        *,
        layer: str,
        bbox: BoundingBox,
        srs: str,
        width: int,
        height: int,
        output_path: str | Path,
        image_format: str = DEFAULT_IMAGE_FORMAT,
    ) -> int:
        """Download a map tile to *output_path*.

        Returns:
            Number of bytes written.

        Raises:
            WmsRequestError: On transport errors, non-200 responses, or a
                ServiceException body.
            TileWriteError: If the file cannot be written.
        """
        params = {
            "SERVICE": "WMS",
            "VERSION": MAP_VERSION,
            "REQUEST": "GetMap",
            "LAYERS": layer,
            "STYLES": "",
            "BBOX": bbox.as_wms_param(),
            "SRS": srs,
            "WIDTH": str(width),
            "HEIGHT": str(height),
            "FORMAT": image_format,
        }
        response = self._get(params, request="GetMap")
        _raise_for_service_exception(response, self.name, request="GetMap")

        path = Path(output_path)
        try:
            path.write_bytes(response.content)
        except OSError as exc:
            msg = f"Failed to write tile {path}: {exc}"
            raise TileWriteError(msg) from exc

        size = len(response.content)
        logger.info("Tile downloaded | layer=%s | bytes=%d | path=%s", layer, size, path)
        return size

    # ------------------------------------------------------------------
    # GetCapabilities
    # ------------------------------------------------------------------

    def raw_capabilities(self) -> str:
        """Return the GetCapabilities XML as text."""
        return self._capabilities_response().text

    def get_capabilities(self) -> WmsCapabilities:
        """Fetch and parse the service's capabilities document.

        Raises:
            WmsRequestError: If the request fails.
            CapabilitiesParseError: If the response is not XML.
        """
        capabilities = parse_capabilities(self._capabilities_response().content)
        logger.info(
            "Capabilities parsed | url=%s | layers=%d | formats=%d",
            self._base_url,
            len(capabilities.layers),
            len(capabilities.formats),
        )
        return capabilities

    # ------------------------------------------------------------------
    # GetFeatureInfo
    # ------------------------------------------------------------------

    def get_feature_info(
        self,
        *,
        layer: str,
        bbox: BoundingBox,
        srs: str,
        width: int,
        height: int,
        pixel_x: int,
        pixel_y: int,
    ) -> str:
        """Return ``text/plain`` feature info at pixel ``(pixel_x, pixel_y)``.

        Raises:
            WmsRequestError: On transport errors, non-200 responses, or a
                ServiceException body.
        """
        params = {
            "SERVICE": "WMS",
            "VERSION": MAP_VERSION,
            "REQUEST": "GetFeatureInfo",
            "LAYERS": layer,
            "STYLES": "",
            "BBOX": bbox.as_wms_param(),
            "SRS": srs,
            "WIDTH": str(width),
            "HEIGHT": str(height),
            "FORMAT": DEFAULT_IMAGE_FORMAT,
            "QUERY_LAYERS": layer,
            "INFO_FORMAT": INFO_FORMAT,
            "X": str(pixel_x),
            "Y": str(pixel_y),
        }
        response = self._get(params, request="GetFeatureInfo")
        _raise_for_service_exception(response, self.name, request="GetFeatureInfo")
        return response.text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _capabilities_response(self) -> httpx.Response:
        params = {
            "SERVICE": "WMS",
            "VERSION": CAPABILITIES_VERSION,
            "REQUEST": "GetCapabilities",
        }
        return self._get(params, request="GetCapabilities")

    def _get(self, params: dict[str, str], *, request: str) -> httpx.Response:
        logger.debug("WMS request | request=%s | url=%s | params=%s", request, self._base_url, params)
        with self._client() as client:
            try:
                response = client.get(
                    self._base_url,
                    params=params,
                    headers={"User-Agent": USER_AGENT},
                )
            except httpx.HTTPError as exc:
                msg = f"{request} request failed: {exc}"
                raise WmsRequestError(provider=self.name, message=msg, retryable=True) from exc

        if response.status_code != 200:
            msg = f"{request} HTTP error: {response.status_code}"
            raise WmsRequestError(
                provider=self.name,
                message=msg,
                status_code=response.status_code,
                retryable=response.status_code in _RETRYABLE_STATUS or response.status_code >= 500,
            )
        return response

    @contextlib.contextmanager
    def _client(self) -> Iterator[httpx.Client]:
        if self._http_client is not None:
            yield self._http_client
            return
        with httpx.Client(
            timeout=self._timeout_s,
            follow_redirects=True,
        ) as client:
            yield client


class WmsFeatureInfoLookup(FeatureInfoLookup):
    """``FeatureInfoLookup`` backed by WMS GetFeatureInfo on one tile.

    The tile geometry (layer, bbox, SRS, size) must match the GetMap
    request the raster came from, so that geographic points map back to
    the same pixel grid.
    """

    name = "wms_feature_info"

    def __init__(
        self,
        client: WmsClient,
        *,
        layer: str,
        bbox: BoundingBox,
        srs: str,
        width: int,
        height: int,
    ) -> None:
        self._client = client
        self._layer = layer
        self._bbox = bbox
        self._srs = srs
        self._width = width
        self._height = height

    def query(self, x: float, y: float) -> str:
        pixel_x, pixel_y = geo_to_pixel(x, y, self._width, self._height, self._bbox)
        logger.info(
            "GetFeatureInfo query | point=(%.6f, %.6f) | pixel=(%d, %d)",
            x,
            y,
            pixel_x,
            pixel_y,
        )
        try:
            return self._client.get_feature_info(
                layer=self._layer,
                bbox=self._bbox,
                srs=self._srs,
                width=self._width,
                height=self._height,
                pixel_x=pixel_x,
                pixel_y=pixel_y,
            )
        except WmsRequestError as exc:
            raise LookupFailedError(
                provider=self.name,
                message=exc.message,
                retryable=exc.retryable,
            ) from exc


# ---------------------------------------------------------------------------
# Capabilities parsing
# ---------------------------------------------------------------------------


def parse_capabilities(content: bytes) -> WmsCapabilities:
    """Parse a WMS 1.1.1 or 1.3.0 capabilities document.

    Elements are matched by local name, so both the namespaced 1.3.0
    schema and the un-namespaced 1.1.1 schema are accepted.

    Raises:
        CapabilitiesParseError: If *content* is not well-formed XML.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root: _Element = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Capabilities response is not valid XML: {exc}"
        raise CapabilitiesParseError(msg) from exc

    service = _first_descendant(root, "Service")
    title = _child_text(service, "Title") if service is not None else ""
    abstract = _child_text(service, "Abstract") if service is not None else ""

    layers: list[WmsLayer] = []
    for element in _descendants(root, "Layer"):
        name = _child_text(element, "Name")
        if not name:
            continue
        queryable = element.get("queryable", "0").strip().lower() in ("1", "true")
        layers.append(WmsLayer(name=name, title=_child_text(element, "Title"), queryable=queryable))

    get_map = _first_descendant(root, "GetMap")
    format_root = get_map if get_map is not None else root
    formats = [
        (el.text or "").strip()
        for el in _descendants(format_root, "Format")
        if (el.text or "").strip()
    ]

    return WmsCapabilities(title=title, abstract=abstract, layers=layers, formats=formats)


def _local_name(element: _Element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def _descendants(element: _Element, name: str) -> Iterator[_Element]:
    for candidate in element.iter():
        if _local_name(candidate) == name:
            yield candidate


def _first_descendant(element: _Element, name: str) -> _Element | None:
    return next(_descendants(element, name), None)


def _child_text(element: _Element, name: str) -> str:
    for child in element:
        if _local_name(child) == name:
            return (child.text or "").strip()
    return ""


def _raise_for_service_exception(response: httpx.Response, provider: str, *, request: str) -> None:
    content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if content_type in _SERVICE_EXCEPTION_TYPES:
        snippet = response.text[:200].strip()
        msg = f"{request} returned a service exception: {snippet}"
        raise WmsRequestError(provider=provider, message=msg, status_code=response.status_code)
