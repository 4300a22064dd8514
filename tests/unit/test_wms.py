"""Tests for the WMS client, GetFeatureInfo lookup and capabilities parser.

HTTP is exercised through ``httpx.MockTransport``; no network access.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from wms_vectorizer.core.constants import USER_AGENT
from wms_vectorizer.models.raster import BoundingBox
from wms_vectorizer.providers.base import LookupFailedError, WmsRequestError
from wms_vectorizer.providers.wms import (
    CapabilitiesParseError,
    WmsClient,
    WmsFeatureInfoLookup,
    parse_capabilities,
)

BASE_URL = "https://maps.example.test/wms"

CAPABILITIES_130 = b"""<?xml version="1.0" encoding="UTF-8"?>
<WMS_Capabilities version="1.3.0" xmlns="http://www.opengis.net/wms">
  <Service>
    <Name>WMS</Name>
    <Title>Geology Survey</Title>
    <Abstract>Bedrock map</Abstract>
  </Service>
  <Capability>
    <Request>
      <GetCapabilities><Format>text/xml</Format></GetCapabilities>
      <GetMap><Format>image/png</Format><Format>image/jpeg</Format></GetMap>
      <GetFeatureInfo><Format>text/plain</Format></GetFeatureInfo>
    </Request>
    <Layer>
      <Title>Root</Title>
      <Layer queryable="1"><Name>geology</Name><Title>Bedrock geology</Title></Layer>
      <Layer><Name>basemap</Name><Title>Base</Title></Layer>
    </Layer>
  </Capability>
</WMS_Capabilities>
"""

CAPABILITIES_111 = b"""<?xml version="1.0"?>
<WMT_MS_Capabilities version="1.1.1">
  <Service><Title>Legacy</Title></Service>
  <Capability>
    <Layer queryable="true"><Name>soils</Name></Layer>
  </Capability>
</WMT_MS_Capabilities>
"""


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> WmsClient:
    return WmsClient(BASE_URL, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


class Recorder:
    """MockTransport handler that records requests and returns a canned response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def params(self) -> httpx.QueryParams:
        return self.requests[-1].url.params


class TestWmsClientInit:
    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            WmsClient("")

    def test_injected_client_sends_user_agent(self) -> None:
        recorder = Recorder(httpx.Response(200, content=CAPABILITIES_130))
        _client(recorder).raw_capabilities()
        assert recorder.requests[-1].headers["User-Agent"] == USER_AGENT


class TestGetMap:
    def test_writes_tile(self, tmp_path: Path, geo_bbox: BoundingBox) -> None:
        recorder = Recorder(httpx.Response(200, content=b"PNGDATA", headers={"Content-Type": "image/png"}))
        out = tmp_path / "tile.png"

        size = _client(recorder).get_map(
            layer="geology",
            bbox=geo_bbox,
            srs="EPSG:4326",
            width=256,
            height=128,
            output_path=out,
        )

        assert size == 7
        assert out.read_bytes() == b"PNGDATA"
        params = recorder.params
        assert params["SERVICE"] == "WMS"
        assert params["VERSION"] == "1.1.1"
        assert params["REQUEST"] == "GetMap"
        assert params["LAYERS"] == "geology"
        assert params["BBOX"] == "-1.0,50.0,1.0,52.0"
        assert params["SRS"] == "EPSG:4326"
        assert params["WIDTH"] == "256"
        assert params["HEIGHT"] == "128"
        assert params["FORMAT"] == "image/png"

    def test_service_exception_body(self, tmp_path: Path, geo_bbox: BoundingBox) -> None:
        recorder = Recorder(
            httpx.Response(
                200,
                content=b"<ServiceExceptionReport>LayerNotDefined</ServiceExceptionReport>",
                headers={"Content-Type": "application/vnd.ogc.se_xml"},
            )
        )
        out = tmp_path / "tile.png"
        with pytest.raises(WmsRequestError, match="GetMap returned a service exception"):
            _client(recorder).get_map(
                layer="nope", bbox=geo_bbox, srs="EPSG:4326", width=1, height=1, output_path=out
            )
        assert not out.exists()

    @pytest.mark.parametrize(("status", "retryable"), [(404, False), (400, False), (503, True), (500, True)])
    def test_http_errors(self, tmp_path: Path, geo_bbox: BoundingBox, status: int, retryable: bool) -> None:
        recorder = Recorder(httpx.Response(status))
        with pytest.raises(WmsRequestError) as exc_info:
            _client(recorder).get_map(
                layer="geology",
                bbox=geo_bbox,
                srs="EPSG:4326",
                width=1,
                height=1,
                output_path=tmp_path / "t.png",
            )
        assert exc_info.value.status_code == status
        assert exc_info.value.retryable is retryable

    def test_transport_error_is_retryable(self, tmp_path: Path, geo_bbox: BoundingBox) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(WmsRequestError) as exc_info:
            _client(handler).get_map(
                layer="geology",
                bbox=geo_bbox,
                srs="EPSG:4326",
                width=1,
                height=1,
                output_path=tmp_path / "t.png",
            )
        assert exc_info.value.retryable is True
        assert exc_info.value.status_code is None


class TestCapabilities:
    def test_get_capabilities(self) -> None:
        recorder = Recorder(httpx.Response(200, content=CAPABILITIES_130))
        caps = _client(recorder).get_capabilities()

        assert recorder.params["VERSION"] == "1.3.0"
        assert recorder.params["REQUEST"] == "GetCapabilities"
        assert caps.title == "Geology Survey"
        assert caps.abstract == "Bedrock map"
        assert [layer.name for layer in caps.layers] == ["geology", "basemap"]
        assert [layer.name for layer in caps.queryable_layers] == ["geology"]
        assert caps.formats == ["image/png", "image/jpeg"]

    def test_raw_capabilities(self) -> None:
        recorder = Recorder(httpx.Response(200, content=CAPABILITIES_130))
        assert "<WMS_Capabilities" in _client(recorder).raw_capabilities()

    def test_parse_unnamespaced_111(self) -> None:
        caps = parse_capabilities(CAPABILITIES_111)
        assert caps.title == "Legacy"
        assert caps.layers[0].name == "soils"
        assert caps.layers[0].queryable is True
        assert caps.formats == []

    def test_parse_invalid_xml(self) -> None:
        with pytest.raises(CapabilitiesParseError):
            parse_capabilities(b"<html><body>oops")


class TestGetFeatureInfo:
    def test_request_params(self, pixel_bbox: BoundingBox) -> None:
        recorder = Recorder(httpx.Response(200, text="Sandstone unit, Jurassic"))
        text = _client(recorder).get_feature_info(
            layer="geology",
            bbox=pixel_bbox,
            srs="EPSG:4326",
            width=16,
            height=16,
            pixel_x=3,
            pixel_y=4,
        )
        assert text == "Sandstone unit, Jurassic"
        params = recorder.params
        assert params["REQUEST"] == "GetFeatureInfo"
        assert params["QUERY_LAYERS"] == "geology"
        assert params["INFO_FORMAT"] == "text/plain"
        assert params["X"] == "3"
        assert params["Y"] == "4"

    def test_service_exception_body(self, pixel_bbox: BoundingBox) -> None:
        recorder = Recorder(
            httpx.Response(
                200,
                content=b"<ServiceExceptionReport>LayerNotQueryable</ServiceExceptionReport>",
                headers={"Content-Type": "application/vnd.ogc.se_xml"},
            )
        )
        with pytest.raises(WmsRequestError, match="GetFeatureInfo returned a service exception"):
            _client(recorder).get_feature_info(
                layer="basemap",
                bbox=pixel_bbox,
                srs="EPSG:4326",
                width=16,
                height=16,
                pixel_x=0,
                pixel_y=0,
            )


class TestWmsFeatureInfoLookup:
    def test_converts_point_to_pixel(self, pixel_bbox: BoundingBox) -> None:
        recorder = Recorder(httpx.Response(200, text="Forest"))
        lookup = WmsFeatureInfoLookup(
            _client(recorder), layer="landcover", bbox=pixel_bbox, srs="EPSG:4326", width=16, height=16
        )

        assert lookup(3.5, 12.5) == "Forest"
        assert recorder.params["X"] == "3"
        assert recorder.params["Y"] == "3"

    def test_request_failure_becomes_lookup_failed(self, pixel_bbox: BoundingBox) -> None:
        recorder = Recorder(httpx.Response(502))
        lookup = WmsFeatureInfoLookup(
            _client(recorder), layer="landcover", bbox=pixel_bbox, srs="EPSG:4326", width=16, height=16
        )
        with pytest.raises(LookupFailedError) as exc_info:
            lookup.query(1.0, 1.0)
        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.__cause__, WmsRequestError)

    def test_service_exception_becomes_lookup_failed(self, pixel_bbox: BoundingBox) -> None:
        recorder = Recorder(
            httpx.Response(
                200,
                content=b"<ServiceExceptionReport>LayerNotQueryable</ServiceExceptionReport>",
                headers={"Content-Type": "text/xml"},
            )
        )
        lookup = WmsFeatureInfoLookup(
            _client(recorder), layer="basemap", bbox=pixel_bbox, srs="EPSG:4326", width=16, height=16
        )
        with pytest.raises(LookupFailedError):
            lookup.query(1.0, 1.0)
