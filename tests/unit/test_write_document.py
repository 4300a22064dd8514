"""Tests for GeoJSON document rendering and atomic writes."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from wms_vectorizer.activities.write_document import (
    DocumentWriteError,
    escape_string,
    render_document,
    write_document,
)
from wms_vectorizer.models.feature import Feature, VectorizationResult
from wms_vectorizer.models.raster import BoundingBox, Color

BROWN = Color(180, 120, 80)

EMPTY_DOCUMENT = (
    "{\n"
    '  "type": "FeatureCollection",\n'
    '  "crs": {\n'
    '    "type": "name",\n'
    '    "properties": {\n'
    '      "name": "EPSG:4326"\n'
    "    }\n"
    "  },\n"
    '  "bbox": [0.000000, 0.000000, 16.000000, 16.000000],\n'
    '  "features": [\n'
    "\n"
    "  ]\n"
    "}\n"
)


def _result(*features: Feature, crs: str = "EPSG:4326") -> VectorizationResult:
    return VectorizationResult(bbox=BoundingBox(0.0, 0.0, 16.0, 16.0), crs=crs, features=list(features))


class TestRenderDocument:
    def test_empty_collection_layout(self) -> None:
        assert render_document(_result()) == EMPTY_DOCUMENT

    def test_empty_collection_is_valid_json(self) -> None:
        doc = json.loads(render_document(_result()))
        assert doc["type"] == "FeatureCollection"
        assert doc["features"] == []
        assert doc["crs"]["properties"]["name"] == "EPSG:4326"

    def test_bbox_precision(self) -> None:
        result = VectorizationResult(bbox=BoundingBox(-1.23456789, 50.0, 1.0, 52.5), crs="EPSG:4326")
        assert '"bbox": [-1.234568, 50.000000, 1.000000, 52.500000]' in render_document(result)

    def test_single_polygon_layout(self) -> None:
        feature = Feature(dominant_color=BROWN, polygons=[[(1.5, 2.25)]])
        expected_feature = (
            "    {\n"
            '      "type": "Feature",\n'
            '      "properties": {\n'
            '        "feature_id": 0,\n'
            '        "dominant_color": "rgb(180,120,80)",\n'
            '        "polygon_count": 1\n'
            "      },\n"
            '      "geometry": {\n'
            '        "type": "Polygon",\n'
            '        "coordinates": [[\n'
            "          [1.50000000, 2.25000000],\n"
            "          [1.50000000, 2.25000000]\n"
            "        ]]\n"
            "      }\n"
            "    }"
        )
        text = render_document(_result(feature))
        assert '  "features": [\n' + expected_feature + "\n  ]\n}\n" in text

    def test_ring_is_closed_even_when_already_closed(self) -> None:
        ring = [(0.0, 0.0), (1.0, 0.0), (0.0, 0.0)]
        doc = json.loads(render_document(_result(Feature(dominant_color=BROWN, polygons=[ring]))))
        coords = doc["features"][0]["geometry"]["coordinates"][0]
        assert coords == [[0.0, 0.0], [1.0, 0.0], [0.0, 0.0], [0.0, 0.0]]

    def test_multiple_polygons_are_multipolygon(self) -> None:
        feature = Feature(
            dominant_color=BROWN,
            polygons=[[(0.0, 0.0), (1.0, 0.0)], [(5.0, 5.0), (6.0, 5.0)]],
        )
        doc = json.loads(render_document(_result(feature)))
        geometry = doc["features"][0]["geometry"]
        assert geometry["type"] == "MultiPolygon"
        assert geometry["coordinates"] == [
            [[[0.0, 0.0], [1.0, 0.0], [0.0, 0.0]]],
            [[[5.0, 5.0], [6.0, 5.0], [5.0, 5.0]]],
        ]
        assert doc["features"][0]["properties"]["polygon_count"] == 2

    def test_feature_without_polygons_is_empty_multipolygon(self) -> None:
        doc = json.loads(render_document(_result(Feature(dominant_color=BROWN))))
        geometry = doc["features"][0]["geometry"]
        assert geometry == {"type": "MultiPolygon", "coordinates": []}

    def test_property_order_and_ids(self) -> None:
        annotated = Feature(
            dominant_color=BROWN,
            polygons=[[(0.0, 0.0)]],
            classification="Sandstone",
            temporal_info="Jurassic",
            unit_name="Corallian",
            feature_info="Sandstone unit, Jurassic",
        )
        plain = Feature(dominant_color=Color(1, 2, 3), polygons=[[(0.0, 0.0)]])
        doc = json.loads(render_document(_result(annotated, plain)))

        first, second = doc["features"]
        assert list(first["properties"]) == [
            "feature_id",
            "dominant_color",
            "classification",
            "temporal_info",
            "unit_name",
            "wms_info",
            "polygon_count",
        ]
        assert first["properties"]["wms_info"] == "Sandstone unit, Jurassic"
        assert second["properties"] == {
            "feature_id": 1,
            "dominant_color": "rgb(1,2,3)",
            "polygon_count": 1,
        }

    def test_lookup_text_is_escaped(self) -> None:
        info = 'name = "Chalk"\r\nage = Cretaceous'
        feature = Feature(dominant_color=BROWN, polygons=[[(0.0, 0.0)]], feature_info=info)
        doc = json.loads(render_document(_result(feature)))
        assert doc["features"][0]["properties"]["wms_info"] == info

    def test_coordinate_precision(self) -> None:
        feature = Feature(dominant_color=BROWN, polygons=[[(0.123456789, -45.0)]])
        assert "[0.12345679, -45.00000000]" in render_document(_result(feature))


class TestEscapeString:
    def test_escapes_only_quote_newline_cr(self) -> None:
        assert escape_string('a"b\nc\rd') == 'a\\"b\\nc\\rd'

    def test_backslash_and_tab_untouched(self) -> None:
        assert escape_string("a\\b\tc") == "a\\b\tc"


class TestWriteDocument:
    def test_writes_file(self, tmp_path: Path) -> None:
        feature = Feature(dominant_color=BROWN, polygons=[[(0.0, 0.0), (1.0, 1.0)]])
        out = write_document(_result(feature), tmp_path / "out.geojson")

        assert out == tmp_path / "out.geojson"
        doc = json.loads(out.read_text(encoding="utf-8"))
        assert len(doc["features"]) == 1
        assert [p.name for p in tmp_path.iterdir()] == ["out.geojson"]

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "out.geojson"
        target.write_text("stale", encoding="utf-8")
        write_document(_result(), target)
        assert target.read_text(encoding="utf-8") == EMPTY_DOCUMENT

    def test_missing_directory_raises(self, tmp_path: Path) -> None:
        target = tmp_path / "missing" / "out.geojson"
        with pytest.raises(DocumentWriteError) as exc_info:
            write_document(_result(), target)
        assert exc_info.value.correlation_id == str(target)
        assert exc_info.value.code == "DOCUMENT_WRITE_FAILED"

    def test_failed_move_leaves_no_partial_output(self, tmp_path: Path) -> None:
        with (
            patch(
                "wms_vectorizer.activities.write_document.os.replace",
                side_effect=OSError("disk full"),
            ),
            pytest.raises(DocumentWriteError, match="disk full"),
        ):
            write_document(_result(), tmp_path / "out.geojson")
        assert list(tmp_path.iterdir()) == []
