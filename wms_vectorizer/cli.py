"""Command-line entry point: ``wms-vectorizer``.

Sub-commands:

- ``capabilities``  : describe a WMS service (parsed JSON or raw XML).
- ``download``      : GetMap a tile and write ``.wld``/``.prj`` sidecars.
- ``vectorize``     : download, georeference, then vectorize the tile,
  classifying features through GetFeatureInfo unless ``--no-enrich``.
- ``vectorize-file``: vectorize a local raster (no lookup).

Every ``PipelineError`` is reported on stderr and mapped to exit code 1.
"""

from __future__ import annotations

import argparse
import logging
import sys

from wms_vectorizer import __version__
from wms_vectorizer.activities.georeference import georeference_image
from wms_vectorizer.core.config import VectorizerConfig
from wms_vectorizer.core.constants import (
    DEFAULT_IMAGE_FORMAT,
    DEFAULT_TILE_HEIGHT,
    DEFAULT_TILE_WIDTH,
    GEOJSON_SUFFIX,
)
from wms_vectorizer.core.exceptions import PipelineError, ValidationError
from wms_vectorizer.models.raster import BoundingBox
from wms_vectorizer.orchestrators.vectorize_pipeline import run_vectorization
from wms_vectorizer.providers.raster_file import RasterFileImageSource
from wms_vectorizer.providers.wms import WmsClient, WmsFeatureInfoLookup

logger = logging.getLogger("wms_vectorizer.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class InvalidTileSizeError(ValidationError):
    """Raised when a requested tile width or height is not positive."""

    default_stage = "parse_arguments"
    default_code = "INVALID_TILE_SIZE"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="wms-vectorizer",
        description="Download WMS tiles and vectorize them into GeoJSON.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    capabilities = subparsers.add_parser("capabilities", help="Describe a WMS service")
    capabilities.add_argument("--url", "-u", required=True, help="WMS service URL")
    capabilities.add_argument(
        "--raw-xml",
        action="store_true",
        help="Print the raw GetCapabilities XML instead of a JSON summary",
    )
    capabilities.set_defaults(handler=_cmd_capabilities)

    download = subparsers.add_parser("download", help="Download and georeference a tile")
    _add_tile_arguments(download)
    download.set_defaults(handler=_cmd_download)

    vectorize = subparsers.add_parser(
        "vectorize", help="Download, georeference and vectorize a tile"
    )
    _add_tile_arguments(vectorize)
    vectorize.add_argument(
        "--no-enrich",
        action="store_true",
        help="Skip GetFeatureInfo classification",
    )
    vectorize.set_defaults(handler=_cmd_vectorize)

    vectorize_file = subparsers.add_parser(
        "vectorize-file", help="Vectorize a local raster file"
    )
    vectorize_file.add_argument("--input", "-i", required=True, help="Input raster path")
    vectorize_file.add_argument(
        "--bbox", "-b", required=True, help="Extent covered by the raster (minx,miny,maxx,maxy)"
    )
    vectorize_file.add_argument("--srs", "-s", default=None, help="CRS label for the output")
    vectorize_file.add_argument("--output", "-o", required=True, help="Output GeoJSON path")
    vectorize_file.set_defaults(handler=_cmd_vectorize_file)

    return parser


def _add_tile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--url", "-u", required=True, help="WMS service URL")
    parser.add_argument("--layer", "-l", required=True, help="Layer name to download")
    parser.add_argument(
        "--bbox", "-b", required=True, help="Bounding box (minx,miny,maxx,maxy)"
    )
    parser.add_argument("--srs", "-s", default=None, help="Spatial reference system")
    parser.add_argument("--width", "-W", type=int, default=DEFAULT_TILE_WIDTH, help="Image width in pixels")
    parser.add_argument("--height", "-H", type=int, default=DEFAULT_TILE_HEIGHT, help="Image height in pixels")
    parser.add_argument("--format", "-f", dest="image_format", default=DEFAULT_IMAGE_FORMAT, help="Image format")
    parser.add_argument("--output", "-o", required=True, help="Output tile path")


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------


def _cmd_capabilities(args: argparse.Namespace, config: VectorizerConfig) -> int:
    client = WmsClient(args.url, timeout_s=config.http_timeout_s)
    if args.raw_xml:
        print(client.raw_capabilities())
    else:
        print(client.get_capabilities().to_json())
    return 0


def _cmd_download(args: argparse.Namespace, config: VectorizerConfig) -> int:
    _download_tile(args, config)
    return 0


def _cmd_vectorize(args: argparse.Namespace, config: VectorizerConfig) -> int:
    client, bbox, srs = _download_tile(args, config)

    lookup = None
    if not args.no_enrich:
        lookup = WmsFeatureInfoLookup(
            client,
            layer=args.layer,
            bbox=bbox,
            srs=srs,
            width=args.width,
            height=args.height,
        )

    summary = run_vectorization(
        args.output,
        args.bbox,
        srs,
        args.output + GEOJSON_SUFFIX,
        image_source=RasterFileImageSource(),
        lookup=lookup,
        config=config,
    )
    _report(summary)
    return 0


def _cmd_vectorize_file(args: argparse.Namespace, config: VectorizerConfig) -> int:
    summary = run_vectorization(
        args.input,
        args.bbox,
        args.srs or config.default_srs,
        args.output,
        image_source=RasterFileImageSource(),
        config=config,
    )
    _report(summary)
    return 0


def _download_tile(
    args: argparse.Namespace,
    config: VectorizerConfig,
) -> tuple[WmsClient, BoundingBox, str]:
    for name in ("width", "height"):
        value = getattr(args, name)
        if value < 1:
            msg = f"Invalid tile {name} {value}: must be >= 1"
            raise InvalidTileSizeError(msg)
    bbox = BoundingBox.parse(args.bbox)
    srs = args.srs or config.default_srs
    client = WmsClient(args.url, timeout_s=config.http_timeout_s)
    client.get_map(
        layer=args.layer,
        bbox=bbox,
        srs=srs,
        width=args.width,
        height=args.height,
        output_path=args.output,
        image_format=args.image_format,
    )
    georeference_image(args.output, bbox, srs, width=args.width, height=args.height)
    return client, bbox, srs


def _report(summary: dict) -> None:
    print(
        f"Wrote {summary['feature_count']} features "
        f"({summary['classified_count']} classified) to {summary['output_path']}"
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        config = VectorizerConfig.from_env()
        return args.handler(args, config)
    except PipelineError as exc:
        logger.debug("Command failed | command=%s | error=%s", args.command, exc.to_error_dict())
        print(f"Error ({exc.code}): {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
