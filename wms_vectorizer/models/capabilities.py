"""Pydantic model of a WMS GetCapabilities response.

Only the parts the CLI reports are modelled: the service title and
abstract, the advertised layers (with their ``queryable`` flag, which
decides whether GetFeatureInfo enrichment can work), and the supported
GetMap output formats.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WmsLayer(BaseModel):
    """A named layer advertised by a WMS service.

    Attributes:
        name: Layer identifier used in ``LAYERS=`` / ``QUERY_LAYERS=``.
        title: Human-readable layer title.
        queryable: Whether the layer answers GetFeatureInfo requests.
    """

    name: str
    title: str = ""
    queryable: bool = False


class WmsCapabilities(BaseModel):
    """Summary of a WMS service's capabilities document."""

    title: str = ""
    abstract: str = ""
    layers: list[WmsLayer] = Field(default_factory=list)
    formats: list[str] = Field(default_factory=list)

    @property
    def queryable_layers(self) -> list[WmsLayer]:
        return [layer for layer in self.layers if layer.queryable]

    def layer(self, name: str) -> WmsLayer | None:
        """Return the layer called *name*, or ``None``."""
        for candidate in self.layers:
            if candidate.name == name:
                return candidate
        return None

    def to_json(self, *, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)
