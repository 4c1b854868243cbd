"""Renderer-agnostic descriptors and the capability interface a map surface implements."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, Union

from chart_plot.core.models import Coordinate


@dataclass(frozen=True)
class Bounds:
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class TileSourceDescriptor:
    url_template: str            # "{z}/{x}/{y}" template, or a data: URI for a single image
    attribution: str
    min_zoom: int = 0
    max_zoom: int = 19
    bounds: Optional[Bounds] = None


@dataclass(frozen=True)
class MarkerDescriptor:
    position: Coordinate
    color: str = "red"
    radius: int = 5
    rotation_deg: Optional[float] = None
    popup: Optional[str] = None


@dataclass(frozen=True)
class PolylineDescriptor:
    points: Tuple[Coordinate, ...]
    color: str = "red"
    weight: int = 3
    dash_array: Optional[str] = None


LayerDescriptor = Union[TileSourceDescriptor, MarkerDescriptor, PolylineDescriptor]


class MapSurface(Protocol):
    """The three calls the core needs from a map renderer.

    ``add_layer`` returns an opaque handle the caller hands back to
    ``remove_layer``/``set_content``.
    """

    def add_layer(self, descriptor: LayerDescriptor) -> Any: ...

    def remove_layer(self, handle: Any) -> None: ...

    def set_content(self, handle: Any, content: str) -> None: ...
