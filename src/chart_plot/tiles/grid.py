"""Standard web-map (slippy) tile arithmetic."""
from __future__ import annotations

from math import atan, cos, degrees, floor, log, pi, radians, sinh, tan
from typing import Iterator, Tuple


def tile_xy(lat: float, lng: float, zoom: int) -> Tuple[int, int]:
    """Tile column/row containing (lat, lng) at *zoom*."""
    n = 2 ** zoom
    lat_r = radians(lat)
    x = floor((lng + 180.0) / 360.0 * n)
    y = floor((1.0 - log(tan(lat_r) + 1.0 / cos(lat_r)) / pi) / 2.0 * n)
    return x, y


def tile_origin(zoom: int, x: int, y: int) -> Tuple[float, float]:
    """(lat, lng) of the north-west corner of tile (zoom, x, y)."""
    n = 2 ** zoom
    lng = x / n * 360.0 - 180.0
    lat = degrees(atan(sinh(pi * (1 - 2 * y / n))))
    return lat, lng


def tile_center(zoom: int, x: int, y: int) -> Tuple[float, float]:
    north, west = tile_origin(zoom, x, y)
    south, east = tile_origin(zoom, x + 1, y + 1)
    return (north + south) / 2.0, (west + east) / 2.0


def neighborhood(x: int, y: int, radius: int) -> Iterator[Tuple[int, int]]:
    """The (2*radius+1)^2 tiles centred on (x, y)."""
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            yield x + dx, y + dy


def tile_url(template: str, zoom: int, x: int, y: int, subdomain: str = "a") -> str:
    return (
        template.replace("{s}", subdomain)
        .replace("{z}", str(zoom))
        .replace("{x}", str(x))
        .replace("{y}", str(y))
    )
