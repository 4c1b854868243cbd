"""Synthetic tiles: the blank 1x1 source and the per-tile "missing chart" placeholder."""
from __future__ import annotations

import base64
import io
from math import cos, radians, sin

from PIL import Image, ImageDraw, ImageFont

from chart_plot.core.geodesy import format_sexagesimal
from chart_plot.core.models import Coordinate
from chart_plot.tiles.grid import tile_center

TRANSPARENT_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAACklEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)
TRANSPARENT_PNG = base64.b64decode(TRANSPARENT_PNG_B64)
TRANSPARENT_DATA_URI = f"data:image/png;base64,{TRANSPARENT_PNG_B64}"

TILE_SIZE = 256
WATER = (74, 144, 226)
WHITE = (255, 255, 255)
GRID_STEP = 32


def _compass_rose(draw: ImageDraw.ImageDraw, cx: int, cy: int, r: int, font) -> None:
    draw.ellipse((cx - r, cy - r, cx + r, cy + r), outline=WHITE, width=1)
    for brg in range(0, 360, 45):
        length = r if brg % 90 == 0 else r * 0.6
        a = radians(brg)
        draw.line((cx, cy, cx + length * sin(a), cy - length * cos(a)), fill=WHITE, width=1)
    # North arrow head
    draw.polygon([(cx, cy - r - 6), (cx - 4, cy - r + 2), (cx + 4, cy - r + 2)], fill=WHITE)
    draw.text((cx - 3, cy - r - 18), "N", fill=WHITE, font=font)


def render_placeholder_tile(z: int, x: int, y: int, size: int = TILE_SIZE) -> bytes:
    """PNG for a chart tile that is missing: water, grid, tile label, compass rose."""
    img = Image.new("RGB", (size, size), WATER)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    for i in range(0, size, GRID_STEP):
        draw.line((i, 0, i, size), fill=WHITE, width=1)
        draw.line((0, i, size, i), fill=WHITE, width=1)

    lat, lng = tile_center(z, x, y)
    label = format_sexagesimal(Coordinate(lat=lat, lng=lng))
    draw.text((10, 10), "Nautical Chart", fill=WHITE, font=font)
    draw.text((10, 26), f"{z}/{x}/{y}", fill=WHITE, font=font)
    draw.text((10, 42), label, fill=WHITE, font=font)
    draw.text((10, 58), "Placeholder Tile", fill=WHITE, font=font)

    _compass_rose(draw, size - 48, size - 48, 28, font)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
