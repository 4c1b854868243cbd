"""Redis key naming conventions for the chart-plot cache layer."""
from __future__ import annotations

import hashlib

_PREFIX = "cp"


# ── Tiles ────────────────────────────────────────────────────────────────

def tile(url: str) -> str:
    """Key for a map tile, by canonical tile URL."""
    h = hashlib.sha256(url.encode()).hexdigest()[:16]
    return f"{_PREFIX}:tile:{h}"
