"""Pure tile-space math.

- Projection: lon/lat <-> fractional/integer tile coordinates (Web Mercator)
- TileGridResolver: tile range of an operation area, visible tiles, tile URLs
"""

from geobrowser.core.projection import Projection
from geobrowser.core.tile_grid import TileGridResolver

__all__ = [
    "Projection",
    "TileGridResolver",
]
