"""Web Mercator projection between geographic and tile-grid coordinates.

Provides pure conversion functions for the tiled map:
- Longitude/latitude to Mercator x/y (radians-based)
- Geographic point to fractional and integer tile coordinates at a zoom
- Fractional tile coordinates back to a geographic point
- Vectorized projection of vertex arrays (NumPy) for shape rendering

At zoom z the world is a square grid of 2^z x 2^z tiles; tile (0, 0) is the
north-west corner, x grows eastward and y grows southward. Tile coordinates
double with every zoom step.

No wraparound handling at the antimeridian; latitudes are clamped to the
Web Mercator limit (MapConfig.MAX_LATITUDE) so every input projects.
"""

from math import atan, degrees, floor, log, pi, radians, sinh, tan

import numpy as np

from geobrowser.constants import MapConfig
from geobrowser.model.geo_point import FractionalTileCoord, GeoPoint, TileCoord


def _clamp_lat(lat: float) -> float:
    return max(-MapConfig.MAX_LATITUDE, min(MapConfig.MAX_LATITUDE, lat))


class Projection:
    """Static methods for Web Mercator tile math.

    Coordinates are in decimal degrees (WGS84).
    Tile coordinates are in tile units at the requested zoom.
    """

    @staticmethod
    def lon_to_x(lon: float) -> float:
        """Mercator x for a longitude (radians)."""
        return radians(lon)

    @staticmethod
    def lat_to_y(lat: float) -> float:
        """Mercator y for a latitude: ln(tan(pi/4 + lat/2)).

        Latitude is clamped to +-MAX_LATITUDE so the logarithm stays finite.
        """
        return log(tan(pi / 4 + radians(_clamp_lat(lat)) / 2))

    @staticmethod
    def geo_to_tile_frac(lon: float, lat: float, zoom: int) -> FractionalTileCoord:
        """Project a geographic point to continuous tile coordinates.

        Args:
            lon: Longitude in decimal degrees
            lat: Latitude in decimal degrees
            zoom: Zoom level

        Returns:
            FractionalTileCoord at the given zoom.
        """
        tiles = 2**zoom
        x = (Projection.lon_to_x(lon) + pi) * tiles / (2 * pi)
        y = (pi - Projection.lat_to_y(lat)) * tiles / (2 * pi)
        return FractionalTileCoord(x=x, y=y)

    @staticmethod
    def geo_to_tile(lon: float, lat: float, zoom: int) -> TileCoord:
        """Integer tile containing a geographic point, clamped to [0, 2^zoom - 1]."""
        tiles = 2**zoom
        frac = Projection.geo_to_tile_frac(lon=lon, lat=lat, zoom=zoom)
        x = min(max(floor(frac.x), 0), tiles - 1)
        y = min(max(floor(frac.y), 0), tiles - 1)
        return TileCoord(x=x, y=y, z=zoom)

    @staticmethod
    def tile_frac_to_geo(x: float, y: float, zoom: int) -> GeoPoint:
        """Inverse projection: continuous tile coordinates to a geographic point."""
        tiles = 2**zoom
        lon = degrees(x * 2 * pi / tiles - pi)
        lat = degrees(atan(sinh(pi - y * 2 * pi / tiles)))
        return GeoPoint(lon=lon, lat=lat)

    @staticmethod
    def project_vertices(lon_lat: np.ndarray, zoom: int) -> np.ndarray:
        """Vectorized geo_to_tile_frac for an (N, 2) array of [lon, lat] rows.

        Returns:
            (N, 2) float array of [x, y] fractional tile coordinates.
        """
        coords = np.asarray(lon_lat, dtype=float).reshape(-1, 2)
        tiles = 2**zoom
        lat = np.clip(coords[:, 1], -MapConfig.MAX_LATITUDE, MapConfig.MAX_LATITUDE)
        x = (np.radians(coords[:, 0]) + pi) * tiles / (2 * pi)
        y = (pi - np.log(np.tan(pi / 4 + np.radians(lat) / 2))) * tiles / (2 * pi)
        return np.column_stack([x, y])
