"""Coordinate value types shared by projection, tiles and viewport.

Three coordinate spaces are in play:
- Geographic: GeoPoint (lon, lat) in WGS84 degrees
- Tile grid: TileCoord (integer address) and FractionalTileCoord (sub-tile position)
- Pixel: PixelPoint / PixelSize / PixelBounds, relative to the tile raster origin

All types are immutable values.
"""

from dataclasses import dataclass

from geobrowser.constants import MapConfig


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate in decimal degrees.

    Attributes:
        lon: Longitude in decimal degrees
        lat: Latitude in decimal degrees

    Example:
        point = GeoPoint(lon=-70.66, lat=-33.56)
    """

    lon: float
    lat: float

    @classmethod
    def from_lon_lat(cls, coordinate: "tuple[float, float] | list[float]") -> "GeoPoint":
        """Create GeoPoint from a [lon, lat] pair."""
        return cls(lon=float(coordinate[0]), lat=float(coordinate[1]))

    def __repr__(self) -> str:
        return f"GeoPoint(lon={self.lon:.6f}, lat={self.lat:.6f})"


@dataclass(frozen=True)
class TileCoord:
    """Integer tile-grid address at zoom z. Invariant: 0 <= x, y < 2^z."""

    x: int
    y: int
    z: int


@dataclass(frozen=True)
class FractionalTileCoord:
    """Continuous tile-grid position with sub-tile precision."""

    x: float
    y: float

    def scaled(self, factor: float) -> "FractionalTileCoord":
        return FractionalTileCoord(x=self.x * factor, y=self.y * factor)


@dataclass(frozen=True)
class PixelPoint:
    """Pixel position relative to the tile raster's top-left corner."""

    x: float
    y: float

    def __add__(self, other: "PixelPoint") -> "PixelPoint":
        return PixelPoint(x=self.x + other.x, y=self.y + other.y)


@dataclass(frozen=True)
class PixelSize:
    """Width and height of a pixel area."""

    width: float
    height: float

    @property
    def half(self) -> PixelPoint:
        return PixelPoint(x=self.width / 2, y=self.height / 2)


@dataclass(frozen=True)
class PixelBounds:
    """Axis-aligned pixel rectangle (inclusive edges)."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def intersects(self, other: "PixelBounds") -> bool:
        """Check overlap; touching edges count as intersecting."""
        return (
            self.min_x <= other.max_x
            and self.max_x >= other.min_x
            and self.min_y <= other.max_y
            and self.max_y >= other.min_y
        )


@dataclass(frozen=True)
class TileRange:
    """Integer tile bounding box covering the operation area at one zoom.

    The range defines the fixed raster the viewport pans over: its origin
    (min_x, min_y) maps to pixel (0, 0) and its span times TILE_SIZE is the
    pannable content size.
    """

    min_x: int
    min_y: int
    max_x: int
    max_y: int
    z: int

    @property
    def x_span(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def y_span(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def origin(self) -> FractionalTileCoord:
        """Tile-space position of the raster's top-left corner."""
        return FractionalTileCoord(x=float(self.min_x), y=float(self.min_y))

    @property
    def content_size_px(self) -> PixelSize:
        """Pixel size of the full tile raster."""
        return PixelSize(
            width=self.x_span * MapConfig.TILE_SIZE,
            height=self.y_span * MapConfig.TILE_SIZE,
        )


@dataclass(frozen=True)
class GeoBounds:
    """Geographic extent of the operation area."""

    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @classmethod
    def from_corners(cls, top_left: GeoPoint, bottom_right: GeoPoint) -> "GeoBounds":
        return cls(
            min_lon=top_left.lon,
            max_lon=bottom_right.lon,
            min_lat=bottom_right.lat,
            max_lat=top_left.lat,
        )

    def contains(self, point: GeoPoint) -> bool:
        return self.min_lon <= point.lon <= self.max_lon and self.min_lat <= point.lat <= self.max_lat
