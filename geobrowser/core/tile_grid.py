"""Tile grid resolution for the pannable map raster.

Given the operation area (top-left and bottom-right GeoPoints) and a zoom,
computes the integer tile range that forms the raster, and which of its
tiles intersect the visible viewport. Tile URL derivation from a server
template lives here too; fetching the image is the renderer's job.
"""

from collections.abc import Iterator

from geobrowser.constants import MapConfig, TileConfig
from geobrowser.core.projection import Projection
from geobrowser.model.geo_point import GeoPoint, PixelBounds, TileCoord, TileRange


class TileGridResolver:
    """Static methods mapping geographic extents and pixel bounds to tiles."""

    @staticmethod
    def bounding_tile_range(top_left: GeoPoint, bottom_right: GeoPoint, zoom: int) -> TileRange:
        """Integer tile box covering the operation area at a zoom.

        Args:
            top_left: North-west corner of the operation area
            bottom_right: South-east corner of the operation area
            zoom: Zoom level

        Returns:
            TileRange whose span is the raster size in tiles.
        """
        min_tile = Projection.geo_to_tile(lon=top_left.lon, lat=top_left.lat, zoom=zoom)
        max_tile = Projection.geo_to_tile(lon=bottom_right.lon, lat=bottom_right.lat, zoom=zoom)
        return TileRange(
            min_x=min_tile.x,
            min_y=min_tile.y,
            max_x=max_tile.x,
            max_y=max_tile.y,
            z=zoom,
        )

    @staticmethod
    def tile_footprint_px(tile: TileCoord, tile_range: TileRange) -> PixelBounds:
        """Pixel rectangle a tile occupies inside the raster."""
        left = (tile.x - tile_range.min_x) * MapConfig.TILE_SIZE
        top = (tile.y - tile_range.min_y) * MapConfig.TILE_SIZE
        return PixelBounds(
            min_x=left,
            min_y=top,
            max_x=left + MapConfig.TILE_SIZE,
            max_y=top + MapConfig.TILE_SIZE,
        )

    @staticmethod
    def visible_tiles(tile_range: TileRange, viewport_bounds: PixelBounds) -> Iterator[TileCoord]:
        """Lazily yield every tile of the range whose footprint meets the viewport.

        Tiles are yielded row by row (y outer, x inner). The generator is
        cheap; callers regenerate it on every viewport change.
        """
        for y in range(tile_range.min_y, tile_range.max_y + 1):
            for x in range(tile_range.min_x, tile_range.max_x + 1):
                tile = TileCoord(x=x, y=y, z=tile_range.z)
                if TileGridResolver.tile_footprint_px(tile=tile, tile_range=tile_range).intersects(viewport_bounds):
                    yield tile

    @staticmethod
    def tile_url(tile: TileCoord, template: str = TileConfig.URL_TEMPLATE) -> str:
        """Fill a {z}/{x}/{y} tile server template."""
        return template.format(z=tile.z, x=tile.x, y=tile.y)
