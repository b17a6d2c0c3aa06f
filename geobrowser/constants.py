"""Configuration constants for the georeferenced data browser.

All configurable parameters are centralized here for easy tuning.

Classes:
    MapConfig: Tile raster, zoom range and default operation area
    TileConfig: Tile server URL template
    ApiConfig: Backend persistence service settings
    ShapeConfig: Geometry validation limits
"""

import os


class MapConfig:
    """Default map view parameters."""

    # Tiles are square rasters of TILE_SIZE x TILE_SIZE pixels
    TILE_SIZE = 256

    # Default operation area: El Bosque, Santiago de Chile
    TOP_LEFT_LON = -70.75860376620324
    TOP_LEFT_LAT = -33.5314107698844
    BOTTOM_RIGHT_LON = -70.64506335632365
    BOTTOM_RIGHT_LAT = -33.59220524202586

    # Higher number = more zoomed in, lower = more zoomed out
    MIN_ZOOM = 14
    MAX_ZOOM = 19
    INITIAL_ZOOM = 15
    FOCUS_ZOOM = 18  # Zoom used when jumping to a single shape

    # Web Mercator is undefined at the poles; latitudes are clamped to this
    MAX_LATITUDE = 85.05112878

    # Width of the attribute side panel; the drawable area shrinks by this much
    SIDE_PANEL_WIDTH_PX = 320


assert MapConfig.MIN_ZOOM <= MapConfig.INITIAL_ZOOM <= MapConfig.MAX_ZOOM
assert MapConfig.MIN_ZOOM <= MapConfig.FOCUS_ZOOM <= MapConfig.MAX_ZOOM
assert MapConfig.TOP_LEFT_LON < MapConfig.BOTTOM_RIGHT_LON
assert MapConfig.TOP_LEFT_LAT > MapConfig.BOTTOM_RIGHT_LAT


class TileConfig:
    """Tile server settings."""

    URL_TEMPLATE = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"


class ApiConfig:
    """Backend persistence service settings."""

    BASE_URL = os.environ.get("GEOBROWSER_API_URL", "http://localhost:3000")
    TIMEOUT_S = 120
    HEADERS = {"Content-Type": "application/json"}

    # Endpoint templates
    SHAPES = "/shapes"
    SHAPE_BY_ID = "/shapes/{shape_id}"
    LAYER_SHAPES = "/layers/{layer_id}/shapes"


class ShapeConfig:
    """Geometry validation limits."""

    MIN_RING_VERTICES = 3  # Distinct vertices per polygon ring
    MIN_LINE_VERTICES = 2

    # Wire names for shape types (matches backend payloads)
    POINT = "point"
    LINE = "line"
    POLYGON = "poly"


assert ShapeConfig.MIN_RING_VERTICES >= 3, "A ring needs at least three vertices"
