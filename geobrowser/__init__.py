"""Geo Data Browser - Tiled map viewport and editable shapes.

The tile-space coordinate engine and viewport/shape-geometry state of a
georeferenced data browser:
- Web Mercator projection between lon/lat, tile grid and pixels
- Tile range and visible-tile resolution for a fixed operation area
- State machine-based pan/zoom viewport with bounds clamping
- Optimistic shape store reconciled with a persistence backend
- Single-editor selection and side panel coordination

Modules:
    core: Projection and tile grid math (pure functions)
    model: Value types (GeoPoint, TileCoord, Shape) and user-facing messages
    service: Persistence interface and REST client
    ui: Viewport, shape store, selection and the MapController facade

Example:
    from geobrowser.ui import MapController, MapSettings
    from geobrowser.service import RestShapeService
"""
