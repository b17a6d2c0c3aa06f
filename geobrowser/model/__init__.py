"""Data model value types.

- GeoPoint, TileCoord, FractionalTileCoord: geographic and tile coordinates
- PixelPoint, PixelSize, PixelBounds: raster pixel space
- TileRange, GeoBounds: extents of the operation area
- Shape, ShapeType: editable vector geometry with attributes
- ToastMessage and subclasses: user-facing failure notifications
"""

from geobrowser.model.geo_point import (
    FractionalTileCoord,
    GeoBounds,
    GeoPoint,
    PixelBounds,
    PixelPoint,
    PixelSize,
    TileCoord,
    TileRange,
)
from geobrowser.model.message import (
    InvalidGeometryMessage,
    LayerLoadFailedMessage,
    MessageLevel,
    ReadOnlyMessage,
    ShapeBusyMessage,
    ShapeCreateFailedMessage,
    ShapeDeleteFailedMessage,
    ShapeUpdateFailedMessage,
    ToastMessage,
    UIMessagesContext,
)
from geobrowser.model.shape import Shape, ShapeType

__all__ = [
    "GeoPoint",
    "TileCoord",
    "FractionalTileCoord",
    "PixelPoint",
    "PixelSize",
    "PixelBounds",
    "TileRange",
    "GeoBounds",
    "Shape",
    "ShapeType",
    "MessageLevel",
    "ToastMessage",
    "UIMessagesContext",
    "ShapeCreateFailedMessage",
    "ShapeUpdateFailedMessage",
    "ShapeDeleteFailedMessage",
    "ShapeBusyMessage",
    "InvalidGeometryMessage",
    "ReadOnlyMessage",
    "LayerLoadFailedMessage",
]
