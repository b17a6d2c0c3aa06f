"""Shape - Editable vector geometry with attribute data.

A Shape is one of three variants, told apart by ShapeType:
- POINT: a single [lon, lat]
- LINE: an ordered sequence of [lon, lat]
- POLYGON: a sequence of linear rings, the first being the outer boundary

Shapes are immutable values. The store replaces a shape with an edited copy
(dataclasses.replace) and keeps the old value for rollback.

Wire format (backend payloads):
    {"id": ..., "layerId": ..., "type": "point" | "line" | "poly",
     "coordinates": ..., "attributes": {...}}
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from shapely.geometry import LineString
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry

from geobrowser.constants import ShapeConfig
from geobrowser.model.geo_point import GeoPoint

LonLat = tuple[float, float]
Ring = tuple[LonLat, ...]
Coordinates = Union[LonLat, Ring, tuple[Ring, ...]]
AttributeValue = Union[str, int, float, bool]


class ShapeType(Enum):
    """Shape variant, valued by its wire name."""

    POINT = ShapeConfig.POINT
    LINE = ShapeConfig.LINE
    POLYGON = ShapeConfig.POLYGON


def _as_lon_lat(value: Any) -> LonLat:
    return (float(value[0]), float(value[1]))


def normalize_coordinates(shape_type: ShapeType, coordinates: Any) -> Coordinates:
    """Convert nested lists from JSON or a drawing tool into nested tuples."""
    if shape_type is ShapeType.POINT:
        return _as_lon_lat(coordinates)
    if shape_type is ShapeType.LINE:
        return tuple(_as_lon_lat(c) for c in coordinates)
    return tuple(tuple(_as_lon_lat(c) for c in ring) for ring in coordinates)


@dataclass(frozen=True)
class Shape:
    """A vector shape owned by a map layer.

    Attributes:
        id: UUID string; assigned client-side on draw, may be replaced by the server
        layer_id: Back-reference to the owning layer ("" until the server assigns it)
        type: ShapeType variant
        coordinates: Variant-dependent nested tuples of (lon, lat)
        attributes: Scalar attribute values keyed by attribute name

    Example:
        shape = Shape.new(ShapeType.POINT, (-70.66, -33.56))
    """

    id: str
    layer_id: str
    type: ShapeType
    coordinates: Coordinates
    attributes: dict[str, AttributeValue] = field(default_factory=dict)

    @classmethod
    def new(cls, shape_type: ShapeType, coordinates: Any) -> "Shape":
        """Fresh shape from a draw event: new UUID, blank layer, no attributes."""
        return cls(
            id=str(uuid.uuid4()),
            layer_id="",
            type=shape_type,
            coordinates=normalize_coordinates(shape_type, coordinates),
            attributes={},
        )

    @property
    def rings(self) -> tuple[Ring, ...]:
        """Vertex sequences of the shape (a Point is one single-vertex ring)."""
        if self.type is ShapeType.POINT:
            return ((self.coordinates,),)
        if self.type is ShapeType.LINE:
            return (self.coordinates,)
        return self.coordinates

    @property
    def vertices(self) -> list[LonLat]:
        return [vertex for ring in self.rings for vertex in ring]

    @property
    def geometry(self) -> BaseGeometry:
        """Shapely geometry in (lon, lat) axis order."""
        if self.type is ShapeType.POINT:
            return ShapelyPoint(self.coordinates)
        if self.type is ShapeType.LINE:
            return LineString(self.coordinates)
        outer, *holes = self.coordinates
        return ShapelyPolygon(outer, holes)

    def representative_point(self) -> GeoPoint:
        """Where to center the map for this shape.

        Points use their coordinate; lines and polygons their centroid, or
        the bounding-box center when the centroid is empty (degenerate area).
        """
        if self.type is ShapeType.POINT:
            return GeoPoint.from_lon_lat(self.coordinates)
        centroid = self.geometry.centroid
        if not centroid.is_empty:
            return GeoPoint(lon=centroid.x, lat=centroid.y)
        min_lon, min_lat, max_lon, max_lat = self.geometry.bounds
        return GeoPoint(lon=(min_lon + max_lon) / 2, lat=(min_lat + max_lat) / 2)

    def with_coordinates(self, coordinates: Any) -> "Shape":
        return replace(self, coordinates=normalize_coordinates(self.type, coordinates))

    def with_attributes(self, attributes: dict[str, AttributeValue]) -> "Shape":
        """Copy with attributes merged over the current ones."""
        return replace(self, attributes={**self.attributes, **attributes})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the backend wire format (nested lists)."""
        if self.type is ShapeType.POINT:
            coordinates: Any = list(self.coordinates)
        elif self.type is ShapeType.LINE:
            coordinates = [list(c) for c in self.coordinates]
        else:
            coordinates = [[list(c) for c in ring] for ring in self.coordinates]
        return {
            "id": self.id,
            "layerId": self.layer_id,
            "type": self.type.value,
            "coordinates": coordinates,
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Shape":
        """Create Shape from the backend wire format."""
        shape_type = ShapeType(data["type"])
        return cls(
            id=str(data["id"]),
            layer_id=str(data.get("layerId") or ""),
            type=shape_type,
            coordinates=normalize_coordinates(shape_type, data["coordinates"]),
            attributes=dict(data.get("attributes") or {}),
        )

    def __repr__(self) -> str:
        return f"Shape({self.type.value}, id={self.id}, layer={self.layer_id!r}, vertices={len(self.vertices)})"
