"""Validators - Local geometry validation before any network call.

Validators return Optional[ToastMessage]:
- None if valid
- A message object if invalid (caller decides whether to show it)

Design Principles:
- No exceptions for expected validation failures
- Vertex counts are of DISTINCT vertices; a closing vertex repeating the
  first one does not count twice
"""

from typing import Any

from geobrowser.constants import ShapeConfig
from geobrowser.model.message import InvalidGeometryMessage, ToastMessage
from geobrowser.model.shape import ShapeType, normalize_coordinates


def count_distinct_vertices(vertices: Any) -> int:
    return len({(float(v[0]), float(v[1])) for v in vertices})


def validate_line(vertices: Any) -> ToastMessage | None:
    """Validate that a line has enough distinct vertices.

    Returns:
        None if valid, InvalidGeometryMessage otherwise.
    """
    count = count_distinct_vertices(vertices)
    if count < ShapeConfig.MIN_LINE_VERTICES:
        return InvalidGeometryMessage(
            shape_type=ShapeType.LINE.value,
            vertex_count=count,
            min_vertices=ShapeConfig.MIN_LINE_VERTICES,
        )
    return None


def validate_rings(rings: Any) -> ToastMessage | None:
    """Validate that a polygon has at least one ring and every ring has >= 3 distinct vertices.

    Returns:
        None if valid, InvalidGeometryMessage for the first failing ring.
    """
    if len(rings) == 0:
        return InvalidGeometryMessage(
            shape_type=ShapeType.POLYGON.value,
            vertex_count=0,
            min_vertices=ShapeConfig.MIN_RING_VERTICES,
        )
    for ring in rings:
        count = count_distinct_vertices(ring)
        if count < ShapeConfig.MIN_RING_VERTICES:
            return InvalidGeometryMessage(
                shape_type=ShapeType.POLYGON.value,
                vertex_count=count,
                min_vertices=ShapeConfig.MIN_RING_VERTICES,
            )
    return None


def validate_geometry(shape_type: ShapeType, coordinates: Any) -> ToastMessage | None:
    """Dispatch to the vertex rule for a shape type. Points are always valid."""
    normalized = normalize_coordinates(shape_type, coordinates)
    if shape_type is ShapeType.LINE:
        return validate_line(normalized)
    if shape_type is ShapeType.POLYGON:
        return validate_rings(normalized)
    return None
