"""Shape store - authoritative in-memory shapes of the active layer.

Responsibilities:
- Hold the ordered shape list for the active layer
- Project shapes into raster pixel space for rendering
- Run every mutation through one optimistic protocol:

      apply locally -> await persistence -> reconcile | revert + surface error

The store imposes no single-editor rule (the selection coordinator does);
it mutates any shape by id. It does refuse a second mutation of a shape
whose previous mutation is still awaiting the server (per-shape in-flight
set). Mutations are coroutines driven by the UI event loop; all state
changes happen on that loop, so no locks are needed.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any, TypeVar

import numpy as np

from geobrowser.constants import MapConfig
from geobrowser.core.projection import Projection
from geobrowser.model.geo_point import FractionalTileCoord, PixelBounds, PixelPoint
from geobrowser.model.message import (
    LayerLoadFailedMessage,
    ShapeBusyMessage,
    ShapeCreateFailedMessage,
    ShapeDeleteFailedMessage,
    ShapeUpdateFailedMessage,
    ToastMessage,
    UIMessagesContext,
)
from geobrowser.model.shape import AttributeValue, Shape, ShapeType
from geobrowser.service.persistence import PersistenceError, ShapePersistence
from geobrowser.ui.handles import HandleArena, RendererHandle
from geobrowser.ui.validators import validate_geometry

logger = logging.getLogger(__name__)

T = TypeVar("T")

PixelRing = tuple[PixelPoint, ...]


@dataclass(frozen=True)
class PixelGeometry:
    """A shape projected into raster pixels.

    Attributes:
        type: Shape variant
        rings: Pixel vertex sequences (Point: one ring with one vertex,
               Line: one ring, Polygon: outer ring then holes)
        bbox: Axis-aligned pixel bounds over all vertices (label placement)
    """

    type: ShapeType
    rings: tuple[PixelRing, ...]
    bbox: PixelBounds

    @property
    def point(self) -> PixelPoint:
        return self.rings[0][0]

    @property
    def polyline(self) -> PixelRing:
        return self.rings[0]


@dataclass(frozen=True)
class ShapeRenderData:
    """Everything the renderer needs for one shape."""

    shape: Shape
    pixels: PixelGeometry
    handle: RendererHandle


def project(shape: Shape, zoom: int, tile_range_origin: FractionalTileCoord) -> PixelGeometry:
    """Project a shape into raster pixel space.

    Each vertex goes through geo_to_tile_frac, is shifted by the raster
    origin and scaled by TILE_SIZE.
    """
    origin = np.array([tile_range_origin.x, tile_range_origin.y])
    pixel_rings: list[np.ndarray] = []
    for ring in shape.rings:
        tiles = Projection.project_vertices(np.array(ring, dtype=float), zoom=zoom)
        pixel_rings.append((tiles - origin) * MapConfig.TILE_SIZE)

    all_pixels = np.vstack(pixel_rings) if pixel_rings else np.empty((0, 2))
    if len(all_pixels) == 0:
        mins = maxs = np.zeros(2)
    else:
        mins = all_pixels.min(axis=0)
        maxs = all_pixels.max(axis=0)
    return PixelGeometry(
        type=shape.type,
        rings=tuple(tuple(PixelPoint(x=float(x), y=float(y)) for x, y in ring) for ring in pixel_rings),
        bbox=PixelBounds(min_x=float(mins[0]), min_y=float(mins[1]), max_x=float(maxs[0]), max_y=float(maxs[1])),
    )


class ShapeStore:
    """In-memory shapes of the active layer with optimistic persistence.

    Example:
        store = ShapeStore(persistence=RestShapeService(), layer_id="12")
        shape = await store.create_from_draw([-70.66, -33.56], ShapeType.POINT)
    """

    def __init__(
        self,
        persistence: ShapePersistence,
        layer_id: str = "",
        shapes: list[Shape] | None = None,
        messages: UIMessagesContext | None = None,
    ) -> None:
        self.persistence = persistence
        self.layer_id = layer_id
        self.messages = messages or UIMessagesContext()
        self.handles = HandleArena()
        self._shapes: list[Shape] = list(shapes or [])
        self._in_flight: set[str] = set()
        self._generation = 0
        self._listeners: list[Callable[[], None]] = []

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def shapes(self) -> tuple[Shape, ...]:
        return tuple(self._shapes)

    def get(self, shape_id: str) -> Shape | None:
        index = self._index_of(shape_id)
        return None if index is None else self._shapes[index]

    def is_in_flight(self, shape_id: str) -> bool:
        return shape_id in self._in_flight

    def __contains__(self, shape_id: object) -> bool:
        return isinstance(shape_id, str) and self._index_of(shape_id) is not None

    def __len__(self) -> int:
        return len(self._shapes)

    def render_shapes(self, zoom: int, tile_range_origin: FractionalTileCoord) -> list[ShapeRenderData]:
        """Pixel geometry plus a live handle for every shape.

        Shapes without a handle (new, or restored after a failed delete)
        get a freshly issued one here.
        """
        return [
            ShapeRenderData(
                shape=shape,
                pixels=project(shape=shape, zoom=zoom, tile_range_origin=tile_range_origin),
                handle=self.handles.ensure(shape.id),
            )
            for shape in self._shapes
        ]

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()

    # =========================================================================
    # List primitives (synchronous, used by apply/revert/reconcile)
    # =========================================================================

    def _index_of(self, shape_id: str) -> int | None:
        for index, shape in enumerate(self._shapes):
            if shape.id == shape_id:
                return index
        return None

    def _replace(self, shape_id: str, new_shape: Shape) -> bool:
        index = self._index_of(shape_id)
        if index is None:
            return False
        self._shapes[index] = new_shape
        if new_shape.id != shape_id:
            self.handles.rekey(old_id=shape_id, new_id=new_shape.id)
        return True

    def _remove(self, shape_id: str) -> int | None:
        index = self._index_of(shape_id)
        if index is not None:
            del self._shapes[index]
            self.handles.detach(shape_id)
        return index

    # =========================================================================
    # Optimistic mutation protocol
    # =========================================================================

    async def with_optimistic_mutation(
        self,
        shape_id: str,
        apply: Callable[[], None],
        revert: Callable[[], None],
        persist: Callable[[], Awaitable[T]],
        failure_message: Callable[[str], ToastMessage],
        reconcile: Callable[[T], None] | None = None,
    ) -> bool:
        """Apply a change locally, persist it, and reconcile or roll back.

        A layer reload while the call is pending replaces the list the
        change was applied to; the late answer then neither reverts nor
        reconciles.

        Args:
            shape_id: Shape the mutation targets (in-flight key)
            apply: Synchronous local change, visible immediately
            revert: Restores the exact pre-apply state
            persist: Coroutine factory performing the server call
            failure_message: Builds the user-facing message from the error text
            reconcile: Folds the server result into local state on success

        Returns:
            True if persisted, False if blocked (in flight) or rolled back.
        """
        if shape_id in self._in_flight:
            logger.warning(f"[STORE] {shape_id} has a mutation in flight; refusing another")
            self.messages.show(ShapeBusyMessage(shape_id=shape_id))
            return False

        generation = self._generation
        self._in_flight.add(shape_id)
        apply()
        self._notify()
        try:
            result = await persist()
        except PersistenceError as e:
            if generation == self._generation:
                revert()
                logger.warning(f"[STORE] rolled back {shape_id}: {e}")
            else:
                logger.warning(f"[STORE] {shape_id} failed after a layer reload; nothing to roll back: {e}")
            self.messages.show(failure_message(str(e)))
            succeeded = False
        else:
            if reconcile is not None and generation == self._generation:
                reconcile(result)
            succeeded = True
        finally:
            self._in_flight.discard(shape_id)
        self._notify()
        return succeeded

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_from_draw(self, raw_geometry: Any, shape_type: ShapeType | str) -> Shape | None:
        """Create a shape from a completed draw gesture.

        The optimistic shape (fresh UUID, blank layer, no attributes) is in
        the list before the server answers. On success it is replaced by the
        server's version; on failure it is removed again.

        Returns:
            The confirmed shape, or None if rejected locally or by the server.
        """
        shape_type = ShapeType(shape_type)
        invalid = validate_geometry(shape_type=shape_type, coordinates=raw_geometry)
        if invalid is not None:
            logger.info(f"[STORE] draw rejected locally: {invalid.message}")
            self._notify()
            return None

        shape = Shape.new(shape_type=shape_type, coordinates=raw_geometry)
        confirmed: list[Shape] = []

        def apply() -> None:
            self._shapes.append(shape)

        def revert() -> None:
            self._remove(shape.id)

        def reconcile(server_shape: Shape) -> None:
            if not server_shape.layer_id:
                server_shape = replace(server_shape, layer_id=self.layer_id)
            if self._replace(shape.id, server_shape):
                confirmed.append(server_shape)
                logger.info(f"[STORE] created {server_shape!r}")

        await self.with_optimistic_mutation(
            shape_id=shape.id,
            apply=apply,
            revert=revert,
            persist=lambda: self.persistence.create_shape(shape),
            failure_message=lambda reason: ShapeCreateFailedMessage(shape_type=shape_type.value, reason=reason),
            reconcile=reconcile,
        )
        return confirmed[0] if confirmed else None

    async def _update(self, previous: Shape, updated: Shape) -> bool:
        """Shared optimistic replace-then-persist path for all updates."""

        def reconcile(server_shape: Shape) -> None:
            if not server_shape.layer_id:
                server_shape = replace(server_shape, layer_id=previous.layer_id or self.layer_id)
            self._replace(updated.id, server_shape)

        return await self.with_optimistic_mutation(
            shape_id=previous.id,
            apply=lambda: self._replace(previous.id, updated),
            revert=lambda: self._replace(updated.id, previous),
            persist=lambda: self.persistence.update_shape(updated),
            failure_message=lambda reason: ShapeUpdateFailedMessage(shape_id=previous.id, reason=reason),
            reconcile=reconcile,
        )

    async def update_position(self, shape_id: str, new_coordinates: Any) -> bool:
        """Move a Point. On server failure the prior coordinates are restored."""
        shape = self.get(shape_id)
        if shape is None or shape.type is not ShapeType.POINT:
            logger.warning(f"[STORE] update_position ignored: {shape_id} is not a known point")
            return False
        return await self._update(previous=shape, updated=shape.with_coordinates(new_coordinates))

    async def update_vertices(self, shape_id: str, new_rings: Any) -> bool:
        """Replace the vertices of a Line or Polygon.

        For a Line, new_rings is its single vertex sequence. Geometry that
        breaks a vertex-count rule is rejected locally without any network
        call, and listeners are notified so the renderer redraws the
        previous geometry.
        """
        shape = self.get(shape_id)
        if shape is None or shape.type is ShapeType.POINT:
            logger.warning(f"[STORE] update_vertices ignored: {shape_id} is not a known line/polygon")
            return False
        invalid = validate_geometry(shape_type=shape.type, coordinates=new_rings)
        if invalid is not None:
            logger.info(f"[STORE] vertex edit on {shape_id} rejected locally: {invalid.message}")
            self._notify()
            return False
        return await self._update(previous=shape, updated=shape.with_coordinates(new_rings))

    async def update_attributes(self, shape_id: str, attributes: dict[str, AttributeValue]) -> bool:
        """Merge attributes into a shape and persist."""
        shape = self.get(shape_id)
        if shape is None:
            logger.warning(f"[STORE] update_attributes ignored: unknown shape {shape_id}")
            return False
        return await self._update(previous=shape, updated=shape.with_attributes(attributes))

    async def delete_shape(self, shape_id: str) -> bool:
        """Remove a shape; re-insert it at its old position if the server refuses.

        The renderer handle is detached on removal and stays invalid; a
        restored shape receives a fresh handle on the next render.
        """
        shape = self.get(shape_id)
        if shape is None:
            logger.warning(f"[STORE] delete ignored: unknown shape {shape_id}")
            return False
        removed_at: list[int] = []

        def apply() -> None:
            index = self._remove(shape_id)
            if index is not None:
                removed_at.append(index)

        def revert() -> None:
            if shape_id in self:
                return
            index = removed_at[0] if removed_at else len(self._shapes)
            self._shapes.insert(min(index, len(self._shapes)), shape)

        return await self.with_optimistic_mutation(
            shape_id=shape_id,
            apply=apply,
            revert=revert,
            persist=lambda: self.persistence.delete_shape(shape_id),
            failure_message=lambda reason: ShapeDeleteFailedMessage(shape_id=shape_id, reason=reason),
        )

    async def load_layer(self, layer_id: str) -> bool:
        """Replace the shape list with the shapes of another layer.

        On failure the current layer and its shapes stay in place.
        Mutations still awaiting the server no longer touch the new list.
        """
        try:
            shapes = await self.persistence.load_shapes_for_layer(layer_id)
        except PersistenceError as e:
            logger.warning(f"[STORE] loading layer {layer_id} failed: {e}")
            self.messages.show(LayerLoadFailedMessage(layer_id=layer_id, reason=str(e)))
            return False

        self.handles.clear()
        self._shapes = list(shapes)
        self._generation += 1
        self.layer_id = layer_id
        logger.info(f"[STORE] layer {layer_id} loaded with {len(shapes)} shapes")
        self._notify()
        return True
