"""MapController - Gesture entry points and render snapshots for the UI shell.

Wires the viewport state machine, the shape store and the selection
coordinator together. The UI shell forwards raw gestures here and renders
from RenderSnapshot objects; it never mutates core state directly.

Gestures:
- Pan/zoom (synchronous): on_mouse_down, on_mouse_move, on_mouse_up,
  on_zoom_in, on_zoom_out, on_wheel (inert)
- Shape edits (coroutines, await the persistence collaborator):
  on_draw_complete, on_point_drag, on_vertex_edit, on_shape_delete
- Selection/panel: on_shape_click, save_attributes, cancel_panel

Subscribers registered with subscribe() receive a fresh snapshot after
every state change.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from geobrowser.constants import MapConfig, TileConfig
from geobrowser.core.tile_grid import TileGridResolver
from geobrowser.model.geo_point import GeoBounds, PixelBounds, PixelPoint, TileCoord, TileRange
from geobrowser.model.message import ReadOnlyMessage, ToastMessage, UIMessagesContext
from geobrowser.model.shape import AttributeValue, Shape, ShapeType
from geobrowser.service.persistence import ShapePersistence
from geobrowser.ui.listeners import CallbackListener, TransitionLogListener, try_transition
from geobrowser.ui.selection import SelectionContext, SelectionCoordinator, SelectionStateMachine
from geobrowser.ui.shape_store import ShapeRenderData, ShapeStore
from geobrowser.ui.viewport import MapSettings, SizeProvider, ViewportContext, ViewportStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibleTile:
    """A tile to draw: its address, where it goes, and where to fetch it."""

    tile: TileCoord
    footprint: PixelBounds
    url: str


@dataclass(frozen=True)
class RenderSnapshot:
    """Immutable view of everything the renderer needs."""

    zoom: int
    tile_range: TileRange
    pan_offset: PixelPoint
    viewport_bounds_px: PixelBounds
    visible_tiles: tuple[VisibleTile, ...]
    shapes_in_pixel_space: tuple[ShapeRenderData, ...]
    selected_shape_id: str | None
    panel_open: bool
    panel_actions: tuple[str, ...]
    is_dragging: bool
    error: ToastMessage | None


class MapController:
    """Facade over viewport, shape store and selection.

    Example:
        controller = MapController(
            settings=MapSettings.default(),
            persistence=RestShapeService(),
            size_provider=lambda: PixelSize(width=1280, height=720),
        )
        controller.on_mouse_down()
        controller.on_mouse_move(dx=-40, dy=12)
        controller.on_mouse_up()
        snapshot = controller.snapshot()
    """

    def __init__(
        self,
        settings: MapSettings,
        persistence: ShapePersistence,
        size_provider: SizeProvider | None = None,
        layer_id: str = "",
        shapes: list[Shape] | None = None,
        can_manage_shapes: bool = True,
        can_edit_attributes: bool = True,
        tile_url_template: str = TileConfig.URL_TEMPLATE,
    ) -> None:
        self.messages = UIMessagesContext()
        self.tile_url_template = tile_url_template
        self._subscribers: list[Callable[[RenderSnapshot], None]] = []

        self.viewport = ViewportStateMachine(context=ViewportContext(settings=settings, size_provider=size_provider))
        self.store = ShapeStore(persistence=persistence, layer_id=layer_id, shapes=shapes, messages=self.messages)
        selection_machine = SelectionStateMachine(
            store=self.store,
            viewport=self.viewport,
            context=SelectionContext(
                can_edit_attributes=can_edit_attributes,
                can_manage_shapes=can_manage_shapes,
            ),
        )
        self.selection = SelectionCoordinator(machine=selection_machine)

        self.viewport.add_listener(TransitionLogListener(name="viewport"), CallbackListener(self._notify))
        selection_machine.add_listener(TransitionLogListener(name="selection"), CallbackListener(self._notify))
        self.store.subscribe(self._notify)
        logger.info(f"Created MapController for layer {layer_id!r} at zoom {self.viewport.context.zoom}")

    # =========================================================================
    # Snapshot
    # =========================================================================

    @property
    def can_manage_shapes(self) -> bool:
        return self.selection.context.can_manage_shapes

    @property
    def map_bounds(self) -> GeoBounds:
        return self.viewport.context.settings.geo_bounds

    def snapshot(self) -> RenderSnapshot:
        """Recompute the render data from current state."""
        vp = self.viewport.context
        tile_range = vp.tile_range()
        visible = tuple(
            VisibleTile(
                tile=tile,
                footprint=TileGridResolver.tile_footprint_px(tile=tile, tile_range=tile_range),
                url=TileGridResolver.tile_url(tile=tile, template=self.tile_url_template),
            )
            for tile in self.viewport.visible_tiles()
        )
        selection = self.selection.context
        return RenderSnapshot(
            zoom=vp.zoom,
            tile_range=tile_range,
            pan_offset=vp.pan_offset,
            viewport_bounds_px=vp.viewport_bounds(),
            visible_tiles=visible,
            shapes_in_pixel_space=tuple(self.store.render_shapes(zoom=vp.zoom, tile_range_origin=tile_range.origin)),
            selected_shape_id=selection.selected_shape_id,
            panel_open=vp.panel_open,
            panel_actions=tuple(selection.panel_actions),
            is_dragging=self.viewport.is_dragging,
            error=self.messages.error,
        )

    def subscribe(self, callback: Callable[[RenderSnapshot], None]) -> None:
        self._subscribers.append(callback)

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for callback in self._subscribers:
            callback(snapshot)

    # =========================================================================
    # Pan / zoom gestures
    # =========================================================================

    def on_mouse_down(self) -> bool:
        return try_transition(self.viewport, "mouse_down")

    def on_mouse_move(self, dx: float, dy: float) -> bool:
        """Translate while dragging; ignored when no drag is in progress."""
        return try_transition(self.viewport, "mouse_move", dx=dx, dy=dy)

    def on_mouse_up(self) -> bool:
        return try_transition(self.viewport, "mouse_up")

    def on_zoom_in(self) -> bool:
        return try_transition(self.viewport, "zoom_in")

    def on_zoom_out(self) -> bool:
        return try_transition(self.viewport, "zoom_out")

    def on_wheel(self, delta: float) -> bool:
        """Mouse wheel never zooms or pans; zoom is reachable through the buttons only."""
        logger.debug(f"[VIEWPORT] wheel {delta} ignored")
        return False

    def center_at(self, lon: float, lat: float) -> bool:
        centered = self.viewport.center_at(lon=lon, lat=lat)
        if centered:
            self._notify()
        return centered

    def focus_shape(self, shape_id: str) -> bool:
        """Zoom to FOCUS_ZOOM and center on a shape (search result jump)."""
        shape = self.store.get(shape_id)
        if shape is None:
            logger.warning(f"[VIEWPORT] cannot focus unknown shape {shape_id}")
            return False
        if self.viewport.context.measured_size() is None:
            logger.debug(f"[VIEWPORT] focus on {shape_id} skipped: viewport not measured")
            return False
        target = shape.representative_point()
        self.viewport.set_zoom(MapConfig.FOCUS_ZOOM)
        self.viewport.center_at(lon=target.lon, lat=target.lat)
        self._notify()
        return True

    # =========================================================================
    # Shape gestures
    # =========================================================================

    def _require_manage(self, action: str) -> bool:
        if self.can_manage_shapes:
            return True
        self.messages.show(ReadOnlyMessage(action=action))
        return False

    async def on_draw_complete(self, raw_geometry: Any, shape_type: ShapeType | str) -> Shape | None:
        """Create a shape from a draw gesture and select it once the server confirms."""
        if not self._require_manage("draw shapes"):
            return None
        shape = await self.store.create_from_draw(raw_geometry=raw_geometry, shape_type=shape_type)
        if shape is not None:
            self.selection.select(shape.id)
        return shape

    def on_shape_click(self, shape_id: str) -> bool:
        return self.selection.select(shape_id)

    async def on_point_drag(self, shape_id: str, new_coordinate: Any) -> bool:
        if not self._require_manage("move shapes"):
            return False
        return await self.store.update_position(shape_id=shape_id, new_coordinates=new_coordinate)

    async def on_vertex_edit(self, shape_id: str, new_rings: Any) -> bool:
        if not self._require_manage("edit shapes"):
            return False
        return await self.store.update_vertices(shape_id=shape_id, new_rings=new_rings)

    async def on_shape_delete(self, shape_id: str) -> bool:
        if not self._require_manage("delete shapes"):
            return False
        return await self.store.delete_shape(shape_id=shape_id)

    # =========================================================================
    # Side panel / layers
    # =========================================================================

    async def save_attributes(self, attributes: dict[str, AttributeValue] | None = None) -> bool:
        return await self.selection.save(attributes=attributes)

    def cancel_panel(self) -> None:
        self.selection.cancel()

    async def load_layer(self, layer_id: str) -> bool:
        """Switch the active layer; the selection is dropped with the old shapes."""
        return await self.store.load_layer(layer_id=layer_id)

    def dismiss_error(self) -> None:
        self.messages.clear()
        self._notify()
