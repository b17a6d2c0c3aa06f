"""Tests for MapController gesture entry points and render snapshots.

Tests: MapController, RenderSnapshot
Focus: Snapshot contents, gesture routing, subscriber notification,
capability checks, focus on a shape.

Note: Fixtures are defined in conftest.py.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

import pytest

from geobrowser.constants import MapConfig
from geobrowser.model.geo_point import PixelBounds, PixelPoint, PixelSize, TileCoord
from geobrowser.model.message import ReadOnlyMessage, ShapeBusyMessage
from geobrowser.model.shape import Shape, ShapeType
from geobrowser.ui.map_controller import MapController, RenderSnapshot
from geobrowser.ui.viewport import MapSettings

if TYPE_CHECKING:
    from conftest import FakeShapeService


class TestSnapshot:
    """snapshot() - everything the renderer needs."""

    def test_initial_snapshot(self, controller: MapController) -> None:
        snapshot = controller.snapshot()

        assert snapshot.zoom == 4
        assert snapshot.pan_offset == PixelPoint(x=-300.0, y=-400.0)
        assert snapshot.viewport_bounds_px == PixelBounds(min_x=300, min_y=400, max_x=700, max_y=700)
        assert [v.tile for v in snapshot.visible_tiles] == [
            TileCoord(x=7, y=7, z=4),
            TileCoord(x=8, y=7, z=4),
            TileCoord(x=7, y=8, z=4),
            TileCoord(x=8, y=8, z=4),
        ]
        assert snapshot.visible_tiles[0].url == "https://tile.openstreetmap.org/4/7/7.png"
        assert snapshot.visible_tiles[0].footprint == PixelBounds(min_x=256, min_y=256, max_x=512, max_y=512)
        assert [d.shape.id for d in snapshot.shapes_in_pixel_space] == ["A", "B", "P"]
        assert snapshot.selected_shape_id is None
        assert snapshot.panel_open is False
        assert snapshot.panel_actions == ("save", "cancel")
        assert snapshot.is_dragging is False
        assert snapshot.error is None

    def test_custom_tile_template(self, equator_settings: MapSettings, service: "FakeShapeService") -> None:
        controller = MapController(
            settings=equator_settings,
            persistence=service,
            size_provider=lambda: PixelSize(width=400, height=300),
            tile_url_template="http://tiles.local/{z}/{x}/{y}.png",
        )
        assert controller.snapshot().visible_tiles[0].url == "http://tiles.local/4/7/7.png"

    def test_map_bounds(self, controller: MapController) -> None:
        bounds = controller.map_bounds
        assert (bounds.min_lon, bounds.max_lon) == (-40.0, 40.0)


class TestGestures:
    """Pan/zoom gestures routed to the viewport machine."""

    def test_drag_notifies_subscribers(self, controller: MapController) -> None:
        received: list[RenderSnapshot] = []
        controller.subscribe(received.append)

        assert controller.on_mouse_down() is True
        assert controller.on_mouse_move(dx=10, dy=20) is True
        assert controller.on_mouse_move(dx=5, dy=-5) is True
        assert controller.on_mouse_up() is True

        assert [s.is_dragging for s in received] == [True, True, True, False]
        assert received[-1].pan_offset == PixelPoint(x=-285.0, y=-385.0)

    def test_move_without_down_is_ignored(self, controller: MapController) -> None:
        assert controller.on_mouse_move(dx=10, dy=10) is False
        assert controller.snapshot().pan_offset == PixelPoint(x=-300.0, y=-400.0)

    def test_wheel_is_inert(self, controller: MapController) -> None:
        before = controller.snapshot()
        assert controller.on_wheel(delta=-120.0) is False
        after = controller.snapshot()
        assert (after.zoom, after.pan_offset) == (before.zoom, before.pan_offset)

    def test_zoom_buttons(self, controller: MapController) -> None:
        assert controller.on_zoom_in() is True
        assert controller.snapshot().zoom == 5
        assert controller.on_zoom_out() is True
        assert controller.on_zoom_out() is True
        assert controller.on_zoom_out() is False
        assert controller.snapshot().zoom == 3

    def test_center_at(self, controller: MapController) -> None:
        assert controller.center_at(lon=0.0, lat=0.0) is True
        pan = controller.snapshot().pan_offset
        assert (pan.x, pan.y) == pytest.approx((-312.0, -362.0))

    def test_center_at_unmeasured(self, equator_settings: MapSettings, service: "FakeShapeService") -> None:
        controller = MapController(settings=equator_settings, persistence=service)
        assert controller.center_at(lon=0.0, lat=0.0) is False


class TestShapeGestures:
    """Draw, drag, edit and delete routed to the store."""

    def test_draw_selects_created_shape(self, controller: MapController) -> None:
        created = asyncio.run(controller.on_draw_complete([[0, 0], [1, 0], [1, 1], [0, 0]], "line"))

        assert created is not None
        snapshot = controller.snapshot()
        assert snapshot.selected_shape_id == created.id
        assert snapshot.panel_open is True
        assert controller.store.handles.editing_ids() == [created.id]

    def test_rejected_draw_selects_nothing(self, controller: MapController, service: "FakeShapeService") -> None:
        service.fail = True
        assert asyncio.run(controller.on_draw_complete([3, 4], ShapeType.POINT)) is None
        assert controller.snapshot().selected_shape_id is None

    def test_point_drag_and_vertex_edit(self, controller: MapController) -> None:
        assert asyncio.run(controller.on_point_drag("A", [1.0, 1.0])) is True
        assert asyncio.run(controller.on_vertex_edit("P", [[[0, 0], [2, 0], [2, 2], [0, 0]]])) is True
        assert controller.store.get("A").coordinates == (1.0, 1.0)
        assert len(controller.store.get("P").vertices) == 4

    def test_busy_shape_surfaces_in_snapshot(self, controller: MapController, service: "FakeShapeService") -> None:
        async def scenario() -> bool:
            service.gate = asyncio.Event()
            first = asyncio.create_task(controller.on_point_drag("A", [1.0, 1.0]))
            await asyncio.sleep(0)
            second = await controller.on_shape_delete("A")
            service.gate.set()
            await first
            return second

        assert asyncio.run(scenario()) is False
        assert isinstance(controller.snapshot().error, ShapeBusyMessage)

    @pytest.mark.parametrize(
        "gesture",
        [
            lambda c: c.on_draw_complete([1, 2], "point"),
            lambda c: c.on_point_drag("A", [1, 2]),
            lambda c: c.on_vertex_edit("A", [[0, 0], [1, 1]]),
            lambda c: c.on_shape_delete("A"),
        ],
    )
    def test_read_only_user_cannot_manage_shapes(
        self,
        read_only_controller: MapController,
        service: "FakeShapeService",
        gesture: Callable[[MapController], Coroutine[Any, Any, object]],
    ) -> None:
        result = asyncio.run(gesture(read_only_controller))

        assert not result
        assert service.calls == []
        assert isinstance(read_only_controller.messages.error, ReadOnlyMessage)
        assert [s.id for s in read_only_controller.store.shapes] == ["A"]

    def test_dismiss_error(self, read_only_controller: MapController) -> None:
        asyncio.run(read_only_controller.on_shape_delete("A"))
        read_only_controller.dismiss_error()
        assert read_only_controller.snapshot().error is None


class TestFocusShape:
    """focus_shape - jump to a search result."""

    def test_focus_zooms_and_centers(self, service: "FakeShapeService") -> None:
        target = Shape(id="S", layer_id="1", type=ShapeType.POINT, coordinates=(-70.70, -33.56), attributes={})
        controller = MapController(
            settings=MapSettings.default(),
            persistence=service,
            size_provider=lambda: PixelSize(width=1280, height=720),
            shapes=[target],
        )

        assert controller.focus_shape("S") is True

        assert controller.snapshot().zoom == MapConfig.FOCUS_ZOOM
        center = controller.viewport.center_geo()
        assert center.lon == pytest.approx(-70.70, abs=1e-9)
        assert center.lat == pytest.approx(-33.56, abs=1e-9)

    def test_focus_unmeasured_keeps_zoom_and_pan(
        self, equator_settings: MapSettings, service: "FakeShapeService", point_a: Shape
    ) -> None:
        controller = MapController(settings=equator_settings, persistence=service, shapes=[point_a])

        assert controller.focus_shape("A") is False

        assert controller.viewport.context.zoom == 4
        assert controller.viewport.context.pan_offset == PixelPoint(x=-300.0, y=-400.0)

    def test_focus_unknown_shape(self, controller: MapController) -> None:
        assert controller.focus_shape("missing") is False
        assert controller.snapshot().zoom == 4
