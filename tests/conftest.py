"""Shared pytest fixtures for geobrowser tests.

Provides FakeShapeService (an in-memory ShapePersistence) and reusable
map settings, viewports and shapes. All fixtures use explicit values with
documented rationale.

COORDINATE SYSTEM:
    Most tests use a box symmetric around (0, 0): top-left (-40, 40),
    bottom-right (40, -40). At zoom 4 (16x16 tiles) it covers tiles 6..9
    on both axes, so the raster is 4 tiles = 1024 px square:
        zoom 3: tiles 3..4   ->  512 px
        zoom 4: tiles 6..9   -> 1024 px
        zoom 5: tiles 12..19 -> 2048 px
    With a 400 x 300 viewport the settle bounds at zoom 4 are
    x in [-624, 0] and y in [-724, 0].
"""

import asyncio
from dataclasses import replace

import pytest

from geobrowser.model.geo_point import GeoPoint, PixelPoint, PixelSize
from geobrowser.model.shape import Shape, ShapeType
from geobrowser.service.persistence import PersistenceError
from geobrowser.ui.map_controller import MapController
from geobrowser.ui.shape_store import ShapeStore
from geobrowser.ui.viewport import MapSettings, ViewportContext, ViewportStateMachine

VIEWPORT_SIZE = PixelSize(width=400.0, height=300.0)


# =============================================================================
# FAKE PERSISTENCE
# =============================================================================


class FakeShapeService:
    """In-memory ShapePersistence with switchable failure.

    Every call is recorded in `calls` as (operation, shape_id). Set `fail`
    to make the next calls raise PersistenceError. Set `gate` to an
    asyncio.Event to hold calls in flight until the test sets it.

    Created shapes come back with `server_layer_id` filled in; with
    `assign_ids` they also get a server id ("srv-1", "srv-2", ...).
    """

    def __init__(self, server_layer_id: str = "layer-1", assign_ids: bool = False) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.server_layer_id = server_layer_id
        self.assign_ids = assign_ids
        self.layers: dict[str, list[Shape]] = {}
        self._next_id = 0

    async def _roundtrip(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise PersistenceError("server unavailable", status_code=503)

    async def create_shape(self, shape: Shape) -> Shape:
        await self._roundtrip("create", shape.id)
        created = replace(shape, layer_id=self.server_layer_id)
        if self.assign_ids:
            self._next_id += 1
            created = replace(created, id=f"srv-{self._next_id}")
        return created

    async def update_shape(self, shape: Shape) -> Shape:
        await self._roundtrip("update", shape.id)
        return shape

    async def delete_shape(self, shape_id: str) -> None:
        await self._roundtrip("delete", shape_id)

    async def load_shapes_for_layer(self, layer_id: str) -> list[Shape]:
        await self._roundtrip("load", layer_id)
        if layer_id not in self.layers:
            raise PersistenceError(f"layer {layer_id} not found", status_code=404)
        return list(self.layers[layer_id])


# =============================================================================
# SETTINGS / VIEWPORT FIXTURES
# =============================================================================


@pytest.fixture
def equator_settings() -> MapSettings:
    """Box symmetric around (0, 0), zoom 4 in [3, 6], raster at (-300, -400).

    (-300, -400) is well inside the zoom-4 settle bounds and stays inside
    them after zooming in once, so zoom round trips are exact.
    """
    return MapSettings(
        top_left=GeoPoint(lon=-40.0, lat=40.0),
        bottom_right=GeoPoint(lon=40.0, lat=-40.0),
        initial_zoom=4,
        min_zoom=3,
        max_zoom=6,
        initial_pan_offset=PixelPoint(x=-300.0, y=-400.0),
    )


@pytest.fixture
def viewport(equator_settings: MapSettings) -> ViewportStateMachine:
    """Idle viewport over equator_settings, measured at 400 x 300."""
    return ViewportStateMachine(context=ViewportContext(settings=equator_settings, size_provider=lambda: VIEWPORT_SIZE))


@pytest.fixture
def unmeasured_viewport(equator_settings: MapSettings) -> ViewportStateMachine:
    """Viewport whose host has not been laid out yet (size provider returns None)."""
    return ViewportStateMachine(context=ViewportContext(settings=equator_settings, size_provider=lambda: None))


# =============================================================================
# SHAPE FIXTURES
# =============================================================================


@pytest.fixture
def point_a() -> Shape:
    """Point at the origin."""
    return Shape(id="A", layer_id="layer-1", type=ShapeType.POINT, coordinates=(0.0, 0.0), attributes={"kind": "well"})


@pytest.fixture
def point_b() -> Shape:
    """Point 10 degrees north-east of the origin."""
    return Shape(id="B", layer_id="layer-1", type=ShapeType.POINT, coordinates=(10.0, 10.0), attributes={})


@pytest.fixture
def square_polygon() -> Shape:
    """Closed 20 x 20 degree square centered on the origin (4 distinct vertices)."""
    ring = ((-10.0, 10.0), (10.0, 10.0), (10.0, -10.0), (-10.0, -10.0), (-10.0, 10.0))
    return Shape(id="P", layer_id="layer-1", type=ShapeType.POLYGON, coordinates=(ring,), attributes={"name": "plot"})


@pytest.fixture
def diagonal_line() -> Shape:
    """Line from (-10, -10) to (10, 10)."""
    return Shape(
        id="L",
        layer_id="layer-1",
        type=ShapeType.LINE,
        coordinates=((-10.0, -10.0), (10.0, 10.0)),
        attributes={},
    )


# =============================================================================
# STORE / CONTROLLER FIXTURES
# =============================================================================


@pytest.fixture
def service() -> FakeShapeService:
    return FakeShapeService()


@pytest.fixture
def store(service: FakeShapeService, point_a: Shape, point_b: Shape, square_polygon: Shape) -> ShapeStore:
    """Store holding [A, B, P] for layer-1."""
    return ShapeStore(persistence=service, layer_id="layer-1", shapes=[point_a, point_b, square_polygon])


@pytest.fixture
def controller(
    equator_settings: MapSettings,
    service: FakeShapeService,
    point_a: Shape,
    point_b: Shape,
    square_polygon: Shape,
) -> MapController:
    """Fully wired controller with edit and manage capabilities."""
    return MapController(
        settings=equator_settings,
        persistence=service,
        size_provider=lambda: VIEWPORT_SIZE,
        layer_id="layer-1",
        shapes=[point_a, point_b, square_polygon],
    )


@pytest.fixture
def read_only_controller(
    equator_settings: MapSettings,
    service: FakeShapeService,
    point_a: Shape,
) -> MapController:
    """Controller for a user without edit or manage capabilities."""
    return MapController(
        settings=equator_settings,
        persistence=service,
        size_provider=lambda: VIEWPORT_SIZE,
        layer_id="layer-1",
        shapes=[point_a],
        can_manage_shapes=False,
        can_edit_attributes=False,
    )
