"""Viewport state machine for the draggable, zoomable tile raster.

Uses python-statemachine for the drag gesture and zoom steps.

Architecture Overview
---------------------
The tile raster of the operation area is a fixed-size image (tile span times
TILE_SIZE pixels at the current zoom). The viewport looks at it through a
window; pan_offset is the raster's translation relative to the window's
top-left corner, so it is <= 0 whenever the raster is larger than the window.

States:
    IDLE: No gesture in progress
    DRAGGING: Mouse is down; moves translate the raster

Transitions:
    IDLE -> DRAGGING: mouse_down
    DRAGGING -> DRAGGING: mouse_move(dx, dy) - unclamped translation
    DRAGGING -> IDLE: mouse_up - clamps pan_offset
    IDLE -> IDLE: zoom_in / zoom_out - guarded by the zoom range, keeps the
                  geographic point at viewport center fixed, then clamps

Settle (clamp) rule, per axis:
    pan_offset in [min(0, viewport_size - content_size), 0]

Measurement:
    The viewport size is read from a provider on every recompute. A provider
    returning None (host not measured yet) degrades the size to (0, 0):
    zoom keeps the top-left point fixed instead of the center, and
    center_at() does nothing. Nothing is raised.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from statemachine import State, StateMachine

from geobrowser.constants import MapConfig
from geobrowser.core.projection import Projection
from geobrowser.core.tile_grid import TileGridResolver
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

logger = logging.getLogger(__name__)

SizeProvider = Callable[[], "PixelSize | None"]

UNMEASURED = PixelSize(width=0.0, height=0.0)


@dataclass(frozen=True)
class MapSettings:
    """Construction-time map configuration.

    Attributes:
        top_left: North-west corner of the operation area
        bottom_right: South-east corner of the operation area
        initial_zoom: Starting zoom; clamped into [min_zoom, max_zoom]
        min_zoom: Lowest zoom reachable with zoom_out
        max_zoom: Highest zoom reachable with zoom_in
        initial_pan_offset: Starting raster translation (defaults to (0, 0))
    """

    top_left: GeoPoint
    bottom_right: GeoPoint
    initial_zoom: int = MapConfig.INITIAL_ZOOM
    min_zoom: int = MapConfig.MIN_ZOOM
    max_zoom: int = MapConfig.MAX_ZOOM
    initial_pan_offset: PixelPoint | None = None

    def __post_init__(self) -> None:
        if self.min_zoom > self.max_zoom:
            raise ValueError(f"min_zoom {self.min_zoom} is above max_zoom {self.max_zoom}")

    @classmethod
    def default(cls) -> "MapSettings":
        """Settings for the default operation area in MapConfig."""
        return cls(
            top_left=GeoPoint(lon=MapConfig.TOP_LEFT_LON, lat=MapConfig.TOP_LEFT_LAT),
            bottom_right=GeoPoint(lon=MapConfig.BOTTOM_RIGHT_LON, lat=MapConfig.BOTTOM_RIGHT_LAT),
        )

    def clamp_zoom(self, zoom: int) -> int:
        return max(self.min_zoom, min(self.max_zoom, zoom))

    @property
    def geo_bounds(self) -> GeoBounds:
        return GeoBounds.from_corners(top_left=self.top_left, bottom_right=self.bottom_right)


@dataclass
class ViewportContext:
    """Mutable viewport model shared with the state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model.
    """

    settings: MapSettings = field(default_factory=MapSettings.default)
    size_provider: SizeProvider | None = None
    panel_open: bool = False

    # State managed by python-statemachine (model pattern)
    state: str | None = None

    zoom: int = field(init=False)
    pan_offset: PixelPoint = field(init=False)

    def __post_init__(self) -> None:
        self.zoom = self.settings.clamp_zoom(self.settings.initial_zoom)
        self.pan_offset = self.settings.initial_pan_offset or PixelPoint(x=0.0, y=0.0)

    def measured_size(self) -> PixelSize | None:
        """Drawable viewport size, or None while the host is unmeasured.

        An open side panel takes SIDE_PANEL_WIDTH_PX from the drawable width.
        """
        size = self.size_provider() if self.size_provider is not None else None
        if size is None:
            return None
        if self.panel_open:
            return PixelSize(width=max(0.0, size.width - MapConfig.SIDE_PANEL_WIDTH_PX), height=size.height)
        return size

    def viewport_size(self) -> PixelSize:
        """Drawable size, degraded to (0, 0) while unmeasured."""
        return self.measured_size() or UNMEASURED

    def tile_range(self, zoom: int | None = None) -> TileRange:
        return TileGridResolver.bounding_tile_range(
            top_left=self.settings.top_left,
            bottom_right=self.settings.bottom_right,
            zoom=self.zoom if zoom is None else zoom,
        )

    def viewport_bounds(self) -> PixelBounds:
        """Visible window in raster pixel coordinates."""
        size = self.viewport_size()
        return PixelBounds(
            min_x=-self.pan_offset.x,
            min_y=-self.pan_offset.y,
            max_x=-self.pan_offset.x + size.width,
            max_y=-self.pan_offset.y + size.height,
        )

    def center_tile(self) -> FractionalTileCoord:
        """Fractional tile position currently at viewport center."""
        half = self.viewport_size().half
        origin = self.tile_range().origin
        return FractionalTileCoord(
            x=(-self.pan_offset.x + half.x) / MapConfig.TILE_SIZE + origin.x,
            y=(-self.pan_offset.y + half.y) / MapConfig.TILE_SIZE + origin.y,
        )

    def pan_for_center(self, center: FractionalTileCoord, tile_range: TileRange) -> PixelPoint:
        """pan_offset that puts a fractional tile position at viewport center."""
        half = self.viewport_size().half
        return PixelPoint(
            x=-((center.x - tile_range.min_x) * MapConfig.TILE_SIZE - half.x),
            y=-((center.y - tile_range.min_y) * MapConfig.TILE_SIZE - half.y),
        )

    def clamp_pan(self) -> None:
        """Clamp pan_offset so no space outside the raster is shown."""
        size = self.viewport_size()
        content = self.tile_range().content_size_px
        low_x = min(0.0, size.width - content.width)
        low_y = min(0.0, size.height - content.height)
        self.pan_offset = PixelPoint(
            x=max(low_x, min(0.0, self.pan_offset.x)),
            y=max(low_y, min(0.0, self.pan_offset.y)),
        )

    def __repr__(self) -> str:
        return (
            f"ViewportContext(state={self.state}, zoom={self.zoom}, "
            f"pan=({self.pan_offset.x:.1f}, {self.pan_offset.y:.1f}), panel_open={self.panel_open})"
        )


class ViewportStateMachine(StateMachine):
    """State machine for pan and zoom gestures.

    See module docstring for the transition table and the settle rule.
    Mouse-wheel input is deliberately not an event: zoom is only reachable
    through zoom_in / zoom_out.
    """

    idle = State("Idle", initial=True)
    dragging = State("Dragging")

    mouse_down = idle.to(dragging)
    mouse_move = dragging.to(dragging)
    mouse_up = dragging.to(idle)
    zoom_in = idle.to(idle, cond="can_zoom_in")
    zoom_out = idle.to(idle, cond="can_zoom_out")

    # ==========================================================================
    # Guards
    # ==========================================================================

    def can_zoom_in(self) -> bool:
        return self.context.zoom < self.context.settings.max_zoom

    def can_zoom_out(self) -> bool:
        return self.context.zoom > self.context.settings.min_zoom

    # ==========================================================================
    # Transition Actions
    # ==========================================================================

    def before_mouse_move(self, dx: float, dy: float) -> None:
        """Translate the raster; clamping waits for mouse_up."""
        self.context.pan_offset = self.context.pan_offset + PixelPoint(x=dx, y=dy)

    def before_mouse_up(self) -> None:
        self.settle()

    def before_zoom_in(self) -> None:
        self._step_zoom(step=1)

    def before_zoom_out(self) -> None:
        self._step_zoom(step=-1)

    def _step_zoom(self, step: int) -> None:
        """Change zoom by one level keeping the viewport-center point fixed.

        Tile coordinates double per zoom level, so the center scales by 2
        (or 0.5) and is re-expressed against the new zoom's raster origin.
        """
        ctx = self.context
        center = ctx.center_tile().scaled(2.0**step)
        ctx.zoom += step
        ctx.pan_offset = ctx.pan_for_center(center=center, tile_range=ctx.tile_range())
        self.settle()
        logger.info(f"[VIEWPORT] zoom {ctx.zoom - step} -> {ctx.zoom}, pan={ctx.pan_offset}")

    # ==========================================================================
    # Mode-independent operations
    # ==========================================================================

    def settle(self) -> None:
        """Apply the clamp rule (mouse_up, zoom, side panel open/close)."""
        self.context.clamp_pan()

    def center_at(self, lon: float, lat: float) -> bool:
        """Move the raster so (lon, lat) is at viewport center.

        Works in any state and does not change it. Returns False (no-op)
        while the viewport size is unmeasured.
        """
        ctx = self.context
        if ctx.measured_size() is None:
            logger.debug(f"[VIEWPORT] center_at({lon}, {lat}) skipped: viewport not measured")
            return False
        target = Projection.geo_to_tile_frac(lon=lon, lat=lat, zoom=ctx.zoom)
        ctx.pan_offset = ctx.pan_for_center(center=target, tile_range=ctx.tile_range())
        return True

    def set_zoom(self, zoom: int) -> None:
        """Jump to a zoom level (clamped) without center preservation."""
        self.context.zoom = self.context.settings.clamp_zoom(zoom)

    def center_geo(self) -> GeoPoint:
        """Geographic point currently at viewport center."""
        center = self.context.center_tile()
        return Projection.tile_frac_to_geo(x=center.x, y=center.y, zoom=self.context.zoom)

    def set_panel_open(self, is_open: bool) -> None:
        """Record side panel visibility and re-clamp for the new drawable width."""
        self.context.panel_open = is_open
        self.settle()

    def visible_tiles(self) -> Iterator[TileCoord]:
        return TileGridResolver.visible_tiles(
            tile_range=self.context.tile_range(),
            viewport_bounds=self.context.viewport_bounds(),
        )

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_dragging(self) -> bool:
        return self.dragging.is_active

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: ViewportContext | None = None, start_value: str | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared viewport model (creates a default one if None)
            start_value: Optional initial state value (for restoring state)
        """
        model = context or ViewportContext()
        super().__init__(model=model, start_value=start_value)

    @property
    def context(self) -> ViewportContext:
        """Alias for model."""
        return self.model

    def __repr__(self) -> str:
        return f"ViewportStateMachine(state={self.current_state.name}, model={self.context!r})"
