"""Stateful map components.

Core Components:
- viewport.py: ViewportStateMachine (Idle/Dragging) + ViewportContext + MapSettings
- shape_store.py: ShapeStore with the optimistic mutation protocol, pixel projection
- handles.py: HandleArena of per-shape renderer handles
- selection.py: SelectionStateMachine + SelectionCoordinator (single editor, side panel)
- validators.py: Local vertex-count validation
- map_controller.py: MapController facade (gesture entry points, RenderSnapshot)
"""

from geobrowser.ui.handles import HandleArena, RendererHandle
from geobrowser.ui.map_controller import MapController, RenderSnapshot, VisibleTile
from geobrowser.ui.selection import SelectionContext, SelectionCoordinator, SelectionStateMachine
from geobrowser.ui.shape_store import PixelGeometry, ShapeRenderData, ShapeStore, project
from geobrowser.ui.viewport import MapSettings, ViewportContext, ViewportStateMachine

__all__ = [
    "MapController",
    "RenderSnapshot",
    "VisibleTile",
    "MapSettings",
    "ViewportContext",
    "ViewportStateMachine",
    "ShapeStore",
    "ShapeRenderData",
    "PixelGeometry",
    "project",
    "HandleArena",
    "RendererHandle",
    "SelectionContext",
    "SelectionStateMachine",
    "SelectionCoordinator",
]
