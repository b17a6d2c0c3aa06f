"""Renderer handle arena.

The rendering layer attaches a native, editable object to every shape it
draws. The core never holds those objects; it keeps an opaque RendererHandle
per shape id instead. A handle is valid only for the generation it was
issued in: once a shape is detached (deleted, layer switched) its handle is
invalid forever, and the next render issues a fresh one with a new
generation, even when the same shape id comes back after a rollback.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RendererHandle:
    """Opaque per-shape render handle.

    Attributes:
        shape_id: Shape the handle renders
        generation: Arena-wide issue counter; identifies this exact handle
        editing: Whether the native layer is in edit mode
        valid: False once the handle was detached
    """

    shape_id: str
    generation: int
    editing: bool = False
    valid: bool = True


class HandleArena:
    """Handles keyed by shape id."""

    def __init__(self) -> None:
        self._handles: dict[str, RendererHandle] = {}
        self._generation = 0

    def ensure(self, shape_id: str) -> RendererHandle:
        """Return the live handle for a shape, issuing a fresh one if needed."""
        handle = self._handles.get(shape_id)
        if handle is None:
            self._generation += 1
            handle = RendererHandle(shape_id=shape_id, generation=self._generation)
            self._handles[shape_id] = handle
        return handle

    def get(self, shape_id: str) -> RendererHandle | None:
        return self._handles.get(shape_id)

    def detach(self, shape_id: str) -> None:
        """Invalidate and forget a shape's handle."""
        handle = self._handles.pop(shape_id, None)
        if handle is not None:
            handle.valid = False
            handle.editing = False
            logger.debug(f"[HANDLES] detached {shape_id} (generation {handle.generation})")

    def rekey(self, old_id: str, new_id: str) -> None:
        """Move a handle to a server-assigned shape id."""
        handle = self._handles.pop(old_id, None)
        if handle is not None:
            handle.shape_id = new_id
            self._handles[new_id] = handle

    def set_editing(self, shape_id: str, editing: bool) -> None:
        """Toggle edit mode; enabling issues a handle if the shape has none."""
        handle = self.ensure(shape_id) if editing else self._handles.get(shape_id)
        if handle is not None:
            handle.editing = editing

    def editing_ids(self) -> list[str]:
        return [shape_id for shape_id, handle in self._handles.items() if handle.editing]

    def clear(self) -> None:
        for shape_id in list(self._handles):
            self.detach(shape_id)
