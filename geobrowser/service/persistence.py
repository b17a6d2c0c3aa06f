"""Persistence collaborator interface for shapes.

The browser core never talks to a database; it calls an object implementing
ShapePersistence and reconciles the result into its in-memory state. Every
method is a coroutine: these calls are the only points where the core
suspends. Implementations raise PersistenceError for any failure.
"""

from typing import Protocol

from geobrowser.model.shape import Shape


class PersistenceError(Exception):
    """A create/update/delete/load call failed.

    Attributes:
        status_code: HTTP status when the failure came from a server response
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ShapePersistence(Protocol):
    """Backend operations the shape store depends on."""

    async def create_shape(self, shape: Shape) -> Shape:
        """Persist a new shape. The returned shape carries server-assigned ids."""
        ...

    async def update_shape(self, shape: Shape) -> Shape:
        ...

    async def delete_shape(self, shape_id: str) -> None:
        ...

    async def load_shapes_for_layer(self, layer_id: str) -> list[Shape]:
        ...
