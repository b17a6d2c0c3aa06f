"""Message - User-facing notifications for the map browser.

Failures that the user must see (persistence errors, rejected edits,
missing capabilities) are represented as frozen ToastMessage dataclasses.
The core records the latest one in UIMessagesContext; the UI shell reads it
from the render snapshot and decides how to show it.

Design Principles:
- Messages carry the data needed to explain the failure (ids, reasons)
- Messages know their own level and icon
- Recording a message logs it with the [TOAST] tag
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class MessageLevel(Enum):
    """Display level for UI messages."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ToastMessage(ABC):
    """Abstract base class for transient popup notifications."""

    @property
    @abstractmethod
    def message(self) -> str:
        """Formatted message text."""
        raise NotImplementedError

    @property
    @abstractmethod
    def icon(self) -> str:
        raise NotImplementedError

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.ERROR

    def display(self) -> None:
        """Log this message; the UI shell shows it from the snapshot."""
        logger.info(f"[TOAST] {self.icon} {self.message}")


@dataclass(frozen=True)
class ShapeCreateFailedMessage(ToastMessage):
    """Server rejected a newly drawn shape; it was removed again."""

    shape_type: str
    reason: str

    @property
    def icon(self) -> str:
        return "❌"

    @property
    def message(self) -> str:
        return f"Could not save new {self.shape_type} — {self.reason}"


@dataclass(frozen=True)
class ShapeUpdateFailedMessage(ToastMessage):
    """Server rejected an edit; the previous geometry/attributes were restored."""

    shape_id: str
    reason: str

    @property
    def icon(self) -> str:
        return "↩️"

    @property
    def message(self) -> str:
        return f"Could not update shape {self.shape_id} — {self.reason}. Changes were reverted."


@dataclass(frozen=True)
class ShapeDeleteFailedMessage(ToastMessage):
    """Server rejected a delete; the shape was put back."""

    shape_id: str
    reason: str

    @property
    def icon(self) -> str:
        return "🗑️"

    @property
    def message(self) -> str:
        return f"Could not delete shape {self.shape_id} — {self.reason}. The shape was restored."


@dataclass(frozen=True)
class ShapeBusyMessage(ToastMessage):
    """A change to this shape is still being saved."""

    shape_id: str

    @property
    def icon(self) -> str:
        return "⏳"

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return f"Shape {self.shape_id} is still saving — try again when it finishes."


@dataclass(frozen=True)
class InvalidGeometryMessage(ToastMessage):
    """Edited geometry violates a vertex-count rule. Rejected locally."""

    shape_type: str
    vertex_count: int
    min_vertices: int

    @property
    def icon(self) -> str:
        return "📐"

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return (
            f"Invalid {self.shape_type} — {self.vertex_count} distinct vertices, "
            f"need at least {self.min_vertices}"
        )


@dataclass(frozen=True)
class ReadOnlyMessage(ToastMessage):
    """User attempted an action their capabilities do not allow."""

    action: str

    @property
    def icon(self) -> str:
        return "🔒"

    @property
    def level(self) -> MessageLevel:
        return MessageLevel.WARNING

    @property
    def message(self) -> str:
        return f"Cannot {self.action} — this map is read-only for you"


@dataclass(frozen=True)
class LayerLoadFailedMessage(ToastMessage):
    """Shapes for a layer could not be loaded; the previous layer stays active."""

    layer_id: str
    reason: str

    @property
    def icon(self) -> str:
        return "🗺️"

    @property
    def message(self) -> str:
        return f"Could not load layer {self.layer_id} — {self.reason}"


@dataclass
class UIMessagesContext:
    """Latest user-facing error, shown until replaced or cleared."""

    error: ToastMessage | None = None

    def show(self, message: ToastMessage) -> None:
        self.error = message
        message.display()

    def clear(self) -> None:
        self.error = None
