"""Selection state machine and side-panel coordinator.

Uses python-statemachine for the selection lifecycle.

States:
    NO_SELECTION: Side panel closed, no shape in edit mode
    SELECTED: One shape selected; its attributes are in the side panel and
              (with manage capability) its renderer handle is in edit mode

Transitions:
    NO_SELECTION -> SELECTED: select(shape_id)
    SELECTED -> SELECTED: select(other_id) - switch shapes
    SELECTED -> NO_SELECTION: deselect (cancel, successful save, shape gone)

Single-editor rule:
    before_select disables edit mode on the previously selected shape
    before enabling it on the new one, so two shapes are never editable at
    the same time.

Panel:
    Opening and closing the panel changes the drawable width, so both
    re-clamp the viewport. Saving is async and lives in SelectionCoordinator.
"""

import logging
from dataclasses import dataclass, field

from statemachine import State, StateMachine

from geobrowser.model.message import ReadOnlyMessage
from geobrowser.model.shape import AttributeValue
from geobrowser.ui.shape_store import ShapeStore
from geobrowser.ui.viewport import ViewportStateMachine

logger = logging.getLogger(__name__)


@dataclass
class SelectionContext:
    """Selection model shared with the state machine.

    Attributes:
        selected_shape_id: At most one selected shape
        draft_attributes: Unsaved attribute edits shown in the panel
        can_edit_attributes: Capability flag; without it the panel only closes
        can_manage_shapes: Capability flag; without it no shape enters edit mode
    """

    state: str | None = None

    selected_shape_id: str | None = None
    draft_attributes: dict[str, AttributeValue] = field(default_factory=dict)
    can_edit_attributes: bool = True
    can_manage_shapes: bool = True

    def clear(self) -> None:
        self.selected_shape_id = None
        self.draft_attributes = {}

    @property
    def panel_actions(self) -> list[str]:
        """Buttons the side panel offers."""
        return ["save", "cancel"] if self.can_edit_attributes else ["close"]


class SelectionStateMachine(StateMachine):
    """NoSelection <-> Selected(shape_id), see module docstring."""

    no_selection = State("NoSelection", initial=True)
    selected = State("Selected")

    select = no_selection.to(selected, cond="shape_exists") | selected.to(selected, cond="shape_exists")
    deselect = selected.to(no_selection)

    # ==========================================================================
    # Guards
    # ==========================================================================

    def shape_exists(self, shape_id: str) -> bool:
        return shape_id in self.store

    # ==========================================================================
    # Transition Actions
    # ==========================================================================

    def before_select(self, shape_id: str) -> None:
        """Disable the previous editor, then enable the new one."""
        ctx = self.context
        previous = ctx.selected_shape_id
        if previous is not None:
            self.store.handles.set_editing(previous, False)
        ctx.selected_shape_id = shape_id
        ctx.draft_attributes = dict(self.store.get(shape_id).attributes)
        if ctx.can_manage_shapes:
            self.store.handles.set_editing(shape_id, True)
        logger.info(f"[SELECTION] {previous} -> {shape_id}")

    def before_deselect(self) -> None:
        ctx = self.context
        if ctx.selected_shape_id is not None:
            self.store.handles.set_editing(ctx.selected_shape_id, False)
        logger.info(f"[SELECTION] {ctx.selected_shape_id} -> None")
        ctx.clear()
        self.viewport.set_panel_open(False)

    def on_enter_selected(self) -> None:
        self.viewport.set_panel_open(True)

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_selected(self) -> bool:
        return self.selected.is_active

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(
        self,
        store: ShapeStore,
        viewport: ViewportStateMachine,
        context: SelectionContext | None = None,
    ) -> None:
        self.store = store
        self.viewport = viewport
        super().__init__(model=context or SelectionContext())

    @property
    def context(self) -> SelectionContext:
        """Alias for model."""
        return self.model

    def __repr__(self) -> str:
        return f"SelectionStateMachine(state={self.current_state.name}, selected={self.context.selected_shape_id})"


class SelectionCoordinator:
    """Save/cancel workflow of the attribute side panel.

    Example:
        coordinator = SelectionCoordinator(machine=selection_sm)
        coordinator.select("b6f0...")
        coordinator.edit_attribute("name", "Parque")
        await coordinator.save()
    """

    def __init__(self, machine: SelectionStateMachine) -> None:
        self.machine = machine
        self.machine.store.subscribe(self._drop_stale_selection)

    @property
    def context(self) -> SelectionContext:
        return self.machine.context

    @property
    def selected_shape_id(self) -> str | None:
        return self.context.selected_shape_id

    def select(self, shape_id: str) -> bool:
        """Select a shape; returns False if the id is unknown."""
        if not self.machine.shape_exists(shape_id):
            logger.warning(f"[SELECTION] cannot select unknown shape {shape_id}")
            return False
        self.machine.select(shape_id=shape_id)
        return True

    def edit_attribute(self, name: str, value: AttributeValue) -> None:
        """Change one attribute in the panel draft (not persisted until save)."""
        if self.machine.is_selected:
            self.context.draft_attributes[name] = value

    async def save(self, attributes: dict[str, AttributeValue] | None = None) -> bool:
        """Persist the panel draft (plus any given attributes) and close the panel.

        The panel closes only after the store confirms the update. On failure
        the selection and the draft stay as they are so the user can retry.
        """
        ctx = self.context
        if not self.machine.is_selected:
            return False
        if not ctx.can_edit_attributes:
            self.machine.store.messages.show(ReadOnlyMessage(action="save attributes"))
            return False

        shape_id = ctx.selected_shape_id
        ctx.draft_attributes = {**ctx.draft_attributes, **(attributes or {})}
        saved = await self.machine.store.update_attributes(shape_id, ctx.draft_attributes)
        if saved and self.machine.is_selected and ctx.selected_shape_id == shape_id:
            self.machine.deselect()
        return saved

    def cancel(self) -> None:
        """Discard unsaved edits and close the panel (the "close" action when read-only)."""
        if self.machine.is_selected:
            self.machine.deselect()

    def _drop_stale_selection(self) -> None:
        shape_id = self.context.selected_shape_id
        if self.machine.is_selected and shape_id not in self.machine.store:
            logger.info(f"[SELECTION] selected shape {shape_id} is gone; deselecting")
            self.machine.deselect()
