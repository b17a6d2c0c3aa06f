"""Shared state-machine plumbing: transition logging and safe event dispatch."""

import logging
from collections.abc import Callable
from typing import Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

logger = logging.getLogger(__name__)


class TransitionLogListener:
    """Listener that logs every transition of the machine it is attached to.

    Usage:
        sm = ViewportStateMachine(context=context)
        sm.add_listener(TransitionLogListener(name="viewport"))
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.debug(f"[STATE] {self.name}: {source.name} --({event})--> {target.name}")


class CallbackListener:
    """Listener that calls a zero-argument callback after every transition."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback

    def after_transition(self) -> None:
        self.callback()


def try_transition(machine: StateMachine, event: str, **kwargs: Any) -> bool:
    """Attempt a transition, returning success/failure.

    Args:
        machine: State machine to send the event to
        event: Transition event name
        **kwargs: Arguments for transition callbacks

    Returns:
        True if transition succeeded, False if the current state (or a
        guard) does not accept the event.
    """
    try:
        machine.send(event, **kwargs)
        return True
    except TransitionNotAllowed:
        logger.debug(f"Transition '{event}' not allowed from {machine.current_state.name}")
        return False
