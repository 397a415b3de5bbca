"""The menu session state machine.

A flat record-transition model: there are no modes, just a
``SessionState`` and a pure function that applies one event to it.
Every (state, event) pair has a successor; nothing here can fail.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

from sshmenu.domain.models import MenuEvent, MenuOption, SessionState, Viewport
from sshmenu.session.spinner import SPINNER_FRAMES


class Transition(NamedTuple):
    """Result of applying one event.

    ``quit`` tells the driver to stop after writing the frame for ``state``.
    """

    state: SessionState
    quit: bool = False


def initial_state(
    options: Sequence[MenuOption],
    viewport: Viewport | None = None,
) -> SessionState:
    """State for a freshly connected client.

    A missing viewport (the client never reported a size) becomes 0x0 and is
    corrected by the first resize event.
    """
    return SessionState(
        viewport=viewport or Viewport(),
        options=tuple(options),
    )


def transition(state: SessionState, event: MenuEvent) -> Transition:
    """Apply ``event`` to ``state`` and return the successor."""
    kind = event.event_type

    if kind == "resize":
        viewport = Viewport(width=event.width, height=event.height)
        return Transition(state.model_copy(update={"viewport": viewport}))

    if kind == "move_up":
        return Transition(state.model_copy(update={"cursor": max(0, state.cursor - 1)}))

    if kind == "move_down":
        last = len(state.options) - 1
        return Transition(state.model_copy(update={"cursor": min(last, state.cursor + 1)}))

    if kind == "toggle_select":
        # Symmetric difference flips exactly the cursor's membership
        selected = state.selected ^ {state.cursor}
        return Transition(state.model_copy(update={"selected": frozenset(selected)}))

    if kind == "tick":
        phase = (state.animation_phase + 1) % len(SPINNER_FRAMES)
        return Transition(state.model_copy(update={"animation_phase": phase}))

    if kind == "quit":
        return Transition(state, quit=True)

    # unrecognized
    return Transition(state)
