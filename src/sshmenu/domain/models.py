"""Core domain models for the sshmenu system.

These models represent the data flowing through one menu session: the
session state owned by a connection, the events that drive it, and the
rendered frames written back to the client's terminal.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Menu / Session Models
# ---------------------------------------------------------------------------


class Viewport(BaseModel):
    """Terminal dimensions in character cells."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=0, ge=0, description="Terminal width in columns")
    height: int = Field(default=0, ge=0, description="Terminal height in rows")


class MenuOption(BaseModel):
    """A selectable menu item and the text shown while it is selected."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Text shown in the option list")
    detail: str = Field(default="", description="Text revealed under the option when selected")


class SessionState(BaseModel):
    """The complete state of one connected client's menu.

    Owned exclusively by that connection's session driver. Instances are
    immutable; transitions produce new instances.
    """

    model_config = ConfigDict(frozen=True)

    viewport: Viewport = Field(default_factory=Viewport)
    options: tuple[MenuOption, ...] = Field(min_length=1)
    cursor: int = Field(default=0, ge=0, description="Index of the highlighted option")
    selected: frozenset[int] = Field(default_factory=frozenset)
    animation_phase: int = Field(default=0, ge=0, description="Current spinner frame index")

    @model_validator(mode="after")
    def _check_indices(self) -> SessionState:
        if self.cursor >= len(self.options):
            raise ValueError(
                f"cursor {self.cursor} out of range for {len(self.options)} options"
            )
        invalid = sorted(i for i in self.selected if not 0 <= i < len(self.options))
        if invalid:
            raise ValueError(f"selected indices out of range: {invalid}")
        return self

    def detail_text(self, index: int) -> str:
        """Detail text associated with the option at ``index``."""
        return self.options[index].detail

    def is_selected(self, index: int) -> bool:
        return index in self.selected


# ---------------------------------------------------------------------------
# Events (discriminated union)
# ---------------------------------------------------------------------------


class Resize(BaseModel):
    """The client's terminal changed size."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["resize"] = "resize"
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class MoveUp(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["move_up"] = "move_up"


class MoveDown(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["move_down"] = "move_down"


class ToggleSelect(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["toggle_select"] = "toggle_select"


class Quit(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["quit"] = "quit"


class Tick(BaseModel):
    """Periodic timer event that advances the spinner."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["tick"] = "tick"


class Unrecognized(BaseModel):
    """A key with no binding. Ignored by the state machine."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["unrecognized"] = "unrecognized"
    key: str = Field(default="", description="Decoded key name, for debugging")


# Discriminated union for session events
MenuEvent = Annotated[
    Union[Resize, MoveUp, MoveDown, ToggleSelect, Quit, Tick, Unrecognized],
    Field(discriminator="event_type"),
]


# ---------------------------------------------------------------------------
# Rendering Models
# ---------------------------------------------------------------------------

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")

CURSOR_HOME = "\x1b[H"
CLEAR_SCREEN = "\x1b[2J"


class Frame(BaseModel):
    """One fully rendered screen for a session's terminal.

    ``lines`` carry ANSI styling. The offsets are the centering margins as
    computed; they are negative when the terminal is smaller than the box,
    in which case no margin is applied on that axis.
    """

    model_config = ConfigDict(frozen=True)

    lines: tuple[str, ...]
    box_width: int = Field(ge=0)
    box_height: int = Field(ge=0)
    x_offset: int
    y_offset: int

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def plain(self) -> str:
        """The frame with styling escape sequences removed."""
        return _ANSI_ESCAPE.sub("", self.text)

    def to_terminal(self) -> str:
        """Bytes-ready text that repaints a terminal with this frame."""
        return CURSOR_HOME + CLEAR_SCREEN + "\r\n".join(self.lines)
