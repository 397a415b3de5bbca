"""Domain models for sshmenu.

This package contains the core data structures used throughout the
system. All models use Pydantic v2 for validation.
"""

from sshmenu.domain.models import (
    Frame,
    MenuEvent,
    MenuOption,
    MoveDown,
    MoveUp,
    Quit,
    Resize,
    SessionState,
    Tick,
    ToggleSelect,
    Unrecognized,
    Viewport,
)

__all__ = [
    "Frame",
    "MenuEvent",
    "MenuOption",
    "MoveDown",
    "MoveUp",
    "Quit",
    "Resize",
    "SessionState",
    "Tick",
    "ToggleSelect",
    "Unrecognized",
    "Viewport",
]
