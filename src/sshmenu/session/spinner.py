"""Spinner glyphs and the periodic tick source that animates them."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from sshmenu.domain.models import Tick

# Braille "dot" spinner; each glyph carries its own trailing space.
SPINNER_FRAMES: tuple[str, ...] = ("⣾ ", "⣽ ", "⣻ ", "⢿ ", "⡿ ", "⣟ ", "⣯ ", "⣷ ")

DEFAULT_TICK_INTERVAL = 0.1


def spinner_glyph(phase: int) -> str:
    return SPINNER_FRAMES[phase % len(SPINNER_FRAMES)]


class TickSource:
    """Emits a ``Tick`` every ``interval`` seconds, forever.

    Each ``async for`` over the source starts an independent timer, so one
    instance can be shared by configuration but every session gets its own
    cadence.
    """

    def __init__(self, interval: float = DEFAULT_TICK_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError(f"tick interval must be positive, got {interval}")
        self._interval = interval

    @property
    def interval(self) -> float:
        return self._interval

    async def __aiter__(self) -> AsyncIterator[Tick]:
        while True:
            await asyncio.sleep(self._interval)
            yield Tick()
