"""Abstract base class for a session's terminal channel.

A session driver talks to its client only through this interface, which
lets the SSH transport be swapped for an in-memory fake in tests without
changing any session code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sshmenu.domain.models import Viewport


class TerminalChannel(ABC):
    """Bidirectional terminal stream for one connected client.

    Inbound, the channel yields raw key bytes and window-size notifications
    in the order they arrived. Outbound, it accepts text (terminal control
    sequences included) to display.

    Example usage::

        async with channel:
            while (item := await channel.read()) is not None:
                ...
            await channel.write(frame.to_terminal())
    """

    @property
    @abstractmethod
    def window_size(self) -> Viewport | None:
        """Terminal size reported when the session started, if any."""
        ...

    @abstractmethod
    async def open(self) -> None:
        """Prepare the client's terminal for drawing.

        Must be called before the first write.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Restore the client's terminal and end the session.

        Should be safe to call multiple times and on an already broken
        channel.
        """
        ...

    @abstractmethod
    async def read(self) -> bytes | Viewport | None:
        """Wait for the next inbound item.

        Returns:
            Raw key bytes, a ``Viewport`` when the client resized its
            window, or ``None`` once the stream has ended.

        Raises:
            ChannelClosedError: If the channel failed while reading.
        """
        ...

    @abstractmethod
    async def write(self, data: str) -> None:
        """Send text to the client's terminal.

        Raises:
            ChannelClosedError: If the channel is closed or the write fails.
        """
        ...

    async def __aenter__(self) -> TerminalChannel:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class ChannelClosedError(Exception):
    """Raised when a terminal channel can no longer be used."""

    def __init__(self, message: str, peer: str = "") -> None:
        super().__init__(message)
        self.peer = peer
