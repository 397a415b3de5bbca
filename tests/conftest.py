"""Shared test fixtures for the sshmenu test suite.

Provides common fixtures used across unit tests: menu options, session
states, an in-memory terminal channel standing in for SSH, and a paramiko
client that keeps a live session open against a running server.
"""

from __future__ import annotations

import asyncio
import socket
import threading
from typing import Callable

import paramiko
import pytest

from sshmenu.domain.models import MenuOption, SessionState, Viewport
from sshmenu.session.channel import ChannelClosedError, TerminalChannel


# ---------------------------------------------------------------------------
# Menu / State Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def menu_options() -> tuple[MenuOption, ...]:
    """The two-item menu used by most tests."""
    return (
        MenuOption(
            label="info",
            detail=(
                "I write software for a living and tinker with small tools "
                "in my spare time, mostly in Python and Go."
            ),
        ),
        MenuOption(label="contact", detail="someone@example.com"),
    )


@pytest.fixture
def sample_state(menu_options: tuple[MenuOption, ...]) -> SessionState:
    """A fresh session on an 80x24 terminal."""
    return SessionState(viewport=Viewport(width=80, height=24), options=menu_options)


# ---------------------------------------------------------------------------
# Channel Fixtures
# ---------------------------------------------------------------------------


class FakeTerminalChannel(TerminalChannel):
    """In-memory terminal channel.

    Tests push inbound items with ``feed()``; everything the driver writes
    is recorded in ``writes``.
    """

    def __init__(
        self,
        window_size: Viewport | None = Viewport(width=80, height=24),
        fail_after_writes: int | None = None,
        stall_after_writes: int | None = None,
    ) -> None:
        self._window_size = window_size
        self._fail_after_writes = fail_after_writes
        self._stall_after_writes = stall_after_writes
        self.unstall = asyncio.Event()
        self.inbox: asyncio.Queue[bytes | Viewport | None | Exception] = asyncio.Queue()
        self.writes: list[str] = []
        self.opened = False
        self.closed = False

    @property
    def window_size(self) -> Viewport | None:
        return self._window_size

    def feed(self, item: bytes | Viewport | None | Exception) -> None:
        self.inbox.put_nowait(item)

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def read(self) -> bytes | Viewport | None:
        item = await self.inbox.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def write(self, data: str) -> None:
        if self.closed:
            raise ChannelClosedError("fake channel closed")
        if self._fail_after_writes is not None and len(self.writes) >= self._fail_after_writes:
            raise ChannelClosedError("fake write failure")
        if self._stall_after_writes is not None and len(self.writes) >= self._stall_after_writes:
            # Like a client that stopped reading: the write hangs until released.
            await self.unstall.wait()
        self.writes.append(data)


@pytest.fixture
def fake_channel() -> FakeTerminalChannel:
    return FakeTerminalChannel()


@pytest.fixture
def channel_factory() -> type[FakeTerminalChannel]:
    """The fake channel class, for tests that need non-default construction."""
    return FakeTerminalChannel


# ---------------------------------------------------------------------------
# SSH Client Fixtures
# ---------------------------------------------------------------------------


def _hold_ssh_session(port: int, ready: threading.Event) -> bytes:
    """Open a PTY session, set ``ready`` once the menu is drawn, read until cut off."""
    sock = socket.create_connection(("127.0.0.1", port), timeout=5)
    transport = paramiko.Transport(sock)
    received = b""
    try:
        transport.start_client(timeout=5)
        transport.auth_none("tester")
        chan = transport.open_session(timeout=5)
        chan.settimeout(10)
        chan.get_pty(term="xterm", width=80, height=24)
        chan.invoke_shell()
        while True:
            chunk = chan.recv(4096)
            if not chunk:
                break
            received += chunk
            if b"contact" in received:
                ready.set()
    except (EOFError, OSError, paramiko.SSHException):
        pass
    finally:
        ready.set()
        transport.close()
    return received


@pytest.fixture
def hold_ssh_session() -> Callable[[int, threading.Event], bytes]:
    """Blocking client that stays connected until the server drops it.

    Run it in a worker thread with ``asyncio.to_thread``.
    """
    return _hold_ssh_session
