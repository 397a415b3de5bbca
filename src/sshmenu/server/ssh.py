"""SSH server that hands every connection its own menu session.

paramiko runs each transport in its own thread. The asyncio side accepts
TCP connections, performs the blocking handshake steps in worker threads,
and then drives the session on the event loop: channel input is watched
with ``loop.add_reader`` on the channel's pollable descriptor, and window
changes from the transport thread are handed over with
``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
import time
from functools import partial
from typing import Callable

import paramiko

from sshmenu.config.settings import MenuConfig, Settings
from sshmenu.domain.models import Viewport
from sshmenu.server.host_key import load_host_key
from sshmenu.session.channel import ChannelClosedError, TerminalChannel
from sshmenu.session.driver import SessionDriver
from sshmenu.session.model import initial_state
from sshmenu.session.render import render
from sshmenu.session.spinner import TickSource

logger = logging.getLogger(__name__)

ENTER_ALT_SCREEN = "\x1b[?1049h"
EXIT_ALT_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"

NO_PTY_MESSAGE = b"Requires an active PTY\r\n"


class ServerStartError(Exception):
    """Raised when the listening socket cannot be created."""


class ServerShutdownError(Exception):
    """Raised when sessions are still running at the end of the shutdown timeout."""


# ---------------------------------------------------------------------------
# paramiko server interface
# ---------------------------------------------------------------------------


class MenuServerInterface(paramiko.ServerInterface):
    """Per-connection policy: any user, any auth, one interactive shell.

    paramiko calls these hooks from the transport thread.
    """

    def __init__(self) -> None:
        self.shell_requested = threading.Event()
        self.username = ""
        self.term = ""
        self._window_size: Viewport | None = None
        self._resize_handler: Callable[[Viewport], None] | None = None
        self._lock = threading.Lock()

    @property
    def window_size(self) -> Viewport | None:
        with self._lock:
            return self._window_size

    def set_resize_handler(self, handler: Callable[[Viewport], None]) -> None:
        with self._lock:
            self._resize_handler = handler

    def get_allowed_auths(self, username: str) -> str:
        return "none,password,publickey"

    def check_auth_none(self, username: str) -> int:
        self.username = username
        return paramiko.AUTH_SUCCESSFUL

    def check_auth_password(self, username: str, password: str) -> int:
        self.username = username
        return paramiko.AUTH_SUCCESSFUL

    def check_auth_publickey(self, username: str, key: paramiko.PKey) -> int:
        self.username = username
        return paramiko.AUTH_SUCCESSFUL

    def check_channel_request(self, kind: str, chanid: int) -> int:
        if kind == "session":
            return paramiko.OPEN_SUCCEEDED
        return paramiko.OPEN_FAILED_ADMINISTRATIVELY_PROHIBITED

    def check_channel_pty_request(
        self, channel, term, width, height, pixelwidth, pixelheight, modes
    ) -> bool:
        self.term = term.decode("utf-8", "replace") if isinstance(term, bytes) else str(term)
        with self._lock:
            self._window_size = Viewport(width=max(0, width), height=max(0, height))
        return True

    def check_channel_shell_request(self, channel) -> bool:
        self.shell_requested.set()
        return True

    def check_channel_window_change_request(
        self, channel, width, height, pixelwidth, pixelheight
    ) -> bool:
        viewport = Viewport(width=max(0, width), height=max(0, height))
        with self._lock:
            self._window_size = viewport
            handler = self._resize_handler
        if handler is not None:
            handler(viewport)
        return True


# ---------------------------------------------------------------------------
# Terminal channel over a paramiko channel
# ---------------------------------------------------------------------------


class ParamikoTerminalChannel(TerminalChannel):
    """``TerminalChannel`` backed by an interactive paramiko session channel.

    Must be created from within the running event loop.
    """

    READ_SIZE = 4096

    def __init__(
        self,
        channel: paramiko.Channel,
        window_size: Viewport | None = None,
        peer: str = "",
    ) -> None:
        self._channel = channel
        self._window_size = window_size
        self._peer = peer
        self._loop = asyncio.get_running_loop()
        self._inbox: asyncio.Queue[bytes | Viewport | None] = asyncio.Queue()
        self._fileno: int | None = None
        self._eof = False
        self._closed = False

    @property
    def window_size(self) -> Viewport | None:
        return self._window_size

    async def open(self) -> None:
        self._fileno = self._channel.fileno()
        self._loop.add_reader(self._fileno, self._on_readable)
        try:
            await self.write(ENTER_ALT_SCREEN + HIDE_CURSOR)
        except ChannelClosedError:
            self._stop_reading()
            raise

    async def close(self) -> None:
        if self._closed:
            return
        self._stop_reading()
        try:
            await self.write(SHOW_CURSOR + EXIT_ALT_SCREEN)
        except ChannelClosedError:
            logger.debug("Could not restore terminal for %s, channel already gone", self._peer)
        self._closed = True
        try:
            self._channel.send_exit_status(0)
        except (OSError, paramiko.SSHException) as e:
            logger.debug("Could not send exit status to %s: %s", self._peer, e)
        self._channel.close()

    async def read(self) -> bytes | Viewport | None:
        if self._eof and self._inbox.empty():
            return None
        return await self._inbox.get()

    async def write(self, data: str) -> None:
        if self._closed or self._channel.closed:
            raise ChannelClosedError("channel is closed", peer=self._peer)
        try:
            await asyncio.to_thread(self._channel.sendall, data.encode("utf-8"))
        except (OSError, paramiko.SSHException) as e:
            raise ChannelClosedError(f"write failed: {e}", peer=self._peer) from e

    def notify_resize(self, viewport: Viewport) -> None:
        """Queue a window-size change. Safe to call from any thread."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._inbox.put_nowait, viewport)

    def _on_readable(self) -> None:
        try:
            data = self._channel.recv(self.READ_SIZE)
        except socket.timeout:
            return
        except OSError as e:
            logger.debug("Read from %s failed: %s", self._peer, e)
            data = b""
        if data:
            self._inbox.put_nowait(data)
            return
        self._eof = True
        self._stop_reading()
        self._inbox.put_nowait(None)

    def _stop_reading(self) -> None:
        if self._fileno is not None:
            self._loop.remove_reader(self._fileno)
            self._fileno = None


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


class MenuSSHServer:
    """Accepts SSH connections and runs one ``SessionDriver`` per client.

    Sessions share nothing; the only state held here is the listening
    socket and the set of live connections needed for shutdown.
    """

    def __init__(
        self,
        host_key: paramiko.PKey,
        menu: MenuConfig | None = None,
        host: str = "0.0.0.0",
        port: int = 23234,
        handshake_timeout: float = 10.0,
        require_pty: bool = True,
    ) -> None:
        self._host_key = host_key
        self._menu = menu or MenuConfig()
        self._host = host
        self._port = port
        self._handshake_timeout = handshake_timeout
        self._require_pty = require_pty
        self._sock: socket.socket | None = None
        self._accept_task: asyncio.Task[None] | None = None
        self._sessions: set[asyncio.Task[None]] = set()
        self._transports: set[paramiko.Transport] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> MenuSSHServer:
        cfg = settings.server
        return cls(
            host_key=load_host_key(cfg.host_key_path),
            menu=settings.menu,
            host=cfg.host,
            port=cfg.port,
            handshake_timeout=cfg.handshake_timeout,
            require_pty=cfg.require_pty,
        )

    @property
    def is_serving(self) -> bool:
        return self._sock is not None

    @property
    def address(self) -> tuple[str, int]:
        """The bound (host, port); the port is resolved when 0 was requested."""
        if self._sock is None:
            raise RuntimeError("server is not listening")
        host, port = self._sock.getsockname()[:2]
        return host, port

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def start(self) -> None:
        """Bind the listening socket and start accepting connections."""
        try:
            sock = socket.create_server((self._host, self._port))
        except OSError as e:
            raise ServerStartError(
                f"could not listen on {self._host}:{self._port}: {e}"
            ) from e
        sock.setblocking(False)
        self._sock = sock
        self._accept_task = asyncio.create_task(self._accept_loop(), name="ssh-accept")
        host, port = self.address
        logger.info("Starting SSH server host=%s port=%d", host, port)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Stop accepting, then wait up to ``timeout`` seconds for live sessions.

        Raises:
            ServerShutdownError: If sessions were still running at the deadline;
                they are cut off before this is raised.
        """
        logger.info("Stopping SSH server")
        if self._accept_task is not None:
            self._accept_task.cancel()
            await asyncio.gather(self._accept_task, return_exceptions=True)
            self._accept_task = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

        if not self._sessions:
            return
        logger.info("Waiting up to %.0fs for %d session(s)", timeout, len(self._sessions))
        _, pending = await asyncio.wait(set(self._sessions), timeout=timeout)
        if not pending:
            return

        for transport in list(self._transports):
            transport.close()
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise ServerShutdownError(
            f"{len(pending)} session(s) still active after {timeout:.0f}s"
        )

    async def _accept_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._sock is not None:
            try:
                conn, addr = await loop.sock_accept(self._sock)
            except OSError as e:
                if self._sock is None:
                    return
                logger.warning("Accept failed: %s", e)
                await asyncio.sleep(0.1)
                continue
            conn.setblocking(True)
            peer = f"{addr[0]}:{addr[1]}"
            task = asyncio.create_task(
                self._handle_connection(conn, peer), name=f"ssh-session-{peer}"
            )
            self._sessions.add(task)
            task.add_done_callback(self._sessions.discard)

    async def _handle_connection(self, conn: socket.socket, peer: str) -> None:
        transport = paramiko.Transport(conn)
        transport.add_server_key(self._host_key)
        interface = MenuServerInterface()
        self._transports.add(transport)
        try:
            await asyncio.to_thread(transport.start_server, server=interface)
            chan = await asyncio.to_thread(transport.accept, self._handshake_timeout)
            if chan is None:
                logger.warning("No session channel from %s within %.0fs", peer, self._handshake_timeout)
                return

            got_shell = await asyncio.to_thread(
                interface.shell_requested.wait, self._handshake_timeout
            )
            if not got_shell:
                logger.warning("No shell request from %s, closing", peer)
                chan.close()
                return

            if self._require_pty and interface.window_size is None:
                logger.info("Rejecting %s: no active PTY", peer)
                await asyncio.to_thread(chan.sendall, NO_PTY_MESSAGE)
                chan.send_exit_status(1)
                chan.close()
                return

            await self._run_session(chan, interface, transport, peer)
        except (paramiko.SSHException, EOFError, OSError) as e:
            logger.warning("SSH connection from %s failed: %s", peer, e)
        except ChannelClosedError as e:
            logger.info("Session with %s ended early: %s", peer, e)
        finally:
            self._transports.discard(transport)
            transport.close()

    async def _run_session(
        self,
        chan: paramiko.Channel,
        interface: MenuServerInterface,
        transport: paramiko.Transport,
        peer: str,
    ) -> None:
        username = transport.get_username() or interface.username
        channel = ParamikoTerminalChannel(chan, interface.window_size, peer=peer)
        interface.set_resize_handler(channel.notify_resize)

        size = channel.window_size or Viewport()
        logger.info(
            "%s connect %s term=%s size=%dx%d client=%s",
            username, peer, interface.term or "-", size.width, size.height,
            transport.remote_version,
        )
        started = time.monotonic()
        try:
            async with channel:
                driver = SessionDriver(
                    channel,
                    initial_state(self._menu.options, channel.window_size),
                    ticks=TickSource(self._menu.tick_interval),
                    renderer=partial(
                        render,
                        title=self._menu.title,
                        wrap_padding=self._menu.wrap_padding,
                    ),
                )
                await driver.run()
        finally:
            logger.info(
                "%s disconnect %s %.3fs", username, peer, time.monotonic() - started
            )
