"""The per-connection session driver.

Ties together the input decoder, the tick source, the state machine and
the renderer for one client: event -> transition -> render -> write ->
repeat, until the client quits or the channel goes away.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, Callable

from sshmenu.domain.models import Frame, MenuEvent, SessionState, Tick, Viewport
from sshmenu.session.channel import ChannelClosedError, TerminalChannel
from sshmenu.session.keys import InputDecoder, decode_resize
from sshmenu.session.model import transition
from sshmenu.session.render import render

logger = logging.getLogger(__name__)

# Queued by the input pump when the channel has no more input.
_CLOSED = None

# Producers block on a full queue, so a stalled write also stalls the tick pump.
EVENT_QUEUE_SIZE = 32


class SessionDriver:
    """Runs the event loop for one connected client.

    Input and timer events are fanned into a single queue by two producer
    tasks, so each source keeps its own order while the interleaving
    between them is whatever the event loop delivers first.
    """

    def __init__(
        self,
        channel: TerminalChannel,
        state: SessionState,
        ticks: AsyncIterable[Tick] | None = None,
        renderer: Callable[[SessionState], Frame] = render,
        decoder: InputDecoder | None = None,
    ) -> None:
        self._channel = channel
        self._state = state
        self._ticks = ticks
        self._renderer = renderer
        self._decoder = decoder or InputDecoder()
        self._running = False
        self._frames_written = 0
        self._queue: asyncio.Queue[MenuEvent | None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def frames_written(self) -> int:
        return self._frames_written

    async def run(self) -> SessionState:
        """Drive the session until quit or disconnect and return the final state."""
        self._running = True
        queue: asyncio.Queue[MenuEvent | None] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)
        self._queue = queue

        if not await self._write_frame():
            self._running = False
            self._queue = None
            return self._state

        producers = [
            asyncio.create_task(self._pump_input(queue), name="session-input"),
            asyncio.create_task(self._pump_ticks(queue), name="session-ticks"),
        ]
        try:
            while self._running:
                event = await queue.get()
                if event is _CLOSED:
                    logger.debug("Input stream ended, closing session")
                    break

                result = transition(self._state, event)
                self._state = result.state

                if not await self._write_frame():
                    break
                if result.quit:
                    logger.debug("Quit requested after %d frames", self._frames_written)
                    break
        finally:
            self._running = False
            self._queue = None
            for task in producers:
                task.cancel()
            await asyncio.gather(*producers, return_exceptions=True)

        return self._state

    def stop(self) -> None:
        """Ask the loop to stop after the event it is currently handling.

        An idle loop is woken up and returns without writing another frame.
        """
        self._running = False
        if self._queue is None:
            return
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The loop is not idle; it sees the cleared flag after this event.
            pass

    async def _write_frame(self) -> bool:
        frame = self._renderer(self._state)
        try:
            await self._channel.write(frame.to_terminal())
        except ChannelClosedError as e:
            logger.debug("Frame write failed, ending session: %s", e)
            return False
        self._frames_written += 1
        return True

    async def _pump_input(self, queue: asyncio.Queue[MenuEvent | None]) -> None:
        while True:
            try:
                item = await self._channel.read()
            except ChannelClosedError as e:
                logger.debug("Channel read failed: %s", e)
                item = None

            if item is None:
                await queue.put(_CLOSED)
                return
            if isinstance(item, Viewport):
                await queue.put(decode_resize(item))
                continue
            for event in self._decoder.feed(item):
                await queue.put(event)

    async def _pump_ticks(self, queue: asyncio.Queue[MenuEvent | None]) -> None:
        if self._ticks is None:
            return
        async for tick in self._ticks:
            await queue.put(tick)
