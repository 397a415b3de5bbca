"""Menu session module for sshmenu.

The transport-independent core: key decoding, the state machine, the
renderer and the driver that runs one client's event loop.

Public API:
    SessionDriver -- Event loop for one connected client
    TerminalChannel -- Abstract terminal stream the driver talks to
    initial_state / transition -- The state machine
    render -- State to frame
"""

from sshmenu.session.channel import ChannelClosedError, TerminalChannel
from sshmenu.session.driver import SessionDriver
from sshmenu.session.keys import InputDecoder, decode_key
from sshmenu.session.model import Transition, initial_state, transition
from sshmenu.session.render import render
from sshmenu.session.spinner import SPINNER_FRAMES, TickSource

__all__ = [
    "ChannelClosedError",
    "InputDecoder",
    "SPINNER_FRAMES",
    "SessionDriver",
    "TerminalChannel",
    "TickSource",
    "Transition",
    "decode_key",
    "initial_state",
    "render",
    "transition",
]
