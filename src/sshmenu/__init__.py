"""sshmenu -- A single-screen interactive menu served over SSH.

Each SSH connection gets its own session: a small selectable list with a
spinner, drawn in a rounded box centered in the client's terminal. The
session logic (state, key decoding, transitions, rendering) is pure and
transport-agnostic; the SSH server only hands it a terminal channel.
"""

__version__ = "0.1.0"
