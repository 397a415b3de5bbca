"""Input decoding for menu sessions.

Turns the raw byte stream a terminal sends into key names (``"up"``,
``"enter"``, ``"ctrl+c"``, ``"q"``, ...) and then into menu events.
"""

from __future__ import annotations

import codecs
import logging
import re

from sshmenu.domain.models import (
    MenuEvent,
    MoveDown,
    MoveUp,
    Quit,
    Resize,
    ToggleSelect,
    Unrecognized,
    Viewport,
)

logger = logging.getLogger(__name__)

ESC = "\x1b"

# Escape sequence to key name mapping
SEQUENCE_MAP = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1b[3~": "delete",
}

# Single control characters with their own names
CONTROL_MAP = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x00": "ctrl+@",
}

# Key name to menu event mapping
KEY_BINDINGS: dict[str, type[MoveUp | MoveDown | ToggleSelect | Quit]] = {
    "up": MoveUp,
    "k": MoveUp,
    "down": MoveDown,
    "j": MoveDown,
    "enter": ToggleSelect,
    " ": ToggleSelect,
    "q": Quit,
    "ctrl+c": Quit,
}

_CSI = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_SS3 = re.compile(r"\x1bO[@-~]")
_ESC_PREFIX = re.compile(r"\x1b(\[[0-9;?]*[ -/]*|O)?$")


def parse_keys(text: str) -> tuple[list[str], str]:
    """Split decoded terminal input into key names.

    Returns the key names and any trailing incomplete escape sequence,
    which the caller should prepend to the next chunk.
    """
    keys: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == ESC:
            match = _CSI.match(text, i) or _SS3.match(text, i)
            if match:
                seq = match.group(0)
                keys.append(SEQUENCE_MAP.get(seq, seq))
                i = match.end()
                continue
            rest = text[i:]
            if rest == ESC:
                keys.append("esc")
                break
            if _ESC_PREFIX.match(rest):
                return keys, rest
            nxt = text[i + 1]
            if nxt == ESC:
                keys.append("esc")
                i += 1
            else:
                keys.append(f"alt+{nxt}")
                i += 2
            continue
        if ch in CONTROL_MAP:
            keys.append(CONTROL_MAP[ch])
        elif ord(ch) < 0x20:
            keys.append(f"ctrl+{chr(ord(ch) + 0x60)}")
        else:
            keys.append(ch)
        i += 1
    return keys, ""


def decode_key(key: str) -> MenuEvent:
    """Map a key name to its menu event; unbound keys become ``Unrecognized``."""
    event_type = KEY_BINDINGS.get(key)
    if event_type is None:
        return Unrecognized(key=key)
    return event_type()


def decode_resize(viewport: Viewport) -> Resize:
    return Resize(width=viewport.width, height=viewport.height)


class InputDecoder:
    """Stateful decoder for one session's input stream.

    Keeps partial UTF-8 characters and partial escape sequences between
    reads so that a key split across two network packets decodes once.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[MenuEvent]:
        text = self._pending + self._utf8.decode(data)
        keys, self._pending = parse_keys(text)
        if self._pending:
            logger.debug("Holding incomplete escape sequence %r", self._pending)
        return [decode_key(key) for key in keys]
