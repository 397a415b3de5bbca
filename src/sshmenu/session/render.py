"""Layout and rendering of a menu session into a terminal frame.

``render`` is a pure function of the session state: the same state always
produces the same frame, byte for byte. Box drawing and styling go through
``rich`` with a fixed, environment-independent console configuration.

Layout of the content inside the box::

    <blank>
    <spinner> <title>
    <blank>
    > [ ] info
      [x] contact
    <blank>
    <detail text, word-wrapped>
    <blank>
    <blank>
    <blank>
    j down · k up · spc select · q quit
"""

from __future__ import annotations

import io
import textwrap

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from sshmenu.domain.models import Frame, SessionState
from sshmenu.session.spinner import spinner_glyph

DEFAULT_TITLE = "czpl.dev WIP"
DEFAULT_WRAP_PADDING = 10

PADDING_Y = 1
PADDING_X = 2
BORDER = 1

SPINNER_STYLE = Style(color="color(205)")
OPTION_STYLE = Style(color="color(10)")
HELP_KEY_STYLE = Style(color="color(8)")
HELP_DESC_STYLE = Style(color="color(238)")

HELP_BINDINGS = (
    ("j", " down · "),
    ("k", " up · "),
    ("spc", " select · "),
    ("q", " quit "),
)


def wrap_detail(text: str, width: int) -> list[str]:
    """Word-wrap ``text`` to ``width`` columns.

    Words longer than the width are left intact and existing line breaks
    are kept. A width below 1 is treated as 1.
    """
    width = max(1, width)
    lines: list[str] = []
    for paragraph in text.splitlines():
        lines.extend(
            textwrap.wrap(
                paragraph,
                width=width,
                break_long_words=False,
                break_on_hyphens=False,
            )
            or [""]
        )
    return lines


def help_line() -> Text:
    line = Text()
    for key, description in HELP_BINDINGS:
        line.append(key, style=HELP_KEY_STYLE)
        line.append(description, style=HELP_DESC_STYLE)
    return line


def build_content(
    state: SessionState,
    title: str = DEFAULT_TITLE,
    wrap_padding: int = DEFAULT_WRAP_PADDING,
) -> list[Text]:
    """The lines shown inside the box, before borders and centering."""
    header = Text()
    header.append(spinner_glyph(state.animation_phase), style=SPINNER_STYLE)
    header.append(f" {title} ")

    lines = [Text(""), header, Text("")]
    wrap_width = state.viewport.width - wrap_padding

    for index, option in enumerate(state.options):
        cursor = ">" if index == state.cursor else " "
        checked = "x" if state.is_selected(index) else " "
        lines.append(Text(f"{cursor} [{checked}] {option.label}", style=OPTION_STYLE))

        detail = state.detail_text(index) if state.is_selected(index) else ""
        if detail:
            lines.append(Text(""))
            lines.extend(
                Text(row, style=OPTION_STYLE) for row in wrap_detail(detail, wrap_width)
            )
            lines.append(Text(""))

    lines.extend([Text(""), Text(""), help_line()])
    return lines


def centre_offset(available: int, used: int) -> int:
    """Half the free space, truncated toward zero. Negative when ``used`` overflows."""
    free = available - used
    if free < 0:
        return -(-free // 2)
    return free // 2


def _draw_box(content: list[Text], box_width: int) -> list[str]:
    console = Console(
        file=io.StringIO(),
        width=box_width,
        force_terminal=True,
        color_system="256",
        no_color=False,
        legacy_windows=False,
        highlight=False,
        markup=False,
        emoji=False,
    )
    body = Text("\n", no_wrap=True, overflow="ignore").join(content)
    panel = Panel(
        body,
        box=box.ROUNDED,
        padding=(PADDING_Y, PADDING_X),
        width=box_width,
        expand=False,
    )
    with console.capture() as capture:
        console.print(panel)
    return capture.get().rstrip("\n").split("\n")


def _apply_margins(lines: list[str], box_width: int, x_offset: int, y_offset: int) -> list[str]:
    margin_x = max(0, x_offset)
    margin_y = max(0, y_offset)
    side = " " * margin_x
    blank = " " * (box_width + 2 * margin_x)
    return (
        [blank] * margin_y
        + [side + line + side for line in lines]
        + [blank] * margin_y
    )


def render(
    state: SessionState,
    *,
    title: str = DEFAULT_TITLE,
    wrap_padding: int = DEFAULT_WRAP_PADDING,
) -> Frame:
    """Render ``state`` into a centered, boxed frame."""
    content = build_content(state, title=title, wrap_padding=wrap_padding)

    content_width = max(line.cell_len for line in content)
    box_width = content_width + 2 * (PADDING_X + BORDER)
    box_height = len(content) + 2 * (PADDING_Y + BORDER)

    x_offset = centre_offset(state.viewport.width, box_width)
    y_offset = centre_offset(state.viewport.height, box_height)

    lines = _apply_margins(_draw_box(content, box_width), box_width, x_offset, y_offset)
    return Frame(
        lines=tuple(lines),
        box_width=box_width,
        box_height=box_height,
        x_offset=x_offset,
        y_offset=y_offset,
    )
