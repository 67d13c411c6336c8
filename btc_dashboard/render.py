"""Layout of the dashboard as a list of panels.

Nothing here touches the terminal or mutates state: :func:`render` maps the
dashboard and overlay state onto rectangles and strings, and the curses
backend in :mod:`btc_dashboard.session` paints the result.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .address import Validity, ValidityKind, classify
from .address_book import AddressEntry
from .dashboard import DashboardState
from .keys import DASHBOARD_HELP, OVERLAY_HELP
from .overlay import OverlayState, StatusMessage
from .qr import render_qr

HELP_HEIGHT = 4
INFO_HEIGHT = 7
INPUT_HEIGHT = 3
OVERLAY_HINT = "Ctrl+N new(save)  Ctrl+G getnew  Ctrl+C copy  Ctrl+X close"


class Tone(Enum):
    NORMAL = "normal"
    ACCENT = "accent"
    HIGHLIGHT = "highlight"
    WARN = "warn"
    ERROR = "error"
    OK = "ok"
    DIM = "dim"


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def inner(self) -> "Rect":
        return Rect(self.x + 1, self.y + 1, max(0, self.width - 2), max(0, self.height - 2))


@dataclass(frozen=True)
class Panel:
    """A titled, bordered box of text lines.

    ``highlight`` indexes into ``lines``; ``clear`` blanks whatever was drawn
    underneath first (used by the modal overlay).
    """

    name: str
    rect: Rect
    title: str = ""
    lines: tuple[str, ...] = ()
    tone: Tone = Tone.NORMAL
    title_tone: Tone = Tone.NORMAL
    border_tone: Tone = Tone.NORMAL
    highlight: int | None = None
    border: bool = True
    clear: bool = False

    @property
    def body(self) -> Rect:
        return self.rect.inner if self.border else self.rect


@dataclass(frozen=True)
class Screen:
    panels: tuple[Panel, ...]
    cursor: tuple[int, int] | None = None
    output_height: int = 0

    def panel(self, name: str) -> Panel:
        for panel in self.panels:
            if panel.name == name:
                return panel
        raise KeyError(name)


# Layout helpers -------------------------------------------------------------


def split_rows(rect: Rect, heights: Sequence[int | None]) -> list[Rect]:
    """Split ``rect`` top to bottom; ``None`` takes whatever is left."""

    fixed = sum(h for h in heights if h is not None)
    flexible = max(0, rect.height - fixed)
    rows = []
    y = rect.y
    bottom = rect.y + rect.height
    for height in heights:
        h = flexible if height is None else height
        h = max(0, min(h, bottom - y))
        rows.append(Rect(rect.x, y, rect.width, h))
        y += h
    return rows


def split_columns(rect: Rect, percents: Sequence[int]) -> list[Rect]:
    """Split ``rect`` left to right by percentage; the last column takes the rest."""

    cols = []
    x = rect.x
    for index, percent in enumerate(percents):
        if index == len(percents) - 1:
            width = rect.x + rect.width - x
        else:
            width = rect.width * percent // 100
        cols.append(Rect(x, rect.y, max(0, width), rect.height))
        x += width
    return cols


def centered_rect(percent_x: int, percent_y: int, rect: Rect) -> Rect:
    width = rect.width * percent_x // 100
    height = rect.height * percent_y // 100
    return Rect(
        rect.x + (rect.width - width) // 2,
        rect.y + (rect.height - height) // 2,
        width,
        height,
    )


def visible_window(lines: Sequence[str], offset: int, height: int) -> list[str]:
    """Slice of ``lines`` starting at ``offset``; empty once offset passes the end."""

    if height <= 0 or offset >= len(lines):
        return []
    return list(lines[offset:offset + height])


def _follow(selected: int | None, count: int, height: int) -> int:
    # First row to show so that ``selected`` stays inside the window.
    if selected is None or height <= 0 or count <= height:
        return 0
    return max(0, min(selected - height + 1, count - height))


def _wrap(text: str, width: int) -> tuple[str, ...]:
    if width <= 0:
        return ()
    lines: list[str] = []
    for raw in text.splitlines():
        lines.extend(textwrap.wrap(raw, width) or [""])
    return tuple(lines)


# Validity styling -----------------------------------------------------------


@dataclass(frozen=True)
class ValidityStyle:
    input_title: str
    qr_title: str
    tone: Tone
    show_qr: bool


def validity_style(validity: Validity) -> ValidityStyle:
    """Titles and tone shared by the address input and the QR box."""

    if validity.kind is ValidityKind.EMPTY:
        return ValidityStyle(
            " BTC Address ", " Bitcoin QR Code — (enter an address) ", Tone.WARN, False
        )
    if validity.kind is ValidityKind.INVALID:
        return ValidityStyle(
            " BTC Address — INVALID ", " Bitcoin QR Code — INVALID ", Tone.ERROR, False
        )
    return ValidityStyle(
        " BTC Address — VALID ", f" Bitcoin QR Code — {validity.label} ", Tone.OK, True
    )


# Panels ---------------------------------------------------------------------


def _dashboard_panels(state: DashboardState, area: Rect) -> tuple[list[Panel], int]:
    left, right = split_columns(area, (35, 65))
    node_rect, wallet_rect, commands_rect = split_rows(left, (INFO_HEIGHT, INFO_HEIGHT, None))

    wallet_title = "Wallet Info (hidden)" if state.hide_sensitive else "Wallet Info"
    panels = [
        Panel("node_info", node_rect, "Node Info", _wrap(state.node_info_text, node_rect.inner.width)),
        Panel("wallet_info", wallet_rect, wallet_title, _wrap(state.wallet_display, wallet_rect.inner.width)),
    ]

    rows = commands_rect.inner.height
    first = _follow(state.selected_index, len(state.commands), rows)
    panels.append(
        Panel(
            "commands",
            commands_rect,
            "Commands",
            tuple(state.commands[first:first + rows]),
            highlight=state.selected_index - first,
        )
    )

    output_height = right.inner.height
    window = visible_window(state.output_lines, state.scroll_offset, output_height)
    panels.append(Panel("output", right, "Output", tuple(window)))
    return panels, output_height


def _help_panel(rect: Rect, overlay_open: bool) -> Panel:
    heading, text = ("Overlay keys:", OVERLAY_HELP) if overlay_open else ("Main keys:", DASHBOARD_HELP)
    return Panel(
        "help",
        rect,
        "Help",
        (heading,) + _wrap(text, rect.inner.width),
        title_tone=Tone.ACCENT,
        border_tone=Tone.ACCENT,
        highlight=0,
    )


def _overlay_panels(
    overlay: OverlayState,
    book: Sequence[AddressEntry],
    status: StatusMessage | None,
    validity: Validity,
    qr_renderer: Callable[[str], list[str]],
    size: Rect,
) -> tuple[list[Panel], tuple[int, int] | None]:
    area = centered_rect(80, 75, size)
    outer = Panel(
        "overlay",
        area,
        " Address Book & QR (edit left • list right) ",
        border_tone=Tone.ACCENT,
        title_tone=Tone.ACCENT,
        clear=True,
    )
    content = Rect(area.x + 1, area.y + 1, max(0, area.width - 2), max(0, area.height - 2))
    left, right = split_columns(content, (60, 40))
    status_rect, input_rect, qr_rect = split_rows(left, (1, INPUT_HEIGHT, None))
    style = validity_style(validity)

    if status is not None:
        status_panel = Panel(
            "status", status_rect, lines=(status.text,),
            tone=Tone.ERROR if status.is_error else Tone.OK, border=False,
        )
    else:
        status_panel = Panel("status", status_rect, lines=(OVERLAY_HINT,), tone=Tone.DIM, border=False)

    buffer = overlay.edit_buffer
    field_width = input_rect.inner.width
    start = max(0, overlay.cursor_position - field_width + 1) if field_width else 0
    input_panel = Panel(
        "address_input",
        input_rect,
        style.input_title,
        (buffer[start:start + field_width],),
        title_tone=style.tone,
        border_tone=Tone.ACCENT,
    )
    cursor = None
    if field_width > 0 and input_rect.inner.height > 0:
        cursor = (input_rect.inner.y, input_rect.inner.x + overlay.cursor_position - start)

    if style.show_qr:
        qr_panel = Panel("qr", qr_rect, style.qr_title, tuple(qr_renderer(buffer.strip())),
                         title_tone=style.tone, border_tone=Tone.ACCENT)
    else:
        qr_panel = Panel("qr", qr_rect, style.qr_title, tone=Tone.DIM,
                         title_tone=style.tone, border_tone=Tone.ACCENT)

    rows = right.inner.height
    selected = overlay.book_selection_index
    first = _follow(selected, len(book), rows)
    book_panel = Panel(
        "address_book",
        right,
        " Addresses (↑/↓ select) ",
        tuple(entry.summary() for entry in book[first:first + rows]),
        border_tone=Tone.ACCENT,
        highlight=None if selected is None else selected - first,
    )
    return [outer, status_panel, input_panel, qr_panel, book_panel], cursor


def render(
    dashboard: DashboardState,
    overlay: OverlayState,
    book: Sequence[AddressEntry],
    width: int,
    height: int,
    *,
    status: StatusMessage | None = None,
    validator: Callable[[str], Validity] = classify,
    qr_renderer: Callable[[str], list[str]] = render_qr,
) -> Screen:
    """Lay out the whole screen for a ``width`` x ``height`` terminal.

    Address validity is recomputed here on every call; ``status`` is the
    overlay message still inside its display window, if any.
    """

    size = Rect(0, 0, max(0, width), max(0, height))
    main_area, help_rect = split_rows(size, (None, HELP_HEIGHT))
    panels, output_height = _dashboard_panels(dashboard, main_area)
    panels.append(_help_panel(help_rect, overlay.is_open))

    cursor = None
    if overlay.is_open:
        validity = validator(overlay.edit_buffer.strip())
        overlay_panels, cursor = _overlay_panels(
            overlay, book, status, validity, qr_renderer, size
        )
        panels.extend(overlay_panels)
    return Screen(tuple(panels), cursor=cursor, output_height=output_height)
