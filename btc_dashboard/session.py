"""The session loop and its curses backend."""

from __future__ import annotations

import contextlib
import curses
import locale
import logging
import time
from typing import Callable, Protocol

from .address_book import AddressBookStore, load_commands
from .config import DashboardConfig
from .dashboard import DashboardAction, DashboardController
from .keys import Key, KeyEvent
from .overlay import OverlayController
from .query import QueryExecutor, build_executor
from .render import Panel, Screen, Tone, render

logger = logging.getLogger(__name__)

ESC_DELAY_MS = 25

_CURSES_KEYS = {
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_LEFT: Key.LEFT,
    curses.KEY_RIGHT: Key.RIGHT,
    curses.KEY_HOME: Key.HOME,
    curses.KEY_END: Key.END,
    curses.KEY_ENTER: Key.ENTER,
    curses.KEY_BACKSPACE: Key.BACKSPACE,
    curses.KEY_DC: Key.DELETE,
    curses.KEY_PPAGE: Key.PAGE_UP,
    curses.KEY_NPAGE: Key.PAGE_DOWN,
}


def translate_key(raw: int | str) -> KeyEvent | None:
    """Map a ``get_wch`` result to a :class:`KeyEvent` (None for ignored keys)."""

    if isinstance(raw, int):
        key = _CURSES_KEYS.get(raw)
        return KeyEvent(key) if key is not None else None
    if raw in ("\n", "\r"):
        return KeyEvent(Key.ENTER)
    if raw in ("\x7f", "\x08"):
        return KeyEvent(Key.BACKSPACE)
    if raw == "\x1b":
        return KeyEvent(Key.ESCAPE)
    code = ord(raw)
    if 1 <= code <= 26:
        return KeyEvent.of(chr(code + 96), ctrl=True)
    return KeyEvent.of(raw)


class InputGate:
    """Drop key events that arrive sooner than ``min_interval`` after the last accepted one."""

    def __init__(self, min_interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.min_interval = min_interval
        self.clock = clock
        self._last_accepted: float | None = None

    def accept(self) -> bool:
        now = self.clock()
        if self._last_accepted is not None and now - self._last_accepted < self.min_interval:
            return False
        self._last_accepted = now
        return True


class Terminal(Protocol):
    def size(self) -> tuple[int, int]:
        ...

    def poll_key(self) -> KeyEvent | None:
        ...

    def draw(self, screen: Screen) -> None:
        ...


class SessionLoop:
    """Poll input, dispatch it, then render; one iteration per key or timeout."""

    def __init__(
        self,
        dashboard: DashboardController,
        overlay: OverlayController,
        terminal: Terminal,
        gate: InputGate,
        *,
        renderer: Callable[..., Screen] = render,
    ) -> None:
        self.dashboard = dashboard
        self.overlay = overlay
        self.terminal = terminal
        self.gate = gate
        self.renderer = renderer

    def draw(self) -> Screen:
        width, height = self.terminal.size()
        screen = self.renderer(
            self.dashboard.state,
            self.overlay.state,
            self.overlay.book.entries,
            width,
            height,
            status=self.overlay.visible_status(),
            validator=self.overlay.validator,
        )
        self.dashboard.set_visible_height(screen.output_height)
        self.terminal.draw(screen)
        return screen

    def dispatch(self, event: KeyEvent) -> bool:
        """Route ``event`` to the focused controller; False ends the session."""

        if self.overlay.state.is_open:
            self.overlay.handle_key(event)
            return True
        action = self.dashboard.handle_key(event)
        if action is DashboardAction.OPEN_OVERLAY:
            self.overlay.open()
        elif action is DashboardAction.QUIT:
            return False
        return True

    def run(self) -> int:
        while True:
            self.draw()
            event = self.terminal.poll_key()
            if event is None or not self.gate.accept():
                continue
            if not self.dispatch(event):
                logger.info("Session ended by user")
                return 0


class CursesTerminal:
    """Paints :class:`Screen` objects with curses and reads keys with a timeout."""

    def __init__(self, scr, poll_interval_ms: int) -> None:
        self.scr = scr
        curses.raw()
        curses.noecho()
        with contextlib.suppress(AttributeError, curses.error):
            curses.set_escdelay(ESC_DELAY_MS)
        scr.keypad(True)
        scr.timeout(poll_interval_ms)
        self._attrs = self._init_colors()

    def _init_colors(self) -> dict[Tone, int]:
        attrs = {tone: curses.A_NORMAL for tone in Tone}
        attrs[Tone.HIGHLIGHT] = curses.A_BOLD
        attrs[Tone.DIM] = curses.A_DIM
        if not curses.has_colors():
            return attrs
        curses.start_color()
        background = curses.COLOR_BLACK
        with contextlib.suppress(curses.error):
            curses.use_default_colors()
            background = -1
        orange = 208 if curses.COLORS >= 256 else curses.COLOR_YELLOW
        pairs = {
            Tone.ACCENT: (1, orange, 0),
            Tone.HIGHLIGHT: (2, curses.COLOR_YELLOW, curses.A_BOLD),
            Tone.WARN: (3, curses.COLOR_YELLOW, 0),
            Tone.ERROR: (4, curses.COLOR_RED, 0),
            Tone.OK: (5, curses.COLOR_GREEN, 0),
            Tone.DIM: (6, curses.COLOR_WHITE, curses.A_DIM),
        }
        for tone, (pair, colour, extra) in pairs.items():
            curses.init_pair(pair, colour, background)
            attrs[tone] = curses.color_pair(pair) | extra
        return attrs

    def size(self) -> tuple[int, int]:
        height, width = self.scr.getmaxyx()
        return width, height

    def poll_key(self) -> KeyEvent | None:
        try:
            raw = self.scr.get_wch()
        except curses.error:
            return None  # timeout
        return translate_key(raw)

    def _put(self, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        # Writing into the bottom-right cell raises even though it succeeds.
        with contextlib.suppress(curses.error):
            self.scr.addstr(y, x, text, attr)

    def _paint(self, panel: Panel) -> None:
        rect = panel.rect
        if rect.width <= 0 or rect.height <= 0:
            return
        if panel.clear:
            for row in range(rect.height):
                self._put(rect.y + row, rect.x, " " * rect.width)
        if panel.border and rect.width >= 2 and rect.height >= 2:
            border = self._attrs[panel.border_tone]
            inner = rect.width - 2
            self._put(rect.y, rect.x, "┌" + "─" * inner + "┐", border)
            for row in range(1, rect.height - 1):
                self._put(rect.y + row, rect.x, "│", border)
                self._put(rect.y + row, rect.x + rect.width - 1, "│", border)
            self._put(rect.y + rect.height - 1, rect.x, "└" + "─" * inner + "┘", border)
            if panel.title:
                self._put(rect.y, rect.x + 1, panel.title[:inner], self._attrs[panel.title_tone])

        body = panel.body
        for index, line in enumerate(panel.lines[: body.height]):
            tone = Tone.HIGHLIGHT if index == panel.highlight else panel.tone
            self._put(body.y + index, body.x, line[: body.width], self._attrs[tone])

    def draw(self, screen: Screen) -> None:
        self.scr.erase()
        for panel in screen.panels:
            self._paint(panel)
        with contextlib.suppress(curses.error):
            if screen.cursor is None:
                curses.curs_set(0)
            else:
                curses.curs_set(1)
                self.scr.move(*screen.cursor)
        self.scr.refresh()


def build_session(
    config: DashboardConfig, executor: QueryExecutor | None = None
) -> tuple[DashboardController, OverlayController]:
    """Load the command list and address book and create both controllers.

    Raises :class:`~btc_dashboard.address_book.CommandListError` when the
    command list is unusable.
    """

    commands = load_commands(config.commands_path)
    executor = executor or build_executor(config)
    book = AddressBookStore.load(config.address_book_path)
    dashboard = DashboardController.create(commands, executor)
    overlay = OverlayController.create(
        book, executor, config.default_address, status_ttl=config.status_ttl_seconds
    )
    logger.info(
        "Loaded %d command(s) and %d saved address(es)", len(commands), len(book)
    )
    return dashboard, overlay


def run_session(config: DashboardConfig) -> int:
    """Run the dashboard until the user quits; returns the exit code."""

    dashboard, overlay = build_session(config)
    dashboard.start()
    gate = InputGate(config.debounce_ms / 1000)
    locale.setlocale(locale.LC_ALL, "")

    def _main(scr) -> int:
        terminal = CursesTerminal(scr, config.poll_interval_ms)
        return SessionLoop(dashboard, overlay, terminal, gate).run()

    return curses.wrapper(_main)
