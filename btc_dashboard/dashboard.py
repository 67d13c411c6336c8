"""Dashboard focus: command menu, output buffer and the info panels."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from .keys import (
    KEY_HIDE,
    KEY_OVERLAY,
    KEY_QUIT,
    KEY_REFRESH,
    KEY_SCROLL_DOWN,
    KEY_SCROLL_UP,
    Key,
    KeyEvent,
)
from .node_info import (
    NODE_INFO_PLACEHOLDER,
    WALLET_INFO_PLACEHOLDER,
    fetch_node_info,
    fetch_wallet_info,
)
from .query import Command, QueryError, QueryExecutor

logger = logging.getLogger(__name__)

MASK_CHAR = "X"

InfoFetcher = Callable[[QueryExecutor], str]


def mask_digits(text: str) -> str:
    """Replace every ASCII digit with :data:`MASK_CHAR`."""

    return "".join(MASK_CHAR if "0" <= ch <= "9" else ch for ch in text)


class DashboardAction(Enum):
    NONE = "none"
    OPEN_OVERLAY = "open_overlay"
    QUIT = "quit"


@dataclass
class DashboardState:
    """Mutable state behind the main view.

    ``visible_height`` is the number of output rows the last layout could
    show; scrolling is clamped against it.
    """

    commands: tuple[str, ...]
    selected_index: int = 0
    output_lines: list[str] = field(default_factory=list)
    scroll_offset: int = 0
    visible_height: int = 1
    node_info_text: str = ""
    wallet_info_text: str = ""
    hide_sensitive: bool = False
    node_info_loaded: bool = False
    wallet_info_loaded: bool = False

    def __post_init__(self) -> None:
        if not self.commands:
            raise ValueError("DashboardState requires at least one command")

    @property
    def selected_command(self) -> str:
        return self.commands[self.selected_index]

    @property
    def max_scroll(self) -> int:
        return max(0, len(self.output_lines) - max(1, self.visible_height))

    @property
    def wallet_display(self) -> str:
        if self.hide_sensitive:
            return mask_digits(self.wallet_info_text)
        return self.wallet_info_text


class DashboardController:
    """Owns menu navigation and runs queries for the main view."""

    def __init__(
        self,
        state: DashboardState,
        executor: QueryExecutor,
        *,
        node_info: InfoFetcher = fetch_node_info,
        wallet_info: InfoFetcher = fetch_wallet_info,
    ) -> None:
        self.state = state
        self.executor = executor
        self._fetch_node_info = node_info
        self._fetch_wallet_info = wallet_info

    @classmethod
    def create(cls, commands: Sequence[str], executor: QueryExecutor, **kwargs) -> "DashboardController":
        return cls(DashboardState(commands=tuple(commands)), executor, **kwargs)

    def start(self) -> None:
        """Initial fetch of the selected command and both info panels."""

        self.run_selected()
        self.refresh_info()

    # Menu -----------------------------------------------------------------

    def select_next(self) -> None:
        if self.state.selected_index < len(self.state.commands) - 1:
            self._select(self.state.selected_index + 1)

    def select_previous(self) -> None:
        if self.state.selected_index > 0:
            self._select(self.state.selected_index - 1)

    def _select(self, index: int) -> None:
        self.state.selected_index = index
        self.run_selected()

    def run_selected(self) -> None:
        """Run the selected command and replace the output buffer."""

        command_text = self.state.selected_command
        try:
            output = self.executor.run(Command.parse(command_text))
        except QueryError as exc:
            logger.warning("Query %r failed: %s", command_text, exc)
            self.state.output_lines = str(exc).splitlines() or [str(exc)]
        else:
            self.state.output_lines = output.splitlines()
        self.state.scroll_offset = 0

    def refresh(self) -> None:
        self.run_selected()
        self.refresh_info()

    def refresh_info(self) -> None:
        """Re-fetch both info panels; each keeps its last good text on failure."""

        state = self.state
        try:
            state.node_info_text = self._fetch_node_info(self.executor)
            state.node_info_loaded = True
        except QueryError as exc:
            logger.warning("Node info refresh failed: %s", exc)
            if not state.node_info_loaded:
                state.node_info_text = NODE_INFO_PLACEHOLDER
        try:
            state.wallet_info_text = self._fetch_wallet_info(self.executor)
            state.wallet_info_loaded = True
        except QueryError as exc:
            logger.warning("Wallet info refresh failed: %s", exc)
            if not state.wallet_info_loaded:
                state.wallet_info_text = WALLET_INFO_PLACEHOLDER

    # Output ---------------------------------------------------------------

    def set_visible_height(self, height: int) -> None:
        self.state.visible_height = max(1, height)
        self.state.scroll_offset = min(self.state.scroll_offset, self.state.max_scroll)

    def scroll(self, delta: int) -> None:
        offset = self.state.scroll_offset + delta
        self.state.scroll_offset = max(0, min(offset, self.state.max_scroll))

    def toggle_hide_sensitive(self) -> None:
        self.state.hide_sensitive = not self.state.hide_sensitive

    # Keys -----------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> DashboardAction:
        if event.key is Key.UP:
            self.select_previous()
        elif event.key is Key.DOWN:
            self.select_next()
        elif event.key is Key.ENTER:
            self.run_selected()
        elif event.key is Key.PAGE_DOWN or event.is_char(KEY_SCROLL_DOWN):
            self.scroll(1)
        elif event.key is Key.PAGE_UP or event.is_char(KEY_SCROLL_UP):
            self.scroll(-1)
        elif event.is_char(KEY_REFRESH):
            self.refresh()
        elif event.is_char(KEY_HIDE):
            self.toggle_hide_sensitive()
        elif event.is_char(KEY_OVERLAY):
            return DashboardAction.OPEN_OVERLAY
        elif event.is_char(KEY_QUIT):
            return DashboardAction.QUIT
        return DashboardAction.NONE
