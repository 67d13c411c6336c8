"""Modal receive-address overlay.

While open the overlay owns every key press: it edits a candidate address,
walks the saved address book and asks the node for fresh addresses. Feedback
is given through short-lived status messages instead of dialogs.
"""

from __future__ import annotations

import logging
import time
import unicodedata
from dataclasses import dataclass
from typing import Callable

from .address import Validity, classify
from .address_book import AddressBookError, AddressBookStore, AddressEntry
from .clipboard import ClipboardError, copy_to_clipboard
from .keys import KEY_CLOSE, KEY_COPY, KEY_GET_NEW, KEY_NEW_SAVE, Key, KeyEvent
from .query import QueryError, QueryExecutor

logger = logging.getLogger(__name__)

STATUS_TTL_SECONDS = 2.0


@dataclass(frozen=True)
class StatusMessage:
    text: str
    issued_at: float
    is_error: bool = False

    def is_visible(self, now: float, ttl: float = STATUS_TTL_SECONDS) -> bool:
        return now - self.issued_at < ttl


@dataclass
class OverlayState:
    """Edit buffer, cursor and book selection for the overlay.

    ``book_selection_index`` is None only while the book is empty.
    """

    edit_buffer: str
    cursor_position: int
    is_open: bool = False
    book_selection_index: int | None = None
    status: StatusMessage | None = None


def is_insertable(char: str) -> bool:
    """Addresses never contain whitespace or control characters."""

    return len(char) == 1 and char != " " and unicodedata.category(char) != "Cc"


class OverlayController:
    """State machine behind the overlay (Closed <-> Open)."""

    def __init__(
        self,
        state: OverlayState,
        book: AddressBookStore,
        executor: QueryExecutor,
        *,
        validator: Callable[[str], Validity] = classify,
        clipboard: Callable[[str], None] = copy_to_clipboard,
        clock: Callable[[], float] = time.monotonic,
        status_ttl: float = STATUS_TTL_SECONDS,
    ) -> None:
        self.state = state
        self.book = book
        self.executor = executor
        self.validator = validator
        self.clipboard = clipboard
        self.clock = clock
        self.status_ttl = status_ttl

    @classmethod
    def create(
        cls,
        book: AddressBookStore,
        executor: QueryExecutor,
        default_address: str,
        **kwargs,
    ) -> "OverlayController":
        """Seed the buffer from the newest saved address, else ``default_address``."""

        latest = book.latest
        buffer = latest.address if latest is not None else default_address
        state = OverlayState(
            edit_buffer=buffer,
            cursor_position=len(buffer),
            book_selection_index=len(book) - 1 if len(book) else None,
        )
        return cls(state, book, executor, **kwargs)

    # Derived --------------------------------------------------------------

    def validity(self) -> Validity:
        return self.validator(self.state.edit_buffer.strip())

    def visible_status(self) -> StatusMessage | None:
        status = self.state.status
        if status is None or not status.is_visible(self.clock(), self.status_ttl):
            return None
        return status

    def _set_status(self, text: str, *, error: bool = False) -> None:
        self.state.status = StatusMessage(text, self.clock(), error)

    def _set_buffer(self, text: str) -> None:
        self.state.edit_buffer = text
        self.state.cursor_position = len(text)

    # Transitions ----------------------------------------------------------

    def open(self) -> None:
        index = self.state.book_selection_index
        if index is not None and len(self.book):
            self._set_buffer(self.book[index].address)
        else:
            self.state.cursor_position = len(self.state.edit_buffer)
        self.state.is_open = True

    def close(self) -> None:
        self.state.is_open = False

    # Cursor and editing ---------------------------------------------------

    def move_cursor(self, delta: int) -> None:
        position = self.state.cursor_position + delta
        self.state.cursor_position = max(0, min(position, len(self.state.edit_buffer)))

    def cursor_home(self) -> None:
        self.state.cursor_position = 0

    def cursor_end(self) -> None:
        self.state.cursor_position = len(self.state.edit_buffer)

    def backspace(self) -> None:
        pos = self.state.cursor_position
        if pos == 0:
            return
        buf = self.state.edit_buffer
        self.state.edit_buffer = buf[: pos - 1] + buf[pos:]
        self.state.cursor_position = pos - 1

    def delete(self) -> None:
        pos = self.state.cursor_position
        buf = self.state.edit_buffer
        if pos >= len(buf):
            return
        self.state.edit_buffer = buf[:pos] + buf[pos + 1:]

    def insert(self, char: str) -> None:
        if not is_insertable(char):
            return
        pos = min(self.state.cursor_position, len(self.state.edit_buffer))
        buf = self.state.edit_buffer
        self.state.edit_buffer = buf[:pos] + char + buf[pos:]
        self.state.cursor_position = pos + 1

    # Address book ---------------------------------------------------------

    def select_book_entry(self, delta: int) -> None:
        """Move the book selection; the buffer is replaced by the chosen entry."""

        index = self.state.book_selection_index
        if not len(self.book) or index is None:
            return
        target = index + delta
        if not 0 <= target < len(self.book):
            return
        self.state.book_selection_index = target
        self._set_buffer(self.book[target].address)

    # Node actions ---------------------------------------------------------

    def _fetch_address(self) -> str | None:
        try:
            return self.executor.new_address().strip()
        except QueryError as exc:
            logger.warning("getnewaddress failed: %s", exc)
            self._set_status(f"getnewaddress failed: {exc}", error=True)
            return None

    def fetch_new_address(self) -> None:
        """Load a fresh address into the buffer without saving it."""

        address = self._fetch_address()
        if address is None:
            return
        self._set_buffer(address)
        self._set_status("New address loaded (not saved)")

    def fetch_and_save_address(self) -> None:
        """Fetch a fresh address, append it to the book and persist the book.

        A failed save keeps the entry in memory; only the status reports it.
        """

        address = self._fetch_address()
        if address is None:
            return
        if not self.validator(address).is_valid:
            logger.warning("Node returned an invalid address: %r", address)
            self._set_status(f"Node returned an invalid address: {address!r}", error=True)
            return

        index = self.book.append(AddressEntry.now(address))
        self.state.book_selection_index = index
        self._set_buffer(address)
        try:
            self.book.save()
        except AddressBookError as exc:
            self._set_status(f"Address kept in memory, save failed: {exc}", error=True)
        else:
            self._set_status("New address saved")

    def copy(self) -> None:
        try:
            self.clipboard(self.state.edit_buffer)
        except ClipboardError as exc:
            self._set_status(f"Copy failed: {exc}", error=True)
        else:
            self._set_status("Address copied to clipboard")

    # Keys -----------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> None:
        if event.is_ctrl(KEY_NEW_SAVE):
            self.fetch_and_save_address()
        elif event.is_ctrl(KEY_GET_NEW):
            self.fetch_new_address()
        elif event.is_ctrl(KEY_COPY):
            self.copy()
        elif event.is_ctrl(KEY_CLOSE) or event.key is Key.ESCAPE:
            self.close()
        elif event.ctrl:
            return
        elif event.key is Key.UP:
            self.select_book_entry(-1)
        elif event.key is Key.DOWN:
            self.select_book_entry(1)
        elif event.key is Key.LEFT:
            self.move_cursor(-1)
        elif event.key is Key.RIGHT:
            self.move_cursor(1)
        elif event.key is Key.HOME:
            self.cursor_home()
        elif event.key is Key.END:
            self.cursor_end()
        elif event.key is Key.BACKSPACE:
            self.backspace()
        elif event.key is Key.DELETE:
            self.delete()
        elif event.key is Key.CHAR and event.char is not None:
            self.insert(event.char)
