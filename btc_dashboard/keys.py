"""Backend-neutral key events and the bindings for each focus."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    ENTER = "enter"
    BACKSPACE = "backspace"
    DELETE = "delete"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    ESCAPE = "escape"
    CHAR = "char"


@dataclass(frozen=True)
class KeyEvent:
    """A single key press; ``char`` is set for :attr:`Key.CHAR` events."""

    key: Key
    char: str | None = None
    ctrl: bool = False

    @classmethod
    def of(cls, char: str, *, ctrl: bool = False) -> "KeyEvent":
        return cls(Key.CHAR, char, ctrl)

    def is_char(self, char: str) -> bool:
        return self.key is Key.CHAR and not self.ctrl and self.char == char

    def is_ctrl(self, char: str) -> bool:
        return self.key is Key.CHAR and self.ctrl and self.char == char


# Dashboard focus
KEY_QUIT = "q"
KEY_REFRESH = "r"
KEY_HIDE = "h"
KEY_OVERLAY = "w"
KEY_SCROLL_DOWN = "j"
KEY_SCROLL_UP = "k"

# Overlay focus (Ctrl combinations)
KEY_NEW_SAVE = "n"
KEY_GET_NEW = "g"
KEY_COPY = "c"
KEY_CLOSE = "x"

DASHBOARD_HELP = (
    "↑/↓=select command  Enter=run  r=refresh  j/k=scroll output  "
    "h=hide/show amounts  w=QR overlay  q=quit"
)
OVERLAY_HELP = (
    "Ctrl+N=new(save)  Ctrl+G=getnew  Ctrl+C=copy  ↑/↓=select saved  "
    "←/→ Home End Backspace Delete=edit  Ctrl+X/Esc=close"
)
