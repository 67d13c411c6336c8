"""System clipboard access."""

from __future__ import annotations

import logging

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardError(RuntimeError):
    """Raised when text cannot be placed on the system clipboard."""


def copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        logger.warning("Clipboard copy failed: %s", exc)
        raise ClipboardError(str(exc) or "clipboard not available") from exc
