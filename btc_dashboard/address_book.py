"""Persistence for the command menu and the saved address book."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import yaml

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


class AddressBookError(RuntimeError):
    """Raised when the address book cannot be written."""


class CommandListError(RuntimeError):
    """Raised when the command menu cannot be loaded."""


def _parse_timestamp(raw: str) -> datetime:
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Files written by other tools may carry nanosecond precision.
    text = _FRACTION_RE.sub(r".\1", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class AddressEntry:
    """One saved receive address."""

    created_at: datetime
    address: str

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            self.created_at = self.created_at.replace(tzinfo=timezone.utc)

    @classmethod
    def now(cls, address: str) -> "AddressEntry":
        return cls(created_at=datetime.now(timezone.utc), address=address)

    def to_dict(self) -> dict[str, str]:
        stamp = self.created_at.astimezone(timezone.utc).isoformat()
        return {"created_at": stamp.replace("+00:00", "Z"), "address": self.address}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AddressEntry":
        created_at = data["created_at"]
        address = data["address"]
        if not isinstance(created_at, str) or not isinstance(address, str):
            raise ValueError("created_at and address must be strings")
        return cls(created_at=_parse_timestamp(created_at), address=address)

    def summary(self) -> str:
        """Date plus address, shortened to fit the overlay list."""

        date_str = self.created_at.strftime("%Y-%m-%d %H:%M")
        if len(self.address) > 22:
            return f"{date_str}  {self.address[:12]}…{self.address[-8:]}"
        return f"{date_str}  {self.address}"


def load_address_book(path: str | Path) -> list[AddressEntry]:
    """Load saved addresses; a missing or malformed file yields an empty book."""

    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.info("No address book at %s; starting empty", path)
        return []
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable address book %s: %s", path, exc)
        return []

    if not isinstance(raw, list):
        logger.warning("Ignoring address book %s: expected a list", path)
        return []
    try:
        return [AddressEntry.from_dict(item) for item in raw]
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed address book %s: %s", path, exc)
        return []


def save_address_book(path: str | Path, entries: Sequence[AddressEntry]) -> None:
    """Overwrite ``path`` with the full list of entries."""

    path = Path(path)
    try:
        data = json.dumps([entry.to_dict() for entry in entries], indent=2)
        path.write_text(data, encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Failed to save address book %s: %s", path, exc)
        raise AddressBookError(f"could not save {path}: {exc}") from exc
    logger.debug("Saved %d address(es) to %s", len(entries), path)


class AddressBookStore:
    """In-memory address list bound to the file it is saved to."""

    def __init__(self, path: str | Path, entries: Sequence[AddressEntry] = ()) -> None:
        self.path = Path(path)
        self.entries: list[AddressEntry] = list(entries)

    @classmethod
    def load(cls, path: str | Path) -> "AddressBookStore":
        return cls(path, load_address_book(path))

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> AddressEntry:
        return self.entries[index]

    @property
    def latest(self) -> AddressEntry | None:
        return self.entries[-1] if self.entries else None

    def append(self, entry: AddressEntry) -> int:
        """Append ``entry`` in memory and return its index."""

        self.entries.append(entry)
        return len(self.entries) - 1

    def save(self) -> None:
        save_address_book(self.path, self.entries)


def load_commands(path: str | Path) -> list[str]:
    """Load the command menu.

    The file is a JSON array of strings; YAML sequences are accepted as well
    since PyYAML reads both.
    """

    path = Path(path)
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise CommandListError(f"Cannot read command list {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise CommandListError(f"Invalid command list {path}: {exc}") from exc

    if not isinstance(loaded, list) or not all(isinstance(item, str) for item in loaded):
        raise CommandListError(f"Expected {path} to contain a list of command strings")
    commands = [item.strip() for item in loaded]
    if not commands:
        raise CommandListError(f"Command list {path} is empty")
    if not all(commands):
        raise CommandListError(f"Command list {path} contains a blank command")
    return commands
