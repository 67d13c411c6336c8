"""Terminal dashboard for a Bitcoin Core node and its receive addresses."""

from .address import Network, Validity, ValidityKind, classify
from .address_book import AddressBookStore, AddressEntry, load_address_book, save_address_book
from .dashboard import DashboardController, DashboardState, mask_digits
from .overlay import OverlayController, OverlayState, StatusMessage
from .query import BitcoinCliExecutor, Command, QueryError, RpcExecutor
from .render import Screen, render

__all__ = [
    "AddressBookStore",
    "AddressEntry",
    "BitcoinCliExecutor",
    "Command",
    "DashboardController",
    "DashboardState",
    "Network",
    "OverlayController",
    "OverlayState",
    "QueryError",
    "RpcExecutor",
    "Screen",
    "StatusMessage",
    "Validity",
    "ValidityKind",
    "classify",
    "load_address_book",
    "mask_digits",
    "render",
    "save_address_book",
]
