"""Node and wallet summaries shown in the left-hand info panels."""

from __future__ import annotations

import json
import logging
import math

from .query import Command, QueryError, QueryExecutor

logger = logging.getLogger(__name__)

NODE_INFO_PLACEHOLDER = "Failed to fetch node info"
WALLET_INFO_PLACEHOLDER = "Failed to fetch wallet info"


def format_uptime(seconds: int) -> str:
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days} day(s) {hours % 24} hour(s)"
    if hours > 0:
        return f"{hours} hour(s) {minutes % 60} minute(s)"
    return f"{minutes} minute(s)"


def _uptime_seconds(executor: QueryExecutor) -> int:
    # Older nodes lack ``uptime``; the panel still renders with zero.
    try:
        raw = executor.run(Command("uptime"))
    except QueryError:
        logger.debug("uptime unavailable")
        return 0
    try:
        return max(0, int(raw.strip()))
    except ValueError:
        return 0


def fetch_node_info(executor: QueryExecutor) -> str:
    """Return uptime, block count and best block hash as panel text."""

    uptime = _uptime_seconds(executor)
    blockcount = executor.run(Command("getblockcount")).strip()
    bestblockhash = executor.run(Command("getbestblockhash")).strip()
    return (
        f"Uptime: {format_uptime(uptime)}\n"
        f"Block Count: {blockcount}\n"
        f"Best Block Hash:\n{bestblockhash}"
    )


def _number(value: object, kind: type) -> int | float:
    # Missing or non-numeric fields show as zero.
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return kind(0)
    return kind(value)


def fetch_wallet_info(executor: QueryExecutor) -> str:
    """Summarise ``getwalletinfo`` output as panel text."""

    output = executor.run(Command("getwalletinfo"))
    try:
        info = json.loads(output)
    except ValueError as exc:
        raise QueryError(f"unparsable getwalletinfo output: {exc}") from exc
    if not isinstance(info, dict):
        raise QueryError("getwalletinfo did not return an object")

    wallet_name = info.get("walletname")
    if not isinstance(wallet_name, str):
        wallet_name = "N/A"
    balance = _number(info.get("balance"), float)
    tx_count = _number(info.get("txcount"), int)
    keypool_size = _number(info.get("keypoolsize"), int)
    return (
        f"Wallet: {wallet_name}\n"
        f"Balance: {balance:.8f} BTC\n"
        f"Transactions: {tx_count}\n"
        f"Keypool Size: {keypool_size}"
    )
