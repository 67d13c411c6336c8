"""Query executors: run a named node command and return its text output."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence

from .config import DashboardConfig, RPCConfig
from .rpc_client import BitcoinRPCClient, RPCError, RPCTransportError

logger = logging.getLogger(__name__)

NEW_ADDRESS_COMMAND = "getnewaddress"


class QueryError(RuntimeError):
    """Raised when a query cannot be executed or the node reports failure."""


@dataclass(frozen=True)
class Command:
    """A node command name plus its positional arguments."""

    name: str
    args: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def parse(cls, text: str) -> "Command":
        parts = text.split()
        if not parts:
            raise QueryError("empty command")
        return cls(parts[0], tuple(parts[1:]))

    def __str__(self) -> str:
        return " ".join((self.name, *self.args))


class QueryExecutor(Protocol):
    def run(self, command: Command) -> str:
        ...

    def new_address(self) -> str:
        ...


class BitcoinCliExecutor:
    """Run commands through the ``bitcoin-cli`` binary."""

    def __init__(self, rpc: RPCConfig, binary: str = "bitcoin-cli") -> None:
        self.rpc = rpc
        self.binary = binary

    def _argv(self, command: Command) -> list[str]:
        argv = [
            self.binary,
            f"-rpcuser={self.rpc.user}",
            f"-rpcpassword={self.rpc.password}",
        ]
        if self.rpc.wallet:
            argv.append(f"-rpcwallet={self.rpc.wallet}")
        argv.append(command.name)
        argv.extend(command.args)
        return argv

    def run(self, command: Command) -> str:
        logger.debug("bitcoin-cli %s", command)
        try:
            result = subprocess.run(
                self._argv(command), capture_output=True, text=True, errors="replace"
            )
        except OSError as exc:
            logger.warning("Could not launch %s: %s", self.binary, exc)
            raise QueryError(f"Error: could not run {self.binary}: {exc}") from exc
        if result.returncode != 0:
            logger.warning("%s exited with %s: %s", command.name, result.returncode, result.stderr.strip())
            raise QueryError(f"Error: {result.stderr}")
        return result.stdout

    def new_address(self) -> str:
        return self.run(Command(NEW_ADDRESS_COMMAND))


def _decode_param(raw: str) -> Any:
    # bitcoin-cli passes numbers, booleans and JSON objects through as JSON.
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def format_result(result: Any) -> str:
    """Render an RPC result the way ``bitcoin-cli`` prints it."""

    if result is None:
        return ""
    if isinstance(result, str):
        return result + "\n"
    if isinstance(result, (dict, list)):
        return json.dumps(result, indent=2) + "\n"
    return json.dumps(result) + "\n"


class RpcExecutor:
    """Run commands over JSON-RPC using :class:`BitcoinRPCClient`."""

    def __init__(self, client: BitcoinRPCClient) -> None:
        self.client = client

    def _invoke(self, name: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except RPCError as exc:
            logger.warning("%s failed: %s", name, exc)
            raise QueryError(f"Error: {exc.message} (code {exc.code})") from exc
        except RPCTransportError as exc:
            raise QueryError(f"Error: {exc}") from exc

    def run(self, command: Command) -> str:
        params: Sequence[Any] = [_decode_param(arg) for arg in command.args]
        result = self._invoke(command.name, lambda: self.client.call(command.name, list(params)))
        return format_result(result)

    def new_address(self) -> str:
        address = self._invoke(NEW_ADDRESS_COMMAND, self.client.getnewaddress)
        if not isinstance(address, str):
            raise QueryError(f"Error: {NEW_ADDRESS_COMMAND} returned {address!r}")
        return address


def build_executor(config: DashboardConfig) -> QueryExecutor:
    """Return the executor selected by ``config.backend``."""

    if config.backend == "rpc":
        return RpcExecutor(BitcoinRPCClient(config.rpc))
    return BitcoinCliExecutor(config.rpc, config.cli_binary)
