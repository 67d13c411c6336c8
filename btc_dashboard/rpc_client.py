"""Typed JSON-RPC client for Bitcoin Core nodes.

The dashboard normally shells out to ``bitcoin-cli``; this client backs the
``rpc`` backend for hosts where the binary is not installed. It forwards
requests and surfaces errors clearly, nothing more.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Optional

import requests
from requests import RequestException, Response

from .config import RPCConfig

logger = logging.getLogger(__name__)


class RPCError(RuntimeError):
    """Raised when the node responds with an RPC error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RPCTransportError(RuntimeError):
    """Raised when the RPC endpoint is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BitcoinRPCClient:
    """Thin JSON-RPC client; each helper maps directly to a node method."""

    def __init__(self, config: RPCConfig, *, timeout: float = 30) -> None:
        self.config = config
        self.timeout = timeout
        self._session = requests.Session()
        self._base_url = config.base_url
        self._wallet = config.wallet

    def call(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """Perform a JSON-RPC request."""

        payload = {
            "jsonrpc": "1.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self._url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                auth=(self.config.user, self.config.password),
                timeout=self.timeout,
            )
        except RequestException as exc:
            logger.error(
                "RPC connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise RPCTransportError(
                f"RPC connection to {self._base_url} failed. Ensure the node is running and "
                "RPC_USER/RPC_PASSWORD (or ~/.btc-dashboard.yaml) are correct."
            ) from exc
        self._raise_for_status(response)
        try:
            result = response.json()
        except ValueError as exc:
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("RPC server returned malformed JSON") from exc
        if result.get("error"):
            error = result["error"]
            raise RPCError(error.get("code", -1), error.get("message", "unknown"))
        return result.get("result")

    def _raise_for_status(self, response: Response) -> None:
        # Bitcoin Core reports JSON-RPC errors as HTTP 500 with a JSON body;
        # those are left for call() to turn into RPCError.
        if response.ok:
            return
        if response.status_code == 401:
            raise RPCTransportError(
                "Unauthorized (401). Check RPC_USER/RPC_PASSWORD.",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return
        logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
        raise RPCTransportError(
            f"RPC server returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    @property
    def _url(self) -> str:
        if self._wallet:
            return f"{self._base_url}/wallet/{self._wallet}"
        return self._base_url

    def getnewaddress(
        self, label: str | None = None, address_type: str | None = None
    ) -> str:
        params: list[Any] = []
        if label is not None:
            params.append(label)
        elif address_type is not None:
            params.append("")
        if address_type is not None:
            params.append(address_type)
        return self.call("getnewaddress", params)
