import json

import pytest
import requests

from btc_dashboard.config import RPCConfig
from btc_dashboard.rpc_client import BitcoinRPCClient, RPCError, RPCTransportError


class FakeResponse:
    def __init__(self, status_code: int = 200, body=None, text: str | None = None) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self.url = "http://127.0.0.1:8332"
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class RecordingPost:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def _client(response: FakeResponse, **rpc) -> tuple[BitcoinRPCClient, RecordingPost]:
    client = BitcoinRPCClient(RPCConfig(**rpc), timeout=5)
    post = RecordingPost(response)
    client._session.post = post
    return client, post


def test_call_posts_json_rpc_payload_with_basic_auth() -> None:
    client, post = _client(FakeResponse(body={"result": 800000, "error": None}), user="u", password="p")

    assert client.call("getblockcount") == 800000

    url, kwargs = post.calls[0]
    payload = json.loads(kwargs["data"])
    assert url == "http://127.0.0.1:8332"
    assert payload["method"] == "getblockcount"
    assert payload["params"] == []
    assert kwargs["auth"] == ("u", "p")
    assert kwargs["timeout"] == 5


def test_wallet_requests_use_wallet_endpoint() -> None:
    client, post = _client(FakeResponse(body={"result": {"walletname": "hot"}}), wallet="hot")

    assert client.call("getwalletinfo") == {"walletname": "hot"}
    assert post.calls[0][0] == "http://127.0.0.1:8332/wallet/hot"


def test_getnewaddress_params() -> None:
    client, post = _client(FakeResponse(body={"result": "bc1qexample"}))

    assert client.getnewaddress(address_type="bech32m") == "bc1qexample"
    assert json.loads(post.calls[0][1]["data"])["params"] == ["", "bech32m"]


def test_node_error_in_http_500_body_becomes_rpc_error() -> None:
    body = {"result": None, "error": {"code": -18, "message": "Requested wallet does not exist"}}
    client, _ = _client(FakeResponse(500, body=body))

    with pytest.raises(RPCError) as excinfo:
        client.call("getwalletinfo")

    assert excinfo.value.code == -18
    assert excinfo.value.message == "Requested wallet does not exist"


def test_unauthorized_is_a_transport_error() -> None:
    client, _ = _client(FakeResponse(401, text=""))

    with pytest.raises(RPCTransportError, match="401") as excinfo:
        client.call("getblockcount")

    assert excinfo.value.status_code == 401


def test_http_error_without_json_body() -> None:
    client, _ = _client(FakeResponse(503, text="Service Unavailable"))

    with pytest.raises(RPCTransportError, match="HTTP 503"):
        client.call("getblockcount")


def test_malformed_json_is_a_transport_error() -> None:
    client, _ = _client(FakeResponse(200, text="<html>"))

    with pytest.raises(RPCTransportError, match="malformed JSON"):
        client.call("getblockcount")


def test_connection_failure_is_a_transport_error() -> None:
    client = BitcoinRPCClient(RPCConfig())

    def refuse(url, **kwargs):
        raise requests.ConnectionError("connection refused")

    client._session.post = refuse

    with pytest.raises(RPCTransportError, match="Ensure the node is running"):
        client.call("getblockcount")
