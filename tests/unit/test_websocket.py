"""Unit tests for the WebSocket message channel."""

import pytest
from fastapi.testclient import TestClient

from fixtures.fake_ledger import SYSTEM_PROGRAM, FakeRpcClient
from solana_gateway.api.app import GatewayAPI
from solana_gateway.api.websocket import WELCOME_MESSAGE, WebSocketSession
from solana_gateway.config import load_config
from solana_gateway.main import build_gateway


@pytest.fixture
def rpc():
    return FakeRpcClient("https://api.devnet.solana.com")


@pytest.fixture
def client(rpc):
    gateway = build_gateway(load_config({"LOG_DIR": ""}), client_factory=lambda *_: rpc)
    api = GatewayAPI(gateway.dispatcher, gateway.connections, gateway.metrics)
    with TestClient(api.create_app()) as client:
        yield client


class TestWebSocketSessionInit:
    def test_none_dispatcher_raises(self):
        with pytest.raises(ValueError, match="dispatcher is required"):
            WebSocketSession(None)


class TestWebSocketSession:
    """Tests for the {type, data} message protocol."""

    @pytest.mark.parametrize("path", ["/", "/ws"])
    def test_welcome_message(self, client, path):
        with client.websocket_connect(path) as ws:
            assert ws.receive_json() == {"type": "connection", "message": WELCOME_MESSAGE}

    def test_mcp_response_carries_request_id(self, client, rpc):
        rpc.balances[SYSTEM_PROGRAM] = 2_000_000_000
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json(
                {
                    "type": "mcp",
                    "data": {
                        "action": "getBalance",
                        "parameters": {"address": SYSTEM_PROGRAM},
                        "requestId": "req-1",
                    },
                }
            )
            reply = ws.receive_json()

        assert reply["type"] == "response"
        assert reply["requestId"] == "req-1"
        assert reply["data"]["balanceInSol"] == 2.0

    def test_mcp_error_carries_category(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json(
                {
                    "type": "mcp",
                    "data": {"action": "getBalance", "parameters": {}, "requestId": 42},
                }
            )
            reply = ws.receive_json()

        assert reply["type"] == "error"
        assert reply["requestId"] == 42
        assert reply["category"] == "InvalidParams"
        assert "address" in reply["error"]

    def test_unknown_action(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "mcp", "data": {"action": "fly", "requestId": "r"}})
            reply = ws.receive_json()

        assert reply == {
            "type": "error",
            "requestId": "r",
            "error": "Unsupported action: fly",
            "category": "UnknownOperation",
        }

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("{not json")
            assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

    def test_non_object_message(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("[1, 2]")
            assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

    def test_binary_frame_is_malformed(self, client):
        """A binary frame gets an error reply and the socket stays open."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x00\x01")
            assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

            ws.send_text("{not json")
            assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

    def test_unknown_type(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "error", "message": "Unknown message type"}

    def test_subscribe_is_ignored(self, client):
        """Subscribe gets no reply; the next message is answered normally."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "data": {"account": SYSTEM_PROGRAM}})
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "error", "message": "Unknown message type"}

    def test_session_survives_errors(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("garbage")
            ws.receive_json()
            ws.send_json({"type": "mcp", "data": {"action": "createWallet", "requestId": "w"}})
            reply = ws.receive_json()

        assert reply["type"] == "response"
        assert set(reply["data"]) == {"publicKey", "privateKey"}
