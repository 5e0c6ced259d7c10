"""
Unit tests for API endpoints.
"""

import json

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings


class TestChatEndpoints:
    """Test chat API endpoints."""

    def test_chat_message(self, client: TestClient):
        response = client.post("/api/v1/chat", json={
            "session_id": "api_session",
            "message": "Where is my order ORD1001?"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["intent"] == "order_status"
        assert "Shipped" in data["reply"]
        assert data["confidence"] >= 0.9
        assert data["success"] is True
        assert data["metadata"]["order"]["id"] == "ORD1001"
        assert "timestamp" in data

    def test_chat_accepts_camel_case_session(self, client: TestClient):
        response = client.post("/api/v1/chat", json={"sessionId": "camel", "message": "hello"})

        assert response.status_code == 200
        assert response.json()["metadata"]["session_id"] == "camel"

    def test_chat_missing_message(self, client: TestClient):
        response = client.post("/api/v1/chat", json={"session_id": "s1"})

        assert response.status_code == 422
        data = response.json()
        assert data["detail"] == "Validation error"
        assert data["errors"]
        assert data["request_id"]

    def test_chat_blank_message(self, client: TestClient):
        response = client.post("/api/v1/chat", json={"session_id": "s1", "message": "   "})
        assert response.status_code == 422

    def test_chat_escalation(self, client: TestClient):
        response = client.post("/api/v1/chat", json={
            "session_id": "s1",
            "message": "I want to speak to a human"
        })

        data = response.json()
        assert data["intent"] == "human_escalation"
        assert data["metadata"]["ticket_id"] == "TCK-TEST01"

    def test_batch(self, client: TestClient):
        response = client.post("/api/v1/chat/batch", json={
            "session_id": "batch",
            "messages": ["hello", "where is my order ORD1002", "thanks"]
        })

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == "batch"
        assert data["total_processed"] == 3
        assert [r["intent"] for r in data["results"]] == ["greeting", "order_status", "thanks"]

    def test_batch_empty(self, client: TestClient):
        response = client.post("/api/v1/chat/batch", json={"session_id": "batch", "messages": []})
        assert response.status_code == 422

    def test_batch_too_large(self, client: TestClient):
        messages = ["hello"] * (settings.BATCH_MAX_MESSAGES + 1)
        response = client.post("/api/v1/chat/batch", json={"session_id": "batch", "messages": messages})
        assert response.status_code == 422

    def test_analytics(self, client: TestClient):
        client.post("/api/v1/chat", json={"session_id": "a", "message": "hello"})
        client.post("/api/v1/chat", json={"session_id": "b", "message": "thanks"})

        response = client.get("/api/v1/chat/analytics")

        assert response.status_code == 200
        data = response.json()
        assert data["total_messages"] == 2
        assert data["active_sessions"] == 2
        assert data["error_count"] == 0
        assert "timestamp" in data

    def test_profile(self, client: TestClient):
        client.post("/api/v1/chat", json={"session_id": "p1", "message": "hello"})

        response = client.get("/api/v1/chat/profile/p1")

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == "p1"
        assert data["message_count"] == 1
        assert data["intent_counts"] == {"greeting": 1}

    def test_profile_not_found(self, client: TestClient):
        response = client.get("/api/v1/chat/profile/unknown")

        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"

    def test_history(self, client: TestClient):
        for message in ["hello", "thanks", "where is my order"]:
            client.post("/api/v1/chat", json={"session_id": "h1", "message": message})

        response = client.get("/api/v1/chat/history/h1", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [turn["message"] for turn in data["turns"]] == ["thanks", "where is my order"]


class TestOrderEndpoints:
    """Test order lookup endpoint."""

    def test_get_order(self, client: TestClient):
        response = client.get("/api/v1/orders/ORD1003")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Delivered"
        assert data["items"]

    def test_get_order_case_insensitive(self, client: TestClient):
        response = client.get("/api/v1/orders/ord1001")
        assert response.json()["id"] == "ORD1001"

    def test_order_not_found(self, client: TestClient):
        response = client.get("/api/v1/orders/ORD9999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Order not found"


class TestTicketEndpoints:
    """Test support ticket endpoint."""

    def test_create_ticket(self, client: TestClient):
        response = client.post("/api/v1/tickets", json={"sessionId": "t1", "issue": "Screen cracked"})

        assert response.status_code == 200
        data = response.json()
        assert data["ticket_id"] == "TCK-TEST01"
        assert data["status"] == "open"
        assert data["session_id"] == "t1"
        assert data["issue"] == "Screen cracked"
        assert "created_at" in data

    def test_create_ticket_without_body_fields(self, client: TestClient):
        response = client.post("/api/v1/tickets", json={})

        assert response.status_code == 200
        assert response.json()["status"] == "open"


class TestChatWebSocket:
    """Test chat WebSocket frames."""

    def test_join_and_chat(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "join", "session_id": "ws1"}))
            joined = websocket.receive_json()
            assert joined["type"] == "joined"
            assert joined["session_id"] == "ws1"

            websocket.send_text(json.dumps({"type": "chat", "message": "Where is my order ORD1001?"}))
            reply = websocket.receive_json()

        assert reply["type"] == "response"
        assert reply["session_id"] == "ws1"
        assert reply["data"]["intent"] == "order_status"
        assert "Shipped" in reply["data"]["reply"]

    def test_join_generates_session_id(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "join"}))
            joined = websocket.receive_json()

        assert joined["session_id"]

    def test_chat_without_session(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "chat", "message": "hello"}))
            reply = websocket.receive_json()

        assert reply["type"] == "error"

    def test_empty_chat_message(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "chat", "session_id": "ws1", "message": " "}))
            reply = websocket.receive_json()

        assert reply == {"type": "error", "message": "Message must not be empty"}

    def test_ping(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "ping"}))
            assert websocket.receive_json()["type"] == "pong"

    def test_unknown_frame(self, client: TestClient):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(json.dumps({"type": "dance"}))
            reply = websocket.receive_json()

        assert reply == {"type": "error", "message": "Unknown message type"}

    @pytest.mark.parametrize("payload", ["not json", "[1, 2]"])
    def test_invalid_frames(self, client: TestClient, payload):
        with client.websocket_connect("/api/v1/ws/chat") as websocket:
            websocket.send_text(payload)
            reply = websocket.receive_json()

            assert reply["type"] == "error"

            websocket.send_text(json.dumps({"type": "ping"}))
            assert websocket.receive_json()["type"] == "pong"
