"""
Tests for failure handling on the message routes.

Tests cover:
- Storage errors reported by each handler (500, operation message)
- Unexpected errors caught at the route boundary (500, route message)
- Outcome metrics for both kinds of failure
"""

import pytest
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError


ROUTES = [
    # (store method, HTTP method, path, storage error, boundary error)
    ("list_all", "GET", "/api/messages",
     "Failed to retrieve messages.", "Failed to fetch messages."),
    ("insert", "POST", "/api/messages",
     "Failed to create message.", "Failed to create message."),
    ("find_by_sender_and_message_id", "GET", "/api/messages/sender/u1/message/m1",
     "Failed to retrieve message.", "Failed to fetch message."),
    ("update_content", "PUT", "/api/messages/sender/u1/receiver/u2/message/m1",
     "Failed to update message.", "Failed to update message."),
    ("delete", "DELETE", "/api/messages/sender/u1/receiver/u2/message/m1",
     "Failed to delete message.", "Failed to delete message."),
    ("find_conversation", "GET", "/api/messages/sender/u1/receiver/u2",
     "Failed to retrieve messages.", "Failed to fetch messages."),
    ("find_for_receiver", "GET", "/api/messages/receiver/u2",
     "Failed to retrieve messages for receiver.", "Failed to fetch messages for receiver."),
]

VALID_BODY = {"senderID": "u1", "receiverID": "u2", "messageID": "m1", "content": "hi"}


def failing(exc):
    async def _fail(*args, **kwargs):
        raise exc
    return _fail


def send(client, method, path):
    if method in ("POST", "PUT"):
        return client.request(method, path, json=VALID_BODY)
    return client.request(method, path)


@pytest.mark.parametrize("store_method,method,path,storage_error,_", ROUTES)
def test_storage_failure_returns_operation_error(client, store, monkeypatch, store_method, method, path, storage_error, _):
    """Test a driver error is reported with the handler's message."""
    monkeypatch.setattr(store, store_method, failing(ServerSelectionTimeoutError("no servers")))

    response = send(client, method, path)

    assert response.status_code == 500
    assert response.json() == {"error": storage_error}


@pytest.mark.parametrize("store_method,method,path,_,boundary_error", ROUTES)
def test_unexpected_failure_returns_route_error(client, store, monkeypatch, store_method, method, path, _, boundary_error):
    """Test a non-driver error is caught by the route boundary."""
    monkeypatch.setattr(store, store_method, failing(RuntimeError("boom")))

    response = send(client, method, path)

    assert response.status_code == 500
    assert response.json() == {"error": boundary_error}


def test_validation_happens_before_storage(client, store, monkeypatch):
    """Test an invalid create never reaches the store."""
    monkeypatch.setattr(store, "insert", failing(PyMongoError("should not be called")))

    response = client.post("/api/messages", json={"senderID": "u1"})

    assert response.status_code == 400


def test_failures_recorded_in_metrics(client, store, monkeypatch):
    monkeypatch.setattr(store, "find_for_receiver", failing(RuntimeError("boom")))
    client.get("/api/messages/receiver/u2")

    body = client.get("/metrics").text

    assert 'message_operations_total{operation="get_by_receiver",outcome="unhandled"}' in body
