"""
Tests for the typed results returned by message handlers and their rendering.
"""

import asyncio
import json

from pymongo.errors import AutoReconnect

from message_api import handlers
from message_api.results import ErrorKind, Failure, Success
from message_api.routes import render


def run(coro):
    return asyncio.run(coro)


class TestHandlerResults:

    def test_create_returns_201_success(self, store):
        result = run(handlers.create_message(store, {"senderID": "a", "receiverID": "b", "content": "hi"}))

        assert isinstance(result, Success)
        assert result.status_code == 201
        assert result.value["senderID"] == "a"
        assert "_id" in result.value

    def test_create_validation_failure(self, store):
        result = run(handlers.create_message(store, {"senderID": "a", "content": "hi"}))

        assert result == Failure(ErrorKind.VALIDATION, handlers.REQUIRED_FIELDS_ERROR)
        assert run(store.list_all()) == []

    def test_create_rejects_nested_values(self, store):
        result = run(handlers.create_message(store, {"senderID": {"$ne": None}, "receiverID": "b", "content": "hi"}))

        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.VALIDATION

    def test_lookup_not_found(self, store):
        result = run(handlers.get_message_by_sender_and_id(store, "a", "missing"))

        assert result == Failure(ErrorKind.NOT_FOUND, "Message not found")

    def test_storage_error_kind(self, store, monkeypatch):
        async def fail(*args):
            raise AutoReconnect("connection reset")
        monkeypatch.setattr(store, "find_conversation", fail)

        result = run(handlers.get_messages_by_sender_and_receiver(store, "a", "b"))

        assert result == Failure(ErrorKind.STORAGE, "Failed to retrieve messages.")


class TestRender:

    def test_success(self):
        response, outcome = render(Success({"message": "Message deleted"}))

        assert response.status_code == 200
        assert json.loads(response.body) == {"message": "Message deleted"}
        assert outcome == "ok"

    def test_validation_uses_error_key(self):
        response, outcome = render(Failure(ErrorKind.VALIDATION, "bad"))

        assert response.status_code == 400
        assert json.loads(response.body) == {"error": "bad"}
        assert outcome == "validation"

    def test_not_found_uses_message_key(self):
        response, _ = render(Failure(ErrorKind.NOT_FOUND, "gone"))

        assert response.status_code == 404
        assert json.loads(response.body) == {"message": "gone"}

    def test_storage_is_500(self):
        response, outcome = render(Failure(ErrorKind.STORAGE, "down"))

        assert response.status_code == 500
        assert outcome == "storage"
