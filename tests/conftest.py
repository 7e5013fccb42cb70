"""
Pytest configuration and shared fixtures.

The store under test wraps a mongomock-motor collection, so no MongoDB
server is needed. Each test gets its own database.
"""

import uuid

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

# Clear settings cache before any app imports so test env vars are used
from message_api.config import Settings, get_settings
get_settings.cache_clear()

from message_api.main import create_app
from message_api.storage import MessageStore


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, LOG_LEVEL="WARNING")


@pytest.fixture
def store() -> MessageStore:
    """Fresh message store backed by an in-memory collection."""
    client = AsyncMongoMockClient()
    return MessageStore(client[f"messages_test_{uuid.uuid4().hex}"]["messages"])


@pytest.fixture
def client(store, settings):
    """Test client wired to the in-memory store."""
    app = create_app(store=store, settings=settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_message(client):
    """Helper to create a message through the API and return its body."""
    def _create(**fields):
        response = client.post("/api/messages", json=fields)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def seeded_client(client, create_message):
    """Client with a small conversation between u1 and u2 plus one from u3."""
    messages = [
        ("u1", "u2", "m1", "hi"),
        ("u2", "u1", "m2", "hello back"),
        ("u1", "u2", "m3", "how are you?"),
        ("u3", "u2", "m4", "hey u2"),
    ]
    for sender, receiver, message_id, content in messages:
        create_message(senderID=sender, receiverID=receiver, messageID=message_id, content=content)
    return client
