"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures (alice, bob, carol, outsider)
- Conversation fixtures (direct and group)
- A recording sender that captures realtime deliveries
- API client helpers for authenticated requests

Usage:
    def test_example(direct_conversation, alice_client):
        response = alice_client.get(
            f"/api/v1/chat/conversations/{direct_conversation.id}/"
        )
        assert response.status_code == 200
"""

import pytest

from authentication.tests.factories import UserFactory
from chat.models import ConversationType
from chat.registry import connection_registry
from chat.tests.factories import ConversationFactory, MessageFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    """Conversation creator."""
    return UserFactory(display_name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(display_name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(display_name="Carol")


@pytest.fixture
def outsider(db):
    """A user who is not a participant in any test conversation."""
    return UserFactory(display_name="Outsider")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct_conversation(alice, bob):
    """Direct conversation created by alice with bob."""
    return ConversationFactory(created_by=alice, members=[bob])


@pytest.fixture
def group_conversation(alice, bob, carol):
    """Group conversation created by alice with bob and carol."""
    return ConversationFactory(
        created_by=alice,
        conversation_type=ConversationType.GROUP,
        name="Compliance Team",
        members=[bob, carol],
    )


@pytest.fixture
def message(direct_conversation, alice):
    """A message from alice in the direct conversation."""
    return MessageFactory(conversation=direct_conversation, sender=alice, content="hello")


# =============================================================================
# Realtime Fixtures
# =============================================================================


class RecordingSender:
    """Async sender that records (handle, payload) instead of delivering."""

    def __init__(self):
        self.sent = []

    async def __call__(self, handle, payload):
        self.sent.append((handle, payload))

    def payloads_for(self, handle):
        return [payload for sent_handle, payload in self.sent if sent_handle == handle]


@pytest.fixture
def recording_sender():
    """
    Replace the registry's sender with a RecordingSender.

    The root conftest restores the original sender after each test.
    """
    sender = RecordingSender()
    connection_registry.sender = sender
    return sender


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def alice_client(alice, authenticated_client_factory):
    return authenticated_client_factory(alice)


@pytest.fixture
def bob_client(bob, authenticated_client_factory):
    return authenticated_client_factory(bob)


@pytest.fixture
def outsider_client(outsider, authenticated_client_factory):
    return authenticated_client_factory(outsider)
