"""
Test configuration and fixtures for compliance tests.

Provides one user per role, a conversation between two plain users and a
message in it.
"""

import pytest

from authentication.models import UserRole
from authentication.tests.factories import UserFactory
from chat.tests.factories import ConversationFactory, MessageFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def sender(db):
    return UserFactory(display_name="Sender")


@pytest.fixture
def recipient(db):
    return UserFactory(display_name="Recipient")


@pytest.fixture
def outsider(db):
    return UserFactory(display_name="Outsider")


@pytest.fixture
def officer(db):
    """User holding the compliance_officer role (all capabilities)."""
    return UserFactory(role=UserRole.COMPLIANCE_OFFICER)


@pytest.fixture
def auditor(db):
    """User holding the auditor role (view capabilities only)."""
    return UserFactory(role=UserRole.AUDITOR)


# =============================================================================
# Message Fixtures
# =============================================================================


@pytest.fixture
def conversation(sender, recipient):
    return ConversationFactory(created_by=sender, members=[recipient])


@pytest.fixture
def message(conversation, sender):
    return MessageFactory(
        conversation=conversation,
        sender=sender,
        content="Please acknowledge the updated policy",
        requires_acknowledgment=True,
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def officer_client(officer, authenticated_client_factory):
    return authenticated_client_factory(officer)


@pytest.fixture
def auditor_client(auditor, authenticated_client_factory):
    return authenticated_client_factory(auditor)


@pytest.fixture
def user_client(sender, authenticated_client_factory):
    """Client for a plain user with no compliance capabilities."""
    return authenticated_client_factory(sender)
