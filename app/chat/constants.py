"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, history page sizes)
- Realtime event names exchanged over the websocket

Limits can be overridden via Django settings.
Import example:
    from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = getattr(settings, "MESSAGE_MAX_LENGTH", 10000)

    # History listing
    HISTORY_DEFAULT_LIMIT: Final[int] = getattr(
        settings, "MESSAGE_HISTORY_DEFAULT_LIMIT", 50
    )
    HISTORY_MAX_LIMIT: Final[int] = getattr(settings, "MESSAGE_HISTORY_MAX_LIMIT", 200)


# =============================================================================
# Realtime Event Names
# =============================================================================


class REALTIME_EVENTS:
    """Event type strings used on the websocket."""

    # Client -> server
    AUTH: Final[str] = "auth"
    TYPING: Final[str] = "typing"
    CALL_EVENTS: Final[frozenset] = frozenset(
        {
            "call_offer",
            "call_answer",
            "ice_candidate",
            "call_ended",
            "call_rejected",
        }
    )

    # Server -> client
    AUTH_SUCCESS: Final[str] = "auth_success"
    AUTH_ERROR: Final[str] = "auth_error"
    ERROR: Final[str] = "error"
    NEW_MESSAGE: Final[str] = "new_message"
    MESSAGE_DELETED: Final[str] = "message_deleted"

    # Channel layer message type handled by RealtimeConsumer.realtime_event
    CHANNEL_EVENT_TYPE: Final[str] = "realtime.event"
