"""
WebSocket consumer for realtime delivery and signalling.

One socket per client at ws/. The client authenticates with an explicit
``auth`` event carrying a JWT access token; until then every other event is
answered with an error. Once authenticated the connection is registered in
the ConnectionRegistry so services can push events to it.

Connection States:
    UNAUTHENTICATED -> AUTHENTICATED -> CLOSED

Message Types (from client):
    - auth: {"type": "auth", "token": "<jwt>"}
    - typing: {"type": "typing", "conversationId": 1, "isTyping": true}
    - call_offer | call_answer | ice_candidate | call_ended | call_rejected:
      {"type": "...", "to": <user id>, ...payload}

Message Types (to client):
    - auth_success / auth_error
    - typing: {"type": "typing", "data": {"userId", "isTyping", "conversationId"}}
    - <call type>: {"type": "...", "payload": {..., "from": <id>, "to": <id>}}
    - new_message / message_deleted (pushed by services)
    - error: {"type": "error", "message": "..."}
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from authentication.services import AuthService
from chat.auth import get_user_for_token
from chat.constants import REALTIME_EVENTS
from chat.models import Participant
from chat.registry import connection_registry

logger = logging.getLogger(__name__)


class RealtimeConsumer(AsyncJsonWebsocketConsumer):
    """
    Per-connection realtime router.

    Attributes:
        user: Authenticated user, None until the auth event succeeds
    """

    registry = connection_registry

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def connect(self):
        await self.accept()
        logger.debug(f"Realtime connection opened: {self.channel_name}")

    async def disconnect(self, close_code):
        if not self.is_authenticated:
            return

        user = self.user
        removed = self.registry.unregister(user.id, self.channel_name)
        if removed:
            await database_sync_to_async(self._mark_offline)(user)
        logger.info(
            f"Realtime connection closed for user {user.id} "
            f"(code={close_code}, unregistered={removed})"
        )

    async def receive_json(self, content, **kwargs):
        """
        Route one inbound event.

        Events are handled one at a time per connection, so ordering on a
        single socket is preserved.
        """
        if not isinstance(content, dict):
            await self._send_error("Invalid message format")
            return

        message_type = content.get("type")

        if not self.is_authenticated:
            if message_type == REALTIME_EVENTS.AUTH:
                await self._handle_auth(content)
            else:
                await self._send_error("Authentication required")
            return

        if message_type == REALTIME_EVENTS.AUTH:
            await self._send_error("Already authenticated")
        elif message_type == REALTIME_EVENTS.TYPING:
            await self._handle_typing(content)
        elif message_type in REALTIME_EVENTS.CALL_EVENTS:
            await self._handle_call_event(message_type, content)
        else:
            await self._send_error(f"Unknown message type: {message_type}")

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _handle_auth(self, content):
        user = await database_sync_to_async(get_user_for_token)(content.get("token"))
        if user is None:
            await self.send_json(
                {"type": REALTIME_EVENTS.AUTH_ERROR, "message": "Invalid token"}
            )
            return

        self.user = user
        self.registry.register(user.id, self.channel_name)
        await database_sync_to_async(AuthService.set_online)(user, True)
        await self.send_json({"type": REALTIME_EVENTS.AUTH_SUCCESS})
        logger.info(f"Realtime connection authenticated for user {user.id}")

    async def _handle_typing(self, content):
        conversation_id = content.get("conversationId")
        member_ids = await self._get_member_ids(conversation_id)

        if member_ids is None or self.user.id not in member_ids:
            await self._send_error("Not a participant in this conversation")
            return

        sender_id = self.user.id
        payload = {
            "type": REALTIME_EVENTS.TYPING,
            "data": {
                "userId": sender_id,
                "isTyping": bool(content.get("isTyping", False)),
                "conversationId": conversation_id,
            },
        }
        await self.registry.broadcast(
            lambda user_id: user_id in member_ids and user_id != sender_id,
            payload,
        )

    async def _handle_call_event(self, message_type, content):
        target_id = self._parse_user_id(content.get("to"))
        if target_id is None:
            await self._send_error("Missing or invalid call target")
            return

        payload = {
            key: value for key, value in content.items() if key not in ("type", "from")
        }
        payload["from"] = self.user.id
        payload["to"] = target_id

        delivered = await self.registry.send_to(
            target_id, {"type": message_type, "payload": payload}
        )
        if not delivered:
            logger.debug(
                f"Dropped {message_type} from user {self.user.id}: "
                f"user {target_id} not connected"
            )

    # =========================================================================
    # Channel layer events
    # =========================================================================

    async def realtime_event(self, event):
        """Write a payload pushed through the registry."""
        await self.send_json(event["payload"])

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _send_error(self, message: str):
        await self.send_json({"type": REALTIME_EVENTS.ERROR, "message": message})

    @staticmethod
    def _parse_user_id(value) -> int | None:
        if isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @database_sync_to_async
    def _get_member_ids(self, conversation_id) -> frozenset[int] | None:
        """Return member ids of a conversation, or None if the id is invalid."""
        try:
            conversation_id = int(conversation_id)
        except (TypeError, ValueError):
            return None
        return frozenset(
            Participant.objects.filter(conversation_id=conversation_id).values_list(
                "user_id", flat=True
            )
        )

    def _mark_offline(self, user) -> None:
        """
        Persist offline presence after this connection was unregistered.

        A reconnect registers before writing is_online=True, so if a new
        connection appears by the time this write lands, online is restored.
        """
        if self.registry.lookup(user.id) is not None:
            return
        AuthService.set_online(user, False)
        if self.registry.lookup(user.id) is not None:
            AuthService.set_online(user, True)
