"""
Chat app for real-time messaging.

This app handles:
- Conversations (direct and group) and their participants
- Message sending, editing, soft deletion and read tracking
- The connection registry and WebSocket signaling router

Related apps:
    - authentication: User model for participants
    - compliance: Audit and access records for every message change

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the WebSocket handler and registry.py for
    per-user connection tracking.

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_conversation(
        creator=user,
        participant_ids=[other_user.id],
    )

    result = MessageService.send_message(
        sender=user,
        conversation_id=result.data.id,
        content="Hello!",
    )
"""
