"""
Chat service layer.

This module provides:
- ConversationService: Listing, creating and fetching conversations
- MessageService: Sending, editing, deleting, listing and reading messages

Delivery:
    Every write commits first. Realtime fan-out runs in a
    transaction.on_commit callback and reaches only participants that are
    currently connected (members ∩ registered). A fan-out failure never
    changes the result of the write.

Compliance:
    Message writes record AuditTrail and AccessLog rows through
    ComplianceRecorder inside the same transaction as the write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Prefetch

from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS
from chat.models import (
    Conversation,
    ConversationType,
    Message,
    MessageClassification,
    MessagePriority,
    MessageType,
    Participant,
    ParticipantRole,
)
from chat.realtime import push_to_users
from compliance.constants import AUDIT_EVENTS
from compliance.models import AccessAction, ResourceType
from compliance.services import ComplianceRecorder, RequestMeta
from core.helpers import sha256_hex
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django.db.models import QuerySet

    from authentication.models import User


def _schedule_push(user_ids: Iterable[int], payload: dict[str, Any]) -> None:
    targets = frozenset(user_ids)
    if targets:
        transaction.on_commit(lambda: push_to_users(targets, payload))


# =============================================================================
# ConversationService
# =============================================================================


class ConversationService(BaseService):
    """
    Conversation lifecycle.

    Usage:
        result = ConversationService.create_conversation(alice, [bob.id])
        conversations = ConversationService.list_for_user(alice)
    """

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[Conversation]:
        """The user's conversations, most recently active first."""
        return (
            Conversation.objects.filter(participants__user=user)
            .prefetch_related(
                Prefetch(
                    "participants",
                    queryset=Participant.objects.select_related("user"),
                )
            )
            .order_by("-updated_at", "-id")
            .distinct()
        )

    @classmethod
    def create_conversation(
        cls,
        creator: User,
        participant_ids: Iterable[int],
        name: str = "",
    ) -> ServiceResult[Conversation]:
        """
        Create a conversation with the creator plus the given users.

        One other participant makes a direct conversation; more than one
        makes a group. Duplicate ids and the creator's own id are ignored.

        Error codes:
            NO_PARTICIPANTS: No other participant given
            USER_NOT_FOUND: An id does not name an active user
        """
        other_ids = {int(pk) for pk in participant_ids} - {creator.id}
        if not other_ids:
            return ServiceResult.failure(
                "At least one other participant is required",
                error_code="NO_PARTICIPANTS",
            )

        User = get_user_model()
        found_ids = set(
            User.objects.filter(id__in=other_ids, is_active=True).values_list("id", flat=True)
        )
        missing = sorted(other_ids - found_ids)
        if missing:
            return ServiceResult.failure(
                "One or more users were not found",
                error_code="USER_NOT_FOUND",
                errors={"participant_ids": [str(pk) for pk in missing]},
            )

        conversation_type = (
            ConversationType.DIRECT if len(other_ids) == 1 else ConversationType.GROUP
        )

        with cls.atomic():
            conversation = Conversation.objects.create(
                name=(name or "").strip(),
                conversation_type=conversation_type,
                created_by=creator,
            )
            Participant.objects.bulk_create(
                [Participant(conversation=conversation, user=creator, role=ParticipantRole.ADMIN)]
                + [
                    Participant(conversation=conversation, user_id=pk, role=ParticipantRole.MEMBER)
                    for pk in sorted(other_ids)
                ]
            )

        cls.get_logger().info(
            f"User {creator.id} created {conversation_type} conversation "
            f"{conversation.id} with {len(other_ids)} others"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def get_for_participant(cls, conversation_id: int, user: User) -> ServiceResult[Conversation]:
        """
        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        conversation = (
            Conversation.objects.filter(pk=conversation_id)
            .prefetch_related(
                Prefetch(
                    "participants",
                    queryset=Participant.objects.select_related("user"),
                )
            )
            .first()
        )
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        if not any(p.user_id == user.id for p in conversation.participants.all()):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        return ServiceResult.success(conversation)


# =============================================================================
# MessageService
# =============================================================================


class MessageService(BaseService):
    """
    Message lifecycle and read tracking.
    """

    @staticmethod
    def serialize(message: Message) -> dict[str, Any]:
        """Realtime representation; identical to the REST message body."""
        from chat.serializers import MessageSerializer

        return dict(MessageSerializer(message).data)

    @classmethod
    def send_message(
        cls,
        sender: User,
        conversation_id: int,
        content: str,
        message_type: str = MessageType.TEXT,
        metadata: dict[str, Any] | None = None,
        classification: str | None = None,
        priority: str = MessagePriority.NORMAL,
        requires_acknowledgment: bool = False,
        encrypted_content: str = "",
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[Message]:
        """
        Persist a message and fan it out to online participants.

        encrypted_content is an opaque ciphertext reference stored beside
        the plaintext body; it is not hashed.

        Error codes:
            CONVERSATION_NOT_FOUND: No such conversation
            NOT_PARTICIPANT: Sender is not in the conversation
            EMPTY_CONTENT: Content is blank
            CONTENT_TOO_LONG: Content exceeds MESSAGE_CONFIG.MAX_CONTENT_LENGTH
            INVALID_METADATA: metadata is not a JSON object
            INVALID_MESSAGE_TYPE / INVALID_CLASSIFICATION / INVALID_PRIORITY
        """
        conversation = Conversation.objects.filter(pk=conversation_id).first()
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        member_ids = conversation.member_ids()
        if sender.id not in member_ids:
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        content = content.strip() if isinstance(content, str) else ""
        if not content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="CONTENT_TOO_LONG",
            )

        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            return ServiceResult.failure(
                "Metadata must be an object",
                error_code="INVALID_METADATA",
            )

        if message_type not in MessageType.values:
            return ServiceResult.failure(
                f"Invalid message type: {message_type}",
                error_code="INVALID_MESSAGE_TYPE",
            )
        if classification is not None and classification not in MessageClassification.values:
            return ServiceResult.failure(
                f"Invalid classification: {classification}",
                error_code="INVALID_CLASSIFICATION",
            )
        if priority not in MessagePriority.values:
            return ServiceResult.failure(
                f"Invalid priority: {priority}",
                error_code="INVALID_PRIORITY",
            )

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                content=content,
                message_type=message_type,
                metadata=metadata,
                classification=classification,
                priority=priority,
                requires_acknowledgment=requires_acknowledgment,
                encrypted_content=encrypted_content or "",
                content_hash=sha256_hex(content),
                read_by=[sender.id],
            )
            # Bump the inbox ordering key
            conversation.save(update_fields=["updated_at"])

            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.MESSAGE_SENT,
                sender,
                ResourceType.MESSAGE,
                message.id,
                new_values={
                    "conversation_id": conversation.id,
                    "content_hash": message.content_hash,
                    "classification": classification,
                },
                request_meta=request_meta,
            )
            ComplianceRecorder.log_access(
                sender,
                AccessAction.CREATE,
                ResourceType.MESSAGE,
                message.id,
                request_meta,
            )

            message.sender = sender
            payload = {
                "type": REALTIME_EVENTS.NEW_MESSAGE,
                "data": cls.serialize(message),
            }
            _schedule_push(member_ids - {sender.id}, payload)

        cls.get_logger().debug(
            f"User {sender.id} sent message {message.id} to conversation {conversation.id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def _get_own_message(cls, message_id: int, user: User, lock: bool = False) -> ServiceResult[Message]:
        queryset = Message.objects.select_related("sender")
        if lock:
            queryset = queryset.select_for_update(of=("self",))
        message = queryset.filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")
        if message.sender_id != user.id:
            return ServiceResult.failure(
                "You can only modify your own messages",
                error_code="NOT_MESSAGE_OWNER",
            )
        return ServiceResult.success(message)

    @classmethod
    def edit_message(
        cls,
        message_id: int,
        user: User,
        new_content: str,
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[Message]:
        """
        Replace a message's content.

        Acknowledgments already given are kept.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_MESSAGE_OWNER, EMPTY_CONTENT, CONTENT_TOO_LONG
        """
        new_content = new_content.strip() if isinstance(new_content, str) else ""
        if not new_content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        if len(new_content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="CONTENT_TOO_LONG",
            )

        with cls.atomic():
            result = cls._get_own_message(message_id, user, lock=True)
            if not result.success:
                return result
            message = result.data

            old_hash = message.content_hash
            message.content = new_content
            message.content_hash = sha256_hex(new_content)
            message.is_edited = True
            message.save(update_fields=["content", "content_hash", "is_edited", "updated_at"])

            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.MESSAGE_EDITED,
                user,
                ResourceType.MESSAGE,
                message.id,
                old_values={"content_hash": old_hash},
                new_values={"content_hash": message.content_hash},
                request_meta=request_meta,
            )
            ComplianceRecorder.log_access(
                user, AccessAction.EDIT, ResourceType.MESSAGE, message.id, request_meta
            )

        return ServiceResult.success(message)

    @classmethod
    def delete_message(
        cls,
        message_id: int,
        user: User,
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[None]:
        """
        Soft delete a message and notify online participants.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_MESSAGE_OWNER
        """
        with cls.atomic():
            result = cls._get_own_message(message_id, user, lock=True)
            if not result.success:
                return result
            message = result.data

            message.soft_delete()

            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.MESSAGE_DELETED,
                user,
                ResourceType.MESSAGE,
                message.id,
                old_values={"is_deleted": False},
                new_values={"is_deleted": True},
                request_meta=request_meta,
            )
            ComplianceRecorder.log_access(
                user, AccessAction.DELETE, ResourceType.MESSAGE, message.id, request_meta
            )

            member_ids = message.conversation.member_ids()
            _schedule_push(
                member_ids - {user.id},
                {
                    "type": REALTIME_EVENTS.MESSAGE_DELETED,
                    "data": {"id": message.id, "conversationId": message.conversation_id},
                },
            )

        cls.get_logger().info(f"User {user.id} deleted message {message.id}")
        return ServiceResult.success(None)

    @classmethod
    def list_messages(
        cls,
        conversation_id: int,
        user: User,
        limit: int = MESSAGE_CONFIG.HISTORY_DEFAULT_LIMIT,
    ) -> ServiceResult[list[Message]]:
        """
        The latest ``limit`` messages, oldest first.

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        result = ConversationService.get_for_participant(conversation_id, user)
        if not result.success:
            return result

        limit = max(1, min(int(limit), MESSAGE_CONFIG.HISTORY_MAX_LIMIT))
        latest = list(
            Message.objects.filter(conversation_id=conversation_id)
            .select_related("sender")
            .order_by("-created_at", "-id")[:limit]
        )
        latest.reverse()
        return ServiceResult.success(latest)

    @classmethod
    def mark_read(cls, message_id: int, user: User) -> ServiceResult[Message]:
        """
        Add the user to a message's read_by set.

        Idempotent: reading twice leaves read_by unchanged.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_PARTICIPANT
        """
        with cls.atomic():
            message = (
                Message.objects.select_for_update(of=("self",))
                .select_related("sender")
                .filter(pk=message_id)
                .first()
            )
            if message is None:
                return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")

            if not Participant.objects.filter(
                conversation_id=message.conversation_id, user=user
            ).exists():
                return ServiceResult.failure(
                    "You are not a participant in this conversation",
                    error_code="NOT_PARTICIPANT",
                )

            read_by = list(message.read_by or [])
            if user.id not in read_by:
                read_by.append(user.id)
                message.read_by = read_by
                message.save(update_fields=["read_by"])

        return ServiceResult.success(message)
