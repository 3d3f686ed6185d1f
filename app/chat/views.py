"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation list/create/detail and message history
- MessageViewSet: Send, edit, delete, read and acknowledge messages

URL Structure:
    /api/v1/chat/conversations/                    GET, POST
    /api/v1/chat/conversations/{id}/               GET
    /api/v1/chat/conversations/{id}/messages/      GET, POST
    /api/v1/chat/messages/                         POST
    /api/v1/chat/messages/{id}/                    PUT, DELETE
    /api/v1/chat/messages/{id}/read/               POST
    /api/v1/chat/messages/{id}/acknowledge/        POST
    /api/v1/chat/messages/{id}/acknowledgments/    GET

Design Decisions:
    - Views handle HTTP only; membership and ownership live in services
    - Failed ServiceResults go through core.views.failure_response
    - Realtime fan-out is triggered by the services, never by views
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.constants import MESSAGE_CONFIG
from chat.serializers import (
    ConversationCreateSerializer,
    ConversationSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    MessageUpdateSerializer,
)
from chat.services import ConversationService, MessageService
from compliance.serializers import MessageAcknowledgmentSerializer
from compliance.services import AcknowledgmentService, RequestMeta
from core.helpers import parse_limit
from core.views import failure_response


def _send(request, conversation_id, data) -> Response:
    result = MessageService.send_message(
        sender=request.user,
        conversation_id=conversation_id,
        content=data["content"],
        message_type=data["type"],
        metadata=data.get("metadata"),
        classification=data.get("classification"),
        priority=data["priority"],
        requires_acknowledgment=data["requires_acknowledgment"],
        encrypted_content=data.get("encrypted_content", ""),
        request_meta=RequestMeta.from_request(request),
    )
    if not result.success:
        return failure_response(result)
    return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation operations.

    list:
        Conversations the current user participates in, most recently
        active first.

    create:
        Create a conversation. One participant id makes a direct
        conversation, more make a group. The creator is added as admin.

    retrieve:
        Conversation details with participants (participants only).

    messages:
        GET the latest messages oldest-first; POST sends to this conversation.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        responses={200: ConversationSerializer(many=True)},
        tags=["Chat - Conversations"],
    )
    def list(self, request):
        conversations = ConversationService.list_for_user(request.user)
        return Response(ConversationSerializer(conversations, many=True).data)

    @extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        request=ConversationCreateSerializer,
        responses={
            201: ConversationSerializer,
            400: OpenApiResponse(description="Unknown participant ids"),
        },
        tags=["Chat - Conversations"],
    )
    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.create_conversation(
            creator=request.user,
            participant_ids=serializer.validated_data["participant_ids"],
            name=serializer.validated_data["name"],
        )
        if not result.success:
            return failure_response(result)

        # Re-fetch with participants prefetched
        conversation = ConversationService.get_for_participant(
            result.data.id, request.user
        ).data
        return Response(
            ConversationSerializer(conversation).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={
            200: ConversationSerializer,
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Chat - Conversations"],
    )
    def retrieve(self, request, pk=None):
        result = ConversationService.get_for_participant(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response(ConversationSerializer(result.data).data)

    @extend_schema(
        methods=["GET"],
        operation_id="list_conversation_messages",
        summary="List messages",
        description="Latest messages in the conversation, oldest first.",
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Max messages (default {MESSAGE_CONFIG.HISTORY_DEFAULT_LIMIT}, "
                f"max {MESSAGE_CONFIG.HISTORY_MAX_LIMIT})",
            ),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="send_conversation_message",
        summary="Send message to conversation",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def messages(self, request, pk=None):
        if request.method == "POST":
            serializer = MessageCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            return _send(request, int(pk), serializer.validated_data)

        limit = parse_limit(
            request.query_params.get("limit"),
            MESSAGE_CONFIG.HISTORY_DEFAULT_LIMIT,
            MESSAGE_CONFIG.HISTORY_MAX_LIMIT,
        )
        result = MessageService.list_messages(int(pk), request.user, limit=limit)
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data, many=True).data)


class MessageViewSet(viewsets.ViewSet):
    """
    ViewSet for message operations addressed by message id.

    Only the sender may edit or delete a message. Any participant may mark
    it read or acknowledge it.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Chat - Messages"],
    )
    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conversation_id = serializer.validated_data.get("conversation_id")
        if conversation_id is None:
            return Response(
                {"conversation_id": ["This field is required."]},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return _send(request, conversation_id, serializer.validated_data)

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageUpdateSerializer,
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def update(self, request, pk=None):
        serializer = MessageUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit_message(
            message_id=int(pk),
            user=request.user,
            new_content=serializer.validated_data["content"],
            request_meta=RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={
            204: None,
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def destroy(self, request, pk=None):
        result = MessageService.delete_message(
            message_id=int(pk),
            user=request.user,
            request_meta=RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message read",
        request=None,
        responses={200: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def read(self, request, pk=None):
        result = MessageService.mark_read(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="acknowledge_message",
        summary="Acknowledge message",
        description="Returns 201 on the first acknowledgment and 200 on repeats.",
        request=None,
        responses={
            200: MessageAcknowledgmentSerializer,
            201: MessageAcknowledgmentSerializer,
        },
        tags=["Chat - Messages"],
    )
    def acknowledge(self, request, pk=None):
        result = AcknowledgmentService.acknowledge(
            int(pk),
            request.user,
            RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)

        acknowledgment, created = result.data
        return Response(
            MessageAcknowledgmentSerializer(acknowledgment).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="list_message_acknowledgments",
        summary="List acknowledgments",
        responses={
            200: MessageAcknowledgmentSerializer(many=True),
            403: OpenApiResponse(description="Not the sender and no capability"),
        },
        tags=["Chat - Messages"],
    )
    def acknowledgments(self, request, pk=None):
        result = AcknowledgmentService.list_for_message(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response(MessageAcknowledgmentSerializer(result.data, many=True).data)
