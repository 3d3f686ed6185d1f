"""
Compliance services.

This module provides:
- RequestMeta: Request origin (IP, user agent) passed down from views
- ComplianceRecorder: Access log and audit trail writers
- AcknowledgmentService: Message acknowledgments (atomic, idempotent)
- RetentionPolicyService: Retention policy CRUD (audited)
- ComplianceReportService: Server-side report generation
- ComplianceQueryService: Capability-gated reads of compliance records

Transactions:
    ComplianceRecorder writes are plain inserts. They join whatever
    transaction the caller has open, so a failed business write rolls its
    compliance rows back with it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Any

from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from authentication.permissions import Capability
from chat.models import Message
from compliance.constants import AUDIT_EVENTS, COMPLIANCE_CONFIG
from compliance.models import (
    AccessAction,
    AccessLog,
    AuditTrail,
    ComplianceReport,
    MessageAcknowledgment,
    ReportType,
    ResourceType,
    RetentionPolicy,
)
from core.exceptions import PermissionDeniedError, ValidationError
from core.helpers import get_client_ip, get_user_agent
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from django.db.models import QuerySet
    from django.http import HttpRequest

    from authentication.models import User


@dataclass(frozen=True)
class RequestMeta:
    """Origin of a request, recorded on compliance rows."""

    ip_address: str | None = None
    user_agent: str = ""

    @classmethod
    def from_request(cls, request: HttpRequest | None) -> RequestMeta:
        if request is None:
            return cls()
        return cls(ip_address=get_client_ip(request), user_agent=get_user_agent(request))


def _json_safe(value: Any) -> Any:
    """Round-trip through DjangoJSONEncoder so datetimes/UUIDs become strings."""
    if value is None:
        return None
    return json.loads(json.dumps(value, cls=DjangoJSONEncoder))


def _user_or_none(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


# =============================================================================
# ComplianceRecorder
# =============================================================================


class ComplianceRecorder(BaseService):
    """
    Writes AccessLog and AuditTrail rows.

    Usage:
        ComplianceRecorder.log_access(
            user, AccessAction.VIEW, ResourceType.FILE, file.id, request_meta
        )
        ComplianceRecorder.record_audit(
            AUDIT_EVENTS.MESSAGE_EDITED, user, ResourceType.MESSAGE, message.id,
            old_values={"content_hash": old}, new_values={"content_hash": new},
        )
    """

    @classmethod
    def log_access(
        cls,
        user: User | None,
        action: str,
        resource_type: str,
        resource_id: Any,
        request_meta: RequestMeta | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AccessLog:
        meta = request_meta or RequestMeta()
        return AccessLog.objects.create(
            user=_user_or_none(user),
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            metadata=_json_safe(metadata) or {},
        )

    @classmethod
    def record_audit(
        cls,
        event_type: str,
        user: User | None,
        resource_type: str,
        resource_id: Any,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        request_meta: RequestMeta | None = None,
    ) -> AuditTrail:
        meta = request_meta or RequestMeta()
        return AuditTrail.objects.create(
            event_type=event_type,
            user=_user_or_none(user),
            resource_type=resource_type,
            resource_id=str(resource_id),
            old_values=_json_safe(old_values),
            new_values=_json_safe(new_values),
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        )


# =============================================================================
# AcknowledgmentService
# =============================================================================


class AcknowledgmentService(BaseService):
    """
    Message acknowledgments.

    The access log, audit entry and acknowledgment row are written in one
    transaction: either all three exist or none do.
    """

    @classmethod
    def _get_visible_message(cls, message_id, user) -> ServiceResult[Message]:
        message = (
            Message.objects.select_related("conversation")
            .filter(pk=message_id)
            .first()
        )
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")
        if not message.conversation.has_participant(user):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )
        return ServiceResult.success(message)

    @classmethod
    def acknowledge(
        cls,
        message_id: int,
        user: User,
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[tuple[MessageAcknowledgment, bool]]:
        """
        Acknowledge a message.

        Returns:
            ServiceResult with (acknowledgment, created). A repeat call
            returns the existing row with created=False and writes nothing.

        Error codes:
            MESSAGE_NOT_FOUND: Missing or deleted message
            NOT_PARTICIPANT: User is not in the message's conversation
        """
        result = cls._get_visible_message(message_id, user)
        if not result.success:
            return result
        message = result.data

        existing = MessageAcknowledgment.objects.filter(message=message, user=user).first()
        if existing is not None:
            return ServiceResult.success((existing, False))

        meta = request_meta or RequestMeta()
        try:
            with cls.atomic():
                ComplianceRecorder.log_access(
                    user,
                    AccessAction.ACKNOWLEDGE,
                    ResourceType.MESSAGE,
                    message.id,
                    meta,
                )
                ComplianceRecorder.record_audit(
                    AUDIT_EVENTS.MESSAGE_ACKNOWLEDGED,
                    user,
                    ResourceType.MESSAGE,
                    message.id,
                    new_values={"acknowledged": True},
                    request_meta=meta,
                )
                acknowledgment = MessageAcknowledgment.objects.create(
                    message=message,
                    user=user,
                    ip_address=meta.ip_address,
                    user_agent=meta.user_agent,
                )
        except IntegrityError:
            # Lost a race with a concurrent acknowledgment; its rows stand.
            existing = MessageAcknowledgment.objects.filter(message=message, user=user).first()
            if existing is None:
                raise
            return ServiceResult.success((existing, False))

        cls.get_logger().info(f"User {user.id} acknowledged message {message.id}")
        return ServiceResult.success((acknowledgment, True))

    @classmethod
    def list_for_message(
        cls, message_id: int, user: User
    ) -> ServiceResult[QuerySet[MessageAcknowledgment]]:
        """
        List acknowledgments of a message.

        Visible to the message sender and to VIEW_ACKNOWLEDGMENTS holders.
        """
        message = Message.objects.filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure("Message not found", error_code="MESSAGE_NOT_FOUND")

        if message.sender_id != user.id and not user.has_capability(
            Capability.VIEW_ACKNOWLEDGMENTS
        ):
            return ServiceResult.failure(
                "You cannot view acknowledgments for this message",
                error_code="PERMISSION_DENIED",
            )

        return ServiceResult.success(
            MessageAcknowledgment.objects.filter(message=message).select_related("user")
        )


# =============================================================================
# RetentionPolicyService
# =============================================================================


class RetentionPolicyService(BaseService):
    """Retention policy management. Writes require MANAGE_RETENTION_POLICIES."""

    EDITABLE_FIELDS = (
        "name",
        "description",
        "message_classification",
        "retention_period_days",
        "is_active",
    )

    @staticmethod
    def _snapshot(policy: RetentionPolicy) -> dict[str, Any]:
        return {field: getattr(policy, field) for field in RetentionPolicyService.EDITABLE_FIELDS}

    @staticmethod
    def _denied() -> ServiceResult:
        return ServiceResult.failure(
            "You do not have permission to manage retention policies",
            error_code="PERMISSION_DENIED",
        )

    @classmethod
    def list(cls, active_only: bool = False) -> QuerySet[RetentionPolicy]:
        queryset = RetentionPolicy.objects.all()
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset

    @classmethod
    def create(
        cls,
        user: User,
        name: str,
        retention_period_days: int,
        message_classification: str | None = None,
        description: str = "",
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[RetentionPolicy]:
        """
        Create a retention policy.

        Error codes:
            PERMISSION_DENIED: Caller lacks MANAGE_RETENTION_POLICIES
            POLICY_EXISTS: A policy with this name already exists
        """
        if not user.has_capability(Capability.MANAGE_RETENTION_POLICIES):
            return cls._denied()

        if RetentionPolicy.objects.filter(name__iexact=name).exists():
            return ServiceResult.failure(
                "A retention policy with this name already exists",
                error_code="POLICY_EXISTS",
            )

        try:
            with cls.atomic():
                policy = RetentionPolicy.objects.create(
                    name=name,
                    description=description,
                    message_classification=message_classification,
                    retention_period_days=retention_period_days,
                    created_by=user,
                )
                ComplianceRecorder.record_audit(
                    AUDIT_EVENTS.RETENTION_POLICY_CREATED,
                    user,
                    ResourceType.RETENTION_POLICY,
                    policy.id,
                    new_values=cls._snapshot(policy),
                    request_meta=request_meta,
                )
        except IntegrityError:
            return ServiceResult.failure(
                "A retention policy with this name already exists",
                error_code="POLICY_EXISTS",
            )

        cls.get_logger().info(f"Retention policy {policy.id} created by user {user.id}")
        return ServiceResult.success(policy)

    @classmethod
    def update(
        cls,
        policy_id: int,
        user: User,
        changes: dict[str, Any],
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[RetentionPolicy]:
        """
        Apply partial changes to a policy.

        Error codes:
            PERMISSION_DENIED, POLICY_NOT_FOUND, POLICY_EXISTS
        """
        if not user.has_capability(Capability.MANAGE_RETENTION_POLICIES):
            return cls._denied()

        changes = {k: v for k, v in changes.items() if k in cls.EDITABLE_FIELDS}

        new_name = changes.get("name")
        if (
            new_name
            and RetentionPolicy.objects.filter(name__iexact=new_name)
            .exclude(pk=policy_id)
            .exists()
        ):
            return ServiceResult.failure(
                "A retention policy with this name already exists",
                error_code="POLICY_EXISTS",
            )

        with cls.atomic():
            policy = RetentionPolicy.objects.select_for_update().filter(pk=policy_id).first()
            if policy is None:
                return ServiceResult.failure(
                    "Retention policy not found", error_code="POLICY_NOT_FOUND"
                )

            old_values = cls._snapshot(policy)
            for field, value in changes.items():
                setattr(policy, field, value)
            policy.save()

            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.RETENTION_POLICY_UPDATED,
                user,
                ResourceType.RETENTION_POLICY,
                policy.id,
                old_values=old_values,
                new_values=cls._snapshot(policy),
                request_meta=request_meta,
            )

        return ServiceResult.success(policy)

    @classmethod
    def deactivate(
        cls,
        policy_id: int,
        user: User,
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[RetentionPolicy]:
        """Mark a policy inactive. The row is kept for audit."""
        if not user.has_capability(Capability.MANAGE_RETENTION_POLICIES):
            return cls._denied()

        with cls.atomic():
            policy = RetentionPolicy.objects.select_for_update().filter(pk=policy_id).first()
            if policy is None:
                return ServiceResult.failure(
                    "Retention policy not found", error_code="POLICY_NOT_FOUND"
                )

            if policy.is_active:
                policy.is_active = False
                policy.save(update_fields=["is_active", "updated_at"])
                ComplianceRecorder.record_audit(
                    AUDIT_EVENTS.RETENTION_POLICY_DEACTIVATED,
                    user,
                    ResourceType.RETENTION_POLICY,
                    policy.id,
                    old_values={"is_active": True},
                    new_values={"is_active": False},
                    request_meta=request_meta,
                )

        return ServiceResult.success(policy)


# =============================================================================
# ComplianceReportService
# =============================================================================


def _parse_bound(value: Any, end_of_day: bool = False) -> datetime | None:
    """
    Parse a date or datetime report parameter.

    Raises:
        ValidationError: If the value is present but unparseable
    """
    if value in (None, ""):
        return None

    # Well-formed but impossible dates (2024-02-30) raise ValueError
    try:
        parsed = parse_datetime(str(value))
        day = parse_date(str(value)) if parsed is None else None
    except ValueError:
        parsed = day = None

    if parsed is None:
        if day is None:
            raise ValidationError(
                f"Invalid date: {value}",
                error_code="INVALID_PARAMETERS",
            )
        parsed = datetime.combine(day, time.min)
        if end_of_day:
            parsed += timedelta(days=1)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _apply_window(queryset, date_from, date_to):
    if date_from is not None:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to is not None:
        queryset = queryset.filter(created_at__lt=date_to)
    return queryset


class ComplianceReportService(BaseService):
    """
    Generates and persists compliance reports.

    Report Types:
        retention_due: Messages older than each active policy's period
        access_summary: AccessLog counts by action and resource type
        audit_trail: AuditTrail counts by event type plus recent events

    Parameters (all optional):
        date_from / date_to: ISO date or datetime window (access_summary,
            audit_trail). A bare date_to includes that whole day.
    """

    @classmethod
    def generate(
        cls,
        report_type: str,
        user: User,
        parameters: dict[str, Any] | None = None,
        request_meta: RequestMeta | None = None,
    ) -> ServiceResult[ComplianceReport]:
        """
        Error codes:
            PERMISSION_DENIED: Caller lacks GENERATE_COMPLIANCE_REPORTS
            INVALID_REPORT_TYPE: Unknown report type
            INVALID_PARAMETERS: Unparseable date bounds
        """
        if not user.has_capability(Capability.GENERATE_COMPLIANCE_REPORTS):
            return ServiceResult.failure(
                "You do not have permission to generate compliance reports",
                error_code="PERMISSION_DENIED",
            )

        if report_type not in ReportType.values:
            return ServiceResult.failure(
                f"Unknown report type: {report_type}",
                error_code="INVALID_REPORT_TYPE",
            )

        parameters = dict(parameters or {})
        try:
            date_from = _parse_bound(parameters.get("date_from"))
            date_to = _parse_bound(parameters.get("date_to"), end_of_day=True)
        except ValidationError as e:
            return ServiceResult.failure(e.message, error_code=e.error_code)

        builders = {
            ReportType.RETENTION_DUE: cls._build_retention_due,
            ReportType.ACCESS_SUMMARY: cls._build_access_summary,
            ReportType.AUDIT_TRAIL: cls._build_audit_trail,
        }
        report_data = builders[report_type](date_from, date_to)

        with cls.atomic():
            report = ComplianceReport.objects.create(
                report_type=report_type,
                report_data=_json_safe(report_data),
                parameters=_json_safe(parameters),
                generated_by=user,
            )
            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.COMPLIANCE_REPORT_GENERATED,
                user,
                ResourceType.COMPLIANCE_REPORT,
                report.id,
                new_values={"report_type": report_type, "parameters": parameters},
                request_meta=request_meta,
            )

        cls.get_logger().info(
            f"Compliance report {report.id} ({report_type}) generated by user {user.id}"
        )
        return ServiceResult.success(report)

    @staticmethod
    def _build_retention_due(date_from, date_to) -> dict[str, Any]:
        now = timezone.now()
        policies = []
        total_due = 0

        for policy in RetentionPolicy.objects.filter(is_active=True).order_by("name"):
            cutoff = now - timedelta(days=policy.retention_period_days)
            # Soft-deleted rows are still stored and still subject to retention
            messages = Message.all_objects.filter(created_at__lt=cutoff)
            if policy.message_classification:
                messages = messages.filter(classification=policy.message_classification)
            due = messages.count()
            total_due += due
            policies.append(
                {
                    "policy_id": policy.id,
                    "name": policy.name,
                    "message_classification": policy.message_classification,
                    "retention_period_days": policy.retention_period_days,
                    "cutoff": cutoff,
                    "messages_due": due,
                }
            )

        return {"generated_at": now, "policies": policies, "total_due": total_due}

    @staticmethod
    def _build_access_summary(date_from, date_to) -> dict[str, Any]:
        logs = _apply_window(AccessLog.objects.all(), date_from, date_to)

        by_action = {
            row["action"]: row["count"]
            for row in logs.values("action").annotate(count=Count("id")).order_by("action")
        }
        by_resource_type = {
            row["resource_type"]: row["count"]
            for row in logs.values("resource_type")
            .annotate(count=Count("id"))
            .order_by("resource_type")
        }
        return {
            "date_from": date_from,
            "date_to": date_to,
            "total": sum(by_action.values()),
            "by_action": by_action,
            "by_resource_type": by_resource_type,
        }

    @staticmethod
    def _build_audit_trail(date_from, date_to) -> dict[str, Any]:
        events = _apply_window(AuditTrail.objects.all(), date_from, date_to)

        by_event_type = {
            row["event_type"]: row["count"]
            for row in events.values("event_type")
            .annotate(count=Count("id"))
            .order_by("event_type")
        }
        recent = list(
            events.order_by("-created_at", "-id").values(
                "id",
                "event_type",
                "user_id",
                "resource_type",
                "resource_id",
                "created_at",
            )[: COMPLIANCE_CONFIG.REPORT_RECENT_EVENTS]
        )
        return {
            "date_from": date_from,
            "date_to": date_to,
            "total": sum(by_event_type.values()),
            "by_event_type": by_event_type,
            "recent_events": recent,
        }


# =============================================================================
# ComplianceQueryService
# =============================================================================


class ComplianceQueryService(BaseService):
    """
    Capability-gated reads of compliance records.

    Raises PermissionDeniedError / ValidationError, rendered by the API
    exception handler.
    """

    @staticmethod
    def _require(user: User, capability: Capability) -> None:
        if not user.has_capability(capability):
            raise PermissionDeniedError(
                "You do not have permission to view this data",
                details={"capability": capability.value},
            )

    @classmethod
    def access_logs(
        cls,
        user: User,
        resource_type: str | None,
        resource_id: str | None,
        limit: int,
    ) -> QuerySet[AccessLog]:
        cls._require(user, Capability.VIEW_ACCESS_LOGS)
        if not resource_type or not resource_id:
            raise ValidationError(
                "resource_type and resource_id are required",
                error_code="MISSING_RESOURCE_FILTER",
            )
        return (
            AccessLog.objects.filter(resource_type=resource_type, resource_id=str(resource_id))
            .select_related("user")
            .order_by("-created_at", "-id")[:limit]
        )

    @classmethod
    def audit_trail(
        cls,
        user: User,
        filters: dict[str, Any],
        limit: int,
    ) -> QuerySet[AuditTrail]:
        """
        Filters:
            user_id, resource_type, event_type, date_from, date_to
        """
        cls._require(user, Capability.VIEW_AUDIT_TRAIL)

        conditions = Q()
        if filters.get("user_id"):
            try:
                conditions &= Q(user_id=int(filters["user_id"]))
            except (TypeError, ValueError):
                raise ValidationError(
                    f"Invalid user_id: {filters['user_id']}",
                    error_code="INVALID_PARAMETERS",
                ) from None
        if filters.get("resource_type"):
            conditions &= Q(resource_type=filters["resource_type"])
        if filters.get("event_type"):
            conditions &= Q(event_type=filters["event_type"])

        queryset = AuditTrail.objects.filter(conditions)
        queryset = _apply_window(
            queryset,
            _parse_bound(filters.get("date_from")),
            _parse_bound(filters.get("date_to"), end_of_day=True),
        )
        return queryset.select_related("user").order_by("-created_at", "-id")[:limit]

    @classmethod
    def reports(cls, user: User, report_type: str | None, limit: int) -> QuerySet[ComplianceReport]:
        cls._require(user, Capability.VIEW_COMPLIANCE_REPORTS)
        queryset = ComplianceReport.objects.select_related("generated_by")
        if report_type:
            queryset = queryset.filter(report_type=report_type)
        return queryset.order_by("-created_at", "-id")[:limit]


