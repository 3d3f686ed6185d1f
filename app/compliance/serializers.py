"""
Serializers for compliance API.

Read serializers expose stored records as-is. Write serializers validate
request bodies before they reach compliance.services.
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.models import MessageClassification
from compliance.models import (
    AccessLog,
    AuditTrail,
    ComplianceReport,
    MessageAcknowledgment,
    ReportType,
    RetentionPolicy,
)


# =============================================================================
# Acknowledgments
# =============================================================================


class MessageAcknowledgmentSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = MessageAcknowledgment
        fields = ["id", "message_id", "user", "acknowledged_at"]
        read_only_fields = fields


# =============================================================================
# Retention Policies
# =============================================================================


class RetentionPolicySerializer(serializers.ModelSerializer):
    class Meta:
        model = RetentionPolicy
        fields = [
            "id",
            "name",
            "description",
            "message_classification",
            "retention_period_days",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RetentionPolicyCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    message_classification = serializers.ChoiceField(
        choices=MessageClassification.choices,
        required=False,
        allow_null=True,
        default=None,
    )
    retention_period_days = serializers.IntegerField(min_value=1)


class RetentionPolicyUpdateSerializer(serializers.Serializer):
    """PATCH body. Only supplied fields are changed."""

    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    message_classification = serializers.ChoiceField(
        choices=MessageClassification.choices,
        required=False,
        allow_null=True,
    )
    retention_period_days = serializers.IntegerField(min_value=1, required=False)
    is_active = serializers.BooleanField(required=False)


# =============================================================================
# Logs and Reports
# =============================================================================


class AccessLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AccessLog
        fields = [
            "id",
            "user_id",
            "action",
            "resource_type",
            "resource_id",
            "ip_address",
            "user_agent",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class AuditTrailSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditTrail
        fields = [
            "id",
            "event_type",
            "user_id",
            "resource_type",
            "resource_id",
            "old_values",
            "new_values",
            "ip_address",
            "user_agent",
            "created_at",
        ]
        read_only_fields = fields


class ComplianceReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplianceReport
        fields = [
            "id",
            "report_type",
            "report_data",
            "parameters",
            "generated_by",
            "created_at",
        ]
        read_only_fields = fields


class ComplianceReportCreateSerializer(serializers.Serializer):
    report_type = serializers.ChoiceField(choices=ReportType.choices)
    parameters = serializers.DictField(required=False, default=dict)
