"""
Django admin configuration for compliance models.

Logs, audit entries, acknowledgments and reports are read-only in the
admin; only retention policies can be edited.
"""

from django.contrib import admin

from compliance.models import (
    AccessLog,
    AuditTrail,
    ComplianceReport,
    MessageAcknowledgment,
    RetentionPolicy,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Admin that allows browsing but no writes."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AccessLog)
class AccessLogAdmin(ReadOnlyAdmin):
    list_display = ["id", "user", "action", "resource_type", "resource_id", "ip_address", "created_at"]
    list_filter = ["action", "resource_type", "created_at"]
    search_fields = ["resource_id", "user__email"]


@admin.register(AuditTrail)
class AuditTrailAdmin(ReadOnlyAdmin):
    list_display = ["id", "event_type", "user", "resource_type", "resource_id", "created_at"]
    list_filter = ["event_type", "resource_type", "created_at"]
    search_fields = ["resource_id", "user__email"]


@admin.register(MessageAcknowledgment)
class MessageAcknowledgmentAdmin(ReadOnlyAdmin):
    list_display = ["id", "message", "user", "acknowledged_at"]
    search_fields = ["user__email"]


@admin.register(ComplianceReport)
class ComplianceReportAdmin(ReadOnlyAdmin):
    list_display = ["id", "report_type", "generated_by", "created_at"]
    list_filter = ["report_type"]


@admin.register(RetentionPolicy)
class RetentionPolicyAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "message_classification",
        "retention_period_days",
        "is_active",
        "created_by",
        "updated_at",
    ]
    list_filter = ["is_active", "message_classification"]
    search_fields = ["name"]
    readonly_fields = ["created_by", "created_at", "updated_at"]
