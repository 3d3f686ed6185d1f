"""
Compliance models.

Records that let reviewers reconstruct who saw, changed or acknowledged
what, plus the retention policies and reports built on top of them.

Models:
    AccessLog: One row per access to a resource (append-only)
    AuditTrail: One row per state-changing event (append-only)
    MessageAcknowledgment: A user's acknowledgment of a message
    RetentionPolicy: How long messages of a classification are kept
    ComplianceReport: Persisted output of a generated report

Design Decisions:
    - resource_id is a string so integer message ids and UUID file ids
      share one column
    - user is nullable on logs so anonymous share access can be recorded
    - Only RetentionPolicy is mutable; everything else is insert-only
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from chat.models import MessageClassification
from core.models import BaseModel


class AccessAction(models.TextChoices):
    VIEW = "view", "View"
    DOWNLOAD = "download", "Download"
    EDIT = "edit", "Edit"
    DELETE = "delete", "Delete"
    EXPORT = "export", "Export"
    ACKNOWLEDGE = "acknowledge", "Acknowledge"
    CREATE = "create", "Create"
    SHARE = "share", "Share"


class ResourceType(models.TextChoices):
    MESSAGE = "message", "Message"
    FILE = "file", "File"
    FILE_SHARE = "file_share", "File Share"
    RETENTION_POLICY = "retention_policy", "Retention Policy"
    COMPLIANCE_REPORT = "compliance_report", "Compliance Report"


class ReportType(models.TextChoices):
    RETENTION_DUE = "retention_due", "Retention Due"
    ACCESS_SUMMARY = "access_summary", "Access Summary"
    AUDIT_TRAIL = "audit_trail", "Audit Trail"


class AccessLog(models.Model):
    """
    Append-only record of an access to a resource.

    Fields:
        user: Acting user (null for anonymous share access)
        action: AccessAction
        resource_type / resource_id: What was accessed
        ip_address / user_agent: Request origin
        metadata: Extra context (e.g. share id used)
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="access_logs",
    )
    action = models.CharField(max_length=20, choices=AccessAction.choices, db_index=True)
    resource_type = models.CharField(max_length=50, db_index=True)
    resource_id = models.CharField(max_length=64)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "compliance_access_log"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["resource_type", "resource_id", "-created_at"],
                name="compl_access_resource_idx",
            ),
            models.Index(fields=["user", "-created_at"], name="compl_access_user_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} {self.action} {self.resource_type}:{self.resource_id}"


class AuditTrail(models.Model):
    """
    Append-only record of a state change.

    old_values/new_values hold JSON snapshots of the fields that changed.
    """

    event_type = models.CharField(max_length=64, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    resource_type = models.CharField(max_length=50, db_index=True)
    resource_id = models.CharField(max_length=64)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "compliance_audit_trail"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["resource_type", "resource_id"],
                name="compl_audit_resource_idx",
            ),
            models.Index(fields=["event_type", "-created_at"], name="compl_audit_event_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} {self.resource_type}:{self.resource_id}"


class MessageAcknowledgment(models.Model):
    """
    A user's acknowledgment of a message.

    Constraints:
        - UniqueConstraint(message, user): acknowledging twice returns the
          existing row
    """

    message = models.ForeignKey(
        "chat.Message",
        on_delete=models.CASCADE,
        related_name="acknowledgments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_acknowledgments",
    )
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    acknowledged_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "compliance_message_acknowledgment"
        ordering = ["acknowledged_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_acknowledgment",
            ),
        ]

    def __str__(self) -> str:
        return f"Ack: message {self.message_id} by {self.user_id}"


class RetentionPolicy(BaseModel):
    """
    Retention rule for messages.

    A null message_classification applies the policy to every message.
    Deactivated policies are kept for audit but ignored by reports.
    """

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    message_classification = models.CharField(
        max_length=32,
        choices=MessageClassification.choices,
        null=True,
        blank=True,
        help_text="Classification this policy applies to (null = all messages)",
    )
    retention_period_days = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Days a message is kept before it is due for removal",
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="retention_policies",
    )

    class Meta:
        db_table = "compliance_retention_policy"
        ordering = ["name"]
        verbose_name_plural = "retention policies"

    def __str__(self) -> str:
        return f"{self.name} ({self.retention_period_days}d)"


class ComplianceReport(models.Model):
    """Persisted output of ComplianceReportService.generate."""

    report_type = models.CharField(max_length=32, choices=ReportType.choices, db_index=True)
    report_data = models.JSONField(default=dict)
    parameters = models.JSONField(default=dict, blank=True)
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="compliance_reports",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "compliance_report"
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"{self.get_report_type_display()} ({self.created_at:%Y-%m-%d})"
