"""
Tests for compliance services.

This module tests:
- ComplianceRecorder: request metadata and JSON conversion
- AcknowledgmentService: idempotency, gating and three-way atomicity
- RetentionPolicyService: capability checks, uniqueness and auditing
- ComplianceReportService: report contents for each type
- ComplianceQueryService: capability gates, filters and limits
"""

from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.test import RequestFactory
from django.utils import timezone
from freezegun import freeze_time

from chat.tests.factories import MessageFactory
from compliance.models import (
    AccessLog,
    AuditTrail,
    ComplianceReport,
    MessageAcknowledgment,
    RetentionPolicy,
)
from compliance.services import (
    AcknowledgmentService,
    ComplianceQueryService,
    ComplianceRecorder,
    ComplianceReportService,
    RequestMeta,
    RetentionPolicyService,
)
from compliance.tests.factories import (
    AccessLogFactory,
    AuditTrailFactory,
    RetentionPolicyFactory,
)
from core.exceptions import PermissionDeniedError, ValidationError


# =============================================================================
# ComplianceRecorder
# =============================================================================


@pytest.mark.django_db
class TestComplianceRecorder:
    """
    Tests for ComplianceRecorder.log_access and record_audit.
    """

    def test_request_meta_from_request(self):
        request = RequestFactory().get(
            "/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1", HTTP_USER_AGENT="pytest"
        )

        meta = RequestMeta.from_request(request)

        assert meta == RequestMeta(ip_address="203.0.113.9", user_agent="pytest")

    def test_log_access_records_origin(self, sender):
        meta = RequestMeta(ip_address="198.51.100.7", user_agent="agent")

        log = ComplianceRecorder.log_access(
            sender, "view", "file", "abc", meta, metadata={"share_id": "s1"}
        )

        log.refresh_from_db()
        assert log.user == sender
        assert log.ip_address == "198.51.100.7"
        assert log.user_agent == "agent"
        assert log.metadata == {"share_id": "s1"}

    def test_anonymous_user_is_stored_as_null(self):
        from django.contrib.auth.models import AnonymousUser

        log = ComplianceRecorder.log_access(AnonymousUser(), "view", "file", "abc")

        assert log.user is None

    def test_audit_values_are_json_safe(self, sender):
        """
        Datetimes in old/new values are stored as ISO strings.
        """
        moment = timezone.now()

        audit = ComplianceRecorder.record_audit(
            "retention_policy_updated",
            sender,
            "retention_policy",
            1,
            new_values={"at": moment},
        )

        audit.refresh_from_db()
        assert isinstance(audit.new_values["at"], str)
        assert audit.resource_id == "1"


# =============================================================================
# AcknowledgmentService
# =============================================================================


@pytest.mark.django_db
class TestAcknowledge:
    """
    Tests for AcknowledgmentService.acknowledge.
    """

    def test_first_acknowledgment_writes_three_records(self, message, recipient):
        result = AcknowledgmentService.acknowledge(
            message.id, recipient, RequestMeta(ip_address="192.0.2.1", user_agent="ua")
        )

        acknowledgment, created = result.data
        assert created is True
        assert acknowledgment.ip_address == "192.0.2.1"
        assert AccessLog.objects.filter(
            action="acknowledge", resource_id=str(message.id), user=recipient
        ).count() == 1
        assert AuditTrail.objects.filter(
            event_type="message_acknowledged", resource_id=str(message.id)
        ).count() == 1

    def test_repeat_acknowledgment_is_idempotent(self, message, recipient):
        """
        A second acknowledgment returns the first row and writes nothing.

        Why it matters: Duplicate compliance rows would overstate activity.
        """
        first, _ = AcknowledgmentService.acknowledge(message.id, recipient).data

        second, created = AcknowledgmentService.acknowledge(message.id, recipient).data

        assert created is False
        assert second.pk == first.pk
        assert MessageAcknowledgment.objects.count() == 1
        assert AccessLog.objects.filter(action="acknowledge").count() == 1
        assert AuditTrail.objects.filter(event_type="message_acknowledged").count() == 1

    def test_failed_acknowledgment_insert_rolls_back_logs(self, message, recipient):
        """
        If the acknowledgment row cannot be written, no log rows remain.
        """
        with mock.patch.object(
            MessageAcknowledgment.objects, "create", side_effect=DatabaseError("boom")
        ):
            with pytest.raises(DatabaseError):
                AcknowledgmentService.acknowledge(message.id, recipient)

        assert MessageAcknowledgment.objects.count() == 0
        assert AccessLog.objects.filter(action="acknowledge").count() == 0
        assert AuditTrail.objects.filter(event_type="message_acknowledged").count() == 0

    def test_failed_audit_insert_rolls_back_everything(self, message, recipient):
        with mock.patch.object(
            ComplianceRecorder, "record_audit", side_effect=DatabaseError("boom")
        ):
            with pytest.raises(DatabaseError):
                AcknowledgmentService.acknowledge(message.id, recipient)

        assert MessageAcknowledgment.objects.count() == 0
        assert AccessLog.objects.filter(action="acknowledge").count() == 0

    def test_non_participant_cannot_acknowledge(self, message, outsider):
        result = AcknowledgmentService.acknowledge(message.id, outsider)

        assert result.error_code == "NOT_PARTICIPANT"
        assert AccessLog.objects.count() == 0

    def test_deleted_message_cannot_be_acknowledged(self, message, recipient):
        message.soft_delete()

        result = AcknowledgmentService.acknowledge(message.id, recipient)

        assert result.error_code == "MESSAGE_NOT_FOUND"


@pytest.mark.django_db
class TestListAcknowledgments:
    """
    Tests for AcknowledgmentService.list_for_message.
    """

    def test_sender_can_list(self, message, sender, recipient):
        AcknowledgmentService.acknowledge(message.id, recipient)

        result = AcknowledgmentService.list_for_message(message.id, sender)

        assert [a.user_id for a in result.data] == [recipient.id]

    def test_auditor_can_list(self, message, auditor):
        assert AcknowledgmentService.list_for_message(message.id, auditor).success

    def test_recipient_cannot_list(self, message, recipient):
        result = AcknowledgmentService.list_for_message(message.id, recipient)

        assert result.error_code == "PERMISSION_DENIED"


# =============================================================================
# RetentionPolicyService
# =============================================================================


@pytest.mark.django_db
class TestRetentionPolicyService:
    """
    Tests for RetentionPolicyService create/update/deactivate.
    """

    def test_officer_creates_policy_with_audit(self, officer):
        result = RetentionPolicyService.create(
            officer, "Security alerts", 90, message_classification="security_alert"
        )

        policy = result.data
        assert result.success
        assert policy.created_by == officer
        audit = AuditTrail.objects.get(event_type="retention_policy_created")
        assert audit.new_values["retention_period_days"] == 90

    def test_plain_user_cannot_create(self, sender):
        result = RetentionPolicyService.create(sender, "Nope", 30)

        assert result.error_code == "PERMISSION_DENIED"
        assert RetentionPolicy.objects.count() == 0

    def test_auditor_cannot_create(self, auditor):
        assert RetentionPolicyService.create(auditor, "Nope", 30).error_code == "PERMISSION_DENIED"

    def test_duplicate_name_conflicts(self, officer):
        RetentionPolicyFactory(name="General")

        result = RetentionPolicyService.create(officer, "general", 30)

        assert result.error_code == "POLICY_EXISTS"

    def test_update_records_old_and_new_values(self, officer):
        policy = RetentionPolicyFactory(retention_period_days=30)

        result = RetentionPolicyService.update(
            policy.id, officer, {"retention_period_days": 60, "created_by": officer}
        )

        assert result.data.retention_period_days == 60
        audit = AuditTrail.objects.get(event_type="retention_policy_updated")
        assert audit.old_values["retention_period_days"] == 30
        assert audit.new_values["retention_period_days"] == 60

    def test_update_missing_policy(self, officer):
        result = RetentionPolicyService.update(999999, officer, {"description": "x"})

        assert result.error_code == "POLICY_NOT_FOUND"

    def test_update_to_existing_name_conflicts(self, officer):
        RetentionPolicyFactory(name="Taken")
        policy = RetentionPolicyFactory(name="Mine")

        result = RetentionPolicyService.update(policy.id, officer, {"name": "Taken"})

        assert result.error_code == "POLICY_EXISTS"

    def test_deactivate_keeps_row(self, officer):
        policy = RetentionPolicyFactory()

        result = RetentionPolicyService.deactivate(policy.id, officer)

        assert result.data.is_active is False
        assert RetentionPolicy.objects.filter(pk=policy.pk).exists()
        assert AuditTrail.objects.filter(event_type="retention_policy_deactivated").count() == 1

    def test_list_active_only(self):
        active = RetentionPolicyFactory()
        RetentionPolicyFactory(is_active=False)

        assert list(RetentionPolicyService.list(active_only=True)) == [active]


# =============================================================================
# ComplianceReportService
# =============================================================================


@pytest.mark.django_db
class TestComplianceReportService:
    """
    Tests for ComplianceReportService.generate.
    """

    def test_retention_due_counts_old_matching_messages(self, officer, conversation, sender):
        """
        Only messages older than the period and matching the
        classification are due.
        """
        RetentionPolicyFactory(
            name="Alerts", message_classification="security_alert", retention_period_days=30
        )
        with freeze_time(timezone.now() - timedelta(days=45)):
            MessageFactory(conversation=conversation, sender=sender, classification="security_alert")
            MessageFactory(conversation=conversation, sender=sender, classification="general")
        MessageFactory(conversation=conversation, sender=sender, classification="security_alert")

        report = ComplianceReportService.generate("retention_due", officer).data

        [entry] = report.report_data["policies"]
        assert entry["name"] == "Alerts"
        assert entry["messages_due"] == 1
        assert report.report_data["total_due"] == 1

    def test_retention_due_counts_soft_deleted_messages(self, officer, conversation, sender):
        """
        Why it matters: soft-deleted messages stay in storage, so retention
        still applies to them.
        """
        RetentionPolicyFactory(name="Yearly", retention_period_days=365)
        with freeze_time(timezone.now() - timedelta(days=400)):
            deleted = MessageFactory(conversation=conversation, sender=sender)
        deleted.soft_delete()

        report = ComplianceReportService.generate("retention_due", officer).data

        assert report.report_data["total_due"] == 1
        assert report.report_data["policies"][0]["messages_due"] == 1

    def test_retention_due_without_classification_covers_all(self, officer, conversation, sender):
        RetentionPolicyFactory(name="Everything", retention_period_days=10)
        with freeze_time(timezone.now() - timedelta(days=20)):
            MessageFactory.create_batch(2, conversation=conversation, sender=sender)

        report = ComplianceReportService.generate("retention_due", officer).data

        assert report.report_data["total_due"] == 2

    def test_inactive_policies_are_ignored(self, officer):
        RetentionPolicyFactory(is_active=False)

        report = ComplianceReportService.generate("retention_due", officer).data

        assert report.report_data["policies"] == []

    def test_access_summary_counts_by_action_and_type(self, officer):
        AccessLogFactory(action="view", resource_type="file")
        AccessLogFactory(action="view", resource_type="message")
        AccessLogFactory(action="download", resource_type="file")

        data = ComplianceReportService.generate("access_summary", officer).data.report_data

        assert data["total"] == 3
        assert data["by_action"] == {"download": 1, "view": 2}
        assert data["by_resource_type"] == {"file": 2, "message": 1}

    def test_access_summary_respects_window(self, officer):
        with freeze_time("2026-01-10 12:00:00"):
            AccessLogFactory()
        with freeze_time("2026-03-10 12:00:00"):
            AccessLogFactory()

        data = ComplianceReportService.generate(
            "access_summary",
            officer,
            {"date_from": "2026-03-01", "date_to": "2026-03-31"},
        ).data.report_data

        assert data["total"] == 1

    def test_audit_trail_report(self, officer):
        AuditTrailFactory.create_batch(2, event_type="message_sent")
        AuditTrailFactory(event_type="file_shared")

        data = ComplianceReportService.generate("audit_trail", officer).data.report_data

        assert data["by_event_type"] == {"file_shared": 1, "message_sent": 2}
        assert len(data["recent_events"]) == 3

    def test_generation_is_persisted_and_audited(self, officer):
        report = ComplianceReportService.generate("access_summary", officer).data

        assert ComplianceReport.objects.filter(pk=report.pk, generated_by=officer).exists()
        assert AuditTrail.objects.filter(
            event_type="compliance_report_generated", resource_id=str(report.id)
        ).exists()

    def test_auditor_cannot_generate(self, auditor):
        result = ComplianceReportService.generate("access_summary", auditor)

        assert result.error_code == "PERMISSION_DENIED"

    def test_unknown_report_type(self, officer):
        assert ComplianceReportService.generate("weekly", officer).error_code == "INVALID_REPORT_TYPE"

    @pytest.mark.parametrize("date_from", ["last tuesday", "2024-02-30", "2024-13-01T10:00:00"])
    def test_bad_date_parameter(self, officer, date_from):
        result = ComplianceReportService.generate(
            "access_summary", officer, {"date_from": date_from}
        )

        assert result.error_code == "INVALID_PARAMETERS"
        assert ComplianceReport.objects.count() == 0


# =============================================================================
# ComplianceQueryService
# =============================================================================


@pytest.mark.django_db
class TestComplianceQueryService:
    """
    Tests for capability-gated reads.
    """

    def test_access_logs_for_resource(self, auditor):
        AccessLogFactory(resource_type="file", resource_id="abc")
        AccessLogFactory(resource_type="file", resource_id="other")

        logs = ComplianceQueryService.access_logs(auditor, "file", "abc", limit=10)

        assert [log.resource_id for log in logs] == ["abc"]

    def test_access_logs_require_both_filters(self, auditor):
        with pytest.raises(ValidationError) as exc_info:
            ComplianceQueryService.access_logs(auditor, "file", None, limit=10)

        assert exc_info.value.error_code == "MISSING_RESOURCE_FILTER"

    def test_access_logs_require_capability(self, sender):
        with pytest.raises(PermissionDeniedError):
            ComplianceQueryService.access_logs(sender, "file", "abc", limit=10)

    def test_audit_trail_filters(self, auditor, sender):
        AuditTrailFactory(event_type="message_sent", user=sender)
        AuditTrailFactory(event_type="message_sent")
        AuditTrailFactory(event_type="file_shared", user=sender)

        events = ComplianceQueryService.audit_trail(
            auditor, {"user_id": str(sender.id), "event_type": "message_sent"}, limit=10
        )

        assert len(events) == 1

    def test_audit_trail_limit(self, auditor):
        AuditTrailFactory.create_batch(5)

        assert len(ComplianceQueryService.audit_trail(auditor, {}, limit=2)) == 2

    def test_audit_trail_bad_user_id(self, auditor):
        with pytest.raises(ValidationError):
            ComplianceQueryService.audit_trail(auditor, {"user_id": "abc"}, limit=10)

    def test_reports_filter_by_type(self, officer):
        ComplianceReportService.generate("access_summary", officer)
        ComplianceReportService.generate("audit_trail", officer)

        reports = ComplianceQueryService.reports(officer, "audit_trail", limit=10)

        assert [r.report_type for r in reports] == ["audit_trail"]
