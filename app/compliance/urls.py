"""
URL configuration for compliance API.

All URLs are prefixed with /api/v1/compliance/ in the main URL configuration.
"""

from django.urls import path

from compliance.views import (
    AccessLogListView,
    AuditTrailListView,
    ComplianceReportListView,
    RetentionPolicyDetailView,
    RetentionPolicyListView,
)

app_name = "compliance"

urlpatterns = [
    path(
        "retention-policies/",
        RetentionPolicyListView.as_view(),
        name="retention-policy-list",
    ),
    path(
        "retention-policies/<int:pk>/",
        RetentionPolicyDetailView.as_view(),
        name="retention-policy-detail",
    ),
    path("access-logs/", AccessLogListView.as_view(), name="access-log-list"),
    path("audit-trail/", AuditTrailListView.as_view(), name="audit-trail-list"),
    path("reports/", ComplianceReportListView.as_view(), name="report-list"),
]
