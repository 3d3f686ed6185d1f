"""
Compliance API views.

Endpoints:
    /api/v1/compliance/retention-policies/        GET, POST
    /api/v1/compliance/retention-policies/{id}/   PATCH, DELETE
    /api/v1/compliance/access-logs/               GET
    /api/v1/compliance/audit-trail/               GET
    /api/v1/compliance/reports/                   GET, POST

Access Control:
    HasCapability rejects callers without the capability for the request
    method before the service runs. Services re-check the same capability
    so they are safe to call from tasks and the shell.
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import Capability, HasCapability
from compliance.constants import COMPLIANCE_CONFIG
from compliance.serializers import (
    AccessLogSerializer,
    AuditTrailSerializer,
    ComplianceReportCreateSerializer,
    ComplianceReportSerializer,
    RetentionPolicyCreateSerializer,
    RetentionPolicySerializer,
    RetentionPolicyUpdateSerializer,
)
from compliance.services import (
    ComplianceQueryService,
    ComplianceReportService,
    RequestMeta,
    RetentionPolicyService,
)
from core.helpers import parse_limit
from core.views import failure_response

LIMIT_PARAMETER = OpenApiParameter(
    name="limit",
    type=OpenApiTypes.INT,
    location=OpenApiParameter.QUERY,
    description=f"Max rows (default {COMPLIANCE_CONFIG.QUERY_DEFAULT_LIMIT}, "
    f"max {COMPLIANCE_CONFIG.QUERY_MAX_LIMIT})",
)


def _limit(request) -> int:
    return parse_limit(
        request.query_params.get("limit"),
        COMPLIANCE_CONFIG.QUERY_DEFAULT_LIMIT,
        COMPLIANCE_CONFIG.QUERY_MAX_LIMIT,
    )


# =============================================================================
# Retention Policies
# =============================================================================


class RetentionPolicyListView(APIView):
    """
    List or create retention policies.

    GET is open to any authenticated user; POST requires
    MANAGE_RETENTION_POLICIES.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    capability_map = {"POST": Capability.MANAGE_RETENTION_POLICIES}

    @extend_schema(
        operation_id="list_retention_policies",
        summary="List retention policies",
        parameters=[
            OpenApiParameter(
                name="active",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                description="Only return active policies",
            ),
        ],
        responses={200: RetentionPolicySerializer(many=True)},
        tags=["Compliance"],
    )
    def get(self, request):
        active_only = request.query_params.get("active", "").lower() in ("1", "true")
        policies = RetentionPolicyService.list(active_only=active_only)
        return Response(RetentionPolicySerializer(policies, many=True).data)

    @extend_schema(
        operation_id="create_retention_policy",
        summary="Create retention policy",
        request=RetentionPolicyCreateSerializer,
        responses={
            201: RetentionPolicySerializer,
            403: OpenApiResponse(description="Missing capability"),
            409: OpenApiResponse(description="Name already in use"),
        },
        tags=["Compliance"],
    )
    def post(self, request):
        serializer = RetentionPolicyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RetentionPolicyService.create(
            user=request.user,
            request_meta=RequestMeta.from_request(request),
            **serializer.validated_data,
        )
        if not result.success:
            return failure_response(result)
        return Response(
            RetentionPolicySerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class RetentionPolicyDetailView(APIView):
    """Update or deactivate a retention policy."""

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = Capability.MANAGE_RETENTION_POLICIES

    @extend_schema(
        operation_id="update_retention_policy",
        summary="Update retention policy",
        request=RetentionPolicyUpdateSerializer,
        responses={200: RetentionPolicySerializer},
        tags=["Compliance"],
    )
    def patch(self, request, pk):
        serializer = RetentionPolicyUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = RetentionPolicyService.update(
            policy_id=pk,
            user=request.user,
            changes=serializer.validated_data,
            request_meta=RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)
        return Response(RetentionPolicySerializer(result.data).data)

    @extend_schema(
        operation_id="deactivate_retention_policy",
        summary="Deactivate retention policy",
        description="Marks the policy inactive. The policy is kept for audit.",
        responses={200: RetentionPolicySerializer},
        tags=["Compliance"],
    )
    def delete(self, request, pk):
        result = RetentionPolicyService.deactivate(
            policy_id=pk,
            user=request.user,
            request_meta=RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)
        return Response(RetentionPolicySerializer(result.data).data)


# =============================================================================
# Logs
# =============================================================================


class AccessLogListView(APIView):
    """Access log rows for one resource. Requires VIEW_ACCESS_LOGS."""

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = Capability.VIEW_ACCESS_LOGS

    @extend_schema(
        operation_id="list_access_logs",
        summary="List access logs",
        parameters=[
            OpenApiParameter(name="resource_type", type=OpenApiTypes.STR, required=True),
            OpenApiParameter(name="resource_id", type=OpenApiTypes.STR, required=True),
            LIMIT_PARAMETER,
        ],
        responses={200: AccessLogSerializer(many=True)},
        tags=["Compliance"],
    )
    def get(self, request):
        logs = ComplianceQueryService.access_logs(
            request.user,
            request.query_params.get("resource_type"),
            request.query_params.get("resource_id"),
            _limit(request),
        )
        return Response(AccessLogSerializer(logs, many=True).data)


class AuditTrailListView(APIView):
    """Filtered audit trail. Requires VIEW_AUDIT_TRAIL."""

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = Capability.VIEW_AUDIT_TRAIL

    FILTER_PARAMS = ("user_id", "resource_type", "event_type", "date_from", "date_to")

    @extend_schema(
        operation_id="list_audit_trail",
        summary="List audit trail",
        parameters=[
            OpenApiParameter(name="user_id", type=OpenApiTypes.INT),
            OpenApiParameter(name="resource_type", type=OpenApiTypes.STR),
            OpenApiParameter(name="event_type", type=OpenApiTypes.STR),
            OpenApiParameter(name="date_from", type=OpenApiTypes.DATETIME),
            OpenApiParameter(name="date_to", type=OpenApiTypes.DATETIME),
            LIMIT_PARAMETER,
        ],
        responses={200: AuditTrailSerializer(many=True)},
        tags=["Compliance"],
    )
    def get(self, request):
        filters = {
            name: request.query_params.get(name)
            for name in self.FILTER_PARAMS
            if request.query_params.get(name)
        }
        events = ComplianceQueryService.audit_trail(request.user, filters, _limit(request))
        return Response(AuditTrailSerializer(events, many=True).data)


# =============================================================================
# Reports
# =============================================================================


class ComplianceReportListView(APIView):
    """
    List stored reports or generate a new one.

    GET requires VIEW_COMPLIANCE_REPORTS; POST requires
    GENERATE_COMPLIANCE_REPORTS.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    capability_map = {
        "GET": Capability.VIEW_COMPLIANCE_REPORTS,
        "POST": Capability.GENERATE_COMPLIANCE_REPORTS,
    }

    @extend_schema(
        operation_id="list_compliance_reports",
        summary="List compliance reports",
        parameters=[
            OpenApiParameter(name="type", type=OpenApiTypes.STR, description="Report type"),
            LIMIT_PARAMETER,
        ],
        responses={200: ComplianceReportSerializer(many=True)},
        tags=["Compliance"],
    )
    def get(self, request):
        reports = ComplianceQueryService.reports(
            request.user,
            request.query_params.get("type"),
            _limit(request),
        )
        return Response(ComplianceReportSerializer(reports, many=True).data)

    @extend_schema(
        operation_id="generate_compliance_report",
        summary="Generate compliance report",
        request=ComplianceReportCreateSerializer,
        responses={
            201: ComplianceReportSerializer,
            400: OpenApiResponse(description="Invalid report type or parameters"),
        },
        tags=["Compliance"],
    )
    def post(self, request):
        serializer = ComplianceReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ComplianceReportService.generate(
            serializer.validated_data["report_type"],
            request.user,
            serializer.validated_data["parameters"],
            request_meta=RequestMeta.from_request(request),
        )
        if not result.success:
            return failure_response(result)
        return Response(
            ComplianceReportSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )
