"""
Celery tasks for the compliance app.

Usage:
    from compliance.tasks import generate_compliance_report

    generate_compliance_report.delay("retention_due", officer.id)
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(ConnectionError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def generate_compliance_report(
    self,
    report_type: str,
    user_id: int,
    parameters: dict | None = None,
) -> int | None:
    """
    Generate a compliance report on behalf of a user.

    Used for scheduled reports. Runs the same service as the REST
    endpoint, so the user must hold GENERATE_COMPLIANCE_REPORTS.

    Args:
        report_type: retention_due, access_summary or audit_trail
        user_id: ID of the user the report is generated for
        parameters: Optional report parameters (date_from, date_to)

    Returns:
        ID of the stored report, or None if it could not be generated
    """
    from authentication.models import User
    from compliance.services import ComplianceReportService

    try:
        user = User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        logger.error(f"Cannot generate {report_type} report: user {user_id} not found")
        return None

    result = ComplianceReportService.generate(report_type, user, parameters or {})
    if not result.success:
        logger.warning(
            f"Scheduled {report_type} report for user {user_id} failed: "
            f"{result.error_code}"
        )
        return None

    return result.data.id
