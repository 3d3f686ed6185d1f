"""
Compliance app.

Records who accessed or changed what, and builds retention and audit
reports on top of those records.

Key components:
    - ComplianceRecorder: AccessLog and AuditTrail writers used by chat and media
    - AcknowledgmentService: Message acknowledgments
    - RetentionPolicyService / ComplianceReportService: Policy management and reports
    - ComplianceQueryService: Capability-gated reads for reviewers

Related apps:
    - authentication: Capabilities gate every reviewer endpoint
    - chat: Messages are the main audited resource
    - media: File and share access is logged here
"""
