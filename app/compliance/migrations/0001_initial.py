"""
Initial compliance schema.

Creates:
    - AccessLog / AuditTrail: append-only records
    - MessageAcknowledgment: one row per (message, user)
    - RetentionPolicy / ComplianceReport
"""

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

CLASSIFICATION_CHOICES = [
    ("policy_notification", "Policy Notification"),
    ("audit_notice", "Audit Notice"),
    ("corrective_action", "Corrective Action"),
    ("security_alert", "Security Alert"),
    ("compliance_requirement", "Compliance Requirement"),
    ("general", "General"),
]

ACCESS_ACTION_CHOICES = [
    ("view", "View"),
    ("download", "Download"),
    ("edit", "Edit"),
    ("delete", "Delete"),
    ("export", "Export"),
    ("acknowledge", "Acknowledge"),
    ("create", "Create"),
    ("share", "Share"),
]

REPORT_TYPE_CHOICES = [
    ("retention_due", "Retention Due"),
    ("access_summary", "Access Summary"),
    ("audit_trail", "Audit Trail"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("chat", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AccessLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=ACCESS_ACTION_CHOICES, db_index=True, max_length=20)),
                ("resource_type", models.CharField(db_index=True, max_length=50)),
                ("resource_id", models.CharField(max_length=64)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="access_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "compliance_access_log",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["resource_type", "resource_id", "-created_at"],
                        name="compl_access_resource_idx",
                    ),
                    models.Index(fields=["user", "-created_at"], name="compl_access_user_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditTrail",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_type", models.CharField(db_index=True, max_length=64)),
                ("resource_type", models.CharField(db_index=True, max_length=50)),
                ("resource_id", models.CharField(max_length=64)),
                ("old_values", models.JSONField(blank=True, null=True)),
                ("new_values", models.JSONField(blank=True, null=True)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "compliance_audit_trail",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["resource_type", "resource_id"],
                        name="compl_audit_resource_idx",
                    ),
                    models.Index(fields=["event_type", "-created_at"], name="compl_audit_event_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MessageAcknowledgment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                ("acknowledged_at", models.DateTimeField(auto_now_add=True)),
                (
                    "message",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="acknowledgments",
                        to="chat.message",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="message_acknowledgments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "compliance_message_acknowledgment",
                "ordering": ["acknowledged_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("message", "user"),
                        name="unique_message_acknowledgment",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RetentionPolicy",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "message_classification",
                    models.CharField(
                        blank=True,
                        choices=CLASSIFICATION_CHOICES,
                        help_text="Classification this policy applies to (null = all messages)",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "retention_period_days",
                    models.PositiveIntegerField(
                        help_text="Days a message is kept before it is due for removal",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="retention_policies",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "compliance_retention_policy",
                "ordering": ["name"],
                "verbose_name_plural": "retention policies",
            },
        ),
        migrations.CreateModel(
            name="ComplianceReport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("report_type", models.CharField(choices=REPORT_TYPE_CHOICES, db_index=True, max_length=32)),
                ("report_data", models.JSONField(default=dict)),
                ("parameters", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "generated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="compliance_reports",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "compliance_report",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
