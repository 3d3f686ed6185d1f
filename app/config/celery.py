"""
Celery configuration for the Django application.

Celery runs work that should not block a request. Here that is compliance
report generation (compliance.tasks.generate_compliance_report), which
scans access logs and the audit trail over a date window.

Redis is both the message broker and result backend. Tasks are
auto-discovered from the tasks.py module of every installed app, and
django-celery-beat stores periodic schedules in the database.

Usage:
    from compliance.tasks import generate_compliance_report

    generate_compliance_report.delay("access_summary", officer.id, {"date_from": "2026-01-01"})

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# The name should match the Django project name
app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
