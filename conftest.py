"""
Root pytest configuration for the Django project.

Sets safe environment defaults and the settings module before Django is
imported. Project-wide fixtures live in app/conftest.py; app-specific
fixtures are defined in each app's tests/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Tests run without a .env file; never override values the caller provides
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")
os.environ.setdefault("DATABASE_URL", "sqlite:///test_db.sqlite3")
