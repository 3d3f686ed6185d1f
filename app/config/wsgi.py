"""
WSGI config for the Django application.

Serves the REST API only. WebSocket connections need the ASGI entry point
(config.asgi), so production runs Uvicorn; this module exists for
management tooling and WSGI-only hosts.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
