"""
ASGI config for the team messaging backend.

Routes:
- HTTP requests to Django
- WebSocket connections at ws/ to chat.consumers.RealtimeConsumer

Sockets authenticate with an in-band ``auth`` event, so no auth middleware
wraps the websocket router. Uvicorn serves both protocols from one process.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Load settings and apps before importing consumers
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # Origin must match ALLOWED_HOSTS
        "websocket": AllowedHostsOriginValidator(URLRouter(websocket_urlpatterns)),
    }
)
