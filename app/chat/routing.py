"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/ - Single realtime socket per client (auth via the "auth" event)
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/", consumers.RealtimeConsumer.as_asgi()),
]
