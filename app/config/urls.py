"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        register/ login/ logout/   - Account and session
        token/refresh/             - JWT refresh
        user/                      - Current user
    /api/v1/chat/                  - Chat endpoints
        conversations/             - Conversation list/create
        conversations/{id}/        - Conversation detail
        conversations/{id}/messages/ - Message list/send
        messages/                  - Send message
        messages/{id}/             - Edit/delete message
        messages/{id}/read/        - Mark read
        messages/{id}/acknowledge/ - Acknowledge
        messages/{id}/acknowledgments/ - List acknowledgments
    /api/v1/files/                 - Encrypted file endpoints
        upload/                    - Upload encrypted file
        {id}/                      - File metadata
        {id}/share/                - Create share
        {id}/shares/               - List shares
        {id}/shares/{share_id}/    - Revoke share
        {id}/download/             - Download ciphertext with key headers
    /api/v1/compliance/            - Compliance endpoints
        retention-policies/        - List/create policies
        retention-policies/{id}/   - Update/deactivate policy
        access-logs/               - Access logs for a resource
        audit-trail/               - Filtered audit trail
        reports/                   - List/generate reports

WebSocket routes live in chat.routing and are mounted by config.asgi.

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication
    path("auth/", include("authentication.urls")),
    # Chat
    path("chat/", include("chat.urls")),
    # Encrypted files
    path("files/", include("media.urls")),
    # Compliance
    path("compliance/", include("compliance.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Team Messaging Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Welcome to the Admin Portal"
