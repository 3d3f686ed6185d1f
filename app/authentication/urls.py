"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/        - Create account, returns JWT pair
    /api/v1/auth/login/           - Email/password login, returns JWT pair
    /api/v1/auth/logout/          - Mark offline, blacklist refresh token
    /api/v1/auth/token/refresh/   - Exchange refresh token for access token
    /api/v1/auth/user/            - Current user profile
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.views import (
    CurrentUserView,
    LoginView,
    LogoutView,
    RegisterView,
)

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("user/", CurrentUserView.as_view(), name="user"),
]
