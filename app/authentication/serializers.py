"""
Serializers for authentication.

This module provides DRF serializers for:
- User (read operations, also embedded as message sender)
- Registration and login request bodies
- Logout request body

Security:
    - Password fields are write-only
    - Presence and role fields are read-only
"""

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from authentication.models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact user representation embedded in messages and participants.
    """

    class Meta:
        model = User
        fields = ["id", "email", "display_name", "role", "is_online"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for the current user's profile (read operations).

    Used by /api/v1/auth/user/ and the login/register responses.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "display_name",
            "department",
            "avatar_url",
            "role",
            "is_online",
            "last_seen",
            "date_joined",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """Request body for POST /api/v1/auth/register/."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    display_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    department = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_password(self, value):
        validate_password(value)
        return value


class LoginSerializer(serializers.Serializer):
    """Request body for POST /api/v1/auth/login/."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class LogoutSerializer(serializers.Serializer):
    """Request body for POST /api/v1/auth/logout/."""

    refresh = serializers.CharField(required=False, allow_blank=True)


class AuthResponseSerializer(serializers.Serializer):
    """Response body for login/register (documentation only)."""

    access = serializers.CharField()
    refresh = serializers.CharField()
    user = UserSerializer()
