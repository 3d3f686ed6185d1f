"""
Authentication models.

This module defines the user model for the messaging backend:
- UserRole: Closed set of roles that map to capabilities
- User: Custom user model with email-based authentication and presence

Related files:
    - managers.py: Custom user manager for email-based creation
    - permissions.py: Capability enum and role -> capability mapping
    - services.py: AuthService business logic (register, login, presence)

Presence:
    is_online/last_seen are written only by AuthService.set_online(), which
    is called from websocket auth/close and REST login/logout.
"""

from __future__ import annotations

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Roles a user can hold. Capabilities are derived from the role."""

    USER = "user", "User"
    ADMIN = "admin", "Admin"
    COMPLIANCE_OFFICER = "compliance_officer", "Compliance Officer"
    AUDITOR = "auditor", "Auditor"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        display_name: Name shown to other participants
        department: Optional organisational unit
        avatar_url: Optional avatar location (not managed by this service)
        role: UserRole, drives capability checks
        is_online: Whether the user currently has a live connection/session
        last_seen: When is_online last flipped to False
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created

    Usage:
        user = User.objects.create_user(
            email="user@example.com",
            password="securepassword",
            display_name="Jane",
        )
        user.has_capability(Capability.VIEW_AUDIT_TRAIL)
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to other users",
    )
    department = models.CharField(
        max_length=100,
        blank=True,
        help_text="Department or team",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL",
    )
    role = models.CharField(
        max_length=32,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        help_text="Role that determines compliance capabilities",
    )

    # Presence
    is_online = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the user is currently connected",
    )
    last_seen = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the user was last online",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.display_name or self.email

    def get_short_name(self):
        return self.display_name or self.email.split("@")[0]

    def has_capability(self, capability) -> bool:
        """
        Check whether this user's role grants a capability.

        This is the only role check views and services perform.
        """
        from authentication.permissions import capabilities_for_role

        if not self.is_active:
            return False
        return capability in capabilities_for_role(self.role)
