"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication with role and presence.
    """

    list_display = (
        "email",
        "display_name",
        "role",
        "is_online",
        "is_active",
        "date_joined",
    )
    list_filter = (
        "role",
        "is_online",
        "is_active",
        "is_staff",
        "department",
    )
    search_fields = ("email", "display_name")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("display_name", "department", "avatar_url")}),
        ("Role", {"fields": ("role",)}),
        ("Presence", {"fields": ("is_online", "last_seen")}),
        (
            "Status",
            {"fields": ("is_active", "is_staff", "is_superuser")},
        ),
        (
            "Permissions",
            {"fields": ("groups", "user_permissions")},
        ),
        (
            "Important dates",
            {"fields": ("date_joined", "last_login")},
        ),
    )
    readonly_fields = ("date_joined", "last_login", "last_seen")

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "display_name", "role", "password1", "password2"),
            },
        ),
    )
