"""Django admin configuration for media app."""

from django.contrib import admin

from media.models import EncryptedFile, FileShare


class FileShareInline(admin.TabularInline):
    model = FileShare
    extra = 0
    fields = ["created_by", "can_view", "can_download", "max_views", "current_views", "is_active"]
    readonly_fields = fields
    can_delete = False


@admin.register(EncryptedFile)
class EncryptedFileAdmin(admin.ModelAdmin):
    """Key material is excluded; the admin never displays it."""

    list_display = ["id", "original_name", "category", "size", "uploaded_by", "created_at"]
    list_filter = ["category"]
    search_fields = ["original_name", "uploaded_by__email"]
    exclude = ["encryption_key", "iv"]
    readonly_fields = [
        "id",
        "stored_name",
        "size",
        "content_hash",
        "storage_path",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["message", "uploaded_by"]
    inlines = [FileShareInline]


@admin.register(FileShare)
class FileShareAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "file",
        "created_by",
        "is_active",
        "current_views",
        "max_views",
        "expires_at",
    ]
    list_filter = ["is_active", "requires_auth"]
    exclude = ["token"]
    readonly_fields = ["id", "current_views", "revoked_at", "created_at", "updated_at"]
    raw_id_fields = ["file", "created_by"]
