"""
URL configuration for encrypted files.

URL Structure:
    /upload/                              POST
    /                                     GET
    /{file_id}/                           GET
    /{file_id}/share/                     POST
    /{file_id}/shares/                    GET
    /{file_id}/shares/{share_id}/         DELETE
    /{file_id}/download/                  GET

All URLs are prefixed with /api/v1/files/ in the main URL configuration.
"""

from django.urls import path

from media.views import (
    EncryptedFileDetailView,
    EncryptedFileDownloadView,
    EncryptedFileListView,
    EncryptedFileUploadView,
    FileShareRevokeView,
    FileShareView,
)

app_name = "media"

urlpatterns = [
    path("upload/", EncryptedFileUploadView.as_view(), name="upload"),
    path("", EncryptedFileListView.as_view(), name="file-list"),
    path("<uuid:file_id>/", EncryptedFileDetailView.as_view(), name="file-detail"),
    path("<uuid:file_id>/share/", FileShareView.as_view(), name="file-share"),
    path("<uuid:file_id>/shares/", FileShareView.as_view(), name="file-shares"),
    path(
        "<uuid:file_id>/shares/<uuid:share_id>/",
        FileShareRevokeView.as_view(),
        name="file-share-revoke",
    ),
    path("<uuid:file_id>/download/", EncryptedFileDownloadView.as_view(), name="download"),
]
