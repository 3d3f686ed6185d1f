"""
API views for encrypted file upload, sharing and protected delivery.

Provides:
- EncryptedFileUploadView: Multipart upload of client-encrypted content
- EncryptedFileListView: Files uploaded by the current user
- EncryptedFileDetailView: File metadata (owner or share holder)
- FileShareView: Create and list shares for a file
- FileShareRevokeView: Revoke a share
- EncryptedFileDownloadView: Stream ciphertext with decryption headers

Errors:
    Services raise core.exceptions errors; api_exception_handler renders
    them with their own status and error_code.
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from compliance.models import AccessAction, ResourceType
from compliance.services import ComplianceRecorder, RequestMeta
from media.constants import FILE_CONFIG
from media.serializers import (
    EncryptedFileSerializer,
    EncryptedFileUploadSerializer,
    FileShareCreateSerializer,
    FileShareSerializer,
)
from media.services import (
    EncryptedFileService,
    FileAccessService,
    FileDeliveryService,
    FileShareService,
)
from media.services.access_control import FileAction

SHARE_PARAMETER = OpenApiParameter(
    name="share",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.QUERY,
    description="Share token, required when the caller is not the owner",
)


def build_share_url(request, token: str) -> str:
    base = FILE_CONFIG.SHARE_BASE_URL or request.build_absolute_uri("/")
    return f"{base.rstrip('/')}/share/{token}"


class EncryptedFileUploadView(APIView):
    """
    POST /api/v1/files/upload/

    Request:
        Content-Type: multipart/form-data
        - file (required): Encrypted content
        - encryption_key, iv (required): Opaque key material
        - category, message_id (optional)
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        operation_id="upload_encrypted_file",
        summary="Upload encrypted file",
        request=EncryptedFileUploadSerializer,
        responses={
            201: EncryptedFileSerializer,
            400: OpenApiResponse(description="Missing key/IV, empty or oversized file"),
            403: OpenApiResponse(description="Not a participant of the message's conversation"),
        },
        tags=["Files"],
    )
    def post(self, request):
        serializer = EncryptedFileUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        encrypted_file = EncryptedFileService.upload(
            uploader=request.user,
            uploaded_file=data["file"],
            encryption_key=data["encryption_key"],
            iv=data["iv"],
            category=data["category"] or None,
            message_id=data["message_id"],
            request_meta=RequestMeta.from_request(request),
        )
        return Response(
            EncryptedFileSerializer(encrypted_file).data,
            status=status.HTTP_201_CREATED,
        )


class EncryptedFileListView(APIView):
    """GET /api/v1/files/ lists the caller's own files, newest first."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_encrypted_files",
        summary="List my files",
        responses={200: EncryptedFileSerializer(many=True)},
        tags=["Files"],
    )
    def get(self, request):
        files = EncryptedFileService.list_for_user(request.user).select_related("uploaded_by")
        return Response(EncryptedFileSerializer(files, many=True).data)


class EncryptedFileDetailView(APIView):
    """
    GET /api/v1/files/{file_id}/

    The owner always sees metadata. Others need ?share= for a usable share
    with can_view; reading metadata does not count as a view.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_encrypted_file",
        summary="Get file metadata",
        parameters=[SHARE_PARAMETER],
        responses={
            200: EncryptedFileSerializer,
            403: OpenApiResponse(description="No access"),
            404: OpenApiResponse(description="File or share not found"),
        },
        tags=["Files"],
    )
    def get(self, request, file_id):
        encrypted_file = EncryptedFileService.get(file_id)
        FileAccessService.authorize(
            encrypted_file,
            request.user,
            request.query_params.get("share"),
            FileAction.VIEW,
            count_view=False,
        )
        return Response(EncryptedFileSerializer(encrypted_file).data)


class FileShareView(APIView):
    """
    GET  /api/v1/files/{file_id}/shares/  List shares (owner only)
    POST /api/v1/files/{file_id}/share/   Create a share
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_file_shares",
        summary="List file shares",
        responses={
            200: FileShareSerializer(many=True),
            403: OpenApiResponse(description="Only the owner can list shares"),
        },
        tags=["Files - Sharing"],
    )
    def get(self, request, file_id):
        encrypted_file = EncryptedFileService.get(file_id)
        shares = FileShareService.list_for_file(encrypted_file, request.user)
        return Response(FileShareSerializer(shares, many=True).data)

    @extend_schema(
        operation_id="create_file_share",
        summary="Share file",
        description="Returns the share and a URL of the form <base>/share/<token>.",
        request=FileShareCreateSerializer,
        responses={
            201: OpenApiResponse(description="{share, share_url}"),
            400: OpenApiResponse(description="Invalid max_views or expiry"),
            403: OpenApiResponse(description="Caller may not share this file"),
        },
        tags=["Files - Sharing"],
    )
    def post(self, request, file_id):
        encrypted_file = EncryptedFileService.get(file_id)
        serializer = FileShareCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        share_token = data.pop("share_token") or request.query_params.get("share")

        share = FileShareService.create_share(
            encrypted_file,
            request.user,
            share_token=share_token,
            request_meta=RequestMeta.from_request(request),
            **data,
        )
        return Response(
            {
                "share": FileShareSerializer(share).data,
                "share_url": build_share_url(request, share.token),
            },
            status=status.HTTP_201_CREATED,
        )


class FileShareRevokeView(APIView):
    """DELETE /api/v1/files/{file_id}/shares/{share_id}/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="revoke_file_share",
        summary="Revoke file share",
        responses={
            200: FileShareSerializer,
            403: OpenApiResponse(description="Not the owner or share creator"),
            404: OpenApiResponse(description="File or share not found"),
        },
        tags=["Files - Sharing"],
    )
    def delete(self, request, file_id, share_id):
        encrypted_file = EncryptedFileService.get(file_id)
        share = FileShareService.get_for_file(encrypted_file, share_id)
        share = FileShareService.revoke(
            share,
            request.user,
            request_meta=RequestMeta.from_request(request),
        )
        return Response(FileShareSerializer(share).data)


class EncryptedFileDownloadView(APIView):
    """
    GET /api/v1/files/{file_id}/download/?share=<token>&disposition=attachment|inline

    Open to anonymous callers so that shares with requires_auth=false work
    from a bare link. FileAccessService does every check.

    Response headers:
        Content-Type, Content-Disposition, X-Encryption-Key,
        X-Encryption-IV, X-Content-Hash
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="download_encrypted_file",
        summary="Download encrypted file",
        parameters=[
            SHARE_PARAMETER,
            OpenApiParameter(
                name="disposition",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=["attachment", "inline"],
                description="inline counts as a view, anything else as a download",
            ),
        ],
        responses={
            (200, "application/octet-stream"): OpenApiTypes.BINARY,
            401: OpenApiResponse(description="Share requires authentication"),
            403: OpenApiResponse(description="Denied, revoked, expired or exhausted share"),
            404: OpenApiResponse(description="File, share or blob not found"),
            409: OpenApiResponse(description="Integrity check failed"),
        },
        tags=["Files"],
    )
    def get(self, request, file_id):
        inline = request.query_params.get("disposition") == "inline"
        action = FileAction.VIEW if inline else FileAction.DOWNLOAD

        encrypted_file = EncryptedFileService.get(file_id)
        access = FileAccessService.authorize(
            encrypted_file,
            request.user,
            request.query_params.get("share"),
            action,
        )
        handle = FileAccessService.open_for_delivery(encrypted_file)

        # FileResponse owns the handle once built; close it on any earlier failure
        try:
            ComplianceRecorder.log_access(
                request.user,
                AccessAction.VIEW if inline else AccessAction.DOWNLOAD,
                ResourceType.FILE,
                encrypted_file.id,
                RequestMeta.from_request(request),
                metadata={"share_id": access.share.id} if access.share else None,
            )
            return FileDeliveryService.serve_file_response(
                encrypted_file,
                handle,
                as_attachment=not inline,
            )
        except Exception:
            handle.close()
            raise
