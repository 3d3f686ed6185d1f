"""
Authentication views.

This module provides API views for:
- Registration (email + password)
- Login / logout with JWT pairs and presence updates
- Current user profile

Related files:
    - serializers.py: Request/response serialization
    - services.py: AuthService business logic
    - urls.py: URL routing

Note:
    Token refresh is provided by simplejwt's TokenRefreshView, mounted in
    urls.py at /api/v1/auth/token/refresh/.
"""

from django.contrib.auth import user_logged_in
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    AuthResponseSerializer,
    LoginSerializer,
    LogoutSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AuthService
from core.views import failure_response


class RegisterView(APIView):
    """
    API view for account registration.

    POST: Create an account and return a JWT pair

    URL: /api/v1/auth/register/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        description="Create an account with email and password and return JWT tokens.",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={
            201: AuthResponseSerializer,
            400: OpenApiResponse(description="Invalid input"),
            409: OpenApiResponse(
                description="Email already registered",
                examples=[
                    OpenApiExample(
                        "Duplicate",
                        value={
                            "error": "An account with this email already exists",
                            "error_code": "EMAIL_EXISTS",
                        },
                    )
                ],
            ),
        },
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.register(**serializer.validated_data)
        if not result.success:
            return failure_response(result)

        user = result.data
        return Response(
            {**AuthService.issue_tokens(user), "user": UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    API view for credential login.

    POST: Verify email/password, mark the user online, return a JWT pair

    URL: /api/v1/auth/login/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={
            200: AuthResponseSerializer,
            401: OpenApiResponse(description="Invalid email or password"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.login(
            serializer.validated_data["email"],
            serializer.validated_data["password"],
            request=request,
        )
        if not result.success:
            return failure_response(result)

        user = result.data
        tokens = AuthService.issue_tokens(user)
        user_logged_in.send(sender=user.__class__, request=request, user=user)

        return Response({**tokens, "user": UserSerializer(user).data})


class LogoutView(APIView):
    """
    API view for logout.

    POST: Mark the user offline and blacklist the supplied refresh token

    URL: /api/v1/auth/logout/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Log out",
        tags=["Auth"],
        request=LogoutSerializer,
        responses={200: OpenApiResponse(description="Logged out")},
    )
    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AuthService.logout(request.user, serializer.validated_data.get("refresh"))
        return Response({"detail": "Successfully logged out"})


class CurrentUserView(APIView):
    """
    GET: Current user's profile

    URL: /api/v1/auth/user/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user", tags=["Auth"], responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)
