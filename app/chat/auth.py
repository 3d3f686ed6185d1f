"""
Bearer token resolution for realtime connections.

Used by the websocket ``auth`` event; the token is the same simplejwt
access token REST clients send as a bearer header.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def get_user_for_token(token: str | None):
    """
    Resolve an access token to an active user.

    Returns:
        User instance if the token is valid, unexpired and names an active
        user; None otherwise
    """
    if not token or not isinstance(token, str):
        return None

    User = get_user_model()

    try:
        access_token = AccessToken(token)
        user_id = access_token[api_settings.USER_ID_CLAIM]
    except (TokenError, KeyError) as e:
        logger.info(f"Rejected realtime token: {e.__class__.__name__}")
        return None

    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
    except User.DoesNotExist:
        logger.info("Rejected realtime token: user not found")
        return None

    if not user.is_active:
        logger.warning(f"Inactive user attempted realtime auth: {user.id}")
        return None

    return user
