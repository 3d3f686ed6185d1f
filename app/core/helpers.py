"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Content hashing (sha256 over text, bytes and file streams)
- Token generation (cryptographic)
- HTTP request helpers (client IP, user agent)
- Query parameter parsing (bounded limits)

These utilities are pure infrastructure - they have no knowledge
of conversations, files or compliance records.

Usage:
    from core.helpers import sha256_hex, get_client_ip

    digest = sha256_hex("hello")
    ip = get_client_ip(request)
"""

from __future__ import annotations

import hashlib
import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import BinaryIO

    from django.http import HttpRequest

HASH_CHUNK_SIZE = 64 * 1024


def sha256_hex(value: str | bytes) -> str:
    """
    Return the hex sha256 digest of a string or bytes value.

    Strings are encoded as UTF-8 first, so the digest of a message body
    matches what a client computes over the same text.
    """
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha256(value).hexdigest()


def sha256_stream(stream: BinaryIO, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """
    Hash a binary stream in chunks without loading it into memory.

    The stream is read from its current position to EOF. Callers that need
    to re-read it must seek back themselves.
    """
    hasher = hashlib.sha256()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        hasher.update(chunk)
    return hasher.hexdigest()


def generate_token(nbytes: int = 32) -> str:
    """
    Generate a URL-safe, unguessable token.

    Args:
        nbytes: Bytes of randomness (the encoded token is ~1.3x longer)
    """
    return secrets.token_urlsafe(nbytes)


def get_client_ip(request: HttpRequest) -> str | None:
    """
    Extract client IP from request, handling proxies.

    Checks X-Forwarded-For header for proxy chains.
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # Take the first IP in the chain (original client)
        return x_forwarded_for.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


def get_user_agent(request: HttpRequest) -> str:
    """Return the request's User-Agent header, truncated for storage."""
    return request.META.get("HTTP_USER_AGENT", "")[:512]


def parse_limit(raw: object, default: int, maximum: int) -> int:
    """
    Parse a ``limit`` query parameter into the range [1, maximum].

    Missing or non-numeric values fall back to ``default``.

    Example:
        parse_limit(request.query_params.get("limit"), 50, 200)
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, min(value, maximum))
