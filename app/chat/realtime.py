"""
Push realtime events from synchronous code.

Services run inside sync DRF views. These helpers bridge into the async
registry with asgiref's async_to_sync and are meant to be called from
``transaction.on_commit`` callbacks so nothing is pushed for a write that
rolled back.

Usage:
    transaction.on_commit(
        lambda: push_to_users(member_ids - {sender.id}, payload)
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from asgiref.sync import async_to_sync

from chat.registry import connection_registry

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def push_to_users(user_ids: Iterable[int], payload: dict[str, Any]) -> int:
    """
    Deliver ``payload`` to whichever of ``user_ids`` are connected.

    Offline users are skipped; they pick the state up on their next fetch.
    Delivery problems never propagate to the caller.

    Returns:
        Number of connections the payload was delivered to
    """
    targets = frozenset(user_ids)
    if not targets:
        return 0

    try:
        delivered = async_to_sync(connection_registry.broadcast)(
            lambda user_id: user_id in targets,
            payload,
        )
    except Exception:
        logger.error(
            f"Realtime fan-out of {payload.get('type')} failed",
            exc_info=True,
        )
        return 0

    logger.debug(
        f"Realtime {payload.get('type')} delivered to {delivered}/{len(targets)} users"
    )
    return delivered
