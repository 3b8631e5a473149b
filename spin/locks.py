from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Optional

import redis
from django.conf import settings

logger = logging.getLogger(__name__)


class SpinLockError(Exception):
    """Raised when the spin lock cannot be acquired."""


def _redis_client() -> Optional[redis.Redis]:
    redis_url = getattr(settings, "REDIS_URL", None)
    if not redis_url:
        return None
    return redis.Redis.from_url(redis_url, decode_responses=True)


@contextmanager
def participant_spin_lock(email: str):
    """Serialize spins for one participant across workers.

    Double submits from a retried client fail fast here instead of queueing on
    the database row lock. Without ``REDIS_URL`` the lock is skipped and the
    allocation transaction alone guards the participant.
    """

    client = _redis_client()
    if client is None:
        yield
        return

    prefix = getattr(settings, "SPIN_LOCK_PREFIX", "spin:lock:")
    lock = client.lock(
        f"{prefix}{email}",
        timeout=getattr(settings, "SPIN_LOCK_TIMEOUT", 10),
        blocking_timeout=getattr(settings, "SPIN_LOCK_WAIT", 5),
    )
    try:
        acquired = lock.acquire(blocking=True)
    except redis.RedisError as exc:
        raise SpinLockError(f"Failed to acquire spin lock: {exc}") from exc
    if not acquired:
        raise SpinLockError("A spin for this participant is already in progress. Please try again.")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            logger.warning("Spin lock for %s expired before it was released", email)
