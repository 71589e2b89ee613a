"""Per-client schedule locks.

Two passes over the same client's sessions (e.g. a double-submitted workout
completion) must not interleave, or both would claim the same dates.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager

import redis
from loguru import logger

from coachcal.config.settings import settings
from coachcal.scheduling.errors import ScheduleLockedError

LOCK_TTL_SECONDS = 60
LOCK_POLL_SECONDS = 0.05


def schedule_lock_key(client_id: str) -> str:
    return f"coachcal:schedule-lock:{client_id}"


class LocalLockManager:
    """In-process lock per client. Enough for a single worker.

    A client's lock entry lives only while some caller holds or waits for it.
    """

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.lock_timeout_seconds
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._guard = threading.Lock()

    def _checkout(self, client_id: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(client_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[client_id] = (lock, users + 1)
            return lock

    def _checkin(self, client_id: str) -> None:
        with self._guard:
            lock, users = self._locks[client_id]
            if users <= 1:
                del self._locks[client_id]
            else:
                self._locks[client_id] = (lock, users - 1)

    @contextmanager
    def acquire(self, client_id: str) -> Generator[None, None, None]:
        """Hold the client's lock for the duration of the block.

        Raises:
            ScheduleLockedError: If the lock is not released within the timeout
        """
        lock = self._checkout(client_id)
        try:
            if not lock.acquire(timeout=self.timeout_seconds):
                raise ScheduleLockedError(f"Schedule for client {client_id} is locked by another pass")
            try:
                logger.debug(f"Lock acquired: {schedule_lock_key(client_id)}")
                yield
            finally:
                lock.release()
                logger.debug(f"Lock released: {schedule_lock_key(client_id)}")
        finally:
            self._checkin(client_id)


class RedisLockManager:
    """Cross-process lock per client using SET NX with a token."""

    def __init__(self, client: redis.Redis | None = None, timeout_seconds: float | None = None) -> None:
        self._redis = client
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.lock_timeout_seconds

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    @contextmanager
    def acquire(self, client_id: str) -> Generator[None, None, None]:
        """Hold the client's lock for the duration of the block.

        Polls until the lock is free or the timeout elapses.

        Raises:
            ScheduleLockedError: If the lock is not released within the timeout
        """
        key = schedule_lock_key(client_id)
        token = str(uuid.uuid4())
        deadline = time.monotonic() + self.timeout_seconds

        while not self.redis.set(key, token, nx=True, ex=LOCK_TTL_SECONDS):
            if time.monotonic() >= deadline:
                raise ScheduleLockedError(f"Schedule for client {client_id} is locked by another pass")
            time.sleep(LOCK_POLL_SECONDS)

        try:
            logger.debug(f"Lock acquired: {key}")
            yield
        finally:
            # Only delete if we still own the lock
            if self.redis.get(key) == token:
                self.redis.delete(key)
                logger.debug(f"Lock released: {key}")


_lock_manager: LocalLockManager | RedisLockManager | None = None


def get_lock_manager() -> LocalLockManager | RedisLockManager:
    """Get the process-wide lock manager for the configured backend."""
    global _lock_manager
    if _lock_manager is None:
        _lock_manager = RedisLockManager() if settings.lock_backend == "redis" else LocalLockManager()
        logger.info(f"Schedule lock backend: {settings.lock_backend}")
    return _lock_manager
