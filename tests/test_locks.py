"""Tests for per-client schedule locks."""

import threading

import pytest

from coachcal.scheduling.errors import ScheduleLockedError
from coachcal.scheduling.locks import LocalLockManager, RedisLockManager, schedule_lock_key


class FakeRedis:
    """Minimal SET NX / GET / DELETE stand-in."""

    def __init__(self):
        self.store: dict[str, str] = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)


class TestLocalLockManager:
    def test_same_client_is_serialized(self):
        manager = LocalLockManager(timeout_seconds=0.05)
        with manager.acquire("c1"):
            errors = []

            def contender():
                try:
                    with manager.acquire("c1"):
                        pass
                except ScheduleLockedError as e:
                    errors.append(e)

            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()
        assert len(errors) == 1

    def test_different_clients_do_not_block(self):
        manager = LocalLockManager(timeout_seconds=0.05)
        with manager.acquire("c1"), manager.acquire("c2"):
            pass

    def test_lock_released_after_error(self):
        manager = LocalLockManager(timeout_seconds=0.05)
        with pytest.raises(RuntimeError), manager.acquire("c1"):
            raise RuntimeError("boom")
        with manager.acquire("c1"):
            pass

    def test_released_clients_are_forgotten(self):
        manager = LocalLockManager(timeout_seconds=0.05)
        for index in range(100):
            with manager.acquire(f"client-{index}"):
                assert f"client-{index}" in manager._locks
        assert manager._locks == {}

    def test_timed_out_waiter_leaves_holder_entry(self):
        manager = LocalLockManager(timeout_seconds=0.05)
        with manager.acquire("c1"):
            with pytest.raises(ScheduleLockedError), manager.acquire("c1"):
                pass
            assert manager._locks["c1"][1] == 1
        assert "c1" not in manager._locks


class TestRedisLockManager:
    def test_acquire_and_release(self):
        fake = FakeRedis()
        manager = RedisLockManager(client=fake, timeout_seconds=0.05)
        with manager.acquire("c1"):
            assert schedule_lock_key("c1") in fake.store
        assert schedule_lock_key("c1") not in fake.store

    def test_busy_lock_times_out(self):
        fake = FakeRedis()
        fake.store[schedule_lock_key("c1")] = "someone-else"
        manager = RedisLockManager(client=fake, timeout_seconds=0.05)
        with pytest.raises(ScheduleLockedError), manager.acquire("c1"):
            pass
        assert fake.store[schedule_lock_key("c1")] == "someone-else"
