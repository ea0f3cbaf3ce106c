"""
Unit tests for the per-pool lock manager.
"""

import threading

import pytest

from ignvol.lib.locks import PoolLockManager


class TestPoolLockManager:
    def test_lock_created_lazily(self):
        locks = PoolLockManager()

        assert "default" not in locks
        locks.get_lock("default")
        assert "default" in locks

    def test_same_lock_per_pool(self):
        locks = PoolLockManager()

        assert locks.get_lock("default") is locks.get_lock("default")
        assert locks.get_lock("default") is not locks.get_lock("other")

    def test_released_on_error(self):
        locks = PoolLockManager()

        with pytest.raises(RuntimeError):
            with locks.lock("default"):
                raise RuntimeError("failed")

        assert locks.get_lock("default").acquire(blocking=False)

    def test_same_pool_blocks(self):
        locks = PoolLockManager()
        acquired = threading.Event()

        def contender():
            with locks.lock("default"):
                acquired.set()

        with locks.lock("default"):
            thread = threading.Thread(target=contender)
            thread.start()
            assert not acquired.wait(0.2)

        thread.join(5)
        assert acquired.is_set()

    def test_different_pools_do_not_block(self):
        locks = PoolLockManager()
        acquired = threading.Event()

        def contender():
            with locks.lock("other"):
                acquired.set()

        with locks.lock("default"):
            thread = threading.Thread(target=contender)
            thread.start()
            assert acquired.wait(5)

        thread.join(5)

    def test_concurrent_first_use(self):
        locks = PoolLockManager()
        barrier = threading.Barrier(8)
        seen = []

        def first_use():
            barrier.wait()
            seen.append(locks.get_lock("default"))

        threads = [threading.Thread(target=first_use) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert len(seen) == 8
        assert all(lock is seen[0] for lock in seen)
