#!/usr/bin/env python3

# locks.py - Per-storage-pool exclusive locks
# Part of the Parallel Virtual Cluster (PVC) system
#
#    Copyright (C) 2018-2024 Joshua M. Boniface <joshua@boniface.me>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, version 3.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
###############################################################################

from contextlib import contextmanager
from threading import Lock


class PoolLockManager(object):
    """
    Keyed table of exclusive locks, one per storage pool name

    Every refresh, create or delete against a pool holds that pool's lock;
    operations against different pools never contend.
    """

    def __init__(self, logger=None):
        self.logger = logger
        self._locks = dict()
        self._table_lock = Lock()

    def log(self, message, state=""):
        if self.logger is not None:
            self.logger.out(message, state=state)

    def get_lock(self, pool_name):
        """
        Return the lock for pool_name, creating it on first use
        """
        with self._table_lock:
            lock = self._locks.get(pool_name)
            if lock is None:
                lock = Lock()
                self._locks[pool_name] = lock
            return lock

    def acquire(self, pool_name):
        """
        Block until the lock on pool_name is held
        """
        self.log(f"Acquiring lock on storage pool {pool_name}", state="d")
        self.get_lock(pool_name).acquire()
        self.log(f"Acquired lock on storage pool {pool_name}", state="d")

    def release(self, pool_name):
        self.get_lock(pool_name).release()
        self.log(f"Released lock on storage pool {pool_name}", state="d")

    @contextmanager
    def lock(self, pool_name):
        """
        Hold the lock on pool_name for the duration of a with block
        """
        self.acquire(pool_name)
        try:
            yield
        finally:
            self.release(pool_name)

    def __contains__(self, pool_name):
        with self._table_lock:
            return pool_name in self._locks
