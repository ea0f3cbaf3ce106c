#!/usr/bin/env python3

# connection.py - Libvirt session handling for ignvol
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

import importlib

from ignvol.lib.errors import BackendError
from ignvol.lib.locks import PoolLockManager


class LazyModule:
    """
    A proxy for a module that is imported on first attribute access
    """

    def __init__(self, name):
        self.name = name
        self._module = None

    def __getattr__(self, attr):
        if self._module is None:
            self._module = importlib.import_module(self.name)
        return getattr(self._module, attr)


# Provided by the system python3-libvirt package
libvirt = LazyModule("libvirt")


class VirtSession(object):
    """
    A libvirt connection plus the storage pool locks shared by everything using it
    """

    def __init__(self, config, logger=None):
        self.uri = config["libvirt_uri"]
        self.logger = logger
        self.conn = None
        self.pool_locks = PoolLockManager(logger=logger)

    def log(self, message, state=""):
        if self.logger is not None:
            self.logger.out(message, state=state)

    def connect(self):
        """
        Open the libvirt connection
        """
        self.log(f"Connecting to Libvirt daemon at {self.uri}", state="i")
        try:
            self.conn = libvirt.open(self.uri)
        except Exception as e:
            raise BackendError(
                "Failed to connect to Libvirt daemon",
                step="connect",
                resource=self.uri,
                error=e,
            ) from e
        if self.conn is None:
            raise BackendError(
                "Failed to connect to Libvirt daemon",
                step="connect",
                resource=self.uri,
            )

    def disconnect(self):
        if self.conn is None:
            return
        try:
            self.conn.close()
        except Exception as e:
            self.log(f"Failed to close Libvirt connection: {e}", state="w")
        self.conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()
