"""
Pytest configuration and fixtures for ignvol tests.

Provides in-memory stand-ins for the libvirt connection, storage pools,
volumes and streams, so provisioning can be exercised without a hypervisor.
"""

import sys
import threading
from pathlib import Path

import lxml.etree
import pytest

# Add the repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ignvol.lib.config import get_default_configuration  # noqa: E402
from ignvol.lib.locks import PoolLockManager  # noqa: E402


# =============================================================================
# Fake libvirt objects
# =============================================================================


class FakeLibvirtError(Exception):
    pass


class FakeStream:
    def __init__(self):
        self.volume = None
        self.sent = []
        self.finished = False
        self.aborted = False
        self.max_send = None

    def send(self, data):
        if self.max_send is not None:
            data = data[:self.max_send]
        self.sent.append(bytes(data))
        self.volume.data += data
        return len(data)

    def finish(self):
        self.finished = True

    def abort(self):
        self.aborted = True


class FakeVolume:
    def __init__(self, pool, name, capacity, key=None):
        self.pool = pool
        self._name = name
        self.capacity = capacity
        self._key = key if key is not None else f"/var/lib/libvirt/{pool.name()}/{name}"
        self.data = b""
        self.upload_error = None
        self.deleted = False

    def name(self):
        return self._name

    def key(self):
        return self._key

    def upload(self, stream, offset, length, flags):
        if self.upload_error is not None:
            raise self.upload_error
        stream.volume = self
        self.upload_args = (offset, length, flags)

    def storagePoolLookupByVolume(self):
        if self.pool.lookup_error is not None:
            raise self.pool.lookup_error
        return self.pool

    def delete(self, flags):
        if self.pool.delete_error is not None:
            raise self.pool.delete_error
        self.deleted = True
        self.pool.volumes.pop(self._name, None)
        self.pool.conn.volumes.pop(self._key, None)


class FakePool:
    def __init__(self, conn, name):
        self.conn = conn
        self._name = name
        self.volumes = dict()
        self.xml = []
        self.events = []
        self.refresh_failures = 0
        self.refresh_count = 0
        self.create_error = None
        self.lookup_error = None
        self.delete_error = None
        self.volume_key = None
        self.on_create = None

    def name(self):
        return self._name

    def refresh(self, flags):
        self.refresh_count += 1
        self.events.append(("refresh", threading.current_thread().name))
        if self.refresh_failures > 0:
            self.refresh_failures -= 1
            raise FakeLibvirtError("pool is busy")

    def createXML(self, xml, flags):
        self.xml.append(xml)
        self.events.append(("create", threading.current_thread().name))
        if self.on_create is not None:
            self.on_create()
        if self.create_error is not None:
            raise self.create_error
        parsed = lxml.etree.fromstring(xml)
        name = parsed.findtext("name")
        volume = FakeVolume(self, name, int(parsed.findtext("capacity")), key=self.volume_key)
        self.volumes[name] = volume
        self.conn.volumes[volume.key()] = volume
        return volume


class FakeConnection:
    def __init__(self):
        self.pools = dict()
        self.volumes = dict()
        self.streams = []
        self.calls = []
        self.max_send = None

    def add_pool(self, name):
        pool = FakePool(self, name)
        self.pools[name] = pool
        return pool

    def storagePoolLookupByName(self, name):
        self.calls.append(("storagePoolLookupByName", name))
        if name not in self.pools:
            raise FakeLibvirtError(f"Storage pool not found: no storage pool with matching name '{name}'")
        return self.pools[name]

    def storageVolLookupByKey(self, key):
        self.calls.append(("storageVolLookupByKey", key))
        if key not in self.volumes:
            raise FakeLibvirtError(f"Storage volume not found: no storage vol with matching key {key}")
        return self.volumes[key]

    def newStream(self, flags):
        self.calls.append(("newStream", flags))
        stream = FakeStream()
        stream.max_send = self.max_send
        self.streams.append(stream)
        return stream


class FakeSession:
    def __init__(self, conn):
        self.conn = conn
        self.pool_locks = PoolLockManager()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def conn():
    connection = FakeConnection()
    connection.add_pool("default")
    return connection


@pytest.fixture
def session(conn):
    return FakeSession(conn)


@pytest.fixture
def config(tmp_path):
    temp_directory = tmp_path / "tmp"
    temp_directory.mkdir()
    config = get_default_configuration()
    config["temp_directory"] = str(temp_directory)
    config["refresh_backoff"] = 0
    config["console_logging"] = False
    return config


@pytest.fixture
def ignition_file(tmp_path):
    path = tmp_path / "boot.ign"
    path.write_bytes(bytes(range(256)) * 4)
    return path
