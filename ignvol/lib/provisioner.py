#!/usr/bin/env python3

# provisioner.py - PVC ignition volume provisioner
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

from collections import namedtuple

import ignvol.lib.identifier as identifier

from ignvol.lib.common import RetriesExhausted, retry_call, format_bytes
from ignvol.lib.content import ContentResolver, classify
from ignvol.lib.errors import IgnitionError, BackendError, NotFoundError
from ignvol.lib.volume import VolumeDescriptor, StreamUploader


ProvisioningRequest = namedtuple("ProvisioningRequest", ["name", "pool_name", "content"])


class VolumeProvisioner(object):
    """
    Creates ignition volumes in libvirt storage pools

    session must provide the libvirt connection as `conn` and a
    PoolLockManager as `pool_locks`; config is the parsed configuration.
    """

    def __init__(self, session, config, logger=None):
        self.session = session
        self.config = config
        self.logger = logger
        self.resolver = ContentResolver(
            temp_directory=config["temp_directory"], logger=logger
        )

    def log(self, message, state=""):
        if self.logger is not None:
            self.logger.out(message, state=state)

    @property
    def conn(self):
        conn = self.session.conn
        if conn is None:
            raise BackendError("Libvirt connection is not open", step="connect")
        return conn

    def create(self, request):
        """
        Upload the request content as a raw volume and return its external identifier

        A volume that was created but whose upload failed is left in the pool.
        """
        classified = classify(request.content)
        conn = self.conn

        with self.session.pool_locks.lock(request.pool_name):
            try:
                pool = conn.storagePoolLookupByName(request.pool_name)
            except Exception as e:
                raise NotFoundError(
                    f"Can't find storage pool '{request.pool_name}'",
                    step="lookup_pool",
                    resource=request.pool_name,
                    error=e,
                ) from e

            # Refresh the pool so that libvirt's view of its volumes is current
            try:
                retry_call(
                    lambda: pool.refresh(0),
                    attempts=self.config["refresh_attempts"],
                    backoff=self.config["refresh_backoff"],
                    logger=self.logger,
                    message=f"Error refreshing pool {request.pool_name}",
                )
            except RetriesExhausted as e:
                raise BackendError(
                    "Error refreshing pool for volume",
                    step="refresh_pool",
                    resource=request.pool_name,
                    error=e,
                ) from e

            with self.resolver.resolved(classified, request.name) as source:
                descriptor = VolumeDescriptor(request.name, source.size_bytes)
                self.log(
                    f"Creating volume {request.name} ({format_bytes(source.size_bytes)}) in pool {request.pool_name}",
                    state="i",
                )

                try:
                    volume = pool.createXML(descriptor.to_xml(), 0)
                except Exception as e:
                    raise BackendError(
                        f"Error creating libvirt volume for Ignition {request.name}",
                        step="create_volume",
                        resource=request.name,
                        error=e,
                    ) from e

                try:
                    StreamUploader(
                        conn,
                        chunk_size=self.config["upload_chunk_size"],
                        logger=self.logger,
                    ).upload(source.path, volume, descriptor.capacity_bytes)
                except IgnitionError as e:
                    raise BackendError(
                        f"Error while uploading ignition file {source.path}",
                        step="upload",
                        resource=source.path,
                        error=e,
                    ) from e

            try:
                volume_key = volume.key()
            except Exception as e:
                raise BackendError(
                    "Error retrieving volume key",
                    step="volume_key",
                    resource=request.name,
                    error=e,
                ) from e
            if not volume_key:
                raise BackendError(
                    "Error retrieving volume key: missing key",
                    step="volume_key",
                    resource=request.name,
                )

        self.log(f"Created Ignition volume {request.name} with key {volume_key}", state="o")
        return identifier.encode(volume_key)

    def read(self, external_id):
        """
        Rebuild the name and pool of the volume behind an external identifier
        """
        return identifier.reverse_resolve(self.conn, external_id)

    def delete(self, external_id):
        """
        Delete the volume behind an external identifier; returns its name and pool
        """
        details = self.read(external_id)
        volume_key = identifier.decode(external_id)

        with self.session.pool_locks.lock(details["pool"]):
            try:
                volume = self.conn.storageVolLookupByKey(volume_key)
            except Exception as e:
                raise NotFoundError(
                    f"Can't retrieve volume {volume_key}",
                    step="lookup_volume",
                    resource=volume_key,
                    error=e,
                ) from e

            try:
                volume.delete(0)
            except Exception as e:
                raise BackendError(
                    f"Error deleting volume {details['name']}",
                    step="delete_volume",
                    resource=details["name"],
                    error=e,
                ) from e

        self.log(f"Deleted Ignition volume {details['name']} from pool {details['pool']}", state="o")
        return details
