#!/usr/bin/env python3

# identifier.py - External identifiers for ignition volumes
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

#
# An external identifier is the libvirt volume key joined by ";" with a UUID
# generated at creation time:
#
#     /var/lib/libvirt/images/node1.ign;550e8400-e29b-41d4-a716-446655440000
#
# Only the volume key is ever used to find the volume again. The UUID makes
# each creation distinct and is never validated.
#

import uuid

from collections import namedtuple

from ignvol.lib.errors import IdentifierFormatError, NotFoundError, BackendError


SEPARATOR = ";"


class ExternalIdentifier(namedtuple("ExternalIdentifier", ["volume_key", "token"])):
    __slots__ = ()

    def __str__(self):
        return f"{self.volume_key}{SEPARATOR}{self.token}"


def parse(identifier):
    """
    Parse an identifier string into an ExternalIdentifier
    """
    parts = identifier.split(SEPARATOR, 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise IdentifierFormatError(
            f"{identifier} is not a valid key",
            step="decode",
            resource=identifier,
        )
    return ExternalIdentifier(parts[0], parts[1])


def encode(volume_key):
    return str(ExternalIdentifier(volume_key, uuid.uuid4()))


def decode(identifier):
    return parse(identifier).volume_key


def reverse_resolve(conn, identifier):
    """
    Find the volume behind an identifier and rebuild its name and pool

    Returns a dict with the volume "name" and its "pool".
    """
    volume_key = decode(identifier)

    try:
        volume = conn.storageVolLookupByKey(volume_key)
    except Exception as e:
        raise NotFoundError(
            f"Can't retrieve volume {volume_key}",
            step="lookup_volume",
            resource=volume_key,
            error=e,
        ) from e

    try:
        name = volume.name()
    except Exception as e:
        raise BackendError(
            f"Error retrieving volume name from key {volume_key}",
            step="volume_name",
            resource=volume_key,
            error=e,
        ) from e
    if not name:
        raise NotFoundError(
            f"Error retrieving volume name from key {volume_key}",
            step="volume_name",
            resource=volume_key,
        )

    try:
        pool = volume.storagePoolLookupByVolume()
        pool_name = pool.name()
    except Exception as e:
        raise BackendError(
            f"Error retrieving pool for volume {name}",
            step="lookup_pool",
            resource=name,
            error=e,
        ) from e
    if not pool_name:
        raise BackendError(
            f"Error retrieving pool name for volume {name}",
            step="pool_name",
            resource=name,
        )

    return {"name": name, "pool": pool_name}
