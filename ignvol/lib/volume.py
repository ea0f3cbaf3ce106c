#!/usr/bin/env python3

# volume.py - Libvirt storage volume descriptors and streamed imports
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

import os
import lxml.etree

from ignvol.lib.common import DEFAULT_UPLOAD_CHUNK_SIZE, format_bytes
from ignvol.lib.errors import BackendError, ContentIOError


def size(path):
    """
    Exact byte length of a resolved source; this becomes the volume capacity
    """
    try:
        return os.stat(path).st_size
    except OSError as e:
        raise ContentIOError(
            "Failed to read size of resolved source",
            step="size",
            resource=path,
            error=e,
        ) from e


class VolumeDescriptor(object):
    """
    The parts of a libvirt storage volume definition an ignition volume sets
    """

    def __init__(self, name, capacity_bytes, volume_format="raw"):
        self.name = name
        self.capacity_bytes = capacity_bytes
        self.format = volume_format

    def to_xml(self):
        volume = lxml.etree.Element("volume")
        lxml.etree.SubElement(volume, "name").text = self.name
        capacity = lxml.etree.SubElement(volume, "capacity", unit="bytes")
        capacity.text = str(self.capacity_bytes)
        target = lxml.etree.SubElement(volume, "target")
        lxml.etree.SubElement(target, "format", type=self.format)
        return lxml.etree.tostring(volume, encoding="unicode", method="xml")

    def __repr__(self):
        return f"VolumeDescriptor({self.name}, {format_bytes(self.capacity_bytes)}, {self.format})"


class StreamUploader(object):
    """
    Streams a local file into a freshly created libvirt volume

    Data is sent in chunks no larger than chunk_size, and exactly capacity
    bytes are sent: a longer source is truncated, a shorter one is an error.
    """

    def __init__(self, conn, chunk_size=DEFAULT_UPLOAD_CHUNK_SIZE, logger=None):
        self.conn = conn
        self.chunk_size = chunk_size
        self.logger = logger

    def log(self, message, state=""):
        if self.logger is not None:
            self.logger.out(message, state=state)

    def upload(self, source_path, volume, capacity):
        stream = None
        try:
            stream = self.conn.newStream(0)
            volume.upload(stream, 0, capacity, 0)
        except Exception as e:
            if stream is not None:
                self._abort(stream)
            raise BackendError(
                "Failed to open upload stream",
                step="upload",
                resource=source_path,
                error=e,
            ) from e

        offset = 0
        try:
            with open(source_path, "rb") as fh:
                while offset < capacity:
                    data = fh.read(min(self.chunk_size, capacity - offset))
                    if not data:
                        raise BackendError(
                            f"Source ended after {offset} of {capacity} bytes",
                            step="upload",
                            resource=source_path,
                        )
                    self._send(stream, data)
                    offset += len(data)
                    self.log(f"Sent {offset}/{capacity} bytes", state="d")
            stream.finish()
        except Exception as e:
            self._abort(stream)
            if isinstance(e, BackendError):
                raise
            raise BackendError(
                f"Failed after sending {offset} of {capacity} bytes",
                step="upload",
                resource=source_path,
                error=e,
            ) from e

        return offset

    def _send(self, stream, data):
        # A blocking stream may still accept only part of a buffer
        while data:
            sent = stream.send(data)
            if sent is None or sent <= 0:
                raise BackendError("Stream refused data", step="upload")
            data = data[sent:]

    def _abort(self, stream):
        try:
            stream.abort()
        except Exception as e:
            self.log(f"Failed to abort upload stream: {e}", state="w")
