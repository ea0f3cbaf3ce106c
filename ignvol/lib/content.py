#!/usr/bin/env python3

# content.py - Ignition content classification and materialization
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
import shutil
import tempfile

from collections import namedtuple
from contextlib import contextmanager
from enum import Enum
from json import loads

from ignvol.lib.errors import InvalidContentError, ContentIOError
from ignvol.lib.volume import size


class ContentKind(Enum):
    FILE_PATH = "file"
    INLINE_TEXT = "inline"


ClassifiedContent = namedtuple("ClassifiedContent", ["kind", "value"])
ResolvedSource = namedtuple("ResolvedSource", ["path", "size_bytes"])


def encode_inline(content):
    """
    Bytes of inline content; undecodable argv bytes are written back verbatim
    """
    return content.encode("utf-8", "surrogateescape")


def classify(content):
    """
    Decide whether content names an existing file or is an inline JSON object

    An existing path always wins, even when the file holds valid JSON.
    """
    try:
        os.stat(content)
        return ClassifiedContent(ContentKind.FILE_PATH, content)
    except (OSError, ValueError):
        pass

    try:
        parsed = loads(content)
        encode_inline(content)
    except ValueError:
        parsed = None

    if not isinstance(parsed, dict):
        raise InvalidContentError(
            "Ignition content is neither a file nor a valid JSON object",
            step="classify",
            resource=content,
        )

    return ClassifiedContent(ContentKind.INLINE_TEXT, content)


class ContentResolver(object):
    """
    Materializes classified ignition content into a local temporary file
    """

    def __init__(self, temp_directory=None, logger=None):
        self.temp_directory = temp_directory
        self.logger = logger

    def log(self, message, state=""):
        if self.logger is not None:
            self.logger.out(message, state=state)

    def allocate(self, name):
        """
        Create an empty temporary file named after the volume and return its path
        """
        self.log("Creating Ignition temporary file", state="d")
        try:
            fd, path = tempfile.mkstemp(prefix=f"{name.replace(os.sep, '_')}.", dir=self.temp_directory)
        except OSError as e:
            raise ContentIOError(
                "Failed to create temporary file",
                step="allocate",
                resource=self.temp_directory,
                error=e,
            ) from e
        os.close(fd)
        return path

    def materialize(self, classified, path):
        """
        Write the classified content into the temporary file at path
        """
        if classified.kind == ContentKind.INLINE_TEXT:
            try:
                with open(path, "wb") as fh:
                    fh.write(encode_inline(classified.value))
            except OSError as e:
                raise ContentIOError(
                    "Cannot write Ignition object to temporary file",
                    step="materialize",
                    resource=path,
                    error=e,
                ) from e
            return

        try:
            with open(classified.value, "rb") as src, open(path, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError as e:
            raise ContentIOError(
                f"Failed to copy supplied Ignition file {classified.value} to temporary file",
                step="materialize",
                resource=classified.value,
                error=e,
            ) from e

    def remove(self, path):
        """
        Remove a temporary file; failures are logged and not raised
        """
        try:
            os.remove(path)
        except OSError as e:
            self.log(f"Error while removing temporary Ignition file {path}: {e}", state="w")

    @contextmanager
    def resolved(self, classified, name):
        """
        Yield a ResolvedSource for classified content, removing it on exit
        """
        path = self.allocate(name)
        try:
            self.materialize(classified, path)
            yield ResolvedSource(path, size(path))
        finally:
            self.remove(path)

