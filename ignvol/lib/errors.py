#!/usr/bin/env python3

# errors.py - PVC ignition volume error kinds and exceptions
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

from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    INVALID_CONTENT = "invalid_content"
    IO_ERROR = "io_error"
    BACKEND_ERROR = "backend_error"
    IDENTIFIER_FORMAT = "identifier_format"


class IgnitionError(Exception):
    """
    Base exception for all ignition volume operations

    Carries the error kind, the step that failed, the resource (pool, volume,
    path or identifier) it failed against, and the underlying error if any.
    """

    kind = None

    def __init__(self, message, step=None, resource=None, error=None):
        self.message = message
        self.step = step
        self.resource = resource
        self.error = error
        super().__init__(message)

    @property
    def detail(self):
        if isinstance(self.error, IgnitionError):
            return f"{self.message}: {self.error.detail}"
        if self.error is not None:
            return f"{self.message}: {self.error}"
        return self.message

    def __str__(self):
        return f"ERROR: {self.detail}"


class NotFoundError(IgnitionError):
    """
    A storage pool or volume does not exist
    """

    kind = ErrorKind.NOT_FOUND


class InvalidContentError(IgnitionError):
    """
    Content is neither an existing file nor a valid JSON object
    """

    kind = ErrorKind.INVALID_CONTENT


class ContentIOError(IgnitionError):
    """
    A local temporary file could not be written, copied or sized
    """

    kind = ErrorKind.IO_ERROR


class BackendError(IgnitionError):
    """
    A libvirt refresh, create, import or lookup failed
    """

    kind = ErrorKind.BACKEND_ERROR


class IdentifierFormatError(IgnitionError):
    """
    An external identifier is not of the form "<volume key>;<uuid>"
    """

    kind = ErrorKind.IDENTIFIER_FORMAT
