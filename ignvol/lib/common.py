#!/usr/bin/env python3

# common.py - PVC ignition volume library, common functions
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

import time

from math import ceil


###############################################################################
# Global Variables
###############################################################################


# Maximum payload of a single libvirt stream message (VIR_NET_MESSAGE_LEGACY_PAYLOAD_MAX)
DEFAULT_UPLOAD_CHUNK_SIZE = 262120
DEFAULT_REFRESH_ATTEMPTS = 5
DEFAULT_REFRESH_BACKOFF = 1.0


###############################################################################
# Bounded retry
###############################################################################


class RetriesExhausted(Exception):
    """
    Raised by retry_call once every attempt has failed; wraps the last error
    """

    def __init__(self, attempts, error):
        self.attempts = attempts
        self.error = error
        self.message = f"Failed after {attempts} tries: {error}"

    def __str__(self):
        return str(self.message)


def retry_call(function, attempts=DEFAULT_REFRESH_ATTEMPTS, backoff=DEFAULT_REFRESH_BACKOFF, logger=None, message="Operation failed"):
    """
    Call function until it returns without raising, at most attempts times

    Sleeps backoff seconds between tries. Returns the result of the first
    successful call, or raises RetriesExhausted with the final exception.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    count = 1
    while True:
        try:
            return function()
        except Exception as e:
            if count >= attempts:
                raise RetriesExhausted(count, e) from e
            if logger is not None:
                logger.out(
                    f"{message}; retrying [{count}/{attempts}]: {e}",
                    state="w",
                )
            time.sleep(backoff)
            count += 1


###############################################################################
# Formatting
###############################################################################


def format_bytes(size_bytes):
    byte_unit_matrix = {
        "B": 1,
        "K": 1024,
        "M": 1024 * 1024,
        "G": 1024 * 1024 * 1024,
        "T": 1024 * 1024 * 1024 * 1024,
    }
    human_bytes = "0B"
    for unit in sorted(byte_unit_matrix, key=byte_unit_matrix.get):
        formatted_bytes = int(ceil(size_bytes / byte_unit_matrix[unit]))
        if formatted_bytes < 10000:
            human_bytes = "{}{}".format(formatted_bytes, unit)
            break
    return human_bytes
