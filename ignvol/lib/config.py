#!/usr/bin/env python3

# config.py - Utility functions for ignvol configuration parsing
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
import tempfile
import yaml

from ignvol.lib.common import (
    DEFAULT_UPLOAD_CHUNK_SIZE,
    DEFAULT_REFRESH_ATTEMPTS,
    DEFAULT_REFRESH_BACKOFF,
)


DEFAULT_CONFIG_FILE = "/etc/pvc/ignvol.yaml"
DEFAULT_LIBVIRT_URI = "qemu:///system"


class MalformedConfigurationError(Exception):
    """
    An exception when parsing the ignvol configuration file
    """

    def __init__(self, error=None):
        self.msg = f"ERROR: Configuration file is malformed: {error}"

    def __str__(self):
        return str(self.msg)


def get_configuration_path(config_file=None):
    """
    Return the configuration file to use: an explicit path, then the
    IGNVOL_CONFIG_FILE environment variable, then the default
    """
    if config_file is None:
        config_file = os.environ.get("IGNVOL_CONFIG_FILE", DEFAULT_CONFIG_FILE)

    return config_file


def get_default_configuration():
    """
    A complete configuration using built-in defaults, for use without a file
    """
    return {
        "libvirt_uri": DEFAULT_LIBVIRT_URI,
        "temp_directory": tempfile.gettempdir(),
        "upload_chunk_size": DEFAULT_UPLOAD_CHUNK_SIZE,
        "refresh_attempts": DEFAULT_REFRESH_ATTEMPTS,
        "refresh_backoff": DEFAULT_REFRESH_BACKOFF,
        "debug": False,
        "console_logging": True,
        "file_logging": False,
        "log_directory": "/var/log/pvc",
        "log_colours": True,
        "log_dates": False,
    }


def get_parsed_configuration(config_file):
    """
    Load and flatten the YAML configuration file into a config dict
    """
    try:
        with open(config_file, "r") as cfgfh:
            o_config = yaml.load(cfgfh, Loader=yaml.SafeLoader)
    except OSError as e:
        raise MalformedConfigurationError(f"Failed to read {config_file}: {e}")
    except yaml.YAMLError as e:
        raise MalformedConfigurationError(f"Failed to parse {config_file}: {e}")

    if not isinstance(o_config, dict):
        raise MalformedConfigurationError("Top level must be a mapping")

    config = get_default_configuration()

    try:
        o_libvirt = o_config["libvirt"]
        config_libvirt = {
            "libvirt_uri": o_libvirt["uri"],
        }
        config = {**config, **config_libvirt}

        o_provisioner = o_config.get("provisioner", dict())
        config_provisioner = {
            "temp_directory": o_provisioner.get(
                "temp_directory", config["temp_directory"]
            ),
            "upload_chunk_size": int(
                o_provisioner.get("upload_chunk_size", DEFAULT_UPLOAD_CHUNK_SIZE)
            ),
            "refresh_attempts": int(
                o_provisioner.get("refresh_attempts", DEFAULT_REFRESH_ATTEMPTS)
            ),
            "refresh_backoff": float(
                o_provisioner.get("refresh_backoff", DEFAULT_REFRESH_BACKOFF)
            ),
        }
        config = {**config, **config_provisioner}

        o_logging = o_config.get("logging", dict())
        config_logging = {
            "debug": o_logging.get("debug_logging", False),
            "console_logging": o_logging.get("console_logging", True),
            "file_logging": o_logging.get("file_logging", False),
            "log_directory": o_logging.get("log_directory", config["log_directory"]),
            "log_colours": o_logging.get("log_colours", True),
            "log_dates": o_logging.get("log_dates", False),
        }
        config = {**config, **config_logging}
    except KeyError as e:
        raise MalformedConfigurationError(f"Missing key {e}")
    except (TypeError, ValueError) as e:
        raise MalformedConfigurationError(f"Invalid value: {e}")

    if config["upload_chunk_size"] < 1:
        raise MalformedConfigurationError("upload_chunk_size must be positive")
    if config["refresh_attempts"] < 1:
        raise MalformedConfigurationError("refresh_attempts must be at least 1")

    return config
