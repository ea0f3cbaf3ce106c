#!/usr/bin/env python3

# helpers.py - ignvol Click CLI helper function library
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

from click import echo as click_echo
from colorama import Fore, Style
from json import dumps as jdumps
from os import get_terminal_size


VERSION = "0.9.1"

try:
    # Define the content width to be the maximum terminal size
    MAX_CONTENT_WIDTH = get_terminal_size().columns - 1
except OSError:
    # Fall back to 80 columns if "Inappropriate ioctl for device"
    MAX_CONTENT_WIDTH = 80


def echo(config, message, newline=True, stderr=False):
    """
    Output a message with click.echo respecting our configuration
    """

    if config.get("quiet", False) and stderr:
        pass
    else:
        click_echo(message=message, nl=newline, err=stderr)


def format_error(config, message):
    """
    Colour an error message red unless colours are disabled
    """

    if config.get("colour", True):
        return f"{Fore.RED}{message}{Style.RESET_ALL}"
    return message


def format_volume_pretty(config, data):
    """
    Pretty format the name and pool of an ignition volume
    """

    if config.get("colour", True):
        bold = Style.BRIGHT
        end = Style.RESET_ALL
    else:
        bold = ""
        end = ""

    name_length = max(len("Name"), len(data["name"]))
    output = list()
    output.append(f"{bold}{'Name':<{name_length}}  Pool{end}")
    output.append(f"{data['name']:<{name_length}}  {data['pool']}")
    return "\n".join(output)


def format_volume_json(config, data):
    return jdumps(data)


def format_volume_json_pretty(config, data):
    return jdumps(data, indent=2)
