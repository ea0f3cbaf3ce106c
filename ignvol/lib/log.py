#!/usr/bin/env python3

# log.py - PVC ignition volume logger functions
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

import sys

from datetime import datetime
from threading import Lock


class Logger(object):
    # Define a logger class for a provisioner instance
    # Keeps record of where to log, and is passed messages which are
    # formatted in various ways based off secondary characteristics.

    # ANSII colours for output
    fmt_red = "\033[91m"
    fmt_green = "\033[92m"
    fmt_yellow = "\033[93m"
    fmt_blue = "\033[94m"
    fmt_purple = "\033[95m"
    fmt_cyan = "\033[96m"
    fmt_white = "\033[97m"
    fmt_bold = "\033[1m"
    fmt_end = "\033[0m"

    # Format maps
    format_map_colourized = {
        # Colourized formatting with chevron prompts (log_colours = True)
        "o": {"colour": fmt_green, "prompt": ">>> "},
        "e": {"colour": fmt_red, "prompt": ">>> "},
        "w": {"colour": fmt_yellow, "prompt": ">>> "},
        "t": {"colour": fmt_purple, "prompt": ">>> "},
        "i": {"colour": fmt_blue, "prompt": ">>> "},
        "s": {"colour": fmt_cyan, "prompt": ">>> "},
        "d": {"colour": fmt_white, "prompt": ">>> "},
        "x": {"colour": "", "prompt": ""},
    }
    format_map_textual = {
        # Uncolourized formatting with text prompts (log_colours = False)
        "o": {"colour": "", "prompt": "ok: "},
        "e": {"colour": "", "prompt": "failed: "},
        "w": {"colour": "", "prompt": "warning: "},
        "t": {"colour": "", "prompt": "tick: "},
        "i": {"colour": "", "prompt": "info: "},
        "s": {"colour": "", "prompt": "system: "},
        "d": {"colour": "", "prompt": "debug: "},
        "x": {"colour": "", "prompt": ""},
    }

    # Initialization of instance
    def __init__(self, config):
        self.config = config

        if self.config["file_logging"]:
            self.logfile = self.config["log_directory"] + "/ignvol.log"
            # We open the logfile for the duration of our session, but have a hup function
            self.writer = open(self.logfile, "a", buffering=1)

        # Serializes writes from concurrent provisioning threads
        self.write_lock = Lock()

        self.last_colour = ""
        self.last_prompt = ""

    # Provide a hup function to close and reopen the writer
    def hup(self):
        if self.config["file_logging"]:
            self.writer.close()
            self.writer = open(self.logfile, "a", buffering=1)

    # Provide a termination function so all messages are flushed before exiting
    def terminate(self):
        if self.config["file_logging"]:
            self.writer.close()

    # Output function
    def out(self, message, state=None, prefix=""):
        # Debug messages are dropped unless debugging is on
        if state == "d" and not self.config["debug"]:
            return

        # Get the date
        if self.config["log_dates"]:
            date = "{} ".format(datetime.now().strftime("%Y/%m/%d %H:%M:%S.%f"))
        else:
            date = ""

        # Get the format map
        if self.config["log_colours"]:
            format_map = self.format_map_colourized
            endc = Logger.fmt_end
        else:
            format_map = self.format_map_textual
            endc = ""

        # Define an undefined state as 'x'; no date in these prompts
        if not state:
            state = "x"
            date = ""

        # Continuation lines reuse the previous colour and prompt
        if state == "x":
            colour = self.last_colour
            prompt = self.last_prompt
        else:
            colour = format_map[state]["colour"]
            prompt = format_map[state]["prompt"]

        # Append space and separator to prefix
        if prefix != "":
            prefix = prefix + " - "

        # Assemble message string
        message = colour + prompt + endc + date + prefix + message

        with self.write_lock:
            # Log to the console; stdout is reserved for command output
            if self.config["console_logging"]:
                print(message, file=sys.stderr)

            # Log to file
            if self.config["file_logging"]:
                self.writer.write(message + "\n")

            # Set last message variables
            self.last_colour = colour
            self.last_prompt = prompt
