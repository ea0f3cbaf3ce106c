#!/usr/bin/env python3

# cli.py - ignvol Click CLI main library
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

from functools import wraps
from os import path
from sys import exit

from ignvol.cli.helpers import (
    MAX_CONTENT_WIDTH,
    VERSION,
    echo,
    format_error,
    format_volume_pretty,
    format_volume_json,
    format_volume_json_pretty,
)
from ignvol.lib.config import (
    MalformedConfigurationError,
    get_configuration_path,
    get_default_configuration,
    get_parsed_configuration,
)
from ignvol.lib.connection import VirtSession
from ignvol.lib.errors import IgnitionError
from ignvol.lib.log import Logger
from ignvol.lib.provisioner import ProvisioningRequest, VolumeProvisioner

import click


###############################################################################
# Context and completion handler, globals
###############################################################################


CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"], max_content_width=MAX_CONTENT_WIDTH
)

CLI_CONFIG = dict()


###############################################################################
# Local helper functions
###############################################################################


def finish(success=True, data=None, formatter=None):
    """
    Output data to the terminal and exit based on code (T/F or integer code)
    """

    if data is not None:
        if formatter is not None and success:
            echo(CLI_CONFIG, formatter(CLI_CONFIG, data))
        elif success:
            echo(CLI_CONFIG, data)
        else:
            echo(CLI_CONFIG, format_error(CLI_CONFIG, data))

    # Allow passing raw values if not a bool
    if isinstance(success, bool):
        if success:
            exit(0)
        else:
            exit(1)
    else:
        exit(success)


def version(ctx, param, value):
    """
    Show the version of the CLI client
    """

    if not value or ctx.resilient_parsing:
        return

    echo(CLI_CONFIG, f"Parallel Virtual Cluster ignition volume client version {VERSION}")
    ctx.exit()


def load_configuration():
    """
    Parse the configuration file, or use defaults when none exists
    """

    config_file = CLI_CONFIG.get("config_file")
    if config_file is not None and path.exists(config_file):
        config = get_parsed_configuration(config_file)
    elif CLI_CONFIG.get("config_explicit"):
        raise MalformedConfigurationError(f"File {config_file} does not exist")
    else:
        config = get_default_configuration()

    if CLI_CONFIG.get("uri") is not None:
        config["libvirt_uri"] = CLI_CONFIG["uri"]
    if not CLI_CONFIG.get("colour", True):
        config["log_colours"] = False
    if CLI_CONFIG.get("quiet", False):
        config["console_logging"] = False
    if CLI_CONFIG.get("debug", False):
        config["debug"] = True

    return config


###############################################################################
# Click command decorators
###############################################################################


def provisioner_req(function):
    """
    General Decorator:
    Wraps a Click command which requires a connected provisioner, passed as the first argument
    """

    @wraps(function)
    def with_provisioner(*args, **kwargs):
        try:
            config = load_configuration()
        except MalformedConfigurationError as e:
            finish(False, str(e))

        try:
            logger = Logger(config)
        except OSError as e:
            finish(False, f"ERROR: Failed to open log file: {e}")

        session = VirtSession(config, logger=logger)
        try:
            session.connect()
            provisioner = VolumeProvisioner(session, config, logger=logger)
            return function(provisioner, *args, **kwargs)
        except IgnitionError as e:
            finish(False, str(e))
        finally:
            session.disconnect()
            logger.terminate()

    return with_provisioner


def format_opt(formats, default_format="pretty"):
    """
    Click Option Decorator with argument:
    Wraps a Click command that can output in multiple formats; {formats} defines a dictionary of
    formatting functions for the command with keys as valid format types
    e.g. { "json": format_function_1, "pretty": format_function_2 }
    """

    def decorator(function):
        @click.option(
            "--format",
            "output_format",
            default=default_format,
            show_default=True,
            type=click.Choice(formats.keys()),
            help="Output format of command information.",
        )
        @wraps(function)
        def format_action(*args, **kwargs):
            kwargs["format_function"] = formats[kwargs["output_format"]]
            del kwargs["output_format"]
            return function(*args, **kwargs)

        return format_action

    return decorator


###############################################################################
# > ignvol create
###############################################################################
@click.command(name="create", short_help="Create an ignition volume.")
@click.option(
    "-n", "--name", "name", required=True, help="Name of the new volume."
)
@click.option(
    "-p", "--pool", "pool", default="default", show_default=True, help="Storage pool to create the volume in."
)
@click.argument("content")
@provisioner_req
def cli_create(provisioner, name, pool, content):
    """
    Create a raw volume NAME in storage pool POOL holding the ignition CONTENT, and print its identifier.

    CONTENT is either the path of an existing ignition file or an inline JSON object.
    """

    external_id = provisioner.create(ProvisioningRequest(name, pool, content))
    finish(True, external_id)


###############################################################################
# > ignvol show
###############################################################################
@click.command(name="show", short_help="Show the volume behind an identifier.")
@click.argument("identifier")
@format_opt(
    {
        "pretty": format_volume_pretty,
        "json": format_volume_json,
        "json-pretty": format_volume_json_pretty,
    }
)
@provisioner_req
def cli_show(provisioner, identifier, format_function):
    """
    Show the name and storage pool of the ignition volume behind IDENTIFIER.
    """

    details = provisioner.read(identifier)
    finish(True, details, format_function)


###############################################################################
# > ignvol delete
###############################################################################
@click.command(name="delete", short_help="Delete the volume behind an identifier.")
@click.argument("identifier")
@click.option(
    "-y", "--yes", "confirm_flag", is_flag=True, default=False, help="Confirm the removal."
)
@provisioner_req
def cli_delete(provisioner, identifier, confirm_flag):
    """
    Delete the ignition volume behind IDENTIFIER from its storage pool.
    """

    if not confirm_flag:
        try:
            click.confirm(
                f"Remove ignition volume {identifier}", prompt_suffix="? ", abort=True
            )
        except click.Abort:
            finish(False, "Aborted.")

    details = provisioner.delete(identifier)
    finish(True, f"Removed volume \"{details['name']}\" from pool \"{details['pool']}\".")


###############################################################################
# > ignvol
###############################################################################
@click.group(
    name="ignvol",
    context_settings=CONTEXT_SETTINGS,
    help="Parallel Virtual Cluster ignition volume client",
)
@click.option(
    "-c",
    "--config",
    "_config_file",
    envvar="IGNVOL_CONFIG_FILE",
    default=None,
    help="Configuration file to use (default: /etc/pvc/ignvol.yaml).",
)
@click.option(
    "-u", "--uri", "_uri", default=None, help="Override the Libvirt connection URI."
)
@click.option(
    "-q", "--quiet", "_quiet", is_flag=True, default=False, help="Suppress log output."
)
@click.option(
    "-d", "--debug", "_debug", is_flag=True, default=False, help="Enable debug log output."
)
@click.option(
    "--colour/--no-colour", "_colour", default=True, help="Colourize output."
)
@click.option(
    "-v",
    "--version",
    "_version",
    is_flag=True,
    callback=version,
    expose_value=False,
    is_eager=True,
    help="Show CLI version and exit.",
)
def cli(_config_file, _uri, _quiet, _debug, _colour):
    """
    Parallel Virtual Cluster ignition volume client
    """

    CLI_CONFIG["config_explicit"] = _config_file is not None
    CLI_CONFIG["config_file"] = get_configuration_path(_config_file)
    CLI_CONFIG["uri"] = _uri
    CLI_CONFIG["quiet"] = _quiet
    CLI_CONFIG["debug"] = _debug
    CLI_CONFIG["colour"] = _colour


###############################################################################
# Click command tree
###############################################################################

cli.add_command(cli_create)
cli.add_command(cli_show)
cli.add_command(cli_delete)
