#!/usr/bin/env python3
#
# Copyright (c) 2024 The pyoasisledger developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import click, logging

from pyoasisledger.LedgerConstants import LedgerConstants
from pyoasisledger.LedgerConnector import ProtocolError, UnsupportedVersionError, DeviceRejectionError, NotFoundError
from pyoasisledger.LedgerDataParser import InvalidPathError, PayloadTooLargeError, parse_bip44path, version_str
from pyoasisledger.LedgerDiscovery import list_oasis_devices, connect_ledger_oasis_app, find_ledger_oasis_app
from pyoasisledger.HIDTransport import LedgerHIDAdmin, TransportError
from pyoasisledger.version import PYOASISLEDGER_VERSION

DEFAULT_PATH= "m/44'/474'/0'/0'/0'"

MODE_NAMES= {
    LedgerConstants.VALIDATOR_MODE: "Validator",
    LedgerConstants.CONSUMER_MODE: "Consumer",
    LedgerConstants.UNKNOWN_MODE: "Unknown",
}

COMMAND_ERRORS= (TransportError, ProtocolError, UnsupportedVersionError, DeviceRejectionError,
                    NotFoundError, InvalidPathError, PayloadTooLargeError)

logging.basicConfig(level=logging.WARNING, format='%(levelname)s [%(module)s] %(funcName)s | %(message)s')
logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)

# Admin used to reach the devices, replaced in tests
admin_factory= LedgerHIDAdmin

# Accept any prefix of a command name.
#
# from <https://click.palletsprojects.com/en/8.0.x/advanced/?#command-aliases>
class AliasedGroup(click.Group):
    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        matches = [x for x in self.list_commands(ctx)
                   if x.startswith(cmd_name)]
        if not matches:
            return None
        elif len(matches) == 1:
            return click.Group.get_command(self, ctx, matches[0])
        ctx.fail(f"Too many matches: {', '.join(sorted(matches))}")

    def resolve_command(self, ctx, args):
        # always return the full command name
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name, cmd, args


class PathParamType(click.ParamType):
    name = "path"

    def convert(self, value, param, ctx):
        if isinstance(value, list):
            return value
        try:
            return parse_bip44path(value)
        except InvalidPathError as exc:
            self.fail(str(exc), param, ctx)

BIP44_PATH= PathParamType()


def parse_hex(value, what):
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise click.BadParameter(f"{what} should be an hex string")


@click.command(cls=AliasedGroup)
@click.option("--verbose", is_flag=True, help="Provide detailed logs")
@click.version_option(PYOASISLEDGER_VERSION)
def main(verbose):
    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("In main()")


@main.command()
@click.option("--path", type=BIP44_PATH, default=DEFAULT_PATH, show_default=True, help="BIP44 derivation path")
def list_devices(path):
    """List the Oasis apps found on the connected devices"""
    devices= list_oasis_devices(path, admin=admin_factory(), logger=logger)
    if not devices:
        click.echo("(none found)")
    for device in devices:
        click.echo("============ Device found")
        click.echo(f"Oasis App Version : {version_str(device['version'])}")
        click.echo(f"Oasis App Mode    : {MODE_NAMES.get(device['mode'], 'Unknown')}")
        click.echo(f"Oasis App Address : {device['address']}")


@main.command()
def get_version():
    """Show the version of the first supported Oasis app"""
    try:
        with find_ledger_oasis_app(admin=admin_factory(), logger=logger) as app:
            click.echo(f"Version: {version_str(app.version)}")
            click.echo(f"Mode: {MODE_NAMES.get(app.version.mode, 'Unknown')}")
    except COMMAND_ERRORS as exc:
        raise click.ClickException(str(exc))


@main.command()
@click.option("--path", type=BIP44_PATH, default=DEFAULT_PATH, show_default=True, help="BIP44 derivation path")
@click.option("--address", default="", help="Only use the device with this address")
@click.option("--show", is_flag=True, help="Display the address on the device and wait for confirmation")
def get_address(path, address, show):
    """Get the address and public key for a derivation path"""
    try:
        with connect_ledger_oasis_app(address, path, admin=admin_factory(), logger=logger) as app:
            if show:
                click.echo("Confirm the address on your device to proceed...")
                (pubkey, addr)= app.show_address_pubkey(path)
            else:
                (pubkey, addr)= app.get_address_pubkey(path)
    except COMMAND_ERRORS as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Address: {addr}")
    click.echo(f"Pubkey: {pubkey.hex()}")


@main.command()
@click.option("--path", type=BIP44_PATH, default=DEFAULT_PATH, show_default=True, help="BIP44 derivation path")
@click.option("--address", default="", help="Only use the device with this address")
def get_pubkey(path, address):
    """Get the public key for a derivation path"""
    try:
        with connect_ledger_oasis_app(address, path, admin=admin_factory(), logger=logger) as app:
            pubkey= app.get_pubkey(path)
    except COMMAND_ERRORS as exc:
        raise click.ClickException(str(exc))
    click.echo(pubkey.hex())


@main.command()
@click.option("--path", type=BIP44_PATH, default=DEFAULT_PATH, show_default=True, help="BIP44 derivation path")
@click.option("--address", default="", help="Only use the device with this address")
@click.option("--context", default="", help="Signature context (text)")
@click.option("--tx", required=True, help="Transaction to sign (hex)")
def sign(path, address, context, tx):
    """Sign a transaction (requires confirmation on the device)"""
    transaction= parse_hex(tx, "Transaction")
    try:
        with connect_ledger_oasis_app(address, path, admin=admin_factory(), logger=logger) as app:
            click.echo("Confirm the transaction on your device to proceed...")
            signature= app.sign(path, context.encode('utf8'), transaction)
    except COMMAND_ERRORS as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Signature: {signature.hex()}")


if __name__ == '__main__':
    main()
