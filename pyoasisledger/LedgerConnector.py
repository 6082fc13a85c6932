from smartcard.CardConnectionObserver import CardConnectionObserver
from smartcard.util import toHexString

import logging

from .LedgerConstants import LedgerConstants
from .LedgerDataParser import (VersionInfo, bip44path2bytes, prepare_chunks, chunk_tag,
    parse_version, parse_address_pubkey, is_version_supported, version_str)
from .HIDTransport import TransportError
from .version import MIN_APP_VERSION

logger = logging.getLogger(__name__)

# simple observer that logs the APDUs exchanged with the device
class LogExchangeObserver(CardConnectionObserver):
    def __init__(self, logger):
        self.logger= logger

    def update(self, device, ccevent):
        if 'command'==ccevent.type:
            self.logger.debug(f"> {toHexString(ccevent.args[0])}")
        elif 'response'==ccevent.type:
            if []==ccevent.args[0]:
                self.logger.debug(f"< [] {toHexString(ccevent.args[-2:])}")
            else:
                self.logger.debug(f"< {toHexString(ccevent.args[0])} {toHexString(ccevent.args[-2:])}")


class LedgerOasis:
    """A session with the Oasis app running on one Ledger device.

    The session owns the device handle: call close() (or use it as a context
    manager) once done. Exchanges are sequential, each one blocks until the
    device answers.
    """

    def __init__(self, device, version=None, logger=None, chunk_size=LedgerConstants.USER_MESSAGE_CHUNK_SIZE,
                    min_version=MIN_APP_VERSION):
        self.logger= logger if logger is not None else logging.getLogger(__name__)
        self.logger.debug("In __init__")
        self.device= device
        self.version= version if version is not None else VersionInfo(LedgerConstants.UNKNOWN_MODE, 0, 0, 0)
        self.chunk_size= chunk_size
        self.min_version= tuple(min_version)
        self.observer= LogExchangeObserver(self.logger)
        self.device.addObserver(self.observer)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.logger.debug("In close")
        if self.device.is_open:
            self.device.deleteObserver(self.observer)
            self.device.close()

    def get_cla(self):
        if self.version.mode == LedgerConstants.VALIDATOR_MODE:
            return LedgerConstants.CLA_VALIDATOR
        return LedgerConstants.CLA_CONSUMER

    ###########################################
    #                 Version                 #
    ###########################################

    def get_version(self):
        self.logger.debug("In get_version")
        cla= self.get_cla()
        ins= LedgerConstants.INS_GET_VERSION
        p1= 0x00
        p2= 0x00
        lc= 0x00
        apdu= bytes([cla, ins, p1, p2, lc])

        try:
            response= self.device.exchange(apdu)
        except TransportError as exc:
            self.logger.error(f"Error while getting version: {exc!r}")
            raise ProtocolError(f"Unable to get app version: {exc}") from exc
        try:
            self.version= parse_version(response)
        except ValueError as exc:
            raise ProtocolError(f"Invalid version response: {exc}") from exc
        self.logger.debug(f"App version: {version_str(self.version)} (mode {self.version.mode})")
        return self.version

    def check_version(self, version=None):
        return check_version(self.version if version is None else version, self.min_version)

    ###########################################
    #           Addresses & pubkeys           #
    ###########################################

    def get_pubkey(self, bip44path):
        """Public key for the BIP44 path. No confirmation on the device."""
        (pubkey, address)= self.retrieve_address_pubkey(bip44path, False)
        return pubkey

    def get_address_pubkey(self, bip44path):
        """(pubkey, bech32 address) for the BIP44 path. No confirmation on the device."""
        return self.retrieve_address_pubkey(bip44path, False)

    def show_address_pubkey(self, bip44path):
        """(pubkey, bech32 address) for the BIP44 path, displayed and confirmed on the device."""
        return self.retrieve_address_pubkey(bip44path, True)

    def retrieve_address_pubkey(self, bip44path, require_confirmation):
        self.logger.debug("In retrieve_address_pubkey")
        path_bytes= bip44path2bytes(bip44path, LedgerConstants.PATH_LENGTH)
        cla= self.get_cla()
        ins= LedgerConstants.INS_GET_ADDR_ED25519
        p1= 0x01 if require_confirmation else 0x00
        p2= 0x00
        lc= len(path_bytes)
        apdu= bytes([cla, ins, p1, p2, lc]) + path_bytes

        response= self.device.exchange(apdu)
        try:
            (pubkey, address)= parse_address_pubkey(response)
        except ValueError as exc:
            raise ProtocolError(f"Invalid address response: {exc}") from exc
        return (pubkey, address)

    ###########################################
    #                 Signing                 #
    ###########################################

    def sign(self, bip44path, context, transaction):
        """Sign a transaction with the key at bip44path.

        The request is sent in chunks, only the response to the last chunk
        (the signature) is returned. Requires user confirmation on the device.
        """
        self.logger.debug("In sign")
        path_bytes= bip44path2bytes(bip44path, LedgerConstants.PATH_LENGTH)
        chunks= prepare_chunks(path_bytes, context, transaction, self.chunk_size)

        response= b''
        for chunk_index, chunk in enumerate(chunks):
            cla= self.get_cla()
            ins= LedgerConstants.INS_SIGN_ED25519
            p1= chunk_tag(chunk_index, len(chunks))
            p2= 0x00
            lc= len(chunk)
            apdu= bytes([cla, ins, p1, p2, lc]) + chunk

            try:
                response= self.device.exchange(apdu)
            except TransportError as exc:
                if exc.status in LedgerConstants.SW_REJECTIONS:
                    # the device explains the refusal in the response body
                    reason= exc.response.decode('utf8', errors='replace') or exc.description
                    self.logger.info(f"Sign request rejected by the device: {reason}")
                    raise DeviceRejectionError(exc.status, reason) from exc
                raise
        return response


def check_version(version, minimum=MIN_APP_VERSION):
    logger.debug("In check_version")
    if not is_version_supported(version, minimum):
        required= VersionInfo(version.mode, *minimum)
        raise UnsupportedVersionError(f"App Version required {version_str(required)} - Version found: {version_str(version)}")


class ProtocolError(Exception):
    """Raised when the device response is missing or malformed"""
    pass

class UnsupportedVersionError(Exception):
    """Raised when the app version is below the minimum supported version"""
    pass

class DeviceRejectionError(Exception):
    """Raised when the device refuses to sign, with the reason given by the device"""
    def __init__(self, status, reason):
        self.status= status
        self.reason= reason
        super().__init__(reason)

class NotFoundError(Exception):
    """Raised when no suitable device is found"""
    pass
