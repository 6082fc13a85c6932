import logging

from .LedgerConstants import LedgerConstants
from .LedgerDataParser import VersionInfo, InvalidPathError
from .LedgerConnector import LedgerOasis, NotFoundError, ProtocolError, UnsupportedVersionError
from .HIDTransport import LedgerHIDAdmin, TransportError
from .version import MIN_APP_VERSION

# errors that make a device unsuitable during discovery
CANDIDATE_ERRORS= (TransportError, ProtocolError, UnsupportedVersionError, ValueError)


def get_mode_for_role(role):
    if role == LedgerConstants.ROLE_CONSENSUS:
        return LedgerConstants.VALIDATOR_MODE
    return LedgerConstants.CONSUMER_MODE

def get_mode_for_path(bip44path):
    if len(bip44path) != LedgerConstants.PATH_LENGTH:
        raise InvalidPathError(f"Path should contain {LedgerConstants.PATH_LENGTH} elements")
    # purpose may be given hardened (43') or not
    if bip44path[0] & ~LedgerConstants.HARDENED == LedgerConstants.PATH_PURPOSE_CONSENSUS:
        return LedgerConstants.VALIDATOR_MODE
    return LedgerConstants.CONSUMER_MODE


def list_oasis_devices(bip44path, admin=None, logger=None):
    """Probe every device and report the Oasis apps found.

    Returns a list of dicts with index, version, mode, pubkey and address.
    Devices that fail any step are skipped.
    """
    logger= logger if logger is not None else logging.getLogger(__name__)
    logger.debug("In list_oasis_devices")
    admin= admin if admin is not None else LedgerHIDAdmin()

    found= []
    for index in range(len(admin.enumerate())):
        try:
            device= admin.open(index)
        except TransportError as exc:
            logger.info(f"Unable to open device {index}: {exc}")
            continue

        with LedgerOasis(device, logger=logger) as app:
            try:
                version= app.get_version()
                (pubkey, address)= app.get_address_pubkey(bip44path)
            except CANDIDATE_ERRORS as exc:
                logger.info(f"Skipping device {index}: {exc}")
                continue

        found.append({
            "index": index,
            "version": version,
            "mode": version.mode,
            "pubkey": pubkey,
            "address": address,
        })
    return found


def connect_ledger_oasis_app(seeking_address, bip44path, admin=None, logger=None):
    """Return a session with the device whose address for bip44path is seeking_address.

    An empty seeking_address selects the first device that answers. The app
    mode is derived from the path purpose, no version check is made.
    """
    logger= logger if logger is not None else logging.getLogger(__name__)
    logger.debug("In connect_ledger_oasis_app")
    admin= admin if admin is not None else LedgerHIDAdmin()

    mode= get_mode_for_path(bip44path)
    for index in range(len(admin.enumerate())):
        try:
            device= admin.open(index)
        except TransportError as exc:
            logger.info(f"Unable to open device {index}: {exc}")
            continue

        app= LedgerOasis(device, VersionInfo(mode, 0, 0, 0), logger=logger)
        matched= False
        try:
            (pubkey, address)= app.get_address_pubkey(bip44path)
            matched= not seeking_address or address == seeking_address
            if not matched:
                logger.debug(f"Device {index} has address {address}, not the one requested")
        except CANDIDATE_ERRORS as exc:
            logger.info(f"Skipping device {index}: {exc}")
        finally:
            if not matched:
                app.close()

        if matched:
            logger.info(f"Connected to device {index} with address {address}")
            return app

    raise NotFoundError("No Oasis app with specified address found")


def find_ledger_oasis_app(admin=None, logger=None, min_version=MIN_APP_VERSION):
    """Return a session with the first device running a supported Oasis app."""
    logger= logger if logger is not None else logging.getLogger(__name__)
    logger.debug("In find_ledger_oasis_app")
    admin= admin if admin is not None else LedgerHIDAdmin()

    for index in range(len(admin.enumerate())):
        try:
            device= admin.open(index)
        except TransportError as exc:
            logger.info(f"Unable to open device {index}: {exc}")
            continue

        app= LedgerOasis(device, logger=logger, min_version=min_version)
        supported= False
        try:
            version= app.get_version()
            app.check_version(version)
            supported= True
        except CANDIDATE_ERRORS as exc:
            logger.info(f"Skipping device {index}: {exc}")
        finally:
            if not supported:
                app.close()

        if supported:
            return app

    raise NotFoundError("No Oasis app found")
