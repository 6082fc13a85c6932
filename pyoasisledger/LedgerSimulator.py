"""
Emulate the Oasis app of a Ledger device, for tests and development.

SimulatedOasisApp answers GetVersion, GetAddress and Sign APDUs the way the
app does, without any real key: the pubkey and the signature are derived
from the path and the signed data with sha512.
"""
import logging
from hashlib import sha512
from struct import unpack

from .LedgerConstants import LedgerConstants
from .HIDTransport import LedgerDevice, TransportError

logger = logging.getLogger(__name__)


class SimulatedOasisApp(LedgerDevice):

    def __init__(self, address="oasis1qqsimulated0000000000000000000000000000", mode=LedgerConstants.CONSUMER_MODE,
                    version=(0, 0, 3), reject_sign=None, reject_reason=b'', fail_version=False, fail_address=False):
        LedgerDevice.__init__(self)
        self.address= address
        self.mode= mode
        self.version= tuple(version)
        # status word returned to the last sign chunk, if any
        self.reject_sign= reject_sign
        self.reject_reason= reject_reason
        self.fail_version= fail_version
        self.fail_address= fail_address
        # every APDU received, in order
        self.apdus= []
        self.sign_buffer= None
        self.was_closed= False

    def pubkey_for(self, path_bytes):
        return sha512(b'pubkey' + self.address.encode('ascii') + path_bytes).digest()[0:LedgerConstants.PUBKEY_SIZE]

    def _exchange(self, apdu):
        self.apdus.append(apdu)
        if len(apdu) < 5 or apdu[4] != len(apdu) - 5:
            return (b'', LedgerConstants.SW_WRONG_LENGTH)
        (cla, ins, p1, p2, lc)= apdu[0:5]
        data= apdu[5:]
        if cla not in (LedgerConstants.CLA_CONSUMER, LedgerConstants.CLA_VALIDATOR):
            return (b'', LedgerConstants.SW_CLA_NOT_SUPPORTED)

        if ins == LedgerConstants.INS_GET_VERSION:
            if self.fail_version:
                return (b'', LedgerConstants.SW_EXECUTION_ERROR)
            return (bytes([self.mode]) + bytes(self.version), LedgerConstants.SW_OK)

        if ins == LedgerConstants.INS_GET_ADDR_ED25519:
            if self.fail_address or len(data) != 4*LedgerConstants.PATH_LENGTH:
                return (b'', LedgerConstants.SW_BAD_KEY_HANDLE)
            return (self.pubkey_for(data) + self.address.encode('ascii'), LedgerConstants.SW_OK)

        if ins == LedgerConstants.INS_SIGN_ED25519:
            return self.sign_chunk(p1, data)

        return (b'', LedgerConstants.SW_INS_NOT_SUPPORTED)

    def sign_chunk(self, p1, data):
        if p1 == LedgerConstants.PAYLOAD_CHUNK_INIT:
            self.sign_buffer= [data]
            return (b'', LedgerConstants.SW_OK)
        if self.sign_buffer is None:
            return (b'', LedgerConstants.SW_CONDITIONS_NOT_SATISFIED)
        if p1 == LedgerConstants.PAYLOAD_CHUNK_ADD:
            self.sign_buffer.append(data)
            return (b'', LedgerConstants.SW_OK)
        if p1 != LedgerConstants.PAYLOAD_CHUNK_LAST:
            return (b'', LedgerConstants.SW_INVALID_P1P2)

        self.sign_buffer.append(data)
        (path_bytes, body)= (self.sign_buffer[0], b''.join(self.sign_buffer[1:]))
        self.sign_buffer= None
        if self.reject_sign is not None:
            return (self.reject_reason, self.reject_sign)
        if not body or body[0] > len(body) - 1:
            return (b'Invalid context length', LedgerConstants.SW_DATA_INVALID)
        logger.debug(f"Signing {len(body)} bytes for path {unpack('<5I', path_bytes)}")
        return (sha512(self.pubkey_for(path_bytes) + body).digest(), LedgerConstants.SW_OK)

    def _close(self):
        self.was_closed= True


class SimulatedAdmin:
    """Transport adapter over a fixed list of simulated devices.

    Devices listed in fail_open cannot be opened.
    """

    def __init__(self, devices, fail_open=()):
        self.devices= list(devices)
        self.fail_open= set(fail_open)
        self.opened= []

    def enumerate(self):
        return [{'path': str(index).encode('ascii')} for index in range(len(self.devices))]

    def count_devices(self):
        return len(self.devices)

    def open(self, index):
        if index in self.fail_open:
            raise TransportError(message=f"Unable to open simulated device {index}")
        device= self.devices[index]
        device.is_open= True
        self.opened.append(index)
        return device
