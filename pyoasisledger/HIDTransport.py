from smartcard.Observer import Observable
from smartcard.CardConnectionEvent import CardConnectionEvent

import hid
import logging
from ledgerblue.comm import HIDDongleHIDAPI
from ledgerblue.commException import CommException

from .LedgerConstants import LedgerConstants

logger = logging.getLogger(__name__)

# default of HIDDongleHIDAPI.exchange()
LEDGER_EXCHANGE_TIMEOUT= 20000


class TransportError(Exception):
    """Raised when an exchange with the device fails.

    `status` is the status word returned by the device, or None when the
    failure happened below the APDU layer (USB, HID framing).
    `response` holds the data returned along with the status, if any.
    """
    def __init__(self, status=None, response=b'', message=None):
        self.status= status
        self.response= bytes(response)
        if message is None:
            message= self.description
        super().__init__(message)

    @property
    def description(self):
        if self.status is None:
            return "Transport error"
        return LedgerConstants.SW_MESSAGES.get(self.status, f"[APDU_CODE_UNKNOWN] Unexpected status word {self.status:#06x}")


class LedgerDevice(Observable):
    """An open handle on one device running the Oasis app.

    exchange() sends one APDU and blocks until the response comes back.
    Observers (see LedgerConnector.LogExchangeObserver) are notified with
    'command' and 'response' CardConnectionEvents around each exchange.
    Subclasses implement _exchange() and _close().
    """

    def __init__(self):
        Observable.__init__(self)
        self.is_open= True

    def exchange(self, apdu):
        apdu= bytes(apdu)
        Observable.setChanged(self)
        Observable.notifyObservers(self, CardConnectionEvent('command', [list(apdu)]))

        try:
            (response, sw)= self._exchange(apdu)
        except (IOError, ValueError) as exc:
            raise TransportError(message=f"Exchange failed: {exc}") from exc

        Observable.setChanged(self)
        Observable.notifyObservers(self, CardConnectionEvent('response', [list(response), sw >> 8, sw & 0xFF]))
        if sw != LedgerConstants.SW_OK:
            raise TransportError(sw, response)
        return bytes(response)

    def close(self):
        if self.is_open:
            self.is_open= False
            self._close()

    def _exchange(self, apdu):
        raise NotImplementedError

    def _close(self):
        pass


class LedgerHIDDevice(LedgerDevice):
    """Ledger device reached through hidapi.

    APDU framing over HID is done by ledgerblue's HIDDongleHIDAPI; timeout
    is handed to its exchange().
    """

    def __init__(self, device, timeout=LEDGER_EXCHANGE_TIMEOUT):
        LedgerDevice.__init__(self)
        self.dongle= HIDDongleHIDAPI(device, True)
        self.timeout= timeout

    def _exchange(self, apdu):
        logger.debug("In _exchange")
        try:
            response= self.dongle.exchange(bytearray(apdu), self.timeout)
        except CommException as exc:
            # no data means the failure happened below the APDU layer
            if exc.data is None:
                raise TransportError(message=f"HID error: {exc.message}") from exc
            return (bytes(exc.data), exc.sw)
        return (bytes(response), LedgerConstants.SW_OK)

    def _close(self):
        logger.debug("In _close")
        self.dongle.close()


class LedgerHIDAdmin:
    """Enumerates and opens the Ledger devices plugged on this host."""

    def __init__(self, timeout=LEDGER_EXCHANGE_TIMEOUT):
        self.timeout= timeout

    def enumerate(self):
        devices= []
        for info in hid.enumerate(LedgerConstants.LEDGER_VENDOR_ID, 0):
            if info.get('interface_number') == 0 or info.get('usage_page') == LedgerConstants.LEDGER_USAGE_PAGE:
                devices.append(info)
        logger.debug(f"Found {len(devices)} Ledger device(s)")
        return devices

    def count_devices(self):
        return len(self.enumerate())

    def open(self, index):
        devices= self.enumerate()
        if not 0 <= index < len(devices):
            raise TransportError(message=f"No Ledger device at index {index}")
        info= devices[index]
        device= hid.device()
        try:
            device.open_path(info['path'])
        except (IOError, ValueError) as exc:
            raise TransportError(message=f"Unable to open Ledger device at index {index}: {exc}") from exc
        logger.info(f"Opened {info.get('product_string')} ({info.get('serial_number')})")
        return LedgerHIDDevice(device, self.timeout)
