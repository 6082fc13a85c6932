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

# Run with: python3 -m unittest -v test_hidtransport.py

import logging
import unittest
from unittest.mock import MagicMock, patch

from ledgerblue.commException import CommException
from ledgerblue.ledgerWrapper import wrapCommandAPDU

from pyoasisledger.LedgerConstants import LedgerConstants
from pyoasisledger.HIDTransport import TransportError, LedgerHIDDevice, LedgerHIDAdmin

logging.basicConfig(level=logging.INFO, format='%(levelname)s [%(module)s] %(funcName)s | %(message)s')
logger = logging.getLogger(__name__)

# device side of the Ledger HID framing, one 64-byte report per read
def hid_reports(response):
    data= bytes(wrapCommandAPDU(0x0101, response, 64))
    return [data[offset:offset + 64] for offset in range(0, len(data), 64)]

# stands for a hid.device(): records writes, replays queued reads
class FakeHid:
    def __init__(self, reads=()):
        self.writes= []
        self.reads= [list(packet) for packet in reads]
        self.closed= False

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def read(self, max_length, timeout_ms=0):
        if not self.reads:
            return []
        return self.reads.pop(0)

    def close(self):
        self.closed= True


class LedgerHIDDeviceTest(unittest.TestCase):

    def test_exchange(self):
        hid_device= FakeHid(hid_reports(bytes([0x02, 0x00, 0x00, 0x03, 0x90, 0x00])))
        device= LedgerHIDDevice(hid_device)
        response= device.exchange(bytes([0x05, 0x00, 0x00, 0x00, 0x00]))
        self.assertEqual(response, bytes([0x02, 0x00, 0x00, 0x03]))
        self.assertEqual(len(hid_device.writes), 1)
        # report id, channel 0x0101, tag 0x05, sequence 0, apdu length
        self.assertEqual(len(hid_device.writes[0]), 65)
        self.assertEqual(hid_device.writes[0][0:8], bytes([0x00, 0x01, 0x01, 0x05, 0x00, 0x00, 0x00, 0x05]))
        self.assertEqual(hid_device.writes[0][8:13], bytes([0x05, 0x00, 0x00, 0x00, 0x00]))

    def test_exchange_long_response(self):
        response= bytes(range(100))
        hid_device= FakeHid(hid_reports(response + b'\x90\x00'))
        device= LedgerHIDDevice(hid_device)
        self.assertEqual(device.exchange(bytes([0x05, 0x01, 0x00, 0x00, 0x00])), response)

    def test_exchange_error_status(self):
        hid_device= FakeHid(hid_reports(b'rejected' + b'\x69\x86'))
        device= LedgerHIDDevice(hid_device)
        with self.assertRaises(TransportError) as ctx:
            device.exchange(bytes([0x05, 0x02, 0x02, 0x00, 0x00]))
        self.assertEqual(ctx.exception.status, LedgerConstants.SW_COMMAND_NOT_ALLOWED)
        self.assertEqual(ctx.exception.response, b'rejected')
        self.assertEqual(str(ctx.exception), LedgerConstants.SW_MESSAGES[LedgerConstants.SW_COMMAND_NOT_ALLOWED])

    def test_exchange_comm_exception_status(self):
        device= LedgerHIDDevice(FakeHid())
        device.dongle= MagicMock()
        device.dongle.exchange.side_effect= CommException("Invalid status 6a80", LedgerConstants.SW_BAD_KEY_HANDLE, bytearray(b'bad path'))
        with self.assertRaises(TransportError) as ctx:
            device.exchange(bytes([0x05, 0x01, 0x00, 0x00, 0x00]))
        self.assertEqual(ctx.exception.status, LedgerConstants.SW_BAD_KEY_HANDLE)
        self.assertEqual(ctx.exception.response, b'bad path')

    def test_exchange_timeout(self):
        device= LedgerHIDDevice(FakeHid(), timeout=100)
        device.dongle= MagicMock()
        device.dongle.exchange.side_effect= CommException("Timeout")
        with self.assertRaises(TransportError) as ctx:
            device.exchange(bytes([0x05, 0x00, 0x00, 0x00, 0x00]))
        self.assertIsNone(ctx.exception.status)
        self.assertIn("Timeout", str(ctx.exception))
        self.assertEqual(device.dongle.exchange.call_args[0][1], 100)

    def test_exchange_io_error(self):
        hid_device= FakeHid()
        hid_device.write= MagicMock(side_effect=IOError("device disconnected"))
        device= LedgerHIDDevice(hid_device)
        with self.assertRaises(TransportError) as ctx:
            device.exchange(bytes([0x05, 0x00, 0x00, 0x00, 0x00]))
        self.assertIsNone(ctx.exception.status)
        self.assertIn("device disconnected", str(ctx.exception))

    def test_close(self):
        hid_device= FakeHid()
        device= LedgerHIDDevice(hid_device)
        device.close()
        device.close()
        self.assertTrue(hid_device.closed)
        self.assertFalse(device.is_open)

    def test_unknown_status_description(self):
        self.assertIn("0x6123", TransportError(0x6123).description)


class LedgerHIDAdminTest(unittest.TestCase):

    INTERFACES= [
        {'path': b'1', 'interface_number': 0, 'usage_page': 0xFFA0, 'product_string': 'Nano S', 'serial_number': '0001'},
        {'path': b'2', 'interface_number': 1, 'usage_page': 0xF1D0, 'product_string': 'Nano S', 'serial_number': '0001'},
        {'path': b'3', 'interface_number': -1, 'usage_page': 0xFFA0, 'product_string': 'Nano X', 'serial_number': '0002'},
    ]

    @patch("pyoasisledger.HIDTransport.hid")
    def test_enumerate(self, hid_module):
        hid_module.enumerate.return_value= self.INTERFACES
        admin= LedgerHIDAdmin()
        devices= admin.enumerate()
        hid_module.enumerate.assert_called_with(LedgerConstants.LEDGER_VENDOR_ID, 0)
        self.assertEqual([device['path'] for device in devices], [b'1', b'3'])
        self.assertEqual(admin.count_devices(), 2)

    @patch("pyoasisledger.HIDTransport.hid")
    def test_open(self, hid_module):
        hid_module.enumerate.return_value= self.INTERFACES
        admin= LedgerHIDAdmin(timeout=500)
        device= admin.open(1)
        hid_module.device.return_value.open_path.assert_called_with(b'3')
        self.assertIsInstance(device, LedgerHIDDevice)
        self.assertEqual(device.timeout, 500)
        self.assertIs(device.dongle.device, hid_module.device.return_value)

    @patch("pyoasisledger.HIDTransport.hid")
    def test_open_failure(self, hid_module):
        hid_module.enumerate.return_value= self.INTERFACES
        hid_module.device.return_value.open_path.side_effect= IOError("open failed")
        admin= LedgerHIDAdmin()
        with self.assertRaises(TransportError):
            admin.open(0)
        with self.assertRaises(TransportError):
            admin.open(5)


if __name__ == '__main__':
    unittest.main()
