# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
#
# Relax style and documentation requirements for unit tests.
# pylint: disable=missing-function-docstring,missing-class-docstring
#

"""
Unit tests for spdrw.Session connection handling
"""

import threading

from unittest import TestCase, mock

import serial

from spdrw import Device, Monitor, Session

from .test_utils import FAST_POLL, SimulatedFirmware, SimulatedSerial, create_device


class _RecordingMonitor(Monitor):
    def __init__(self):
        super().__init__()
        self.closed = False

    def close(self):
        self.closed = True


class TestSessionConstruction(TestCase):

    def test_default_channel(self):
        with mock.patch('spdrw.session.serial.Serial') as serial_cls:
            Session('/dev/ttyACM0', baudrate=9600)

        kwargs = serial_cls.call_args[1]
        self.assertEqual(kwargs['baudrate'], 9600)
        self.assertEqual(kwargs['timeout'], 10.0)
        self.assertNotIn('port', kwargs)

    def test_own_lock(self):
        a = Session('a', channel=SimulatedSerial())
        b = Session('b', channel=SimulatedSerial())
        self.assertIsNot(a.lock, b.lock)

    def test_shared_lock(self):
        lock = threading.RLock()
        a = Session('a', channel=SimulatedSerial(), lock=lock)
        b = Session('b', channel=SimulatedSerial(), lock=lock)
        self.assertIs(a.lock, lock)
        self.assertIs(b.lock, lock)

    def test_eeprom_address(self):
        s = Session('a', 0x50, 512, channel=SimulatedSerial())
        self.assertEqual(s.eeprom_address, 0x50)
        self.assertEqual(s.spd_size, 512)
        self.assertEqual(str(s), 'a:0x50')

        with self.assertRaises(ValueError):
            s.eeprom_address = 0x80

        with self.assertRaises(TypeError):
            s.eeprom_address = '0x50'

        with self.assertRaises(ValueError):
            s.spd_size = 0

    def test_abstract_test(self):
        s = Session('a', channel=SimulatedSerial())
        with self.assertRaises(NotImplementedError):
            s.test()

    def test_counts_when_closed(self):
        s = Session('a', channel=SimulatedSerial())
        self.assertEqual(s.bytes_to_read, 0)
        self.assertEqual(s.bytes_to_write, 0)


class TestConnect(TestCase):

    def test_success(self):
        device, channel, _ = create_device(connect=False)
        self.assertFalse(device.connected)
        self.assertTrue(device.connect())
        self.assertTrue(device.connected)
        self.assertTrue(channel.is_open)

    def test_idempotent(self):
        device, channel, firmware = create_device()
        prompts = firmware.test_prompts

        self.assertTrue(device.connect())
        self.assertEqual(channel.open_count, 1)
        self.assertEqual(firmware.test_prompts, prompts)

    def test_open_failure(self):
        channel = SimulatedSerial(SimulatedFirmware(), fail_open=True)
        device = Device('/dev/ttyNONE', channel=channel, poll=FAST_POLL)

        self.assertFalse(device.connect())
        self.assertFalse(device.connected)

    def test_wrong_sentinel(self):
        device, channel, _ = create_device(SimulatedFirmware(welcome=b'?'), connect=False)

        self.assertFalse(device.connect())
        self.assertFalse(device.connected)
        self.assertFalse(channel.is_open)

    def test_unresponsive(self):
        device, channel, _ = create_device(SimulatedFirmware(silent=True), connect=False)

        self.assertFalse(device.connect())
        self.assertFalse(device.connected)
        self.assertFalse(channel.is_open)

    def test_slow_to_wake(self):
        firmware = SimulatedFirmware(wake_after=5)
        device, channel, _ = create_device(firmware, connect=False)

        self.assertTrue(device.connect())
        self.assertEqual(firmware.test_prompts, 6)
        self.assertEqual(channel.lines.count('t'), 6)

    def test_reconnect(self):
        device, channel, _ = create_device()
        device.disconnect()
        self.assertTrue(device.connect())
        self.assertEqual(channel.open_count, 2)


class TestDisconnect(TestCase):

    def test_disconnect(self):
        device, channel, _ = create_device()
        channel.inject(b'stale')

        self.assertTrue(device.disconnect())
        self.assertFalse(device.connected)
        self.assertFalse(channel.is_open)
        self.assertEqual(channel.read(16), b'')

    def test_idempotent(self):
        device, _, _ = create_device()
        self.assertTrue(device.disconnect())
        self.assertTrue(device.disconnect())

        never_connected, _, _ = create_device(connect=False)
        self.assertTrue(never_connected.disconnect())

    def test_context_manager(self):
        monitor = _RecordingMonitor()
        channel = SimulatedSerial(SimulatedFirmware())

        with Device('/dev/ttySIM0', channel=channel, poll=FAST_POLL, monitor=monitor) as device:
            self.assertTrue(device.connected)

        self.assertFalse(channel.is_open)
        self.assertTrue(monitor.closed)

    def test_teardown(self):
        device, channel, _ = create_device()
        del device
        self.assertFalse(channel.is_open)


class TestChannelFault(TestCase):

    def test_connect(self):
        channel = SimulatedSerial(SimulatedFirmware(welcome=b'?'))
        channel.reset_error = serial.SerialException('device reports readiness to read but returned no data')
        device = Device('/dev/ttySIM0', channel=channel, poll=FAST_POLL)

        self.assertFalse(device.connect())
        self.assertFalse(device.connected)
        self.assertFalse(channel.is_open)

    def test_disconnect(self):
        device, channel, _ = create_device()
        channel.reset_error = serial.SerialException('gone')

        self.assertTrue(device.disconnect())
        self.assertFalse(device.connected)
        self.assertFalse(channel.is_open)

    def test_teardown(self):
        device, channel, _ = create_device()
        channel.reset_error = serial.SerialException('gone')
        del device
        self.assertFalse(channel.is_open)

    def test_find(self):
        ports = {
            '/dev/ttyACM0': SimulatedFirmware(welcome=b'?'),
            '/dev/ttyACM1': SimulatedFirmware(),
        }
        channels = []

        def faulty_serial(**_kwargs):
            channel = SimulatedSerial(ports=ports)
            channel.reset_error = serial.SerialException('gone')
            channels.append(channel)
            return channel

        with mock.patch('spdrw.session.serial.Serial', side_effect=faulty_serial):
            found = Device.find(list(ports), poll=FAST_POLL)

        self.assertEqual(found, [])
        self.assertEqual([c.open_count for c in channels], [1, 1])
        self.assertFalse(any(c.is_open for c in channels))


class TestClearBuffer(TestCase):

    def test_clear(self):
        device, channel, _ = create_device()
        channel.inject(b'\x01\x02\x03')
        self.assertEqual(device.bytes_to_read, 3)

        device.clear_buffer()
        self.assertEqual(device.bytes_to_read, 0)
        self.assertEqual(device.bytes_to_write, 0)

    def test_clear_when_disconnected(self):
        device, _, _ = create_device(connect=False)
        device.clear_buffer()
