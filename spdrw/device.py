# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
"""
Command/response exchanges with an SPD reader/writer device, and the
discovery operations built on them.
"""

import time

from serial.tools import list_ports

from . import log
from .command import Command, Response, Pin, PinState
from .errors import DeviceError, ResponseTimeout, OutOfRangeAccess
from .progress import Progress
from .session import Session


class Device(Session):
    """
    A :py:class:`~spdrw.Session` connected to a microcontroller running the SPD
    reader/writer firmware.

    Every command is a sequence of ASCII tokens, each sent as its own line.
    The device answers with zero or more bytes. A response is considered complete
    once the channel goes idle; there is no length header.

    Use :py:meth:`send_command()` to perform a complete exchange. If you need
    :py:meth:`execute_command()` and :py:meth:`get_response()` individually, hold
    :py:attr:`lock` across both calls so that no other thread's command is
    interleaved with yours::

        with device.lock:
            device.execute_command('v')
            version = device.get_response()

    Constructor arguments are those of :py:class:`~spdrw.Session`.
    """

    # Attempts made to return the Select Address pins to their default state
    PIN_RESTORE_ATTEMPTS = 3

    def __init__(self, port, eeprom_address=None, spd_size=None, **kwargs):
        super().__init__(port, eeprom_address, spd_size, **kwargs)
        self._fw_version = None

        # Populated by test_advanced_features()
        self.advanced_features = False

    @staticmethod
    def _tokenize(command) -> list:
        tokens = []
        for item in command:
            if isinstance(item, bool):
                tokens.append('1' if item else '0')
            elif isinstance(item, int):
                tokens.append('{:d}'.format(item))
            elif isinstance(item, str):
                tokens += item.split()
            else:
                raise TypeError('Invalid command token: ' + repr(item))

        if len(tokens) == 0:
            raise ValueError('Empty command')

        return tokens

    def execute_command(self, *command):
        """
        Send a command to the device without reading its response.

        The *command* tokens may be strings or integers. A string containing
        whitespace is split into multiple tokens, so ``execute_command('s 80 87')``
        and ``execute_command('s', 80, 87)`` are equivalent.

        Stale data is cleared from the port buffers before the command is written.
        Nothing is sent if the session is not connected.
        """
        tokens = self._tokenize(command)

        with self.lock:
            if not self.connected:
                self.log.debug('Not connected. Dropping command: ' + ' '.join(tokens))
                return

            self.clear_buffer()

            for token in tokens:
                self.write_raw((token + '\n').encode('ascii'))

            self.log.debug('Sent: ' + ' '.join(tokens))

    def get_response(self, offset=None):
        """
        Wait for and return the device's response to the preceding command.

        The port is polled every :py:attr:`PollSettings.interval` seconds, up to
        :py:attr:`PollSettings.retries` times. If no data arrives,
        :py:exc:`~spdrw.ResponseTimeout` is raised. Otherwise all available bytes are
        read, the buffers are cleared, and the data is returned as ``bytes``.

        If *offset* is provided, only the byte at that index is returned (as an ``int``),
        and :py:exc:`~spdrw.OutOfRangeAccess` is raised if the response is too short.

        An empty response is returned immediately when the session is not connected.
        """
        with self.lock:
            if not self.connected:
                return self._select(b'', offset)

            for _ in range(self.poll.retries):
                if self.bytes_to_read > 0:
                    break
                time.sleep(self.poll.interval)
            else:
                self.log.warning('Response timeout')
                raise ResponseTimeout(self.port, self.poll.retries, self.poll.interval)

            data = bytearray()
            while self.bytes_to_read > 0:
                byte = self.read_raw(1, update_monitor=False)
                if len(byte) == 0:
                    break
                data += byte

            response = bytes(data)
            self.monitor.read(response)
            self.clear_buffer()

        self.log.debug('Received: ' + response.hex())
        return self._select(response, offset)

    @staticmethod
    def _select(response: bytes, offset):
        if offset is None:
            return response

        if not isinstance(offset, int):
            raise TypeError('Invalid response offset: ' + str(offset))

        if offset < 0 or offset >= len(response):
            raise OutOfRangeAccess(offset, len(response))

        return response[offset]

    def send_command(self, *command, offset=None):
        """
        Send a command and return the device's response, holding the session lock for
        the entire exchange.

        Arguments are those of :py:meth:`execute_command()` and :py:meth:`get_response()`.
        """
        with self.lock:
            self.execute_command(*command)
            return self.get_response(offset)

    def _query(self, *command):
        """
        Return the first byte of the response to *command*, or ``None`` when disconnected.
        """
        with self.lock:
            if not self.connected:
                return None
            return self.send_command(*command, offset=0)

    def test(self) -> bool:
        """
        Returns ``True`` if the device answers the communication test with the expected
        welcome byte.

        A freshly attached device may need several prompts before its firmware begins
        responding, so the test command is re-sent on every poll until data arrives.
        """
        with self.lock:
            if not self.connected:
                return False

            try:
                for _ in range(self.poll.retries):
                    self.execute_command(Command.TEST_COMM)
                    time.sleep(self.poll.interval)
                    if self.bytes_to_read > 0:
                        break
                else:
                    self.log.debug('No reply to communication test')
                    return False

                response = self.get_response()
            except (DeviceError, OSError) as error:
                self.log.debug('Communication test failed: ' + str(error))
                return False

        if len(response) == 0 or response[0] != Response.WELCOME:
            self.log.debug('Unexpected communication test response: ' + response.hex())
            return False

        return True

    def scan(self, start=0x50, end=0x57) -> list:
        """
        Scan the device's I2C bus for responding addresses in the inclusive
        range [*start*, *end*] and return those found, in ascending order.

        The firmware answers with one byte per address in the range: ``0`` for an
        absent device, or the address itself if a device acknowledged.

        An empty list is returned if the session is not connected or no response was received.
        """
        if not isinstance(start, int) or not isinstance(end, int):
            raise TypeError('Scan range bounds must be integers')

        if start < 0 or end < start:
            raise ValueError('Invalid scan range: {:d} - {:d}'.format(start, end))

        with self.lock:
            if not self.connected:
                return []

            try:
                response = self.send_command(Command.SCAN_BUS, start, end)
            except (DeviceError, OSError) as error:
                self.log.warning('Bus scan failed: ' + str(error))
                return []

        addresses = []
        for i, value in enumerate(response[:end - start + 1]):
            addr = start + i
            if value != 0 and value == addr:
                addresses.append(addr)

        if addresses:
            found = ', '.join('0x{:02x}'.format(a) for a in addresses)
            self.log.note('Bus scan 0x{:02x}-0x{:02x} found: {:s}'.format(start, end, found))
        else:
            self.log.note('Bus scan 0x{:02x}-0x{:02x} found no devices'.format(start, end))

        return addresses

    def probe(self, address=None) -> bool:
        """
        Returns ``True`` if a device acknowledges the given I2C *address*.

        If *address* is not provided, the session's
        :py:attr:`~spdrw.Session.eeprom_address` is probed. ``False`` is returned if
        neither is available, or if the session is not connected.
        """
        if address is None:
            address = self.eeprom_address
            if address is None:
                return False

        if not isinstance(address, int):
            raise TypeError('Invalid address: ' + str(address))

        try:
            return self._query(Command.PROBE_ADDRESS, address) == address
        except (DeviceError, OSError) as error:
            self.log.debug('Probe of 0x{:02x} failed: {:s}'.format(address, str(error)))
            return False

    def firmware_version(self, cached=True) -> int:
        """
        Retrieve the firmware version (e.g. ``20211103``) from the device.

        If *cached=True*, a previously read value is returned.
        ``0`` is returned if the session is not connected.
        """
        if cached and self._fw_version is not None:
            return self._fw_version

        with self.lock:
            if not self.connected:
                return 0

            response = self.send_command(Command.GET_VERSION)

        try:
            version = int(response.decode('ascii').strip())
        except (UnicodeDecodeError, ValueError):
            raise DeviceError('Invalid firmware version response: ' + response.hex())

        self._fw_version = version
        return version

    @staticmethod
    def _check_pin(pin):
        if pin not in Pin.ALL:
            raise ValueError('Invalid Select Address pin: ' + str(pin))

    def set_address_pin(self, pin: int, state) -> bool:
        """
        Drive the EEPROM Select Address *pin* (``Pin.SA0`` - ``Pin.SA2``) to *state*.
        Returns ``True`` if the device reports success.
        """
        self._check_pin(pin)
        return self._query(Command.SET_ADDRESS_PIN, pin, int(bool(state))) == Response.SUCCESS

    def set_address_pins(self, state) -> bool:
        """
        Drive all Select Address pins to *state*.
        """
        for pin in Pin.ALL:
            if not self.set_address_pin(pin, state):
                return False
        return True

    def get_address_pin(self, pin: int) -> bool:
        """
        Returns ``True`` if the Select Address *pin* is high.
        """
        self._check_pin(pin)
        return self._query(Command.GET_ADDRESS_PIN, pin) == Response.ON

    def set_high_voltage(self, state) -> bool:
        """
        Switch the high voltage supply on pin SA0 on or off.
        Returns ``True`` if the device reports success.
        """
        return self._query(Command.SET_HIGH_VOLTAGE, int(bool(state))) == Response.SUCCESS

    def get_high_voltage(self) -> bool:
        """
        Returns ``True`` if high voltage is applied to pin SA0.
        """
        return self._query(Command.GET_HIGH_VOLTAGE) == Response.ON

    def reset_address_pins(self) -> bool:
        """
        Return all Select Address pins and the high voltage supply to their default
        (low) state. Returns ``True`` when the device confirms high voltage is off.
        """
        pins_ok = self.set_address_pins(PinState.DEFAULT)
        hv_ok = self.set_high_voltage(PinState.OFF)
        return pins_ok and hv_ok and not self.get_high_voltage()

    def _restore_default_pins(self) -> bool:
        # Devices without high voltage control report failure from
        # reset_address_pins(), so only the pin states are checked here.
        for _ in range(self.PIN_RESTORE_ATTEMPTS):
            self.reset_address_pins()
            if not self.get_address_pin(Pin.SA0) and not self.get_address_pin(Pin.SA1):
                return True

        self.log.warning('Unable to restore default Select Address pin state')
        return False

    def test_advanced_features(self) -> bool:
        """
        Determine whether the device can control the Select Address pins and
        high voltage supply, which write protection operations depend on.

        This moves an EEPROM at 0x50 to 0x51 (SA0) and 0x53 (SA1) and checks
        that it answers there. Pins are restored to their default state afterwards.
        The result is also stored in :py:attr:`advanced_features`.
        """
        with self.lock:
            if not self.connected:
                return False

            sa0 = sa1 = vhv = False

            self._restore_default_pins()

            self.set_address_pin(Pin.SA0, PinState.HIGH)
            sa0 = self.get_address_pin(Pin.SA0) and self.probe(0x51)

            if sa0:
                self.set_address_pin(Pin.SA1, PinState.HIGH)
                sa1 = self.get_address_pin(Pin.SA1) and self.probe(0x53)

                self._restore_default_pins()

                if sa1:
                    self.set_high_voltage(PinState.ON)
                    vhv = self.get_high_voltage()
                    if vhv:
                        self.set_high_voltage(PinState.OFF)

            self._restore_default_pins()

            self.advanced_features = sa0 and sa1 and vhv

        msg = 'Advanced features: SA0={}, SA1={}, HV={}'
        self.log.note(msg.format(sa0, sa1, vhv))
        return self.advanced_features

    @classmethod
    def find(cls, ports=None, **kwargs) -> list:
        """
        Return the names of serial ports with a responding SPD reader/writer device attached.

        By default every port reported by :py:func:`serial.tools.list_ports.comports()`
        is tried. An iterable of port names may be provided via *ports* instead.
        Keyword arguments are passed to the :py:class:`Device` constructor.

        Ports are tried one at a time; each is disconnected before the next is opened.
        """
        if ports is None:
            ports = [info.device for info in list_ports.comports()]
        else:
            ports = list(ports)

        found = []

        with Progress.create(len(ports), 'Searching for devices', unit='port') as progress:
            for port in ports:
                device = cls(port, **kwargs)
                try:
                    if device.connect():
                        log.info('Found device on ' + str(port))
                        found.append(port)
                finally:
                    device.disconnect()
                progress.update()

        if not found:
            log.warning('No devices found')

        return found
