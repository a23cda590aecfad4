# SPDX-License-Identifier: BSD-3-Clause
"""
Simulated serial channel and SPD reader/writer firmware for unit tests.
"""
import threading
import time

import serial

from spdrw import Device, PollSettings, Response

FAST_POLL = PollSettings(interval=0.0005, retries=200, clear_interval=0)


class SimulatedFirmware:
    """
    Scripted stand-in for the device firmware.

    Called with the tokens received so far; returns the response bytes once a
    complete command has arrived, or ``None`` while more tokens are expected.
    """

    ARITY = {
        't': 0, 'v': 0, 's': 2, 'a': 1, 'r': 2, 'w': 3,
        'p': 2, 'q': 1, '9': 1, 'h': 0, 'b': 1, 'c': 0, 'l': 1,
        'x': 1,
    }

    def __init__(self, addresses=(0x50,), eeprom=None, **kwargs):
        self.addresses = set(addresses)
        self.eeprom = bytearray(eeprom if eeprom is not None else bytes(range(256)) * 4)
        self.welcome = kwargs.get('welcome', b'!')
        self.version = kwargs.get('version', b'20211103')
        self.wake_after = kwargs.get('wake_after', 0)
        self.supports_hv = kwargs.get('supports_hv', True)
        self.silent = kwargs.get('silent', False)

        self.test_prompts = 0
        self.commands = []
        self.writes = 0
        self.pins = [0, 0, 0]
        self.hv = 0
        self.rswp = set()
        self.pswp = False

    def present(self) -> set:
        offset = self.pins[0] | (self.pins[1] << 1) | (self.pins[2] << 2)
        return {addr + offset for addr in self.addresses}

    def __call__(self, tokens):
        cmd = tokens[0]
        arity = self.ARITY.get(cmd)
        if arity is None:
            return b'?'

        if len(tokens) - 1 < arity:
            return None

        args = [int(t) for t in tokens[1:]]
        self.commands.append(tuple(tokens))

        if self.silent:
            return b''

        handler = getattr(self, '_cmd_' + cmd.replace('9', 'hv_set'))
        return handler(*args)

    def _cmd_t(self):
        if self.test_prompts < self.wake_after:
            self.test_prompts += 1
            return b''
        self.test_prompts += 1
        return self.welcome

    def _cmd_v(self):
        return self.version

    def _cmd_s(self, start, end):
        present = self.present()
        return bytes(a if a in present else 0 for a in range(start, end + 1))

    def _cmd_a(self, addr):
        return bytes([addr if addr in self.present() else 0])

    def _cmd_r(self, addr, offset):
        if addr not in self.present():
            return b'\x00'
        return bytes([self.eeprom[offset]])

    def _cmd_w(self, addr, offset, value):
        if addr not in self.present():
            return bytes([Response.ERROR])
        self.writes += 1
        self.eeprom[offset] = value
        return bytes([Response.SUCCESS])

    def _cmd_p(self, pin, state):
        self.pins[pin] = state
        return bytes([Response.SUCCESS])

    def _cmd_q(self, pin):
        return bytes([self.pins[pin]])

    def _cmd_hv_set(self, state):
        if not self.supports_hv:
            return bytes([Response.ERROR])
        self.hv = state
        return bytes([Response.SUCCESS])

    def _cmd_h(self):
        return bytes([self.hv])

    def _cmd_b(self, block):
        self.rswp.add(block)
        return bytes([Response.SUCCESS])

    def _cmd_c(self):
        self.rswp.clear()
        return bytes([Response.SUCCESS])

    def _cmd_l(self, _addr):
        self.pswp = True
        return bytes([Response.SUCCESS])

    def _cmd_x(self, value):
        return bytes([value]) * 8


class SimulatedSerial:
    """
    Implements the subset of the :py:class:`serial.Serial` API used by spdrw.

    Lines written to the channel are passed to the *firmware* callable, whose
    responses become readable. If *ports* is provided, it maps port names to
    firmware, and opening any other port fails.
    """

    def __init__(self, firmware=None, ports=None, fail_open=False, **_kwargs):
        self.port = None
        self.is_open = False
        self.firmware = firmware
        self.ports = ports
        self.fail_open = fail_open

        # Raised by reset_input_buffer() once set
        self.reset_error = None

        self.lines = []
        self.open_count = 0

        self._rx = bytearray()
        self._line = bytearray()
        self._tokens = []
        self._mutex = threading.Lock()

    def open(self):
        if self.fail_open:
            raise serial.SerialException('could not open port ' + str(self.port))

        if self.ports is not None:
            if self.port not in self.ports:
                raise serial.SerialException('could not open port ' + str(self.port))
            self.firmware = self.ports[self.port]

        self.is_open = True
        self.open_count += 1

    def close(self):
        self.is_open = False

    def inject(self, data: bytes):
        """
        Place unsolicited data in the receive buffer.
        """
        with self._mutex:
            self._rx += data

    @property
    def in_waiting(self) -> int:
        if not self.is_open:
            raise serial.PortNotOpenError()
        return len(self._rx)

    @property
    def out_waiting(self) -> int:
        if not self.is_open:
            raise serial.PortNotOpenError()
        return 0

    def reset_input_buffer(self):
        if self.reset_error is not None:
            raise self.reset_error
        with self._mutex:
            self._rx.clear()

    def reset_output_buffer(self):
        pass

    def flush(self):
        pass

    def read(self, size=1) -> bytes:
        with self._mutex:
            data = bytes(self._rx[:size])
            del self._rx[:size]
        return data

    def write(self, data: bytes) -> int:
        for b in data:
            if b != 0x0a:
                self._line.append(b)
                continue

            token = self._line.decode('ascii')
            self._line.clear()
            self.lines.append(token)
            self._tokens.append(token)

            # Widen the window in which unserialized writers could interleave
            time.sleep(0)

            response = self.firmware(self._tokens) if self.firmware else b''
            if response is not None:
                self._tokens = []
                self.inject(response)

        return len(data)


def create_device(firmware=None, connect=True, **kwargs):
    """
    Return a (device, channel, firmware) tuple backed by a simulated channel.
    """
    if firmware is None:
        firmware = SimulatedFirmware()

    channel = SimulatedSerial(firmware)
    kwargs.setdefault('poll', FAST_POLL)
    device = Device('/dev/ttySIM0', channel=channel, **kwargs)

    if connect and not device.connect():
        raise RuntimeError('Simulated device failed to connect')

    return device, channel, firmware
