# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
"""
Connection lifecycle and exclusive access to the serial channel of an SPD
reader/writer device.
"""

import threading
import time

import serial

from .errors import ConnectionFailure
from .log import SpdrwLog
from .monitor import Monitor
from .settings import PollSettings, SERIAL_DEFAULTS


class Session:
    """
    A Session owns the serial channel to a single device and the lock that
    serializes all I/O on it.

    The *port* argument names the serial port (e.g. ``/dev/ttyACM0`` or ``COM3``).
    The optional *eeprom_address* and *spd_size* arguments describe the EEPROM
    that subsequent operations target.

    Creating a Session does not open the port. Call :py:meth:`connect()`, or use the
    Session as a context manager, which connects on entry and disconnects on exit.

    **Keyword Arguments**

    * *lock* - A lock shared with other Session objects that use the same
      physical channel. By default each Session creates its own ``threading.RLock``.

    * *channel* - An unopened, :py:class:`serial.Serial`-compatible object to use
      instead of creating one.

    * *monitor* - A :py:class:`~spdrw.monitor.Monitor` that records all traffic.

    * *poll* - A :py:class:`~spdrw.settings.PollSettings` instance controlling
      poll intervals and the retry ceiling.

    Any remaining keyword arguments (e.g. *baudrate*) are passed to the
    :py:class:`serial.Serial` constructor.
    """

    def __init__(self, port, eeprom_address=None, spd_size=None, **kwargs):
        self._lock    = kwargs.pop('lock', None) or threading.RLock()
        self._channel = kwargs.pop('channel', None)
        self._poll    = kwargs.pop('poll', None) or PollSettings()

        monitor = kwargs.pop('monitor', None)
        self.monitor = monitor if monitor is not None else Monitor()

        if self._channel is None:
            serial_args = dict(SERIAL_DEFAULTS)
            serial_args.update(kwargs)

            # No port is given here, so the channel is not opened until connect()
            self._channel = serial.Serial(**serial_args)

        self._port = port
        self._eeprom_address = None
        self._spd_size = None
        self._connected = False

        if eeprom_address is not None:
            self.eeprom_address = eeprom_address

        if spd_size is not None:
            self.spd_size = spd_size

        self.log = SpdrwLog('(' + str(port) + ')')

    def __str__(self):
        if self._eeprom_address is None:
            return str(self._port)
        return '{:s}:0x{:02x}'.format(str(self._port), self._eeprom_address)

    def __repr__(self):
        return '{:s}({!r})'.format(self.__class__.__name__, str(self))

    @property
    def port(self):
        """
        Serial port name this session communicates through.
        """
        return self._port

    @property
    def lock(self):
        """
        Lock that must be held for the duration of a command/response exchange.
        """
        return self._lock

    @property
    def poll(self) -> PollSettings:
        """
        Poll interval and retry ceiling in use.
        """
        return self._poll

    @property
    def connected(self) -> bool:
        """
        ``True`` when the channel is open and the device passed its liveness test.
        """
        return self._connected and self._channel.is_open

    @property
    def eeprom_address(self):
        """
        EEPROM address on the device's I2C bus, or ``None`` if not set.
        """
        return self._eeprom_address

    @eeprom_address.setter
    def eeprom_address(self, addr):
        if not isinstance(addr, int):
            raise TypeError('Invalid EEPROM address: ' + str(addr))

        if addr not in range(0, 0x80):
            raise ValueError('Invalid EEPROM address: 0x{:02x}'.format(addr))

        self._eeprom_address = addr

    @property
    def spd_size(self):
        """
        Declared EEPROM size in bytes, or ``None`` if not set.
        """
        return self._spd_size

    @spd_size.setter
    def spd_size(self, size):
        if not isinstance(size, int):
            raise TypeError('Invalid SPD size: ' + str(size))

        if size <= 0:
            raise ValueError('Invalid SPD size: {:d}'.format(size))

        self._spd_size = size

    @property
    def bytes_to_read(self) -> int:
        """
        Number of received bytes waiting to be read. Reading this does not consume them.
        """
        try:
            if self._channel.is_open:
                return self._channel.in_waiting
        except OSError:
            pass
        return 0

    @property
    def bytes_to_write(self) -> int:
        """
        Number of bytes queued for transmission to the device.
        """
        try:
            if self._channel.is_open:
                return self._channel.out_waiting
        except OSError:
            pass
        return 0

    def connect(self) -> bool:
        """
        Open the serial port and verify that the attached device responds to
        a liveness test.

        Returns ``True`` if the session is connected. Failure to open the port,
        or a device that does not answer the test, results in ``False``
        and a disconnected session. No exception is raised in either case.
        """
        with self._lock:
            if self.connected:
                return True

            self.log.note('Connecting')

            try:
                self._open()
            except ConnectionFailure as error:
                self.log.note(str(error))
                self._connected = False
                return False

            self._connected = True

            try:
                self.clear_buffer()
                alive = self.test()
            except OSError as error:
                self.log.note('Channel error during liveness test: ' + str(error))
                alive = False

            if not alive:
                self.log.note('Device did not respond to communication test')
                self._close()
                return False

            self.log.info('Connected')
            return True

    def disconnect(self) -> bool:
        """
        Discard any pending data and close the serial port.

        Calling this on a session that is not connected has no effect.
        Returns ``True`` once the session is disconnected.
        """
        with self._lock:
            if self._channel.is_open:
                self._close()
                self.log.note('Disconnected')

            self._connected = False
            return True

    def close(self, close_monitor=True):
        """
        Disconnect and release the session's resources.

        If *close_monitor* is ``True``, the attached monitor is closed as well.
        """
        self.disconnect()

        if close_monitor and self.monitor is not None:
            self.monitor.close()

    def clear_buffer(self):
        """
        Discard the contents of the input and output buffers, blocking until both are empty.

        This keeps stale data from a previous exchange from corrupting the next one.
        """
        with self._lock:
            if not self._channel.is_open:
                return

            self._channel.reset_input_buffer()
            self._channel.reset_output_buffer()

            while self.bytes_to_read > 0 or self.bytes_to_write > 0:
                time.sleep(self._poll.clear_interval)
                self._channel.reset_input_buffer()
                self._channel.reset_output_buffer()

    def test(self) -> bool:
        """
        Liveness test used to gate :py:meth:`connect()`. Implemented by subclasses.
        """
        raise NotImplementedError('Session subclasses must implement test()')

    def write_raw(self, data: bytes, update_monitor=True):
        """
        Write *data* to the channel and wait for it to be transmitted.

        If *update_monitor* is ``True``, the data is recorded by the attached monitor.
        """
        with self._lock:
            self._channel.write(data)
            self._channel.flush()

        if update_monitor:
            self.monitor.write(data)

    def read_raw(self, size=1, update_monitor=True) -> bytes:
        """
        Read up to *size* bytes from the channel.

        If *update_monitor* is ``True``, the data is recorded by the attached monitor.
        """
        with self._lock:
            data = self._channel.read(size)

        if update_monitor:
            self.monitor.read(data)

        return data

    def _open(self):
        if self._channel.is_open:
            return

        try:
            self._channel.port = self._port
            self._channel.open()
        except (OSError, ValueError) as error:
            raise ConnectionFailure(self._port, error) from error

    def _close(self):
        try:
            self._channel.reset_input_buffer()
            self._channel.reset_output_buffer()
        except OSError as error:
            self.log.note('Channel error while closing: ' + str(error))
        finally:
            self._channel.close()
            self._connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __del__(self):
        if getattr(self, '_connected', False):
            self.disconnect()
