# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
"""
Monitors record the raw traffic exchanged with a device. Attach one to a
:py:class:`~spdrw.Session` via its *monitor* keyword argument when debugging
firmware behavior or simply to see what the library is sending.

Each record is one line: a direction marker (``>`` host to device, ``<``
device to host) followed by the data as hex bytes, with printable ASCII
shown alongside.
"""

from . import log


class Monitor:
    """
    The :py:class:`.Monitor` base class is a no-op implementation that
    discards all data.
    """
    def __init__(self):
        self._f = None

    _default_file = '/tmp/spdrw-monitor.txt'

    _impls = {}

    @classmethod
    def register(cls, name: str, impl_class):
        """
        Register a :py:class:`Monitor` implementation to be returned by
        :py:meth:`Monitor.create()`.
        """
        if not issubclass(impl_class, Monitor):
            raise ValueError('Implementation must be a subclass of spdrw.Monitor')

        cls._impls[name.lower()] = impl_class

    @classmethod
    def create(cls, spec: str):
        """
        Create and return a monitor from a specification string of the form
        ``<type>[:arg1,...]``.

        +----------------------------------+----------------------------------------------+
        |   Monitor Type                   |  Argument(s)                                 |
        +----------------------------------+----------------------------------------------+
        | :py:class:`'file' <.FileMonitor>`| Filename to write the traffic transcript to. |
        +----------------------------------+----------------------------------------------+
        | :py:class:`'log' <.LogMonitor>`  | None.                                        |
        +----------------------------------+----------------------------------------------+

        An empty or ``None`` *spec* yields the no-op :py:class:`Monitor`.
        """
        if spec is None or len(spec) == 0:
            return Monitor()

        fields = spec.split(':', maxsplit=1)

        name = fields[0].lower()
        try:
            args = fields[1].split(',')
        except IndexError:
            args = []

        try:
            impl = cls._impls[name]
        except KeyError:
            raise ValueError('Invalid Monitor name: ' + name)

        return impl(*args)

    @staticmethod
    def format_record(direction: str, data: bytes) -> str:
        """
        Render *data* as a single transcript line.
        """
        hex_str = ' '.join('{:02x}'.format(b) for b in data)
        text = ''.join(chr(b) if 0x20 <= b < 0x7f else '.' for b in data)
        return '{:s} {:s}  |{:s}|'.format(direction, hex_str, text)

    def read(self, data: bytes):
        """
        Record data *read from the device*.
        """
        self._record('<', data)

    def write(self, data: bytes):
        """
        Record data *written to the device*.
        """
        self._record('>', data)

    def _record(self, direction: str, data: bytes):
        if self._f is not None and len(data) > 0:
            self._f.write(self.format_record(direction, data) + '\n')
            self._f.flush()

    def close(self):
        """
        Close the monitor and its underlying resources.
        """
        if self._f is not None:
            self._f.close()
            self._f = None


class FileMonitor(Monitor):
    """
    A :py:class:`.Monitor` subclass that writes the traffic transcript to a file.
    """

    def __init__(self, path=Monitor._default_file):
        super().__init__()
        self._f = open(path, 'w')


class LogMonitor(Monitor):
    """
    A :py:class:`.Monitor` subclass that emits the traffic transcript as
    debug-level log messages.
    """

    def _record(self, direction: str, data: bytes):
        if len(data) > 0:
            log.debug(self.format_record(direction, data))


Monitor.register('file', FileMonitor)
Monitor.register('log', LogMonitor)
