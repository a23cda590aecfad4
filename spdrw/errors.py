# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library

"""
Exceptions raised by spdrw.

Connection and discovery problems are reported through return values
(``False`` or an empty list). Only the response collection primitives raise,
because a failed exchange leaves the wire in an unknown state.
"""


class DeviceError(Exception):
    """
    Base class for errors pertaining to communication with an SPD reader/writer device.
    """


class ConnectionFailure(DeviceError):
    """
    Raised when the serial channel to a device could not be opened.

    :py:meth:`~spdrw.Session.connect()` catches this and returns ``False``.
    """
    def __init__(self, port, reason=None):
        msg = 'Unable to open ' + str(port)
        if reason is not None:
            msg += ': ' + str(reason)

        super().__init__(msg)
        self.port = port


class ResponseTimeout(DeviceError, TimeoutError):
    """
    Raised when no response data arrived before the configured retry ceiling
    (:py:attr:`PollSettings.retries` polls, :py:attr:`PollSettings.interval` apart).
    """
    def __init__(self, port, retries: int, interval: float):
        msg = '{:s} / No response after {:d} polls ({:.3f} s)'
        super().__init__(msg.format(str(port), retries, retries * interval))
        self.port = port


class OutOfRangeAccess(DeviceError, IndexError):
    """
    Raised when a caller requests a response byte beyond the data received.
    """
    def __init__(self, offset: int, length: int):
        msg = 'Requested response byte {:d}, but only {:d} byte(s) were received'
        super().__init__(msg.format(offset, length))
        self.offset = offset
        self.length = length
