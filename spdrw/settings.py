# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library

"""
Polling and serial port configuration.

The effective response timeout is :py:attr:`PollSettings.retries` multiplied by
:py:attr:`PollSettings.interval`. Each value may be overridden at run time with
an environment variable, which takes precedence over values passed in code:

* ``SPDRW_POLL_INTERVAL`` - seconds between polls for response data
* ``SPDRW_POLL_RETRIES`` - maximum number of polls before giving up
* ``SPDRW_CLEAR_INTERVAL`` - seconds between attempts to empty the port buffers
"""

import os

BAUDRATE = 115200

# Passed to serial.Serial() unless overridden by the caller
SERIAL_DEFAULTS = {
    'baudrate':      BAUDRATE,
    'bytesize':      8,
    'parity':        'N',
    'stopbits':      1,
    'timeout':       10.0,
    'write_timeout': 10.0,
}


class PollSettings:
    """
    Poll interval and retry ceiling used while waiting on a device.

    Tests can use near-zero intervals to avoid real wall-clock delays.
    """

    DEFAULT_INTERVAL       = 0.010
    DEFAULT_RETRIES        = 1000
    DEFAULT_CLEAR_INTERVAL = 0.001

    def __init__(self, interval=None, retries=None, clear_interval=None):
        if interval is None:
            interval = self.DEFAULT_INTERVAL

        if retries is None:
            retries = self.DEFAULT_RETRIES

        if clear_interval is None:
            clear_interval = self.DEFAULT_CLEAR_INTERVAL

        interval_env = os.getenv('SPDRW_POLL_INTERVAL')
        if interval_env is not None:
            interval = float(interval_env)

        retries_env = os.getenv('SPDRW_POLL_RETRIES')
        if retries_env is not None:
            retries = int(retries_env, 0)

        clear_env = os.getenv('SPDRW_CLEAR_INTERVAL')
        if clear_env is not None:
            clear_interval = float(clear_env)

        if not isinstance(retries, int):
            raise TypeError('Invalid retry count: ' + str(retries))

        if retries < 1:
            raise ValueError('Retry count must be at least 1, got {:d}'.format(retries))

        if interval < 0 or clear_interval < 0:
            raise ValueError('Poll intervals cannot be negative')

        self.interval = float(interval)
        self.retries = retries
        self.clear_interval = float(clear_interval)

    @property
    def timeout(self) -> float:
        """
        Effective wall-clock timeout, in seconds.
        """
        return self.retries * self.interval

    def __repr__(self):
        return 'PollSettings(interval={:g}, retries={:d}, clear_interval={:g})'.format(
            self.interval, self.retries, self.clear_interval)
