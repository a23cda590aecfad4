# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
#
# flake8: noqa=F401
"""
spdrw: host-side protocol library for SPD reader/writer devices

An SPD reader/writer is a microcontroller attached over a serial port that
reads and writes RAM module SPD EEPROMs on behalf of the host.
"""

from .version import __version__

from . import log
from . import eeprom

from .command  import Command, Response, Pin, PinState
from .device   import Device
from .errors   import (DeviceError,
                       ConnectionFailure,
                       ResponseTimeout,
                       OutOfRangeAccess)
from .monitor  import Monitor
from .progress import Progress, ProgressBar
from .session  import Session
from .settings import PollSettings
