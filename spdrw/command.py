# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library

"""
Command letters and response values understood by the SPD reader/writer firmware.

Commands are sent as ASCII tokens, one per line. For example, a bus scan
of 0x50 - 0x57 is sent as the three lines ``s``, ``80`` and ``87``.
"""


class Command:
    """
    Single-character command tokens.
    """
    READ_BYTE         = 'r'
    WRITE_BYTE        = 'w'
    SCAN_BUS          = 's'
    PROBE_ADDRESS     = 'a'
    SET_ADDRESS_PIN   = 'p'
    GET_ADDRESS_PIN   = 'q'
    SET_HIGH_VOLTAGE  = '9'
    GET_HIGH_VOLTAGE  = 'h'
    SET_RSWP          = 'b'
    CLEAR_RSWP        = 'c'
    SET_PSWP          = 'l'
    GET_VERSION       = 'v'
    TEST_COMM         = 't'


class Response:
    """
    Values found in the first byte of a response.
    """
    SUCCESS = 0
    ERROR   = 1

    # Address pin or high voltage enabled
    ON      = 1

    # Reply to Command.TEST_COMM identifying the correct firmware
    WELCOME = ord('!')


class Pin:
    """
    EEPROM Select Address pins
    """
    SA0 = 0
    SA1 = 1
    SA2 = 2

    ALL = (SA0, SA1, SA2)


class PinState:
    """
    Logic levels for Select Address and high voltage control
    """
    HIGH = 1
    LOW  = 0

    ON      = HIGH
    OFF     = LOW
    DEFAULT = LOW
