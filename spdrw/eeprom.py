# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
"""
EEPROM access through an SPD reader/writer :py:class:`~spdrw.Device`.

These functions only move bytes. Interpreting SPD contents is left to the caller.

Unless an *address* is given, the device's
:py:attr:`~spdrw.Session.eeprom_address` is used. Offsets are checked against
the device's :py:attr:`~spdrw.Session.spd_size`, or against the largest SPD
size if none was declared.
"""

from .command import Command, Response
from .progress import Progress


class SpdSize:
    """
    EEPROM sizes, in bytes, of the SPD of each RAM generation
    """
    SDRAM = 256
    DDR   = 256
    DDR2  = 256
    DDR3  = 256
    DDR4  = 512
    DDR5  = 1024

    MAX   = DDR5


# Write protection blocks on DDR4 EEPROMs
WP_BLOCKS = 4


def _address(device, address) -> int:
    if address is None:
        address = device.eeprom_address

    if address is None:
        raise ValueError('No EEPROM address specified for ' + str(device))

    if not isinstance(address, int) or address not in range(0, 0x80):
        raise ValueError('Invalid EEPROM address: ' + str(address))

    return address


def _size(device) -> int:
    return device.spd_size if device.spd_size is not None else SpdSize.MAX


def _check_offset(device, offset: int):
    if not isinstance(offset, int):
        raise TypeError('Invalid offset: ' + str(offset))

    size = _size(device)
    if offset not in range(0, size):
        raise ValueError('Offset 0x{:04x} outside of {:d}-byte EEPROM'.format(offset, size))


def read_byte(device, offset: int, address=None) -> int:
    """
    Read and return the byte at *offset*.
    """
    _check_offset(device, offset)
    addr = _address(device, address)
    return device.send_command(Command.READ_BYTE, addr, offset, offset=0)


def read(device, offset=0, count=None, address=None, **kwargs) -> bytes:
    """
    Read *count* bytes starting at *offset*, one byte per exchange.

    If *count* is not specified, data is read through the end of the EEPROM.
    A progress bar is displayed unless *show_progress=False* is passed.
    """
    _check_offset(device, offset)
    size = _size(device)

    if count is None:
        count = size - offset

    if count <= 0 or offset + count > size:
        raise ValueError('Invalid read of {:d} byte(s) at 0x{:04x}'.format(count, offset))

    show = kwargs.get('show_progress', True)
    data = bytearray()

    desc = 'Reading EEPROM @ ' + str(device)
    with Progress.create(count, desc, unit='B', show=show) as progress:
        for i in range(offset, offset + count):
            data.append(read_byte(device, i, address))
            progress.update()

    return bytes(data)


def write_byte(device, offset: int, value: int, address=None) -> bool:
    """
    Write *value* to *offset*. Returns ``True`` if the device reports success.
    """
    _check_offset(device, offset)

    if not isinstance(value, int) or value not in range(0, 0x100):
        raise ValueError('Invalid byte value: ' + str(value))

    addr = _address(device, address)
    return device.send_command(Command.WRITE_BYTE, addr, offset, value, offset=0) == Response.SUCCESS


def verify_byte(device, offset: int, value: int, address=None) -> bool:
    """
    Returns ``True`` if the byte at *offset* equals *value*.
    """
    return read_byte(device, offset, address) == value


def update_byte(device, offset: int, value: int, address=None) -> bool:
    """
    Write *value* to *offset* only if it differs from the current contents.
    Returns ``True`` if the byte matches *value* afterwards.
    """
    return verify_byte(device, offset, value, address) or write_byte(device, offset, value, address)


def write(device, offset: int, data: bytes, address=None, **kwargs) -> bool:
    """
    Write *data* starting at *offset*, skipping bytes that already match.
    Returns ``False`` as soon as one byte fails to update.
    """
    _check_offset(device, offset)
    if offset + len(data) > _size(device):
        raise ValueError('Write of {:d} byte(s) at 0x{:04x} exceeds EEPROM size'.format(len(data), offset))

    show = kwargs.get('show_progress', True)
    desc = 'Writing EEPROM @ ' + str(device)

    with Progress.create(len(data), desc, unit='B', show=show) as progress:
        for i, value in enumerate(data):
            if not update_byte(device, offset + i, value, address):
                return False
            progress.update()

    return True


def set_write_protection(device, block=None) -> bool:
    """
    Enable reversible software write protection on *block*, or on all blocks if
    *block* is ``None``. This requires the device's high voltage capability;
    see :py:meth:`~spdrw.Device.test_advanced_features()`.
    """
    if block is None:
        for i in range(0, WP_BLOCKS):
            if not set_write_protection(device, i):
                return False
        return True

    if block not in range(0, WP_BLOCKS):
        raise ValueError('Invalid write protection block: ' + str(block))

    return device.send_command(Command.SET_RSWP, block, offset=0) == Response.SUCCESS


def clear_write_protection(device) -> bool:
    """
    Clear reversible software write protection from all blocks.
    """
    return device.send_command(Command.CLEAR_RSWP, offset=0) == Response.SUCCESS


def set_permanent_write_protection(device, address=None) -> bool:
    """
    Permanently write protect the EEPROM. This cannot be undone.
    """
    addr = _address(device, address)
    return device.send_command(Command.SET_PSWP, addr, offset=0) == Response.SUCCESS
