#!/usr/bin/env python3
import sys

from spdrw import Device, eeprom, log
from spdrw.eeprom import SpdSize


def find_device():
    ports = Device.find()
    if not ports:
        log.error('No SPD reader/writer found')
        sys.exit(1)

    # Just use the first one
    return ports[0]


def dump_all(device, size):
    results = {}
    for addr in device.scan(0x50, 0x57):
        log.note('Reading EEPROM at 0x{:02x}'.format(addr))
        results[addr] = eeprom.read(device, 0, size, address=addr)
        log.info('Read {:d} bytes from 0x{:02x}'.format(size, addr))

    return results


if __name__ == '__main__':
    port = find_device()

    with Device(port, spd_size=SpdSize.DDR4) as dev:
        if not dev.connected:
            sys.exit(1)

        log.info('Firmware version: {:d}'.format(dev.firmware_version()))

        for address, data in dump_all(dev, dev.spd_size).items():
            filename = 'spd_{:02x}.bin'.format(address)
            with open(filename, 'wb') as outfile:
                outfile.write(data)
            log.info('Saved ' + filename)
