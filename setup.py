#!/usr/bin/env python3
"""
spdrw installation script
"""

import re

from os.path import dirname, join, realpath
from setuptools import setup, find_packages

THIS_DIR = realpath(dirname(__file__))

VERSION_REGEX = re.compile(
    r"__version__\s*=\s*'(?P<version>[0-9]+\.[0-9]+\.[0-9]+((\.|-|\+)[a-zA-Z0-9]+)*)'"
)


def get_version() -> str:
    version_file = join(THIS_DIR, 'spdrw', 'version.py')
    with open(version_file, 'r') as infile:
        version_info = infile.read()
        match = VERSION_REGEX.search(version_info)
        if match:
            return match.group('version')

    raise ValueError('Failed to find version info')


def get_description() -> str:
    with open(join(THIS_DIR, 'README.md'), 'r') as infile:
        return infile.read()


setup(
    name='spdrw',
    version=get_version(),
    description='Host-side protocol library for serial SPD EEPROM reader/writer devices',

    long_description=get_description(),
    long_description_content_type='text/markdown',

    license='BSD 3-Clause License',

    packages=find_packages(exclude=['tests', 'tests.*']),

    install_requires=['pyserial >= 3.5', 'tqdm >= 4.30.0'],

    python_requires='>=3.7, <4',

    zip_safe=False,

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: System :: Hardware',
    ],
)
