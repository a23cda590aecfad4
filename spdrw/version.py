# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library
# pylint: disable=missing-module-docstring
__version__ = '0.1.0'
