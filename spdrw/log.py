# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library

"""
Leveled logging for spdrw, built on Python's ``logging`` module.

The initial level is taken from the ``SPDRW_LOG_LEVEL`` environment variable,
falling back to ``'note'``. Levels, most verbose first:

+----------------+-------------+------------------------------------------------------------------+
|   Level Name   | Msg. Prefix | Description                                                      |
+================+=============+==================================================================+
| debug          |   ``[#]``   | Per-exchange detail: tokens written, bytes drained, retries      |
+----------------+-------------+------------------------------------------------------------------+
| note           |   ``[*]``   | Connection attempts, discovery progress                          |
+----------------+-------------+------------------------------------------------------------------+
| info           |   ``[+]``   | Devices found, operations completed                              |
+----------------+-------------+------------------------------------------------------------------+
| warning        |   ``[!]``   | Recoverable failures (e.g. a scan that got no reply)             |
+----------------+-------------+------------------------------------------------------------------+
| error          |   ``[X]``   | Failures that abort the current operation                        |
+----------------+-------------+------------------------------------------------------------------+
| silent         |     N/A     | Nothing is written to stderr                                     |
+----------------+-------------+------------------------------------------------------------------+

Progress bars are only drawn at the *note*, *info* and *warning* levels.
"""

import os
import platform
import sys
import logging

DEBUG   = logging.DEBUG
NOTE    = logging.DEBUG + (logging.INFO - logging.DEBUG) // 2
INFO    = logging.INFO
WARNING = logging.WARN
ERROR   = logging.ERROR
SILENT  = logging.CRITICAL + (logging.CRITICAL - logging.ERROR)


class SpdrwLog:
    """
    Logger handle with an optional message *prefix*.

    All instances created with the same *logger_name* share one Python logger,
    so setting the level on any of them affects all of them.
    """

    _level_name_map = {
        'debug':    DEBUG,
        'note':     NOTE,
        'info':     INFO,
        'warn':     WARNING,
        'warning':  WARNING,
        'error':    ERROR,
        'fatal':    ERROR,
        'critical': ERROR,
        'silent':   SILENT
    }

    def __init__(self, prefix='', logger_name='spdrw'):
        _pfx_debug   = '[#] '
        _pfx_note    = '[*] '
        _pfx_info    = '[+] '
        _pfx_warning = '[!] '
        _pfx_error   = '[X] '

        if platform.system() in ('Linux', 'Darwin') and sys.stdout.isatty():
            _pfx_debug   = '\033[34m'   + _pfx_debug   + '\033[0m'
            _pfx_note    = '\033[36m'   + _pfx_note    + '\033[0m'
            _pfx_info    = '\033[32m'   + _pfx_info    + '\033[0m'
            _pfx_warning = '\033[33m'   + _pfx_warning + '\033[0m'
            _pfx_error   = '\033[31m'   + _pfx_error   + '\033[0m'

        if prefix != '' and not prefix.endswith(' '):
            prefix += ' '

        self._pfx_debug   = _pfx_debug + prefix
        self._pfx_note    = _pfx_note + prefix
        self._pfx_info    = _pfx_info + prefix
        self._pfx_warning = _pfx_warning + prefix
        self._pfx_error   = _pfx_error + prefix

        self.logger = logging.getLogger(logger_name)

    @property
    def level(self):
        """
        Current log level
        """
        return self.logger.level

    @level.setter
    def level(self, level):
        if isinstance(level, str):
            try:
                level = self._level_name_map[level.lower()]
            except KeyError:
                raise ValueError('Invalid log level: ' + level)

        self.logger.setLevel(level)

    def debug(self, *args, **kwargs):
        """
        Write a debug-level message. Used for byte-level exchange detail.
        """
        self.logger.log(DEBUG, *((self._pfx_debug + args[0],) + args[1:]), **kwargs)

    def note(self, *args, **kwargs):
        """
        Write a note-level message.
        """
        self.logger.log(NOTE, *((self._pfx_note + args[0],) + args[1:]), **kwargs)

    def info(self, *args, **kwargs):
        """
        Write an info-level message, typically reporting that a
        higher-level operation completed.
        """
        self.logger.log(INFO, *((self._pfx_info + args[0],) + args[1:]), **kwargs)

    def warning(self, *args, **kwargs):
        """
        Write a warning-level message for failures that the library
        recovers from, such as an unreachable port during discovery.
        """
        self.logger.log(WARNING, *((self._pfx_warning + args[0],) + args[1:]), **kwargs)

    def error(self, *args, **kwargs):
        """
        Write an error-level message.
        """
        self.logger.log(ERROR, *((self._pfx_error + args[0],) + args[1:]), **kwargs)


_spdrw_root = SpdrwLog()  # pylint: disable=invalid-name
_spdrw_root.logger.addHandler(logging.StreamHandler())
_spdrw_root.level = os.getenv('SPDRW_LOG_LEVEL', NOTE)


def debug(*args, **kwargs):
    """
    Invokes the root logger's :py:meth:`SpdrwLog.debug()` method
    """
    _spdrw_root.debug(*args, **kwargs)


def note(*args, **kwargs):
    """
    Invokes the root logger's :py:meth:`SpdrwLog.note()` method
    """
    _spdrw_root.note(*args, **kwargs)


def info(*args, **kwargs):
    """
    Invokes the root logger's :py:meth:`SpdrwLog.info()` method
    """
    _spdrw_root.info(*args, **kwargs)


def warning(*args, **kwargs):
    """
    Invokes the root logger's :py:meth:`SpdrwLog.warning()` method
    """
    _spdrw_root.warning(*args, **kwargs)


def error(*args, **kwargs):
    """
    Invokes the root logger's :py:meth:`SpdrwLog.error()` method
    """
    _spdrw_root.error(*args, **kwargs)


def set_level(level):
    """
    Set the spdrw logger to the specified level.

    Either one of the integer constants in this module (``DEBUG``, ``NOTE``,
    ``INFO``, ``WARNING``, ``ERROR``, ``SILENT``) or the matching lower-case
    level name may be used.
    """
    _spdrw_root.level = level


def get_level() -> int:
    """
    Get the current level of the spdrw logger.
    """
    return _spdrw_root.level
