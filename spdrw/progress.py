# SPDX-License-Identifier: BSD-3-Clause
# spdrw: SPD Reader/Writer device protocol library

"""
Progress reporting for long running operations, such as reading an entire
EEPROM one byte at a time or probing every serial port on the host.
"""

from datetime import datetime
from tqdm import tqdm

from . import log


class Progress:
    """
    No-op progress indicator, used when the log level indicates that no
    progress bar should be drawn. The :py:class:`.ProgressBar` subclass
    displays the status of an ongoing operation.

    Basic statistics are recorded to support debugging.
    """

    @staticmethod
    def create(total_operations: int, desc: str, **kwargs):
        """
        Create either a :py:class:`ProgressBar` or a :py:class:`Progress`,
        depending upon the log level. Only the ``spdrw.log.NOTE``,
        ``spdrw.log.INFO`` and ``spdrw.log.WARNING`` levels result in
        a progress bar.

        The *total_operations* count is the value at which 100% completion is
        displayed. The *desc* string is shown alongside the indicator.

        Passing *show=False* always yields a hidden indicator.
        """
        show  = kwargs.pop('show', True)
        show &= log.get_level() in (log.NOTE, log.INFO, log.WARNING)

        if show:
            cls = ProgressBar
        else:
            cls = Progress
            log.debug(desc)

        return cls(total_operations, desc, **kwargs)

    def __init__(self, total_operations: int, desc: str, **_kwargs):
        self._desc  = desc
        self._total = total_operations
        self._count = 0
        self._last_update = None

    @property
    def count(self) -> int:
        """
        Number of operations recorded via :py:meth:`update()`.
        """
        return self._count

    @property
    def last_update(self):
        """
        Time of the most recent :py:meth:`update()`, or ``None``.
        """
        return self._last_update

    def update(self, count=1):
        """
        Record that *count* more operations have completed since the previous call.
        """
        self._last_update = datetime.now()
        self._count += count

    def close(self):
        """
        Close and clean up progress status.
        """
        self._total = None
        self._desc  = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class ProgressBar(Progress):
    """
    A thin wrapper around tqdm. Use :py:meth:`.Progress.create()` rather
    than instantiating this directly.
    """

    def __init__(self, total_operations, desc=None, unit='op', **kwargs):
        if not unit.startswith(' '):
            unit = ' ' + unit
        super().__init__(total_operations, desc, **kwargs)

        self._pbar = tqdm(total=total_operations, desc=desc, unit=unit, leave=False, **kwargs)

    def update(self, count=1):
        super().update(count)
        self._pbar.update(n=count)

    def close(self):
        super().close()
        self._pbar.close()
