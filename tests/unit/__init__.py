# flake8: noqa=E401
# pylint: disable=missing-module-docstring

from .test_device import (
    TestExecuteCommand,
    TestGetResponse,
    TestMutualExclusion,
    TestLiveness,
    TestScan,
    TestProbe,
    TestFirmwareVersion,
    TestAddressPins,
    TestFind
)

from .test_eeprom import TestRead, TestWrite, TestWriteProtection

from .test_monitor import TestMonitor

from .test_session import (
    TestSessionConstruction,
    TestConnect,
    TestDisconnect,
    TestChannelFault,
    TestClearBuffer
)

from .test_settings import TestPollSettings, TestLogLevel, TestProgress
