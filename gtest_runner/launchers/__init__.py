"""Process launchers for test executables."""

from gtest_runner.launchers.base import LaunchResult, ProcessLauncher
from gtest_runner.launchers.debugger import (
    DebuggedProcessLauncher,
    ProcessDebugger,
    create_launcher,
)
from gtest_runner.launchers.direct import DirectProcessLauncher

__all__ = [
    "DebuggedProcessLauncher",
    "DirectProcessLauncher",
    "LaunchResult",
    "ProcessDebugger",
    "ProcessLauncher",
    "create_launcher",
]
