"""Launching test processes through an external debugger."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from gtest_runner.cancellation import CancellationToken
from gtest_runner.launchers.base import LaunchResult, ProcessLauncher, build_environment
from gtest_runner.launchers.direct import DirectProcessLauncher
from gtest_runner.models.settings import RunSettings

log = logging.getLogger(__name__)


class ProcessDebugger(ABC):
    """Host component able to start a process with a debugger attached."""

    @abstractmethod
    async def launch_and_attach(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        environment: Mapping[str, str],
    ) -> int:
        """Start the executable under the debugger and wait for it to exit.

        Returns:
            Exit code of the debugged process

        """


@dataclass(frozen=True, kw_only=True)
class DebuggedProcessLauncher(ProcessLauncher):
    """Delegates process creation to a debugger.

    Console output of debugged processes is not captured, so results come from
    the XML report only.
    """

    debugger: ProcessDebugger

    async def launch(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        path_extension: str = "",
        cancellation: CancellationToken | None = None,
    ) -> LaunchResult:
        """Hand the invocation over to the debugger."""
        log.info("Launching %s under debugger", executable)
        try:
            exit_code = await self.debugger.launch_and_attach(
                executable, arguments, working_dir, build_environment(path_extension)
            )
        except (OSError, ValueError) as e:
            log.error("Debugger could not start %s: %s", executable, e)
            return LaunchResult(error=f"Debugger could not start {executable}: {e}")

        return LaunchResult(exit_code=exit_code)


def create_launcher(
    settings: RunSettings, debugger: ProcessDebugger | None = None
) -> ProcessLauncher:
    """Select the launcher implementation for the given configuration."""
    if debugger is not None:
        return DebuggedProcessLauncher(debugger=debugger)
    return DirectProcessLauncher(
        print_test_output=settings.print_test_output
        and not settings.parallel_test_execution,
        kill_on_cancel=settings.kill_processes_on_cancel,
    )
