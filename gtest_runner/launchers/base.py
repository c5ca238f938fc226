"""Abstract base class for launching test executables."""

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from gtest_runner.cancellation import CancellationToken


@dataclass(frozen=True, kw_only=True)
class LaunchResult:
    """Outcome of one process invocation.

    The launcher never decides whether tests passed. A process that could not be
    started has ``error`` set and ``exit_code`` of None.
    """

    output: Sequence[str] = field(default_factory=list)
    exit_code: int | None = None
    error: str | None = None
    killed: bool = False


@dataclass(frozen=True, kw_only=True)
class ProcessLauncher(ABC):
    """Runs a test executable and captures its console output."""

    @abstractmethod
    async def launch(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        path_extension: str = "",
        cancellation: CancellationToken | None = None,
    ) -> LaunchResult:
        """Run an executable until it exits.

        Args:
            executable: Path of the test executable
            arguments: Command line arguments as a single string
            working_dir: Working directory of the process
            path_extension: Directories to prepend to PATH
            cancellation: Token whose cancellation may terminate the process

        Returns:
            Captured output lines, exit code and launch error if any

        """


def build_environment(path_extension: str) -> Mapping[str, str]:
    """Return the current environment with path_extension prepended to PATH."""
    environment = dict(os.environ)
    if path_extension:
        current = environment.get("PATH", "")
        environment["PATH"] = (
            f"{path_extension}{os.pathsep}{current}" if current else path_extension
        )
    return environment
