"""Tests for debugger launching and launcher selection."""

from collections.abc import Mapping

from gtest_runner.launchers import (
    DebuggedProcessLauncher,
    DirectProcessLauncher,
    ProcessDebugger,
    create_launcher,
)
from gtest_runner.models.settings import RunSettings


class FakeDebugger(ProcessDebugger):
    """Debugger recording its invocations."""

    def __init__(self, exit_code: int = 0, error: Exception | None = None) -> None:
        self.exit_code = exit_code
        self.error = error
        self.calls: list[tuple[str, str, str, str]] = []

    async def launch_and_attach(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        environment: Mapping[str, str],
    ) -> int:
        self.calls.append((executable, arguments, working_dir, environment["PATH"]))
        if self.error is not None:
            raise self.error
        return self.exit_code


async def test_debugged_launch_has_no_output() -> None:
    """Debugged processes report their exit code but no console output."""
    debugger = FakeDebugger(exit_code=1)
    launcher = DebuggedProcessLauncher(debugger=debugger)

    result = await launcher.launch("/opt/tests/t", "--gtest_filter=A.*", "/work", "/libs")

    assert result.exit_code == 1
    assert list(result.output) == []
    assert result.error is None
    assert debugger.calls[0][:3] == ("/opt/tests/t", "--gtest_filter=A.*", "/work")
    assert debugger.calls[0][3].startswith("/libs")


async def test_debugger_start_failure() -> None:
    """A debugger unable to start the process yields a launch error."""
    launcher = DebuggedProcessLauncher(debugger=FakeDebugger(error=OSError("busy")))

    result = await launcher.launch("/opt/tests/t", "", "/work")

    assert result.exit_code is None
    assert result.error is not None
    assert "busy" in result.error


def test_create_launcher_with_debugger() -> None:
    """An attached debugger selects the debugged launcher."""
    launcher = create_launcher(RunSettings(), FakeDebugger())

    assert isinstance(launcher, DebuggedProcessLauncher)


def test_create_launcher_direct() -> None:
    """Without debugger processes are launched directly."""
    launcher = create_launcher(
        RunSettings(print_test_output=True, kill_processes_on_cancel=True)
    )

    assert launcher == DirectProcessLauncher(print_test_output=True, kill_on_cancel=True)


def test_no_printed_output_in_parallel() -> None:
    """Output of concurrent processes is never printed."""
    launcher = create_launcher(
        RunSettings(print_test_output=True, parallel_test_execution=True)
    )

    assert launcher == DirectProcessLauncher(print_test_output=False)
