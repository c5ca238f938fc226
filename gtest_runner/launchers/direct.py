"""Launcher creating test processes directly."""

import asyncio
import logging
import os
import shlex
from collections.abc import Callable
from dataclasses import dataclass

import psutil

from gtest_runner.cancellation import CancellationToken
from gtest_runner.launchers.base import LaunchResult, ProcessLauncher, build_environment

log = logging.getLogger(__name__)

STREAM_LIMIT = 1024 * 1024


def split_arguments(arguments: str) -> list[str]:
    """Split a command line string into an argument vector."""
    return shlex.split(arguments, posix=os.name != "nt")


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants without waiting for them.

    The launching coroutine reaps the direct child; callers may run on the
    event loop thread.
    """
    try:
        parent = psutil.Process(pid)
        processes = [*parent.children(recursive=True), parent]
    except psutil.NoSuchProcess:
        return

    for process in processes:
        try:
            process.kill()
        except psutil.NoSuchProcess:
            pass


@dataclass(frozen=True, kw_only=True)
class DirectProcessLauncher(ProcessLauncher):
    """Runs the executable as a child process with merged stdout and stderr."""

    print_test_output: bool = False
    kill_on_cancel: bool = False

    async def launch(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        path_extension: str = "",
        cancellation: CancellationToken | None = None,
    ) -> LaunchResult:
        """Run the executable and collect its output line by line."""
        log.debug(
            "Launching %s with arguments '%s' in %s", executable, arguments, working_dir
        )
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *split_arguments(arguments),
                cwd=working_dir or None,
                env=build_environment(path_extension),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                limit=STREAM_LIMIT,
            )
        except (OSError, ValueError) as e:
            log.error("Could not start %s: %s", executable, e)
            return LaunchResult(error=f"Could not start {executable}: {e}")

        killed = False

        def kill() -> None:
            nonlocal killed
            killed = True
            log.info("Killing process %d (%s)", process.pid, executable)
            kill_process_tree(process.pid)

        unregister: Callable[[], None] | None = None
        if self.kill_on_cancel and cancellation is not None:
            unregister = cancellation.register(kill)

        output: list[str] = []
        error: str | None = None
        try:
            assert process.stdout is not None
            try:
                async for raw_line in process.stdout:
                    line = raw_line.decode(errors="replace").rstrip("\r\n")
                    if self.print_test_output:
                        log.info(">>> %s", line)
                    output.append(line)
            except (ValueError, OSError) as e:
                error = f"Could not read output of {executable}: {e}"
                log.error("%s", error)
                kill_process_tree(process.pid)
            exit_code = await process.wait()
        finally:
            if unregister is not None:
                unregister()

        if killed:
            log.warning("Process %s was killed on cancellation", executable)
        elif exit_code != 0:
            log.debug("Process %s exited with code %d", executable, exit_code)

        return LaunchResult(
            output=output, exit_code=exit_code, error=error, killed=killed
        )
