"""Runner executing the batches of each executable one after another."""

import logging
import os
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from gtest_runner.cancellation import CancellationToken
from gtest_runner.command_line import CommandLineBatch, CommandLineGenerator
from gtest_runner.launchers.base import ProcessLauncher
from gtest_runner.models.settings import (
    EXECUTABLE_DIR_PLACEHOLDER,
    EXECUTABLE_PLACEHOLDER,
    SOLUTION_DIR_PLACEHOLDER,
    RunSettings,
    substitute_placeholder,
)
from gtest_runner.models.test_case import TestCase, group_by_executable
from gtest_runner.parsing.console import parse_console_output
from gtest_runner.parsing.source_files import SourceFileFinder
from gtest_runner.parsing.xml_report import parse_xml_report
from gtest_runner.reporters.base import TestFrameworkReporter
from gtest_runner.runners.base import TestRunner
from gtest_runner.runners.reconcile import reconcile
from gtest_runner.scheduling.analyzer import SchedulingAnalyzer
from gtest_runner.scheduling.durations import TestDurationStore

log = logging.getLogger(__name__)


class RunnerState(StrEnum):
    """Progress of a runner through the batches of an executable."""

    IDLE = "idle"
    GENERATING_BATCH = "generating_batch"
    EXECUTING = "executing"
    PARSING = "parsing"
    RECONCILING = "reconciling"
    REPORTING = "reporting"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(kw_only=True)
class SequentialTestRunner(TestRunner):
    """Runs one process at a time and reports results after each batch.

    Cancellation is checked before each batch is generated and again right
    before its process is launched. Results already reported stay reported.
    """

    reporter: TestFrameworkReporter
    launcher: ProcessLauncher
    settings: RunSettings
    cancellation: CancellationToken
    duration_store: TestDurationStore
    scheduling_analyzer: SchedulingAnalyzer | None = None
    state: RunnerState = field(default=RunnerState.IDLE, init=False)

    async def run_tests(
        self,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str,
        user_parameters: str,
    ) -> None:
        """Run the requested tests, grouped by executable."""
        for executable, test_cases in group_by_executable(test_cases_to_run).items():
            if self.cancellation.is_cancelled:
                self._set_state(RunnerState.CANCELLED)
                return

            completed = await self._run_tests_from_executable(
                executable,
                [tc for tc in all_test_cases if tc.source == executable],
                test_cases,
                base_dir,
                self._substitute(user_parameters, executable, base_dir),
            )
            if not completed:
                return

        self._set_state(RunnerState.DONE)

    async def _run_tests_from_executable(
        self,
        executable: str,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str,
        user_parameters: str,
    ) -> bool:
        """Run all batches of one executable.

        Returns:
            False if the run was cancelled

        """
        fd, result_xml_file = tempfile.mkstemp(prefix="gtest_results_", suffix=".xml")
        os.close(fd)
        finder = SourceFileFinder(base_dir)
        generator = CommandLineGenerator(
            executable,
            all_test_cases,
            test_cases_to_run,
            user_parameters,
            result_xml_file,
            self.settings,
        )

        try:
            batches = generator.get_command_lines()
            while True:
                self._set_state(RunnerState.GENERATING_BATCH)
                if self.cancellation.is_cancelled:
                    self._set_state(RunnerState.CANCELLED)
                    return False
                if (batch := next(batches, None)) is None:
                    return True
                if not await self._run_batch(
                    executable, batch, Path(result_xml_file), base_dir, finder
                ):
                    return False
        finally:
            Path(result_xml_file).unlink(missing_ok=True)

    async def _run_batch(
        self,
        executable: str,
        batch: CommandLineBatch,
        result_xml_file: Path,
        base_dir: str,
        finder: SourceFileFinder,
    ) -> bool:
        self._set_state(RunnerState.EXECUTING)
        if self.cancellation.is_cancelled:
            self._set_state(RunnerState.CANCELLED)
            return False

        result_xml_file.unlink(missing_ok=True)
        self.reporter.report_tests_started(batch.test_cases)
        launch_result = await self.launcher.launch(
            executable,
            batch.command_line,
            self._substitute(self.settings.working_dir, executable, base_dir),
            self._substitute(self.settings.path_extension, executable, base_dir),
            self.cancellation,
        )
        if launch_result.error is not None:
            log.error(
                "Could not run %d test(s) of %s: %s",
                len(batch.test_cases),
                executable,
                launch_result.error,
            )

        self._set_state(RunnerState.PARSING)
        xml_results = parse_xml_report(result_xml_file, batch.test_cases, finder)
        console = parse_console_output(launch_result.output, batch.test_cases, finder)

        self._set_state(RunnerState.RECONCILING)
        results = reconcile(
            batch.test_cases,
            xml_results,
            console.results,
            console.crash_suspect,
            launch_result.error,
        )

        self._set_state(RunnerState.REPORTING)
        start = time.monotonic()
        self.reporter.report_test_results(results)
        log.debug(
            "Reported %d test results, executable: '%s', duration: %.3fs",
            len(results),
            executable,
            time.monotonic() - start,
        )

        self.duration_store.update_durations(results)
        if self.scheduling_analyzer is not None:
            self.scheduling_analyzer.add_actual_durations(results)
        return True

    def _set_state(self, state: RunnerState) -> None:
        log.debug("Runner state: %s -> %s", self.state, state)
        self.state = state

    @staticmethod
    def _substitute(template: str, executable: str, base_dir: str) -> str:
        result = substitute_placeholder(template, EXECUTABLE_PLACEHOLDER, executable)
        result = substitute_placeholder(
            result, EXECUTABLE_DIR_PLACEHOLDER, os.path.dirname(os.path.abspath(executable))
        )
        return substitute_placeholder(result, SOLUTION_DIR_PLACEHOLDER, base_dir)
