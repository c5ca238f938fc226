"""Test orchestrator selecting sequential or parallel execution."""

import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from gtest_runner.cancellation import CancellationToken
from gtest_runner.launchers.base import ProcessLauncher
from gtest_runner.launchers.debugger import ProcessDebugger, create_launcher
from gtest_runner.models.settings import RunSettings
from gtest_runner.models.test_case import TestCase
from gtest_runner.reporters.base import TestFrameworkReporter
from gtest_runner.runners.base import TestRunner
from gtest_runner.runners.parallel import ParallelTestRunner
from gtest_runner.runners.preparing import PreparingTestRunner
from gtest_runner.runners.sequential import SequentialTestRunner
from gtest_runner.scheduling.analyzer import SchedulingAnalyzer
from gtest_runner.scheduling.durations import TestDurationStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class TestOrchestrator:
    """Runs test cases of gtest executables and reports their results.

    ``cancel()`` may be called from any thread; it stops every worker before
    its next batch and, if configured, kills running test processes.
    """

    __test__ = False

    reporter: TestFrameworkReporter
    settings: RunSettings = field(default_factory=RunSettings)
    debugger: ProcessDebugger | None = None
    launcher: ProcessLauncher | None = None
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    duration_store: TestDurationStore = field(default_factory=TestDurationStore)
    scheduling_analyzer: SchedulingAnalyzer = field(default_factory=SchedulingAnalyzer)

    def __post_init__(self) -> None:
        if self.launcher is None:
            self.launcher = create_launcher(self.settings, self.debugger)

    def cancel(self) -> None:
        """Request cancellation of the running tests."""
        self.cancellation.cancel()

    @property
    def nr_of_threads(self) -> int:
        """Number of parallel workers according to the settings."""
        if not self.settings.parallel_test_execution or self.debugger is not None:
            return 1
        return self.settings.max_nr_of_threads or os.cpu_count() or 1

    async def run_tests(
        self,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str = "",
    ) -> None:
        """Run the requested test cases.

        Args:
            all_test_cases: Every known test case of the involved executables
            test_cases_to_run: Test cases requested for this run
            base_dir: Base directory of the sources (solution directory)

        """
        if not test_cases_to_run:
            log.info("No test cases to run")
            return

        test_root = Path(tempfile.mkdtemp(prefix="gtest_runner_"))
        try:
            runner = self._create_runner(test_root)
            log.info("Running %d test case(s)...", len(test_cases_to_run))
            await runner.run_tests(
                all_test_cases,
                test_cases_to_run,
                base_dir,
                self.settings.additional_test_execution_params,
            )
        finally:
            shutil.rmtree(test_root, ignore_errors=True)

        if self.cancellation.is_cancelled:
            log.info("Test execution cancelled")
        else:
            log.info("Test execution completed")

        if self.settings.debug_mode:
            self.scheduling_analyzer.log_analysis()

    def _create_runner(self, test_root: Path) -> TestRunner:
        if self.nr_of_threads > 1:
            return ParallelTestRunner(
                runner_factory=lambda thread_id: self._create_worker(
                    thread_id, test_root
                ),
                nr_of_threads=self.nr_of_threads,
                duration_store=self.duration_store,
                scheduling_analyzer=self.scheduling_analyzer,
            )
        return self._create_worker(0, test_root)

    def _create_worker(self, thread_id: int, test_root: Path) -> TestRunner:
        assert self.launcher is not None
        return PreparingTestRunner(
            inner=SequentialTestRunner(
                reporter=self.reporter,
                launcher=self.launcher,
                settings=self.settings,
                cancellation=self.cancellation,
                duration_store=self.duration_store,
                scheduling_analyzer=self.scheduling_analyzer,
            ),
            settings=self.settings,
            thread_id=thread_id,
            test_dir=test_root / str(thread_id),
        )
