"""Runner wrapping a worker with per-worker directories and setup scripts."""

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from gtest_runner.launchers.base import ProcessLauncher
from gtest_runner.launchers.direct import DirectProcessLauncher
from gtest_runner.models.settings import (
    SOLUTION_DIR_PLACEHOLDER,
    TEST_DIR_PLACEHOLDER,
    THREAD_ID_PLACEHOLDER,
    RunSettings,
    substitute_placeholder,
)
from gtest_runner.models.test_case import TestCase
from gtest_runner.runners.base import TestRunner

log = logging.getLogger(__name__)

TEST_SETUP = "Test setup"
TEST_TEARDOWN = "Test teardown"


@dataclass(kw_only=True)
class PreparingTestRunner(TestRunner):
    """Prepares the environment of one worker around an inner runner.

    A test directory is created for the worker and the $(TestDir) and
    $(ThreadId) placeholders are resolved. The configured setup and teardown
    batch files run before and after the tests; their failures are logged and
    never abort the run.
    """

    inner: TestRunner
    settings: RunSettings
    thread_id: int
    test_dir: Path
    batch_launcher: ProcessLauncher = field(default_factory=DirectProcessLauncher)

    async def run_tests(
        self,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str,
        user_parameters: str,
    ) -> None:
        """Run setup batch, inner runner and teardown batch."""
        self.test_dir.mkdir(parents=True, exist_ok=True)
        try:
            await self._run_batch_file(
                TEST_SETUP, self.settings.batch_for_test_setup, base_dir
            )
            await self.inner.run_tests(
                all_test_cases,
                test_cases_to_run,
                base_dir,
                self._substitute(user_parameters, base_dir),
            )
        finally:
            await self._run_batch_file(
                TEST_TEARDOWN, self.settings.batch_for_test_teardown, base_dir
            )
            shutil.rmtree(self.test_dir, onexc=self._log_removal_error)

    async def _run_batch_file(self, step: str, batch_file: str, base_dir: str) -> None:
        if not batch_file:
            return

        batch = self._substitute(batch_file, base_dir)
        if not Path(batch).is_file():
            log.error("%s: batch file '%s' does not exist", step, batch)
            return

        log.info("%s: running batch file '%s'", step, batch)
        result = await self.batch_launcher.launch(batch, "", str(self.test_dir))
        if result.error is not None:
            log.error("%s: batch file '%s' could not be run: %s", step, batch, result.error)
        elif result.exit_code != 0:
            log.warning(
                "%s: batch file '%s' returned exit code %s", step, batch, result.exit_code
            )

    def _substitute(self, template: str, base_dir: str) -> str:
        result = substitute_placeholder(template, TEST_DIR_PLACEHOLDER, str(self.test_dir))
        result = substitute_placeholder(result, THREAD_ID_PLACEHOLDER, str(self.thread_id))
        return substitute_placeholder(result, SOLUTION_DIR_PLACEHOLDER, base_dir)

    @staticmethod
    def _log_removal_error(function: object, path: str, error: BaseException) -> None:
        log.warning("Could not remove test directory %s: %s", path, error)
