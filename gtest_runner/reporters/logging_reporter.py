"""Reporter writing test progress to the log."""

import logging
from collections.abc import Sequence

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase
from gtest_runner.reporters.base import TestFrameworkReporter

OUTCOME_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "skipped": "⏭️",
}


class LoggingReporter(TestFrameworkReporter):
    """Logs one line per finished test."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logging.getLogger(__name__)

    def report_tests_started(self, test_cases: Sequence[TestCase]) -> None:
        self.log.info("Running %d test(s)...", len(test_cases))

    def report_test_results(self, results: Sequence[TestResult]) -> None:
        for result in results:
            self.log.info(
                "%s %s: %s (%dms)",
                OUTCOME_SYMBOLS.get(result.outcome, "?"),
                result.test_case.display_name,
                result.outcome,
                result.duration.total_seconds() * 1000,
            )
            if result.error_message:
                self.log.info("  Message: %s", result.error_message)
