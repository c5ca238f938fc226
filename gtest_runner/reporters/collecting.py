"""Reporter accumulating everything it receives."""

import threading
from collections.abc import Sequence

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase
from gtest_runner.reporters.base import TestFrameworkReporter


class CollectingReporter(TestFrameworkReporter):
    """Thread-safe reporter keeping all started tests and results.

    Notifications are forwarded to an optional delegate.
    """

    def __init__(self, delegate: TestFrameworkReporter | None = None) -> None:
        self.delegate = delegate
        self._lock = threading.Lock()
        self._started: list[TestCase] = []
        self._results: list[TestResult] = []

    @property
    def started(self) -> list[TestCase]:
        with self._lock:
            return list(self._started)

    @property
    def results(self) -> list[TestResult]:
        with self._lock:
            return list(self._results)

    def report_tests_started(self, test_cases: Sequence[TestCase]) -> None:
        with self._lock:
            self._started.extend(test_cases)
        if self.delegate is not None:
            self.delegate.report_tests_started(test_cases)

    def report_test_results(self, results: Sequence[TestResult]) -> None:
        with self._lock:
            self._results.extend(results)
        if self.delegate is not None:
            self.delegate.report_test_results(results)
