"""Comparison of expected and actual test durations."""

import logging
import threading
from collections.abc import Mapping, Sequence

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase

log = logging.getLogger(__name__)

NR_OF_DEVIATIONS_SHOWN = 10


class SchedulingAnalyzer:
    """Collects expected and actual durations to judge scheduling quality."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._expected: dict[TestCase, int] = {}
        self._actual: dict[TestCase, int] = {}

    def add_expected_durations(self, durations: Mapping[TestCase, int]) -> None:
        with self._lock:
            self._expected.update(durations)

    def add_actual_durations(self, results: Sequence[TestResult]) -> None:
        with self._lock:
            for result in results:
                if result.outcome != "skipped":
                    self._actual[result.test_case] = int(
                        result.duration.total_seconds() * 1000
                    )

    def deviations(self) -> list[tuple[TestCase, int]]:
        """Actual minus expected duration, largest absolute deviation first."""
        with self._lock:
            common = [tc for tc in self._actual if tc in self._expected]
            deviations = [(tc, self._actual[tc] - self._expected[tc]) for tc in common]
        return sorted(
            deviations, key=lambda entry: (-abs(entry[1]), entry[0].fully_qualified_name)
        )

    def log_analysis(self) -> None:
        """Log a summary of how well expected durations matched."""
        deviations = self.deviations()
        with self._lock:
            nr_without_expectation = len(
                [tc for tc in self._actual if tc not in self._expected]
            )
        if not deviations:
            log.debug("Scheduling analysis: no tests with expected durations")
            return

        total = sum(abs(deviation) for _, deviation in deviations)
        log.debug(
            "Scheduling analysis: %d test(s) with expected duration, "
            "%d without, average deviation %d ms",
            len(deviations),
            nr_without_expectation,
            total // len(deviations),
        )
        for test_case, deviation in deviations[:NR_OF_DEVIATIONS_SHOWN]:
            log.debug("  %s: %+d ms", test_case.fully_qualified_name, deviation)
