"""Abstract sink receiving test progress and results."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase


class TestFrameworkReporter(ABC):
    """Receives notifications while tests are executed.

    Implementations must accept repeated calls from concurrent workers.
    """

    __test__ = False

    @abstractmethod
    def report_tests_started(self, test_cases: Sequence[TestCase]) -> None:
        """Notify that a batch of test cases is about to run."""

    @abstractmethod
    def report_test_results(self, results: Sequence[TestResult]) -> None:
        """Hand over the results of a finished batch."""
