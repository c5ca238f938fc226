"""Abstract base class for test runners."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from gtest_runner.models.test_case import TestCase


class TestRunner(ABC):
    """Runs test cases and reports their results."""

    __test__ = False

    @abstractmethod
    async def run_tests(
        self,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str,
        user_parameters: str,
    ) -> None:
        """Run the requested test cases.

        Args:
            all_test_cases: Every known test case of the involved executables
            test_cases_to_run: Test cases requested for this run
            base_dir: Base directory of the sources (solution directory)
            user_parameters: Additional arguments, may contain placeholders

        """
