"""Models for test execution results."""

import platform
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Literal

from gtest_runner.models.test_case import TestCase

TestOutcome = Literal["passed", "failed", "skipped"]


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Result of a single test case within one run attempt."""

    __test__ = False

    test_case: TestCase
    outcome: TestOutcome
    duration: timedelta = timedelta(0)
    error_message: str = ""
    error_stack_trace: str | None = None
    computer_name: str = field(default_factory=platform.node)

    @property
    def fully_qualified_name(self) -> str:
        """Identity of the test this result belongs to."""
        return self.test_case.fully_qualified_name
