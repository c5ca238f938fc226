"""Parser for the console protocol printed by gtest executables.

The protocol is line oriented::

    [ RUN      ] TestMath.AddFails
    source.cpp(6): error: Value of: Add(10, 10)
    [  FAILED  ] TestMath.AddFails (3 ms)
    [ RUN      ] TestMath.AddPasses
    [       OK ] TestMath.AddPasses (0 ms)

A RUN marker without a terminating OK or FAILED marker means the process died
while running that test.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase
from gtest_runner.parsing.error_message import ErrorMessageParser
from gtest_runner.parsing.source_files import SourceFileFinder

log = logging.getLogger(__name__)

RUN_MARKER = "[ RUN      ]"
FAILED_MARKER = "[  FAILED  ]"
PASSED_MARKER = "[       OK ]"

CRASH_TEXT = "!! This is probably the test that crashed !!"
OUTPUT_HEADING = "Test output:"

MIN_DURATION = timedelta(milliseconds=1)


@dataclass(frozen=True, kw_only=True)
class ConsoleParseResult:
    """Results found in console output and the test suspected of crashing."""

    results: Sequence[TestResult]
    crash_suspect: TestCase | None = None


def parse_console_output(
    lines: Sequence[str],
    test_cases: Sequence[TestCase],
    finder: SourceFileFinder,
) -> ConsoleParseResult:
    """Create one result per RUN marker found in the output.

    Args:
        lines: Console output of one process invocation
        test_cases: Test cases requested for that invocation
        finder: Resolver for source files named in failure messages

    Returns:
        Parsed results in output order and the crash suspect, if any

    """
    results: list[TestResult] = []
    crash_suspect: TestCase | None = None

    index = _find_next_run_marker(lines, 0)
    while index >= 0:
        printed_name = lines[index][len(RUN_MARKER) :].strip()
        test_case = _find_test_case(test_cases, printed_name)
        if test_case is None:
            log.warning("Ignoring output of unexpected test: '%s'", lines[index])
        else:
            result, crashed = _create_result(lines, index + 1, test_case, finder)
            results.append(result)
            if crashed:
                crash_suspect = test_case
        index = _find_next_run_marker(lines, index + 1)

    return ConsoleParseResult(results=results, crash_suspect=crash_suspect)


def parse_duration(line: str) -> timedelta:
    """Parse the ``(N ms)`` suffix of a marker line, at least 1 ms.

    Unparseable durations are logged and replaced by 1 ms.
    """
    try:
        duration_part = line[line.rindex("(") + 1 : line.rindex(")")]
        duration = timedelta(milliseconds=int(duration_part.replace("ms", "").strip()))
    except (ValueError, OverflowError):
        log.warning("Could not parse duration in line '%s'", line)
        return MIN_DURATION

    return max(MIN_DURATION, duration)


def _create_result(
    lines: Sequence[str],
    start: int,
    test_case: TestCase,
    finder: SourceFileFinder,
) -> tuple[TestResult, bool]:
    """Build the result of the test whose RUN marker precedes ``start``.

    Returns:
        The result and whether the test is suspected to have crashed

    """
    accumulated: list[str] = []
    for line in lines[start:]:
        if line.startswith(FAILED_MARKER):
            parsed = ErrorMessageParser(_join(accumulated), finder).parse()
            result = TestResult(
                test_case=test_case,
                outcome="failed",
                duration=parse_duration(line),
                error_message=parsed.message,
                error_stack_trace=parsed.stack_trace,
            )
            return result, False
        if line.startswith(PASSED_MARKER):
            result = TestResult(
                test_case=test_case,
                outcome="passed",
                duration=parse_duration(line),
            )
            return result, False
        accumulated.append(line)

    message = CRASH_TEXT
    if accumulated:
        message += f"\n{OUTPUT_HEADING}\n\n{_join(accumulated)}"
    result = TestResult(
        test_case=test_case,
        outcome="failed",
        duration=timedelta(0),
        error_message=message,
        error_stack_trace="",
    )
    return result, True


def _join(lines: Sequence[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def _find_next_run_marker(lines: Sequence[str], start: int) -> int:
    for index in range(start, len(lines)):
        if lines[index].startswith(RUN_MARKER):
            return index
    return -1


def _find_test_case(test_cases: Sequence[TestCase], printed_name: str) -> TestCase | None:
    if not printed_name:
        return None
    # First match wins, even when one name is a prefix of another.
    return next(
        (tc for tc in test_cases if tc.fully_qualified_name.startswith(printed_name)),
        None,
    )
