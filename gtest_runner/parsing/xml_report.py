"""Parser for the XML report written by gtest executables.

The report is produced with ``--gtest_output=xml:<file>`` and only exists when
the executable ran to completion. A missing or broken report is therefore not an
error, the console output is used instead.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from datetime import timedelta
from pathlib import Path

from gtest_runner.models.result import TestOutcome, TestResult
from gtest_runner.models.test_case import PARAMETER_SUFFIX_SEPARATOR, TestCase
from gtest_runner.parsing.error_message import ErrorMessageParser
from gtest_runner.parsing.source_files import SourceFileFinder

log = logging.getLogger(__name__)

MIN_DURATION = timedelta(milliseconds=1)
SKIPPED_RESULTS = {"skipped", "suppressed"}


class MalformedEntryError(ValueError):
    """Raised for a testcase element that cannot be interpreted."""


def parse_xml_report(
    xml_file: Path,
    test_cases: Sequence[TestCase],
    finder: SourceFileFinder,
) -> list[TestResult]:
    """Read results for the requested test cases from a gtest XML report.

    Args:
        xml_file: Report file the executable was asked to write
        test_cases: Test cases requested for the invocation
        finder: Resolver for source files named in failure messages

    Returns:
        One result per recognized testcase element, empty if the report is
        missing or unreadable

    """
    try:
        root = ET.parse(xml_file).getroot()
    except FileNotFoundError:
        log.warning("Test result file %s not found", xml_file)
        return []
    except (ET.ParseError, OSError) as e:
        log.warning("Test result file %s could not be parsed: %s", xml_file, e)
        return []

    test_cases_by_name = {tc.fully_qualified_name: tc for tc in test_cases}
    results: list[TestResult] = []
    for element in root.iter("testcase"):
        try:
            result = _parse_testcase(element, test_cases, test_cases_by_name, finder)
        except MalformedEntryError as e:
            log.warning("Skipping malformed entry in %s: %s", xml_file, e)
            continue
        if result is not None:
            results.append(result)

    return results


def _parse_testcase(
    element: ET.Element,
    test_cases: Sequence[TestCase],
    test_cases_by_name: Mapping[str, TestCase],
    finder: SourceFileFinder,
) -> TestResult | None:
    class_name = element.get("classname")
    name = element.get("name")
    if not class_name or not name:
        raise MalformedEntryError(f"testcase without name: {ET.tostring(element)!r}")

    qualified_name = f"{class_name}.{name}"
    test_case = _find_test_case(qualified_name, test_cases, test_cases_by_name)
    if test_case is None:
        log.debug("Ignoring result of test %s, it was not requested", qualified_name)
        return None

    failures = element.findall("failure")
    outcome = _parse_outcome(element, qualified_name, has_failures=bool(failures))
    duration = _parse_time(element, qualified_name)

    if outcome != "failed":
        return TestResult(test_case=test_case, outcome=outcome, duration=duration)

    error_text = "\n".join(
        (failure.text or failure.get("message", "")).strip() for failure in failures
    )
    parsed = ErrorMessageParser(error_text, finder).parse()
    return TestResult(
        test_case=test_case,
        outcome="failed",
        duration=duration,
        error_message=parsed.message,
        error_stack_trace=parsed.stack_trace,
    )


def _parse_outcome(
    element: ET.Element, qualified_name: str, *, has_failures: bool
) -> TestOutcome:
    status = element.get("status")
    if element.get("result") in SKIPPED_RESULTS or status == "notrun":
        return "skipped"
    if status == "run":
        return "failed" if has_failures else "passed"
    raise MalformedEntryError(f"invalid status '{status}' of test {qualified_name}")


def _parse_time(element: ET.Element, qualified_name: str) -> timedelta:
    try:
        duration = timedelta(milliseconds=round(float(element.get("time", "")) * 1000))
    except (ValueError, OverflowError) as e:
        raise MalformedEntryError(
            f"invalid time '{element.get('time')}' of test {qualified_name}"
        ) from e
    return max(MIN_DURATION, duration)


def _find_test_case(
    qualified_name: str,
    test_cases: Sequence[TestCase],
    test_cases_by_name: Mapping[str, TestCase],
) -> TestCase | None:
    if (test_case := test_cases_by_name.get(qualified_name)) is not None:
        return test_case
    prefix = qualified_name + PARAMETER_SUFFIX_SEPARATOR
    return next(
        (tc for tc in test_cases if tc.fully_qualified_name.startswith(prefix)), None
    )
