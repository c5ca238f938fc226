"""Merging of XML and console results into one result per requested test."""

import logging
from collections.abc import Iterable, Sequence

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase
from gtest_runner.parsing.error_message import create_stack_trace_entry

log = logging.getLogger(__name__)


def reconcile(
    test_cases: Sequence[TestCase],
    xml_results: Iterable[TestResult],
    console_results: Iterable[TestResult],
    crash_suspect: TestCase | None = None,
    launch_error: str | None = None,
) -> list[TestResult]:
    """Return exactly one result per requested test case, sorted by name.

    XML results are authoritative, console results fill the gaps, and tests
    found in neither source are reported as skipped. A crash suspect, if any,
    is named as the probable reason for the missing results.
    """
    by_name: dict[str, TestResult | None] = {
        tc.fully_qualified_name: None for tc in test_cases
    }

    nr_from_xml = _fill_missing(by_name, xml_results)
    log.debug("Collected %d test results from XML result file", nr_from_xml)

    nr_from_console = _fill_missing(by_name, console_results)
    log.debug("Collected %d test results from console output", nr_from_console)

    missing = [tc for tc in test_cases if by_name[tc.fully_qualified_name] is None]
    if missing:
        error_message, error_stack_trace = _missing_result_reason(
            crash_suspect, launch_error
        )
        for test_case in missing:
            by_name[test_case.fully_qualified_name] = TestResult(
                test_case=test_case,
                outcome="skipped",
                error_message=error_message,
                error_stack_trace=error_stack_trace,
            )
        log.debug(
            "Created %d test results for tests which were neither found in the "
            "result XML file nor in the console output",
            len(missing),
        )

    return sorted(
        (result for result in by_name.values() if result is not None),
        key=lambda result: result.fully_qualified_name,
    )


def _fill_missing(
    by_name: dict[str, TestResult | None], results: Iterable[TestResult]
) -> int:
    """Set results for requested tests which have none yet."""
    count = 0
    for result in results:
        name = result.fully_qualified_name
        if name in by_name and by_name[name] is None:
            by_name[name] = result
            count += 1
    return count


def _missing_result_reason(
    crash_suspect: TestCase | None, launch_error: str | None
) -> tuple[str, str | None]:
    if crash_suspect is not None:
        return (
            f"reason is probably a crash of test {crash_suspect.display_name}",
            create_stack_trace_entry(
                "crash suspect", crash_suspect.code_file_path, crash_suspect.line_number
            ),
        )
    if launch_error is not None:
        return launch_error, None
    return "", None
