"""Splitting of test selections into command lines of bounded length."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from gtest_runner.models.settings import RunSettings
from gtest_runner.models.test_case import TestCase

log = logging.getLogger(__name__)

# Maximum length of a command line on Windows, applied on all platforms.
MAX_COMMAND_LENGTH = 8191

GTEST_FILTER = "--gtest_filter="
FILTER_SEPARATOR = ":"


@dataclass(frozen=True, kw_only=True)
class CommandLineBatch:
    """Arguments of one process invocation and the tests it runs."""

    test_cases: Sequence[TestCase]
    command_line: str


@dataclass(frozen=True, kw_only=True)
class _FilterItem:
    expression: str
    test_cases: Sequence[TestCase]


class CommandLineGenerator:
    """Generates command lines running exactly the requested tests.

    Every requested test case ends up in exactly one batch, and no batch exceeds
    ``MAX_COMMAND_LENGTH`` unless a single filter item is already too long.
    """

    def __init__(
        self,
        executable: str,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        user_parameters: str,
        result_xml_file: str,
        settings: RunSettings,
    ) -> None:
        self.executable = executable
        self.all_test_cases = list(all_test_cases)
        self.test_cases_to_run = list(dict.fromkeys(test_cases_to_run))
        self.user_parameters = user_parameters
        self.result_xml_file = result_xml_file
        self.settings = settings

    def get_command_lines(self) -> Iterator[CommandLineBatch]:
        """Yield command lines lazily, in deterministic order."""
        if not self.test_cases_to_run:
            return

        base_command_line = self._base_command_line()
        user_parameters = f" {self.user_parameters}" if self.user_parameters else ""

        if self._all_test_cases_are_run():
            yield CommandLineBatch(
                test_cases=self.test_cases_to_run,
                command_line=base_command_line + user_parameters,
            )
            return

        # executable, separating blank, base parameters, filter switch, user parameters
        max_filter_length = (
            MAX_COMMAND_LENGTH
            - len(self.executable)
            - 1
            - len(base_command_line)
            - len(GTEST_FILTER)
            - 1
            - len(user_parameters)
        )

        expressions: list[str] = []
        test_cases: list[TestCase] = []
        filter_length = 0
        for item in self._filter_items():
            added_length = len(item.expression) + (1 if expressions else 0)
            if expressions and filter_length + added_length > max_filter_length:
                yield self._batch(base_command_line, user_parameters, expressions, test_cases)
                expressions, test_cases, filter_length = [], [], 0
                added_length = len(item.expression)

            if added_length > max_filter_length:
                log.warning(
                    "Filter for %s exceeds the maximum command line length, "
                    "running it in its own process",
                    item.expression,
                )
            expressions.append(item.expression)
            test_cases.extend(item.test_cases)
            filter_length += added_length

        if expressions:
            yield self._batch(base_command_line, user_parameters, expressions, test_cases)

    def _batch(
        self,
        base_command_line: str,
        user_parameters: str,
        expressions: Sequence[str],
        test_cases: Sequence[TestCase],
    ) -> CommandLineBatch:
        filter_expression = FILTER_SEPARATOR.join(expressions)
        return CommandLineBatch(
            test_cases=list(test_cases),
            command_line=(
                f"{base_command_line} {GTEST_FILTER}{filter_expression}{user_parameters}"
            ),
        )

    def _filter_items(self) -> list[_FilterItem]:
        """Whole suites as ``Suite.*`` where possible, single tests otherwise."""
        requested_by_suite: dict[str, list[TestCase]] = {}
        for test_case in self.test_cases_to_run:
            requested_by_suite.setdefault(test_case.suite, []).append(test_case)

        suite_sizes: dict[str, int] = {}
        for test_case in dict.fromkeys(self.all_test_cases):
            suite_sizes[test_case.suite] = suite_sizes.get(test_case.suite, 0) + 1

        items: list[_FilterItem] = []
        for suite, requested in requested_by_suite.items():
            if len(requested) == suite_sizes.get(suite, 0):
                items.append(_FilterItem(expression=f"{suite}.*", test_cases=requested))
            else:
                items.extend(
                    _FilterItem(expression=tc.filter_name, test_cases=[tc])
                    for tc in requested
                )
        return items

    def _all_test_cases_are_run(self) -> bool:
        all_names = {tc.fully_qualified_name for tc in self.all_test_cases}
        requested_names = {tc.fully_qualified_name for tc in self.test_cases_to_run}
        return all_names <= requested_names

    def _base_command_line(self) -> str:
        parameters = [f'--gtest_output="xml:{self.result_xml_file}"']
        if self.settings.run_disabled_tests:
            parameters.append("--gtest_also_run_disabled_tests")
        if not self.settings.catch_exceptions:
            parameters.append("--gtest_catch_exceptions=0")
        if self.settings.break_on_failure:
            parameters.append("--gtest_break_on_failure")
        if self.settings.shuffle_tests:
            parameters.append("--gtest_shuffle")
            if self.settings.shuffle_tests_seed:
                parameters.append(f"--gtest_random_seed={self.settings.shuffle_tests_seed}")
        if self.settings.nr_of_test_repetitions != 1:
            parameters.append(f"--gtest_repeat={self.settings.nr_of_test_repetitions}")
        return " ".join(parameters)
