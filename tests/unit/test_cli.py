"""Tests for CLI module."""

import json
import logging
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import Mock, patch

import pytest

from gtest_runner.cli import format_output, log_results_summary, run, select_test_cases
from gtest_runner.models.test_case import TestCase
from gtest_runner.reporters.base import TestFrameworkReporter
from gtest_runner.testing.factories import TestResultFactory, make_test_cases


def test_log_results_summary_passed(caplog: pytest.LogCaptureFixture) -> None:
    """Logs passed results with checkmark symbol."""
    (test_case,) = make_test_cases("Suite.Passes")
    results = [
        TestResultFactory.build(test_case=test_case, duration=timedelta(milliseconds=1500))
    ]

    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), results)

    assert "Test Results Summary:" in caplog.text
    assert "✅ Suite.Passes: passed (1.500s)" in caplog.text


def test_log_results_summary_with_message(caplog: pytest.LogCaptureFixture) -> None:
    """Logs error message when present."""
    (test_case,) = make_test_cases("Suite.Fails")
    results = [
        TestResultFactory.build(
            test_case=test_case, outcome="failed", error_message="Expected: 3"
        )
    ]

    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), results)

    assert "❌ Suite.Fails: failed" in caplog.text
    assert "Message: Expected: 3" in caplog.text


def test_format_output_empty() -> None:
    """Returns empty totals when no results."""
    assert format_output([]) == {
        "total": 0,
        "passed": 0,
        "failed": 0,
        "skipped": 0,
        "results": [],
    }


def test_format_output_mixed_results() -> None:
    """Formats mixed results with correct totals."""
    passed, failed, skipped = make_test_cases("S.Passed", "S.Failed", "S.Skipped")
    results = [
        TestResultFactory.build(test_case=passed, duration=timedelta(milliseconds=12)),
        TestResultFactory.build(
            test_case=failed,
            outcome="failed",
            error_message="boom",
            error_stack_trace="at test.cpp:3 in /src/test.cpp:line 3\n",
        ),
        TestResultFactory.build(test_case=skipped, outcome="skipped"),
    ]

    output = format_output(results)

    assert (output["total"], output["passed"], output["failed"], output["skipped"]) == (
        3,
        1,
        1,
        1,
    )
    assert output["results"][0]["name"] == "S.Passed"
    assert output["results"][0]["executable"] == "/opt/tests/sample_tests"
    assert output["results"][0]["duration_ms"] == 12
    assert output["results"][1]["message"] == "boom"
    assert output["results"][1]["stack_trace"].startswith("at test.cpp:3")


def test_select_test_cases() -> None:
    """Filters select by fully-qualified name, no filter selects all."""
    test_cases = make_test_cases("S.A", "S.B", "S.C")

    assert select_test_cases(test_cases, []) == test_cases
    assert select_test_cases(test_cases, ["S.C", "S.A"]) == [test_cases[0], test_cases[2]]


class TestRun:
    """Tests for run function."""

    @pytest.fixture
    def catalog_path(self, tmp_path: Path) -> Path:
        """Catalog with two test cases."""
        path = tmp_path / "catalog.json"
        path.write_text(
            json.dumps(
                {
                    "test_cases": [
                        {"fully_qualified_name": "Suite.A", "source": "/opt/tests/t"},
                        {"fully_qualified_name": "Suite.B", "source": "/opt/tests/t"},
                    ]
                }
            )
        )
        return path

    @staticmethod
    def _orchestrator_reporting(outcome: str) -> Mock:
        """Orchestrator class whose runs report every test with outcome."""

        def create(*, reporter: TestFrameworkReporter, **kwargs: Any) -> Mock:
            async def run_tests(
                all_test_cases: Sequence[TestCase],
                test_cases_to_run: Sequence[TestCase],
                base_dir: str = "",
            ) -> None:
                reporter.report_test_results(
                    [
                        TestResultFactory.build(test_case=tc, outcome=outcome)
                        for tc in test_cases_to_run
                    ]
                )

            orchestrator = Mock()
            orchestrator.run_tests = run_tests
            return orchestrator

        return Mock(side_effect=create)

    async def test_returns_zero_when_all_tests_pass(
        self, catalog_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 0 and prints results when all tests pass."""
        with patch(
            "gtest_runner.cli.TestOrchestrator", self._orchestrator_reporting("passed")
        ):
            exit_code = await run(catalog_path, "{}", "/src")

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["passed"] == 2

    async def test_returns_one_when_test_fails(self, catalog_path: Path) -> None:
        """Returns 1 when any test fails."""
        with patch(
            "gtest_runner.cli.TestOrchestrator", self._orchestrator_reporting("failed")
        ):
            exit_code = await run(catalog_path, "{}", "/src")

        assert exit_code == 1

    async def test_filters_select_tests(
        self, catalog_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Only filtered tests are run."""
        with patch(
            "gtest_runner.cli.TestOrchestrator", self._orchestrator_reporting("passed")
        ):
            await run(catalog_path, "{}", "", filters=["Suite.B"])

        output = json.loads(capsys.readouterr().out)
        assert [r["name"] for r in output["results"]] == ["Suite.B"]

    async def test_returns_zero_when_nothing_selected(
        self, catalog_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 0 and prints empty results when no test matches."""
        exit_code = await run(catalog_path, "{}", "", filters=["Suite.Missing"])

        assert exit_code == 0
        assert '"total": 0' in capsys.readouterr().out

    async def test_invalid_settings(
        self, catalog_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 2 for invalid settings."""
        with caplog.at_level(logging.ERROR):
            exit_code = await run(catalog_path, '{"max_nr_of_threads": "many"}', "")

        assert exit_code == 2
        assert "Invalid run settings" in caplog.text

    async def test_missing_catalog(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 2 for a missing catalog."""
        with caplog.at_level(logging.ERROR):
            exit_code = await run(tmp_path / "missing.json", "{}", "")

        assert exit_code == 2
        assert "Cannot read test catalog" in caplog.text
