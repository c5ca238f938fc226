"""CLI entry point for running gtest executables."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from gtest_runner.models.result import TestResult
from gtest_runner.models.settings import SettingsError, load_settings
from gtest_runner.models.test_case import CatalogError, TestCase, load_test_catalog
from gtest_runner.orchestrator import TestOrchestrator
from gtest_runner.reporters.collecting import CollectingReporter
from gtest_runner.reporters.logging_reporter import OUTCOME_SYMBOLS, LoggingReporter


def log_results_summary(log: logging.Logger, results: Sequence[TestResult]) -> None:
    """Log a formatted summary of test results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in results:
        log.info(
            "%s %s: %s (%.3fs)",
            OUTCOME_SYMBOLS.get(result.outcome, "?"),
            result.fully_qualified_name,
            result.outcome,
            result.duration.total_seconds(),
        )
        if result.error_message:
            log.info("  Message: %s", result.error_message)


def select_test_cases(
    test_cases: Sequence[TestCase], filters: Sequence[str]
) -> Sequence[TestCase]:
    """Select test cases by fully-qualified name, all if no filter is given."""
    if not filters:
        return list(test_cases)
    wanted = set(filters)
    return [tc for tc in test_cases if tc.fully_qualified_name in wanted]


async def run(
    catalog_path: Path,
    settings_json: str,
    base_dir: str,
    filters: Sequence[str] = (),
) -> int:
    """Run tests from a catalog and return exit code."""
    log = logging.getLogger("gtest_runner")

    try:
        settings = load_settings(settings_json)
        catalog = load_test_catalog(catalog_path)
    except (SettingsError, CatalogError) as e:
        log.error("%s", e)
        return 2

    if settings.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    test_cases_to_run = select_test_cases(catalog.test_cases, filters)
    if not test_cases_to_run:
        log.info("No test cases selected")
        print(json.dumps(format_output([])))
        return 0

    reporter = CollectingReporter(delegate=LoggingReporter(log))
    orchestrator = TestOrchestrator(reporter=reporter, settings=settings)

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
    try:
        await orchestrator.run_tests(catalog.test_cases, test_cases_to_run, base_dir)
    finally:
        if sys.platform != "win32":
            loop.remove_signal_handler(signal.SIGINT)

    results = sorted(reporter.results, key=lambda r: r.fully_qualified_name)
    log_results_summary(log, results)
    print(json.dumps(format_output(results), indent=2))

    return 1 if any(result.outcome == "failed" for result in results) else 0


def format_output(results: Sequence[TestResult]) -> dict[str, Any]:
    """Format test results for JSON output."""
    all_results = [
        {
            "name": result.fully_qualified_name,
            "executable": result.test_case.source,
            "outcome": result.outcome,
            "duration_ms": int(result.duration.total_seconds() * 1000),
            "message": result.error_message,
            "stack_trace": result.error_stack_trace,
            "computer_name": result.computer_name,
        }
        for result in results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["outcome"] == "passed"),
        "failed": sum(1 for r in all_results if r["outcome"] == "failed"),
        "skipped": sum(1 for r in all_results if r["outcome"] == "skipped"),
        "results": all_results,
    }


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run gtest executables and collect their results"
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        required=True,
        help="JSON file listing the discovered test cases",
    )
    parser.add_argument(
        "--settings",
        default="{}",
        help="JSON run settings",
    )
    parser.add_argument(
        "--base-dir",
        default="",
        help="Base directory of the test sources, used to resolve file names",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        dest="filters",
        help="Fully-qualified name of a test to run (repeatable, default: all)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            catalog_path=args.catalog,
            settings_json=args.settings,
            base_dir=args.base_dir,
            filters=args.filters,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
