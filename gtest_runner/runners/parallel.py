"""Runner distributing tests over concurrent workers."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from gtest_runner.models.test_case import TestCase
from gtest_runner.runners.base import TestRunner
from gtest_runner.scheduling.analyzer import SchedulingAnalyzer
from gtest_runner.scheduling.durations import TestDurationStore
from gtest_runner.scheduling.splitter import DurationBasedTestsSplitter

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ParallelTestRunner(TestRunner):
    """Splits tests by expected duration and runs one worker per bucket.

    Workers are created by ``runner_factory`` from their thread id; they share
    the cancellation token and reporter given to the factory.
    """

    runner_factory: Callable[[int], TestRunner]
    nr_of_threads: int
    duration_store: TestDurationStore
    scheduling_analyzer: SchedulingAnalyzer | None = None

    async def run_tests(
        self,
        all_test_cases: Sequence[TestCase],
        test_cases_to_run: Sequence[TestCase],
        base_dir: str,
        user_parameters: str,
    ) -> None:
        """Run all buckets concurrently and wait for every worker."""
        durations = self.duration_store.read_durations(test_cases_to_run)
        if self.scheduling_analyzer is not None:
            self.scheduling_analyzer.add_expected_durations(durations)

        buckets = DurationBasedTestsSplitter(
            test_cases_to_run, durations, self.nr_of_threads
        ).split()
        log.info(
            "Running %d test(s) on %d worker(s)", len(test_cases_to_run), len(buckets)
        )

        tasks = [
            self.runner_factory(thread_id).run_tests(
                all_test_cases, bucket, base_dir, user_parameters
            )
            for thread_id, bucket in enumerate(buckets)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for thread_id, result in enumerate(results):
            if isinstance(result, Exception):
                log.error("Worker %d failed: %s", thread_id, result, exc_info=result)
