"""Distribution of test cases over parallel workers."""

import heapq
import logging
from collections.abc import Mapping, Sequence

from gtest_runner.models.test_case import TestCase

log = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 1000


class DurationBasedTestsSplitter:
    """Balances the expected total duration of each worker.

    Tests are assigned longest first to the currently least loaded worker.
    Tests without a known duration count as the average known duration.
    """

    def __init__(
        self,
        test_cases: Sequence[TestCase],
        durations: Mapping[TestCase, int],
        nr_of_buckets: int,
    ) -> None:
        self.test_cases = list(dict.fromkeys(test_cases))
        self.nr_of_buckets = max(1, nr_of_buckets)
        self.estimates = self._estimate(durations)

    def split(self) -> list[list[TestCase]]:
        """Return non-empty buckets, at most one per worker."""
        nr_of_buckets = min(self.nr_of_buckets, len(self.test_cases))
        if nr_of_buckets == 0:
            return []

        ordered = sorted(
            self.test_cases,
            key=lambda tc: (-self.estimates[tc], tc.source, tc.fully_qualified_name),
        )
        buckets: list[list[TestCase]] = [[] for _ in range(nr_of_buckets)]
        heap = [(0, index) for index in range(nr_of_buckets)]
        for test_case in ordered:
            load, index = heapq.heappop(heap)
            buckets[index].append(test_case)
            heapq.heappush(heap, (load + self.estimates[test_case], index))

        log.debug(
            "Split %d test(s) into %d bucket(s) with expected durations %s ms",
            len(self.test_cases),
            nr_of_buckets,
            [load for load, _ in sorted(heap, key=lambda entry: entry[1])],
        )
        return buckets

    def _estimate(self, durations: Mapping[TestCase, int]) -> dict[TestCase, int]:
        known = [durations[tc] for tc in self.test_cases if tc in durations]
        default = sum(known) // len(known) if known else DEFAULT_DURATION_MS
        return {tc: durations.get(tc, default) for tc in self.test_cases}
