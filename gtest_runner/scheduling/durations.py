"""Persistence of observed test durations, used as scheduling hints."""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable, Mapping, Sequence
from datetime import timedelta
from pathlib import Path

from gtest_runner.models.result import TestResult
from gtest_runner.models.test_case import TestCase, group_by_executable

log = logging.getLogger(__name__)

DURATIONS_FILE_SUFFIX = ".test_durations.json"
ZERO = timedelta(0)

_locks_guard = threading.Lock()
_file_locks: dict[Path, threading.Lock] = {}


def _lock_for(path: Path) -> threading.Lock:
    with _locks_guard:
        return _file_locks.setdefault(path, threading.Lock())


class TestDurationStore:
    """Stores the last observed duration (in ms) of each test.

    One JSON file per executable is kept next to it. Storage problems are
    logged and treated as "no data"; they never fail a test run.
    """

    __test__ = False

    def __init__(self, storage_dir: Path | None = None) -> None:
        self.storage_dir = storage_dir

    def durations_file(self, executable: str) -> Path:
        """Location of the durations file of an executable."""
        path = Path(executable)
        if self.storage_dir is None:
            return path.with_name(path.name + DURATIONS_FILE_SUFFIX)
        return self.storage_dir / (path.name + DURATIONS_FILE_SUFFIX)

    def read_durations(self, test_cases: Iterable[TestCase]) -> Mapping[TestCase, int]:
        """Return known durations of the given test cases."""
        durations: dict[TestCase, int] = {}
        for executable, cases in group_by_executable(test_cases).items():
            stored = self._load(self.durations_file(executable))
            for test_case in cases:
                if (duration := stored.get(test_case.fully_qualified_name)) is not None:
                    durations[test_case] = duration
        return durations

    def update_durations(self, results: Sequence[TestResult]) -> None:
        """Record durations of passed and failed tests.

        Crashed tests carry no measured duration and keep their previous entry.
        """
        executed = [
            r for r in results if r.outcome in ("passed", "failed") and r.duration > ZERO
        ]
        by_executable: dict[str, list[TestResult]] = {}
        for result in executed:
            by_executable.setdefault(result.test_case.source, []).append(result)

        for executable, executable_results in by_executable.items():
            path = self.durations_file(executable)
            with _lock_for(path):
                stored = self._load(path)
                for result in executable_results:
                    stored[result.fully_qualified_name] = int(
                        result.duration.total_seconds() * 1000
                    )
                self._save(path, stored)

    def _load(self, path: Path) -> dict[str, int]:
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log.warning("Could not read test durations from %s: %s", path, e)
            return {}

        if not isinstance(content, dict):
            log.warning("Ignoring test durations in %s, unexpected format", path)
            return {}
        return {
            name: duration
            for name, duration in content.items()
            if isinstance(duration, int) and duration >= 0
        }

    def _save(self, path: Path, durations: Mapping[str, int]) -> None:
        try:
            fd, temp_name = tempfile.mkstemp(
                dir=path.parent, prefix=path.name, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(dict(sorted(durations.items())), f, indent=2)
            os.replace(temp_name, path)
        except OSError as e:
            log.warning("Could not write test durations to %s: %s", path, e)
