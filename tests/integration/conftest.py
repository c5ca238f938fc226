"""Fixtures for integration tests."""

import stat
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import pytest

from gtest_runner.models.test_case import TestCase

FAKE_GTEST = '''#!__PYTHON__
import fnmatch
import os
import sys
import time

TESTS = __TESTS__


def option(name, default=None):
    for arg in sys.argv[1:]:
        if arg.startswith(name + "="):
            return arg[len(name) + 1 :]
    return default


patterns = option("--gtest_filter", "*").split(":")
selected = [n for n in TESTS if any(fnmatch.fnmatchcase(n, p) for p in patterns)]
entries = []
failed = False

print(f"[==========] Running {len(selected)} tests.", flush=True)
for name in selected:
    behavior = TESTS[name]
    suite, test = name.split(".", 1)
    print(f"[ RUN      ] {name}", flush=True)
    if behavior == "crash":
        print("Segmentation fault while running the test body", flush=True)
        os._exit(139)
    if behavior == "hang":
        time.sleep(60)
    if behavior == "flood":
        sys.stdout.write("x" * (2 * 1024 * 1024))
        sys.stdout.flush()
        time.sleep(60)
    if behavior == "fail":
        failed = True
        print("test_math.cpp:12: Failure")
        print("Expected equality of these values:")
        print(f"[  FAILED  ] {name} (2 ms)", flush=True)
        entries.append(
            f'<testcase name="{test}" status="run" time="0.002" classname="{suite}">'
            '<failure message="test_math.cpp:12" type=""><![CDATA[test_math.cpp:12\\n'
            "Expected equality of these values:]]></failure></testcase>"
        )
    else:
        print(f"[       OK ] {name} (1 ms)", flush=True)
        entries.append(
            f'<testcase name="{test}" status="run" time="0.001" classname="{suite}" />'
        )

report = option("--gtest_output")
if report is not None:
    with open(report[len("xml:") :], "w") as f:
        f.write('<?xml version="1.0" encoding="UTF-8"?>\\n<testsuites><testsuite>')
        f.write("".join(entries))
        f.write("</testsuite></testsuites>\\n")

sys.exit(1 if failed else 0)
'''


class FakeGtestFn(Protocol):
    """Protocol for fake gtest executable creation."""

    def __call__(self, behaviors: Mapping[str, str], name: str = "fake_tests") -> Path:
        """Create an executable running tests with the given behaviors."""


class TestCasesFn(Protocol):
    """Protocol for building test cases of an executable."""

    def __call__(self, executable: Path, *names: str) -> list[TestCase]:
        """Return test cases declared by the executable."""


@pytest.fixture
def fake_gtest(tmp_path: Path) -> FakeGtestFn:
    """Return a function creating fake gtest executables.

    Behaviors are ``pass``, ``fail``, ``crash`` (process dies), ``hang`` and
    ``flood`` (prints a line longer than the output buffer, then hangs).
    """
    if sys.platform == "win32":
        pytest.skip("fake executables rely on shebang lines")

    def create(behaviors: Mapping[str, str], name: str = "fake_tests") -> Path:
        path = tmp_path / name
        path.write_text(
            FAKE_GTEST.replace("__PYTHON__", sys.executable).replace(
                "__TESTS__", repr(dict(behaviors))
            )
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    return create


@pytest.fixture
def test_cases_of() -> TestCasesFn:
    """Return a function building test cases of a fake executable."""

    def build(executable: Path, *names: str) -> list[TestCase]:
        return [
            TestCase(
                fully_qualified_name=name,
                source=str(executable),
                code_file_path="test_math.cpp",
                line_number=10,
            )
            for name in names
        ]

    return build
