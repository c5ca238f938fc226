"""Sinks for test progress and results."""

from gtest_runner.reporters.base import TestFrameworkReporter
from gtest_runner.reporters.collecting import CollectingReporter
from gtest_runner.reporters.logging_reporter import LoggingReporter

__all__ = ["CollectingReporter", "LoggingReporter", "TestFrameworkReporter"]
