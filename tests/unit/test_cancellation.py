"""Tests for the cancellation token."""

import logging
import threading

import pytest

from gtest_runner.cancellation import CancellationToken


def test_cancel_invokes_callbacks_once() -> None:
    """Callbacks run on the first cancel only."""
    token = CancellationToken()
    calls: list[str] = []
    token.register(lambda: calls.append("a"))
    token.register(lambda: calls.append("b"))

    token.cancel()
    token.cancel()

    assert token.is_cancelled
    assert calls == ["a", "b"]


def test_unregistered_callback_is_not_invoked() -> None:
    """Removed registrations are skipped."""
    token = CancellationToken()
    calls: list[str] = []
    unregister = token.register(lambda: calls.append("a"))

    unregister()
    token.cancel()

    assert calls == []


def test_register_after_cancel_runs_immediately() -> None:
    """Late registrations see the cancellation right away."""
    token = CancellationToken()
    token.cancel()
    calls: list[str] = []

    unregister = token.register(lambda: calls.append("late"))
    unregister()

    assert calls == ["late"]


def test_failing_callback_does_not_stop_others(caplog: pytest.LogCaptureFixture) -> None:
    """A raising callback is logged and the remaining ones still run."""
    token = CancellationToken()
    calls: list[str] = []

    def explode() -> None:
        raise RuntimeError("boom")

    token.register(explode)
    token.register(lambda: calls.append("after"))

    with caplog.at_level(logging.ERROR):
        token.cancel()

    assert calls == ["after"]
    assert "Cancellation callback failed" in caplog.text


def test_cancel_from_other_thread() -> None:
    """The token can be cancelled from any thread."""
    token = CancellationToken()
    thread = threading.Thread(target=token.cancel)

    thread.start()
    thread.join()

    assert token.is_cancelled
