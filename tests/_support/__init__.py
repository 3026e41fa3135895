"""
Test support utilities for spruce tests.

Helpers that don't fit as pytest fixtures but are shared across test
files: closeables that record their release, and ordering assertions.
"""

from __future__ import annotations


class CloseRecorder:
    """A closeable that appends its name to a shared log when closed."""

    def __init__(self, name: str, log: list[str], *, fail_with: Exception | None = None) -> None:
        self.name = name
        self.log = log
        self.fail_with = fail_with
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        self.log.append(self.name)
        if self.fail_with is not None:
            raise self.fail_with

    def __repr__(self) -> str:
        return f"CloseRecorder({self.name!r})"


def assert_before(log: list[str], first: str, second: str) -> None:
    """Assert that ``first`` was logged before ``second``."""
    assert first in log, f"{first!r} missing from {log}"
    assert second in log, f"{second!r} missing from {log}"
    assert log.index(first) < log.index(second), (
        f"Expected {first!r} before {second!r}, order: {log}"
    )
