"""Ordered bookkeeping of resources derived from a ``DBContext``.

Every statement, result cursor and module a context hands out is
recorded here at the moment it is handed out. ``release_all()`` closes
them in the order they were tracked and keeps going when one of them
fails, so a failure on resource #2 never prevents releasing #3.
"""

from __future__ import annotations

from typing import TypeVar

from spruce.core.logging import get_logger
from spruce.core.protocols import Closeable

logger = get_logger(__name__)

C = TypeVar("C", bound=Closeable)


class ResourceTracker:
    """Registration-ordered list of closeables with exactly-once release."""

    def __init__(self) -> None:
        self._resources: list[Closeable] = []

    def track(self, resource: C) -> C:
        """Record ``resource`` for release and return it unchanged."""
        self._resources.append(resource)
        return resource

    def discard(self, resource: object) -> None:
        """Stop tracking ``resource`` without closing it. No-op when untracked."""
        self._resources = [r for r in self._resources if r is not resource]

    def release_all(self) -> list[Exception]:
        """Close every tracked resource in tracking order.

        The tracker is emptied first, so each resource is released at
        most once even if this is called again. Returns the failures in
        release order; an empty list means everything closed cleanly.
        """
        resources, self._resources = self._resources, []
        errors: list[Exception] = []
        for resource in resources:
            try:
                resource.close()
            except Exception as e:
                logger.warning(
                    "resource_close_failed",
                    resource=repr(resource),
                    error=str(e),
                )
                errors.append(e)
        return errors

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, resource: object) -> bool:
        return any(r is resource for r in self._resources)

    def __repr__(self) -> str:
        return f"ResourceTracker(tracked={len(self._resources)})"


__all__ = [
    "ResourceTracker",
]
