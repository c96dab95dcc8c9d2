"""Temporary identifiers for entities that have not reached the server.

Persistent ids are positive integers handed out by the remote store, so
any negative integer is free to use on the client. The allocator counts
down from -1 and never repeats within a session.
"""

from __future__ import annotations

__all__ = ["TempIdAllocator", "is_temporary"]


def is_temporary(entity_id: int) -> bool:
    """True for client-assigned ids, i.e. anything below zero."""
    return entity_id < 0


class TempIdAllocator:
    """Session-scoped counter issuing -1, -2, -3, ..."""

    __slots__ = ("_next",)

    def __init__(self) -> None:
        self._next = -1

    def next_temp_id(self) -> int:
        temp_id = self._next
        self._next -= 1
        return temp_id

    @property
    def issued(self) -> int:
        """Number of ids handed out so far."""
        return -self._next - 1
