"""
clock.py - Block Height Clock

The ledger measures time in block heights. BlockClock is the in-process
height source; it only ever moves forward.
"""

from __future__ import annotations

from .core import is_int


class BlockClock:
    """Monotonically increasing block height counter."""

    def __init__(self, initial_height: int = 0):
        if not is_int(initial_height) or initial_height < 0:
            raise ValueError(f"initial_height must be a non-negative integer, got {initial_height!r}")
        self._height = initial_height

    def current_height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move forward by a number of blocks and return the new height."""
        if not is_int(blocks) or blocks < 0:
            raise ValueError(f"blocks must be a non-negative integer, got {blocks!r}")
        self._height += blocks
        return self._height

    def advance_to(self, height: int) -> int:
        """
        Advance the clock to a new height.

        Height can only move forward, never backward.

        Raises:
            ValueError: If height is below the current height
        """
        if not is_int(height):
            raise ValueError(f"height must be an integer, got {height!r}")
        if height < self._height:
            raise ValueError(
                f"Cannot move height backwards: {height} < {self._height}"
            )
        self._height = height
        return self._height

    def __repr__(self) -> str:
        return f"BlockClock(height={self._height})"
