"""Cell states and room rectangles for the dungeon grid.

Cells are stored as small integers inside a NumPy array owned by
``GridModel``; ``CellState`` gives those integers names.  ``Room`` is the
axis-aligned rectangle the generator accepts and carves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator


class CellState(IntEnum):
    """Mutually exclusive state of a single grid cell."""

    EMPTY = 0
    FLOOR = 1
    WALL = 2
    ENTRY = 3
    EXIT = 4

    @property
    def is_walkable(self) -> bool:
        """Return True for states an actor may stand on."""
        return self in WALKABLE_STATES


WALKABLE_STATES = frozenset({CellState.FLOOR, CellState.ENTRY, CellState.EXIT})


@dataclass(frozen=True)
class Room:
    """An axis-aligned rectangle of floor cells.

    Attributes:
        x: Column of the top-left cell.
        y: Row of the top-left cell.
        width: Number of columns covered.
        height: Number of rows covered.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> tuple[int, int]:
        """Return the integer centre cell of the room."""
        return self.x + self.width // 2, self.y + self.height // 2

    def overlaps(self, other: Room) -> bool:
        """Return True if the two rectangles share any area.

        Rooms that only touch along an edge do not overlap.
        """
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )

    def contains(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` lies inside the room."""
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def cells(self) -> Iterator[tuple[int, int]]:
        """Yield every ``(x, y)`` inside the room, row by row."""
        for y in range(self.y, self.y + self.height):
            for x in range(self.x, self.x + self.width):
                yield x, y
