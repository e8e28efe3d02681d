"""GridModel — the authoritative cell-state array for one dungeon level.

The grid is plain data: a NumPy array of ``CellState`` values plus the
list of rooms in the order the generator accepted them.  Rendering and
fog-of-war are derived from it, never the reverse.  A new level builds a
new GridModel; nothing mutates a grid once generation has finished.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from torchdelve.dungeon.cell import WALKABLE_STATES, CellState, Room

_WALKABLE_VALUES = np.array(sorted(int(s) for s in WALKABLE_STATES), dtype=np.int8)


@dataclass
class GridModel:
    """A 2D dungeon grid.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        cells: Cell states indexed as ``cells[y, x]``.
        rooms: Accepted rooms in acceptance order.
        entry: Entry coordinate, or None when no room exists.
        exit: Exit coordinate, or None when no room exists.
    """

    width: int
    height: int
    cells: NDArray[np.int8] = field(init=False, repr=False)
    rooms: list[Room] = field(default_factory=list)
    entry: tuple[int, int] | None = None
    exit: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        """Start with every cell EMPTY."""
        self.width = max(0, self.width)
        self.height = max(0, self.height)
        self.cells = np.full(
            (self.height, self.width),
            int(CellState.EMPTY),
            dtype=np.int8,
        )

    @property
    def room_count(self) -> int:
        """Number of rooms the generator accepted."""
        return len(self.rooms)

    def in_bounds(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` is a valid grid coordinate."""
        return 0 <= x < self.width and 0 <= y < self.height

    def state_at(self, x: int, y: int) -> CellState:
        """Return the state of the cell at ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return CellState(int(self.cells[y, x]))

    def set_state(self, x: int, y: int, state: CellState) -> None:
        """Write a cell state; used by the generator only."""
        self.cells[y, x] = int(state)

    def is_walkable(self, x: int, y: int) -> bool:
        """Return True if an actor may occupy ``(x, y)``.

        Out-of-range coordinates are simply not walkable.
        """
        if not self.in_bounds(x, y):
            return False
        return CellState(int(self.cells[y, x])).is_walkable

    def walkable_mask(self) -> NDArray[np.bool_]:
        """Return a boolean array marking every walkable cell."""
        return np.isin(self.cells, _WALKABLE_VALUES)

    def neighbours(
        self,
        x: int,
        y: int,
        *,
        include_diagonals: bool = True,
    ) -> list[tuple[int, int]]:
        """Return in-bounds coordinates adjacent to ``(x, y)``.

        Args:
            x: Column index.
            y: Row index.
            include_diagonals: If True, return up to 8 neighbours; otherwise 4.
        """
        offsets = [(0, 1), (0, -1), (-1, 0), (1, 0)]
        if include_diagonals:
            offsets += [(-1, -1), (-1, 1), (1, -1), (1, 1)]
        return [
            (x + dx, y + dy) for dx, dy in offsets if self.in_bounds(x + dx, y + dy)
        ]

    def floor_cell_positions(self) -> list[tuple[int, int]]:
        """Return every FLOOR cell, scanning column by column.

        Entry and Exit cells are not included.
        """
        # Transposed so the first axis is x
        xs, ys = np.nonzero(self.cells.T == int(CellState.FLOOR))
        return [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]

    def walkable_positions(self) -> list[tuple[int, int]]:
        """Return every walkable cell (Floor, Entry and Exit)."""
        xs, ys = np.nonzero(self.walkable_mask().T)
        return [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]

    def entry_position(self) -> tuple[int, int] | None:
        """Return where a viewer starts on this level."""
        return self.entry

    def exit_position(self) -> tuple[int, int] | None:
        """Return the cell that leads to the next level."""
        return self.exit

    def count(self, state: CellState) -> int:
        """Return how many cells are in ``state``."""
        return int(np.count_nonzero(self.cells == int(state)))
