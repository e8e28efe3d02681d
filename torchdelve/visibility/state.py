"""VisibilityState — the reveal mask and per-cell light levels.

Each layer is a NumPy 2D array indexed ``[y, x]`` like the grid.  The
reveal mask is sticky for a level's lifetime; the light arrays are
rewritten on every update.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


@dataclass
class VisibilityState:
    """Fog-of-war state for one level.

    Attributes:
        width: Grid columns (must match the GridModel).
        height: Grid rows (must match the GridModel).
        revealed: True for every cell ever lit.
        light: Final light intensity (0.0-1.0); 0.0 for unrevealed cells.
        torch: Raw torch term, used by renderers for torch tinting.
    """

    width: int
    height: int
    revealed: NDArray[np.bool_] = field(init=False, repr=False)
    light: NDArray[np.float64] = field(init=False, repr=False)
    torch: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Allocate all layers unrevealed and dark."""
        shape = (max(0, self.height), max(0, self.width))
        self.revealed = np.zeros(shape, dtype=np.bool_)
        self.light = np.zeros(shape, dtype=np.float64)
        self.torch = np.zeros(shape, dtype=np.float64)

    def in_bounds(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` is covered by the state arrays."""
        return 0 <= x < self.width and 0 <= y < self.height

    def revealed_count(self) -> int:
        """Return how many cells have ever been revealed."""
        return int(np.count_nonzero(self.revealed))

    def revealed_fraction(self) -> float:
        """Return revealed cells divided by total cells (0.0 for an empty grid)."""
        total = self.revealed.size
        if total == 0:
            return 0.0
        return self.revealed_count() / total
