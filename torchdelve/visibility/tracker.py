"""VisibilityTracker — fog-of-war updates around a moving viewer.

Called once per tick (or once per viewer move) with the viewer's latest
position.  Every cell within ``visibility_radius`` becomes revealed for
the rest of the level; light levels are recomputed from scratch.

Only the window of cells within ``max(visibility_radius, torch_radius)``
of the viewer is evaluated: everything further away is past both falloff
curves and receives the constant far-field intensity.  The result is
identical to scanning the whole grid, just cheaper on large maps.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from torchdelve.dungeon.grid import GridModel

from torchdelve.visibility.lighting import (
    LightingParams,
    far_field_intensity,
    light_intensity,
    torch_term,
)
from torchdelve.visibility.state import VisibilityState

logger = logging.getLogger(__name__)

VisibilityHandler = Callable[[], None]


def update(
    viewer_position: tuple[float, float],
    visibility_radius: float,
    grid: GridModel | None,
    state: VisibilityState,
    lighting: LightingParams | None = None,
) -> None:
    """Reveal and light ``state`` around ``viewer_position``.

    The reveal mask only ever gains cells.  Light levels are rewritten for
    the whole level: revealed cells get the combined torch/darkness value
    floored at ``min_visibility``, unrevealed cells get 0.0.

    Args:
        viewer_position: Viewer ``(x, y)`` in cell units; may be fractional
            while the viewer is between cells.
        visibility_radius: Euclidean radius inside which cells are revealed.
        grid: Level being viewed; only its size is checked.
        state: Fog-of-war state to update in place.
        lighting: Light model parameters (defaults if None).

    Raises:
        ValueError: If ``grid`` and ``state`` have different sizes.
    """
    params = lighting or LightingParams()
    if grid is not None and (grid.width, grid.height) != (state.width, state.height):
        msg = (
            f"visibility state {state.width}x{state.height} does not match "
            f"grid {grid.width}x{grid.height}"
        )
        raise ValueError(msg)

    state.torch.fill(0.0)
    state.light.fill(far_field_intensity(visibility_radius, params))

    window = _scan_window(viewer_position, visibility_radius, params, state)
    if window is not None:
        rows, cols = window
        vx, vy = viewer_position
        ys, xs = np.ogrid[rows, cols]
        distance = np.hypot(xs - vx, ys - vy)

        state.revealed[rows, cols] |= distance <= visibility_radius
        state.light[rows, cols] = light_intensity(distance, visibility_radius, params)
        state.torch[rows, cols] = torch_term(
            distance,
            params.torch_radius,
            params.falloff_exponent,
        )

    state.light[~state.revealed] = 0.0


def _scan_window(
    viewer_position: tuple[float, float],
    visibility_radius: float,
    params: LightingParams,
    state: VisibilityState,
) -> tuple[slice, slice] | None:
    """Return the row/column slices worth evaluating, or None if empty."""
    reach = max(visibility_radius, params.torch_radius, 0.0)
    vx, vy = viewer_position
    x0 = max(0, math.floor(vx - reach))
    x1 = min(state.width, math.ceil(vx + reach) + 1)
    y0 = max(0, math.floor(vy - reach))
    y1 = min(state.height, math.ceil(vy + reach) + 1)
    if x0 >= x1 or y0 >= y1:
        return None
    return slice(y0, y1), slice(x0, x1)


class VisibilityTracker:
    """Owns the fog-of-war state for one level and notifies observers.

    Attributes:
        state: The reveal mask and light arrays.
        lighting: Light model parameters.
    """

    def __init__(
        self,
        width: int,
        height: int,
        lighting: LightingParams | None = None,
    ) -> None:
        """Create an unrevealed tracker for a ``width`` x ``height`` level.

        Args:
            width: Grid columns.
            height: Grid rows.
            lighting: Light model parameters (defaults if None).
        """
        self.state = VisibilityState(width=width, height=height)
        self.lighting = lighting or LightingParams()
        self._handlers: list[VisibilityHandler] = []

    @classmethod
    def for_grid(
        cls,
        grid: GridModel,
        lighting: LightingParams | None = None,
    ) -> VisibilityTracker:
        """Create a tracker sized to ``grid``."""
        return cls(grid.width, grid.height, lighting)

    @property
    def width(self) -> int:
        return self.state.width

    @property
    def height(self) -> int:
        return self.state.height

    def update(
        self,
        viewer_position: tuple[float, float],
        visibility_radius: float,
        grid: GridModel | None = None,
    ) -> None:
        """Reveal and relight around the viewer, then notify observers.

        Args:
            viewer_position: Viewer ``(x, y)`` in cell units.
            visibility_radius: Euclidean reveal radius.
            grid: Level being viewed, used only for a size check.
        """
        update(viewer_position, visibility_radius, grid, self.state, self.lighting)
        logger.debug(
            "visibility at (%.2f, %.2f): %d cells revealed",
            viewer_position[0],
            viewer_position[1],
            self.state.revealed_count(),
        )
        for handler in list(self._handlers):
            handler()

    def reset(self) -> None:
        """Forget everything revealed; used when a level is replaced."""
        self.state = VisibilityState(width=self.state.width, height=self.state.height)

    def subscribe(self, handler: VisibilityHandler) -> None:
        """Register ``handler`` to be called after every update."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: VisibilityHandler) -> None:
        """Remove a previously registered handler, if present."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def is_revealed(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` has ever been lit; False out of range."""
        if not self.state.in_bounds(x, y):
            return False
        return bool(self.state.revealed[y, x])

    def is_visible(self, x: int, y: int) -> bool:
        """Alias of :meth:`is_revealed`; unrevealed cells are not drawn at all."""
        return self.is_revealed(x, y)

    def light_at(self, x: int, y: int) -> float:
        """Return the current light intensity at ``(x, y)`` (0.0 if unrevealed)."""
        if not self.state.in_bounds(x, y):
            return 0.0
        return float(self.state.light[y, x])

    def torch_at(self, x: int, y: int) -> float:
        """Return the raw torch term at ``(x, y)``."""
        if not self.state.in_bounds(x, y):
            return 0.0
        return float(self.state.torch[y, x])

    def revealed_fraction(self) -> float:
        """Return the explored share of the level (drives camera zoom)."""
        return self.state.revealed_fraction()
