"""Dungeon generator — rooms, L-shaped corridors, walls, entry and exit.

Generation is a fixed pipeline run once per level:

1. **Rooms**: ``room_attempts`` random rectangles; a candidate is kept only
   if it overlaps no room accepted before it.
2. **Corridors**: each accepted room is joined to the next one (acceptance
   order) by an L-shaped corridor whose elbow orientation is a coin flip.
   Chaining consecutive pairs connects the whole layout.
3. **Walls**: every EMPTY cell touching a FLOOR cell (8-neighbourhood)
   becomes WALL.
4. **Entry/Exit**: centre of the first room and centre of the last room.

All randomness comes from one ``numpy.random.Generator`` so a seed fully
determines the level.  Generation never raises: restrictive parameters
just produce a sparse level (one room, or none at all).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.random import Generator

from torchdelve.dungeon.cell import CellState, Room
from torchdelve.dungeon.grid import GridModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DungeonParams:
    """Tunable layout parameters for one level.

    Attributes:
        width: Grid columns.
        height: Grid rows.
        min_room_size: Smallest room side, inclusive.
        max_room_size: Largest room side, inclusive.
        room_attempts: Number of candidate rooms to sample.
        corridor_width: Corridor thickness in cells.
    """

    width: int = 25
    height: int = 25
    min_room_size: int = 3
    max_room_size: int = 10
    room_attempts: int = 20
    corridor_width: int = 2


def generate(
    width: int,
    height: int,
    min_room_size: int,
    max_room_size: int,
    room_attempts: int,
    corridor_width: int,
    seed: int | None,
) -> GridModel:
    """Build a level from explicit parameters and a seed.

    The same seed and parameters always give a cell-for-cell identical
    grid with an identical room list.

    Args:
        width: Grid columns.
        height: Grid rows.
        min_room_size: Smallest room side, inclusive.
        max_room_size: Largest room side, inclusive.
        room_attempts: Number of candidate rooms to sample.
        corridor_width: Corridor thickness in cells.
        seed: Seed for the random source.

    Returns:
        The finished GridModel.
    """
    params = DungeonParams(
        width=width,
        height=height,
        min_room_size=min_room_size,
        max_room_size=max_room_size,
        room_attempts=room_attempts,
        corridor_width=corridor_width,
    )
    grid = generate_from(params, np.random.default_rng(seed))
    logger.debug("seed %s produced %d rooms", seed, grid.room_count)
    return grid


def generate_from(params: DungeonParams, rng: Generator) -> GridModel:
    """Build a level from ``params`` using a caller-owned generator.

    Args:
        params: Layout parameters.
        rng: Seeded random generator; advanced by the call.

    Returns:
        The finished GridModel.
    """
    grid = GridModel(width=params.width, height=params.height)
    _place_rooms(grid, params, rng)
    _connect_rooms(grid, params.corridor_width, rng)
    _place_walls(grid)
    _place_entry_and_exit(grid)

    logger.debug(
        "generated %dx%d level: %d rooms, %d floor cells, %d walls",
        grid.width,
        grid.height,
        grid.room_count,
        grid.count(CellState.FLOOR),
        grid.count(CellState.WALL),
    )
    return grid


# -- Pipeline steps ----------------------------------------------------------


def _place_rooms(grid: GridModel, params: DungeonParams, rng: Generator) -> None:
    """Sample candidate rooms and carve the ones that overlap nothing.

    Each candidate keeps a one-cell border to the grid edge.  Candidates
    too large to fit are discarded like overlapping ones.
    """
    lo = max(1, params.min_room_size)
    hi = max(lo, params.max_room_size)
    for _ in range(max(0, params.room_attempts)):
        room_w = int(rng.integers(lo, hi, endpoint=True))
        room_h = int(rng.integers(lo, hi, endpoint=True))
        # Origins range over [1, size - room - 1]
        max_x = grid.width - room_w - 1
        max_y = grid.height - room_h - 1
        if max_x < 1 or max_y < 1:
            continue
        room_x = int(rng.integers(1, max_x, endpoint=True))
        room_y = int(rng.integers(1, max_y, endpoint=True))

        candidate = Room(x=room_x, y=room_y, width=room_w, height=room_h)
        if any(candidate.overlaps(room) for room in grid.rooms):
            continue

        grid.cells[
            candidate.y : candidate.y + candidate.height,
            candidate.x : candidate.x + candidate.width,
        ] = int(CellState.FLOOR)
        grid.rooms.append(candidate)


def _connect_rooms(grid: GridModel, corridor_width: int, rng: Generator) -> None:
    """Join each room to the next one with an L-shaped corridor."""
    for first, second in zip(grid.rooms, grid.rooms[1:]):
        x1, y1 = first.center
        x2, y2 = second.center
        if rng.integers(0, 2) == 0:
            _horizontal_corridor(grid, x1, x2, y1, corridor_width)
            _vertical_corridor(grid, y1, y2, x2, corridor_width)
        else:
            _vertical_corridor(grid, y1, y2, x1, corridor_width)
            _horizontal_corridor(grid, x1, x2, y2, corridor_width)


def _thickness_span(centre: int, corridor_width: int, limit: int) -> slice:
    """Return the clipped perpendicular span of a corridor run."""
    width = max(1, corridor_width)
    lo = max(0, centre - (width - 1) // 2)
    hi = min(limit, centre + width // 2 + 1)
    return slice(lo, hi)


def _horizontal_corridor(
    grid: GridModel,
    x1: int,
    x2: int,
    y: int,
    corridor_width: int,
) -> None:
    rows = _thickness_span(y, corridor_width, grid.height)
    grid.cells[rows, min(x1, x2) : max(x1, x2) + 1] = int(CellState.FLOOR)


def _vertical_corridor(
    grid: GridModel,
    y1: int,
    y2: int,
    x: int,
    corridor_width: int,
) -> None:
    cols = _thickness_span(x, corridor_width, grid.width)
    grid.cells[min(y1, y2) : max(y1, y2) + 1, cols] = int(CellState.FLOOR)


def _place_walls(grid: GridModel) -> None:
    """Turn every EMPTY cell bordering FLOOR (8-neighbourhood) into WALL.

    The floor mask is dilated by OR-ing shifted copies of itself, the
    same shifting trick used for neighbourhood sums elsewhere.
    """
    floor = grid.cells == int(CellState.FLOOR)
    near = np.zeros_like(floor)
    near[1:, :] |= floor[:-1, :]
    near[:-1, :] |= floor[1:, :]
    near[:, 1:] |= floor[:, :-1]
    near[:, :-1] |= floor[:, 1:]
    near[1:, 1:] |= floor[:-1, :-1]
    near[1:, :-1] |= floor[:-1, 1:]
    near[:-1, 1:] |= floor[1:, :-1]
    near[:-1, :-1] |= floor[1:, 1:]

    empty = grid.cells == int(CellState.EMPTY)
    grid.cells[empty & near] = int(CellState.WALL)


def _place_entry_and_exit(grid: GridModel) -> None:
    """Mark the first room's centre as ENTRY and the last room's as EXIT.

    With a single room both land on one cell; the EXIT write wins while
    ``grid.entry`` still records the coordinate.
    """
    if not grid.rooms:
        logger.info("no rooms accepted; level has no entry or exit")
        return

    grid.entry = grid.rooms[0].center
    grid.exit = grid.rooms[-1].center
    grid.set_state(*grid.entry, CellState.ENTRY)
    grid.set_state(*grid.exit, CellState.EXIT)
    if grid.entry == grid.exit:
        logger.debug("single-room level: entry and exit coincide at %s", grid.entry)
