"""Tests for torchdelve.dungeon.generator."""

from __future__ import annotations

from collections import deque
from itertools import combinations

import numpy as np
import pytest

from torchdelve.dungeon import generator
from torchdelve.dungeon.cell import CellState
from torchdelve.dungeon.generator import DungeonParams, generate, generate_from
from torchdelve.dungeon.grid import GridModel


def _reachable_from(grid: GridModel, start: tuple[int, int]) -> set[tuple[int, int]]:
    """Flood-fill walkable cells orthogonally from ``start``."""
    seen = {start}
    frontier = deque([start])
    while frontier:
        x, y = frontier.popleft()
        for nx, ny in grid.neighbours(x, y, include_diagonals=False):
            if (nx, ny) not in seen and grid.is_walkable(nx, ny):
                seen.add((nx, ny))
                frontier.append((nx, ny))
    return seen


class TestDeterminism:
    """Same seed and parameters give the same level."""

    def test_small_level_repeats(self) -> None:
        a = generate(10, 10, 3, 4, 5, 1, seed=42)
        b = generate(10, 10, 3, 4, 5, 1, seed=42)
        assert np.array_equal(a.cells, b.cells)
        assert a.rooms == b.rooms
        assert a.entry == b.entry
        assert a.exit == b.exit

    def test_generate_matches_generate_from(self) -> None:
        params = DungeonParams(width=30, height=20)
        a = generate(30, 20, 3, 10, 20, 2, seed=9)
        b = generate_from(params, np.random.default_rng(9))
        assert np.array_equal(a.cells, b.cells)
        assert a.rooms == b.rooms

    def test_different_seeds_differ(self) -> None:
        levels = [generate(40, 40, 3, 10, 20, 2, seed=s).cells for s in range(5)]
        assert any(not np.array_equal(levels[0], other) for other in levels[1:])


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 42, 1234])
class TestLayoutInvariants:
    """Structural guarantees that hold for every seed."""

    def test_rooms_never_overlap(self, seed: int) -> None:
        grid = generate(40, 30, 3, 10, 30, 2, seed=seed)
        for a, b in combinations(grid.rooms, 2):
            assert not a.overlaps(b)

    def test_rooms_keep_a_border(self, seed: int) -> None:
        grid = generate(40, 30, 3, 10, 30, 2, seed=seed)
        for room in grid.rooms:
            assert room.x >= 1
            assert room.y >= 1
            assert room.x + room.width <= grid.width - 1
            assert room.y + room.height <= grid.height - 1

    def test_entry_and_exit_at_room_centres(self, seed: int) -> None:
        grid = generate(40, 30, 3, 10, 30, 2, seed=seed)
        assert grid.rooms
        assert grid.entry == grid.rooms[0].center
        assert grid.exit == grid.rooms[-1].center
        assert grid.state_at(*grid.exit) is CellState.EXIT
        if grid.room_count > 1:
            assert grid.state_at(*grid.entry) is CellState.ENTRY

    def test_every_walkable_cell_reachable_from_entry(self, seed: int) -> None:
        grid = generate(40, 30, 3, 10, 30, 1, seed=seed)
        assert grid.entry is not None
        reachable = _reachable_from(grid, grid.entry)
        assert reachable == set(grid.walkable_positions())
        assert grid.exit in reachable

    def test_walls_border_walkable_cells(self, seed: int) -> None:
        grid = generate(40, 30, 3, 10, 30, 2, seed=seed)
        for y in range(grid.height):
            for x in range(grid.width):
                state = grid.state_at(x, y)
                touches = any(grid.is_walkable(*n) for n in grid.neighbours(x, y))
                if state is CellState.WALL:
                    assert touches
                elif state is CellState.EMPTY:
                    assert not touches


class TestCorridors:
    """Corridor thickness and placement."""

    def test_width_one_corridor_is_one_cell_thick(self) -> None:
        grid = GridModel(width=20, height=20)
        generator._horizontal_corridor(grid, 2, 10, 5, 1)
        assert grid.count(CellState.FLOOR) == 9
        assert (grid.cells[5, 2:11] == int(CellState.FLOOR)).all()

    def test_corridor_thickness_matches_width(self) -> None:
        grid = GridModel(width=20, height=20)
        generator._vertical_corridor(grid, 3, 7, 10, 3)
        assert grid.count(CellState.FLOOR) == 5 * 3
        assert (grid.cells[3:8, 9:12] == int(CellState.FLOOR)).all()


class TestDegenerateParameters:
    """Restrictive parameters give sparse levels instead of errors."""

    def test_single_room_entry_equals_exit(self) -> None:
        # Only one origin fits an 8x8 room in a 10x10 grid
        grid = generate(10, 10, 8, 8, 5, 1, seed=3)
        assert grid.room_count == 1
        assert grid.entry == grid.exit
        assert grid.state_at(*grid.exit) is CellState.EXIT

    def test_rooms_too_large_for_grid(self) -> None:
        grid = generate(6, 6, 8, 10, 20, 2, seed=1)
        assert grid.room_count == 0
        assert grid.entry_position() is None
        assert grid.exit_position() is None
        assert grid.count(CellState.EMPTY) == 36

    def test_zero_attempts(self) -> None:
        grid = generate(25, 25, 3, 10, 0, 2, seed=1)
        assert grid.room_count == 0
        assert grid.count(CellState.EMPTY) == 25 * 25

    @pytest.mark.parametrize(
        ("width", "height", "min_size", "max_size", "corridor"),
        [
            (0, 0, 3, 10, 2),
            (-5, 10, 3, 10, 2),
            (3, 3, 1, 1, 1),
            (25, 25, 10, 3, 2),
            (25, 25, 0, 0, 0),
            (25, 25, 3, 10, 50),
        ],
    )
    def test_never_raises(
        self,
        width: int,
        height: int,
        min_size: int,
        max_size: int,
        corridor: int,
    ) -> None:
        grid = generate(width, height, min_size, max_size, 10, corridor, seed=5)
        assert grid.cells.shape == (grid.height, grid.width)
