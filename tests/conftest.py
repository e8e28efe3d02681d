"""Shared fixtures for the Torchdelve test suite."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest
from numpy.random import Generator

from torchdelve.dungeon.cell import CellState
from torchdelve.dungeon.grid import GridModel
from torchdelve.simulation.config import GameConfig

_LEGEND = {
    " ": CellState.EMPTY,
    ".": CellState.FLOOR,
    "#": CellState.WALL,
    "E": CellState.ENTRY,
    "X": CellState.EXIT,
}


def _grid_from_rows(rows: list[str]) -> GridModel:
    """Build a grid from a text map, one string per row."""
    grid = GridModel(width=len(rows[0]), height=len(rows))
    for y, row in enumerate(rows):
        for x, char in enumerate(row):
            state = _LEGEND[char]
            grid.set_state(x, y, state)
            if state is CellState.ENTRY:
                grid.entry = (x, y)
            elif state is CellState.EXIT:
                grid.exit = (x, y)
    return grid


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def grid_from_rows() -> Callable[[list[str]], GridModel]:
    """Factory turning a text map into a GridModel (see ``_LEGEND``)."""
    return _grid_from_rows


@pytest.fixture
def corridor_grid() -> GridModel:
    """A 5x3 level: one walled corridor from entry to exit."""
    return _grid_from_rows(
        [
            "#####",
            "E...X",
            "#####",
        ]
    )


@pytest.fixture
def open_grid() -> GridModel:
    """A 5x5 level where every cell is floor."""
    grid = GridModel(width=5, height=5)
    grid.cells[:, :] = int(CellState.FLOOR)
    return grid


@pytest.fixture
def default_config() -> GameConfig:
    """Default game config (no YAML file needed)."""
    return GameConfig()


@pytest.fixture
def quick_config() -> GameConfig:
    """A config whose actors move instantly and whose levels have no enemies."""
    return GameConfig(
        seed=7,
        player_move_speed=0.0,
        enemy_move_speed=0.0,
        min_enemies=0,
        max_enemies=0,
    )
