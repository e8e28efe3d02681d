"""Palette — per-level tile tints sampled in HSV space."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

from torchdelve.dungeon.cell import CellState

Colour = tuple[float, float, float]

_ENTRY_COLOUR: Colour = (0.0, 1.0, 0.0)
_EXIT_COLOUR: Colour = (1.0, 0.0, 0.0)
_FLOOR_BRIGHTEN = 1.5


@dataclass(frozen=True)
class Palette:
    """RGB tints (0.0-1.0 per channel) for each visible cell state.

    Attributes:
        wall: Wall tint.
        floor: Floor tint, a brightened copy of the wall tint.
        entry: Entry tint.
        exit: Exit tint.
    """

    wall: Colour
    floor: Colour
    entry: Colour = _ENTRY_COLOUR
    exit: Colour = _EXIT_COLOUR

    def colour_for(self, state: CellState) -> Colour | None:
        """Return the tint for ``state``, or None for EMPTY cells."""
        match state:
            case CellState.FLOOR:
                return self.floor
            case CellState.WALL:
                return self.wall
            case CellState.ENTRY:
                return self.entry
            case CellState.EXIT:
                return self.exit
        return None


def random_palette(rng: Generator) -> Palette:
    """Sample a wall colour and derive a matching floor colour.

    Hue is unconstrained, saturation 0.5-0.8 and value 0.6-0.8, which
    keeps walls muted; floors are the same colour at 1.5x brightness.

    Args:
        rng: Seeded random generator.
    """
    hue = float(rng.uniform(0.0, 1.0))
    saturation = float(rng.uniform(0.5, 0.8))
    value = float(rng.uniform(0.6, 0.8))
    wall = colorsys.hsv_to_rgb(hue, saturation, value)
    floor = tuple(min(channel * _FLOOR_BRIGHTEN, 1.0) for channel in wall)
    return Palette(wall=wall, floor=floor)  # type: ignore[arg-type]
