"""Combatant — health, damage and movement shared by players and enemies."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

    from torchdelve.dungeon.grid import GridModel

logger = logging.getLogger(__name__)

HealthHandler = Callable[[int, int], None]
DamageHandler = Callable[["Combatant", int], None]
DeathHandler = Callable[["Combatant"], None]

# Damage rolls are attack_power +/- this spread
_DAMAGE_SPREAD = 2


@dataclass(eq=False)
class Combatant:
    """Base state for anything that fights on the grid.

    Attributes:
        cell: Logical cell the combatant occupies (or is moving into).
        position: Float position for drawing and lighting; equals ``cell``
            except while gliding.
        max_health: Health ceiling.
        health: Current health; the combatant dies at 0.
        attack_power: Centre of the damage roll.
        move_speed: Cells per second while gliding.
        on_health_changed: Called with ``(health, max_health)`` after damage.
        on_damaged: Called with ``(self, amount)`` after damage.
        on_death: Called with ``self`` when health reaches 0.
    """

    cell: tuple[int, int] = (0, 0)
    position: tuple[float, float] = (0.0, 0.0)
    max_health: int = 100
    health: int = -1
    attack_power: int = 10
    move_speed: float = 1.0
    on_health_changed: list[HealthHandler] = field(default_factory=list, repr=False)
    on_damaged: list[DamageHandler] = field(default_factory=list, repr=False)
    on_death: list[DeathHandler] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        """Start at full health unless told otherwise."""
        if self.health < 0:
            self.health = self.max_health

    @property
    def is_alive(self) -> bool:
        """Return True while health is above zero."""
        return self.health > 0

    @property
    def speed(self) -> float:
        """Relative speed, used to order rosters and time glides."""
        return self.move_speed

    @property
    def move_duration(self) -> float:
        """Seconds one cell of movement takes."""
        if self.move_speed <= 0:
            return 0.0
        return 1.0 / self.move_speed

    def place(self, x: int, y: int) -> None:
        """Put the combatant on ``(x, y)`` instantly."""
        self.cell = (x, y)
        self.position = (float(x), float(y))

    def roll_damage(self, rng: Generator) -> int:
        """Roll an attack's damage around ``attack_power``."""
        lo = max(0, self.attack_power - _DAMAGE_SPREAD)
        hi = max(lo, self.attack_power + _DAMAGE_SPREAD)
        return int(rng.integers(lo, hi, endpoint=True))

    def take_damage(self, amount: int) -> None:
        """Lose ``amount`` health and notify observers.

        Health is clamped to ``[0, max_health]``.  Damage to a combatant
        that is already dead is ignored.
        """
        if not self.is_alive:
            return
        self.health = max(0, min(self.max_health, self.health - amount))
        for on_health in list(self.on_health_changed):
            on_health(self.health, self.max_health)
        for on_damage in list(self.on_damaged):
            on_damage(self, amount)
        if not self.is_alive:
            logger.debug("%s died at %s", type(self).__name__, self.cell)
            for on_death in list(self.on_death):
                on_death(self)

    def attack(self, target: Combatant, rng: Generator) -> int:
        """Strike ``target`` once and return the damage dealt."""
        damage = self.roll_damage(rng)
        target.take_damage(damage)
        logger.debug(
            "%s hit %s for %d",
            type(self).__name__,
            type(target).__name__,
            damage,
        )
        return damage

    def is_adjacent(self, other: Combatant) -> bool:
        """Return True if ``other`` is one orthogonal step away."""
        dx = abs(self.cell[0] - other.cell[0])
        dy = abs(self.cell[1] - other.cell[1])
        return dx + dy == 1

    def open_steps(
        self,
        grid: GridModel,
        occupied: Callable[[int, int], bool],
    ) -> list[tuple[int, int]]:
        """Return walkable orthogonal neighbours nobody stands on."""
        x, y = self.cell
        return [
            (nx, ny)
            for nx, ny in grid.neighbours(x, y, include_diagonals=False)
            if grid.is_walkable(nx, ny) and not occupied(nx, ny)
        ]
