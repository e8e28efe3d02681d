"""Enemy — a wandering monster that fights back when cornered."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from torchdelve.combat.actor import GeneratorTurn, Turn, TurnBody
from torchdelve.combat.combatant import Combatant
from torchdelve.combat.motion import glide

if TYPE_CHECKING:
    from numpy.random import Generator

    from torchdelve.combat.roster import EnemyRoster
    from torchdelve.dungeon.grid import GridModel


@dataclass(eq=False)
class Enemy(Combatant):
    """A grid monster.

    Each turn it attacks the target if the target is one orthogonal step
    away, otherwise it glides to a random open neighbouring cell.  With no
    open neighbour the turn ends without moving.

    Attributes:
        grid: Current level (read only).
        roster: The roster this enemy belongs to, for occupancy checks.
        rng: Random source for moves and damage.
        target: Combatant this enemy attacks when adjacent.
        gold_value: Gold awarded when the enemy dies.
    """

    max_health: int = 20
    attack_power: int = 3
    grid: GridModel | None = field(default=None, repr=False)
    roster: EnemyRoster | None = field(default=None, repr=False)
    rng: Generator | None = field(default=None, repr=False)
    target: Combatant | None = field(default=None, repr=False)
    gold_value: int = 5

    def take_turn(self) -> Turn:
        return GeneratorTurn(self._turn())

    def _turn(self) -> TurnBody:
        if self.grid is None or self.rng is None:
            return
        if (
            self.target is not None
            and self.target.is_alive
            and self.is_adjacent(self.target)
        ):
            self.attack(self.target, self.rng)
            return

        moves = self.open_steps(self.grid, self._occupied)
        if not moves:
            return
        destination = moves[int(self.rng.integers(len(moves)))]
        self.cell = destination
        yield from glide(self, destination, self.move_duration)

    def _occupied(self, x: int, y: int) -> bool:
        if self.target is not None and self.target.cell == (x, y):
            return True
        return self.roster is not None and self.roster.enemy_at(x, y) is not None
