"""EnemyRoster — spawning and bookkeeping for a level's enemies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from torchdelve.combat.enemy import Enemy

if TYPE_CHECKING:
    from numpy.random import Generator

    from torchdelve.combat.combatant import Combatant
    from torchdelve.dungeon.grid import GridModel

logger = logging.getLogger(__name__)

# Random placement tries per enemy before giving up on it
_SPAWN_TRIES_PER_ENEMY = 50


def enemy_count_for_floor(
    floor: int,
    *,
    per_floor: int = 2,
    minimum: int = 5,
    maximum: int = 20,
) -> int:
    """Return how many enemies a floor gets: ``per_floor * floor`` clamped."""
    return max(minimum, min(maximum, per_floor * floor))


@dataclass(frozen=True)
class EnemyTemplate:
    """Stats stamped onto every spawned enemy.

    Attributes:
        max_health: Starting health.
        attack_power: Centre of the damage roll.
        move_speed: Cells per second while gliding.
        gold_value: Gold awarded on death.
    """

    max_health: int = 20
    attack_power: int = 3
    move_speed: float = 1.0
    gold_value: int = 5


@dataclass
class EnemyRoster:
    """Living enemies on one level.

    Attributes:
        grid: The level the enemies stand on.
        rng: Random source for placement, moves and damage.
        enemies: Living enemies in spawn order.
    """

    grid: GridModel
    rng: Generator
    enemies: list[Enemy] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.enemies)

    def __iter__(self):
        return iter(self.enemies)

    def spawn(
        self,
        count: int,
        *,
        template: EnemyTemplate | None = None,
        target: Combatant | None = None,
    ) -> list[Enemy]:
        """Place up to ``count`` enemies on random free walkable cells.

        The entry cell and occupied cells are never used.  Placement gives
        up after a bounded number of tries, so a cramped level simply gets
        fewer enemies.

        Args:
            count: Number of enemies wanted.
            template: Stats for the new enemies (defaults if None).
            target: Combatant the enemies attack when adjacent.

        Returns:
            The newly spawned enemies (also appended to ``self.enemies``).
        """
        stats = template or EnemyTemplate()
        blocked = {self.grid.entry_position()}
        if target is not None:
            blocked.add(target.cell)

        spawned: list[Enemy] = []
        if self.grid.width == 0 or self.grid.height == 0:
            return spawned
        tries = count * _SPAWN_TRIES_PER_ENEMY
        while len(spawned) < count and tries > 0:
            tries -= 1
            x = int(self.rng.integers(0, self.grid.width))
            y = int(self.rng.integers(0, self.grid.height))
            if not self.grid.is_walkable(x, y) or (x, y) in blocked:
                continue
            if self.enemy_at(x, y) is not None:
                continue
            enemy = Enemy(
                max_health=stats.max_health,
                attack_power=stats.attack_power,
                move_speed=stats.move_speed,
                gold_value=stats.gold_value,
                grid=self.grid,
                roster=self,
                rng=self.rng,
                target=target,
            )
            enemy.place(x, y)
            self.enemies.append(enemy)
            spawned.append(enemy)

        if len(spawned) < count:
            logger.info("placed %d of %d enemies", len(spawned), count)
        return spawned

    def enemy_at(self, x: int, y: int) -> Enemy | None:
        """Return the living enemy occupying ``(x, y)``, if any."""
        for enemy in self.enemies:
            if enemy.is_alive and enemy.cell == (x, y):
                return enemy
        return None

    def nearest(self, position: tuple[float, float]) -> Enemy | None:
        """Return the living enemy closest to ``position``."""
        living = [e for e in self.enemies if e.is_alive]
        if not living:
            return None
        px, py = position
        return min(
            living,
            key=lambda e: (e.position[0] - px) ** 2 + (e.position[1] - py) ** 2,
        )

    def remove(self, enemy: Enemy) -> None:
        """Forget ``enemy``; unknown enemies are ignored."""
        self.enemies = [e for e in self.enemies if e is not enemy]

    def clear(self) -> None:
        self.enemies.clear()
