"""Player — the viewer actor, driven by an input collaborator.

The player's turn suspends until the input source reports a movement
intent.  The intent is reduced to one orthogonal step: an enemy standing
in the target cell is attacked, a walkable cell is glided into, anything
else is ignored and the turn keeps waiting.  Every position change while
gliding relights the fog-of-war around the player.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from torchdelve.combat.actor import GeneratorTurn, Turn, TurnBody
from torchdelve.combat.combatant import Combatant
from torchdelve.combat.motion import glide, step_towards

if TYPE_CHECKING:
    from numpy.random import Generator

    from torchdelve.combat.roster import EnemyRoster
    from torchdelve.dungeon.grid import GridModel
    from torchdelve.visibility.tracker import VisibilityTracker

logger = logging.getLogger(__name__)

MoveHandler = Callable[[int, int], None]


class InputSource(Protocol):
    """Reports the player's movement request for the current tick."""

    def movement_intent(self) -> tuple[float, float]:
        """Return a 2D intent; ``(0, 0)`` means no request."""
        ...


class NoInput:
    """An input source that never asks to move."""

    def movement_intent(self) -> tuple[float, float]:
        return 0.0, 0.0


@dataclass(eq=False)
class Player(Combatant):
    """The player-controlled actor.

    Attributes:
        visibility_radius: Reveal radius passed to the visibility tracker.
        attack_range: Reach of the player's attack in cells.
        input_source: Where movement intents come from.
        grid: Current level (read only).
        tracker: Fog-of-war tracker for the current level.
        roster: Enemies on the current level, for bump attacks.
        rng: Random source for damage rolls.
        on_moved: Called with the new cell after each completed step.
    """

    visibility_radius: float = 10.0
    attack_range: float = 1.5
    input_source: InputSource = field(default_factory=NoInput, repr=False)
    grid: GridModel | None = field(default=None, repr=False)
    tracker: VisibilityTracker | None = field(default=None, repr=False)
    roster: EnemyRoster | None = field(default=None, repr=False)
    rng: Generator | None = field(default=None, repr=False)
    on_moved: list[MoveHandler] = field(default_factory=list, repr=False)

    def enter_level(
        self,
        grid: GridModel,
        tracker: VisibilityTracker,
        roster: EnemyRoster | None,
        rng: Generator,
    ) -> None:
        """Attach to a freshly generated level and stand on its entry."""
        self.grid = grid
        self.tracker = tracker
        self.roster = roster
        self.rng = rng
        self.reset_position()

    def reset_position(self) -> None:
        """Move to the level's entry and light the area around it.

        A level without an entry leaves the player at ``(0, 0)``.
        """
        entry = self.grid.entry_position() if self.grid is not None else None
        x, y = entry if entry is not None else (0, 0)
        self.place(x, y)
        self.update_visibility()

    def update_visibility(self) -> None:
        """Relight the fog-of-war around the current float position."""
        if self.tracker is not None:
            self.tracker.update(self.position, self.visibility_radius, self.grid)

    def take_turn(self) -> Turn:
        return GeneratorTurn(self._turn())

    def _turn(self) -> TurnBody:
        while True:
            step = step_towards(self.input_source.movement_intent())
            if step is not None and self.grid is not None:
                target = (self.cell[0] + step[0], self.cell[1] + step[1])
                enemy = self.roster.enemy_at(*target) if self.roster else None
                if enemy is not None and self.rng is not None:
                    self.attack(enemy, self.rng)
                    return
                if self.grid.is_walkable(*target):
                    self.cell = target
                    yield from glide(
                        self,
                        target,
                        self.move_duration,
                        on_step=self.update_visibility,
                    )
                    logger.debug("player moved to %s", target)
                    for on_move in list(self.on_moved):
                        on_move(*target)
                    return
            yield

    def nearest_enemy_in_range(self) -> Combatant | None:
        """Return the closest living enemy within ``attack_range``."""
        if self.roster is None:
            return None
        enemy = self.roster.nearest(self.position)
        if enemy is None:
            return None
        dx = enemy.position[0] - self.position[0]
        dy = enemy.position[1] - self.position[1]
        if (dx * dx + dy * dy) ** 0.5 <= self.attack_range:
            return enemy
        return None
