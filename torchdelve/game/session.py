"""GameSession — owns one playthrough and wires the subsystems together.

The session is the composition root: it builds the level, the fog-of-war
tracker, the enemies and the turn scheduler, and passes each component
the references it needs.  It then advances the game one tick at a time:

1. Tick the turn scheduler (one actor's turn in flight at a time)
2. React to what happened during the tick (deaths, reaching the exit)
3. Regenerate the level between ticks when the player descends

Observers can subscribe to game-state, gold, floor and damage changes;
each is called synchronously with the new value(s).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np
from numpy.random import Generator

from torchdelve.combat.combatant import Combatant
from torchdelve.combat.player import InputSource, NoInput, Player
from torchdelve.combat.roster import EnemyRoster, enemy_count_for_floor
from torchdelve.combat.scheduler import TurnScheduler
from torchdelve.dungeon.generator import generate_from
from torchdelve.dungeon.grid import GridModel
from torchdelve.dungeon.palette import Palette, random_palette
from torchdelve.simulation.config import GameConfig
from torchdelve.visibility.tracker import VisibilityTracker

logger = logging.getLogger(__name__)


class GameState(Enum):
    """High-level state of a playthrough."""

    MAIN_MENU = auto()
    PLAYING = auto()
    PAUSED = auto()
    GAME_OVER = auto()


StateHandler = Callable[[GameState], None]
CounterHandler = Callable[[int], None]
DamageHandler = Callable[[float, float, int], None]


@dataclass
class GameSession:
    """A single playthrough: floors, gold, player and combat.

    Attributes:
        config: Loaded game configuration.
        input_source: Movement intents for the player.
        rng: Master seeded random generator.
        grid: Current level.
        palette: Tile tints for the current level.
        tracker: Fog-of-war for the current level.
        roster: Enemies on the current level.
        scheduler: Turn order for player and enemies.
        player: The player actor.
        state: Current game state.
        floor: Current floor number (0 before the first game starts).
        gold: Gold collected this playthrough.
    """

    config: GameConfig
    input_source: InputSource = field(default_factory=NoInput)
    rng: Generator = field(init=False)
    grid: GridModel = field(init=False)
    palette: Palette = field(init=False)
    tracker: VisibilityTracker = field(init=False)
    roster: EnemyRoster = field(init=False)
    scheduler: TurnScheduler = field(init=False)
    player: Player = field(init=False)
    state: GameState = GameState.MAIN_MENU
    floor: int = 0
    gold: int = 0
    on_state_changed: list[StateHandler] = field(default_factory=list, repr=False)
    on_gold_changed: list[CounterHandler] = field(default_factory=list, repr=False)
    on_floor_changed: list[CounterHandler] = field(default_factory=list, repr=False)
    on_damage: list[DamageHandler] = field(default_factory=list, repr=False)
    _descend_pending: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        """Build the RNG, scheduler and player, plus an empty placeholder level."""
        cfg = self.config
        self.rng = np.random.default_rng(cfg.seed)
        self.scheduler = TurnScheduler()
        self.player = Player(
            max_health=cfg.player_max_health,
            attack_power=cfg.player_attack_power,
            move_speed=cfg.player_move_speed,
            visibility_radius=cfg.visibility_radius,
            attack_range=cfg.player_attack_range,
            input_source=self.input_source,
        )
        self.player.on_moved.append(self._on_player_moved)
        self.player.on_damaged.append(self._on_damaged)
        self.player.on_death.append(self._on_player_death)

        self.grid = GridModel(width=cfg.width, height=cfg.height)
        self.palette = random_palette(self.rng)
        self.tracker = VisibilityTracker.for_grid(self.grid, cfg.lighting_params())
        self.roster = EnemyRoster(grid=self.grid, rng=self.rng)

    # -- Game flow -----------------------------------------------------------

    def start_new_game(self) -> None:
        """Reset progress, build floor 1 and start playing."""
        self.player.health = self.player.max_health
        self._set_gold(0)
        self._set_floor(1)
        self._build_level()
        self.change_state(GameState.PLAYING)

    def generate_new_floor(self) -> None:
        """Descend: bump the floor counter and build a fresh level."""
        self._set_floor(self.floor + 1)
        self._build_level()

    def step(self, dt: float) -> None:
        """Advance the game by one tick while playing.

        Args:
            dt: Seconds elapsed since the previous tick.
        """
        if self.state is not GameState.PLAYING:
            return
        self.scheduler.tick(dt)
        if self._descend_pending and self.state is GameState.PLAYING:
            self._descend_pending = False
            self.generate_new_floor()

    def run(self, ticks: int, dt: float = 0.1) -> None:
        """Advance a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
            dt: Seconds per tick.
        """
        for _ in range(ticks):
            self.step(dt)

    def change_state(self, new_state: GameState) -> None:
        """Switch game state and notify observers on an actual change."""
        if new_state is self.state:
            return
        logger.info("game state %s -> %s", self.state.name, new_state.name)
        self.state = new_state
        for handler in list(self.on_state_changed):
            handler(new_state)

    def pause(self) -> None:
        """Pause a running game."""
        if self.state is GameState.PLAYING:
            self.scheduler.pause()
            self.change_state(GameState.PAUSED)

    def resume(self) -> None:
        """Resume a paused game."""
        if self.state is GameState.PAUSED:
            self.scheduler.resume()
            self.change_state(GameState.PLAYING)

    # -- Economy -------------------------------------------------------------

    def add_gold(self, amount: int) -> None:
        """Add ``amount`` gold."""
        self._set_gold(self.gold + amount)

    def spend_gold(self, amount: int) -> bool:
        """Spend ``amount`` gold if affordable.

        Returns:
            True if the gold was spent.
        """
        if self.gold < amount:
            return False
        self._set_gold(self.gold - amount)
        return True

    # -- Queries -------------------------------------------------------------

    def is_players_turn(self) -> bool:
        """Return True while the scheduler is waiting on the player."""
        return self.scheduler.is_actors_turn(self.player)

    def camera_zoom(self) -> float:
        """Return the camera size for the current exploration progress.

        Zooms out linearly from ``min_zoom`` to ``max_zoom`` as the share
        of revealed cells grows.
        """
        t = self.tracker.revealed_fraction()
        return self.config.min_zoom + (self.config.max_zoom - self.config.min_zoom) * t

    # -- Internals -----------------------------------------------------------

    def _build_level(self) -> None:
        """Generate a level and put player, enemies and combat on it."""
        cfg = self.config
        self.grid = self._generate_usable_grid()
        self.palette = random_palette(self.rng)
        self.tracker = VisibilityTracker.for_grid(self.grid, cfg.lighting_params())
        self.roster = EnemyRoster(grid=self.grid, rng=self.rng)
        self._descend_pending = False

        self.player.enter_level(self.grid, self.tracker, self.roster, self.rng)
        count = enemy_count_for_floor(
            self.floor,
            per_floor=cfg.enemies_per_floor,
            minimum=cfg.min_enemies,
            maximum=cfg.max_enemies,
        )
        enemies = self.roster.spawn(
            count,
            template=cfg.enemy_template(),
            target=self.player,
        )
        for enemy in enemies:
            enemy.on_damaged.append(self._on_damaged)
            enemy.on_death.append(self._on_enemy_death)

        self.scheduler.start_combat([self.player, *enemies])
        logger.info(
            "floor %d: %d rooms, %d enemies",
            self.floor,
            self.grid.room_count,
            len(enemies),
        )

    def _generate_usable_grid(self) -> GridModel:
        """Generate until the level has ``min_rooms`` rooms or attempts run out."""
        params = self.config.dungeon_params()
        grid = generate_from(params, self.rng)
        attempts = 0
        while (
            grid.room_count < self.config.min_rooms
            and attempts < self.config.max_regen_attempts
        ):
            attempts += 1
            logger.debug(
                "level has %d rooms (< %d); regenerating",
                grid.room_count,
                self.config.min_rooms,
            )
            grid = generate_from(params, self.rng)
        return grid

    def _set_gold(self, gold: int) -> None:
        self.gold = gold
        for handler in list(self.on_gold_changed):
            handler(gold)

    def _set_floor(self, floor: int) -> None:
        self.floor = floor
        for handler in list(self.on_floor_changed):
            handler(floor)

    def _on_player_moved(self, x: int, y: int) -> None:
        if (x, y) == self.grid.exit_position():
            self._descend_pending = True

    def _on_damaged(self, victim: Combatant, amount: int) -> None:
        x, y = victim.position
        for handler in list(self.on_damage):
            handler(x, y, amount)

    def _on_enemy_death(self, enemy: Combatant) -> None:
        self.scheduler.remove_actor(enemy)
        self.roster.remove(enemy)
        self.add_gold(getattr(enemy, "gold_value", 0))

    def _on_player_death(self, player: Combatant) -> None:
        self.scheduler.remove_actor(player)
        self.change_state(GameState.GAME_OVER)
