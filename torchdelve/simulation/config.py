"""Config — load game parameters from YAML files.

All tunable constants (level size, room limits, light model, player and
enemy stats, camera zoom range) live in YAML and are parsed into a typed
dataclass here.  Keys missing from the file keep their defaults; unknown
keys are logged and ignored.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from torchdelve.combat.roster import EnemyTemplate
from torchdelve.dungeon.generator import DungeonParams
from torchdelve.visibility.lighting import LightingParams

logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
    """Top-level game configuration.

    Attributes:
        seed: Master RNG seed; None draws fresh entropy.
        width: Grid columns.
        height: Grid rows.
        min_room_size: Smallest room side, inclusive.
        max_room_size: Largest room side, inclusive.
        room_attempts: Candidate rooms sampled per level.
        corridor_width: Corridor thickness in cells.
        min_rooms: Levels with fewer rooms are regenerated.
        max_regen_attempts: Regeneration cap before accepting a sparse level.
        visibility_radius: Player reveal radius in cells.
        torch_radius: Radius at which the torch term fades out.
        light_falloff_exponent: Torch falloff curve exponent.
        revealed_darkness_multiplier: Light of remembered cells at the
            edge of the visibility radius.
        min_visibility: Floor for the light of any revealed cell.
        torch_color: Torch RGB tint (0.0-1.0 per channel).
        player_max_health: Player starting health.
        player_attack_power: Centre of the player's damage roll.
        player_move_speed: Player cells per second while gliding.
        player_attack_range: Player attack reach in cells.
        enemy_max_health: Enemy starting health.
        enemy_attack_power: Centre of an enemy's damage roll.
        enemy_move_speed: Enemy cells per second while gliding.
        enemy_gold_value: Gold awarded per kill.
        enemies_per_floor: Enemies added per floor number.
        min_enemies: Lower clamp on enemies per floor.
        max_enemies: Upper clamp on enemies per floor.
        min_zoom: Camera size with nothing explored.
        max_zoom: Camera size with everything explored.
    """

    seed: int | None = 42

    # Layout
    width: int = 25
    height: int = 25
    min_room_size: int = 3
    max_room_size: int = 10
    room_attempts: int = 20
    corridor_width: int = 2
    min_rooms: int = 2
    max_regen_attempts: int = 10

    # Fog of war
    visibility_radius: float = 10.0
    torch_radius: float = 3.2
    light_falloff_exponent: float = 0.05
    revealed_darkness_multiplier: float = 0.5
    min_visibility: float = 0.2
    torch_color: tuple[float, float, float] = (1.0, 0.8, 0.6)

    # Player
    player_max_health: int = 100
    player_attack_power: int = 10
    player_move_speed: float = 1.0
    player_attack_range: float = 1.5

    # Enemies
    enemy_max_health: int = 20
    enemy_attack_power: int = 3
    enemy_move_speed: float = 1.0
    enemy_gold_value: int = 5
    enemies_per_floor: int = 2
    min_enemies: int = 5
    max_enemies: int = 20

    # Camera
    min_zoom: float = 5.0
    max_zoom: float = 15.0

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated GameConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ValueError: If the document is not a mapping.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            msg = f"{path}: expected a mapping, got {type(data).__name__}"
            raise ValueError(msg)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameConfig:
        """Build a config from a plain mapping; unknown keys are logged and dropped."""
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        unknown = set(data) - known
        if unknown:
            logger.warning(
                "ignoring unknown config keys: %s",
                ", ".join(sorted(map(str, unknown))),
            )
        if "torch_color" in values:
            values["torch_color"] = tuple(float(c) for c in values["torch_color"])
        return cls(**values)

    def dungeon_params(self) -> DungeonParams:
        """Return the layout parameters for the generator."""
        return DungeonParams(
            width=self.width,
            height=self.height,
            min_room_size=self.min_room_size,
            max_room_size=self.max_room_size,
            room_attempts=self.room_attempts,
            corridor_width=self.corridor_width,
        )

    def lighting_params(self) -> LightingParams:
        """Return the light model parameters for the visibility tracker."""
        return LightingParams(
            torch_radius=self.torch_radius,
            falloff_exponent=self.light_falloff_exponent,
            revealed_darkness_multiplier=self.revealed_darkness_multiplier,
            min_visibility=self.min_visibility,
            torch_color=self.torch_color,
        )

    def enemy_template(self) -> EnemyTemplate:
        """Return the stats every spawned enemy starts with."""
        return EnemyTemplate(
            max_health=self.enemy_max_health,
            attack_power=self.enemy_attack_power,
            move_speed=self.enemy_move_speed,
            gold_value=self.enemy_gold_value,
        )
