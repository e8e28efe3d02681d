"""Pygame 2D client for a Torchdelve session.

Renders revealed tiles lit by the fog-of-war light levels, the actors,
floating damage numbers and an info panel.  The session is stepped once
per frame with the frame's elapsed time; keyboard state is exposed to the
player through ``KeyboardInput``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pygame

if TYPE_CHECKING:
    from torchdelve.game.session import GameSession
    from torchdelve.visibility.tracker import VisibilityTracker

from torchdelve.dungeon.cell import CellState
from torchdelve.game.session import GameState

# Colour palette
_BG = (8, 6, 10)
_PLAYER = (240, 230, 140)
_ENEMY = (200, 60, 60)
_TEXT = (200, 200, 200)
_DAMAGE_TEXT = (255, 90, 70)

# Floating damage numbers rise this many pixels per second and live this long
_DAMAGE_RISE = 30.0
_DAMAGE_LIFETIME = 1.0

# Share of the torch tint blended into lit tiles
_TORCH_BLEND = 0.35

_MOVE_KEYS: dict[int, tuple[int, int]] = {
    pygame.K_LEFT: (-1, 0),
    pygame.K_a: (-1, 0),
    pygame.K_RIGHT: (1, 0),
    pygame.K_d: (1, 0),
    pygame.K_UP: (0, -1),
    pygame.K_w: (0, -1),
    pygame.K_DOWN: (0, 1),
    pygame.K_s: (0, 1),
}


class KeyboardInput:
    """Movement intent from arrow keys or WASD."""

    def movement_intent(self) -> tuple[float, float]:
        pressed = pygame.key.get_pressed()
        ix = iy = 0.0
        for key, (dx, dy) in _MOVE_KEYS.items():
            if pressed[key]:
                ix += dx
                iy += dy
        length = (ix * ix + iy * iy) ** 0.5
        if length > 1.0:
            ix, iy = ix / length, iy / length
        return ix, iy


@dataclass
class _DamageNumber:
    x: float
    y: float
    amount: int
    age: float = 0.0


class PygameRenderer:
    """Draws a GameSession into a Pygame window and drives it.

    Attributes:
        session: The session to visualise.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    def __init__(self, session: GameSession, cell_size: int = 24) -> None:
        """Initialise the renderer and subscribe to session events.

        Args:
            session: The session to render.
            cell_size: Pixel width/height per grid cell.
        """
        self.session = session
        self.cell_size = cell_size
        self._damage_numbers: list[_DamageNumber] = []
        self._tracker: VisibilityTracker | None = None
        self._tiles_dirty = True

        self._panel_width = 220
        self._win_w = session.config.width * cell_size + self._panel_width
        self._win_h = session.config.height * cell_size

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Torchdelve")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True

        session.on_damage.append(self._on_damage)
        session.on_floor_changed.append(self._on_floor_changed)
        self._tile_layer = pygame.Surface(
            (self._win_w - self._panel_width, self._win_h),
        )

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step the session, render.

        Args:
            fps: Target frames per second.
        """
        if self.session.state is GameState.MAIN_MENU:
            self.session.start_new_game()
        while self.running:
            dt = self.clock.tick(fps) / 1000.0  # seconds elapsed
            self._handle_events()
            self.session.step(dt)
            self._age_damage_numbers(dt)
            self._draw()

        pygame.quit()

    def _follow_tracker(self) -> None:
        """Subscribe to the current level's tracker; a new floor replaces it."""
        tracker = self.session.tracker
        if tracker is self._tracker:
            return
        if self._tracker is not None:
            self._tracker.unsubscribe(self._mark_tiles_dirty)
        tracker.subscribe(self._mark_tiles_dirty)
        self._tracker = tracker
        self._tiles_dirty = True

    def _mark_tiles_dirty(self) -> None:
        self._tiles_dirty = True

    def _on_floor_changed(self, floor: int) -> None:
        self._damage_numbers.clear()
        self._tiles_dirty = True

    def _on_damage(self, x: float, y: float, amount: int) -> None:
        self._damage_numbers.append(_DamageNumber(x=x, y=y, amount=amount))

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    if self.session.state is GameState.PAUSED:
                        self.session.resume()
                    else:
                        self.session.pause()
                elif event.key == pygame.K_n and self.session.state in (
                    GameState.GAME_OVER,
                    GameState.MAIN_MENU,
                ):
                    self.session.start_new_game()

    def _age_damage_numbers(self, dt: float) -> None:
        for number in self._damage_numbers:
            number.age += dt
        self._damage_numbers = [
            n for n in self._damage_numbers if n.age < _DAMAGE_LIFETIME
        ]

    def _draw(self) -> None:
        """Render one frame."""
        self._follow_tracker()
        if self._tiles_dirty:
            self._draw_tiles()
            self._tiles_dirty = False
        self.screen.fill(_BG)
        self.screen.blit(self._tile_layer, (0, 0))
        self._draw_actors()
        self._draw_damage_numbers()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_tiles(self) -> None:
        """Redraw the cached tile layer: revealed tiles, tinted and lit."""
        cs = self.cell_size
        session = self.session
        grid = session.grid
        state = session.tracker.state
        torch = np.array(session.tracker.lighting.torch_color, dtype=np.float64)

        self._tile_layer.fill(_BG)
        ys, xs = np.nonzero(state.revealed)
        for y, x in zip(ys, xs, strict=True):
            tint = session.palette.colour_for(CellState(int(grid.cells[y, x])))
            if tint is None:
                continue
            light = state.light[y, x]
            blend = _TORCH_BLEND * state.torch[y, x]
            colour = np.array(tint) * (1.0 - blend) + torch * blend
            rgb = np.clip(colour * light * 255.0, 0, 255).astype(int).tolist()
            pygame.draw.rect(self._tile_layer, rgb, (x * cs, y * cs, cs, cs))

    def _draw_actors(self) -> None:
        """Draw the player and every enemy standing on a revealed cell."""
        cs = self.cell_size
        radius = max(2, cs // 3)
        tracker = self.session.tracker
        for enemy in self.session.roster:
            if not enemy.is_alive or not tracker.is_revealed(*enemy.cell):
                continue
            cx = int(enemy.position[0] * cs + cs / 2)
            cy = int(enemy.position[1] * cs + cs / 2)
            pygame.draw.circle(self.screen, _ENEMY, (cx, cy), radius)

        player = self.session.player
        if player.is_alive:
            cx = int(player.position[0] * cs + cs / 2)
            cy = int(player.position[1] * cs + cs / 2)
            pygame.draw.circle(self.screen, _PLAYER, (cx, cy), radius)

    def _draw_damage_numbers(self) -> None:
        cs = self.cell_size
        for number in self._damage_numbers:
            surf = self.font.render(str(number.amount), True, _DAMAGE_TEXT)
            px = int(number.x * cs + cs / 2 - surf.get_width() / 2)
            py = int(number.y * cs - number.age * _DAMAGE_RISE)
            self.screen.blit(surf, (px, py))

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        session = self.session
        panel_x = session.grid.width * self.cell_size + 10
        y = 10

        player = session.player
        target = player.nearest_enemy_in_range()
        lines = [
            f"Floor: {session.floor}",
            f"Gold: {session.gold}",
            f"HP: {player.health}/{player.max_health}",
            f"Explored: {session.tracker.revealed_fraction() * 100:.0f}%",
            f"Zoom: {session.camera_zoom():.1f}",
            f"Enemies: {len(session.roster)}",
            f"Target: {target.health} HP" if target else "Target: -",
            "",
            f"{session.state.name}",
            "YOUR TURN" if session.is_players_turn() else "",
            "",
            "--- Controls ---",
            "Arrows/WASD: move",
            "SPACE: pause",
            "N: new game",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18
