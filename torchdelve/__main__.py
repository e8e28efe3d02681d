"""Entry point for ``python -m torchdelve``.

Loads the default YAML config, builds a game session driven by the
keyboard, and opens a Pygame window to play it.
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib

from torchdelve.game.session import GameSession
from torchdelve.simulation.config import GameConfig
from torchdelve.ui.pygame_client import KeyboardInput, PygameRenderer

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def main() -> None:
    """Parse CLI args, configure logging, create the session, launch renderer."""
    parser = argparse.ArgumentParser(
        prog="torchdelve",
        description="Torchdelve - torch-lit dungeon crawler",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=24,
        help="Pixel size per grid cell (default: 24)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the config's master seed",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("TORCHDELVE_LOG_LEVEL", "INFO"),
        help="Logging level (default: $TORCHDELVE_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format=_LOG_FORMAT)

    config = GameConfig.from_yaml(args.config)
    if args.seed is not None:
        config.seed = args.seed

    session = GameSession(config=config, input_source=KeyboardInput())
    renderer = PygameRenderer(session=session, cell_size=args.cell_size)
    renderer.run(fps=args.fps)


if __name__ == "__main__":
    main()
