"""Positional interpolation for actors moving between cells."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from torchdelve.combat.actor import TurnBody


class Body(Protocol):
    """Anything with a float position that can be glided."""

    position: tuple[float, float]


def glide(
    body: Body,
    target: tuple[int, int],
    duration: float,
    on_step: Callable[[], None] | None = None,
) -> TurnBody:
    """Move ``body`` linearly to ``target`` over ``duration`` seconds.

    Yields once per tick while in motion and always finishes exactly on
    ``target``, so position never ends up between cells.  A non-positive
    duration snaps immediately without yielding.

    Args:
        body: Object whose ``position`` is updated in place.
        target: Destination cell.
        duration: Seconds the move should take.
        on_step: Called after every position change, including the final snap.
    """
    start_x, start_y = body.position
    end_x, end_y = float(target[0]), float(target[1])
    elapsed = 0.0
    while elapsed < duration:
        t = elapsed / duration
        body.position = (
            start_x + (end_x - start_x) * t,
            start_y + (end_y - start_y) * t,
        )
        if on_step is not None:
            on_step()
        dt = yield
        elapsed += dt or 0.0
    body.position = (end_x, end_y)
    if on_step is not None:
        on_step()


def step_towards(intent: tuple[float, float]) -> tuple[int, int] | None:
    """Reduce a 2D movement intent to one orthogonal step.

    The dominant axis wins; ties favour horizontal movement.  Returns None
    for a zero intent.
    """
    ix, iy = intent
    if ix == 0 and iy == 0:
        return None
    if abs(ix) >= abs(iy):
        return (1 if ix > 0 else -1), 0
    return 0, (1 if iy > 0 else -1)
