"""Actor and Turn — the capabilities the turn scheduler relies on.

An Actor is anything that can take a turn: it reports whether it is alive,
how fast it is, and hands the scheduler a fresh ``Turn`` each time it is
its go.  A Turn is a resumable task polled once per tick until it reports
``DONE``; it may stay ``RUNNING`` for as long as it likes (for example
while waiting for player input).

Most actors write their turn as a generator function and wrap it in
``GeneratorTurn``: every ``yield`` suspends the turn until the next tick
and the value sent back in is the elapsed time.
"""

from __future__ import annotations

from collections.abc import Generator
from enum import Enum, auto
from typing import Protocol, runtime_checkable


class TurnStatus(Enum):
    """Result of polling a turn."""

    RUNNING = auto()
    DONE = auto()


@runtime_checkable
class Turn(Protocol):
    """A resumable unit of work for one actor's turn."""

    def poll(self, dt: float) -> TurnStatus:
        """Advance the turn by ``dt`` seconds and report whether it finished."""
        ...


@runtime_checkable
class Actor(Protocol):
    """Anything the turn scheduler can drive."""

    @property
    def is_alive(self) -> bool: ...

    @property
    def speed(self) -> float: ...

    def take_turn(self) -> Turn: ...


TurnBody = Generator[None, float, None]


class GeneratorTurn:
    """Adapt a generator into a pollable ``Turn``.

    The generator is primed on the first poll, then each later poll sends
    the elapsed time into it.  Once the generator returns, every further
    poll reports ``DONE``.
    """

    def __init__(self, body: TurnBody) -> None:
        self._body = body
        self._started = False
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def poll(self, dt: float) -> TurnStatus:
        if self._done:
            return TurnStatus.DONE
        try:
            if self._started:
                self._body.send(dt)
            else:
                self._started = True
                next(self._body)
        except StopIteration:
            self._done = True
            return TurnStatus.DONE
        return TurnStatus.RUNNING
