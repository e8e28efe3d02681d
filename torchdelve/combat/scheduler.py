"""TurnScheduler — fair round-robin over a changing set of actors.

The scheduler owns a FIFO queue of actors.  The head is dequeued, its turn
is polled on every ``tick`` until it reports ``DONE``, and then the actor
goes back to the tail if it is still alive.  Exactly one turn is in flight
at a time.

States::

    IDLE ──start_combat──> AWAITING_ACTOR <──────────┐
                              │ tick                 │ turn done,
                              v                      │ queue not empty
                          ACTOR_ACTING ──────────────┘
                              │ turn done, queue empty
                              v
                            ENDED ──start_combat──> AWAITING_ACTOR

Death only ever removes actors, so survivors keep the relative order given
to ``start_combat`` forever.  Removing the actor whose turn is running does
not abort that turn: it runs to completion and is simply not re-queued.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from enum import Enum, auto

from torchdelve.combat.actor import Actor, Turn, TurnStatus

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Lifecycle of a combat encounter."""

    IDLE = auto()
    AWAITING_ACTOR = auto()
    ACTOR_ACTING = auto()
    ENDED = auto()


StateHandler = Callable[[SchedulerState], None]


class TurnScheduler:
    """Drives actors one turn at a time in round-robin order.

    Attributes:
        turns_started: Number of turns begun since construction.
    """

    def __init__(self) -> None:
        self._queue: deque[Actor] = deque()
        self._removed: list[Actor] = []
        self._current: Actor | None = None
        self._turn: Turn | None = None
        self._current_removed = False
        self._state = SchedulerState.IDLE
        self._paused = False
        self._handlers: list[StateHandler] = []
        self.turns_started = 0

    # -- Queries -------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def current_actor(self) -> Actor | None:
        """The actor whose turn is in flight, if any."""
        return self._current

    @property
    def queue(self) -> tuple[Actor, ...]:
        """Snapshot of the waiting actors, head first.

        The acting actor is not part of the queue while its turn runs.
        """
        return tuple(self._queue)

    @property
    def paused(self) -> bool:
        return self._paused

    def is_actors_turn(self, actor: Actor) -> bool:
        """Return True if ``actor``'s turn is currently running."""
        return self._state is SchedulerState.ACTOR_ACTING and self._current is actor

    def __contains__(self, actor: object) -> bool:
        return any(a is actor for a in self._queue) or (
            self._current is actor and not self._current_removed
        )

    def __len__(self) -> int:
        """Number of actors still taking part, including the acting one."""
        acting = 1 if self._current is not None and not self._current_removed else 0
        return len(self._queue) + acting

    # -- Observers -----------------------------------------------------------

    def subscribe(self, handler: StateHandler) -> None:
        """Register ``handler`` to receive every new state."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: StateHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    # -- Roster management ---------------------------------------------------

    def start_combat(
        self,
        roster: Iterable[Actor] | None,
        *,
        by_speed: bool = False,
    ) -> None:
        """Load living actors from ``roster`` and begin a new encounter.

        Any previous encounter is discarded, including a turn in flight.

        Args:
            roster: Participants in turn order; None counts as empty.
            by_speed: If True, order by descending speed instead, keeping
                roster order between actors of equal speed.
        """
        self._queue.clear()
        self._removed.clear()
        self._current = None
        self._turn = None
        self._current_removed = False
        self._paused = False

        if roster is None:
            logger.info("start_combat called without a roster")
            roster = ()

        for actor in roster:
            if actor.is_alive and not any(a is actor for a in self._queue):
                self._queue.append(actor)
        if by_speed:
            self._queue = deque(sorted(self._queue, key=lambda a: -a.speed))

        logger.debug("combat started with %d actors", len(self._queue))
        if self._queue:
            self._set_state(SchedulerState.AWAITING_ACTOR)
        else:
            self._set_state(SchedulerState.ENDED)

    def add_actor(self, actor: Actor) -> bool:
        """Append ``actor`` to the tail of an active encounter.

        Dead actors, actors already taking part and actors removed during
        this encounter are ignored.

        Returns:
            True if the actor was queued.
        """
        if self._state not in (
            SchedulerState.AWAITING_ACTOR,
            SchedulerState.ACTOR_ACTING,
        ):
            return False
        if not actor.is_alive or actor in self or self._was_removed(actor):
            return False
        self._queue.append(actor)
        return True

    def remove_actor(self, actor: Actor) -> None:
        """Take ``actor`` out of the encounter for good.

        The remaining actors keep their relative order.  If ``actor`` is
        acting right now its turn is left to finish but it will not be
        queued again.
        """
        if not self._was_removed(actor):
            self._removed.append(actor)
        self._queue = deque(a for a in self._queue if a is not actor)
        if self._current is actor:
            self._current_removed = True
        logger.debug("removed %r; %d actors remain", actor, len(self))

        if (
            self._state is SchedulerState.AWAITING_ACTOR
            and not self._queue
            and self._current is None
        ):
            self._set_state(SchedulerState.ENDED)

    def end_combat(self) -> None:
        """Clear the queue and return to IDLE."""
        self._queue.clear()
        self._removed.clear()
        self._current = None
        self._turn = None
        self._current_removed = False
        self._set_state(SchedulerState.IDLE)

    def pause(self) -> None:
        """Stop driving turns; the in-flight turn is kept as is."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    # -- Driving -------------------------------------------------------------

    def tick(self, dt: float = 0.0) -> None:
        """Advance the encounter by one scheduling tick.

        In AWAITING_ACTOR the head actor's turn is started and polled.  In
        ACTOR_ACTING the running turn is polled.  A turn that finishes
        re-queues its actor and immediately starts the next head's turn;
        that new turn is first polled on the following tick.

        Args:
            dt: Seconds elapsed since the previous tick.
        """
        if self._paused:
            return

        match self._state:
            case SchedulerState.AWAITING_ACTOR:
                if self._begin_next_turn():
                    self._poll_current(dt)
            case SchedulerState.ACTOR_ACTING:
                self._poll_current(dt)

    def _poll_current(self, dt: float) -> None:
        if self._turn is None:
            return
        if self._turn.poll(dt) is TurnStatus.DONE:
            self._finish_turn()

    def _begin_next_turn(self) -> bool:
        """Dequeue the next living actor and start its turn."""
        while self._queue:
            actor = self._queue.popleft()
            if not actor.is_alive:
                # Died without anyone calling remove_actor
                self._removed.append(actor)
                continue
            self._current = actor
            self._current_removed = False
            self.turns_started += 1
            self._set_state(SchedulerState.ACTOR_ACTING)
            self._turn = actor.take_turn()
            return True

        self._current = None
        self._turn = None
        self._set_state(SchedulerState.ENDED)
        return False

    def _finish_turn(self) -> None:
        actor = self._current
        if actor is not None:
            if self._current_removed or not actor.is_alive:
                if not self._was_removed(actor):
                    self._removed.append(actor)
                logger.debug("%r finished its last turn", actor)
            else:
                self._queue.append(actor)

        self._current = None
        self._turn = None
        self._current_removed = False

        if self._queue:
            self._set_state(SchedulerState.AWAITING_ACTOR)
            self._begin_next_turn()
        else:
            self._set_state(SchedulerState.ENDED)

    def _was_removed(self, actor: Actor) -> bool:
        return any(a is actor for a in self._removed)

    def _set_state(self, state: SchedulerState) -> None:
        if state is self._state:
            return
        self._state = state
        for handler in list(self._handlers):
            handler(state)

    def log_queue(self) -> None:
        """Write the current queue order to the debug log."""
        logger.debug(
            "turn queue: %s",
            ", ".join(type(actor).__name__ for actor in self._queue) or "<empty>",
        )
