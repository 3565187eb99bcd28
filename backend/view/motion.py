from __future__ import annotations

import time
from typing import Callable

from roads.types import MotionHint
from view.debounce import Debouncer


class MotionTracker:
    """
    Two-state timer: Still -> Moving on any pan/zoom input, Moving -> Still once
    `quiescence_s` passes without input.

    The settle transition needs no further input. It fires from the event loop when one
    is running, from `poll()`, or lazily when `state` is read past the deadline.
    `on_settle` runs once per settle, typically to request a full-fidelity re-plan.
    """

    def __init__(
        self,
        quiescence_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_settle: Callable[[], None] | None = None,
    ):
        self._clock = clock
        self._on_settle = on_settle
        self._state = MotionHint.still
        self._timer = Debouncer(self._settle, quiescence_s, clock=clock)

    @property
    def quiescence_s(self) -> float:
        return self._timer.delay_s

    @property
    def state(self) -> MotionHint:
        self._timer.poll()
        return self._state

    def touch(self) -> None:
        self._state = MotionHint.moving
        self._timer()

    def poll(self) -> bool:
        return self._timer.poll()

    def stop(self) -> None:
        """
        Drop back to Still immediately without firing `on_settle`.
        """
        self._timer.cancel()
        self._state = MotionHint.still

    def _settle(self) -> None:
        self._state = MotionHint.still
        if self._on_settle is not None:
            self._on_settle()
