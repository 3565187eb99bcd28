from __future__ import annotations

import asyncio
import time
from typing import Any, Callable


class Debouncer:
    """
    Trailing-edge debounce: a burst of calls collapses into one call with the last
    arguments, `delay_s` after the burst ends.

    Inside a running asyncio loop the trailing call is scheduled with `call_later`.
    Without a loop, whoever owns the frame clock calls `poll()`; both paths fire at
    most once per burst.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if delay_s < 0:
            raise ValueError(f"delay_s must be >= 0, got {delay_s!r}")
        self._callback = callback
        self.delay_s = float(delay_s)
        self._clock = clock
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._deadline = 0.0
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._pending = (args, kwargs)
        self._deadline = self._clock() + self.delay_s
        self._cancel_handle()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_later(self.delay_s, self._fire)

    def poll(self) -> bool:
        """
        Fire the trailing call if its deadline has passed. Returns True if it fired.
        """
        if self._pending is None or self._clock() < self._deadline:
            return False
        self._fire()
        return True

    def flush(self) -> bool:
        if self._pending is None:
            return False
        self._fire()
        return True

    def cancel(self) -> None:
        self._cancel_handle()
        self._pending = None

    def _fire(self) -> None:
        self._cancel_handle()
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        args, kwargs = pending
        self._callback(*args, **kwargs)

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
