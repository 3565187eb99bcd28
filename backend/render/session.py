from __future__ import annotations

import logging
import time
from typing import Callable

from render.config import RenderConfig
from render.planner import DrawPlan, RenderPlanner, Viewport
from roads.types import RoadNetwork
from view.camera import Camera
from view.debounce import Debouncer
from view.motion import MotionTracker

logger = logging.getLogger(__name__)


class MapSession:
    """
    One interactive map: the loaded network, the camera and the timers around them.

    All mutation happens here, on one thread, in response to discrete events. Every
    event that changes what is on screen produces a fresh plan for `on_plan`; a newer
    plan simply supersedes an unconsumed older one.

    Without an asyncio loop, call `tick()` once per frame to drive the resize debounce
    and the motion settle timer.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        on_plan: Callable[[DrawPlan], None] | None = None,
        planner: RenderPlanner | None = None,
        clock: Callable[[], float] = time.monotonic,
        viewport: Viewport = Viewport(0.0, 0.0),
    ):
        self.config = config or RenderConfig()
        self.planner = planner or RenderPlanner(self.config)
        self.camera = Camera(config=self.config.camera)
        self.viewport = viewport
        self.network: RoadNetwork | None = None
        self.error: str | None = None
        self._on_plan = on_plan
        self._drag_from: tuple[float, float] | None = None
        self._needs_fit = False
        self.motion = MotionTracker(
            self.config.settle_ms / 1000.0, clock=clock, on_settle=self._emit
        )
        self._resize = Debouncer(
            self._apply_resize, self.config.resize_debounce_ms / 1000.0, clock=clock
        )

    # data

    def load_network(self, network: RoadNetwork, *, fit: bool = True) -> None:
        self.network = network
        self.error = None
        self.motion.stop()
        logger.info(
            "network loaded: %d segments (%s)", network.segment_count, network.label or "unlabeled"
        )
        if fit:
            self.reset_view()
        else:
            self._emit()

    def load_failed(self, message: str) -> None:
        """
        Keep whatever is loaded (possibly nothing) and remember why the load failed.
        """
        self.error = str(message)
        logger.info("network load failed: %s", self.error)
        self._emit()

    def clear(self) -> None:
        self.network = None
        self.error = None
        self.planner.invalidate()
        self.camera.reset()
        logger.info("network cleared")
        self._emit()

    # input

    def resize(self, width: float, height: float) -> None:
        self._resize(float(width), float(height))

    def pan_by(self, dx: float, dy: float) -> None:
        self.camera.pan_by(dx, dy)
        self._moved()

    def zoom_at(self, screen_x: float, screen_y: float, factor: float) -> None:
        self.camera.zoom_at(screen_x, screen_y, factor)
        self._moved()

    def wheel(self, screen_x: float, screen_y: float, delta_y: float) -> None:
        self.camera.wheel(screen_x, screen_y, delta_y)
        self._moved()

    def drag_start(self, x: float, y: float) -> None:
        self._drag_from = (x, y)

    def drag_move(self, x: float, y: float) -> None:
        if self._drag_from is None:
            return
        fx, fy = self._drag_from
        self._drag_from = (x, y)
        self.pan_by(x - fx, y - fy)

    def drag_end(self) -> None:
        self._drag_from = None

    def reset_view(self) -> None:
        """
        Fit the loaded network into the viewport (identity camera in viewport world space,
        where the projection already fits the data).
        """
        self._needs_fit = False
        if self.network is None or self.config.world_space == "viewport":
            self.camera.reset()
        elif self.viewport.empty:
            # Fit once the first real viewport size arrives.
            self.camera.reset()
            self._needs_fit = True
        else:
            self.camera.fit(
                self.planner.world_rect(self.network, self.viewport),
                self.viewport.width,
                self.viewport.height,
                padding=self.config.padding_px,
            )
        self._emit()

    # frames

    def frame(self) -> DrawPlan:
        return self.planner.plan(self.network, self.camera.state, self.viewport, self.motion.state)

    def tick(self) -> None:
        self._resize.poll()
        self.motion.poll()

    def flush(self) -> None:
        """
        Apply a pending resize now instead of waiting out the debounce window.
        """
        self._resize.flush()

    def _apply_resize(self, width: float, height: float) -> None:
        self.viewport = Viewport(width, height)
        if self._needs_fit and not self.viewport.empty:
            self.reset_view()
            return
        self._emit()

    def _moved(self) -> None:
        self.motion.touch()
        self._emit()

    def _emit(self) -> None:
        if self._on_plan is not None:
            self._on_plan(self.frame())
