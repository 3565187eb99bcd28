from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from telemetry.sql import (
    CREATE_PLAN_EVENTS_TABLE_SQL,
    INSERT_PLAN_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)

logger = logging.getLogger(__name__)

MAX_QUEUED_EVENTS = 10_000
MAX_BATCH = 250


@dataclass(frozen=True)
class PlanEvent:
    ts_ms: int
    motion: str
    world_space: str
    scale: float
    viewport_w: float
    viewport_h: float
    tolerance: float | None
    stats_json: str

    def row(self) -> tuple:
        return (
            self.ts_ms,
            self.motion,
            self.world_space,
            self.scale,
            self.viewport_w,
            self.viewport_h,
            self.tolerance,
            self.stats_json,
        )


def _as_float(v) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _where(motion: str | None, since_ms: int | None, extra: list[str] | None = None):
    clauses = list(extra or [])
    params: list[Any] = []
    if motion:
        clauses.append("motion = ?")
        params.append(motion)
    if since_ms is not None:
        clauses.append("ts_ms >= ?")
        params.append(int(since_ms))
    return clauses, params


@dataclass
class TelemetryStore:
    """
    Plan-pass stats in DuckDB.

    `record` never blocks the render path. Events are queued and a single writer
    thread inserts them in batches; a full queue drops the event.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[PlanEvent]" = field(
        default_factory=lambda: queue.Queue(maxsize=MAX_QUEUED_EVENTS), repr=False
    )
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)
    dropped: int = 0

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_PLAN_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, name="telemetry-writer", daemon=True)
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        worker, self._worker = self._worker, None
        if worker is not None and worker.is_alive():
            worker.join(timeout=timeout_s)

    def record(
        self,
        *,
        motion: str,
        world_space: str,
        scale: float,
        viewport: tuple[float, float],
        tolerance: float | None,
        stats: dict[str, Any],
    ) -> None:
        event = PlanEvent(
            ts_ms=int(time.time() * 1000),
            motion=str(motion),
            world_space=str(world_space),
            scale=float(scale),
            viewport_w=float(viewport[0]),
            viewport_h=float(viewport[1]),
            tolerance=_as_float(tolerance),
            stats_json=json.dumps(stats, ensure_ascii=False),
        )
        self.start()
        try:
            self._q.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            if self.dropped == 1:
                logger.warning("telemetry queue full; dropping plan events")

    def flush(self, *, timeout_s: float = 2.0) -> bool:
        """
        Block until every queued event is written. False on timeout.
        """
        deadline = time.monotonic() + timeout_s
        while self._q.unfinished_tasks:
            if self._worker is None or time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        with self._lock:
            return self.conn.execute(sql, params or []).fetchall()

    def summary(
        self, *, motion: str | None = None, since_ms: int | None = None
    ) -> list[dict[str, Any]]:
        """
        Per motion state: pass count, total-time percentiles, mean output vertices and
        the path cache hit rate.
        """
        clauses, params = _where(motion, since_ms)
        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        out: list[dict[str, Any]] = []
        for motion_v, n, avg_ms, p50, p95, p99, avg_verts, hits, misses in self.query(
            SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params
        ):
            hits_f = _as_float(hits) or 0.0
            lookups = hits_f + (_as_float(misses) or 0.0)
            out.append(
                {
                    "motion": motion_v,
                    "n": int(n),
                    "avgTotalMs": _as_float(avg_ms),
                    "p50TotalMs": _as_float(p50),
                    "p95TotalMs": _as_float(p95),
                    "p99TotalMs": _as_float(p99),
                    "avgVerticesOut": _as_float(avg_verts),
                    "cacheHitRate": hits_f / lookups if lookups else None,
                }
            )
        return out

    def slowest(self, *, motion: str | None = None, limit: int = 25) -> list[dict[str, Any]]:
        clauses, params = _where(
            motion, None, ["json_extract(stats_json, '$.timingsMs.total') IS NOT NULL"]
        )
        params.append(max(1, min(200, int(limit))))
        rows = self.query(SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(clauses)), params)
        return [
            {
                "tsMs": int(ts_ms),
                "motion": motion_v,
                "totalMs": _as_float(total_ms),
                "verticesOut": None if verts is None else int(verts),
                "scale": _as_float(scale),
            }
            for ts_ms, motion_v, total_ms, verts, scale in rows
        ]

    def reset(self) -> None:
        # The writer must be gone before the connection closes.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _write(self, batch: list[PlanEvent]) -> None:
        with self._lock:
            self.conn.executemany(INSERT_PLAN_EVENTS_SQL, [e.row() for e in batch])
            self.conn.execute("CHECKPOINT;")

    def _run(self) -> None:
        batch: list[PlanEvent] = []
        while True:
            try:
                batch.append(self._q.get(timeout=0.1))
            except queue.Empty:
                if self._stop.is_set():
                    break
            # Write as soon as the queue runs dry, or when the batch is full.
            if batch and (len(batch) >= MAX_BATCH or self._q.empty()):
                try:
                    self._write(batch)
                except duckdb.Error:
                    logger.exception("telemetry write failed (%d events lost)", len(batch))
                for _ in batch:
                    self._q.task_done()
                batch = []
