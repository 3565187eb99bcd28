from __future__ import annotations

import logging
import threading
from pathlib import Path

import duckdb

from telemetry.config import telemetry_enabled, telemetry_path
from telemetry.store import TelemetryStore

logger = logging.getLogger(__name__)

_STORE: TelemetryStore | None = None
_STORE_LOCK = threading.RLock()


def _open(path: Path) -> TelemetryStore:
    path.parent.mkdir(parents=True, exist_ok=True)
    store = TelemetryStore(path=path, conn=duckdb.connect(str(path)))
    store.ensure_schema()
    store.start()
    logger.info("telemetry store opened at %s", path)
    return store


def _close(store: TelemetryStore) -> None:
    store.stop(timeout_s=2.0)
    store.conn.close()


def get_store() -> TelemetryStore | None:
    """
    Process-wide store, or None while telemetry is off.

    A changed ROADVIEW_TELEMETRY_PATH closes the old store and opens one on the new path.
    """
    global _STORE
    if not telemetry_enabled():
        return None
    path = telemetry_path()
    with _STORE_LOCK:
        if _STORE is not None and _STORE.path.resolve() != path.resolve():
            _close(_STORE)
            _STORE = None
        if _STORE is None:
            _STORE = _open(path)
        return _STORE


def reset_store() -> None:
    """
    Close the store and delete its database file.
    """
    global _STORE
    with _STORE_LOCK:
        store, _STORE = _STORE, None
    if store is not None:
        store.reset()
    else:
        telemetry_path().unlink(missing_ok=True)
