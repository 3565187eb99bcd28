from __future__ import annotations

import os
from pathlib import Path

_OFF = {"0", "false", "no", "off"}


def telemetry_path() -> Path:
    # Defaults to <repo>/data/telemetry, next to the backend.
    default = Path(__file__).resolve().parents[2] / "data" / "telemetry" / "telemetry.duckdb"
    return Path(os.getenv("ROADVIEW_TELEMETRY_PATH") or default)


def telemetry_enabled() -> bool:
    # Off unless asked for: plan passes run per frame.
    return (os.getenv("ROADVIEW_TELEMETRY") or "0").strip().lower() not in _OFF
