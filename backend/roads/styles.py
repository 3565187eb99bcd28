from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from roads.classify import MAJOR_CLASSES
from roads.types import StyleTier


class TierStyle(BaseModel):
    color: str
    width: float = Field(gt=0.0)
    opacity: float = Field(ge=0.0, le=1.0)


class TierStyles(BaseModel):
    """
    Which classes are major, and how each tier is stroked.

    Major roads get the heavier stroke; the renderer paints them last.
    """

    majorClasses: list[str] = Field(default_factory=lambda: list(MAJOR_CLASSES))
    major: TierStyle = Field(
        default_factory=lambda: TierStyle(color="#10b981", width=2.5, opacity=0.95)
    )
    minor: TierStyle = Field(
        default_factory=lambda: TierStyle(color="#34d399", width=1.5, opacity=0.7)
    )

    def for_tier(self, tier: StyleTier) -> TierStyle:
        return self.major if tier == StyleTier.major else self.minor

    def major_set(self) -> frozenset[str]:
        return frozenset(c.strip().lower() for c in self.majorClasses)


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid tier styles yaml root: {path}")
    return data


def load_tier_styles(path: Path | None = None) -> TierStyles:
    if path is None:
        return TierStyles()
    return TierStyles.model_validate(_load_yaml(path))


@lru_cache(maxsize=1)
def default_tier_styles() -> TierStyles:
    raw = (os.getenv("ROADVIEW_STYLES_PATH") or "").strip()
    return load_tier_styles(Path(raw) if raw else None)
