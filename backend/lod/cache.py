from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Hashable

logger = logging.getLogger(__name__)


@dataclass
class PathCache:
    """
    Simplified world-space paths keyed by (road id, tolerance bucket).

    Entries are only valid for one projected network; `bind` drops everything when the
    owner (network revision + world space) changes. Pure pans reuse every entry.
    """

    max_buckets: int = 8
    hits: int = 0
    misses: int = 0
    _owner: Hashable | None = field(default=None, repr=False)
    _buckets: dict[int, dict[str, list[tuple[float, float]]]] = field(
        default_factory=dict, repr=False
    )

    def bind(self, owner: Hashable) -> None:
        if owner == self._owner:
            return
        if self._buckets:
            logger.debug("path cache invalidated (%d buckets)", len(self._buckets))
        self._owner = owner
        self._buckets = {}

    def clear(self) -> None:
        self._owner = None
        self._buckets = {}

    def get(self, road_id: str, bucket: int) -> list[tuple[float, float]] | None:
        paths = self._buckets.get(bucket)
        path = paths.get(road_id) if paths is not None else None
        if path is None:
            self.misses += 1
        else:
            self.hits += 1
        return path

    def put(self, road_id: str, bucket: int, path: list[tuple[float, float]]) -> None:
        paths = self._buckets.get(bucket)
        if paths is None:
            paths = {}
            _bounded_cache_put(self._buckets, bucket, paths, max_items=self.max_buckets)
        paths[road_id] = path

    def __len__(self) -> int:
        return sum(len(p) for p in self._buckets.values())


def _bounded_cache_put(cache: dict, key, value, *, max_items: int) -> None:
    cache[key] = value
    # Simple bounded cache: remove oldest inserted key when we exceed size.
    if len(cache) > max_items:
        oldest = next(iter(cache.keys()))
        if oldest != key:
            cache.pop(oldest, None)
