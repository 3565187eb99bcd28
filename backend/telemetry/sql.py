from __future__ import annotations

CREATE_PLAN_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS plan_events (
  ts_ms BIGINT,
  motion TEXT,
  world_space TEXT,
  scale DOUBLE,
  viewport_w DOUBLE,
  viewport_h DOUBLE,
  tolerance DOUBLE,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  motion,
  COUNT(*) AS n,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.50) AS p50_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.95) AS p95_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.99) AS p99_total_ms,
  AVG(try_cast(json_extract(stats_json, '$.verticesOut') AS DOUBLE)) AS avg_vertices_out,
  SUM(try_cast(json_extract(stats_json, '$.cache.hits') AS DOUBLE)) AS cache_hits,
  SUM(try_cast(json_extract(stats_json, '$.cache.misses') AS DOUBLE)) AS cache_misses
FROM plan_events
{where_sql}
GROUP BY motion
ORDER BY motion
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  motion,
  try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
  try_cast(json_extract(stats_json, '$.verticesOut') AS BIGINT) AS vertices_out,
  scale
FROM plan_events
WHERE {where_sql}
ORDER BY total_ms DESC
LIMIT ?
"""

INSERT_PLAN_EVENTS_SQL = """
INSERT INTO plan_events
  (ts_ms, motion, world_space, scale, viewport_w, viewport_h, tolerance, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""
