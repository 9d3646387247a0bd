from __future__ import annotations

# One row per host request; endpoint-specific numbers live in `stats_json`.
CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS events (
  ts_ms BIGINT,
  endpoint TEXT,
  dataset TEXT,
  view_zoom DOUBLE,
  bbox_min_lon DOUBLE,
  bbox_min_lat DOUBLE,
  bbox_max_lon DOUBLE,
  bbox_max_lat DOUBLE,
  stats_json TEXT
);
"""

INSERT_EVENTS_SQL = """
INSERT INTO events
  (ts_ms, endpoint, dataset, view_zoom, bbox_min_lon, bbox_min_lat, bbox_max_lon, bbox_max_lat, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

SUMMARY_SQL_TEMPLATE = """
WITH e AS (
  SELECT
    dataset,
    endpoint,
    try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
    try_cast(json_extract(stats_json, '$.items') AS DOUBLE) AS items,
    try_cast(json_extract(stats_json, '$.clusters') AS DOUBLE) AS clusters,
    try_cast(json_extract(stats_json, '$.rebuilt') AS BOOLEAN) AS rebuilt
  FROM events
  {where_sql}
)
SELECT
  dataset,
  endpoint,
  COUNT(*) AS n,
  AVG(total_ms),
  quantile_cont(total_ms, 0.50),
  quantile_cont(total_ms, 0.95),
  AVG(items),
  AVG(clusters),
  AVG(CASE WHEN rebuilt THEN 1 WHEN rebuilt IS NULL THEN NULL ELSE 0 END)
FROM e
GROUP BY dataset, endpoint
ORDER BY dataset, endpoint
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  dataset,
  endpoint,
  try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
  try_cast(json_extract(stats_json, '$.items') AS BIGINT),
  try_cast(json_extract(stats_json, '$.levelZoom') AS BIGINT),
  view_zoom,
  bbox_min_lon,
  bbox_min_lat,
  bbox_max_lon,
  bbox_max_lat
FROM events
WHERE {where_sql}
ORDER BY total_ms DESC
LIMIT ?
"""
