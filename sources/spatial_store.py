"""
Spatial Store - locally ingested datasets that have no public query API.

Tables:
- sewerage_pipelines: main sewer pipelines (GeoJSON geometry + bbox columns)
- traffic_signal_volumes: SCATS daily detector counts (96 x 15-minute bins)

The store is an explicit handle: open() / close(), or use as a context
manager. Report generation opens it read-only; the ingest tool opens it
writable. Query failures are logged and yield empty results.
"""

import os
import re
import gzip
import json
import math
import sqlite3
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from geo.features import FeatureValidationError, parse_feature
from geo.geometry import closest_point, filter_valid_coords, nearest_distance_m
from sources.wfs import METRES_PER_DEGREE

log = logging.getLogger(__name__)

SPATIAL_STORE_PATH = os.environ.get("RISK_SPATIAL_STORE_PATH", "spatial_store.db")

VOLUME_COLUMNS = [f"v{i:02d}" for i in range(96)]
PEAK_WINDOW = 4  # four 15-minute bins = one hour

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS sewerage_pipelines (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    objectid INTEGER UNIQUE,
    mxunitid TEXT,
    sewer_name TEXT,
    unittype TEXT,
    unittype_desc TEXT,
    material TEXT,
    pipe_width REAL,
    pipe_length REAL,
    service_status TEXT,
    date_of_construction TEXT,
    geometry_json TEXT NOT NULL,
    min_lon REAL, min_lat REAL, max_lon REAL, max_lat REAL
);
CREATE INDEX IF NOT EXISTS idx_pipelines_bbox
    ON sewerage_pipelines (min_lon, max_lon, min_lat, max_lat);

CREATE TABLE IF NOT EXISTS traffic_signal_volumes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scats_site TEXT,
    interval_date TEXT,
    detector_number TEXT,
    {", ".join(f"{c} INTEGER" for c in VOLUME_COLUMNS)},
    region TEXT,
    record_count INTEGER,
    volume_24hour INTEGER,
    alarm_24hour INTEGER
);
CREATE INDEX IF NOT EXISTS idx_traffic_volume
    ON traffic_signal_volumes (volume_24hour);
"""

# SCATS CSV header -> table column
TRAFFIC_CSV_COLUMNS = {
    "NB_SCATS_SITE": "scats_site",
    "NB_DETECTOR": "detector_number",
    "NM_REGION": "region",
    "CT_RECORDS": "record_count",
    "QT_VOLUME_24HOUR": "volume_24hour",
    "CT_ALARM_24HOUR": "alarm_24hour",
}


@dataclass
class PipelineMatch:
    """A sewer pipeline near a point."""
    pipeline_id: Optional[str]
    sewer_name: Optional[str]
    unit_type: Optional[str]
    unit_type_description: Optional[str]
    material: Optional[str]
    pipe_width: Optional[float]
    pipe_length: Optional[float]
    service_status: Optional[str]
    date_of_construction: Optional[str]
    distance_m: float
    closest_lat: Optional[float] = None
    closest_lon: Optional[float] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class TrafficSite:
    """Daily volume for one SCATS detector."""
    scats_site_id: str
    detector_id: str
    average_daily_volume: int
    peak_hour_volume: int
    region: str
    date: str

    def to_dict(self) -> Dict:
        return asdict(self)


def _date_from_filename(path: str) -> str:
    match = re.search(r"\d{8}", Path(path).name)
    return match.group(0) if match else "unknown"


def _clean(value):
    """Map pandas/JSON blanks to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class SpatialStore:
    """
    SQLite-backed store for sewer pipelines and traffic volumes.

    Usage:
        with SpatialStore("spatial_store.db", read_only=True) as store:
            pipes = store.find_pipelines_within(-37.80, 145.03, radius_km=2)
    """

    def __init__(self, db_path: str = SPATIAL_STORE_PATH, read_only: bool = False):
        self.db_path = db_path
        self.read_only = read_only
        self.conn: Optional[sqlite3.Connection] = None

    # ─── lifecycle ──────────────────────────────────────────────────────

    def open(self) -> "SpatialStore":
        if self.conn is not None:
            return self
        if self.read_only:
            uri = f"file:{Path(self.db_path).resolve()}?mode=ro"
            self.conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.executescript(_SCHEMA)
            self.conn.commit()
        self.conn.row_factory = sqlite3.Row
        log.debug(f"Opened spatial store {self.db_path} (read_only={self.read_only})")
        return self

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "SpatialStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _require_conn(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("SpatialStore is not open")
        return self.conn

    # ─── ingest ─────────────────────────────────────────────────────────

    def load_sewerage_geojson(self, path: str, batch_size: int = 500) -> int:
        """
        Load pipelines from a GeoJSON (optionally .gz) FeatureCollection.

        Features without usable line geometry are skipped. Duplicate
        OBJECTIDs are ignored.

        Returns:
            Number of rows inserted
        """
        conn = self._require_conn()
        opener = gzip.open if str(path).endswith(".gz") else open
        with opener(path, "rt", encoding="utf-8") as f:
            payload = json.load(f)

        rows = []
        skipped = 0
        for i, raw in enumerate(payload.get("features", [])):
            feature = parse_feature(raw, i)
            if isinstance(feature, FeatureValidationError) or feature.geometry_type not in ("LineString", "MultiLineString"):
                skipped += 1
                continue

            lines = [feature.geometry.coordinates] if feature.geometry_type == "LineString" else feature.geometry.coordinates
            coords = [c for line in lines for c in filter_valid_coords(line)]
            if len(coords) < 2:
                skipped += 1
                continue

            lons = [c[0] for c in coords]
            lats = [c[1] for c in coords]
            props = feature.properties
            rows.append((
                props.get("OBJECTID"),
                _clean(props.get("MXUNITID")),
                _clean(props.get("SEWER_NAME")),
                _clean(props.get("UNITTYPE")),
                _clean(props.get("UNITTYPE_DESC")),
                _clean(props.get("MATERIAL")),
                _clean(props.get("PIPE_WIDTH")),
                _clean(props.get("PIPE_LENGTH")),
                _clean(props.get("SERVICE_STATUS")),
                _clean(props.get("DATE_OF_CONSTRUCTION")),
                json.dumps(raw["geometry"]),
                min(lons), min(lats), max(lons), max(lats),
            ))

        inserted = 0
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            before = conn.total_changes
            conn.executemany(
                """INSERT OR IGNORE INTO sewerage_pipelines
                   (objectid, mxunitid, sewer_name, unittype, unittype_desc, material,
                    pipe_width, pipe_length, service_status, date_of_construction,
                    geometry_json, min_lon, min_lat, max_lon, max_lat)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                batch,
            )
            conn.commit()
            inserted += conn.total_changes - before
            log.info(f"Pipelines: {min(start + batch_size, len(rows))}/{len(rows)} processed")

        log.info(f"Loaded {inserted} pipelines from {path} ({skipped} skipped)")
        return inserted

    def load_traffic_csv(self, path: str) -> int:
        """
        Load a SCATS traffic signal volume CSV.

        The survey date is taken from the 8-digit run in the file name
        (e.g. VSDATA_20251101.csv). Missing or unparseable volumes are 0.

        Returns:
            Number of rows inserted
        """
        conn = self._require_conn()
        df = pd.read_csv(path, dtype=str, on_bad_lines="skip")
        df.columns = [c.strip() for c in df.columns]

        frame = pd.DataFrame(index=df.index)
        frame["scats_site"] = df.get("NB_SCATS_SITE", pd.Series("unknown", index=df.index)).fillna("unknown")
        frame["interval_date"] = _date_from_filename(path)
        frame["detector_number"] = df.get("NB_DETECTOR", pd.Series("unknown", index=df.index)).fillna("unknown")

        for column in VOLUME_COLUMNS:
            source = column.upper()
            if source in df.columns:
                frame[column] = pd.to_numeric(df[source], errors="coerce").fillna(0).astype(int)
            else:
                frame[column] = 0

        frame["region"] = df.get("NM_REGION", pd.Series("unknown", index=df.index)).fillna("unknown")
        for source, column in (
            ("CT_RECORDS", "record_count"),
            ("QT_VOLUME_24HOUR", "volume_24hour"),
            ("CT_ALARM_24HOUR", "alarm_24hour"),
        ):
            if source in df.columns:
                frame[column] = pd.to_numeric(df[source], errors="coerce").fillna(0).astype(int)
            else:
                frame[column] = 0

        frame.to_sql("traffic_signal_volumes", conn, if_exists="append", index=False)
        conn.commit()
        log.info(f"Loaded {len(frame)} traffic rows from {path}")
        return len(frame)

    # ─── queries ────────────────────────────────────────────────────────

    def find_pipelines_within(self, lat: float, lon: float, radius_km: float = 5.0) -> List[PipelineMatch]:
        """
        Pipelines whose nearest point is within radius_km, nearest first.

        A bbox prefilter narrows candidates before geodesic distances are computed.
        """
        radius_m = radius_km * 1000
        d_lat = radius_m / METRES_PER_DEGREE
        d_lon = radius_m / (METRES_PER_DEGREE * max(math.cos(math.radians(lat)), 0.01))

        try:
            conn = self._require_conn()
            rows = conn.execute(
                """SELECT * FROM sewerage_pipelines
                   WHERE max_lon >= ? AND min_lon <= ? AND max_lat >= ? AND min_lat <= ?""",
                (lon - d_lon, lon + d_lon, lat - d_lat, lat + d_lat),
            ).fetchall()
        except (sqlite3.Error, RuntimeError) as e:
            log.warning(f"Pipeline query failed: {e}")
            return []

        matches = []
        for row in rows:
            feature = parse_feature({"geometry": json.loads(row["geometry_json"]), "properties": {}})
            if isinstance(feature, FeatureValidationError):
                continue

            distance = nearest_distance_m(lat, lon, feature.geometry)
            if not math.isfinite(distance) or distance > radius_m:
                continue

            closest = closest_point(lat, lon, feature.geometry)
            matches.append(PipelineMatch(
                pipeline_id=row["mxunitid"],
                sewer_name=row["sewer_name"],
                unit_type=row["unittype"],
                unit_type_description=row["unittype_desc"],
                material=row["material"],
                pipe_width=row["pipe_width"],
                pipe_length=row["pipe_length"],
                service_status=row["service_status"],
                date_of_construction=row["date_of_construction"],
                distance_m=distance,
                closest_lat=closest[0] if closest else None,
                closest_lon=closest[1] if closest else None,
            ))

        matches.sort(key=lambda m: m.distance_m)
        return matches

    def top_traffic_sites(self, limit: int = 50) -> List[TrafficSite]:
        """
        Busiest detectors by 24-hour volume.

        Peak hour is the largest sum of four consecutive 15-minute bins.
        """
        try:
            conn = self._require_conn()
            rows = conn.execute(
                """SELECT * FROM traffic_signal_volumes
                   WHERE volume_24hour > 0
                   ORDER BY volume_24hour DESC
                   LIMIT ?""",
                (limit,),
            ).fetchall()
        except (sqlite3.Error, RuntimeError) as e:
            log.warning(f"Traffic query failed: {e}")
            return []

        if not rows:
            return []

        frame = pd.DataFrame([dict(row) for row in rows])

        volumes = frame[VOLUME_COLUMNS].fillna(0).to_numpy(dtype=np.int64)
        windows = np.lib.stride_tricks.sliding_window_view(volumes, PEAK_WINDOW, axis=1)
        peaks = windows.sum(axis=2).max(axis=1)

        return [
            TrafficSite(
                scats_site_id=str(row.scats_site),
                detector_id=str(row.detector_number),
                average_daily_volume=int(row.volume_24hour),
                peak_hour_volume=int(peak),
                region=str(row.region),
                date=str(row.interval_date),
            )
            for row, peak in zip(frame.itertuples(index=False), peaks)
        ]
