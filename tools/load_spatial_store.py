"""
Build the local spatial store from downloaded datasets.

Loads:
- Main sewer pipelines (GeoJSON, optionally gzipped)
- SCATS traffic signal volumes (one CSV per survey day)

Usage:
    python -m tools.load_spatial_store --sewerage data/sewerage.geojson.gz
    python -m tools.load_spatial_store --traffic-dir data/traffic_signal_volume_data
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sources.spatial_store import SPATIAL_STORE_PATH, SpatialStore

log = logging.getLogger(__name__)


def traffic_files(directory: str) -> List[Path]:
    """SCATS CSVs in a directory, oldest first by name."""
    return sorted(p for p in Path(directory).glob("*.csv") if p.is_file())


def load(
    store: SpatialStore,
    sewerage: Optional[str] = None,
    traffic: Iterable[Path] = (),
) -> Dict[str, int]:
    """
    Ingest the given files into an open, writable store.

    Returns:
        Rows inserted per table
    """
    stats = {"sewerage_pipelines": 0, "traffic_signal_volumes": 0, "failed_files": 0}

    if sewerage:
        stats["sewerage_pipelines"] = store.load_sewerage_geojson(sewerage)

    for path in traffic:
        try:
            stats["traffic_signal_volumes"] += store.load_traffic_csv(str(path))
        except (OSError, ValueError) as e:
            log.error(f"Failed to load traffic file {path}: {e}")
            stats["failed_files"] += 1

    return stats


def main(argv=None) -> int:
    """CLI interface for the loader."""
    parser = argparse.ArgumentParser(description="Load sewer and traffic datasets into the spatial store")
    parser.add_argument("--db", default=SPATIAL_STORE_PATH, help="Spatial store path")
    parser.add_argument("--sewerage", help="Sewer pipelines GeoJSON (.geojson or .geojson.gz)")
    parser.add_argument("--traffic", nargs="*", default=[], help="SCATS traffic volume CSV file(s)")
    parser.add_argument("--traffic-dir", help="Directory of SCATS traffic volume CSVs")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    traffic = [Path(p) for p in args.traffic]
    if args.traffic_dir:
        traffic.extend(traffic_files(args.traffic_dir))

    if not args.sewerage and not traffic:
        parser.error("nothing to load: give --sewerage, --traffic or --traffic-dir")

    with SpatialStore(args.db) as store:
        stats = load(store, sewerage=args.sewerage, traffic=traffic)

    log.info(f"Spatial store {args.db}: {stats['sewerage_pipelines']} pipelines, "
             f"{stats['traffic_signal_volumes']} traffic rows, {stats['failed_files']} failed file(s)")
    return 1 if stats["failed_files"] else 0


if __name__ == "__main__":
    sys.exit(main())
