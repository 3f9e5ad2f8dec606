"""
Environmental risk report for a Victorian address.

Usage:
    python main.py "12 Smith St, Fitzroy, VIC 3065"
    python main.py --lat -37.8136 --lon 144.9631 --parallel
    python main.py "1 Spring St, Melbourne" --store spatial_store.db --categories flood,waterway
"""

import sys
import json
import logging
import argparse
from pathlib import Path

from sources.fire_zones import FireZoneReader, get_fire_zone_reader
from sources.geocoder import Address
from sources.spatial_store import SPATIAL_STORE_PATH, SpatialStore
from hazards.aggregator import EnvironmentalDataAggregator
from hazards.config import ENABLED_CATEGORIES, parse_categories

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Environmental and infrastructure risk report (Victoria)")
    parser.add_argument("address", nargs="?", help='Street address, e.g. "12 Smith St, Fitzroy, VIC 3065"')
    parser.add_argument("--lat", type=float, help="Latitude (skips geocoding, requires --lon)")
    parser.add_argument("--lon", type=float, help="Longitude (skips geocoding, requires --lat)")
    parser.add_argument("--parallel", action="store_true", help="Run categories concurrently")
    parser.add_argument("--store", default=SPATIAL_STORE_PATH,
                        help="Spatial store for sewer and traffic data (sewer is skipped if missing)")
    parser.add_argument("--fire-zones", help="Fire management zones GeoJSON (plain or .gz)")
    parser.add_argument("--categories", help="Comma-separated categories to run (default: all enabled)")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def open_store(path: str):
    """Open the spatial store read-only, or None when it has not been built."""
    if not Path(path).exists():
        log.warning(f"Spatial store {path} not found, sewer and traffic data unavailable")
        return None
    return SpatialStore(path, read_only=True).open()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    has_point = args.lat is not None or args.lon is not None
    if has_point and (args.lat is None or args.lon is None):
        parser.error("--lat and --lon must be given together")
    if not has_point and not args.address:
        parser.error("an address or --lat/--lon is required")

    categories = parse_categories(args.categories) if args.categories else list(ENABLED_CATEGORIES)
    fire_zones = FireZoneReader(args.fire_zones) if args.fire_zones else get_fire_zone_reader()
    store = open_store(args.store)

    try:
        aggregator = EnvironmentalDataAggregator(store=store, fire_zones=fire_zones, categories=categories)
        if has_point:
            report = aggregator.fetch_location(args.lat, args.lon, parallel=args.parallel, address=args.address)
        else:
            report = aggregator.fetch_all(Address.parse(args.address), parallel=args.parallel)
    finally:
        if store is not None:
            store.close()

    json.dump(report.to_dict(), sys.stdout, indent=args.indent, default=str)
    sys.stdout.write("\n")

    if report.fetch_errors:
        log.warning(f"Report incomplete: {'; '.join(report.fetch_errors)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
