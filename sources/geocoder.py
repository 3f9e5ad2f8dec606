"""
Geocoder - Resolve Australian street addresses using Nominatim.

Features:
- Rate limiting (1 request/second per Nominatim policy)
- SQLite cache keyed by the normalised query
- Retry with exponential backoff
"""

import os
import re
import time
import sqlite3
import json
import hashlib
from typing import Optional, Dict
from dataclasses import dataclass
import logging
import requests
from tenacity import retry, stop_after_attempt, wait_exponential

log = logging.getLogger(__name__)

# Rate limiter - tracks last request time
_last_request_time = 0.0
_MIN_REQUEST_INTERVAL = 1.1  # 1.1 seconds between requests (slightly over 1/sec)

GEOCODE_CACHE_PATH = os.environ.get("RISK_GEOCODE_CACHE_PATH", "geocode_cache.db")

_STATE_POSTCODE = re.compile(r"\b([A-Z]{2,3})\s+(\d{4})$")


@dataclass
class Address:
    """Street address as captured from the caller."""
    address_line: str
    suburb: str = ""
    state: str = "VIC"
    postcode: str = ""

    def to_query(self) -> str:
        return f"{self.address_line}, {self.state}, Australia"

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Split "12 Smith St, Fitzroy, VIC 3065" into parts. State defaults to VIC."""
        parts = [p.strip() for p in text.split(",") if p.strip()]
        state, postcode = "VIC", ""
        if parts:
            match = _STATE_POSTCODE.search(parts[-1])
            if match:
                state, postcode = match.group(1), match.group(2)
                rest = parts[-1][:match.start()].strip()
                parts = parts[:-1] + ([rest] if rest else [])
        suburb = parts[-1] if len(parts) > 1 else ""
        return cls(
            address_line=", ".join(parts) or text.strip(),
            suburb=suburb,
            state=state,
            postcode=postcode,
        )


@dataclass
class GeocodedLocation:
    """Result from geocoding an address."""
    address_query: str
    latitude: float
    longitude: float
    display_name: str
    place_type: str

    def to_dict(self) -> Dict:
        return {
            "address_query": self.address_query,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "display_name": self.display_name,
            "place_type": self.place_type,
        }


class GeocodingCache:
    """SQLite cache for geocoding results."""

    def __init__(self, db_path: str = GEOCODE_CACHE_PATH):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS geocode_cache (
                query_hash TEXT PRIMARY KEY,
                query_text TEXT,
                result_json TEXT,
                created_at REAL
            )
        """)
        conn.commit()
        conn.close()

    def _hash_query(self, query: str) -> str:
        return hashlib.md5(query.lower().strip().encode()).hexdigest()

    def get(self, query: str) -> Optional[Dict]:
        conn = sqlite3.connect(self.db_path)
        row = conn.execute(
            "SELECT result_json FROM geocode_cache WHERE query_hash = ?",
            (self._hash_query(query),)
        ).fetchone()
        conn.close()
        if row:
            return json.loads(row[0])
        return None

    def set(self, query: str, result: Dict):
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            """INSERT OR REPLACE INTO geocode_cache
               (query_hash, query_text, result_json, created_at)
               VALUES (?, ?, ?, ?)""",
            (self._hash_query(query), query, json.dumps(result), time.time())
        )
        conn.commit()
        conn.close()


class Geocoder:
    """
    Geocoder using OpenStreetMap Nominatim API.

    Respects rate limits: max 1 request per second.
    Never raises: lookups that fail or find nothing return None.
    """

    NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
    USER_AGENT = os.environ.get("RISK_USER_AGENT", "EnvironmentalRiskPipeline/1.0")

    def __init__(self, cache_path: str = GEOCODE_CACHE_PATH):
        self.cache = GeocodingCache(cache_path)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.USER_AGENT})

    def _rate_limit(self):
        """Ensure we don't exceed 1 request per second."""
        global _last_request_time
        elapsed = time.time() - _last_request_time
        if elapsed < _MIN_REQUEST_INTERVAL:
            time.sleep(_MIN_REQUEST_INTERVAL - elapsed)
        _last_request_time = time.time()

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=2, min=2, max=10))
    def _make_request(self, params: Dict) -> list:
        """Make a rate-limited request with retry."""
        self._rate_limit()
        response = self.session.get(self.NOMINATIM_URL, params=params, timeout=10)
        response.raise_for_status()
        return response.json()

    def geocode(self, address: Address) -> Optional[GeocodedLocation]:
        """
        Convert an address to coordinates.

        Args:
            address: Address, e.g. Address("12 Smith St", "Fitzroy", "VIC", "3065")

        Returns:
            GeocodedLocation with lat/lon, or None if not found
        """
        query = address.to_query()

        cached = self.cache.get(query)
        if cached:
            log.debug(f"Cache hit for: {query}")
            return GeocodedLocation(**cached)

        params = {
            "q": query,
            "format": "json",
            "limit": 1,
        }

        try:
            results = self._make_request(params)
        except Exception as e:
            log.error(f"Geocoding failed for '{query}': {e}")
            return None

        if not results:
            log.warning(f"No results for: {query}")
            return None

        result = results[0]
        try:
            location = GeocodedLocation(
                address_query=query,
                latitude=float(result["lat"]),
                longitude=float(result["lon"]),
                display_name=result.get("display_name", ""),
                place_type=result.get("type", "unknown"),
            )
        except (KeyError, TypeError, ValueError) as e:
            log.error(f"Unusable geocoder result for '{query}': {e}")
            return None

        self.cache.set(query, location.to_dict())
        log.info(f"Geocoded: {query} -> ({location.latitude}, {location.longitude})")

        return location


# Singleton instance
_geocoder: Optional[Geocoder] = None

def get_geocoder() -> Geocoder:
    """Get the singleton geocoder instance."""
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder()
    return _geocoder
