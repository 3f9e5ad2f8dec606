"""
Feature Source Client - WFS GetFeature queries around a point.

Default endpoint is the Vicmap / DataVic GeoServer. Other WFS servers
(Geoscience Australia) are reached by passing `url=` per call.

Failure model:
- 4xx (layer absent, bad request) -> empty collection, warning logged
- Timeout -> empty collection, warning logged
- Connection errors and 5xx -> retried, then FeatureSourceError
- Body that is not a feature collection -> FeatureCollectionError
"""

import os
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from geo.features import FeatureCollection, FeatureCollectionError, parse_feature_collection

log = logging.getLogger(__name__)

WFS_URL = os.environ.get("RISK_WFS_URL", "https://opendata.maps.vic.gov.au/geoserver/wfs")
USER_AGENT = os.environ.get("RISK_USER_AGENT", "EnvironmentalRiskPipeline/1.0")
DEFAULT_TIMEOUT = float(os.environ.get("RISK_HTTP_TIMEOUT", "15"))
DEFAULT_COUNT = 1000
METRES_PER_DEGREE = 111000.0


class FeatureSourceError(RuntimeError):
    """The feature service kept failing after retries."""


def buffer_degrees(metres: float) -> float:
    """Approximate a metre buffer as degrees (1 degree ~ 111 km)."""
    return metres / METRES_PER_DEGREE


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, requests.Timeout):
        return False
    if isinstance(exc, requests.ConnectionError):
        return True
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        return response is not None and response.status_code >= 500
    return False


class FeatureSourceClient:
    """
    Bounding-box WFS client.

    Usage:
        client = FeatureSourceClient()
        collection = client.get_features(-37.81, 144.96, buffer_degrees(200),
                                         "open-data-platform:plan_overlay")
    """

    URL = WFS_URL
    USER_AGENT = USER_AGENT

    def __init__(self, url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        self.url = url or self.URL
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.USER_AGENT})

    @staticmethod
    def build_params(
        lat: float,
        lon: float,
        buffer_deg: float,
        type_name: str,
        count: Optional[int] = DEFAULT_COUNT,
        output_format: str = "application/json",
    ) -> Dict[str, Any]:
        params = {
            "SERVICE": "WFS",
            "VERSION": "2.0.0",
            "REQUEST": "GetFeature",
            "OUTPUTFORMAT": output_format,
            "typeName": type_name,
            "BBOX": f"{lon - buffer_deg},{lat - buffer_deg},{lon + buffer_deg},{lat + buffer_deg},EPSG:4326",
        }
        if count is not None:
            params["count"] = count
        return params

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    def _request(self, url: str, params: Dict[str, Any], timeout: float) -> Any:
        """GET with retry on connection errors and 5xx."""
        response = self.session.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()

    def get_features(
        self,
        lat: float,
        lon: float,
        buffer_deg: float,
        type_name: str,
        url: Optional[str] = None,
        count: Optional[int] = DEFAULT_COUNT,
        timeout: Optional[float] = None,
        output_format: str = "application/json",
    ) -> FeatureCollection:
        """
        Fetch features of one layer inside a square box around (lat, lon).

        Args:
            lat: Latitude of the property
            lon: Longitude of the property
            buffer_deg: Half-width of the bounding box in degrees
            type_name: WFS layer, e.g. "open-data-platform:plan_overlay"
            url: Override endpoint
            count: Maximum features to return (None to omit)
            timeout: Seconds before giving up

        Returns:
            FeatureCollection (possibly empty)
        """
        params = self.build_params(lat, lon, buffer_deg, type_name, count, output_format)
        target = url or self.url

        try:
            payload = self._request(target, params, timeout or self.timeout)
        except requests.Timeout:
            log.warning(f"WFS timeout for {type_name} at ({lat}, {lon})")
            return FeatureCollection.empty()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status is not None and 400 <= status < 500:
                log.warning(f"WFS layer {type_name} unavailable (HTTP {status})")
                return FeatureCollection.empty()
            raise FeatureSourceError(f"WFS request for {type_name} failed: {e}") from e
        except ValueError as e:
            raise FeatureCollectionError(f"WFS response for {type_name} is not JSON: {e}") from e
        except requests.RequestException as e:
            raise FeatureSourceError(f"WFS request for {type_name} failed: {e}") from e

        collection = parse_feature_collection(payload)
        log.debug(f"WFS {type_name}: {len(collection)} feature(s)")
        return collection


# Singleton instance
_feature_source: Optional[FeatureSourceClient] = None


def get_feature_source() -> FeatureSourceClient:
    """Get the singleton feature source client."""
    global _feature_source
    if _feature_source is None:
        _feature_source = FeatureSourceClient()
    return _feature_source
