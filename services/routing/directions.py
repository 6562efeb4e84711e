"""
Routing collaborator: Google Routes API (computeRoutes) -> decoded CalculatedRoutes.
Failures are returned as RoutingResult.error, never raised.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from config import settings
from services.geo.coordinates import BoundingBox, Coordinate
from services.geo.polyline import decode_polyline
from services.routing.models import CalculatedRoute, RouteSegment

logger = logging.getLogger(__name__)

FIELD_MASK = "routes.distanceMeters,routes.duration,routes.polyline.encodedPolyline"
RETRY_STATUS = (429, 500, 502, 503)


class RoutingError(Exception):
    """Routing backend unavailable or returned unusable data."""


@dataclass
class RoutingResult:
    routes: List[CalculatedRoute] = field(default_factory=list)
    error: Optional[RoutingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.routes)


def parse_duration_s(value: Any) -> int:
    """Parse a Routes API duration such as "720s". Raises RoutingError if malformed."""
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value or "").strip()
    if not text.endswith("s"):
        raise RoutingError(f"Unparsable duration: {value!r}")
    try:
        return int(float(text[:-1]))
    except ValueError as e:
        raise RoutingError(f"Unparsable duration: {value!r}") from e


def parse_route(raw: Dict[str, Any], index: int) -> CalculatedRoute:
    """One computeRoutes route entry -> CalculatedRoute. Raises RoutingError on unusable data."""
    encoded = ((raw.get("polyline") or {}).get("encodedPolyline")) or ""
    coords = decode_polyline(encoded)
    if not coords:
        raise RoutingError(f"Route {index} has no decodable polyline")
    distance = float(raw.get("distanceMeters") or 0)
    duration = parse_duration_s(raw.get("duration"))
    points = tuple(coords)
    return CalculatedRoute(
        id=f"route_{index}",
        segments=(RouteSegment(coordinates=points, distance=distance, duration=duration, steps=("Start driving",)),),
        total_distance=distance,
        total_duration=duration,
        bounds=BoundingBox.from_points(points),
        polyline_coordinates=points,
        summary=f"Route {index + 1}",
    )


class GoogleRoutesClient:
    """Thin client for the Routes API computeRoutes endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        travel_mode: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.routes_api_url
        self.travel_mode = travel_mode or settings.routing_travel_mode
        self.timeout = timeout if timeout is not None else settings.routing_timeout_s
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.session = session or requests.Session()

    def _request_body(self, origin: Coordinate, destination: Coordinate, want_alternatives: bool) -> Dict[str, Any]:
        return {
            "origin": {"location": {"latLng": {"latitude": origin.latitude, "longitude": origin.longitude}}},
            "destination": {
                "location": {"latLng": {"latitude": destination.latitude, "longitude": destination.longitude}}
            },
            "travelMode": self.travel_mode,
            "computeAlternativeRoutes": bool(want_alternatives),
        }

    def _post_with_retry(self, body: Dict[str, Any]) -> requests.Response:
        """POST with exponential backoff on 429/5xx. Raises requests.RequestException after the last attempt."""
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key or "",
            "X-Goog-FieldMask": FIELD_MASK,
        }
        attempts = max(1, self.max_retries + 1)
        r = None
        for attempt in range(attempts):
            try:
                r = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning("Routes request attempt %s failed: %s", attempt + 1, e)
                if attempt == attempts - 1:
                    raise
                time.sleep(2 ** attempt)
                continue
            if r.status_code in RETRY_STATUS and attempt < attempts - 1:
                delay = 2 ** attempt
                logger.warning("Routes API HTTP %s, retry in %s s", r.status_code, delay)
                time.sleep(delay)
                continue
            return r
        return r

    def compute_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        want_alternatives: bool = True,
    ) -> RoutingResult:
        if not self.api_key:
            return RoutingResult(error=RoutingError("Google Maps API key not configured"))
        try:
            r = self._post_with_retry(self._request_body(origin, destination, want_alternatives))
        except requests.RequestException as e:
            return RoutingResult(error=RoutingError(f"Network error: {e}"))
        if not 200 <= r.status_code < 300:
            return RoutingResult(error=RoutingError(f"Routes API error: {r.status_code}"))
        try:
            data = r.json()
        except ValueError as e:
            return RoutingResult(error=RoutingError(f"Invalid JSON from Routes API: {e}"))
        raw_routes = data.get("routes") if isinstance(data, dict) else None
        if not raw_routes or not isinstance(raw_routes, list):
            return RoutingResult(error=RoutingError("Routes API returned no routes"))
        try:
            routes = [parse_route(raw, i) for i, raw in enumerate(raw_routes)]
        except (RoutingError, AttributeError, TypeError, ValueError) as e:
            return RoutingResult(error=RoutingError(f"Malformed route in response: {e}"))
        return RoutingResult(routes=routes)
