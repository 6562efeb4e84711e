"""
Route value types: decoded routes and routes annotated with AQI exposure.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from config import POLLUTION_LEVEL_THRESHOLDS
from services.geo.coordinates import BoundingBox, Coordinate

POLLUTION_LEVELS: Tuple[str, ...] = ("Low", "Moderate", "High", "Very High")


def pollution_level_for(exposure_score: float) -> str:
    """Low < 30 <= Moderate < 50 <= High < 70 <= Very High."""
    if exposure_score < POLLUTION_LEVEL_THRESHOLDS["Moderate"]:
        return "Low"
    if exposure_score < POLLUTION_LEVEL_THRESHOLDS["High"]:
        return "Moderate"
    if exposure_score < POLLUTION_LEVEL_THRESHOLDS["Very High"]:
        return "High"
    return "Very High"


@dataclass(frozen=True)
class RouteSegment:
    coordinates: Tuple[Coordinate, ...]
    distance: float  # meters
    duration: float  # seconds
    steps: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinates": [c.to_dict() for c in self.coordinates],
            "distance": self.distance,
            "duration": self.duration,
            "steps": list(self.steps),
        }


@dataclass(frozen=True)
class CalculatedRoute:
    id: str
    segments: Tuple[RouteSegment, ...]
    total_distance: float
    total_duration: float
    bounds: BoundingBox
    polyline_coordinates: Tuple[Coordinate, ...]
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "segments": [s.to_dict() for s in self.segments],
            "total_distance": self.total_distance,
            "total_duration": self.total_duration,
            "bounds": self.bounds.to_dict(),
            "polyline_coordinates": [c.to_dict() for c in self.polyline_coordinates],
            "summary": self.summary,
        }


@dataclass
class RouteWithAQI:
    """A route plus its exposure annotations. is_safest is set once per processed batch."""

    route: CalculatedRoute
    exposure_score: int
    pollution_level: str
    aqi_along_route: List[int] = field(default_factory=list)
    is_safest: bool = False

    @property
    def id(self) -> str:
        return self.route.id

    def to_dict(self) -> Dict[str, Any]:
        out = self.route.to_dict()
        out.update({
            "exposure_score": self.exposure_score,
            "pollution_level": self.pollution_level,
            "aqi_along_route": list(self.aqi_along_route),
            "is_safest": self.is_safest,
        })
        return out
