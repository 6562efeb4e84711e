"""
Coordinate and bounding-box value types (WGS84 degrees).
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable


class InvalidBoundingBoxError(ValueError):
    """Raised when a bounding box's northeast corner lies below or left of its southwest corner."""


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class BoundingBox:
    northeast: Coordinate
    southwest: Coordinate

    @classmethod
    def from_points(cls, points: Iterable[Coordinate]) -> "BoundingBox":
        """Envelope (min/max lat and lng) of a non-empty point sequence."""
        pts = list(points)
        if not pts:
            raise ValueError("cannot build a bounding box from no points")
        lats = [p.latitude for p in pts]
        lngs = [p.longitude for p in pts]
        return cls(
            northeast=Coordinate(max(lats), max(lngs)),
            southwest=Coordinate(min(lats), min(lngs)),
        )

    def validate(self) -> "BoundingBox":
        """Return self if northeast >= southwest on both axes, else raise InvalidBoundingBoxError."""
        ne, sw = self.northeast, self.southwest
        if ne.latitude < sw.latitude:
            raise InvalidBoundingBoxError(
                f"northeast latitude {ne.latitude} is below southwest latitude {sw.latitude}"
            )
        if ne.longitude < sw.longitude:
            raise InvalidBoundingBoxError(
                f"northeast longitude {ne.longitude} is left of southwest longitude {sw.longitude}"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"northeast": self.northeast.to_dict(), "southwest": self.southwest.to_dict()}
