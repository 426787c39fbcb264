"""Great-circle distance and geo-fence checks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import require_coordinate
from ..core.constants import EARTH_RADIUS_M
from ..core.exceptions import OutsideGeoFence, ValidationError


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self):
        object.__setattr__(self, "lat", require_coordinate(self.lat, "lat", limit=90.0))
        object.__setattr__(self, "lng", require_coordinate(self.lng, "lng", limit=180.0))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["GeoPoint"]:
        if data is None:
            return None
        if not isinstance(data, Mapping) or "lat" not in data or "lng" not in data:
            raise ValidationError("location must contain lat and lng")
        return cls(lat=data["lat"], lng=data["lng"])

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def distance(p1: GeoPoint, p2: GeoPoint) -> float:
    """Haversine distance in meters."""
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    d_phi = math.radians(p2.lat - p1.lat)
    d_lambda = math.radians(p2.lng - p1.lng)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def within_radius(point: GeoPoint, center: GeoPoint, radius: float) -> bool:
    return distance(point, center) <= radius


@dataclass(frozen=True)
class GeoFence:
    center: GeoPoint
    radius_m: float
    enabled: bool = True

    def check(self, point: Optional[GeoPoint]) -> Optional[float]:
        """Return the measured distance, or None when nothing was checked.

        Raises OutsideGeoFence when the point lies beyond the radius.
        """
        if not self.enabled or point is None:
            return None
        d = distance(point, self.center)
        if d > self.radius_m:
            raise OutsideGeoFence(d, self.radius_m)
        return d
