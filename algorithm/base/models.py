"""
Value types shared by the planning pipeline.

Buckets are immutable: every change produces a new DayBucket, so a list of
buckets can be handed to a helper without the helper seeing it mutate
underneath.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_dict(self):
        return {"latitude": self.latitude, "longitude": self.longitude}


def mean_coordinate(coordinates: Iterable[Coordinate]) -> Optional[Coordinate]:
    """Arithmetic mean of coordinates, None for an empty input"""
    coordinates = list(coordinates)
    if not coordinates:
        return None
    lat = sum(c.latitude for c in coordinates) / len(coordinates)
    lng = sum(c.longitude for c in coordinates) / len(coordinates)
    return Coordinate(lat, lng)


@dataclass(frozen=True)
class Visit:
    id: str
    coordinate: Coordinate
    service_minutes: float = 45.0
    address: Optional[str] = None
    completed: bool = False
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def latitude(self):
        return self.coordinate.latitude

    @property
    def longitude(self):
        return self.coordinate.longitude


@dataclass(frozen=True)
class Group:
    """One or more visits served from a single stop"""
    id: str
    members: Tuple[Visit, ...]

    @property
    def centroid(self) -> Coordinate:
        return mean_coordinate(m.coordinate for m in self.members)

    @property
    def visit_ids(self):
        return tuple(m.id for m in self.members)


@dataclass(frozen=True)
class DayBucket:
    index: int
    centroid: Optional[Coordinate]
    visits: Tuple[Visit, ...] = ()

    @property
    def visit_ids(self):
        return {v.id for v in self.visits}

    def is_empty(self):
        return len(self.visits) == 0

    def with_visits(self, visits, centroid=None):
        """New bucket holding `visits`; centroid is recomputed unless given"""
        visits = tuple(visits)
        if centroid is None:
            centroid = mean_coordinate(v.coordinate for v in visits) or self.centroid
        return replace(self, visits=visits, centroid=centroid)

    def without(self, visit_ids):
        visit_ids = set(visit_ids)
        return self.with_visits(v for v in self.visits if v.id not in visit_ids)

    def extended(self, visits):
        return self.with_visits(self.visits + tuple(visits))


@dataclass(frozen=True)
class Move:
    """Visits moved from one day bucket to another"""
    visit_ids: Tuple[str, ...]
    source_index: int
    target_index: int
    kind: str = "visit"
