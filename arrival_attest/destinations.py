"""
Destination registry - static lookup of geofence anchors.

The table is compiled in and changes only with a deployment. It must stay
identical to the destination set shipped with the client application;
drift between the two cannot be detected from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Protocol


@dataclass(frozen=True)
class Destination:
    """Reference point of a geofence."""

    id: int
    latitude: float
    longitude: float
    jurisdiction: str  # ISO-3166 alpha-2


class Registry(Protocol):
    """Read-only destination lookup."""

    def lookup(self, destination_id: int) -> Optional[Destination]:
        ...


DESTINATIONS: Mapping[int, Destination] = {
    1: Destination(1, 19.076, 72.8777, "IN"),  # Mumbai
    2: Destination(2, 27.1751, 78.0421, "IN"),  # Taj Mahal, Agra
    3: Destination(3, 25.3176, 82.9739, "IN"),  # Varanasi
    4: Destination(4, 34.0479, 74.4049, "IN"),  # Kashmir
    5: Destination(5, 13.0827, 80.2707, "IN"),  # Chennai
    6: Destination(6, 26.93377, 75.9236, "IN"),  # LNMIIT Jaipur
    7: Destination(7, 22.5726, 88.3639, "IN"),  # Kolkata
}


class StaticRegistry:
    """Production registry backed by the compiled-in table."""

    def __init__(self, table: Mapping[int, Destination] = DESTINATIONS):
        self._table = table

    def lookup(self, destination_id: int) -> Optional[Destination]:
        return self._table.get(destination_id)


@dataclass
class InMemoryRegistry:
    """
    Mutable registry for tests and local tooling.

    Counts lookups so callers can assert whether resolution was reached.
    """

    destinations: Dict[int, Destination]
    lookups: int = 0

    @staticmethod
    def of(items: Iterable[Destination]) -> InMemoryRegistry:
        return InMemoryRegistry(destinations={d.id: d for d in items})

    def lookup(self, destination_id: int) -> Optional[Destination]:
        self.lookups += 1
        return self.destinations.get(destination_id)
