"""Geospatial helper functions for coverage rings.

Rings are sequences of :class:`Coordinate` where the first and last vertex
are equal. GeoJSON stores the same rings as ``[lng, lat]`` pairs; the
conversion helpers at the bottom of this module are the only place that
ordering is handled.
"""

from __future__ import annotations

import math
from enum import Enum
from numbers import Real
from typing import Iterable, Sequence

from shapely.geometry import Polygon

from ..config import settings
from ..models.domain import BoundingBox, Coordinate

EARTH_RADIUS_KM = 6371.0


class GeometryErrorCode(str, Enum):
    TOO_FEW_VERTICES = "too_few_vertices"
    UNCLOSED_RING = "unclosed_ring"
    OUT_OF_BOUNDS = "out_of_bounds"
    NON_NUMERIC_COORDINATE = "non_numeric_coordinate"


class GeometryError(ValueError):
    """Raised when a ring fails validation."""

    def __init__(self, code: GeometryErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


def operating_bounds() -> BoundingBox:
    """Operating region configured for the service."""

    return BoundingBox(
        min_lat=settings.region_min_lat,
        max_lat=settings.region_max_lat,
        min_lng=settings.region_min_lng,
        max_lng=settings.region_max_lng,
    )


def _is_finite_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_polygon(ring: Sequence[Coordinate], bounds: BoundingBox | None = None) -> None:
    """Raise :class:`GeometryError` unless ``ring`` is a closed ring inside ``bounds``.

    Self-intersection is not checked.
    """

    bounds = bounds or operating_bounds()
    if ring is None or len(ring) < 4:
        raise GeometryError(
            GeometryErrorCode.TOO_FEW_VERTICES,
            f"Polygon must have at least 4 points, got {0 if ring is None else len(ring)}.",
        )
    for index, vertex in enumerate(ring):
        if not (_is_finite_number(vertex.lat) and _is_finite_number(vertex.lng)):
            raise GeometryError(
                GeometryErrorCode.NON_NUMERIC_COORDINATE,
                f"Vertex {index} has a non-numeric coordinate: ({vertex.lat!r}, {vertex.lng!r}).",
            )
    if ring[0] != ring[-1]:
        raise GeometryError(GeometryErrorCode.UNCLOSED_RING, "First and last vertex of the ring must be equal.")
    for index, vertex in enumerate(ring):
        if not bounds.contains(vertex):
            raise GeometryError(
                GeometryErrorCode.OUT_OF_BOUNDS,
                f"Vertex {index} ({vertex.lat}, {vertex.lng}) lies outside the operating region.",
            )


def point_in_polygon(point: Coordinate, ring: Sequence[Coordinate]) -> bool:
    """Even-odd ray casting test.

    Points exactly on an edge may land on either side; vertices get no
    special treatment.
    """

    if len(ring) < 4:
        return False

    x, y = point.lng, point.lat
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i].lng, ring[i].lat
        xj, yj = ring[j].lng, ring[j].lat
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def centroid(ring: Sequence[Coordinate]) -> Coordinate:
    """Vertex-averaged center of ``ring`` (closing vertex included).

    This is not the area-weighted centroid; stored area centers were
    computed this way. An empty ring yields the configured fallback center.
    """

    if not ring:
        # TODO: raise instead once every caller handles a missing center.
        return Coordinate(lat=settings.fallback_center_lat, lng=settings.fallback_center_lng)
    lat = sum(vertex.lat for vertex in ring) / len(ring)
    lng = sum(vertex.lng for vertex in ring) / len(ring)
    return Coordinate(lat=lat, lng=lng)


def approximate_area_km2(ring: Sequence[Coordinate]) -> float:
    """Planar shoelace area scaled by a fixed km-per-degree factor.

    Only meaningful near the latitude the factor was chosen for.
    """

    if len(ring) < 3:
        return 0.0
    area = 0.0
    count = len(ring)
    for i in range(count):
        j = (i + 1) % count
        area += ring[i].lng * ring[j].lat
        area -= ring[j].lng * ring[i].lat
    area = abs(area) / 2
    return area * settings.km_per_degree * settings.km_per_degree


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def close_ring(ring: Sequence[Coordinate]) -> tuple[Coordinate, ...]:
    """Append the first vertex when the ring is open."""

    vertices = tuple(ring)
    if vertices and vertices[0] != vertices[-1]:
        return vertices + (vertices[0],)
    return vertices


def ring_from_geojson(coordinates: Iterable[Sequence[float]]) -> tuple[Coordinate, ...]:
    """Build a ring from GeoJSON ``[lng, lat]`` pairs (no closing applied)."""

    return tuple(Coordinate(lat=pair[1], lng=pair[0]) for pair in coordinates)


def ring_to_geojson(ring: Sequence[Coordinate]) -> list[list[float]]:
    return [[vertex.lng, vertex.lat] for vertex in ring]


def ring_from_latlngs(points: Iterable[Sequence[float]]) -> tuple[Coordinate, ...]:
    """Build a closed ring from drawn ``[lat, lng]`` pairs."""

    return close_ring([Coordinate(lat=pair[0], lng=pair[1]) for pair in points])


def to_shapely(ring: Sequence[Coordinate]) -> Polygon:
    return Polygon([(vertex.lng, vertex.lat) for vertex in ring])
