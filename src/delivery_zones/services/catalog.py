"""In-memory catalog of coverage areas and their delivery zones.

Readers work on an immutable :class:`CatalogSnapshot`. Writers serialize on a
lock, validate and build the next snapshot off to the side, then swap the
reference, so a read never observes a half-applied mutation.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from shapely.errors import GEOSException

from ..config import settings
from ..models.domain import Area, Coordinate, DeliveryZone
from .fees import validate_zone
from .geometry import centroid, to_shapely, validate_polygon


class AreaNotFound(LookupError):
    """Raised when a mutation targets an unknown area id."""

    def __init__(self, area_id: str) -> None:
        super().__init__(f"Area '{area_id}' not found.")
        self.area_id = area_id


@dataclass(frozen=True, slots=True)
class AreaOverlap:
    first_area_id: str
    second_area_id: str
    overlap_km2: float


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """Point-in-time view of the catalog; never mutated after construction."""

    areas: tuple[Area, ...] = ()
    zones: Mapping[str, DeliveryZone] = field(default_factory=lambda: MappingProxyType({}))
    version: int = 0

    def list_areas(self) -> list[Area]:
        return list(self.areas)

    def list_active_areas(self) -> list[Area]:
        return [area for area in self.areas if area.is_active]

    def get_area(self, area_id: str) -> Optional[Area]:
        for area in self.areas:
            if area.id == area_id:
                return area
        return None

    def zone_for_area(self, area_id: str) -> Optional[DeliveryZone]:
        return self.zones.get(area_id)


def build_area(
    area_id: str,
    name: str,
    city: str,
    polygon: Sequence[Coordinate],
    *,
    is_active: bool = True,
) -> Area:
    """Validate ``polygon`` and create an area with its derived center."""

    ring = tuple(polygon)
    validate_polygon(ring)
    return Area(
        id=area_id,
        name=name,
        city=city,
        polygon=ring,
        center=centroid(ring),
        is_active=is_active,
    )


def _overlap_km2(first: Area, second: Area) -> float:
    shape_a, shape_b = to_shapely(first.polygon), to_shapely(second.polygon)
    if not (shape_a.is_valid and shape_b.is_valid):
        return 0.0
    try:
        intersection = shape_a.intersection(shape_b)
    except GEOSException as exc:
        logging.warning(f"Could not intersect areas '{first.id}' and '{second.id}': {exc}")
        return 0.0
    # shapely works in degrees², same planar scaling as approximate_area_km2
    return intersection.area * settings.km_per_degree * settings.km_per_degree


class CoverageCatalog:
    """Owns the areas and delivery zones used for resolution."""

    def __init__(self, areas: Iterable[Area] = (), zones: Iterable[DeliveryZone] = ()) -> None:
        self._write_lock = threading.Lock()
        self._snapshot = self._make_snapshot(tuple(areas), {zone.area_id: zone for zone in zones}, version=0)

    @staticmethod
    def _make_snapshot(areas: tuple[Area, ...], zones: dict[str, DeliveryZone], *, version: int) -> CatalogSnapshot:
        known_ids = {area.id for area in areas}
        orphaned = [area_id for area_id in zones if area_id not in known_ids]
        for area_id in orphaned:
            logging.warning(f"Dropping delivery zone for unknown area '{area_id}'")
            del zones[area_id]
        return CatalogSnapshot(areas=areas, zones=MappingProxyType(zones), version=version)

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def list_areas(self) -> list[Area]:
        return self._snapshot.list_areas()

    def list_active_areas(self) -> list[Area]:
        return self._snapshot.list_active_areas()

    def get_area(self, area_id: str) -> Optional[Area]:
        return self._snapshot.get_area(area_id)

    def zone_for_area(self, area_id: str) -> Optional[DeliveryZone]:
        return self._snapshot.zone_for_area(area_id)

    def replace_all(self, areas: Iterable[Area], zones: Iterable[DeliveryZone]) -> None:
        """Swap in records loaded from storage.

        Stored polygons are taken as-is; the resolver skips any that fail
        validation.
        """

        areas = tuple(areas)
        zone_map = {zone.area_id: zone for zone in zones}
        with self._write_lock:
            self._snapshot = self._make_snapshot(areas, zone_map, version=self._snapshot.version + 1)
        logging.info(f"Coverage catalog loaded with {len(areas)} areas and {len(self._snapshot.zones)} zones")

    def upsert_area(self, area: Area) -> Area:
        """Insert or replace ``area``; the center is recomputed from its polygon."""

        validate_polygon(area.polygon)
        area = replace(area, polygon=tuple(area.polygon), center=centroid(area.polygon))

        with self._write_lock:
            current = self._snapshot
            areas = list(current.areas)
            for index, existing in enumerate(areas):
                if existing.id == area.id:
                    areas[index] = area
                    break
            else:
                areas.append(area)
            self._snapshot = self._make_snapshot(tuple(areas), dict(current.zones), version=current.version + 1)

        if area.is_active:
            for other in self.list_active_areas():
                if other.id != area.id and _overlap_km2(area, other) > 0:
                    logging.warning(
                        f"Area '{area.id}' overlaps area '{other.id}'; the earlier listed area wins resolution"
                    )
        return area

    def set_area_active(self, area_id: str, active: bool) -> Area:
        with self._write_lock:
            current = self._snapshot
            updated: Optional[Area] = None
            areas: list[Area] = []
            for existing in current.areas:
                if existing.id == area_id:
                    updated = replace(existing, is_active=active)
                    areas.append(updated)
                else:
                    areas.append(existing)
            if updated is None:
                raise AreaNotFound(area_id)
            self._snapshot = self._make_snapshot(tuple(areas), dict(current.zones), version=current.version + 1)
        return updated

    def delete_area(self, area_id: str) -> None:
        """Remove the area and its delivery zone."""

        with self._write_lock:
            current = self._snapshot
            areas = tuple(area for area in current.areas if area.id != area_id)
            if len(areas) == len(current.areas):
                raise AreaNotFound(area_id)
            zones = {key: zone for key, zone in current.zones.items() if key != area_id}
            self._snapshot = self._make_snapshot(areas, zones, version=current.version + 1)
        logging.info(f"Deleted area '{area_id}'")

    def upsert_zone(self, zone: DeliveryZone) -> DeliveryZone:
        """Insert or replace the delivery zone of ``zone.area_id``."""

        validate_zone(zone)
        with self._write_lock:
            current = self._snapshot
            if current.get_area(zone.area_id) is None:
                raise AreaNotFound(zone.area_id)
            zones = dict(current.zones)
            zones[zone.area_id] = zone
            self._snapshot = self._make_snapshot(current.areas, zones, version=current.version + 1)
        return zone

    def find_overlaps(self) -> list[AreaOverlap]:
        """Pairs of active areas whose polygons share a non-zero surface."""

        active = self.list_active_areas()
        overlaps: list[AreaOverlap] = []
        for index, first in enumerate(active):
            for second in active[index + 1 :]:
                overlap = _overlap_km2(first, second)
                if overlap > 0:
                    overlaps.append(AreaOverlap(first.id, second.id, overlap))
        return overlaps
