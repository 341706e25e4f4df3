"""Coordinate to area / zone / fee resolution."""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Optional

from ..models.domain import (
    Area,
    BoundingBox,
    Coordinate,
    FeeStructure,
    ResolutionReason,
    ResolutionResult,
)
from .catalog import CatalogSnapshot, CoverageCatalog
from .fees import InvalidZoneConfig, compute_fee
from .geometry import GeometryError, haversine_km, operating_bounds, point_in_polygon, validate_polygon


class ZoneResolver:
    """Answers whether a coordinate is deliverable and under which terms.

    Overlapping areas are resolved by catalog order: the first listed
    active area containing the point wins.
    """

    def __init__(self, catalog: CoverageCatalog, bounds: BoundingBox | None = None) -> None:
        self.catalog = catalog
        self.bounds = bounds

    def _match_area(self, point: Coordinate, snapshot: CatalogSnapshot, bounds: BoundingBox) -> Optional[Area]:
        for area in snapshot.list_active_areas():
            try:
                validate_polygon(area.polygon, bounds)
            except GeometryError as exc:
                logging.warning(f"Skipping area '{area.id}' with invalid polygon ({exc.code.value}): {exc}")
                continue
            if point_in_polygon(point, area.polygon):
                return area
        return None

    def resolve(
        self,
        point: Coordinate,
        *,
        order_subtotal: Decimal | float | int | None = None,
        distance_km: Optional[float] = None,
    ) -> ResolutionResult:
        bounds = self.bounds or operating_bounds()
        if not bounds.contains(point):
            return ResolutionResult(in_service=False, reason=ResolutionReason.OUT_OF_REGION)

        snapshot = self.catalog.snapshot()
        area = self._match_area(point, snapshot, bounds)
        if area is None:
            return ResolutionResult(in_service=False, reason=ResolutionReason.NO_COVERAGE)

        zone = snapshot.zone_for_area(area.id)
        if zone is None or not zone.is_active:
            return ResolutionResult(in_service=True, reason=ResolutionReason.ZONE_NOT_CONFIGURED, area=area)

        if distance_km is not None and not (math.isfinite(distance_km) and distance_km >= 0):
            logging.warning(f"Ignoring invalid distance {distance_km} km; using the distance from the area center")
            distance_km = None
        if order_subtotal is not None and not Decimal(str(order_subtotal)).is_finite():
            logging.warning(f"Ignoring non-finite order subtotal {order_subtotal}")
            order_subtotal = None
        if distance_km is None:
            distance_km = haversine_km(area.center.lat, area.center.lng, point.lat, point.lng)

        try:
            fee = compute_fee(zone, order_subtotal, distance_km)
        except InvalidZoneConfig as exc:
            logging.error(f"Delivery zone '{zone.id}' for area '{area.id}' is misconfigured: {exc}")
            return ResolutionResult(in_service=True, reason=ResolutionReason.ZONE_NOT_CONFIGURED, area=area)

        beyond_max = (
            zone.fee_structure is FeeStructure.DISTANCE
            and zone.max_distance_km is not None
            and distance_km > zone.max_distance_km
        )
        return ResolutionResult(
            in_service=True,
            reason=ResolutionReason.RESOLVED,
            area=area,
            zone=zone,
            fee=fee,
            distance_km=distance_km,
            beyond_max_distance=beyond_max,
        )
