"""Public API routes for coverage areas and delivery checks."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from ...data.areas_repository import get_catalog
from ...models.domain import Coordinate
from ...schemas.delivery import (
    AreaSummary,
    AreaWithZone,
    DeliveryCalculateRequest,
    DeliveryCheckResponse,
    ZoneModel,
)
from ...services.export import export_coverage_geojson
from ...services.geometry import approximate_area_km2
from ...services.outputs.formatter import resolution_to_response
from ...services.resolver import ZoneResolver

router = APIRouter(tags=["areas"])


@router.get("/areas", response_model=list[AreaWithZone], status_code=status.HTTP_200_OK)
def list_areas() -> list[AreaWithZone]:
    """Active areas with their delivery zone, in resolution order."""
    snapshot = get_catalog().snapshot()
    results: list[AreaWithZone] = []
    for area in snapshot.list_active_areas():
        zone = snapshot.zone_for_area(area.id)
        results.append(
            AreaWithZone(
                **AreaSummary.from_domain(area).model_dump(),
                delivery_zone=ZoneModel.from_domain(zone) if zone else None,
                has_delivery_zone=zone is not None and zone.is_active,
                area_km2=round(approximate_area_km2(area.polygon), 3),
            )
        )
    return results


@router.get("/areas/check", response_model=DeliveryCheckResponse, status_code=status.HTTP_200_OK)
def check_area(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
) -> DeliveryCheckResponse:
    result = ZoneResolver(get_catalog()).resolve(Coordinate(lat=lat, lng=lng))
    return resolution_to_response(result)


@router.get("/areas/geojson", status_code=status.HTTP_200_OK)
def areas_geojson(active_only: bool = Query(default=True)) -> dict:
    return export_coverage_geojson(get_catalog().snapshot(), active_only=active_only)


@router.post("/delivery/calculate", response_model=DeliveryCheckResponse, status_code=status.HTTP_200_OK)
def calculate_delivery(payload: DeliveryCalculateRequest) -> DeliveryCheckResponse:
    """Resolve the coordinate and price delivery for the given cart subtotal."""
    result = ZoneResolver(get_catalog()).resolve(
        Coordinate(lat=payload.lat, lng=payload.lng),
        order_subtotal=payload.order_amount,
        distance_km=payload.distance_km,
    )
    return resolution_to_response(result)
