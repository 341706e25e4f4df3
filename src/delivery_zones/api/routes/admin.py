"""Administrative API routes for editing coverage areas and delivery zones."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, HTTPException, status

from ...data.areas_repository import get_catalog, refresh_catalog
from ...models.domain import Coordinate, DeliveryZone, FeeStructure
from ...persistence.filesystem import FileStorage
from ...schemas.delivery import (
    AreaActivePayload,
    AreaOverlapModel,
    AreaPayload,
    AreaWithZone,
    AreaSummary,
    ZoneModel,
    ZonePayload,
)
from ...services.catalog import AreaNotFound, build_area
from ...services.export import export_coverage_geojson
from ...services.fees import InvalidZoneConfig
from ...services.geometry import GeometryError, approximate_area_km2, ring_from_geojson, ring_from_latlngs

router = APIRouter(prefix="/admin", tags=["admin"])


def _ring_from_payload(payload: AreaPayload) -> tuple[Coordinate, ...]:
    outer = payload.polygon.coordinates[0]
    if payload.coordinate_order == "latlng":
        return ring_from_latlngs(outer)
    return ring_from_geojson(outer)


def _area_response(area_id: str) -> AreaWithZone:
    catalog = get_catalog()
    area = catalog.get_area(area_id)
    if area is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Area '{area_id}' not found.")
    zone = catalog.zone_for_area(area_id)
    return AreaWithZone(
        **AreaSummary.from_domain(area).model_dump(),
        delivery_zone=ZoneModel.from_domain(zone) if zone else None,
        has_delivery_zone=zone is not None and zone.is_active,
        area_km2=round(approximate_area_km2(area.polygon), 3),
    )


def _save_area(area_id: str, payload: AreaPayload) -> AreaWithZone:
    try:
        area = build_area(
            area_id,
            payload.name.strip(),
            payload.city.strip().upper(),
            _ring_from_payload(payload),
            is_active=payload.is_active,
        )
    except GeometryError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": exc.code.value, "message": str(exc)},
        ) from exc
    get_catalog().upsert_area(area)
    return _area_response(area.id)


@router.get("/areas", response_model=list[AreaWithZone], status_code=status.HTTP_200_OK)
def list_all_areas() -> list[AreaWithZone]:
    return [_area_response(area.id) for area in get_catalog().list_areas()]


@router.get("/areas/overlaps", response_model=list[AreaOverlapModel], status_code=status.HTTP_200_OK)
def list_overlaps() -> list[AreaOverlapModel]:
    """Active areas sharing surface; the earlier listed area wins resolution."""
    return [
        AreaOverlapModel(
            first_area_id=overlap.first_area_id,
            second_area_id=overlap.second_area_id,
            overlap_km2=round(overlap.overlap_km2, 4),
        )
        for overlap in get_catalog().find_overlaps()
    ]


@router.get("/areas/{area_id}", response_model=AreaWithZone, status_code=status.HTTP_200_OK)
def get_area(area_id: str) -> AreaWithZone:
    return _area_response(area_id)


@router.post("/areas", response_model=AreaWithZone, status_code=status.HTTP_201_CREATED)
def create_area(payload: AreaPayload) -> AreaWithZone:
    return _save_area(uuid.uuid4().hex, payload)


@router.put("/areas/{area_id}", response_model=AreaWithZone, status_code=status.HTTP_200_OK)
def update_area(area_id: str, payload: AreaPayload) -> AreaWithZone:
    if get_catalog().get_area(area_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Area '{area_id}' not found.")
    return _save_area(area_id, payload)


@router.patch("/areas/{area_id}/active", response_model=AreaWithZone, status_code=status.HTTP_200_OK)
def set_area_active(area_id: str, payload: AreaActivePayload) -> AreaWithZone:
    try:
        get_catalog().set_area_active(area_id, payload.is_active)
    except AreaNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _area_response(area_id)


@router.delete("/areas/{area_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_area(area_id: str) -> None:
    try:
        get_catalog().delete_area(area_id)
    except AreaNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.put("/delivery-zone/{area_id}", response_model=ZoneModel, status_code=status.HTTP_200_OK)
def upsert_delivery_zone(area_id: str, payload: ZonePayload) -> ZoneModel:
    catalog = get_catalog()
    existing = catalog.zone_for_area(area_id)
    zone = DeliveryZone(
        id=existing.id if existing else uuid.uuid4().hex,
        area_id=area_id,
        fee_structure=FeeStructure(payload.fee_structure),
        delivery_fee=payload.delivery_fee,
        base_fee=payload.base_fee,
        fee_per_km=payload.fee_per_km,
        max_distance_km=payload.max_distance_km,
        min_order_amount=payload.min_order_amount,
        estimated_time=payload.estimated_time.strip(),
        free_delivery_above=payload.free_delivery_above,
        is_active=payload.is_active,
    )
    try:
        catalog.upsert_zone(zone)
    except AreaNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidZoneConfig as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return ZoneModel.from_domain(zone)


@router.post("/coverage/refresh", status_code=status.HTTP_200_OK)
def refresh_coverage() -> dict:
    """Reload areas and zones from storage, discarding unsaved in-memory edits."""
    catalog = refresh_catalog()
    return {"version": catalog.version, "areas": len(catalog.list_areas())}


@router.post("/coverage/export", status_code=status.HTTP_201_CREATED)
def export_coverage() -> dict:
    """Write the current catalog as GeoJSON under the data root."""
    storage = FileStorage()
    snapshot = get_catalog().snapshot()
    run_dir = storage.make_run_directory(prefix="coverage")
    output_path = run_dir / "coverage.geojson"
    storage.write_json(output_path, export_coverage_geojson(snapshot))
    logging.info(f"Exported {len(snapshot.areas)} areas to {output_path}")
    return {"path": str(output_path), "version": snapshot.version, "areas": len(snapshot.areas)}
