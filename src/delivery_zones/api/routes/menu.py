"""API routes for area-scoped menus."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ...data.areas_repository import get_catalog, load_menu_items
from ...models.domain import Coordinate
from ...schemas.delivery import AreaSummary, MenuByAreaResponse, MenuByLocationResponse, MenuItemModel
from ...services.menu import filter_for_area
from ...services.outputs.formatter import resolution_to_menu_response
from ...services.resolver import ZoneResolver

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("/location", response_model=MenuByLocationResponse, status_code=status.HTTP_200_OK)
def menu_by_location(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
) -> MenuByLocationResponse:
    """Menu deliverable to the coordinate; empty unless delivery is available."""
    result = ZoneResolver(get_catalog()).resolve(Coordinate(lat=lat, lng=lng))
    menu = filter_for_area(load_menu_items(), result.area.id) if result.deliverable else []
    return resolution_to_menu_response(result, menu)


@router.get("/area/{area_id}", response_model=MenuByAreaResponse, status_code=status.HTTP_200_OK)
def menu_by_area(area_id: str) -> MenuByAreaResponse:
    area = get_catalog().get_area(area_id)
    if area is None or not area.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Area '{area_id}' not found.")
    menu = filter_for_area(load_menu_items(), area.id)
    return MenuByAreaResponse(
        area=AreaSummary.from_domain(area),
        total_items=len(menu),
        menu=[MenuItemModel.from_domain(item) for item in menu],
    )
