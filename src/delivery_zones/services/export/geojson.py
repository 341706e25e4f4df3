"""GeoJSON export of the coverage catalog."""

from __future__ import annotations

from typing import Any, Dict, List

from shapely.geometry import mapping

from ...models.domain import Area, DeliveryZone
from ..catalog import CatalogSnapshot
from ..geometry import approximate_area_km2, to_shapely


def generate_zone_color(index: int) -> str:
    """Generate distinct colors for areas."""
    colors = [
        "#02d8e0", "#e0003e", "#38e000", "#0000c1", "#e0e005",
        "#611cc7", "#e0af00", "#13aae0", "#a4d819", "#00e0bb",
    ]
    return colors[index % len(colors)]


def _zone_properties(zone: DeliveryZone | None) -> Dict[str, Any] | None:
    if zone is None:
        return None
    return {
        "id": zone.id,
        "fee_structure": zone.fee_structure.value,
        "delivery_fee": float(zone.delivery_fee),
        "base_fee": float(zone.base_fee),
        "fee_per_km": float(zone.fee_per_km) if zone.fee_per_km is not None else None,
        "max_distance_km": zone.max_distance_km,
        "min_order_amount": float(zone.min_order_amount),
        "estimated_time": zone.estimated_time,
        "free_delivery_above": float(zone.free_delivery_above) if zone.free_delivery_above is not None else None,
        "is_active": zone.is_active,
    }


def area_to_feature(area: Area, zone: DeliveryZone | None, index: int = 0) -> Dict[str, Any]:
    """Convert an area (and its zone) to a GeoJSON Feature."""

    return {
        "type": "Feature",
        "id": area.id,
        "geometry": mapping(to_shapely(area.polygon)),
        "properties": {
            "name": area.name,
            "city": area.city,
            "is_active": area.is_active,
            "center": {"lat": area.center.lat, "lng": area.center.lng},
            "area_km2": round(approximate_area_km2(area.polygon), 3),
            "fill_color": generate_zone_color(index),
            "delivery_zone": _zone_properties(zone),
        },
    }


def export_coverage_geojson(snapshot: CatalogSnapshot, *, active_only: bool = False) -> Dict[str, Any]:
    """Build a FeatureCollection for every area in ``snapshot``."""

    areas = snapshot.list_active_areas() if active_only else snapshot.list_areas()
    features: List[Dict[str, Any]] = [
        area_to_feature(area, snapshot.zone_for_area(area.id), idx) for idx, area in enumerate(areas)
    ]
    return {
        "type": "FeatureCollection",
        "features": features,
        "metadata": {"catalog_version": snapshot.version, "area_count": len(features)},
    }

