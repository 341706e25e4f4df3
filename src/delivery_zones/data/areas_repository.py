"""Coverage data loader with database-first approach, falling back to the JSON seed file."""

from __future__ import annotations

import functools
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Area, Coordinate, DeliveryZone, FeeStructure, MenuItem
from ..services.catalog import CoverageCatalog
from ..services.fees import InvalidZoneConfig, validate_zone
from ..services.geometry import centroid, ring_from_geojson

AREAS_TABLE = "areas"
ZONES_TABLE = "delivery_zones"
MENU_TABLE = "menu_items"


def _coerce_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value).replace(",", ""))
    except InvalidOperation as exc:
        raise ValueError(f"Unable to parse amount from value '{value}'") from exc


def _coerce_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def parse_area(row: dict) -> Area:
    """Build an :class:`Area` from a stored row holding a GeoJSON polygon.

    The polygon is not validated here; stored rings that fail validation
    are skipped at resolution time.
    """

    polygon = row["polygon"]
    if isinstance(polygon, str):
        polygon = json.loads(polygon)
    rings = polygon["coordinates"] if isinstance(polygon, dict) else polygon
    ring = ring_from_geojson(rings[0]) if rings else ()

    center = row.get("center")
    if isinstance(center, dict) and center.get("lat") is not None and center.get("lng") is not None:
        center_point = Coordinate(lat=float(center["lat"]), lng=float(center["lng"]))
    else:
        center_point = centroid(ring)

    return Area(
        id=str(row["id"]),
        name=str(row["name"]).strip(),
        city=str(row.get("city") or "").strip(),
        polygon=ring,
        center=center_point,
        is_active=_coerce_bool(row.get("is_active")),
    )


def parse_zone(row: dict) -> DeliveryZone:
    max_distance = row.get("max_distance_km")
    return DeliveryZone(
        id=str(row["id"]),
        area_id=str(row["area_id"]),
        fee_structure=FeeStructure(str(row.get("fee_structure") or FeeStructure.FLAT.value).lower()),
        delivery_fee=_coerce_decimal(row.get("delivery_fee"), Decimal("0")),
        base_fee=_coerce_decimal(row.get("base_fee"), Decimal("0")),
        fee_per_km=_coerce_decimal(row.get("fee_per_km")),
        max_distance_km=float(max_distance) if max_distance not in (None, "") else None,
        min_order_amount=_coerce_decimal(row.get("min_order_amount"), Decimal("0")),
        estimated_time=str(row.get("estimated_time") or ""),
        free_delivery_above=_coerce_decimal(row.get("free_delivery_above")),
        is_active=_coerce_bool(row.get("is_active")),
    )


def parse_menu_item(row: dict) -> MenuItem:
    area_ids = row.get("available_area_ids") or []
    if isinstance(area_ids, str):
        area_ids = json.loads(area_ids)
    return MenuItem(
        id=str(row["id"]),
        name=str(row["name"]).strip(),
        price=_coerce_decimal(row.get("price"), Decimal("0")),
        category=row.get("category"),
        is_available=_coerce_bool(row.get("is_available")),
        available_area_ids=frozenset(str(area_id) for area_id in area_ids),
    )


def _load_rows_from_database(table: str) -> list[dict] | None:
    """Load rows from Supabase. Returns None if database not available or empty."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = supabase.table(table).select("*").order("created_at").execute()
    except Exception as e:
        logging.warning(f"Database query on '{table}' failed, falling back to file: {e}")
        return None
    if not response.data:
        return None
    return list(response.data)


@functools.lru_cache(maxsize=1)
def _load_seed_file(source: Path) -> dict:
    if not source.exists():
        raise FileNotFoundError(f"Coverage seed file not found: {source}")
    with source.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Coverage seed file '{source}' must contain a JSON object.")
    return payload


def _load_tables(tables: Sequence[str], source: Optional[Path]) -> dict[str, list[dict]]:
    """Rows for ``tables``, all taken from the same store.

    The database is the store when its areas table has rows; empty tables
    there stay empty. Otherwise every table comes from the seed file.
    """
    if source is None:
        area_rows = _load_rows_from_database(AREAS_TABLE)
        if area_rows is not None:
            rows = {AREAS_TABLE: area_rows}
            for table in tables:
                if table not in rows:
                    rows[table] = _load_rows_from_database(table) or []
            return rows
        logging.info("No coverage rows in the database; loading from the seed file")

    payload = _load_seed_file(source or settings.coverage_file)
    return {table: list(payload.get(table, [])) for table in tables}


def _parse_rows(rows: Iterable[dict], parser, label: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parser(row))
        except (KeyError, ValueError, TypeError, IndexError) as e:
            logging.warning(f"Skipping invalid {label} row {row.get('id', '?')}: {e}")
    return parsed


def load_coverage(source: Optional[Path] = None) -> tuple[list[Area], list[DeliveryZone]]:
    """Load areas and delivery zones; zones with broken pricing are skipped."""

    rows = _load_tables((AREAS_TABLE, ZONES_TABLE), source)
    areas = _parse_rows(rows[AREAS_TABLE], parse_area, "area")
    zones: list[DeliveryZone] = []
    for zone in _parse_rows(rows[ZONES_TABLE], parse_zone, "delivery zone"):
        try:
            validate_zone(zone)
        except InvalidZoneConfig as e:
            logging.warning(f"Skipping delivery zone '{zone.id}': {e}")
            continue
        zones.append(zone)
    return areas, zones


def load_menu_items(source: Optional[Path] = None) -> tuple[MenuItem, ...]:
    return tuple(_parse_rows(_load_tables((MENU_TABLE,), source)[MENU_TABLE], parse_menu_item, "menu item"))


@functools.lru_cache(maxsize=1)
def get_catalog() -> CoverageCatalog:
    """Process-wide catalog, loaded on first use."""

    areas, zones = load_coverage()
    catalog = CoverageCatalog()
    catalog.replace_all(areas, zones)
    return catalog


def refresh_catalog(source: Optional[Path] = None) -> CoverageCatalog:
    """Reload stored coverage into the shared catalog."""

    _load_seed_file.cache_clear()
    areas, zones = load_coverage(source)
    catalog = get_catalog()
    catalog.replace_all(areas, zones)
    return catalog
