"""Pydantic request/response models for coverage and delivery endpoints."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from ..models.domain import Area, DeliveryZone, MenuItem


def _optional_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class AreaSummary(BaseModel):
    id: str
    name: str
    city: str
    center: CoordinateModel
    is_active: bool

    @classmethod
    def from_domain(cls, area: Area) -> "AreaSummary":
        return cls(
            id=area.id,
            name=area.name,
            city=area.city,
            center=CoordinateModel(lat=area.center.lat, lng=area.center.lng),
            is_active=area.is_active,
        )


class ZoneModel(BaseModel):
    id: str
    area_id: str
    fee_structure: Literal["flat", "distance"]
    delivery_fee: float
    base_fee: float
    fee_per_km: Optional[float] = None
    max_distance_km: Optional[float] = None
    min_order_amount: float
    estimated_time: str
    free_delivery_above: Optional[float] = None
    is_active: bool

    @classmethod
    def from_domain(cls, zone: DeliveryZone) -> "ZoneModel":
        return cls(
            id=zone.id,
            area_id=zone.area_id,
            fee_structure=zone.fee_structure.value,
            delivery_fee=float(zone.delivery_fee),
            base_fee=float(zone.base_fee),
            fee_per_km=_optional_float(zone.fee_per_km),
            max_distance_km=zone.max_distance_km,
            min_order_amount=float(zone.min_order_amount),
            estimated_time=zone.estimated_time,
            free_delivery_above=_optional_float(zone.free_delivery_above),
            is_active=zone.is_active,
        )


class AreaWithZone(AreaSummary):
    delivery_zone: Optional[ZoneModel] = None
    has_delivery_zone: bool = False
    area_km2: float = 0.0


class DeliveryTerms(BaseModel):
    fee: float
    min_order: float
    estimated_time: str
    fee_structure: Literal["flat", "distance"]
    free_delivery_above: Optional[float] = None


class DeliveryCheckResponse(BaseModel):
    in_service: bool
    deliverable: bool
    reason: Literal["out_of_region", "no_coverage", "zone_not_configured", "resolved"]
    message: str
    area: Optional[AreaSummary] = None
    delivery: Optional[DeliveryTerms] = None
    distance_km: Optional[float] = None
    beyond_max_distance: bool = False


class DeliveryCalculateRequest(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    order_amount: Optional[Decimal] = Field(default=None, ge=0, description="Cart subtotal for free-delivery checks.")
    distance_km: Optional[float] = Field(
        default=None,
        ge=0.0,
        allow_inf_nan=False,
        description="Delivery distance; defaults to the distance from the area center.",
    )


class MenuItemModel(BaseModel):
    id: str
    name: str
    price: float
    category: Optional[str] = None
    is_available: bool
    available_area_ids: list[str]

    @classmethod
    def from_domain(cls, item: MenuItem) -> "MenuItemModel":
        return cls(
            id=item.id,
            name=item.name,
            price=float(item.price),
            category=item.category,
            is_available=item.is_available,
            available_area_ids=sorted(item.available_area_ids),
        )


class MenuByLocationResponse(DeliveryCheckResponse):
    menu: list[MenuItemModel] = Field(default_factory=list)


class MenuByAreaResponse(BaseModel):
    area: AreaSummary
    total_items: int
    menu: list[MenuItemModel]


class PolygonModel(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: Sequence[Sequence[Sequence[float]]] = Field(
        ..., description="GeoJSON rings; only the first (outer) ring is used."
    )

    @field_validator("coordinates")
    @classmethod
    def validate_rings(cls, value: Sequence[Sequence[Sequence[float]]]) -> Sequence[Sequence[Sequence[float]]]:
        if not value:
            raise ValueError("Polygon must have at least one ring")
        for point in value[0]:
            if len(point) != 2:
                raise ValueError("Each point must be a coordinate pair")
        return value


class AreaPayload(BaseModel):
    name: str = Field(..., min_length=1)
    city: str = Field(default="")
    polygon: PolygonModel
    coordinate_order: Literal["lnglat", "latlng"] = Field(
        default="lnglat",
        description="Pair order of the ring: GeoJSON [lng, lat] or drawn [lat, lng].",
    )
    is_active: bool = True


class AreaActivePayload(BaseModel):
    is_active: bool


class ZonePayload(BaseModel):
    fee_structure: Literal["flat", "distance"] = "flat"
    delivery_fee: Decimal = Decimal("0")
    base_fee: Decimal = Decimal("0")
    fee_per_km: Optional[Decimal] = None
    max_distance_km: Optional[float] = Field(default=None, allow_inf_nan=False)
    min_order_amount: Decimal = Decimal("0")
    estimated_time: str = ""
    free_delivery_above: Optional[Decimal] = None
    is_active: bool = True


class AreaOverlapModel(BaseModel):
    first_area_id: str
    second_area_id: str
    overlap_km2: float
