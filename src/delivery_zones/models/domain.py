"""Domain models for coverage areas, delivery zones and menu items."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Rectangular operating region; edges are inclusive."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, point: Coordinate) -> bool:
        return self.min_lat <= point.lat <= self.max_lat and self.min_lng <= point.lng <= self.max_lng


@dataclass(frozen=True, slots=True)
class Area:
    """Administratively defined region with a single closed coverage ring."""

    id: str
    name: str
    city: str
    polygon: tuple[Coordinate, ...]
    center: Coordinate
    is_active: bool = True


class FeeStructure(str, Enum):
    FLAT = "flat"
    DISTANCE = "distance"


@dataclass(frozen=True, slots=True)
class DeliveryZone:
    """Pricing and availability rule attached to exactly one area."""

    id: str
    area_id: str
    fee_structure: FeeStructure = FeeStructure.FLAT
    delivery_fee: Decimal = Decimal("0")
    base_fee: Decimal = Decimal("0")
    fee_per_km: Optional[Decimal] = None
    max_distance_km: Optional[float] = None
    min_order_amount: Decimal = Decimal("0")
    estimated_time: str = ""
    free_delivery_above: Optional[Decimal] = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class MenuItem:
    """Menu entry as supplied by the external catalog."""

    id: str
    name: str
    price: Decimal
    category: Optional[str] = None
    is_available: bool = True
    available_area_ids: frozenset[str] = field(default_factory=frozenset)


class ResolutionReason(str, Enum):
    OUT_OF_REGION = "out_of_region"
    NO_COVERAGE = "no_coverage"
    ZONE_NOT_CONFIGURED = "zone_not_configured"
    RESOLVED = "resolved"


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of mapping a coordinate to an area, zone and fee."""

    in_service: bool
    reason: ResolutionReason
    area: Optional[Area] = None
    zone: Optional[DeliveryZone] = None
    fee: Optional[Decimal] = None
    distance_km: Optional[float] = None
    beyond_max_distance: bool = False

    @property
    def deliverable(self) -> bool:
        return self.reason is ResolutionReason.RESOLVED
