"""Delivery fee computation for resolved zones."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..config import settings
from ..models.domain import DeliveryZone, FeeStructure


class InvalidZoneConfig(ValueError):
    """Raised when a delivery zone cannot be priced as configured."""


def _as_decimal(value: Decimal | float | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal | float | int, digits: Optional[int] = None) -> Decimal:
    """Round half-up to the currency's minor unit."""

    digits = settings.currency_minor_digits if digits is None else digits
    quantum = Decimal(1).scaleb(-digits)
    return _as_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)


def validate_zone(zone: DeliveryZone) -> None:
    """Raise :class:`InvalidZoneConfig` for zones that break the pricing invariants."""

    amounts = {
        "delivery_fee": zone.delivery_fee,
        "base_fee": zone.base_fee,
        "fee_per_km": zone.fee_per_km,
        "max_distance_km": zone.max_distance_km,
        "min_order_amount": zone.min_order_amount,
        "free_delivery_above": zone.free_delivery_above,
    }
    for name, value in amounts.items():
        if value is None:
            continue
        if not _as_decimal(value).is_finite():
            raise InvalidZoneConfig(f"Zone '{zone.id}': {name} must be a finite number, got {value}.")
        if _as_decimal(value) < 0:
            raise InvalidZoneConfig(f"Zone '{zone.id}': {name} must be >= 0, got {value}.")

    if zone.fee_structure is FeeStructure.DISTANCE:
        if zone.fee_per_km is None:
            raise InvalidZoneConfig(f"Zone '{zone.id}': distance pricing requires fee_per_km.")
        if zone.max_distance_km is None or zone.max_distance_km <= 0:
            raise InvalidZoneConfig(f"Zone '{zone.id}': distance pricing requires max_distance_km > 0.")


def compute_fee(
    zone: DeliveryZone,
    order_subtotal: Decimal | float | int | None = None,
    distance_km: Optional[float] = None,
) -> Decimal:
    """Delivery fee for ``zone``.

    Distance pricing charges ``base_fee + fee_per_km * min(distance_km, max_distance_km)``;
    distances past the maximum are clamped and left for the caller to flag.
    Reaching ``free_delivery_above`` waives the fee entirely.
    """

    validate_zone(zone)

    if zone.fee_structure is FeeStructure.DISTANCE:
        if distance_km is None:
            raise InvalidZoneConfig(f"Zone '{zone.id}': distance pricing requires a distance.")
        if not math.isfinite(distance_km) or distance_km < 0:
            raise ValueError(f"distance_km must be a finite number >= 0, got {distance_km}")
        billable_km = min(_as_decimal(distance_km), _as_decimal(zone.max_distance_km))
        fee = _as_decimal(zone.base_fee) + _as_decimal(zone.fee_per_km) * billable_km
    else:
        fee = _as_decimal(zone.delivery_fee)

    if (
        zone.free_delivery_above is not None
        and order_subtotal is not None
        and _as_decimal(order_subtotal) >= _as_decimal(zone.free_delivery_above)
    ):
        fee = Decimal("0")

    return round_money(fee)
