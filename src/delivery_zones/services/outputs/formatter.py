"""Utilities to turn resolution results into API response models."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import MenuItem, ResolutionReason, ResolutionResult
from ...schemas.delivery import (
    AreaSummary,
    DeliveryCheckResponse,
    DeliveryTerms,
    MenuByLocationResponse,
    MenuItemModel,
)

REASON_MESSAGES: dict[ResolutionReason, str] = {
    ResolutionReason.OUT_OF_REGION: "This location is outside our service region",
    ResolutionReason.NO_COVERAGE: "Sorry, we do not deliver to this location yet",
    ResolutionReason.ZONE_NOT_CONFIGURED: "Area exists but delivery is not active yet",
    ResolutionReason.RESOLVED: "Delivery available",
}


def _check_fields(result: ResolutionResult) -> dict:
    delivery = None
    if result.zone is not None and result.fee is not None:
        delivery = DeliveryTerms(
            fee=float(result.fee),
            min_order=float(result.zone.min_order_amount),
            estimated_time=result.zone.estimated_time,
            fee_structure=result.zone.fee_structure.value,
            free_delivery_above=float(result.zone.free_delivery_above)
            if result.zone.free_delivery_above is not None
            else None,
        )
    return {
        "in_service": result.in_service,
        "deliverable": result.deliverable,
        "reason": result.reason.value,
        "message": REASON_MESSAGES[result.reason],
        "area": AreaSummary.from_domain(result.area) if result.area is not None else None,
        "delivery": delivery,
        "distance_km": round(result.distance_km, 2) if result.distance_km is not None else None,
        "beyond_max_distance": result.beyond_max_distance,
    }


def resolution_to_response(result: ResolutionResult) -> DeliveryCheckResponse:
    return DeliveryCheckResponse(**_check_fields(result))


def resolution_to_menu_response(result: ResolutionResult, menu: Sequence[MenuItem]) -> MenuByLocationResponse:
    return MenuByLocationResponse(
        **_check_fields(result),
        menu=[MenuItemModel.from_domain(item) for item in menu],
    )
