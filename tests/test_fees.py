from decimal import Decimal

import pytest

from delivery_zones.models.domain import DeliveryZone, FeeStructure
from delivery_zones.services.fees import InvalidZoneConfig, compute_fee, round_money, validate_zone


def _flat_zone(**overrides) -> DeliveryZone:
    values = dict(
        id="dz-flat",
        area_id="gulberg",
        fee_structure=FeeStructure.FLAT,
        delivery_fee=Decimal("99"),
        min_order_amount=Decimal("299"),
        estimated_time="25-35 min",
    )
    values.update(overrides)
    return DeliveryZone(**values)


def _distance_zone(**overrides) -> DeliveryZone:
    values = dict(
        id="dz-distance",
        area_id="johar-town",
        fee_structure=FeeStructure.DISTANCE,
        base_fee=Decimal("50"),
        fee_per_km=Decimal("10"),
        max_distance_km=5.0,
    )
    values.update(overrides)
    return DeliveryZone(**values)


def test_flat_fee_ignores_distance() -> None:
    zone = _flat_zone()

    assert compute_fee(zone, Decimal("500")) == Decimal("99")
    assert compute_fee(zone, Decimal("500"), distance_km=42.0) == Decimal("99")


def test_distance_fee_is_monotonic_then_constant() -> None:
    zone = _distance_zone()
    distances = [step / 2 for step in range(0, 17)]

    fees = [compute_fee(zone, None, distance) for distance in distances]

    assert fees == sorted(fees)
    assert fees[0] == Decimal("50")
    assert compute_fee(zone, None, 5.0) == Decimal("100")
    assert all(fee == Decimal("100") for distance, fee in zip(distances, fees) if distance >= 5.0)


@pytest.mark.parametrize("zone", [_flat_zone(free_delivery_above=Decimal("1000")),
                                  _distance_zone(free_delivery_above=Decimal("1000"))])
def test_free_delivery_threshold_overrides_fee(zone: DeliveryZone) -> None:
    assert compute_fee(zone, Decimal("1000"), distance_km=3.0) == Decimal("0")
    assert compute_fee(zone, Decimal("2500.50"), distance_km=30.0) == Decimal("0")
    assert compute_fee(zone, Decimal("999.99"), distance_km=3.0) > 0


def test_free_delivery_needs_a_subtotal() -> None:
    zone = _flat_zone(free_delivery_above=Decimal("1000"))

    assert compute_fee(zone, None) == Decimal("99")


def test_fees_round_half_up() -> None:
    zone = _distance_zone(base_fee=Decimal("0"), fee_per_km=Decimal("2.5"), max_distance_km=10.0)

    assert compute_fee(zone, None, 1.0) == Decimal("3")
    assert compute_fee(zone, None, 1.8) == Decimal("5")


def test_round_money_with_minor_units() -> None:
    assert round_money(Decimal("10.005"), digits=2) == Decimal("10.01")
    assert round_money(12.5) == Decimal("13")


def test_distance_zone_requires_fee_per_km() -> None:
    with pytest.raises(InvalidZoneConfig):
        compute_fee(_distance_zone(fee_per_km=None), None, 1.0)


@pytest.mark.parametrize("max_distance", [None, 0.0, -1.0])
def test_distance_zone_requires_positive_max_distance(max_distance) -> None:
    with pytest.raises(InvalidZoneConfig):
        validate_zone(_distance_zone(max_distance_km=max_distance))


def test_distance_zone_requires_a_distance() -> None:
    with pytest.raises(InvalidZoneConfig):
        compute_fee(_distance_zone(), None)


def test_negative_amounts_are_rejected() -> None:
    with pytest.raises(InvalidZoneConfig):
        validate_zone(_flat_zone(delivery_fee=Decimal("-1")))
    with pytest.raises(InvalidZoneConfig):
        validate_zone(_flat_zone(min_order_amount=Decimal("-5")))


def test_negative_distance_is_rejected() -> None:
    with pytest.raises(ValueError):
        compute_fee(_distance_zone(), None, -0.5)


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_distance_km": float("nan")},
        {"max_distance_km": float("inf")},
        {"fee_per_km": Decimal("NaN")},
        {"base_fee": Decimal("Infinity")},
    ],
)
def test_non_finite_amounts_are_rejected(overrides) -> None:
    with pytest.raises(InvalidZoneConfig, match="finite"):
        validate_zone(_distance_zone(**overrides))


@pytest.mark.parametrize("distance", [float("nan"), float("inf")])
def test_non_finite_distance_is_rejected(distance) -> None:
    with pytest.raises(ValueError):
        compute_fee(_distance_zone(), None, distance)
