import logging
import threading
from decimal import Decimal

import pytest

from delivery_zones.models.domain import Area, DeliveryZone, FeeStructure
from delivery_zones.services.catalog import AreaNotFound, CoverageCatalog, build_area
from delivery_zones.services.fees import InvalidZoneConfig
from delivery_zones.services.geometry import GeometryError, ring_from_geojson


def _square(min_lng: float, min_lat: float, size: float = 0.04):
    return ring_from_geojson(
        [
            [min_lng, min_lat + size],
            [min_lng + size, min_lat + size],
            [min_lng + size, min_lat],
            [min_lng, min_lat],
            [min_lng, min_lat + size],
        ]
    )


def _zone(area_id: str, **overrides) -> DeliveryZone:
    values = dict(
        id=f"dz-{area_id}",
        area_id=area_id,
        fee_structure=FeeStructure.FLAT,
        delivery_fee=Decimal("99"),
        min_order_amount=Decimal("299"),
        estimated_time="25-35 min",
    )
    values.update(overrides)
    return DeliveryZone(**values)


@pytest.fixture
def catalog() -> CoverageCatalog:
    catalog = CoverageCatalog()
    catalog.upsert_area(build_area("gulberg", "Gulberg", "LAHORE", _square(74.32, 31.50)))
    catalog.upsert_area(build_area("dha", "DHA Phase 5", "LAHORE", _square(74.3846, 31.4497)))
    catalog.upsert_area(build_area("bahria", "Bahria Town", "LAHORE", _square(74.1533, 31.3367), is_active=False))
    catalog.upsert_zone(_zone("gulberg"))
    return catalog


def test_build_area_derives_center_from_vertices() -> None:
    area = build_area("gulberg", "Gulberg", "LAHORE", _square(74.32, 31.50))

    assert area.center.lng == pytest.approx(74.336)
    assert area.center.lat == pytest.approx(31.524)


def test_build_area_rejects_invalid_polygon() -> None:
    with pytest.raises(GeometryError):
        build_area("broken", "Broken", "LAHORE", _square(74.32, 31.50)[:-1])


def test_list_active_areas_keeps_insertion_order(catalog: CoverageCatalog) -> None:
    assert [area.id for area in catalog.list_active_areas()] == ["gulberg", "dha"]
    assert [area.id for area in catalog.list_areas()] == ["gulberg", "dha", "bahria"]


def test_upsert_area_replaces_in_place(catalog: CoverageCatalog) -> None:
    moved = build_area("gulberg", "Gulberg Main", "LAHORE", _square(74.30, 31.52))

    stored = catalog.upsert_area(moved)

    assert [area.id for area in catalog.list_areas()] == ["gulberg", "dha", "bahria"]
    assert catalog.get_area("gulberg").name == "Gulberg Main"
    assert stored.center.lng == pytest.approx(74.316)
    assert catalog.zone_for_area("gulberg") is not None


def test_upsert_area_recomputes_stale_center(catalog: CoverageCatalog) -> None:
    area = catalog.get_area("dha")
    stale = Area(
        id=area.id, name=area.name, city=area.city, polygon=area.polygon, center=area.polygon[0], is_active=True
    )

    stored = catalog.upsert_area(stale)

    assert stored.center == area.center


def test_rejected_area_leaves_catalog_untouched(catalog: CoverageCatalog) -> None:
    version = catalog.version
    broken = Area(
        id="broken",
        name="Broken",
        city="LAHORE",
        polygon=_square(74.32, 31.50)[:-1],
        center=_square(74.32, 31.50)[0],
    )

    with pytest.raises(GeometryError):
        catalog.upsert_area(broken)

    assert catalog.version == version
    assert catalog.get_area("broken") is None


def test_set_area_active(catalog: CoverageCatalog) -> None:
    catalog.set_area_active("bahria", True)
    catalog.set_area_active("gulberg", False)

    assert [area.id for area in catalog.list_active_areas()] == ["dha", "bahria"]
    with pytest.raises(AreaNotFound):
        catalog.set_area_active("missing", True)


def test_delete_area_cascades_to_zone(catalog: CoverageCatalog) -> None:
    catalog.delete_area("gulberg")

    assert catalog.get_area("gulberg") is None
    assert catalog.zone_for_area("gulberg") is None
    with pytest.raises(AreaNotFound):
        catalog.delete_area("gulberg")


def test_upsert_zone_requires_existing_area(catalog: CoverageCatalog) -> None:
    with pytest.raises(AreaNotFound):
        catalog.upsert_zone(_zone("missing"))


def test_upsert_zone_rejects_invalid_pricing(catalog: CoverageCatalog) -> None:
    zone = _zone("dha", fee_structure=FeeStructure.DISTANCE, fee_per_km=None, max_distance_km=None)

    with pytest.raises(InvalidZoneConfig):
        catalog.upsert_zone(zone)

    assert catalog.zone_for_area("dha") is None


def test_upsert_zone_keeps_one_zone_per_area(catalog: CoverageCatalog) -> None:
    catalog.upsert_zone(_zone("gulberg", id="dz-new", delivery_fee=Decimal("149")))

    zone = catalog.zone_for_area("gulberg")
    assert zone.id == "dz-new"
    assert len(catalog.snapshot().zones) == 1


def test_snapshot_is_not_affected_by_later_writes(catalog: CoverageCatalog) -> None:
    before = catalog.snapshot()

    catalog.delete_area("gulberg")

    assert before.get_area("gulberg") is not None
    assert before.zone_for_area("gulberg") is not None
    assert catalog.snapshot().version == before.version + 1


def test_replace_all_drops_zones_without_area() -> None:
    catalog = CoverageCatalog()
    area = build_area("gulberg", "Gulberg", "LAHORE", _square(74.32, 31.50))

    catalog.replace_all([area], [_zone("gulberg"), _zone("ghost")])

    assert catalog.zone_for_area("gulberg") is not None
    assert catalog.zone_for_area("ghost") is None
    assert catalog.version == 1


def test_find_overlaps_reports_shared_surface(catalog: CoverageCatalog, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        catalog.upsert_area(build_area("garden", "Garden Town", "LAHORE", _square(74.34, 31.48)))

    overlaps = catalog.find_overlaps()

    assert [(o.first_area_id, o.second_area_id) for o in overlaps] == [("gulberg", "garden")]
    # 0.02 x 0.02 degrees
    assert overlaps[0].overlap_km2 == pytest.approx(0.0004 * 111 * 111)
    assert "overlaps area 'gulberg'" in caplog.text


def test_concurrent_readers_see_consistent_snapshots(catalog: CoverageCatalog) -> None:
    errors: list[str] = []
    stop = threading.Event()

    def reader() -> None:
        while not stop.is_set():
            snapshot = catalog.snapshot()
            for area in snapshot.list_active_areas():
                if snapshot.get_area(area.id) is None:
                    errors.append(area.id)

    def writer() -> None:
        for index in range(200):
            catalog.set_area_active("bahria", index % 2 == 0)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in readers:
        thread.start()
    writer()
    stop.set()
    for thread in readers:
        thread.join()

    assert errors == []
    assert catalog.version >= 200


def test_zone_with_nan_distance_is_rejected(catalog: CoverageCatalog) -> None:
    version = catalog.version
    zone = DeliveryZone(
        id="dz-nan",
        area_id="gulberg",
        fee_structure=FeeStructure.DISTANCE,
        fee_per_km=Decimal("10"),
        max_distance_km=float("nan"),
    )

    with pytest.raises(InvalidZoneConfig):
        catalog.upsert_zone(zone)

    assert catalog.version == version
