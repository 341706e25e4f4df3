from decimal import Decimal

from delivery_zones.models.domain import MenuItem
from delivery_zones.services.menu import filter_for_area


def _item(item_id: str, areas: tuple[str, ...] = (), available: bool = True) -> MenuItem:
    return MenuItem(
        id=item_id,
        name=item_id.title(),
        price=Decimal("299"),
        is_available=available,
        available_area_ids=frozenset(areas),
    )


MENU = [
    _item("halwa-puri"),
    _item("nihari", ("gulberg", "dha")),
    _item("nashta", ("johar-town",)),
    _item("karahi", available=False),
    _item("biryani"),
]


def test_global_items_appear_in_every_area() -> None:
    for area_id in ("gulberg", "dha", "johar-town", "unknown"):
        ids = [item.id for item in filter_for_area(MENU, area_id)]
        assert "halwa-puri" in ids
        assert "biryani" in ids


def test_scoped_items_only_appear_in_their_areas() -> None:
    assert [item.id for item in filter_for_area(MENU, "gulberg")] == ["halwa-puri", "nihari", "biryani"]
    assert [item.id for item in filter_for_area(MENU, "johar-town")] == ["halwa-puri", "nashta", "biryani"]


def test_unavailable_items_are_dropped() -> None:
    assert all(item.id != "karahi" for item in filter_for_area(MENU, "gulberg"))


def test_filter_accepts_any_iterable() -> None:
    assert len(filter_for_area(iter(MENU), "dha")) == 3
    assert filter_for_area([], "dha") == []
