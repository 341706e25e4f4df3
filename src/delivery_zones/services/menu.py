"""Area-scoped menu visibility."""

from __future__ import annotations

from typing import Iterable

from ..models.domain import MenuItem


def is_visible_in_area(item: MenuItem, area_id: str) -> bool:
    if not item.is_available:
        return False
    return not item.available_area_ids or area_id in item.available_area_ids


def filter_for_area(items: Iterable[MenuItem], area_id: str) -> list[MenuItem]:
    """Items available in ``area_id``, keeping their input order."""

    return [item for item in items if is_visible_in_area(item, area_id)]
