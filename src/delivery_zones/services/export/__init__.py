"""Export services."""

from .geojson import (
    area_to_feature,
    export_coverage_geojson,
)

__all__ = [
    "area_to_feature",
    "export_coverage_geojson",
]
