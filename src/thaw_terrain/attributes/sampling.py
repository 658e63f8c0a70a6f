"""Exact-location sampling of elevation, slope and aspect at a point."""

import math

from thaw_terrain.attributes.records import AttributeRecord, Point, PointStatus
from thaw_terrain.data.terrain_features import TerrainLayers


def sample_point(point: Point, layers: TerrainLayers) -> AttributeRecord:
    """Look up elevation, slope and aspect in the cell containing the point.

    A point with a missing or non-finite coordinate is marked
    MALFORMED_COORDINATE, and a point where all three lookups are missing is
    marked OUT_OF_COVERAGE. Individual missing values stay NaN.
    """
    record = AttributeRecord(point=point)
    if not point.has_valid_coordinates:
        return record.with_values(status=PointStatus.MALFORMED_COORDINATE)

    elevation = layers.elevation.value_at(point.x, point.y)
    slope = layers.slope.value_at(point.x, point.y)
    aspect = layers.aspect.value_at(point.x, point.y)

    if all(math.isnan(v) for v in (elevation, slope, aspect)):
        return record.with_values(status=PointStatus.OUT_OF_COVERAGE)

    return record.with_values(elevation=elevation, slope=slope, aspect=aspect)
