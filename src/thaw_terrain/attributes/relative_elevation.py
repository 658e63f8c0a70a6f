"""Relative elevation: point elevation minus mean elevation of its neighbourhood.

Positive values indicate the point sits above its surroundings (slope top,
ridge); negative values indicate a local depression.
"""

import math
from typing import Optional

from thaw_terrain.attributes.records import AttributeRecord
from thaw_terrain.data.raster_access import DiskWindow, RasterLayer

DEFAULT_RADIUS = 100.0


def relative_elevation(elevation: float, mean_elev: float) -> float:
    if math.isnan(elevation) or math.isnan(mean_elev):
        return math.nan
    return elevation - mean_elev


def add_relative_elevation(
    record: AttributeRecord,
    elevation_layer: RasterLayer,
    radius: float = DEFAULT_RADIUS,
    max_pixels: int = 1_000_000,
    window: Optional[DiskWindow] = None,
) -> AttributeRecord:
    """Attach the disk mean elevation and the relative elevation to a record.

    Excluded records are returned unchanged.

    Args:
        record: Record carrying the sampled elevation.
        elevation_layer: Elevation raster.
        radius: Neighbourhood radius in raster distance units.
        max_pixels: Cap on the cells visited for one disk.
        window: Precomputed disk window, shared across points.
    """
    if record.is_excluded:
        return record

    point = record.point
    mean_elev = elevation_layer.mean_in_disk(
        point.x, point.y, radius, max_pixels=max_pixels, window=window
    )
    return record.with_values(
        mean_elev=mean_elev,
        relative_elev=relative_elevation(record.elevation, mean_elev),
    )
