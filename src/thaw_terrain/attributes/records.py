"""Immutable value types flowing through the topographic attribute pipeline."""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict


class PointStatus(str, Enum):
    """Processing outcome of a single point."""

    OK = "ok"
    MALFORMED_COORDINATE = "malformed_coordinate"
    OUT_OF_COVERAGE = "out_of_coverage"


@dataclass(frozen=True)
class Point:
    """A point observation.

    Attributes:
        point_id: Stable identifier of the observation.
        longitude: Geographic longitude in degrees.
        latitude: Geographic latitude in degrees.
        x: Easting in the DEM coordinate system.
        y: Northing in the DEM coordinate system.
    """

    point_id: Any
    longitude: float
    latitude: float
    x: float
    y: float

    @property
    def has_valid_coordinates(self) -> bool:
        return all(
            v is not None and math.isfinite(v)
            for v in (self.longitude, self.latitude, self.x, self.y)
        )


@dataclass(frozen=True)
class AttributeRecord:
    """Per-point attributes, filled stage by stage.

    Every stage returns a new record via ``with_values``; NaN marks a value
    that is missing rather than zero.
    """

    point: Point
    status: PointStatus = PointStatus.OK
    elevation: float = math.nan
    slope: float = math.nan
    aspect: float = math.nan
    mean_elev: float = math.nan
    relative_elev: float = math.nan
    solar_radiation_index: float = math.nan

    @property
    def is_excluded(self) -> bool:
        return self.status is not PointStatus.OK

    @property
    def is_complete(self) -> bool:
        values = (
            self.elevation,
            self.slope,
            self.mean_elev,
            self.relative_elev,
            self.solar_radiation_index,
        )
        return not self.is_excluded and all(math.isfinite(v) for v in values)

    def with_values(self, **values) -> "AttributeRecord":
        return replace(self, **values)

    def as_row(self, mean_column: str = "mean_elev_100m") -> Dict[str, float]:
        return {
            "elevation": self.elevation,
            "slope": self.slope,
            "aspect": self.aspect,
            mean_column: self.mean_elev,
            "relative_elev": self.relative_elev,
            "solar_radiation_index": self.solar_radiation_index,
        }


@dataclass(frozen=True)
class SolarGeometry:
    """Solar position for a single calendar instant, shared by every point.

    The defaults are the summer solstice at local solar noon; the azimuth was
    derived for one reference location (the geographic centre of Alaska) and
    is applied unchanged to all points. This is a snapshot approximation: the
    true azimuth varies with each point's own longitude and latitude.
    """

    declination_deg: float = 23.44
    azimuth_deg: float = 136.52
    reference_latitude: float = 64.73
    reference_longitude: float = -152.47

    @property
    def declination_rad(self) -> float:
        return math.radians(self.declination_deg)

    @property
    def azimuth_rad(self) -> float:
        return math.radians(self.azimuth_deg)
