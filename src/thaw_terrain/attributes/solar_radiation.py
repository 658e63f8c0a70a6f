"""Solar radiation index (SRI) at local solar noon for a fixed calendar instant.

    solar_zenith = |latitude - declination|
    SRI = cos(zenith) * cos(slope) + sin(zenith) * sin(slope) * cos(aspect - azimuth)

SRI is the cosine of the angle between the surface normal and the sun's
rays: 1 for a surface facing the sun, negative when facing away.
"""

import numpy as np

from thaw_terrain.attributes.records import AttributeRecord, SolarGeometry


def solar_zenith(latitude_deg, declination_deg):
    """Solar zenith angle in radians at local solar noon."""
    return np.abs(np.radians(latitude_deg) - np.radians(declination_deg))


def solar_radiation_index(slope_deg, aspect_deg, latitude_deg, solar: SolarGeometry):
    """Compute the SRI for scalars or arrays of slope, aspect and latitude.

    Aspect is undefined (NaN) on flat cells; where the slope is exactly zero
    the aspect term vanishes, so a NaN aspect is replaced by 0 there. A NaN
    aspect on a sloped cell yields NaN.

    Args:
        slope_deg: Slope in degrees.
        aspect_deg: Aspect in degrees clockwise from north.
        latitude_deg: Latitude of the point in degrees.
        solar: Solar declination and azimuth for the chosen instant.

    Returns:
        SRI in [-1, 1] (float for scalar input, array otherwise).
    """
    slope_deg = np.asarray(slope_deg, dtype=np.float64)
    aspect_deg = np.asarray(aspect_deg, dtype=np.float64)
    aspect_deg = np.where(np.isnan(aspect_deg) & (slope_deg == 0), 0.0, aspect_deg)

    slope_rad = np.radians(slope_deg)
    aspect_rad = np.radians(aspect_deg)
    zenith = solar_zenith(latitude_deg, solar.declination_deg)

    sri = np.cos(zenith) * np.cos(slope_rad) + np.sin(zenith) * np.sin(
        slope_rad
    ) * np.cos(aspect_rad - solar.azimuth_rad)
    sri = np.clip(sri, -1.0, 1.0)

    return float(sri) if sri.ndim == 0 else sri


def add_solar_radiation_index(
    record: AttributeRecord, solar: SolarGeometry
) -> AttributeRecord:
    """Attach the SRI to a record; excluded records are returned unchanged."""
    if record.is_excluded:
        return record
    sri = solar_radiation_index(
        record.slope, record.aspect, record.point.latitude, solar
    )
    return record.with_values(solar_radiation_index=sri)
