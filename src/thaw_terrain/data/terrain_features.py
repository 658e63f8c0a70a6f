"""Terrain derivatives (slope, aspect) computed once over the full DEM extent."""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
from scipy.ndimage import correlate, maximum_filter

from thaw_terrain.data.raster_access import RasterLayer

# Horn (1981) weights for d/dcol and d/drow, divided by 8 cells
HORN_KERNEL_COL = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64) / 8.0
HORN_KERNEL_ROW = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64) / 8.0


def compute_gradient(dem, step_x, step_y) -> Tuple[np.ndarray, np.ndarray]:
    """Compute the surface gradient with Horn's 3x3 finite differences.

    Args:
        dem: 2D elevation array (NaN for nodata).
        step_x: Signed change in x per column (transform ``a``).
        step_y: Signed change in y per row (transform ``e``, negative for
            north-up rasters).

    Returns:
        Tuple (dz_dx, dz_dy) of elevation change per distance unit towards
        east and north. Any NaN inside the 3x3 window yields NaN.
    """
    dem = np.asarray(dem, dtype=np.float64)

    # Edge cells reuse their nearest neighbour, i.e. one-sided differences
    dz_dcol = correlate(dem, HORN_KERNEL_COL, mode="nearest")
    dz_drow = correlate(dem, HORN_KERNEL_ROW, mode="nearest")

    # Horn weights skip the centre cell, so nodata must be masked explicitly
    invalid = maximum_filter(np.isnan(dem).astype(np.uint8), size=3, mode="nearest") > 0
    dz_dcol[invalid] = np.nan
    dz_drow[invalid] = np.nan

    dz_dx = dz_dcol / step_x
    dz_dy = dz_drow / step_y
    return dz_dx, dz_dy


def _slope_from_gradient(dz_dx, dz_dy):
    # Slope in degrees: atan(sqrt(dx^2 + dy^2))
    return np.degrees(np.arctan(np.hypot(dz_dx, dz_dy)))


def _aspect_from_gradient(dz_dx, dz_dy):
    # Descent vector is -grad(z); arctan2(east, north) gives a bearing
    aspect = np.mod(np.degrees(np.arctan2(-dz_dx, -dz_dy)) + 360.0, 360.0)
    flat = (dz_dx == 0) & (dz_dy == 0)
    return np.where(flat, np.nan, aspect)


def compute_slope(dem, step_x, step_y):
    """Compute slope in degrees from horizontal."""
    return _slope_from_gradient(*compute_gradient(dem, step_x, step_y))


def compute_aspect(dem, step_x, step_y):
    """Compute aspect as the compass bearing of steepest descent.

    Degrees clockwise from north in [0, 360). Cells with an exactly zero
    gradient (flat) have no direction and are set to NaN.
    """
    return _aspect_from_gradient(*compute_gradient(dem, step_x, step_y))


def compute_terrain_products(dem, step_x, step_y) -> Dict[str, np.ndarray]:
    """Return elevation, slope and aspect arrays for a DEM.

    Args:
        dem: 2D elevation array (NaN for nodata).
        step_x: Signed change in x per column.
        step_y: Signed change in y per row.

    Returns:
        Dict with keys 'elevation', 'slope', 'aspect'.
    """
    dem = np.asarray(dem, dtype=np.float64)
    dz_dx, dz_dy = compute_gradient(dem, step_x, step_y)
    return {
        "elevation": dem,
        "slope": _slope_from_gradient(dz_dx, dz_dy),
        "aspect": _aspect_from_gradient(dz_dx, dz_dy),
    }


@dataclass(frozen=True)
class TerrainLayers:
    """Elevation and its derived slope/aspect layers on one shared grid."""

    elevation: RasterLayer
    slope: RasterLayer
    aspect: RasterLayer

    @classmethod
    def from_dem(cls, dem: RasterLayer, verbose: bool = True) -> "TerrainLayers":
        if dem.transform.b != 0 or dem.transform.d != 0:
            raise ValueError("Rotated rasters are not supported")

        products = compute_terrain_products(
            dem.array, dem.transform.a, dem.transform.e
        )
        layers = cls(
            elevation=dem,
            slope=dem.derive(products["slope"], "slope"),
            aspect=dem.derive(products["aspect"], "aspect"),
        )

        if verbose:
            slope = layers.slope.array
            n_flat = int(np.sum(slope == 0))
            print("Computed terrain products (elevation, slope, aspect)")
            if np.isfinite(slope).any():
                print(
                    f"  -> Slope range: {np.nanmin(slope):.2f} to "
                    f"{np.nanmax(slope):.2f} degrees"
                )
            print(f"  -> Flat cells (undefined aspect): {n_flat:,}")

        return layers
