"""Shared fixtures: small synthetic DEMs on a 2 m grid."""

import numpy as np
import pytest
import rasterio as rio
from rasterio.transform import from_origin

from thaw_terrain.data.raster_access import RasterLayer
from thaw_terrain.data.terrain_features import TerrainLayers

CELL = 2.0
ORIGIN_X = 500_000.0
ORIGIN_Y = 7_000_000.0


def make_layer(array, cell=CELL, name="elevation"):
    """Wrap an array as a north-up layer with its top-left at (ORIGIN_X, ORIGIN_Y)."""
    transform = from_origin(ORIGIN_X, ORIGIN_Y, cell, cell)
    return RasterLayer(np.asarray(array, dtype=np.float64), transform, crs=None, name=name)


def cell_center(row, col, cell=CELL):
    """Coordinate of the centre of cell (row, col)."""
    return ORIGIN_X + (col + 0.5) * cell, ORIGIN_Y - (row + 0.5) * cell


def write_geotiff(path, array, cell=CELL, crs="EPSG:3413", nodata=-9999.0):
    array = np.asarray(array, dtype=np.float32)
    with rio.open(
        path,
        "w",
        driver="GTiff",
        height=array.shape[0],
        width=array.shape[1],
        count=1,
        dtype="float32",
        crs=crs,
        transform=from_origin(ORIGIN_X, ORIGIN_Y, cell, cell),
        nodata=nodata,
    ) as dst:
        dst.write(array, 1)
    return path


@pytest.fixture
def flat_dem():
    return make_layer(np.full((40, 40), 100.0))


@pytest.fixture
def east_ramp_dem():
    """Elevation rises 1 m per 2 m cell towards the east (slope atan(0.5))."""
    cols = np.arange(40, dtype=np.float64)
    return make_layer(np.tile(100.0 + cols, (40, 1)))


@pytest.fixture
def ramp_layers(east_ramp_dem):
    return TerrainLayers.from_dem(east_ramp_dem, verbose=False)
