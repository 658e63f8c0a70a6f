"""Tests for Horn slope/aspect and the TerrainLayers bundle."""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from rasterio.transform import Affine

from conftest import CELL, make_layer
from thaw_terrain.data.raster_access import RasterLayer
from thaw_terrain.data.terrain_features import (
    TerrainLayers,
    compute_aspect,
    compute_slope,
    compute_terrain_products,
)

NORTH_UP = (CELL, -CELL)


def interior(a):
    return a[1:-1, 1:-1]


class TestSlope:
    def test_flat_surface_has_zero_slope(self):
        slope = compute_slope(np.full((6, 6), 42.0), *NORTH_UP)
        assert_allclose(slope, 0.0)

    def test_east_ramp(self):
        # 1 m rise per 2 m cell -> gradient 0.5
        dem = np.tile(np.arange(8, dtype=np.float64), (8, 1))
        slope = compute_slope(dem, *NORTH_UP)
        assert_allclose(interior(slope), np.degrees(np.arctan(0.5)))

    def test_forty_five_degrees(self):
        dem = np.tile(np.arange(8, dtype=np.float64) * CELL, (8, 1))
        slope = compute_slope(dem, *NORTH_UP)
        assert_allclose(interior(slope), 45.0)

    def test_edges_use_one_sided_differences(self):
        dem = np.tile(np.arange(8, dtype=np.float64), (8, 1))
        slope = compute_slope(dem, *NORTH_UP)
        # Replicated edge halves the central difference
        assert_allclose(slope[4, 0], np.degrees(np.arctan(0.25)))
        assert np.all(np.isfinite(slope))

    def test_nan_spreads_to_neighbourhood(self):
        dem = np.full((7, 7), 10.0)
        dem[3, 3] = np.nan
        slope = compute_slope(dem, *NORTH_UP)
        assert np.all(np.isnan(slope[2:5, 2:5]))
        assert np.isfinite(slope[0, 0])
        assert np.isfinite(slope[3, 6])

    def test_nodata_cell_itself_has_no_slope(self):
        dem = np.full((7, 7), 10.0)
        dem[3, 3] = np.nan
        slope = compute_slope(dem, *NORTH_UP)
        aspect = compute_aspect(dem, *NORTH_UP)
        assert np.isnan(slope[3, 3])
        assert np.isnan(aspect[3, 3])


class TestAspect:
    def test_flat_surface_has_undefined_aspect(self):
        aspect = compute_aspect(np.full((5, 5), 100.0), *NORTH_UP)
        assert np.all(np.isnan(aspect))

    def test_rising_east_faces_west(self):
        dem = np.tile(np.arange(6, dtype=np.float64), (6, 1))
        aspect = compute_aspect(dem, *NORTH_UP)
        assert_allclose(interior(aspect), 270.0)

    def test_rising_west_faces_east(self):
        dem = np.tile(np.arange(6, dtype=np.float64)[::-1], (6, 1))
        aspect = compute_aspect(dem, *NORTH_UP)
        assert_allclose(interior(aspect), 90.0)

    def test_rising_north_faces_south(self):
        # Row 0 is the northern edge of a north-up raster
        dem = np.tile(np.arange(6, dtype=np.float64)[::-1, None], (1, 6))
        aspect = compute_aspect(dem, *NORTH_UP)
        assert_allclose(interior(aspect), 180.0)

    def test_rising_south_faces_north(self):
        dem = np.tile(np.arange(6, dtype=np.float64)[:, None], (1, 6))
        aspect = compute_aspect(dem, *NORTH_UP)
        assert_allclose(interior(aspect), 0.0)

    def test_rising_north_east_faces_south_west(self):
        rows, cols = np.mgrid[0:6, 0:6]
        dem = cols.astype(np.float64) - rows
        aspect = compute_aspect(dem, *NORTH_UP)
        assert_allclose(interior(aspect), 225.0)

    def test_south_up_raster(self):
        # Positive row step: row 0 is the southern edge
        dem = np.tile(np.arange(6, dtype=np.float64)[:, None], (1, 6))
        aspect = compute_aspect(dem, CELL, CELL)
        assert_allclose(interior(aspect), 180.0)

    def test_range(self):
        rng = np.random.default_rng(0)
        aspect = compute_aspect(rng.normal(size=(20, 20)), *NORTH_UP)
        valid = aspect[np.isfinite(aspect)]
        assert np.all((valid >= 0) & (valid < 360))


class TestTerrainProducts:
    def test_products_match_individual_functions(self):
        rng = np.random.default_rng(1)
        dem = rng.normal(100.0, 5.0, size=(12, 12))
        products = compute_terrain_products(dem, *NORTH_UP)
        assert set(products) == {"elevation", "slope", "aspect"}
        assert_allclose(products["elevation"], dem)
        assert_allclose(products["slope"], compute_slope(dem, *NORTH_UP))
        assert_allclose(products["aspect"], compute_aspect(dem, *NORTH_UP))


class TestTerrainLayers:
    def test_layers_share_grid(self, east_ramp_dem):
        layers = TerrainLayers.from_dem(east_ramp_dem, verbose=False)
        assert layers.elevation is east_ramp_dem
        assert layers.slope.transform == east_ramp_dem.transform
        assert layers.aspect.shape == east_ramp_dem.shape
        assert layers.slope.name == "slope"
        assert layers.aspect.name == "aspect"

    def test_flat_dem(self, flat_dem):
        layers = TerrainLayers.from_dem(flat_dem, verbose=False)
        assert_allclose(layers.slope.array, 0.0)
        assert np.all(np.isnan(layers.aspect.array))

    def test_rotated_raster_is_rejected(self):
        dem = RasterLayer(np.zeros((4, 4)), Affine(2.0, 0.5, 0.0, 0.0, -2.0, 0.0))
        with pytest.raises(ValueError, match="Rotated"):
            TerrainLayers.from_dem(dem, verbose=False)

    def test_verbose_summary(self, east_ramp_dem, capsys):
        TerrainLayers.from_dem(east_ramp_dem, verbose=True)
        out = capsys.readouterr().out
        assert "Computed terrain products" in out
        assert "Flat cells" in out

    def test_flat_count_skips_nodata(self, capsys):
        dem = np.full((7, 7), 10.0)
        dem[3, 3] = np.nan
        TerrainLayers.from_dem(make_layer(dem), verbose=True)
        out = capsys.readouterr().out
        assert "Flat cells (undefined aspect): 40" in out

    def test_uses_cell_size(self):
        dem = np.tile(np.arange(8, dtype=np.float64), (8, 1))
        layers = TerrainLayers.from_dem(make_layer(dem, cell=1.0), verbose=False)
        assert_allclose(interior(layers.slope.array), 45.0)
