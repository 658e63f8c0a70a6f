"""
Script to extract topographic variables at each thaw database point.

For every point this samples elevation, slope and aspect from the DEM,
computes the mean elevation within a neighbourhood radius and the resulting
relative elevation, and evaluates the solar radiation index (SRI). The
enriched table is written as CSV together with a JSON run report.

Usage:
    python scripts/extract_topographic_variables.py datasets.points_file=data/raw/points.csv
"""

import hydra
from omegaconf import DictConfig

from thaw_terrain.attributes.pipeline import run_pipeline
from thaw_terrain.attributes.records import SolarGeometry
from thaw_terrain.data.points_io import (
    attributes_to_frame,
    build_points,
    load_points,
    write_attribute_table,
    write_report,
)
from thaw_terrain.data.raster_access import load_raster
from thaw_terrain.data.terrain_features import TerrainLayers
from thaw_terrain.paths import CONFIGS_DIR, resolve_path


@hydra.main(version_base=None, config_path=str(CONFIGS_DIR), config_name="config")
def main(cfg: DictConfig):
    dem_path = resolve_path(cfg.datasets.dem_file)
    points_path = resolve_path(cfg.datasets.points_file)
    output_csv = resolve_path(cfg.datasets.output_csv)
    report_file = resolve_path(cfg.datasets.report_file)
    verbose = bool(cfg.processing.verbose)

    print("=" * 60)
    print("Topographic Variable Extraction")
    print("=" * 60)

    dem = load_raster(dem_path, band=int(cfg.dem.band), verbose=verbose)
    layers = TerrainLayers.from_dem(dem, verbose=verbose)

    points_gdf = load_points(
        points_path,
        lon_column=cfg.points.lon_column,
        lat_column=cfg.points.lat_column,
        csv_crs=cfg.points.crs,
        verbose=verbose,
    )
    points = build_points(
        points_gdf,
        target_crs=dem.crs,
        id_column=cfg.points.id_column,
        verbose=verbose,
    )

    solar = SolarGeometry(
        declination_deg=float(cfg.solar.declination_deg),
        azimuth_deg=float(cfg.solar.azimuth_deg),
        reference_latitude=float(cfg.solar.reference_latitude),
        reference_longitude=float(cfg.solar.reference_longitude),
    )
    radius = float(cfg.topography.neighborhood_radius)

    records, report = run_pipeline(
        points,
        layers,
        solar=solar,
        radius=radius,
        max_pixels=int(cfg.topography.max_pixels),
        n_jobs=int(cfg.processing.n_jobs),
        chunk_size=int(cfg.processing.chunk_size),
        verbose=verbose,
    )

    table = attributes_to_frame(
        points_gdf, records, radius=radius, id_column=cfg.points.id_column
    )
    write_attribute_table(table, output_csv, verbose=verbose)
    write_report(report, report_file, verbose=verbose)


if __name__ == "__main__":
    main()
