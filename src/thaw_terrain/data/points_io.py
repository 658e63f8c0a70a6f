"""Input/output boundary: point collections in, attribute table and report out."""

import json
from pathlib import Path
from typing import List, Optional, Sequence

import geopandas as gpd
import numpy as np
import pandas as pd

from thaw_terrain.attributes.records import AttributeRecord, Point

GEOGRAPHIC_CRS = "EPSG:4326"


def mean_elev_column(radius: float) -> str:
    """Output column name for the neighbourhood mean, e.g. 'mean_elev_100m'."""
    return f"mean_elev_{radius:g}m"


def load_points(
    points_path: Path,
    lon_column: str = "longitude",
    lat_column: str = "latitude",
    csv_crs: str = GEOGRAPHIC_CRS,
    verbose: bool = True,
) -> gpd.GeoDataFrame:
    """Load a point collection.

    Any vector format geopandas reads is accepted (shapefile, GeoPackage,
    GeoJSON). A ``.csv`` file is read with pandas and its longitude/latitude
    columns become point geometries in ``csv_crs``.

    Args:
        points_path: Path to the points file.
        lon_column: Longitude column name (CSV input only).
        lat_column: Latitude column name (CSV input only).
        csv_crs: CRS of the CSV coordinates.
        verbose: Whether to print a summary.

    Returns:
        GeoDataFrame of points with a CRS set.
    """
    points_path = Path(points_path)
    if not points_path.exists():
        raise FileNotFoundError(f"Points file not found: {points_path}")

    if points_path.suffix.lower() == ".csv":
        df = pd.read_csv(points_path)
        missing = [c for c in (lon_column, lat_column) if c not in df.columns]
        if missing:
            raise ValueError(
                f"Coordinate column(s) {missing} not found in '{points_path.name}'. "
                f"Available columns: {list(df.columns)}"
            )
        lon = pd.to_numeric(df[lon_column], errors="coerce")
        lat = pd.to_numeric(df[lat_column], errors="coerce")
        gdf = gpd.GeoDataFrame(df, geometry=gpd.points_from_xy(lon, lat), crs=csv_crs)
    else:
        gdf = gpd.read_file(points_path)

    if gdf.crs is None:
        print(f"Warning: No CRS found for '{points_path.name}'. Assuming {GEOGRAPHIC_CRS}")
        gdf = gdf.set_crs(GEOGRAPHIC_CRS)

    if verbose:
        print(f"Loaded points from '{points_path}'")
        print(f"  -> Points: {len(gdf):,}")
        print(f"  -> CRS: {gdf.crs}")
        print(f"  -> Columns: {[c for c in gdf.columns if c != gdf.geometry.name]}")

    return gdf


def _point_coordinates(geoms: gpd.GeoSeries):
    """x and y arrays of point geometries, NaN for missing or empty ones."""
    xs = np.full(len(geoms), np.nan)
    ys = np.full(len(geoms), np.nan)
    for i, geom in enumerate(geoms):
        if geom is None or geom.is_empty:
            continue
        if geom.geom_type != "Point":
            raise ValueError(f"Expected Point geometries, found {geom.geom_type}")
        xs[i], ys[i] = geom.x, geom.y
    return xs, ys


def build_points(
    gdf: gpd.GeoDataFrame,
    target_crs=None,
    id_column: Optional[str] = None,
    verbose: bool = True,
) -> List[Point]:
    """Convert a point GeoDataFrame into Points.

    Longitude/latitude are always geographic degrees. The x/y sampling
    coordinates are in ``target_crs`` (the DEM CRS); when it differs from the
    points' CRS the geometries are reprojected with ``to_crs``.

    Args:
        gdf: Points with a CRS set.
        target_crs: CRS of the DEM, or None to sample in the points' CRS.
        id_column: Column holding the point identifier; the row index when None.
        verbose: Whether to print CRS handling.
    """
    if id_column is not None and id_column not in gdf.columns:
        raise ValueError(
            f"Id column '{id_column}' not found. Available columns: {list(gdf.columns)}"
        )
    ids = gdf[id_column].tolist() if id_column is not None else gdf.index.tolist()

    if gdf.crs is not None and gdf.crs.is_geographic:
        lon, lat = _point_coordinates(gdf.geometry)
    else:
        lon, lat = _point_coordinates(gdf.geometry.to_crs(GEOGRAPHIC_CRS))

    if target_crs is None or gdf.crs == target_crs:
        xs, ys = _point_coordinates(gdf.geometry)
    else:
        if verbose:
            print(f"Reprojecting points from {gdf.crs} to {target_crs}")
        xs, ys = _point_coordinates(gdf.geometry.to_crs(target_crs))

    return [
        Point(point_id=pid, longitude=lo, latitude=la, x=x, y=y)
        for pid, lo, la, x, y in zip(ids, lon, lat, xs, ys)
    ]


def attributes_to_frame(
    gdf: gpd.GeoDataFrame,
    records: Sequence[AttributeRecord],
    radius: float = 100.0,
    id_column: Optional[str] = None,
) -> pd.DataFrame:
    """Build the output table: original fields plus the derived attributes.

    Rows follow the order of ``gdf``; missing values stay NaN.
    """
    if len(records) != len(gdf):
        raise ValueError(
            f"Got {len(records)} records for {len(gdf)} points; lengths must match"
        )

    table = pd.DataFrame(gdf.drop(columns=gdf.geometry.name)).reset_index(drop=True)
    if id_column is None and "point_id" not in table.columns:
        table.insert(0, "point_id", [r.point.point_id for r in records])
    table["longitude"] = [r.point.longitude for r in records]
    table["latitude"] = [r.point.latitude for r in records]

    rows = pd.DataFrame(
        [r.as_row(mean_column=mean_elev_column(radius)) for r in records]
    )
    for column in rows.columns:
        table[column] = rows[column].astype(float).to_numpy()

    return table


def write_attribute_table(table: pd.DataFrame, out_path: Path, verbose: bool = True) -> None:
    """Write the attribute table as CSV; missing values become empty cells."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(out_path, index=False, na_rep="")
    if verbose:
        print(f"Saved {len(table):,} rows to '{out_path}'")


def write_report(report, out_path: Path, verbose: bool = True) -> None:
    """Write a RunReport as JSON."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)
    if verbose:
        print(f"Saved run report to '{out_path}'")
