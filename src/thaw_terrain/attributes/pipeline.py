"""Pipeline driver: sample -> relative elevation -> SRI for every point."""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from joblib import Parallel, delayed
from tqdm import tqdm

from thaw_terrain.attributes.records import (
    AttributeRecord,
    Point,
    PointStatus,
    SolarGeometry,
)
from thaw_terrain.attributes.relative_elevation import (
    DEFAULT_RADIUS,
    add_relative_elevation,
)
from thaw_terrain.attributes.sampling import sample_point
from thaw_terrain.attributes.solar_radiation import add_solar_radiation_index
from thaw_terrain.data.raster_access import DiskWindow
from thaw_terrain.data.terrain_features import TerrainLayers


@dataclass(frozen=True)
class RunReport:
    """Counts of fully processed, partial and excluded points."""

    n_points: int
    n_complete: int
    n_partial: int
    excluded: Dict[str, int] = field(default_factory=dict)

    @property
    def n_excluded(self) -> int:
        return sum(self.excluded.values())

    @classmethod
    def from_records(cls, records: Sequence[AttributeRecord]) -> "RunReport":
        statuses = Counter(r.status for r in records)
        n_complete = sum(1 for r in records if r.is_complete)
        n_ok = statuses.get(PointStatus.OK, 0)
        excluded = {
            status.value: statuses.get(status, 0)
            for status in PointStatus
            if status is not PointStatus.OK
        }
        return cls(
            n_points=len(records),
            n_complete=n_complete,
            n_partial=n_ok - n_complete,
            excluded=excluded,
        )

    def to_dict(self) -> Dict:
        return {
            "n_points": self.n_points,
            "n_complete": self.n_complete,
            "n_partial": self.n_partial,
            "n_excluded": self.n_excluded,
            "excluded": dict(self.excluded),
        }


def compute_point_attributes(
    point: Point,
    layers: TerrainLayers,
    solar: SolarGeometry,
    radius: float = DEFAULT_RADIUS,
    max_pixels: int = 1_000_000,
    window: Optional[DiskWindow] = None,
) -> AttributeRecord:
    """Run every stage for one point and return its finished record."""
    record = sample_point(point, layers)
    record = add_relative_elevation(
        record,
        layers.elevation,
        radius=radius,
        max_pixels=max_pixels,
        window=window,
    )
    record = add_solar_radiation_index(record, solar)
    return record


def _process_chunk(points, layers, solar, radius, window) -> List[AttributeRecord]:
    return [
        compute_point_attributes(p, layers, solar, radius=radius, window=window)
        for p in points
    ]


def run_pipeline(
    points: Sequence[Point],
    layers: TerrainLayers,
    solar: Optional[SolarGeometry] = None,
    radius: float = DEFAULT_RADIUS,
    max_pixels: int = 1_000_000,
    n_jobs: int = 1,
    chunk_size: int = 1000,
    verbose: bool = True,
) -> Tuple[List[AttributeRecord], RunReport]:
    """Compute topographic attributes for all points.

    Points are independent, so with ``n_jobs != 1`` they are split into
    chunks and processed in parallel. Records are returned in input order.

    Args:
        points: Points to process.
        layers: Elevation, slope and aspect layers.
        solar: Solar geometry shared by all points (defaults to the summer
            solstice at noon).
        radius: Neighbourhood radius for the mean elevation.
        max_pixels: Cap on the cells visited by one disk mean.
        n_jobs: Number of parallel jobs. Use -1 for all cores, 1 for sequential.
        chunk_size: Points per parallel task.
        verbose: Whether to print progress and summary.

    Returns:
        Tuple of (records, report).
    """
    points = list(points)
    if solar is None:
        solar = SolarGeometry()
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    # Validates radius and max_pixels once for the whole run
    window = layers.elevation.disk_window(radius, max_pixels)

    if verbose:
        print(f"- n_points: {len(points):,}")
        print(f"- neighborhood_radius: {radius:g} ({window.n_pixels:,} pixel window)")
        print(f"- solar_declination: {solar.declination_deg} deg")
        print(f"- solar_azimuth: {solar.azimuth_deg} deg")
        print(f"- n_jobs: {n_jobs}")
        print()

    if n_jobs == 1:
        records = [
            compute_point_attributes(p, layers, solar, radius=radius, window=window)
            for p in tqdm(points, desc="Computing point attributes", disable=not verbose)
        ]
    else:
        start_time = time.time()
        chunks = [
            points[i : i + chunk_size] for i in range(0, len(points), chunk_size)
        ]
        # Parallel preserves task order, so records stay aligned with points
        results = Parallel(n_jobs=n_jobs, verbose=0)(
            delayed(_process_chunk)(chunk, layers, solar, radius, window)
            for chunk in chunks
        )
        records = [record for chunk_records in results for record in chunk_records]
        elapsed_time = time.time() - start_time
        if verbose:
            print(f"-> Completed in {elapsed_time:.2f} seconds")

    report = RunReport.from_records(records)
    if verbose:
        print_report(report)

    return records, report


def print_report(report: RunReport) -> None:
    print("=" * 60)
    print("Run summary")
    print("=" * 60)
    print(f"Total points: {report.n_points:,}")
    print(f"  -> Complete: {report.n_complete:,}")
    print(f"  -> Partial (some values missing): {report.n_partial:,}")
    print(f"  -> Excluded: {report.n_excluded:,}")
    for reason, count in report.excluded.items():
        print(f"       - {reason}: {count:,}")
