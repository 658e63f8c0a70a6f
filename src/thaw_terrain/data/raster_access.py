"""Read access to a georeferenced raster: exact lookups and disk means."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import rasterio as rio
from rasterio.transform import Affine, rowcol


@dataclass(frozen=True)
class DiskWindow:
    """Bounding window of a disk of ``radius`` around any query coordinate."""

    radius: float
    half_rows: int
    half_cols: int

    @property
    def n_pixels(self) -> int:
        return (2 * self.half_rows + 1) * (2 * self.half_cols + 1)


class RasterLayer:
    """A single-band raster held in memory with its georeferencing.

    Nodata cells are stored as NaN. The array is never modified after
    construction, so one layer can be shared by every point (and every
    worker) of a run.
    """

    def __init__(
        self,
        array: np.ndarray,
        transform: Affine,
        crs=None,
        name: str = "elevation",
    ):
        array = np.array(array, dtype=np.float64)
        if array.ndim != 2:
            raise ValueError(f"Raster must be 2D, got shape {array.shape}")
        array.setflags(write=False)
        self.array = array
        self.transform = transform
        self.crs = crs
        self.name = name

    @property
    def shape(self) -> Tuple[int, int]:
        return self.array.shape

    @property
    def pixel_size(self) -> Tuple[float, float]:
        """Absolute cell size as (x, y)."""
        return abs(self.transform.a), abs(self.transform.e)

    def derive(self, array: np.ndarray, name: str) -> "RasterLayer":
        """Return a new layer on the same grid (e.g. slope from elevation)."""
        if np.shape(array) != self.shape:
            raise ValueError(
                f"Derived layer '{name}' has shape {np.shape(array)}, "
                f"expected {self.shape}"
            )
        return RasterLayer(array, self.transform, crs=self.crs, name=name)

    def index_of(self, x: float, y: float) -> Tuple[int, int]:
        """Row and column of the cell containing (x, y); may lie off-grid."""
        row, col = rowcol(self.transform, x, y)
        return int(row), int(col)

    def contains_index(self, row: int, col: int) -> bool:
        height, width = self.shape
        return 0 <= row < height and 0 <= col < width

    def value_at(self, x: float, y: float) -> float:
        """Value of the cell containing (x, y), NaN outside the extent."""
        if not (np.isfinite(x) and np.isfinite(y)):
            return np.nan
        row, col = self.index_of(x, y)
        if not self.contains_index(row, col):
            return np.nan
        return float(self.array[row, col])

    def disk_window(self, radius: float, max_pixels: int = 1_000_000) -> DiskWindow:
        """Size the search window for disk means of ``radius``.

        Raises:
            ValueError: If radius is not positive, or the window would visit
                more than ``max_pixels`` cells.
        """
        if not np.isfinite(radius) or radius <= 0:
            raise ValueError(f"Radius must be a positive number, got {radius}")
        px, py = self.pixel_size
        # One extra cell because the query point is not at a cell centre
        window = DiskWindow(
            radius=float(radius),
            half_rows=int(np.ceil(radius / py)) + 1,
            half_cols=int(np.ceil(radius / px)) + 1,
        )
        if window.n_pixels > max_pixels:
            raise ValueError(
                f"Disk of radius {radius} covers {window.n_pixels:,} pixels, "
                f"more than max_pixels={int(max_pixels):,}"
            )
        return window

    def mean_in_disk(
        self,
        x: float,
        y: float,
        radius: float,
        max_pixels: int = 1_000_000,
        window: Optional[DiskWindow] = None,
    ) -> float:
        """Mean of all valid cells whose centres lie within ``radius`` of (x, y).

        Cells outside the raster or holding nodata are ignored, so a disk
        that only partially overlaps the raster is averaged over the covered
        cells. Returns NaN when no valid cell is covered.

        Args:
            x, y: Query coordinate in the raster CRS.
            radius: Disk radius in raster distance units.
            max_pixels: Cap on the number of cells visited.
            window: Precomputed window from ``disk_window``; computed when None.
        """
        if not (np.isfinite(x) and np.isfinite(y)):
            return np.nan
        if window is None:
            window = self.disk_window(radius, max_pixels)

        height, width = self.shape
        row, col = self.index_of(x, y)
        row_min = max(row - window.half_rows, 0)
        row_max = min(row + window.half_rows, height - 1)
        col_min = max(col - window.half_cols, 0)
        col_max = min(col + window.half_cols, width - 1)
        if row_min > row_max or col_min > col_max:
            return np.nan

        rows, cols = np.mgrid[row_min : row_max + 1, col_min : col_max + 1]
        t = self.transform
        xs = t.a * (cols + 0.5) + t.b * (rows + 0.5) + t.c
        ys = t.d * (cols + 0.5) + t.e * (rows + 0.5) + t.f
        in_disk = (xs - x) ** 2 + (ys - y) ** 2 <= window.radius**2

        values = self.array[row_min : row_max + 1, col_min : col_max + 1][in_disk]
        values = values[np.isfinite(values)]
        if values.size == 0:
            return np.nan
        return float(values.mean())


def load_raster(
    raster_path: Path,
    band: int = 1,
    name: str = "elevation",
    verbose: bool = True,
) -> RasterLayer:
    """Load one band of a raster file into a RasterLayer.

    Args:
        raster_path: Path to the raster (any format rasterio opens).
        band: 1-based band index.
        name: Name given to the layer.
        verbose: Whether to print a summary of the raster.

    Returns:
        RasterLayer with nodata converted to NaN.
    """
    raster_path = Path(raster_path)
    if not raster_path.exists():
        raise FileNotFoundError(f"Raster not found: {raster_path}")

    with rio.open(raster_path) as src:
        if not 1 <= band <= src.count:
            raise ValueError(
                f"Band {band} out of range: '{raster_path.name}' has {src.count} band(s)"
            )
        array = src.read(band).astype(np.float64)
        transform = src.transform
        crs = src.crs
        nodata = src.nodata

    if nodata is not None:
        array = np.where(array == nodata, np.nan, array)

    layer = RasterLayer(array, transform, crs=crs, name=name)

    if verbose:
        px, py = layer.pixel_size
        n_valid = int(np.isfinite(array).sum())
        print(f"Loaded {name} raster from '{raster_path}'")
        print(f"  -> Shape: {layer.shape[0]} x {layer.shape[1]} pixels")
        print(f"  -> Cell size: {px:g} x {py:g}")
        print(f"  -> CRS: {crs}")
        print(f"  -> Nodata: {nodata} ({array.size - n_valid:,} cells)")

    return layer
