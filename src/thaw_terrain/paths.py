"""Project path resolution for scripts and configs."""

from pathlib import Path
from typing import Optional, Union


def get_project_root() -> Path:
    """
    Find the project root by locating pyproject.toml.

    The root anchors `configs/` for hydra and the relative dataset paths in
    config.yaml (DEM, points, output CSV and run report), so the driver
    script and the tests resolve the same files from any working directory.
    Checks the current working directory first, then walks up from this
    file's location.

    Raises:
        RuntimeError: If pyproject.toml cannot be found.
    """
    cwd = Path.cwd()
    if (cwd / "pyproject.toml").exists():
        return cwd

    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists():
            return parent

    raise RuntimeError(
        "Could not find project root. Make sure pyproject.toml exists "
        "in the project root directory."
    )


def resolve_path(path: Union[str, Path], root: Optional[Path] = None) -> Path:
    """Return ``path`` as-is when absolute, else relative to the project root."""
    path = Path(path)
    if path.is_absolute():
        return path
    return (root or PROJECT_ROOT) / path


PROJECT_ROOT = get_project_root()
CONFIGS_DIR = PROJECT_ROOT / "configs"
