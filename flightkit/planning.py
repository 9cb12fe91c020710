"""Point-cloud maps for collision checking and waypoint densification."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from typing import Sequence

import numpy as np

from flightkit.ply_file import PlyFile

__all__ = [
    "Bounds",
    "PointCloudMap",
    "load_point_cloud",
    "compute_bounds",
    "interpolate_waypoints",
]

DEFAULT_CLEARANCE = 1.0
DEFAULT_SCALING = 10


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box given by its lower and upper corners."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]


def _as_points(points: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    array = np.asarray(points, dtype=float)
    if array.size == 0:
        return np.zeros((0, 3))
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError("points must have shape (n, 3)")
    return array


def load_point_cloud(path: str | PathLike[str]) -> np.ndarray:
    """Read the x, y, z vertex positions of a PLY file as an (n, 3) array."""
    with open(path, "rb") as stream:
        ply = PlyFile()
        ply.parse_header(stream)
        vertices = ply.request_properties_from_element("vertex", ["x", "y", "z"])
        ply.read(stream)
    values = vertices.values()
    if values.size % 3:
        raise ValueError("vertex data does not hold whole x, y, z triples")
    return values.astype(np.float64).reshape(-1, 3)


def compute_bounds(points: Sequence[Sequence[float]] | np.ndarray) -> Bounds:
    """Bounding box of a point cloud.

    The lower z bound is the z of the first point: the planner keeps the
    ground level of the first vertex rather than the lowest one.
    """
    array = _as_points(points)
    if len(array) == 0:
        raise ValueError("cannot compute bounds of an empty point cloud")
    low = array.min(axis=0)
    high = array.max(axis=0)
    return Bounds(
        min=(float(low[0]), float(low[1]), float(array[0, 2])),
        max=(float(high[0]), float(high[1]), float(high[2])),
    )


def interpolate_waypoints(
    waypoints: Sequence[Sequence[float]] | np.ndarray,
    scaling: int = DEFAULT_SCALING,
) -> np.ndarray:
    """Densify a polyline into evenly spaced points, ``scaling`` per unit length.

    Each segment contributes ``int(length * scaling)`` points starting at its
    first end; the final waypoint itself is not included.
    """
    array = _as_points(waypoints)
    dense: list[np.ndarray] = []
    for start, end in zip(array[:-1], array[1:]):
        diff = end - start
        steps = norm = float(np.linalg.norm(diff))
        steps = int(norm * scaling)
        if steps <= 0:
            continue
        increment = diff / (norm * scaling)
        dense.extend(start + j * increment for j in range(steps))
    if not dense:
        return np.zeros((0, 3))
    return np.vstack(dense)


class PointCloudMap:
    """An obstacle map made of points, queried for free space around a position."""

    def __init__(self, points: Sequence[Sequence[float]] | np.ndarray) -> None:
        self.points = _as_points(points)

    def __len__(self) -> int:
        return len(self.points)

    def is_free(self, query: Sequence[float], radius: float = DEFAULT_CLEARANCE) -> bool:
        """True if no obstacle point lies within ``radius`` of ``query``."""
        if len(self.points) == 0:
            return True
        center = np.asarray(query, dtype=float).reshape(3)
        offsets = self.points - center
        near = offsets[np.einsum("ij,ij->i", offsets, offsets) < radius * radius]
        if len(near) == 0:
            return True
        in_body = np.all(np.abs(near) <= radius, axis=1)
        return not bool(in_body.any())

    def bounds(self) -> Bounds:
        """Bounding box of the map's points."""
        return compute_bounds(self.points)