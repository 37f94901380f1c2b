"""
Voxel Grid (Disparity Space Image)

3D accumulator of ray-crossing votes indexed by reference-view pixel and
depth plane.
"""

import numpy as np
from typing import Tuple


class VoxelGrid:
    """Dense float32 grid of shape (dim_z, dim_y, dim_x) with bilinear voting."""

    def __init__(self, dim_x: int, dim_y: int, dim_z: int):
        """
        Initialize an all-zero grid.

        Args:
            dim_x: Width of each depth slice
            dim_y: Height of each depth slice
            dim_z: Number of depth slices
        """
        if dim_x <= 0 or dim_y <= 0 or dim_z <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {dim_x}x{dim_y}x{dim_z}")

        self.dim_x = int(dim_x)
        self.dim_y = int(dim_y)
        self.dim_z = int(dim_z)
        # Slice-major layout keeps every depth plane contiguous in memory
        self.data = np.zeros((self.dim_z, self.dim_y, self.dim_x), dtype=np.float32)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.dim_x, self.dim_y, self.dim_z

    def get_slice(self, z: int) -> np.ndarray:
        """Writable view of one depth slice (dim_y x dim_x)."""
        return self.data[z]

    def reset_grid(self) -> None:
        self.data.fill(0.0)

    def checksum(self) -> float:
        return float(np.sum(self.data, dtype=np.float64))

    def accumulate(self, x: np.ndarray, y: np.ndarray, grid_slice: np.ndarray) -> None:
        """
        Bilinear voting of unit votes into one depth slice.

        Each vote at (x, y) spreads a total weight of 1 over its four enclosing
        cells. Corners outside the slice are dropped individually, as are
        non-finite locations.

        Args:
            x: Vote columns (real-valued)
            y: Vote rows (real-valued)
            grid_slice: Slice returned by get_slice()
        """
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        y = np.atleast_1d(np.asarray(y, dtype=np.float64))

        finite = np.isfinite(x) & np.isfinite(y)
        # Far-away votes cannot touch the slice; also keeps floor() in int range
        finite &= (x > -1.0) & (x < self.dim_x) & (y > -1.0) & (y < self.dim_y)
        if not np.all(finite):
            x = x[finite]
            y = y[finite]
        if x.size == 0:
            return

        x0 = np.floor(x)
        y0 = np.floor(y)
        fx = x - x0
        fy = y - y0
        x0 = x0.astype(np.int64)
        y0 = y0.astype(np.int64)

        cols = np.concatenate([x0, x0 + 1, x0, x0 + 1])
        rows = np.concatenate([y0, y0, y0 + 1, y0 + 1])
        weights = np.concatenate([(1.0 - fx) * (1.0 - fy), fx * (1.0 - fy), (1.0 - fx) * fy, fx * fy])

        inside = (cols >= 0) & (cols < self.dim_x) & (rows >= 0) & (rows < self.dim_y)
        flat_index = rows[inside] * self.dim_x + cols[inside]

        votes = np.bincount(flat_index, weights=weights[inside], minlength=self.dim_x * self.dim_y)
        grid_slice += votes.reshape(self.dim_y, self.dim_x).astype(np.float32)

    def collapse_max_z_slice(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Maximum vote along each optical ray of the reference view.

        Returns:
            Tuple of (confidence_map float32, depth_cell_indices uint8); ties
            resolve to the lowest slice index
        """
        depth_cell_indices = np.argmax(self.data, axis=0)
        confidence_map = np.take_along_axis(self.data, depth_cell_indices[None], axis=0)[0]

        return confidence_map.astype(np.float32), depth_cell_indices.astype(np.uint8)
