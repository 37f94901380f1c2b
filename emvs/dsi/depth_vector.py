"""
Depth Hypothesis Sampler

Maps depth-plane indices of the DSI to metric depth and back.
"""

import numpy as np
from typing import Union


ArrayLike = Union[int, float, np.ndarray]


class DepthVector:
    """Ordered set of depth hypotheses spanning [min_depth, max_depth]."""

    def __init__(self, min_depth: float, max_depth: float, num_depth_cells: int):
        """
        Initialize depth vector.

        Args:
            min_depth: Nearest depth, also the baseline plane Z0
            max_depth: Farthest depth
            num_depth_cells: Number of depth planes
        """
        if min_depth <= 0:
            raise ValueError(f"min_depth must be positive, got {min_depth}")
        if max_depth <= min_depth:
            raise ValueError(f"max_depth ({max_depth}) must be greater than min_depth ({min_depth})")
        if num_depth_cells < 1:
            raise ValueError(f"Number of depth cells must be at least 1, got {num_depth_cells}")

        self.min_depth = float(min_depth)
        self.max_depth = float(max_depth)
        self.num_depth_cells = int(num_depth_cells)
        self._values = self.cell_index_to_depth(np.arange(self.num_depth_cells))

    def __len__(self) -> int:
        return self.num_depth_cells

    @property
    def values(self) -> np.ndarray:
        return self._values.copy()

    @property
    def baseline_depth(self) -> float:
        return float(self._values[0])

    def value_at(self, index: ArrayLike) -> ArrayLike:
        return self.cell_index_to_depth(index)

    def index_from_value(self, depth: ArrayLike) -> ArrayLike:
        """Nearest depth-plane index, clipped to the valid range."""
        index = np.clip(np.rint(self._depth_to_cell(np.asarray(depth, dtype=np.float64))),
                        0, self.num_depth_cells - 1).astype(np.int64)
        return int(index) if index.ndim == 0 else index

    def cell_index_to_depth(self, index: ArrayLike) -> ArrayLike:
        raise NotImplementedError

    def _depth_to_cell(self, depth: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class LinearDepthVector(DepthVector):
    """Depth hypotheses equally spaced in depth."""

    def __init__(self, min_depth: float, max_depth: float, num_depth_cells: int):
        cells = max(int(num_depth_cells), 1)
        self.depth_step = (max_depth - min_depth) / (cells - 1) if cells > 1 else 0.0
        super().__init__(min_depth, max_depth, num_depth_cells)

    def cell_index_to_depth(self, index: ArrayLike) -> ArrayLike:
        return self.min_depth + np.asarray(index, dtype=np.float64) * self.depth_step

    def _depth_to_cell(self, depth: np.ndarray) -> np.ndarray:
        if self.depth_step == 0.0:
            return np.zeros_like(depth)
        return (depth - self.min_depth) / self.depth_step


class InverseDepthVector(DepthVector):
    """Depth hypotheses equally spaced in inverse depth."""

    def __init__(self, min_depth: float, max_depth: float, num_depth_cells: int):
        cells = max(int(num_depth_cells), 1)
        # Guarded so the base class can report an invalid range
        self.inv_depth_max = 1.0 / min_depth if min_depth > 0 else 0.0
        self.inv_depth_min = 1.0 / max_depth if max_depth > 0 else 0.0
        self.inv_depth_step = (self.inv_depth_max - self.inv_depth_min) / (cells - 1) if cells > 1 else 0.0
        super().__init__(min_depth, max_depth, num_depth_cells)

    def cell_index_to_depth(self, index: ArrayLike) -> ArrayLike:
        return 1.0 / (self.inv_depth_max - np.asarray(index, dtype=np.float64) * self.inv_depth_step)

    def _depth_to_cell(self, depth: np.ndarray) -> np.ndarray:
        if self.inv_depth_step == 0.0:
            return np.zeros_like(depth)
        return (self.inv_depth_max - 1.0 / depth) / self.inv_depth_step


def make_depth_vector(min_depth: float,
                      max_depth: float,
                      num_depth_cells: int,
                      spacing: str = 'inverse') -> DepthVector:
    """
    Create a depth vector with the requested spacing law.

    Args:
        min_depth: Nearest depth
        max_depth: Farthest depth
        num_depth_cells: Number of depth planes
        spacing: 'inverse' or 'linear'

    Returns:
        Depth vector instance
    """
    if spacing == 'inverse':
        return InverseDepthVector(min_depth, max_depth, num_depth_cells)
    if spacing == 'linear':
        return LinearDepthVector(min_depth, max_depth, num_depth_cells)
    raise ValueError(f"Unknown depth spacing: {spacing}")
