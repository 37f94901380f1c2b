"""
Depth Map Extractor

Extracts a semi-dense depth map, its confidence and a validity mask from
the DSI.
"""

import cv2
import numpy as np
from typing import Optional, Dict, Any
import logging

from ..data_models import DepthMapOptions, DepthMapResult
from ..dsi.depth_vector import DepthVector
from ..dsi.voxel_grid import VoxelGrid
from ..utils.config_manager import ConfigManager
from .median_filter import masked_median_filter, remove_mask_boundary


class DepthMapExtractor:
    """Turns accumulated DSI votes into a filtered metric depth map."""

    def __init__(self, depth_vector: DepthVector, config_manager: Optional[ConfigManager] = None):
        """
        Initialize depth map extractor.

        Args:
            depth_vector: Depth hypotheses of the DSI
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.depth_vector = depth_vector

        # Get depth map configuration
        dm_config = self.config.get_depth_map_params()

        self.options = DepthMapOptions(
            adaptive_threshold_kernel_size=int(dm_config.get('adaptive_threshold_kernel_size', 5)),
            adaptive_threshold_c=float(dm_config.get('adaptive_threshold_c', 5.0)),
            median_filter_size=int(dm_config.get('median_filter_size', 5)),
            border_size=int(dm_config.get('border_size', 0))
        )

        self.logger.info(f"Depth map extractor initialized: "
                         f"threshold kernel={self.options.adaptive_threshold_kernel_size}, "
                         f"C={self.options.adaptive_threshold_c}, "
                         f"median size={self.options.median_filter_size}")

    def extract(self, grid: VoxelGrid, options: Optional[DepthMapOptions] = None) -> DepthMapResult:
        """
        Extract depth, confidence and mask from the DSI.

        Args:
            grid: Voxel grid after voting
            options: Overrides the configured options

        Returns:
            Depth map result; an empty mask means no confident depth anywhere
        """
        opts = options or self.options
        kernel_size = opts.adaptive_threshold_kernel_size
        if kernel_size < 3 or kernel_size % 2 == 0:
            raise ValueError("Adaptive threshold kernel size must be odd and at least 3")

        # Maximum number of votes along each optical ray
        confidence_map, depth_cell_indices = grid.collapse_max_z_slice()

        mask = self.compute_confidence_mask(confidence_map, kernel_size, opts.adaptive_threshold_c)

        # Clean up the index map with a median filter over valid pixels
        filtered_indices = masked_median_filter(depth_cell_indices, mask, opts.median_filter_size)

        # Remove the outer border to suppress boundary effects of the windowed filters
        border_size = max(opts.border_size, kernel_size // 2, 1)
        mask = remove_mask_boundary(mask, border_size)

        depth_map = self.convert_depth_indices_to_values(filtered_indices)

        self.logger.debug(f"Depth map extracted: {np.count_nonzero(mask)} valid pixels")

        return DepthMapResult(depth_map=depth_map, confidence_map=confidence_map, mask=mask)

    def compute_confidence_mask(self, confidence_map: np.ndarray, kernel_size: int, c: float) -> np.ndarray:
        """
        Locally adaptive threshold of the confidence map.

        Args:
            confidence_map: Raw vote mass per pixel
            kernel_size: Gaussian window of the local threshold
            c: Margin above the local mean a pixel must exceed

        Returns:
            uint8 mask with values {0, 1}
        """
        confidence_8bit = cv2.normalize(confidence_map, None, 0.0, 255.0, cv2.NORM_MINMAX, dtype=cv2.CV_8U)

        return cv2.adaptiveThreshold(confidence_8bit,
                                     1,
                                     cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                     cv2.THRESH_BINARY,
                                     kernel_size,
                                     -c)

    def convert_depth_indices_to_values(self, depth_cell_indices: np.ndarray) -> np.ndarray:
        """Metric depth of every pixel from its depth-cell index."""
        return self.depth_vector.cell_index_to_depth(depth_cell_indices).astype(np.float32)

    def get_statistics(self, result: DepthMapResult) -> Dict[str, Any]:
        """
        Summary statistics of a depth map.

        Args:
            result: Extracted depth map

        Returns:
            Valid pixel ratio and depth statistics of valid pixels
        """
        valid = result.mask > 0
        valid_depths = result.depth_map[valid]

        metrics = {
            'total_pixels': result.mask.size,
            'valid_pixels': int(np.count_nonzero(valid)),
            'valid_pixel_ratio': float(np.count_nonzero(valid)) / result.mask.size,
            'mean_depth': 0.0,
            'std_depth': 0.0,
            'min_depth': 0.0,
            'max_depth': 0.0
        }

        if len(valid_depths) > 0:
            metrics.update({
                'mean_depth': float(np.mean(valid_depths)),
                'std_depth': float(np.std(valid_depths)),
                'min_depth': float(np.min(valid_depths)),
                'max_depth': float(np.max(valid_depths))
            })

        return metrics
