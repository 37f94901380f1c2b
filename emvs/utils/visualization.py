"""
Visualization Helpers

Color-coded renderings of depth and confidence maps.
"""

import cv2
import numpy as np
from typing import Optional


def create_depth_visualization(depth_map: np.ndarray,
                               mask: np.ndarray,
                               min_depth: Optional[float] = None,
                               max_depth: Optional[float] = None) -> np.ndarray:
    """
    Create a visualization of a semi-dense depth map.

    Args:
        depth_map: Metric depth map
        mask: Validity mask
        min_depth: Depth mapped to the first colormap entry (defaults to valid minimum)
        max_depth: Depth mapped to the last colormap entry (defaults to valid maximum)

    Returns:
        Color-coded depth visualization (invalid pixels black)
    """
    valid_mask = mask > 0
    depth_norm = np.zeros(depth_map.shape, dtype=np.uint8)

    if np.any(valid_mask):
        valid_depth = depth_map[valid_mask]
        low = float(np.min(valid_depth)) if min_depth is None else min_depth
        high = float(np.max(valid_depth)) if max_depth is None else max_depth

        if high > low:
            # Near points are red, far points are blue
            scaled = 1.0 - (np.clip(valid_depth, low, high) - low) / (high - low)
            depth_norm[valid_mask] = (scaled * 255).astype(np.uint8)

    depth_color = cv2.applyColorMap(depth_norm, cv2.COLORMAP_JET)

    # Set invalid pixels to black
    depth_color[~valid_mask] = [0, 0, 0]

    return depth_color


def create_confidence_visualization(confidence_map: np.ndarray) -> np.ndarray:
    """
    Grayscale rendering of the confidence map scaled to 0..255.

    Args:
        confidence_map: Vote mass per pixel

    Returns:
        8-bit confidence image
    """
    return cv2.normalize(confidence_map, None, 0.0, 255.0, cv2.NORM_MINMAX, dtype=cv2.CV_8U)
