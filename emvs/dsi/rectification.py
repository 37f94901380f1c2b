"""
Rectification Table

Lookup table from event pixel coordinates to undistorted projective rays.
"""

import numpy as np
import logging

from ..geometry.pinhole_camera import PinholeCamera


class RectificationTable:
    """Per-pixel undistorted ray directions of the event camera, built once per camera."""

    def __init__(self, camera: PinholeCamera):
        """
        Precompute the rectified points of every sensor pixel.

        Args:
            camera: Event camera model (may be distorted)
        """
        self.logger = logging.getLogger(__name__)
        self.width = camera.image_width()
        self.height = camera.image_height()

        ys, xs = np.mgrid[0:self.height, 0:self.width]
        pixels = np.column_stack([xs.ravel(), ys.ravel()]).astype(np.float64)

        rays = camera.lift_projective(pixels)
        # Row y * width + x holds the ray (x, y, 1) of pixel (x, y)
        self.points = rays[:, :2] / rays[:, 2:3]

        self.logger.info(f"Rectification table precomputed for {self.width}x{self.height} pixels")

    def lookup(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Rectified points of integer pixel coordinates.

        Args:
            xs: Pixel columns
            ys: Pixel rows

        Returns:
            Nx2 normalized ray coordinates
        """
        xs = np.asarray(xs, dtype=np.int64)
        ys = np.asarray(ys, dtype=np.int64)
        if np.any((xs < 0) | (xs >= self.width) | (ys < 0) | (ys >= self.height)):
            raise ValueError("Event coordinates outside the sensor resolution")

        return self.points[ys * self.width + xs]
