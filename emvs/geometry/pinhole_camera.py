"""
Pinhole Camera Model

Projection and lifting for the real (distorted) event camera and for the
virtual pinhole camera that defines the reference view.
"""

import cv2
import numpy as np
from typing import Optional, Sequence, Tuple, List, Dict, Any

from ..data_models import CameraParameters


class PinholeCamera:
    """Pinhole camera with optional radial-tangential distortion."""

    # Parameter vector layout: [k1, k2, p1, p2, fx, fy, cx, cy]
    NUM_PARAMETERS = 8

    UNDISTORT_CRITERIA = (cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS, 50, 1e-10)

    def __init__(self, camera_params: CameraParameters):
        """
        Initialize camera model.

        Args:
            camera_params: Intrinsic matrix, distortion and image size
        """
        width, height = camera_params.image_size
        if width <= 0 or height <= 0:
            raise ValueError("Image size must be positive")

        self._width = int(width)
        self._height = int(height)
        self._K = np.asarray(camera_params.camera_matrix, dtype=np.float64).reshape(3, 3)
        self._dist = np.asarray(camera_params.distortion_coeffs, dtype=np.float64).ravel()
        self._check_intrinsics()

    @classmethod
    def from_parameters(cls, params: Sequence[float], image_size: Tuple[int, int]) -> 'PinholeCamera':
        """Create a camera from a parameter vector [k1, k2, p1, p2, fx, fy, cx, cy]."""
        camera = cls(CameraParameters(camera_matrix=np.eye(3),
                                      distortion_coeffs=np.zeros(4),
                                      image_size=image_size))
        camera.read_parameters(params)
        return camera

    @classmethod
    def from_config(cls, camera_config: Dict[str, Any]) -> 'PinholeCamera':
        """Create a camera from the 'camera' configuration section."""
        camera_matrix = np.array([
            [camera_config['fx'], 0.0, camera_config['cx']],
            [0.0, camera_config['fy'], camera_config['cy']],
            [0.0, 0.0, 1.0]
        ])
        distortion = np.asarray(camera_config.get('distortion_coeffs', [0.0, 0.0, 0.0, 0.0]), dtype=np.float64)

        return cls(CameraParameters(
            camera_matrix=camera_matrix,
            distortion_coeffs=distortion,
            image_size=(camera_config['width'], camera_config['height'])
        ))

    def _check_intrinsics(self) -> None:
        if self._K[0, 0] <= 0 or self._K[1, 1] <= 0:
            raise ValueError("Focal lengths must be positive")
        if self._dist.size not in (4, 5, 8):
            raise ValueError("Distortion coefficients must have 4, 5 or 8 elements")

    @property
    def camera_matrix(self) -> np.ndarray:
        return self._K.copy()

    @property
    def is_distorted(self) -> bool:
        return bool(np.any(self._dist != 0))

    def image_width(self) -> int:
        return self._width

    def image_height(self) -> int:
        return self._height

    def write_parameters(self) -> List[float]:
        """Export the parameter vector [k1, k2, p1, p2, fx, fy, cx, cy]."""
        return [float(self._dist[0]), float(self._dist[1]), float(self._dist[2]), float(self._dist[3]),
                float(self._K[0, 0]), float(self._K[1, 1]), float(self._K[0, 2]), float(self._K[1, 2])]

    def read_parameters(self, params: Sequence[float]) -> None:
        """Import a parameter vector [k1, k2, p1, p2, fx, fy, cx, cy]."""
        if len(params) != self.NUM_PARAMETERS:
            raise ValueError(f"Expected {self.NUM_PARAMETERS} camera parameters, got {len(params)}")

        k1, k2, p1, p2, fx, fy, cx, cy = [float(v) for v in params]
        self._K = np.array([[fx, 0.0, cx], [0.0, fy, cy], [0.0, 0.0, 1.0]])
        self._dist = np.array([k1, k2, p1, p2])
        self._check_intrinsics()

    def lift_projective(self, pixels: np.ndarray) -> np.ndarray:
        """
        Lift pixels onto their projective rays.

        Args:
            pixels: Nx2 (or 2,) pixel coordinates (x, y)

        Returns:
            Nx3 undistorted rays normalized to z = 1
        """
        pts = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)

        if self.is_distorted:
            undistorted = cv2.undistortPointsIter(pts.reshape(-1, 1, 2), self._K, self._dist, None, None,
                                                  self.UNDISTORT_CRITERIA).reshape(-1, 2)
        else:
            undistorted = np.empty_like(pts)
            undistorted[:, 0] = (pts[:, 0] - self._K[0, 2]) / self._K[0, 0]
            undistorted[:, 1] = (pts[:, 1] - self._K[1, 2]) / self._K[1, 1]

        return np.hstack([undistorted, np.ones((len(undistorted), 1))])

    def project(self, points: np.ndarray, distort: Optional[bool] = None) -> np.ndarray:
        """
        Project 3D points given in the camera frame onto the image plane.

        Args:
            points: Nx3 points (z > 0)
            distort: Apply lens distortion. Defaults to the camera's own model.

        Returns:
            Nx2 pixel coordinates
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        apply_distortion = self.is_distorted if distort is None else distort

        if apply_distortion:
            projected, _ = cv2.projectPoints(pts, np.zeros(3), np.zeros(3), self._K, self._dist)
            return projected.reshape(-1, 2)

        normalized = pts[:, :2] / pts[:, 2:3]
        return normalized @ self._K[:2, :2].T + self._K[:2, 2]

    def is_in_image(self, pixels: np.ndarray) -> np.ndarray:
        """Boolean mask of pixels that fall inside the image."""
        pts = np.asarray(pixels).reshape(-1, 2)
        return ((pts[:, 0] >= 0) & (pts[:, 0] <= self._width - 1) &
                (pts[:, 1] >= 0) & (pts[:, 1] <= self._height - 1))
