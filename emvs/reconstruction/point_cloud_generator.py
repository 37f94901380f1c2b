"""
Point Cloud Generator

Back-projects the valid pixels of a depth map into 3D points of the
reference view.
"""

import numpy as np
from typing import Optional, List, Tuple
import logging

from ..data_models import DepthPoint, PointCloud, PointCloudOptions
from ..geometry.pinhole_camera import PinholeCamera
from ..utils.config_manager import ConfigManager
from .outlier_remover import OutlierRemover


# Points closer than this to the image plane of the reference view are dropped
MIN_POINT_DEPTH = 1e-6


class PointCloudGenerator:
    """Generates depth points and point clouds from a masked depth map."""

    def __init__(self,
                 virtual_camera: PinholeCamera,
                 config_manager: Optional[ConfigManager] = None):
        """
        Initialize point cloud generator.

        Args:
            virtual_camera: Pinhole camera of the reference view
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.virtual_camera = virtual_camera
        self.outlier_remover = OutlierRemover(self.config)

        pc_config = self.config.get_point_cloud_params()
        self.depth_point_variance = float(pc_config.get('depth_point_variance', 0.1))

    def back_project(self, depth_map: np.ndarray, mask: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Lift valid pixels to 3D points in the reference frame.

        Args:
            depth_map: HxW metric depth
            mask: HxW validity mask

        Returns:
            Tuple of (Nx2 pixels (x, y), Nx3 points) for points in front of the camera
        """
        if depth_map.shape != mask.shape:
            raise ValueError("Depth map and mask must have same dimensions")

        rows, cols = np.nonzero(mask)
        pixels = np.column_stack([cols, rows]).astype(np.float64)
        if len(pixels) == 0:
            return pixels, np.zeros((0, 3))

        rays = self.virtual_camera.lift_projective(pixels)
        depths = depth_map[rows, cols].astype(np.float64)
        points = rays / rays[:, 2:3] * depths[:, None]

        in_front = points[:, 2] > MIN_POINT_DEPTH
        return pixels[in_front], points[in_front]

    def generate_depth_points(self,
                              depth_map: np.ndarray,
                              mask: np.ndarray,
                              T_w_rv: np.ndarray) -> List[DepthPoint]:
        """
        Depth points of all valid pixels, used for downstream fusion.

        Args:
            depth_map: HxW metric depth
            mask: HxW validity mask
            T_w_rv: Pose of the reference view

        Returns:
            List of depth points
        """
        pixels, points = self.back_project(depth_map, mask)
        pose = np.array(T_w_rv, dtype=np.float64)

        depth_points = [
            DepthPoint(row=int(p[1]),
                       col=int(p[0]),
                       pixel=(float(p[0]), float(p[1])),
                       inv_depth=1.0 / float(xyz[2]),
                       variance=self.depth_point_variance,
                       p_cam=xyz.copy(),
                       T_w_rv=pose)
            for p, xyz in zip(pixels, points)
        ]

        self.logger.debug(f"Generated {len(depth_points)} depth points")
        return depth_points

    def generate_point_cloud(self,
                             depth_map: np.ndarray,
                             mask: np.ndarray,
                             options: Optional[PointCloudOptions] = None) -> PointCloud:
        """
        Point cloud of all valid pixels, cleaned with radius outlier removal.

        Args:
            depth_map: HxW metric depth
            mask: HxW validity mask
            options: Overrides the configured outlier filter parameters

        Returns:
            Filtered point cloud with inverse depth as intensity
        """
        _, points = self.back_project(depth_map, mask)
        cloud = PointCloud(points=points, intensities=1.0 / points[:, 2])

        if options is None:
            filtered, _ = self.outlier_remover.remove_radius_outliers(cloud)
        else:
            filtered, _ = self.outlier_remover.remove_radius_outliers(
                cloud, radius=options.radius_search, min_neighbors=options.min_num_neighbors)

        self.logger.debug(f"Point cloud: {len(cloud)} points, {len(filtered)} after outlier removal")
        return filtered
