"""
Outlier Remover

Radius-based outlier removal for reconstructed point clouds.
"""

import numpy as np
from typing import Optional, Tuple
import logging
import open3d as o3d

from ..data_models import PointCloud
from ..utils.config_manager import ConfigManager


class OutlierRemover:
    """Removes isolated points that have too few neighbors within a search radius."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize outlier remover.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        pc_config = self.config.get_point_cloud_params()

        self.radius_search = float(pc_config.get('radius_search', 0.05))
        self.min_num_neighbors = int(pc_config.get('min_num_neighbors', 3))

        self.logger.info(f"Outlier remover initialized: radius={self.radius_search}, "
                         f"min_neighbors={self.min_num_neighbors}")

    def remove_radius_outliers(self,
                               cloud: PointCloud,
                               radius: Optional[float] = None,
                               min_neighbors: Optional[int] = None) -> Tuple[PointCloud, np.ndarray]:
        """
        Keep the points with at least `min_neighbors` other points within `radius`.

        Args:
            cloud: Input point cloud
            radius: Search radius (defaults to configuration)
            min_neighbors: Minimum number of neighbors (defaults to configuration)

        Returns:
            Tuple of (filtered cloud, indices of the surviving points)
        """
        radius = self.radius_search if radius is None else float(radius)
        min_neighbors = self.min_num_neighbors if min_neighbors is None else int(min_neighbors)

        if radius <= 0:
            raise ValueError("Search radius must be positive")
        if min_neighbors < 0:
            raise ValueError("Minimum number of neighbors must be non-negative")

        if len(cloud) == 0 or min_neighbors == 0:
            return cloud, np.arange(len(cloud))

        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(np.asarray(cloud.points, dtype=np.float64))

        # The query point is part of its own neighborhood and must be exceeded
        _, indices = pcd.remove_radius_outlier(nb_points=min_neighbors, radius=radius)
        indices = np.asarray(indices, dtype=np.int64)

        filtered = PointCloud(points=cloud.points[indices], intensities=cloud.intensities[indices])

        self.logger.debug(f"Radius outlier removal: {len(cloud)} -> {len(filtered)} points")

        return filtered, indices
