"""
EMVS Mapper

Mapping session over one reference view: owns the DSI and wires event
voting, depth map extraction and point generation together.
"""

import numpy as np
from typing import Optional, List
import logging

from .data_models import DSIShape, DepthMapOptions, DepthMapResult, DepthPoint, PointCloud, PointCloudOptions
from .depth.depth_map_extractor import DepthMapExtractor
from .dsi.depth_vector import make_depth_vector
from .dsi.dsi_builder import DSIBuilder
from .dsi.voxel_grid import VoxelGrid
from .geometry.pinhole_camera import PinholeCamera
from .reconstruction.point_cloud_generator import PointCloudGenerator
from .utils.config_manager import ConfigManager


class EMVSMapper:
    """Event-based multi-view stereo mapper for a single reference viewpoint."""

    def __init__(self, camera: PinholeCamera, config_manager: Optional[ConfigManager] = None):
        """
        Set up the DSI and its processing stages.

        Args:
            camera: Real (distorted) event camera
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.camera = camera

        dsi_config = self.config.get_dsi_params()
        self.dsi_shape = DSIShape(
            dim_x=int(dsi_config.get('dim_x', 0)),
            dim_y=int(dsi_config.get('dim_y', 0)),
            dim_z=int(dsi_config.get('dim_z', 100)),
            min_depth=float(dsi_config.get('min_depth', 0.5)),
            max_depth=float(dsi_config.get('max_depth', 5.0))
        )
        self._setup_dsi(dsi_config.get('depth_spacing', 'inverse'))

        self.dsi_builder = DSIBuilder(self.camera, self.virtual_camera, self.depth_vector, self.config)
        self.depth_map_extractor = DepthMapExtractor(self.depth_vector, self.config)
        self.point_cloud_generator = PointCloudGenerator(self.virtual_camera, self.config)

        self.T_w_rv: Optional[np.ndarray] = None
        self.num_packets = 0

        self.logger.info(f"EMVS mapper initialized: DSI {self.dsi_shape.dim_x}x{self.dsi_shape.dim_y}"
                         f"x{self.dsi_shape.dim_z}, depth [{self.dsi_shape.min_depth}, "
                         f"{self.dsi_shape.max_depth}] m")

    def _setup_dsi(self, spacing: str) -> None:
        shape = self.dsi_shape
        self.depth_vector = make_depth_vector(shape.min_depth, shape.max_depth, shape.dim_z, spacing)

        shape.dim_x = shape.dim_x if shape.dim_x > 0 else self.camera.image_width()
        shape.dim_y = shape.dim_y if shape.dim_y > 0 else self.camera.image_height()

        # Reference view: pinhole camera with the focal length of the event camera
        fx = self.camera.write_parameters()[4]
        virtual_params = [0.0, 0.0, 0.0, 0.0, fx, fx, 0.5 * shape.dim_x, 0.5 * shape.dim_y]
        self.virtual_camera = PinholeCamera.from_parameters(virtual_params, (shape.dim_x, shape.dim_y))

        self.dsi = VoxelGrid(shape.dim_x, shape.dim_y, shape.dim_z)

    def initialize_dsi(self, T_w_rv: np.ndarray) -> None:
        """
        Start a mapping session at a new reference viewpoint.

        Args:
            T_w_rv: 4x4 pose of the reference view
        """
        T_w_rv = np.asarray(T_w_rv, dtype=np.float64)
        if T_w_rv.shape != (4, 4):
            raise ValueError("Reference pose must be a 4x4 matrix")

        self.T_w_rv = T_w_rv.copy()
        self.num_packets = 0
        self.dsi.reset_grid()

    def reset_dsi(self) -> None:
        """Zero the votes, keeping configuration and reference pose."""
        self.num_packets = 0
        self.dsi.reset_grid()

    def update_dsi(self, events: np.ndarray, trajectory) -> bool:
        """
        Vote a batch of events into the DSI.

        Args:
            events: Event array (EVENT_DTYPE), sorted by time
            trajectory: Object providing get_pose_at(t) -> (T_w_c, success)

        Returns:
            False if the batch is smaller than one packet (DSI unchanged)
        """
        if self.T_w_rv is None:
            raise RuntimeError("DSI not initialized. Call initialize_dsi() first.")

        warped = self.dsi_builder.warp_events(events, trajectory, self.T_w_rv)
        if warped is None:
            return False

        self.dsi_builder.fill_voxel_grid(self.dsi, warped)
        self.num_packets += warped.num_packets
        return True

    def get_depth_map_from_dsi(self, options: Optional[DepthMapOptions] = None) -> DepthMapResult:
        """Extract depth map, confidence map and mask from the current DSI."""
        return self.depth_map_extractor.extract(self.dsi, options)

    def get_depth_points(self, depth_map: np.ndarray, mask: np.ndarray) -> List[DepthPoint]:
        """Depth points of the valid pixels, tagged with the reference pose."""
        if self.T_w_rv is None:
            raise RuntimeError("DSI not initialized. Call initialize_dsi() first.")
        return self.point_cloud_generator.generate_depth_points(depth_map, mask, self.T_w_rv)

    def get_point_cloud(self,
                        depth_map: np.ndarray,
                        mask: np.ndarray,
                        options: Optional[PointCloudOptions] = None) -> PointCloud:
        """Outlier-filtered point cloud of the valid pixels in the reference frame."""
        return self.point_cloud_generator.generate_point_cloud(depth_map, mask, options)
