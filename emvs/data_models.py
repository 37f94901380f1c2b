"""
Data Models for the EMVS Depth Mapping Pipeline

Defines all data structures used throughout the system.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np
import open3d as o3d


# Asynchronous brightness-change events: timestamp in seconds, integer pixel, polarity
EVENT_DTYPE = np.dtype([
    ('t', np.float64),
    ('x', np.uint16),
    ('y', np.uint16),
    ('p', np.bool_)
])


@dataclass
class CameraParameters:
    """Camera intrinsic parameters."""
    camera_matrix: np.ndarray  # 3x3 intrinsic matrix
    distortion_coeffs: np.ndarray  # k1, k2, p1, p2[, k3]
    image_size: Tuple[int, int]  # (width, height)


@dataclass
class DSIShape:
    """Shape and depth range of the Disparity Space Image."""
    dim_x: int  # 0 means sensor width
    dim_y: int  # 0 means sensor height
    dim_z: int  # number of depth planes
    min_depth: float
    max_depth: float


@dataclass
class DepthMapOptions:
    """Options for extracting a semi-dense depth map from the DSI."""
    adaptive_threshold_kernel_size: int = 5
    adaptive_threshold_c: float = 5.0
    median_filter_size: int = 5
    border_size: int = 0  # 0 means half the adaptive threshold kernel


@dataclass
class PointCloudOptions:
    """Options for the radius outlier filter applied to the point cloud."""
    radius_search: float = 0.05
    min_num_neighbors: int = 3


@dataclass
class WarpedEvents:
    """Events transferred to the reference view through the plane Z = Z0."""
    locations: np.ndarray  # Nx2 reference-view pixels on the baseline plane
    camera_centers: np.ndarray  # Px3 optical centers in the reference frame
    packet_size: int

    @property
    def num_packets(self) -> int:
        return len(self.camera_centers)


@dataclass
class DepthMapResult:
    """Depth, confidence and validity mask extracted from the DSI."""
    depth_map: np.ndarray  # HxW float32, metric depth
    confidence_map: np.ndarray  # HxW float32, winning vote mass
    mask: np.ndarray  # HxW uint8, 1 = valid

    @property
    def num_valid(self) -> int:
        return int(np.count_nonzero(self.mask))


@dataclass(frozen=True)
class DepthPoint:
    """Depth estimate of one reference-view pixel."""
    row: int
    col: int
    pixel: Tuple[float, float]  # (x, y)
    inv_depth: float
    variance: float
    p_cam: np.ndarray  # 3D position in the reference frame
    T_w_rv: np.ndarray  # reference pose at creation time


@dataclass
class PointCloud:
    """3D points in the reference frame with inverse depth as intensity."""
    points: np.ndarray  # Nx3
    intensities: np.ndarray  # N

    def __len__(self) -> int:
        return len(self.points)

    @classmethod
    def empty(cls) -> 'PointCloud':
        return cls(points=np.zeros((0, 3)), intensities=np.zeros(0))

    def to_open3d(self) -> o3d.geometry.PointCloud:
        """Convert to an Open3D cloud, encoding intensity as gray levels."""
        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(np.asarray(self.points, dtype=np.float64))
        if len(self.intensities) > 0:
            span = float(np.ptp(self.intensities))
            gray = (self.intensities - np.min(self.intensities)) / span if span > 0 else np.ones(len(self))
            pcd.colors = o3d.utility.Vector3dVector(np.repeat(gray[:, None], 3, axis=1))
        return pcd


@dataclass
class MappingSummary:
    """Statistics of one mapping session."""
    num_events: int
    num_packets: int
    num_valid_pixels: int
    num_points: int
    processing_time: float
    points_removed: int = 0
