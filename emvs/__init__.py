"""
EMVS Depth Mapping

Semi-dense depth estimation from an event camera with known trajectory,
using space-sweep ray voting into a Disparity Space Image (DSI).

This package implements:
- Planar-homography warping of event packets onto a baseline depth plane
- Closed-form transfer to every depth hypothesis with bilinear voting
- Parallel, race-free accumulation over disjoint depth slices
- Adaptive thresholding and masked median filtering of the DSI maxima
- Back-projection to depth points and radius outlier removal of point clouds
"""

__version__ = "1.0.0"
__author__ = "EMVS Mapping Team"

from .geometry import PinholeCamera, Trajectory
from .dsi import VoxelGrid, DSIBuilder, RectificationTable, make_depth_vector
from .depth import DepthMapExtractor, masked_median_filter
from .reconstruction import PointCloudGenerator, OutlierRemover
from .mapper import EMVSMapper
from .data_models import (
    EVENT_DTYPE, CameraParameters, DSIShape, DepthMapOptions, PointCloudOptions,
    WarpedEvents, DepthMapResult, DepthPoint, PointCloud
)

__all__ = [
    # Geometry
    'PinholeCamera', 'Trajectory',
    # DSI
    'VoxelGrid', 'DSIBuilder', 'RectificationTable', 'make_depth_vector',
    # Depth
    'DepthMapExtractor', 'masked_median_filter',
    # Reconstruction
    'PointCloudGenerator', 'OutlierRemover',
    # Session
    'EMVSMapper',
    # Data Models
    'EVENT_DTYPE', 'CameraParameters', 'DSIShape', 'DepthMapOptions', 'PointCloudOptions',
    'WarpedEvents', 'DepthMapResult', 'DepthPoint', 'PointCloud'
]
