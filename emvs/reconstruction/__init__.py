"""
3D Reconstruction Module

Implements back-projection of depth maps and radius-based outlier removal.
"""

from .point_cloud_generator import PointCloudGenerator
from .outlier_remover import OutlierRemover

__all__ = ['PointCloudGenerator', 'OutlierRemover']
