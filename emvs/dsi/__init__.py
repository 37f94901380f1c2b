"""
Disparity Space Image Module

Implements depth hypotheses, the voxel grid and space-sweep event voting.
"""

from .depth_vector import DepthVector, LinearDepthVector, InverseDepthVector, make_depth_vector
from .rectification import RectificationTable
from .voxel_grid import VoxelGrid
from .dsi_builder import DSIBuilder

__all__ = ['DepthVector', 'LinearDepthVector', 'InverseDepthVector', 'make_depth_vector',
           'RectificationTable', 'VoxelGrid', 'DSIBuilder']
