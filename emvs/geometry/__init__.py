"""
Geometry Module

Camera model and trajectory used by the mapper.
"""

from .pinhole_camera import PinholeCamera
from .trajectory import Trajectory

__all__ = ['PinholeCamera', 'Trajectory']
