"""
Depth Map Module

Implements adaptive thresholding, masked median filtering and depth map extraction.
"""

from .median_filter import masked_median_filter, remove_mask_boundary
from .depth_map_extractor import DepthMapExtractor

__all__ = ['masked_median_filter', 'remove_mask_boundary', 'DepthMapExtractor']
