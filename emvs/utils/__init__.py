"""
Utility Functions and Helpers

Common utilities for the EMVS mapping pipeline.
"""

from .config_manager import ConfigManager
from .event_io import events_from_arrays, load_events_txt
from .visualization import create_depth_visualization, create_confidence_visualization

__all__ = ['ConfigManager', 'events_from_arrays', 'load_events_txt',
           'create_depth_visualization', 'create_confidence_visualization']
