"""
Configuration Management System

Handles loading, validation, and management of mapping parameters.
"""

import yaml
from typing import Dict, Any, Optional
from pathlib import Path


# Depth cell indices are stored in 8-bit index maps
MAX_DEPTH_PLANES = 256


class ConfigManager:
    """Manages configuration parameters for the EMVS mapping pipeline."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default config.
        """
        self.config_path = config_path or self._get_default_config_path()
        self.config = self._load_config()
        self._validate_config()

    def _get_default_config_path(self) -> str:
        """Get path to default configuration file."""
        package_dir = Path(__file__).parent.parent
        return str(package_dir / "config" / "default_config.yaml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as file:
                config = yaml.safe_load(file)
            return config or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing configuration file: {e}")

    def _validate_config(self) -> None:
        """Validate configuration parameters for consistency and feasibility."""
        # Validate camera
        camera = self.config.get('camera', {})
        if camera.get('width', 1) <= 0 or camera.get('height', 1) <= 0:
            raise ValueError("Camera width and height must be positive")
        if camera.get('fx', 1.0) <= 0 or camera.get('fy', 1.0) <= 0:
            raise ValueError("Camera focal lengths must be positive")

        # Validate depth range and DSI dimensions
        dsi = self.config.get('dsi', {})
        min_depth = float(dsi.get('min_depth', 0.5))
        max_depth = float(dsi.get('max_depth', 5.0))
        if min_depth <= 0:
            raise ValueError("min_depth must be positive")
        if min_depth >= max_depth:
            raise ValueError("min_depth must be less than max_depth")

        dim_z = dsi.get('dim_z', 100)
        if dim_z < 1 or dim_z > MAX_DEPTH_PLANES:
            raise ValueError(f"dim_z must be between 1 and {MAX_DEPTH_PLANES}")
        if dsi.get('dim_x', 0) < 0 or dsi.get('dim_y', 0) < 0:
            raise ValueError("DSI dimensions must be non-negative")
        if dsi.get('depth_spacing', 'inverse') not in ('inverse', 'linear'):
            raise ValueError("depth_spacing must be 'inverse' or 'linear'")

        # Validate packets and threading
        mapping = self.config.get('mapping', {})
        if mapping.get('packet_size', 1024) < 1:
            raise ValueError("packet_size must be positive")
        if mapping.get('num_threads', 0) < 0:
            raise ValueError("num_threads must be non-negative")

        # Validate depth map filters
        dm = self.config.get('depth_map', {})
        kernel_size = dm.get('adaptive_threshold_kernel_size', 5)
        if kernel_size < 3 or kernel_size % 2 == 0:
            raise ValueError("adaptive_threshold_kernel_size must be odd and at least 3")
        median_size = dm.get('median_filter_size', 5)
        if median_size < 1 or median_size % 2 == 0:
            raise ValueError("median_filter_size must be odd and positive")
        if dm.get('border_size', 0) < 0:
            raise ValueError("border_size must be non-negative")

        # Validate outlier removal
        pc = self.config.get('point_cloud', {})
        if float(pc.get('radius_search', 0.05)) <= 0:
            raise ValueError("radius_search must be positive")
        if pc.get('min_num_neighbors', 3) < 0:
            raise ValueError("min_num_neighbors must be non-negative")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'dsi.min_depth')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'mapping.packet_size')
            value: Value to set
        """
        keys = key.split('.')
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value
        self._validate_config()

    def save(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save configuration. If None, overwrites current file.
        """
        save_path = output_path or self.config_path

        with open(save_path, 'w') as file:
            yaml.dump(self.config, file, default_flow_style=False, indent=2)

    def get_camera_params(self) -> Dict[str, Any]:
        """Get event camera intrinsics as a dictionary."""
        return self.config.get('camera', {})

    def get_dsi_params(self) -> Dict[str, Any]:
        """Get DSI shape and depth range as a dictionary."""
        return self.config.get('dsi', {})

    def get_mapping_params(self) -> Dict[str, Any]:
        """Get event packet and voting parameters as a dictionary."""
        return self.config.get('mapping', {})

    def get_depth_map_params(self) -> Dict[str, Any]:
        """Get depth map extraction parameters as a dictionary."""
        return self.config.get('depth_map', {})

    def get_point_cloud_params(self) -> Dict[str, Any]:
        """Get point cloud generation parameters as a dictionary."""
        return self.config.get('point_cloud', {})
