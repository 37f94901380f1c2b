"""
Pytest configuration and fixtures for EMVS mapping tests.
"""

import pytest
import numpy as np

from emvs.data_models import CameraParameters
from emvs.geometry import PinholeCamera, Trajectory
from emvs.utils.config_manager import ConfigManager
from emvs.utils.event_io import events_from_arrays


# Synthetic scene: vertical edges on a fronto-parallel plane, camera translating along x
PLANE_DEPTH = 2.0
EDGE_XS = (-0.6, -0.2, 0.2, 0.6)
EDGE_ROWS = 41
NUM_VIEWS = 21
VIEW_SPACING = 0.02  # meters between consecutive camera positions
FRAME_PERIOD = 0.01  # seconds between consecutive camera positions


def translation_pose(x: float, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Camera-to-world pose with identity rotation."""
    pose = np.eye(4)
    pose[:3, 3] = [x, y, z]
    return pose


@pytest.fixture
def config_manager():
    """Fixture providing a configuration manager instance."""
    return ConfigManager()


@pytest.fixture
def sample_camera_params():
    """Fixture providing sample event camera parameters."""
    camera_matrix = np.array([
        [199.1, 0, 132.2],
        [0, 198.8, 110.7],
        [0, 0, 1]
    ], dtype=np.float64)

    distortion_coeffs = np.array([-0.368, 0.151, -0.0003, -0.0008], dtype=np.float64)

    return CameraParameters(
        camera_matrix=camera_matrix,
        distortion_coeffs=distortion_coeffs,
        image_size=(240, 180)
    )


@pytest.fixture
def plane_scene_config():
    """Configuration matched to the synthetic plane scene."""
    config = ConfigManager()
    config.set('camera', {
        'width': 120, 'height': 100,
        'fx': 100.0, 'fy': 100.0, 'cx': 60.0, 'cy': 50.0,
        'distortion_coeffs': [0.0, 0.0, 0.0, 0.0]
    })
    config.set('dsi', {
        'min_depth': 1.8, 'max_depth': 2.2,
        'dim_x': 0, 'dim_y': 0, 'dim_z': 41,
        'depth_spacing': 'linear'
    })
    config.set('mapping', {
        'packet_size': len(EDGE_XS) * EDGE_ROWS,
        'num_threads': 1,
        'parallel_min_events': 20000
    })
    config.set('depth_map', {
        'adaptive_threshold_kernel_size': 5,
        'adaptive_threshold_c': 15,
        'median_filter_size': 5,
        'border_size': 0
    })
    config.set('point_cloud', {
        'radius_search': 0.05,
        'min_num_neighbors': 2,
        'depth_point_variance': 0.1
    })
    return config


@pytest.fixture
def plane_camera(plane_scene_config):
    """Undistorted 120x100 camera of the plane scene."""
    return PinholeCamera.from_config(plane_scene_config.get_camera_params())


@pytest.fixture
def plane_scene(plane_camera):
    """
    Events and trajectory of a camera sliding in front of a textured plane.

    Edge points and camera positions are chosen so every projection lands
    exactly on a pixel center; the view at x = 0 is the reference view.
    """
    edge_ys = (np.arange(EDGE_ROWS) - EDGE_ROWS // 2) / 50.0
    xs, ys = np.meshgrid(EDGE_XS, edge_ys)
    points_w = np.column_stack([xs.ravel(), ys.ravel(), np.full(xs.size, PLANE_DEPTH)])

    view_offsets = (np.arange(NUM_VIEWS) - NUM_VIEWS // 2) * VIEW_SPACING
    timestamps = np.arange(NUM_VIEWS) * FRAME_PERIOD
    poses = np.stack([translation_pose(b) for b in view_offsets])

    t_all, x_all, y_all = [], [], []
    for ts, pose in zip(timestamps, poses):
        points_c = points_w - pose[:3, 3]
        pixels = np.rint(plane_camera.project(points_c)).astype(np.int64)
        assert np.all(plane_camera.is_in_image(pixels))

        t_all.append(np.full(len(pixels), ts))
        x_all.append(pixels[:, 0])
        y_all.append(pixels[:, 1])

    events = events_from_arrays(np.concatenate(t_all), np.concatenate(x_all), np.concatenate(y_all))
    trajectory = Trajectory(timestamps, poses)

    return {
        'events': events,
        'trajectory': trajectory,
        'T_w_rv': np.eye(4),
        'depth': PLANE_DEPTH,
        'edge_columns': [int(round(50 * x + 60)) for x in EDGE_XS],
        'edge_rows': (50 - EDGE_ROWS // 2, 50 + EDGE_ROWS // 2),
        'points_w': points_w
    }


@pytest.fixture
def random_point_cloud():
    """Fixture providing a random cloud with a dense cluster and sparse points."""
    rng = np.random.default_rng(7)
    cluster = rng.normal(0.0, 0.02, (200, 3)) + [0.0, 0.0, 2.0]
    sparse = rng.uniform(-1.0, 1.0, (100, 3)) + [0.0, 0.0, 3.0]
    return np.vstack([cluster, sparse])
