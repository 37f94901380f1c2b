"""
Camera Trajectory

Stores timestamped camera poses and interpolates the pose at arbitrary times.
"""

import numpy as np
from typing import Optional, Tuple
import logging
from scipy.spatial.transform import Rotation, Slerp


class Trajectory:
    """Timestamped camera-to-world poses with linear / spherical interpolation."""

    def __init__(self,
                 timestamps: np.ndarray,
                 poses: np.ndarray,
                 max_time_gap: Optional[float] = None):
        """
        Initialize trajectory.

        Args:
            timestamps: N sorted timestamps in seconds
            poses: Nx4x4 camera-to-world transforms T_w_c
            max_time_gap: Refuse to interpolate across samples further apart than this
        """
        self.logger = logging.getLogger(__name__)

        self.timestamps = np.asarray(timestamps, dtype=np.float64).ravel()
        self.poses = np.asarray(poses, dtype=np.float64)

        if len(self.timestamps) < 1:
            raise ValueError("Trajectory needs at least one pose")
        if self.poses.shape != (len(self.timestamps), 4, 4):
            raise ValueError("Poses must be an Nx4x4 array matching the timestamps")
        if np.any(np.diff(self.timestamps) <= 0):
            raise ValueError("Trajectory timestamps must be strictly increasing")

        self.max_time_gap = max_time_gap
        self._rotations = Rotation.from_matrix(self.poses[:, :3, :3])
        self._translations = self.poses[:, :3, 3]

        self.logger.debug(f"Trajectory with {len(self)} poses over "
                          f"[{self.timestamps[0]:.6f}, {self.timestamps[-1]:.6f}] s")

    def __len__(self) -> int:
        return len(self.timestamps)

    @classmethod
    def from_tum_file(cls, path: str, max_time_gap: Optional[float] = None) -> 'Trajectory':
        """
        Load a trajectory in TUM format ('t tx ty tz qx qy qz qw' per line).

        Args:
            path: Path to the pose file
            max_time_gap: See constructor

        Returns:
            Trajectory sorted by timestamp
        """
        data = np.loadtxt(path, comments='#', ndmin=2)
        if data.shape[1] != 8:
            raise ValueError(f"Expected 8 columns in pose file, got {data.shape[1]}")

        order = np.argsort(data[:, 0], kind='stable')
        data = data[order]

        poses = np.tile(np.eye(4), (len(data), 1, 1))
        poses[:, :3, :3] = Rotation.from_quat(data[:, 4:8]).as_matrix()
        poses[:, :3, 3] = data[:, 1:4]

        return cls(data[:, 0], poses, max_time_gap=max_time_gap)

    def get_pose_at(self, timestamp: float) -> Tuple[Optional[np.ndarray], bool]:
        """
        Interpolate the camera pose at a given time.

        Args:
            timestamp: Query time in seconds

        Returns:
            Tuple of (T_w_c or None, success)
        """
        t = float(timestamp)
        if t < self.timestamps[0] or t > self.timestamps[-1]:
            return None, False

        upper = int(np.searchsorted(self.timestamps, t, side='left'))
        if self.timestamps[upper] == t:
            return self.poses[upper].copy(), True

        lower = upper - 1
        t0, t1 = self.timestamps[lower], self.timestamps[upper]
        if self.max_time_gap is not None and t1 - t0 > self.max_time_gap:
            return None, False

        alpha = (t - t0) / (t1 - t0)
        slerp = Slerp([t0, t1], self._rotations[[lower, upper]])

        pose = np.eye(4)
        pose[:3, :3] = slerp([t]).as_matrix()[0]
        pose[:3, 3] = (1.0 - alpha) * self._translations[lower] + alpha * self._translations[upper]
        return pose, True
