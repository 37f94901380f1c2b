"""
DSI Builder

Space-sweep voting of events into the Disparity Space Image.

Events are grouped in packets that share one pose. Each packet is first
warped onto the plane Z = Z0 of the reference view with a planar homography,
then transferred to every other depth plane Z_i with a cheap linear
fractional map before bilinear voting.
"""

import os
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, List
import logging

from ..data_models import WarpedEvents
from ..geometry.pinhole_camera import PinholeCamera
from ..utils.config_manager import ConfigManager
from .depth_vector import DepthVector
from .rectification import RectificationTable
from .voxel_grid import VoxelGrid


# Denominators below this make the transfer to plane Z_i undefined
DEGENERATE_DENOMINATOR = 1e-9


class DSIBuilder:
    """Builds the DSI from event packets and the poses of the event camera."""

    def __init__(self,
                 camera: PinholeCamera,
                 virtual_camera: PinholeCamera,
                 depth_vector: DepthVector,
                 config_manager: Optional[ConfigManager] = None):
        """
        Initialize DSI builder.

        Args:
            camera: Real (distorted) event camera
            virtual_camera: Pinhole camera of the reference view
            depth_vector: Depth hypotheses of the DSI
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        self.camera = camera
        self.virtual_camera = virtual_camera
        self.depth_vector = depth_vector
        self.depths = depth_vector.values
        self.rectification_table = RectificationTable(camera)

        # Get mapping configuration
        mapping_config = self.config.get_mapping_params()

        self.packet_size = int(mapping_config.get('packet_size', 1024))
        num_threads = int(mapping_config.get('num_threads', 0))
        self.num_threads = num_threads if num_threads > 0 else (os.cpu_count() or 1)
        self.parallel_min_events = int(mapping_config.get('parallel_min_events', 20000))

        self.logger.info(f"DSI builder initialized: packet_size={self.packet_size}, "
                         f"{len(self.depths)} depth planes, threads={self.num_threads}")

    def warp_events(self,
                    events: np.ndarray,
                    trajectory,
                    T_w_rv: np.ndarray) -> Optional[WarpedEvents]:
        """
        Transfer events to the reference view through the plane Z = Z0.

        Args:
            events: Event array (EVENT_DTYPE), sorted by time
            trajectory: Object providing get_pose_at(t) -> (T_w_c, success)
            T_w_rv: Pose of the reference view

        Returns:
            Warped event locations and per-packet camera centers, or None if
            fewer events than one packet were given
        """
        num_events = len(events)
        if num_events < self.packet_size:
            self.logger.warning(f"Number of events ({num_events}) < packet size ({self.packet_size})")
            return None

        z0 = self.depth_vector.baseline_depth
        K_virtual = self.virtual_camera.camera_matrix
        T_rv_w = np.linalg.inv(T_w_rv)

        locations: List[np.ndarray] = []
        camera_centers: List[np.ndarray] = []
        skipped_degenerate = 0

        current_event = 0
        while current_event + self.packet_size <= num_events:
            # Events in a packet share the timestamp of its mid-point
            frame_ts = events['t'][current_event + self.packet_size // 2]

            T_w_ev, success = trajectory.get_pose_at(frame_ts)
            if not success:
                current_event += 1
                continue

            T_rv_ev = T_rv_w @ T_w_ev
            T_ev_rv = np.linalg.inv(T_rv_ev)
            R = T_ev_rv[:3, :3]
            t = T_ev_rv[:3, 3]

            # Planar homography mapping the reference view through Z = Z0 to the event camera
            H_z0_inv = R * z0
            H_z0_inv[:, 2] += t
            try:
                H_z0_px = K_virtual @ np.linalg.inv(H_z0_inv)
            except np.linalg.LinAlgError:
                # Event camera center lies on the plane Z = Z0
                skipped_degenerate += 1
                current_event += self.packet_size
                continue

            packet = events[current_event:current_event + self.packet_size]
            rays = self.rectification_table.lookup(packet['x'], packet['y'])

            warped = np.column_stack([rays, np.ones(len(rays))]) @ H_z0_px.T
            with np.errstate(divide='ignore', invalid='ignore'):
                locations.append(warped[:, :2] / warped[:, 2:3])

            # Optical center of the event camera in the reference view
            camera_centers.append(-R.T @ t)
            current_event += self.packet_size

        if skipped_degenerate:
            self.logger.debug(f"Skipped {skipped_degenerate} packets with degenerate homography")
        self.logger.info(f"Number of virtual views: {len(camera_centers)}")

        if camera_centers:
            return WarpedEvents(locations=np.vstack(locations),
                                camera_centers=np.vstack(camera_centers),
                                packet_size=self.packet_size)

        return WarpedEvents(locations=np.zeros((0, 2)),
                            camera_centers=np.zeros((0, 3)),
                            packet_size=self.packet_size)

    def fill_voxel_grid(self, grid: VoxelGrid, warped: WarpedEvents,
                        num_threads: Optional[int] = None) -> None:
        """
        Vote the warped events into every depth plane of the grid.

        Depth planes are split into contiguous ranges, one per worker; a worker
        only writes the slices of its own range.

        Args:
            grid: Voxel grid to accumulate into
            warped: Output of warp_events()
            num_threads: Overrides the configured number of threads
        """
        if grid.dim_z != len(self.depths):
            raise ValueError("Voxel grid depth does not match the number of depth planes")
        if warped.num_packets == 0:
            return

        threads = num_threads or self.num_threads
        if len(warped.locations) < self.parallel_min_events:
            threads = 1
        threads = min(threads, len(self.depths))

        plane_ranges = np.array_split(np.arange(len(self.depths)), threads)

        if threads == 1:
            self._vote_planes(grid, warped, plane_ranges[0])
            return

        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = [executor.submit(self._vote_planes, grid, warped, planes)
                       for planes in plane_ranges]
            for future in futures:
                future.result()

    def _vote_planes(self, grid: VoxelGrid, warped: WarpedEvents, planes: np.ndarray) -> None:
        """Vote all events into the given depth planes."""
        params = self.virtual_camera.write_parameters()
        fx, fy, cx, cy = params[4], params[5], params[6], params[7]
        z0 = self.depths[0]

        C = warped.camera_centers
        packet = np.repeat(np.arange(warped.num_packets), warped.packet_size)
        x_z0 = warped.locations[:, 0]
        y_z0 = warped.locations[:, 1]

        for depth_plane in planes:
            zi = self.depths[depth_plane]

            # Per-packet coefficients of the transfer from plane Z0 to plane Zi
            a = z0 * (zi - C[:, 2])
            bx = (z0 - zi) * (C[:, 0] * fx + C[:, 2] * cx)
            by = (z0 - zi) * (C[:, 1] * fy + C[:, 2] * cy)
            d = zi * (z0 - C[:, 2])

            valid_packet = np.abs(d) > DEGENERATE_DENOMINATOR
            safe_d = np.where(valid_packet, d, 1.0)
            keep = valid_packet[packet]

            with np.errstate(invalid='ignore', over='ignore'):
                X = (x_z0 * a[packet] + bx[packet]) / safe_d[packet]
                Y = (y_z0 * a[packet] + by[packet]) / safe_d[packet]

            # Exactly one accumulation per depth plane
            grid.accumulate(X[keep], Y[keep], grid.get_slice(depth_plane))
