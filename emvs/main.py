"""
Main entry point for the EMVS depth mapping pipeline

Runs one mapping session over an event file and a camera trajectory and
writes the depth map, confidence map and point cloud.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import cv2
import numpy as np
import open3d as o3d

from emvs.data_models import MappingSummary
from emvs.geometry import PinholeCamera, Trajectory
from emvs.mapper import EMVSMapper
from emvs.utils.config_manager import ConfigManager
from emvs.utils.event_io import load_events_txt
from emvs.utils.visualization import create_depth_visualization, create_confidence_visualization


def run_mapping(mapper: EMVSMapper,
                events: np.ndarray,
                trajectory: Trajectory,
                reference_time: float,
                output_path: Path) -> MappingSummary:
    """
    Run one mapping session and save its outputs.

    Args:
        mapper: Configured mapper
        events: Event array sorted by time
        trajectory: Camera trajectory
        reference_time: Timestamp of the reference view
        output_path: Output directory

    Returns:
        Session summary
    """
    start_time = time.time()

    T_w_rv, success = trajectory.get_pose_at(reference_time)
    if not success:
        raise ValueError(f"No pose available at reference time {reference_time:.6f}")

    mapper.initialize_dsi(T_w_rv)
    if not mapper.update_dsi(events, trajectory):
        raise ValueError("Not enough events to fill one packet")

    result = mapper.get_depth_map_from_dsi()
    raw_points = mapper.point_cloud_generator.back_project(result.depth_map, result.mask)[1]
    cloud = mapper.get_point_cloud(result.depth_map, result.mask)

    np.save(output_path / "depth_map.npy", result.depth_map)
    np.save(output_path / "confidence_map.npy", result.confidence_map)
    np.save(output_path / "mask.npy", result.mask)
    cv2.imwrite(str(output_path / "depth_map.png"),
                create_depth_visualization(result.depth_map, result.mask,
                                           mapper.dsi_shape.min_depth, mapper.dsi_shape.max_depth))
    cv2.imwrite(str(output_path / "confidence_map.png"), create_confidence_visualization(result.confidence_map))
    o3d.io.write_point_cloud(str(output_path / "point_cloud.ply"), cloud.to_open3d())

    return MappingSummary(
        num_events=len(events),
        num_packets=mapper.num_packets,
        num_valid_pixels=result.num_valid,
        num_points=len(cloud),
        processing_time=time.time() - start_time,
        points_removed=len(raw_points) - len(cloud)
    )


def main(argv=None):
    """Main entry point for the EMVS mapping pipeline."""
    parser = argparse.ArgumentParser(
        description="Event-based Multi-View Stereo depth mapping"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--events",
        type=str,
        required=True,
        help="Event file with one 't x y p' event per line"
    )

    parser.add_argument(
        "--trajectory",
        type=str,
        required=True,
        help="Camera poses in TUM format ('t tx ty tz qx qy qz qw')"
    )

    parser.add_argument(
        "--reference-time",
        type=float,
        help="Timestamp of the reference view (default: median event time)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default="output",
        help="Output directory for results"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    # Load configuration
    try:
        config = ConfigManager(args.config)
        print(f"Loaded configuration from: {config.config_path}")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    # Load inputs
    try:
        events = load_events_txt(args.events)
        trajectory = Trajectory.from_tum_file(args.trajectory)
    except (FileNotFoundError, OSError, ValueError) as e:
        print(f"Error loading input data: {e}")
        return 1

    if len(events) == 0:
        print(f"No events in {args.events}")
        return 1

    # Create output directory
    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    reference_time = args.reference_time
    if reference_time is None:
        reference_time = float(events['t'][len(events) // 2])

    print("EMVS Depth Mapping")
    print("=" * 50)
    print(f"Events: {len(events)} from {args.events}")
    print(f"Poses: {len(trajectory)} from {args.trajectory}")
    print(f"Reference time: {reference_time:.6f} s")
    print(f"Output directory: {args.output_dir}")

    try:
        camera = PinholeCamera.from_config(config.get_camera_params())
        mapper = EMVSMapper(camera, config)
        summary = run_mapping(mapper, events, trajectory, reference_time, output_path)
    except ValueError as e:
        print(f"Mapping failed: {e}")
        return 1

    print(f"\nVirtual views: {summary.num_packets}")
    print(f"Valid depth pixels: {summary.num_valid_pixels}")
    print(f"Points: {summary.num_points} ({summary.points_removed} outliers removed)")
    print(f"Processing time: {summary.processing_time:.2f} s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
