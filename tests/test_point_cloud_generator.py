"""
Tests for point cloud generation and outlier removal
"""

import pytest
import numpy as np

from emvs.data_models import DepthPoint, PointCloud, PointCloudOptions
from emvs.geometry import PinholeCamera
from emvs.reconstruction import PointCloudGenerator, OutlierRemover


@pytest.fixture
def virtual_camera():
    """Reference-view camera with fx = fy = 100 centered on a 120x100 image."""
    return PinholeCamera.from_parameters([0, 0, 0, 0, 100.0, 100.0, 60.0, 50.0], (120, 100))


@pytest.fixture
def generator(virtual_camera, config_manager):
    """Fixture providing a point cloud generator."""
    return PointCloudGenerator(virtual_camera, config_manager)


class TestPointCloudGenerator:
    """Test suite for back-projection of depth maps."""

    def test_back_project(self, generator):
        """Valid pixels are lifted along their rays to the map depth."""
        depth_map = np.full((100, 120), 2.0, dtype=np.float32)
        mask = np.zeros((100, 120), dtype=np.uint8)
        mask[40, 80] = 1
        mask[50, 60] = 1

        pixels, points = generator.back_project(depth_map, mask)

        np.testing.assert_allclose(pixels, [[80.0, 40.0], [60.0, 50.0]])
        np.testing.assert_allclose(points, [[0.4, -0.2, 2.0], [0.0, 0.0, 2.0]], atol=1e-12)

    def test_non_positive_depths_dropped(self, generator):
        """Pixels without a positive depth do not become points."""
        depth_map = np.full((100, 120), 2.0, dtype=np.float32)
        depth_map[10, 10] = 0.0
        mask = np.zeros((100, 120), dtype=np.uint8)
        mask[10, 10] = 1
        mask[20, 20] = 1

        _, points = generator.back_project(depth_map, mask)

        assert len(points) == 1

    def test_shape_mismatch(self, generator):
        """Depth map and mask must match."""
        with pytest.raises(ValueError, match="same dimensions"):
            generator.back_project(np.ones((100, 120)), np.ones((100, 100)))

    def test_depth_points(self, generator):
        """Depth points carry inverse depth, variance and the reference pose."""
        depth_map = np.full((100, 120), 4.0, dtype=np.float32)
        mask = np.zeros((100, 120), dtype=np.uint8)
        mask[40, 80] = 1
        T_w_rv = np.eye(4)
        T_w_rv[:3, 3] = [1.0, 2.0, 3.0]

        depth_points = generator.generate_depth_points(depth_map, mask, T_w_rv)

        assert len(depth_points) == 1
        point = depth_points[0]
        assert isinstance(point, DepthPoint)
        assert (point.row, point.col) == (40, 80)
        assert point.pixel == (80.0, 40.0)
        assert point.inv_depth == pytest.approx(0.25)
        assert point.variance == pytest.approx(0.1)
        np.testing.assert_allclose(point.p_cam, [0.8, -0.4, 4.0], atol=1e-12)
        np.testing.assert_array_equal(point.T_w_rv, T_w_rv)

        # Later changes to the caller's pose do not leak into the point
        T_w_rv[:3, 3] = 0.0
        assert point.T_w_rv[0, 3] == 1.0

    def test_point_cloud_intensity_is_inverse_depth(self, generator):
        """Intensities of the cloud are the inverse depths of its points."""
        depth_map = np.full((100, 120), 2.0, dtype=np.float32)
        depth_map[:, 61:] = 2.5
        mask = np.zeros((100, 120), dtype=np.uint8)
        mask[30:70, 59:63] = 1

        cloud = generator.generate_point_cloud(depth_map, mask, PointCloudOptions(min_num_neighbors=0))

        assert len(cloud) == 160
        np.testing.assert_allclose(cloud.intensities, 1.0 / cloud.points[:, 2])

    def test_empty_mask(self, generator):
        """An empty mask gives an empty cloud."""
        cloud = generator.generate_point_cloud(np.ones((100, 120)), np.zeros((100, 120), dtype=np.uint8))

        assert len(cloud) == 0
        assert cloud.points.shape == (0, 3)


class TestOutlierRemover:
    """Test suite for radius outlier removal."""

    @pytest.fixture
    def remover(self, config_manager):
        """Fixture providing an outlier remover."""
        return OutlierRemover(config_manager)

    @pytest.fixture
    def patch_with_outlier(self):
        """Dense 5x5 patch of points 1 cm apart plus one isolated point."""
        xs, ys = np.meshgrid(np.arange(5) * 0.01, np.arange(5) * 0.01)
        patch = np.column_stack([xs.ravel(), ys.ravel(), np.full(25, 2.0)])
        points = np.vstack([patch, [[1.0, 1.0, 3.0]]])
        return PointCloud(points=points, intensities=1.0 / points[:, 2])

    def test_isolated_point_removed(self, remover, patch_with_outlier):
        """The isolated point is dropped, the dense patch kept."""
        filtered, indices = remover.remove_radius_outliers(patch_with_outlier, radius=0.05, min_neighbors=3)

        np.testing.assert_array_equal(indices, np.arange(25))
        assert len(filtered) == 25
        np.testing.assert_allclose(filtered.intensities, 0.5)

    def test_zero_neighbors_keeps_everything(self, remover, patch_with_outlier):
        """Requiring no neighbors keeps every point."""
        filtered, indices = remover.remove_radius_outliers(patch_with_outlier, min_neighbors=0)

        assert len(filtered) == len(patch_with_outlier)

    def test_empty_cloud(self, remover):
        """Empty clouds pass through unchanged."""
        filtered, indices = remover.remove_radius_outliers(PointCloud.empty())

        assert len(filtered) == 0
        assert len(indices) == 0

    def test_invalid_parameters(self, remover, patch_with_outlier):
        """Non-positive radii and negative neighbor counts are rejected."""
        with pytest.raises(ValueError, match="radius"):
            remover.remove_radius_outliers(patch_with_outlier, radius=0.0)

        with pytest.raises(ValueError, match="neighbors"):
            remover.remove_radius_outliers(patch_with_outlier, min_neighbors=-1)

    def test_cluster_survives(self, remover, random_point_cloud):
        """Most of the dense cluster survives while sparse points are removed."""
        cloud = PointCloud(points=random_point_cloud, intensities=1.0 / random_point_cloud[:, 2])

        _, indices = remover.remove_radius_outliers(cloud, radius=0.05, min_neighbors=3)

        assert np.sum(indices < 200) >= 150
        assert np.sum(indices >= 200) <= 10

    @pytest.mark.property
    def test_property_monotonic_in_min_neighbors(self, remover, random_point_cloud):
        """
        Property test: raising the neighbor threshold never adds points, and
        survivors at a higher threshold survive every lower one.
        """
        cloud = PointCloud(points=random_point_cloud, intensities=np.ones(len(random_point_cloud)))

        previous = set(range(len(cloud)))
        for min_neighbors in range(0, 9):
            _, indices = remover.remove_radius_outliers(cloud, radius=0.05, min_neighbors=min_neighbors)
            current = set(indices.tolist())

            assert current <= previous
            previous = current
