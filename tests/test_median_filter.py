"""
Tests for masked median filtering and border removal
"""

import pytest
import numpy as np

from emvs.depth.median_filter import masked_median_filter, remove_mask_boundary


class TestMaskedMedianFilter:
    """Test suite for the masked median filter."""

    @pytest.fixture
    def step_image(self):
        """Two-level step image, left half 10 and right half 50."""
        image = np.full((20, 20), 10, dtype=np.uint8)
        image[:, 10:] = 50
        return image

    def test_salt_noise_removed_and_step_preserved(self, step_image):
        """Isolated outliers vanish while the edge stays sharp."""
        noisy = step_image.copy()
        noisy[5, 3] = 255
        noisy[12, 4] = 255
        noisy[6, 15] = 0
        mask = np.ones_like(noisy)

        filtered = masked_median_filter(noisy, mask, 3)

        np.testing.assert_array_equal(filtered, step_image)
        assert filtered.dtype == np.uint8

    def test_idempotent_on_clean_step(self, step_image):
        """Filtering a clean step twice changes nothing."""
        mask = np.ones_like(step_image)

        once = masked_median_filter(step_image, mask, 5)
        twice = masked_median_filter(once, mask, 5)

        np.testing.assert_array_equal(once, step_image)
        np.testing.assert_array_equal(twice, once)

    def test_unmasked_pixels_ignored(self):
        """Unmasked pixels neither change nor contribute to the median."""
        image = np.full((5, 5), 200, dtype=np.uint8)
        image[2, 2] = 7
        mask = np.zeros_like(image)
        mask[2, 2] = 1

        filtered = masked_median_filter(image, mask, 5)

        assert filtered[2, 2] == 7
        assert np.count_nonzero(filtered == 200) == 24

    def test_lower_median_for_even_counts(self):
        """With an even number of valid values the lower median is taken."""
        image = np.zeros((3, 4), dtype=np.uint8)
        image[1, 1] = 3
        image[1, 2] = 9
        mask = np.zeros_like(image)
        mask[1, 1:3] = 1

        filtered = masked_median_filter(image, mask, 3)

        assert filtered[1, 1] == 3
        assert filtered[1, 2] == 3

    def test_empty_mask(self, step_image):
        """Without valid pixels the image is returned unchanged."""
        filtered = masked_median_filter(step_image, np.zeros_like(step_image), 3)

        np.testing.assert_array_equal(filtered, step_image)

    @pytest.mark.parametrize("window_size", [0, 2, 4, -3])
    def test_invalid_window(self, step_image, window_size):
        """Even or non-positive windows are rejected."""
        with pytest.raises(ValueError, match="odd and positive"):
            masked_median_filter(step_image, np.ones_like(step_image), window_size)

    def test_shape_mismatch(self, step_image):
        """Image and mask must match."""
        with pytest.raises(ValueError, match="same dimensions"):
            masked_median_filter(step_image, np.ones((10, 10), dtype=np.uint8), 3)


class TestRemoveMaskBoundary:
    """Test suite for border removal."""

    def test_border_band_cleared(self):
        """Pixels within the band along every edge are cleared."""
        mask = np.ones((10, 8), dtype=np.uint8)

        cleaned = remove_mask_boundary(mask, 1)

        assert np.count_nonzero(cleaned) == 7 * 5
        assert cleaned[2:9, 2:7].all()
        assert not cleaned[:2].any() and not cleaned[9:].any()
        assert not cleaned[:, :2].any() and not cleaned[:, 7:].any()

    def test_input_not_modified(self):
        """The input mask is left untouched."""
        mask = np.ones((6, 6), dtype=np.uint8)

        remove_mask_boundary(mask, 2)

        assert mask.all()
