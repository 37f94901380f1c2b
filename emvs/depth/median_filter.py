"""
Masked Median Filtering

Median filter restricted to the valid pixels of a mask, used to clean up
the depth-cell index map.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


# Masked pixels filtered per vectorized step
FILTER_CHUNK_SIZE = 65536


def masked_median_filter(image: np.ndarray, mask: np.ndarray, window_size: int) -> np.ndarray:
    """
    Median filter over masked pixels only.

    Every masked pixel is replaced by the lower median of the masked pixels in
    the window centered on it (the window is truncated at the image border).
    Unmasked pixels neither contribute nor change.

    Args:
        image: 2D image (e.g. uint8 depth-cell indices)
        mask: 2D validity mask, non-zero = valid
        window_size: Odd side length of the square window

    Returns:
        Filtered image with the dtype of the input
    """
    if window_size < 1 or window_size % 2 == 0:
        raise ValueError(f"Median window size must be odd and positive, got {window_size}")
    if image.shape != mask.shape:
        raise ValueError("Image and mask must have same dimensions")

    filtered = image.copy()
    rows, cols = np.nonzero(mask)
    if rows.size == 0 or window_size == 1:
        return filtered

    half = window_size // 2
    padded_values = np.pad(image.astype(np.float64), half, mode='constant')
    padded_mask = np.pad(mask > 0, half, mode='constant', constant_values=False)

    value_windows = sliding_window_view(padded_values, (window_size, window_size))
    mask_windows = sliding_window_view(padded_mask, (window_size, window_size))

    for start in range(0, rows.size, FILTER_CHUNK_SIZE):
        r = rows[start:start + FILTER_CHUNK_SIZE]
        c = cols[start:start + FILTER_CHUNK_SIZE]

        valid = mask_windows[r, c].reshape(len(r), -1)
        values = np.where(valid, value_windows[r, c].reshape(len(r), -1), np.inf)
        values.sort(axis=1)

        # The center pixel is masked, so every window holds at least one value
        counts = valid.sum(axis=1)
        medians = values[np.arange(len(r)), (counts - 1) // 2]
        filtered[r, c] = medians.astype(image.dtype)

    return filtered


def remove_mask_boundary(mask: np.ndarray, border_size: int) -> np.ndarray:
    """
    Invalidate a band along the image border.

    Args:
        mask: 2D validity mask
        border_size: Pixels with x <= b, x >= W - b, y <= b or y >= H - b are cleared

    Returns:
        Copy of the mask with the border band zeroed
    """
    cleaned = mask.copy()
    height, width = mask.shape
    b = int(border_size)

    cleaned[:b + 1, :] = 0
    cleaned[max(height - b, 0):, :] = 0
    cleaned[:, :b + 1] = 0
    cleaned[:, max(width - b, 0):] = 0

    return cleaned
