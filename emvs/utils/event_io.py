"""
Event Loading

Reads event streams into structured numpy arrays.
"""

import numpy as np
from pathlib import Path

from ..data_models import EVENT_DTYPE


def events_from_arrays(t: np.ndarray, x: np.ndarray, y: np.ndarray, p: np.ndarray = None) -> np.ndarray:
    """
    Pack event fields into an EVENT_DTYPE array sorted by timestamp.

    Args:
        t: Timestamps in seconds
        x: Pixel columns
        y: Pixel rows
        p: Polarities (defaults to positive)

    Returns:
        Structured event array
    """
    t = np.asarray(t, dtype=np.float64).ravel()
    x = np.asarray(x).ravel()
    y = np.asarray(y).ravel()
    if not (len(t) == len(x) == len(y)):
        raise ValueError("Event fields must have same length")
    if np.any(x < 0) or np.any(y < 0):
        raise ValueError("Event coordinates must be non-negative")
    coordinate_max = np.iinfo(EVENT_DTYPE['x']).max
    if np.any(x > coordinate_max) or np.any(y > coordinate_max):
        raise ValueError(f"Event coordinates must not exceed {coordinate_max}")

    events = np.empty(len(t), dtype=EVENT_DTYPE)
    events['t'] = t
    events['x'] = x
    events['y'] = y
    events['p'] = True if p is None else np.asarray(p).ravel() > 0

    order = np.argsort(events['t'], kind='stable')
    return events[order]


def load_events_txt(path: str) -> np.ndarray:
    """
    Load events from a text file with one 't x y p' event per line.

    Args:
        path: Path to the event file

    Returns:
        Structured event array sorted by timestamp
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"Event file not found: {path}")

    data = np.loadtxt(path, comments='#', ndmin=2)
    if data.size == 0:
        return np.empty(0, dtype=EVENT_DTYPE)
    if data.shape[1] < 3:
        raise ValueError(f"Expected at least 3 columns (t x y [p]) in event file, got {data.shape[1]}")

    polarity = data[:, 3] if data.shape[1] > 3 else None
    return events_from_arrays(data[:, 0], data[:, 1].astype(np.int64), data[:, 2].astype(np.int64), polarity)
