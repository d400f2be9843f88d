"""
Recording segmentation.

A combined file may hold several back-to-back recordings of equal length.
Splits are 1-based, inclusive ranges over the time axis.
"""

import logging
from typing import List, Sequence

import numpy as np

from gcamp_h5.utils.exceptions import InvalidSegmentation


logger = logging.getLogger(__name__)


def get_idx_splits(n_time: int, n_recording: int = 1) -> List[range]:
    """
    Partition timepoints 1..n_time into n_recording equal contiguous ranges.

    Args:
        n_time: Number of timepoints
        n_recording: Number of recordings in the file (default: 1)

    Returns:
        List of ranges; ``range(first, last + 1)`` for each recording

    Raises:
        InvalidSegmentation: If n_recording < 1, n_recording > n_time, or
            n_time is not divisible by n_recording

    Example:
        >>> get_idx_splits(10, 2)
        [range(1, 6), range(6, 11)]
    """
    if n_recording < 1:
        raise InvalidSegmentation(
            f"n_recording must be >= 1, got {n_recording}",
            n_time=n_time,
            n_recording=n_recording,
        )
    if n_recording > n_time:
        raise InvalidSegmentation(
            f"Cannot split {n_time} timepoints into {n_recording} recordings",
            n_time=n_time,
            n_recording=n_recording,
        )
    if n_time % n_recording != 0:
        raise InvalidSegmentation(
            f"{n_time} timepoints do not split evenly into {n_recording} recordings",
            n_time=n_time,
            n_recording=n_recording,
        )

    length = n_time // n_recording
    return [range(1 + i * length, 1 + (i + 1) * length) for i in range(n_recording)]


def splits_to_table(splits: Sequence[range]) -> np.ndarray:
    """(n_recording, 2) int64 table of (first, last) timepoints."""
    if len(splits) == 0:
        return np.empty((0, 2), dtype=np.int64)
    return np.array([[r[0], r[-1]] for r in splits], dtype=np.int64)
