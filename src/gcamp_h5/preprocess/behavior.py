"""
Behavioral signal preprocessing.

Velocity gap filling and low-magnitude filtering, plus reversal indicator
and reversal event extraction from the reversal source channel.

Event convention: events are 1-based closed intervals (start, end), where
start is the first timepoint of a run of 1s and end is the last.
"""

import logging
from typing import Any

import numpy as np

from gcamp_h5.utils.exceptions import ValidationError


logger = logging.getLogger(__name__)

DEFAULT_VELOCITY_FILTER_THRESHOLD: float = 0.2


def impute_missing(values: Any) -> np.ndarray:
    """
    Fill missing samples (NaN/None) by linear interpolation over sample index.

    Gaps at the start or end take the nearest valid sample.

    Args:
        values: 1-D sequence, may contain NaN or None

    Returns:
        float64 array without NaN

    Raises:
        ValidationError: If the signal is not 1-D or has no valid samples
    """
    y = np.array(values, dtype=np.float64)
    if y.ndim != 1:
        raise ValidationError(f"Signal must be 1-D, got shape {y.shape}", field="velocity")

    bad = ~np.isfinite(y)
    if not np.any(bad):
        return y

    good = np.flatnonzero(~bad)
    if good.size == 0:
        raise ValidationError("Signal has no valid samples to interpolate from", field="velocity")

    y[bad] = np.interp(np.flatnonzero(bad), good, y[good])
    logger.debug(f"Imputed {int(bad.sum())} of {len(y)} samples")
    return y


def filter_velocity(
    velocity: Any,
    threshold: float = DEFAULT_VELOCITY_FILTER_THRESHOLD,
) -> np.ndarray:
    """
    Gap-fill velocity and zero out low-magnitude noise.

    Samples with ``abs(v) < threshold`` are set to 0.0. Samples at or above
    the threshold keep their (gap-filled) value.

    Args:
        velocity: 1-D velocity signal, may contain missing samples
        threshold: Magnitude below which a sample counts as noise (default: 0.2)

    Returns:
        Filtered velocity (float64)

    Raises:
        ValueError: If threshold is negative
    """
    if threshold < 0:
        raise ValueError(f"threshold must be >= 0, got {threshold}")

    filtered = impute_missing(velocity)
    filtered[np.abs(filtered) < threshold] = 0.0
    return filtered


def reversal_indicator(rev_source: Any) -> np.ndarray:
    """
    Binary reversal indicator: 1 where the source is > 0, else 0.

    NaN samples count as 0.
    """
    rev = np.asarray(rev_source, dtype=np.float64).ravel()
    with np.errstate(invalid="ignore"):
        return (rev > 0).astype(np.int64)


def extract_events(indicator: Any) -> np.ndarray:
    """
    Extract contiguous runs of 1 as (start, end) events.

    Starts are 0->1 transitions, ends are 1->0 transitions. A run already
    active at the first sample starts at 1; a run still active at the last
    sample ends at len(indicator), so starts and ends always pair.

    Args:
        indicator: 1-D 0/1 sequence

    Returns:
        (n_events, 2) int64 array of 1-based closed intervals

    Example:
        >>> extract_events([0, 1, 1, 0, 1, 0])
        array([[2, 3],
               [5, 5]])
        >>> extract_events([1, 1, 0, 0])
        array([[1, 2]])
    """
    vec = np.asarray(indicator).astype(np.int64).ravel()
    if vec.size == 0:
        return np.empty((0, 2), dtype=np.int64)

    d = np.diff(vec)
    starts = np.flatnonzero(d == 1) + 2
    ends = np.flatnonzero(d == -1) + 1

    if vec[0] == 1:
        starts = np.concatenate([[1], starts])
    if vec[-1] == 1:
        ends = np.concatenate([ends, [len(vec)]])

    return np.column_stack([starts, ends]).astype(np.int64)
