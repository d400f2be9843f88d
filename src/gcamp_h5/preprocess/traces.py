"""
Neuron trace preprocessing.

Includes NaN-neuron removal with original/filtered index bookkeeping,
baseline normalization (F/F20, F/Fmean), and reconstruction of dense
[roi, time] arrays from sparse {timepoint: value} traces.

Index convention: every index produced here (original/filtered neuron index,
timepoint keys of sparse traces) is 1-based, matching the on-disk tables.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from gcamp_h5.utils.exceptions import ValidationError
from gcamp_h5.utils.logging import get_logger


logger = logging.getLogger(__name__)

DEFAULT_BASELINE_PERCENTILE: float = 20.0


# =============================================================================
# NaN neuron removal
# =============================================================================

@dataclass(frozen=True)
class IndexMap:
    """
    Bidirectional map between original and filtered neuron indices.

    Attributes:
        filtered_to_original: (n_kept,) 1-based original index of each kept row
        original_to_filtered: (n_full,) 1-based filtered index of each original
            row, 0 for neurons that were dropped
    """
    filtered_to_original: np.ndarray
    original_to_filtered: np.ndarray

    @property
    def n_full(self) -> int:
        return len(self.original_to_filtered)

    @property
    def n_kept(self) -> int:
        return len(self.filtered_to_original)

    @property
    def n_dropped(self) -> int:
        return self.n_full - self.n_kept

    @property
    def changed(self) -> bool:
        """True if at least one neuron was dropped."""
        return self.n_dropped > 0

    @property
    def dropped(self) -> np.ndarray:
        """1-based original indices of dropped neurons."""
        return np.flatnonzero(self.original_to_filtered == 0) + 1

    def org_to_skip_table(self) -> np.ndarray:
        """(n_kept, 2) table of (original, filtered) pairs, in original order."""
        kept = np.arange(1, self.n_kept + 1)
        return np.column_stack([self.filtered_to_original, kept]).astype(np.int64)

    def skip_to_org_table(self) -> np.ndarray:
        """(n_kept, 2) table of (filtered, original) pairs."""
        kept = np.arange(1, self.n_kept + 1)
        return np.column_stack([kept, self.filtered_to_original]).astype(np.int64)


def remove_nan_neurons(
    trace: Any,
    logger: Optional[logging.Logger] = None,
    warn: bool = True,
) -> Tuple[np.ndarray, IndexMap]:
    """
    Drop neurons whose whole trace is NaN.

    Args:
        trace: (n_neuron, n_time) trace matrix
        logger: Logger for the dropped-neuron warning (module logger if None)
        warn: Log the dropped-neuron warning

    Returns:
        Tuple of (filtered trace (n_kept, n_time), IndexMap)

    Raises:
        ValidationError: If trace is not 2-D

    Example:
        >>> trace = np.array([[1.0, 2.0], [np.nan, np.nan], [3.0, np.nan]])
        >>> filtered, index_map = remove_nan_neurons(trace)
        >>> index_map.filtered_to_original
        array([1, 3])
        >>> index_map.original_to_filtered
        array([1, 0, 2])
    """
    log = get_logger(__name__, logger)
    trace = np.asarray(trace, dtype=np.float64)

    if trace.ndim != 2:
        raise ValidationError(
            f"Trace matrix must be 2-D (neuron, time), got shape {trace.shape}",
            entity="trace",
        )

    n_full = trace.shape[0]
    keep = ~np.all(np.isnan(trace), axis=1)
    n_kept = int(keep.sum())

    filtered_to_original = np.flatnonzero(keep).astype(np.int64) + 1
    original_to_filtered = np.zeros(n_full, dtype=np.int64)
    original_to_filtered[keep] = np.arange(1, n_kept + 1)

    index_map = IndexMap(
        filtered_to_original=filtered_to_original,
        original_to_filtered=original_to_filtered,
    )

    if warn and index_map.changed:
        log.warning(
            f"NaN neurons removed: {index_map.n_dropped} of {n_full} "
            f"(original indices {index_map.dropped.tolist()})"
        )

    return trace[keep], index_map


# =============================================================================
# Normalization
# =============================================================================

def percentile_baseline(row: np.ndarray, q: float = DEFAULT_BASELINE_PERCENTILE) -> float:
    """NaN-aware q-th percentile of a trace."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return float(np.nanpercentile(row, q))


def mean_baseline(row: np.ndarray) -> float:
    """NaN-aware mean of a trace."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return float(np.nanmean(row))


def normalize_traces(
    trace: Any,
    baseline: Callable[[np.ndarray], float] = percentile_baseline,
) -> np.ndarray:
    """
    Divide each neuron's trace by its own baseline value.

    A zero or NaN baseline yields inf/NaN in that row; it is not an error.

    Args:
        trace: (n_neuron, n_time) trace matrix
        baseline: Per-row statistic, e.g. percentile_baseline or mean_baseline

    Returns:
        Normalized trace, same shape as input
    """
    trace = np.asarray(trace, dtype=np.float64)
    if trace.ndim != 2:
        raise ValidationError(
            f"Trace matrix must be 2-D (neuron, time), got shape {trace.shape}",
            entity="trace",
        )

    baselines = np.array([baseline(row) for row in trace], dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore"):
        return trace / baselines[:, np.newaxis]


# =============================================================================
# Sparse -> dense reconstruction
# =============================================================================

def _fill_row(out: np.ndarray, sparse: Mapping[Any, Any], max_t: int, roi: Any = None) -> None:
    for timepoint, value in sparse.items():
        t = int(timepoint)
        if not 1 <= t <= max_t:
            raise ValidationError(
                f"Timepoint {t} outside recording range [1, {max_t}]",
                entity="roi" if roi is not None else "background",
                entity_id=None if roi is None else str(roi),
                field="timepoint",
            )
        out[t - 1] = value


def reconstruct_dense_vector(sparse: Mapping[Any, Any], max_t: int) -> np.ndarray:
    """
    Build a (max_t,) vector from a {timepoint: value} mapping.

    Timepoints are 1-based; absent timepoints stay NaN.
    """
    vec = np.full(max_t, np.nan, dtype=np.float64)
    _fill_row(vec, sparse, max_t)
    return vec


def reconstruct_dense_traces(
    traces: Mapping[Any, Mapping[Any, Any]],
    roi_ids: Sequence[Any],
    max_t: int,
    show_progress: bool = False,
) -> np.ndarray:
    """
    Build a dense (len(roi_ids), max_t) matrix from sparse per-ROI traces.

    Row i holds ``traces[roi_ids[i]]``. Timepoints missing from a ROI's
    mapping stay NaN, meaning "not measured".

    Args:
        traces: ROI id -> {timepoint (1-based): value}
        roi_ids: ROIs to include, in output row order
        max_t: Number of timepoints
        show_progress: Show a tqdm progress bar

    Returns:
        Dense float64 matrix

    Raises:
        ValidationError: If a ROI is missing or a timepoint is out of range
    """
    roi_ids = np.ravel(roi_ids).tolist()
    dense = np.full((len(roi_ids), max_t), np.nan, dtype=np.float64)

    for i, roi in enumerate(tqdm(roi_ids, desc="Reconstructing traces", unit="roi", disable=not show_progress)):
        try:
            sparse = traces[roi]
        except (KeyError, IndexError) as e:
            raise ValidationError(
                f"ROI {roi} has no sparse trace",
                entity="roi",
                entity_id=str(roi),
            ) from e
        _fill_row(dense[i], sparse, max_t, roi=roi)

    return dense
