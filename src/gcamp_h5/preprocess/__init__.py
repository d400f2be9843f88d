"""
Preprocessing module for the GCaMP export pipeline.

Provides:
    - NaN-neuron removal with index maps
    - Baseline normalization of traces
    - Sparse -> dense trace reconstruction
    - Velocity gap filling / filtering and reversal events
    - Recording segmentation
"""

from gcamp_h5.preprocess.traces import (
    IndexMap,
    remove_nan_neurons,
    normalize_traces,
    percentile_baseline,
    mean_baseline,
    reconstruct_dense_traces,
    reconstruct_dense_vector,
)
from gcamp_h5.preprocess.behavior import (
    impute_missing,
    filter_velocity,
    reversal_indicator,
    extract_events,
)
from gcamp_h5.preprocess.segments import get_idx_splits, splits_to_table

__all__ = [
    # Traces
    "IndexMap",
    "remove_nan_neurons",
    "normalize_traces",
    "percentile_baseline",
    "mean_baseline",
    "reconstruct_dense_traces",
    "reconstruct_dense_vector",
    # Behavior
    "impute_missing",
    "filter_velocity",
    "reversal_indicator",
    "extract_events",
    # Segments
    "get_idx_splits",
    "splits_to_table",
]
