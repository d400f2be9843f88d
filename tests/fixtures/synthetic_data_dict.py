"""
Synthetic recording data dictionaries for testing.

Builds small data dicts shaped like the processed-recording payloads the
exporter reads, and writes them to pickle or HDF5 files.
"""

import pickle
from pathlib import Path
from typing import Any, Dict, Optional

import h5py
import numpy as np


N_NEURON = 3
N_TIME = 10
NAN_NEURON = 2  # 1-based

REV_TIMES = [0, 0, 1, 1, 1, 0, 0, 2, 1, 0]
EXPECTED_REVERSAL_EVENTS = np.array([[3, 5], [8, 9]])

VELOCITY_STAGE = [0.5, 0.1, None, -0.3, 0.05, -0.25, 0.0, 0.3, 0.19, 0.21]


def generate_trace_array(
    n_neuron: int = N_NEURON,
    n_time: int = N_TIME,
    nan_neurons=(NAN_NEURON,),
    seed: int = 0,
) -> np.ndarray:
    """Positive random traces with the given 1-based rows set to NaN."""
    rng = np.random.default_rng(seed)
    trace = 1.0 + rng.random((n_neuron, n_time))
    for i in nan_neurons:
        trace[i - 1] = np.nan
    return trace


def generate_sparse_trace(
    n_time: int = N_TIME,
    missing=(),
    offset: float = 0.0,
) -> Dict[int, float]:
    """{timepoint: value} for timepoints 1..n_time except ``missing``."""
    return {t: offset + 0.5 * t for t in range(1, n_time + 1) if t not in missing}


def generate_data_dict(n_time: int = N_TIME) -> Dict[str, Any]:
    """
    Data dict with 3 neurons (neuron 2 all-NaN) and 10 timepoints.

    Optional behavior channels include a ragged one ("worm_curvature") and
    omit "angular_velocity", so both are skipped during export.
    """
    trace = generate_trace_array(n_time=n_time)
    zscored = (trace - 1.5) / 0.3

    return {
        "traces_array": trace,
        "raw_zscored_traces_array": zscored,
        "velocity_stage": list(VELOCITY_STAGE),
        "rev_times": np.array(REV_TIMES, dtype=float),
        "valid_rois": [1, 3],
        "activity_traces": {
            1: generate_sparse_trace(n_time, missing=(4, 7), offset=10.0),
            2: generate_sparse_trace(n_time, offset=20.0),
            3: generate_sparse_trace(n_time, missing=(1,), offset=30.0),
        },
        "marker_traces": {
            1: generate_sparse_trace(n_time, missing=(4,), offset=100.0),
            2: generate_sparse_trace(n_time, offset=200.0),
            3: generate_sparse_trace(n_time, offset=300.0),
        },
        "activity_bkg": generate_sparse_trace(n_time, missing=(10,), offset=1.0),
        "marker_bkg": generate_sparse_trace(n_time, offset=2.0),
        "head_angle": np.linspace(-1.0, 1.0, n_time),
        "pumping": [1.0, None, 2.0] + [3.0] * (n_time - 3),
        "worm_angle": np.zeros(n_time),
        "body_angle": np.ones((4, n_time)),
        "body_angle_all": np.ones((6, n_time)),
        "body_angle_absolute": np.ones((4, n_time)),
        "worm_curvature": [[1.0, 2.0], [3.0]],
        "zeroed_x_confocal": np.arange(n_time, dtype=float),
        "zeroed_y_confocal": np.arange(n_time, dtype=float) * 2,
        "nir_timestamps": np.arange(n_time * 5, dtype=float) / 20.0,
        "timestamps": np.arange(n_time, dtype=float) / 1.7,
        "stim_begin_confocal": [4],
    }


def generate_match_dict(n_roi: int = 2) -> Dict[str, Any]:
    """Registration payload with match confidences and match lists."""
    return {
        "roi_match_confidence": np.linspace(0.5, 1.0, n_roi),
        "roi_matches": np.arange(1, n_roi + 1),
    }


def write_pickle(path: Path, payload: Dict[str, Any], dict_key: str = "data_dict") -> Path:
    """Pickle ``{dict_key: payload}`` to ``path``."""
    path = Path(path)
    with open(path, "wb") as f:
        pickle.dump({dict_key: payload}, f)
    return path


def _write_node(group: h5py.Group, key: str, value: Any) -> None:
    if isinstance(value, dict):
        values = list(value.values())
        if values and all(isinstance(v, (int, float)) for v in values):
            sub = group.create_group(key)
            sub.create_dataset("timepoints", data=np.array(list(value.keys()), dtype=np.int64))
            sub.create_dataset("values", data=np.array(values, dtype=np.float64))
            return
        sub = group.create_group(key)
        for k, v in value.items():
            _write_node(sub, str(k), v)
        return
    group.create_dataset(key, data=np.asarray(value))


def write_hdf5(
    path: Path,
    payload: Dict[str, Any],
    dict_key: str = "data_dict",
    skip: Optional[set] = None,
) -> Path:
    """
    Write ``payload`` under group ``dict_key`` of an HDF5 file.

    Sparse traces become {"timepoints", "values"} groups. Keys in ``skip``
    (e.g. ragged or None-containing lists) are not written.
    """
    path = Path(path)
    skip = skip or set()
    with h5py.File(str(path), "w") as f:
        root = f.create_group(dict_key)
        for key, value in payload.items():
            if key in skip:
                continue
            _write_node(root, key, value)
    return path
