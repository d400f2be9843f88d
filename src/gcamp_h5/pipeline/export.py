"""
Export of a processed recording data dictionary to a grouped HDF5 file.

Output layout:
    traces/        F/F20 and F/Fmean traces, standardized and original traces,
                   recording splits, original <-> filtered neuron index maps
    behavior/      velocity, reversal indicator and events, behavior channels
    timing/        NIR and confocal timestamps
    stimulus/      stimulus onsets (only if present in the data)
    registration/  ROI match confidences and matches (only with a match file)
    raw_traces/    dense activity/marker traces of valid ROIs and backgrounds
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Union

import numpy as np

from gcamp_h5.io.hdf5_store import create_export_hdf5, write_group
from gcamp_h5.io.loader import load_data_dict
from gcamp_h5.pipeline.config import ExportConfig, build_export_config
from gcamp_h5.preprocess.behavior import (
    DEFAULT_VELOCITY_FILTER_THRESHOLD,
    extract_events,
    filter_velocity,
    impute_missing,
    reversal_indicator,
)
from gcamp_h5.preprocess.segments import get_idx_splits, splits_to_table
from gcamp_h5.preprocess.traces import (
    mean_baseline,
    normalize_traces,
    percentile_baseline,
    reconstruct_dense_traces,
    reconstruct_dense_vector,
    remove_nan_neurons,
)
from gcamp_h5.utils.exceptions import MissingInputError, ValidationError
from gcamp_h5.utils.logging import get_logger
from gcamp_h5.utils.validation import derive_output_path, validate_path_exists


logger = logging.getLogger(__name__)


# =============================================================================
# Field tables
# =============================================================================

class OptionalField(NamedTuple):
    """A best-effort field: output dataset name, input key, expected ndim."""
    name: str
    key: str
    ndim: Optional[int] = None


BEHAVIOR_FIELDS: Sequence[OptionalField] = (
    OptionalField("head_angle", "head_angle", 1),
    OptionalField("angular_velocity", "angular_velocity", 1),
    OptionalField("pumping", "pumping", 1),
    OptionalField("worm_curvature", "worm_curvature", 1),
    OptionalField("worm_angle", "worm_angle", 1),
    OptionalField("body_angle_absolute", "body_angle_absolute"),
    OptionalField("body_angle_all", "body_angle_all"),
    OptionalField("body_angle", "body_angle"),
    OptionalField("zeroed_x_confocal", "zeroed_x_confocal", 1),
    OptionalField("zeroed_y_confocal", "zeroed_y_confocal", 1),
)

TIMING_FIELDS: Sequence[OptionalField] = (
    OptionalField("timestamp_nir", "nir_timestamps", 1),
    OptionalField("timestamp_confocal", "timestamps", 1),
)

STIMULUS_FIELDS: Sequence[OptionalField] = (
    OptionalField("stim_begin_confocal", "stim_begin_confocal", 1),
)

REGISTRATION_FIELDS: Sequence[OptionalField] = (
    OptionalField("roi_match_confidence", "roi_match_confidence"),
    OptionalField("roi_match", "roi_matches"),
)

REGISTRATION_DICT_KEY = "data_dict"


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class ExportResult:
    """Result of exporting one data dictionary."""
    hdf5_path: Path
    n_neuron: int = 0
    n_time: int = 0
    n_dropped: int = 0
    n_events: int = 0
    n_recording: int = 1
    groups: List[str] = field(default_factory=list)
    skipped_fields: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# Helper Functions
# =============================================================================

def as_concrete_array(value: Any, expected_ndim: Optional[int] = None) -> np.ndarray:
    """
    Convert a value to a numeric array suitable for HDF5.

    Object arrays (e.g. lists with None entries) are converted to float64,
    with None becoming NaN.

    Raises:
        ValueError: If the value is ragged or has the wrong number of dimensions
        TypeError: If the value is not numeric
    """
    arr = np.asarray(value)
    if arr.dtype == object:
        arr = np.array(arr.tolist(), dtype=np.float64)
    if arr.dtype.kind not in "biuf":
        raise TypeError(f"expected numeric data, got dtype {arr.dtype}")
    if expected_ndim is not None and arr.ndim != expected_ndim:
        raise ValueError(f"expected {expected_ndim}-D array, got shape {arr.shape}")
    return arr


def _require(data_dict: Mapping[str, Any], key: str) -> Any:
    try:
        return data_dict[key]
    except KeyError:
        raise MissingInputError(f"Required key '{key}' not found in data dict", missing_input=key)


def _copy_optional(
    source: Mapping[str, Any],
    fields: Sequence[OptionalField],
    result: ExportResult,
    log: logging.Logger,
) -> Dict[str, np.ndarray]:
    """Copy each field that is present and well-formed; warn and skip the rest."""
    arrays = {}
    for f in fields:
        try:
            arrays[f.name] = as_concrete_array(source[f.key], f.ndim)
        except Exception as e:
            message = f"Error saving {f.key}: {type(e).__name__}: {e}"
            log.warning(message)
            result.skipped_fields.append(f.key)
            result.warnings.append(message)
    return arrays


# =============================================================================
# Export
# =============================================================================

def export_recording_h5(
    path_data_dict: Union[str, Path],
    *,
    path_h5: Optional[Union[str, Path]] = None,
    path_data_dict_match: Optional[Union[str, Path]] = None,
    n_recording: int = 1,
    dict_key: str = "data_dict",
    velocity_filter: bool = True,
    velocity_filter_threshold: float = DEFAULT_VELOCITY_FILTER_THRESHOLD,
    verbose: bool = False,
    overwrite: bool = True,
    logger: Optional[logging.Logger] = None,
) -> ExportResult:
    """
    Load a data dictionary and write it to a grouped HDF5 file.

    Args:
        path_data_dict: Data dict file (pickle or HDF5) to load
        path_h5: Output HDF5 path. Default: input stem with .h5 suffix
        path_data_dict_match: Registration data dict (ROI matches); the
            registration group is written only if this file exists
        n_recording: Number of recordings/segments in the file
        dict_key: Key of the data in the input file
        velocity_filter: Write filtered (True) or gap-filled raw velocity
        velocity_filter_threshold: Velocity magnitude below which samples
            are set to 0
        verbose: Log progress at INFO level (DEBUG otherwise)
        overwrite: Replace an existing output file
        logger: Logger for progress and warnings (module logger if None)

    Returns:
        ExportResult summarizing the export

    Raises:
        FileNotFoundError: If path_data_dict does not exist
        ConfigurationError: If a parameter is invalid
        DataLoadError: If an input file cannot be read
        MissingInputError: If a required key is absent
        ValidationError: If required data is malformed
        InvalidSegmentation: If the traces cannot be split into n_recording

    Example:
        Single, continuous recording:

        >>> export_recording_h5("recording.pkl", path_h5="recording.h5")

        Combined file with 2 recordings:

        >>> export_recording_h5("combined.pkl", path_h5="combined.h5",
        ...     dict_key="combined_data_dict", n_recording=2)
    """
    config = build_export_config(
        path_h5=path_h5,
        path_data_dict_match=path_data_dict_match,
        n_recording=n_recording,
        dict_key=dict_key,
        velocity_filter=velocity_filter,
        velocity_filter_threshold=velocity_filter_threshold,
        verbose=verbose,
        overwrite=overwrite,
    )
    return run_export(path_data_dict, config, logger=logger)


def run_export(
    path_data_dict: Union[str, Path],
    config: ExportConfig,
    logger: Optional[logging.Logger] = None,
) -> ExportResult:
    """Run an export with an already validated ExportConfig."""
    log = get_logger(__name__, logger)
    level = logging.INFO if config.verbose else logging.DEBUG

    path_data_dict = validate_path_exists(path_data_dict, "data dict file")
    hdf5_path = derive_output_path(path_data_dict, config.path_h5)
    result = ExportResult(hdf5_path=hdf5_path, n_recording=config.n_recording)

    log.log(level, f"processing: {path_data_dict}")
    data_dict = load_data_dict(path_data_dict, config.dict_key)

    # traces
    trace, index_map = remove_nan_neurons(_require(data_dict, "traces_array"), logger=log)
    trace_zstd, zstd_map = remove_nan_neurons(
        _require(data_dict, "raw_zscored_traces_array"), logger=log, warn=False
    )
    # trace_array rows must line up with the match tables
    if not np.array_equal(zstd_map.filtered_to_original, index_map.filtered_to_original):
        raise ValidationError(
            f"NaN neurons differ between raw_zscored_traces_array "
            f"(kept {zstd_map.filtered_to_original.tolist()}) and traces_array "
            f"(kept {index_map.filtered_to_original.tolist()})",
            entity="raw_zscored_traces_array",
        )
    n_neuron, n_t = trace.shape
    result.n_neuron, result.n_time, result.n_dropped = n_neuron, n_t, index_map.n_dropped
    if index_map.changed:
        result.warnings.append(f"NaN neurons removed: {index_map.n_dropped}")

    idx_splits = get_idx_splits(n_t, config.n_recording)
    log.log(level, f"idx_splits: {[(r[0], r[-1]) for r in idx_splits]}")
    log.log(level, f"timepoints: {n_t} n(neuron): {n_neuron}")

    traces_group = {
        "traces_array_F_F20": normalize_traces(trace, baseline=percentile_baseline),
        "traces_array_F_Fmean": normalize_traces(trace, baseline=mean_baseline),
        "trace_array": trace_zstd,
        "trace_array_original": trace,
        "idx_splits": splits_to_table(idx_splits),
        "match_org_to_skip": index_map.org_to_skip_table(),
        "match_skip_to_org": index_map.skip_to_org_table(),
    }

    # behavior
    velocity_stage = _require(data_dict, "velocity_stage")
    if config.velocity_filter:
        velocity = filter_velocity(velocity_stage, config.velocity_filter_threshold)
    else:
        velocity = impute_missing(velocity_stage)

    reversal_vec = reversal_indicator(_require(data_dict, "rev_times"))
    reversal_events = extract_events(reversal_vec)
    result.n_events = len(reversal_events)

    behavior_group = {
        "velocity": velocity,
        "reversal_vec": reversal_vec,
        "reversal_events": reversal_events,
    }
    behavior_group.update(_copy_optional(data_dict, BEHAVIOR_FIELDS, result, log))

    timing_group = _copy_optional(data_dict, TIMING_FIELDS, result, log)

    # stimulus onsets are optional and often empty
    stimulus_group = {}
    if data_dict.get("stim_begin_confocal") is not None:
        stimulus_group = {
            name: arr
            for name, arr in _copy_optional(data_dict, STIMULUS_FIELDS, result, log).items()
            if arr.size >= 1
        }

    # registration
    registration_group = {}
    if config.path_data_dict_match is not None:
        if config.path_data_dict_match.is_file():
            log.log(level, "processing registration")
            data_dict_match = load_data_dict(config.path_data_dict_match, REGISTRATION_DICT_KEY)
            registration_group = _copy_optional(data_dict_match, REGISTRATION_FIELDS, result, log)
        else:
            message = f"Registration file not found, skipping: {config.path_data_dict_match}"
            log.warning(message)
            result.warnings.append(message)

    # raw traces, sized to the standardized trace
    max_t = trace_zstd.shape[1]
    valid_rois = np.ravel(_require(data_dict, "valid_rois")).tolist()
    raw_traces_group = {
        "raw_activity_traces": reconstruct_dense_traces(
            _require(data_dict, "activity_traces"), valid_rois, max_t, show_progress=config.verbose
        ),
        "raw_marker_traces": reconstruct_dense_traces(
            _require(data_dict, "marker_traces"), valid_rois, max_t, show_progress=config.verbose
        ),
        "activity_bkg": reconstruct_dense_vector(_require(data_dict, "activity_bkg"), max_t)[np.newaxis, :],
        "marker_bkg": reconstruct_dense_vector(_require(data_dict, "marker_bkg"), max_t)[np.newaxis, :],
    }

    groups = {
        "traces": traces_group,
        "behavior": behavior_group,
        "timing": timing_group,
        "stimulus": stimulus_group,
        "registration": registration_group,
        "raw_traces": raw_traces_group,
    }

    log.log(level, "writing to HDF5")
    with create_export_hdf5(
        hdf5_path,
        source_path=path_data_dict,
        config=config.file_attrs(),
        params_hash=config.params_hash(),
        overwrite=config.overwrite,
    ) as root:
        for name, arrays in groups.items():
            if name in ("stimulus", "registration") and not arrays:
                continue
            write_group(root, name, arrays)
            result.groups.append(name)

    log.log(level, "writing to HDF5 complete")

    return result
