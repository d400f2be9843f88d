"""
Input loader for recording data dictionaries.

Provides `load_data_dict()`, which loads the structured mapping that holds a
processed recording (trace arrays, sparse ROI traces, behavior channels).

Supported formats:
    - Pickle (.pkl, .pickle): a top-level dict containing the payload key
    - HDF5 (.h5, .hdf5): a top-level group named after the payload key,
      read recursively into dicts

HDF5 conventions:
    - Integer-like member names ("1", "42") become int keys, so ROI ids and
      timepoints index the same way as in pickled dicts
    - A group holding exactly the datasets "timepoints" and "values" is read
      as a sparse trace ``{timepoint: value}``

Usage:
    >>> from gcamp_h5.io.loader import load_data_dict
    >>> data_dict = load_data_dict("path/to/recording.pkl")
    >>> data_dict = load_data_dict("path/to/combined.pkl", dict_key="combined_data_dict")
"""

import logging
import pickle
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import h5py
import numpy as np

from gcamp_h5.io.hdf5_store import read_group
from gcamp_h5.utils.exceptions import DataLoadError, MissingInputError
from gcamp_h5.utils.validation import (
    HDF5_SUFFIXES,
    validate_input_suffix,
    validate_path_exists,
)

logger = logging.getLogger(__name__)

SPARSE_TRACE_KEYS = frozenset({"timepoints", "values"})


def load_data_dict(
    path: Union[str, Path],
    dict_key: str = "data_dict",
) -> Dict[Any, Any]:
    """
    Load the payload mapping stored under ``dict_key`` in a data file.

    Args:
        path: Pickle or HDF5 file to load
        dict_key: Name of the payload inside the file (default: "data_dict")

    Returns:
        The payload as a dict

    Raises:
        FileNotFoundError: If path does not exist
        ConfigurationError: If the file extension is unsupported
        DataLoadError: If the file cannot be read or the payload is not a mapping
        MissingInputError: If ``dict_key`` is absent
    """
    path = validate_path_exists(path, "data dict file")
    validate_input_suffix(path)

    logger.debug(f"Loading '{dict_key}' from: {path}")

    if path.suffix.lower() in HDF5_SUFFIXES:
        payload = _load_hdf5_payload(path, dict_key)
    else:
        payload = _load_pickle_payload(path, dict_key)

    if not isinstance(payload, Mapping):
        raise DataLoadError(
            f"'{dict_key}' in {path} is a {type(payload).__name__}, expected a mapping",
            file_path=str(path),
        )

    return dict(payload)


def _load_pickle_payload(path: Path, dict_key: str) -> Any:
    try:
        with open(path, "rb") as f:
            contents = pickle.load(f)
    except Exception as e:
        raise DataLoadError(
            f"Cannot read pickle file: {path}: {e}",
            file_path=str(path),
            original_error=e,
        ) from e

    if not isinstance(contents, Mapping):
        raise DataLoadError(
            f"Top level of {path} is a {type(contents).__name__}, expected a mapping",
            file_path=str(path),
        )

    if dict_key not in contents:
        raise MissingInputError(
            f"Key '{dict_key}' not found in {path}. Available: {sorted(map(str, contents))}",
            missing_input=dict_key,
        )

    return contents[dict_key]


def _load_hdf5_payload(path: Path, dict_key: str) -> Any:
    try:
        with h5py.File(str(path), "r") as f:
            if dict_key not in f:
                raise MissingInputError(
                    f"Key '{dict_key}' not found in {path}. Available: {sorted(f.keys())}",
                    missing_input=dict_key,
                )
            item = f[dict_key]
            if isinstance(item, h5py.Group):
                return _collapse_sparse_traces(
                    read_group(item, include_attrs=False, int_keys=True)
                )
            return item[()]
    except MissingInputError:
        raise
    except OSError as e:
        raise DataLoadError(
            f"Cannot read HDF5 file: {path}. The file may be corrupted or incomplete.",
            file_path=str(path),
            original_error=e,
        ) from e


def _collapse_sparse_traces(node: Any) -> Any:
    """Turn {"timepoints": [...], "values": [...]} groups into {t: v} dicts."""
    if not isinstance(node, dict):
        return node

    if set(node.keys()) == SPARSE_TRACE_KEYS:
        timepoints = np.atleast_1d(node["timepoints"]).astype(int)
        values = np.atleast_1d(node["values"]).astype(float)
        if len(timepoints) != len(values):
            raise DataLoadError(
                f"Sparse trace has {len(timepoints)} timepoints but {len(values)} values"
            )
        return {int(t): float(v) for t, v in zip(timepoints, values)}

    return {key: _collapse_sparse_traces(value) for key, value in node.items()}
