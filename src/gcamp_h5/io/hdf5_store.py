"""
HDF5 store operations for the GCaMP export pipeline.

Handles writing the grouped export file and reading HDF5 files back into
nested dictionaries.

Notes:
- Single file (.h5), opened through a context manager
- Single-writer access model (no concurrent writes)
- Groups record the names of their datasets in a JSON "fields" attribute
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import h5py
import numpy as np

from gcamp_h5 import __version__
from gcamp_h5.utils.hashing import hash_config


logger = logging.getLogger(__name__)

HDF5Group = Union[h5py.File, h5py.Group]


def create_export_hdf5(
    hdf5_path: Union[str, Path],
    source_path: Optional[Union[str, Path]] = None,
    config: Optional[Dict[str, Any]] = None,
    overwrite: bool = True,
    params_hash: Optional[str] = None,
) -> h5py.File:
    """
    Create a new HDF5 export file.

    Args:
        hdf5_path: Path for the HDF5 file (should end with .h5)
        source_path: Input file the export was produced from
        config: Export parameters, stored as root attributes and hashed
        overwrite: If True, replace an existing file
        params_hash: Precomputed hash of the export parameters (hash of
            config if None)

    Returns:
        Open h5py.File handle (caller must close or use with statement)

    Raises:
        FileExistsError: If file exists and overwrite=False
        OSError: If file is locked by another process
    """
    hdf5_path = Path(hdf5_path)
    config = config or {}

    if hdf5_path.suffix.lower() not in ('.h5', '.hdf5'):
        logger.warning(f"HDF5 file has non-standard extension: {hdf5_path.suffix}")

    if hdf5_path.exists() and not overwrite:
        raise FileExistsError(f"HDF5 file already exists: {hdf5_path}")

    logger.debug(f"Creating HDF5 export: {hdf5_path}")

    hdf5_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        root = h5py.File(str(hdf5_path), mode='w')
    except OSError as e:
        if "already open" in str(e).lower() or "locked" in str(e).lower():
            raise OSError(
                f"File is already open for writing: {hdf5_path}. "
                "HDF5 supports single-writer access only. "
                "Close the file in other processes before writing."
            ) from e
        raise

    root.attrs["gcamp_h5_version"] = __version__
    root.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
    root.attrs["source_path"] = str(source_path) if source_path is not None else ""
    root.attrs["export_params_hash"] = params_hash or hash_config(config)
    for key, value in config.items():
        # HDF5 attrs cannot hold None
        if value is None:
            continue
        root.attrs[key] = str(value) if isinstance(value, Path) else value

    return root


def open_export_hdf5(
    hdf5_path: Union[str, Path],
    mode: str = "r",
) -> h5py.File:
    """
    Open an existing HDF5 file.

    Raises:
        FileNotFoundError: If file does not exist
        OSError: If the file cannot be read or is locked
    """
    hdf5_path = Path(hdf5_path)

    if not hdf5_path.exists():
        raise FileNotFoundError(f"HDF5 file not found: {hdf5_path}")

    try:
        return h5py.File(str(hdf5_path), mode=mode)
    except OSError as e:
        error_str = str(e).lower()
        if "already open" in error_str or "locked" in error_str:
            raise OSError(
                f"File is already open for writing: {hdf5_path}. "
                "HDF5 supports single-writer access only. "
                "Close the file in other processes before writing."
            ) from e
        if "unable to open" in error_str or "cannot read" in error_str:
            raise OSError(
                f"Cannot read HDF5 file: {hdf5_path}. "
                "The file may be corrupted or incomplete."
            ) from e
        raise


def write_array(group: HDF5Group, name: str, value: Any) -> h5py.Dataset:
    """
    Write one named array into a group, replacing any existing dataset.

    Booleans are stored as uint8. Object arrays are rejected: callers must
    convert them to a concrete dtype first.
    """
    arr = np.asarray(value)
    if arr.dtype == bool:
        arr = arr.astype(np.uint8)
    if arr.dtype == object:
        raise TypeError(f"Cannot write object array '{name}'; convert to a numeric dtype first")

    if name in group:
        del group[name]

    return group.create_dataset(name, data=arr, dtype=arr.dtype)


def write_group(
    root: HDF5Group,
    group_name: str,
    arrays: Mapping[str, Any],
) -> h5py.Group:
    """
    Create a named group and write each named array into it.

    Args:
        root: Open h5py.File (or parent group)
        group_name: Name of the group to create (replaced if present)
        arrays: Mapping of dataset name -> array-like

    Returns:
        The created group
    """
    if group_name in root:
        del root[group_name]
    group = root.create_group(group_name)

    for name, value in arrays.items():
        write_array(group, name, value)

    group.attrs["fields"] = json.dumps(list(arrays.keys()))
    logger.debug(f"Wrote group '{group_name}': {list(arrays.keys())}")

    return group


def _coerce_key(key: str) -> Union[str, int]:
    """Convert integer-like member names ("12") to int keys."""
    if key.lstrip("-").isdigit():
        return int(key)
    return key


def read_group(
    group: h5py.Group,
    include_attrs: bool = True,
    int_keys: bool = False,
) -> Dict[Any, Any]:
    """
    Recursively read an HDF5 group into a dict.

    Args:
        group: HDF5 group to read
        include_attrs: Merge the group's attributes into the result
        int_keys: Convert integer-like member names to int keys

    Returns:
        Dict with group contents
    """
    result: Dict[Any, Any] = {}

    if include_attrs:
        for key in group.attrs:
            value = group.attrs[key]
            if isinstance(value, bytes):
                value = value.decode('utf-8')
            result[key] = value

    for key in group:
        item = group[key]
        out_key = _coerce_key(key) if int_keys else key
        if isinstance(item, h5py.Dataset):
            result[out_key] = read_dataset(item)
        elif isinstance(item, h5py.Group):
            result[out_key] = read_group(item, include_attrs=include_attrs, int_keys=int_keys)

    return result


def read_dataset(dataset: h5py.Dataset) -> Any:
    """
    Read an HDF5 dataset and convert to an appropriate Python type.

    0-d datasets become Python scalars, byte strings become str. Arrays are
    returned as-is, keeping their shape.
    """
    value = dataset[()]

    if isinstance(value, np.ndarray):
        if value.ndim == 0:
            return value.item()
        if value.dtype.kind == 'S':
            return np.array([s.decode('utf-8') for s in value.flat]).reshape(value.shape)
        return value

    if isinstance(value, bytes):
        return value.decode('utf-8')

    if isinstance(value, np.generic):
        return value.item()

    return value


def read_export_hdf5(hdf5_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read an exported file back into nested dictionaries.

    Root and group attributes are included alongside datasets.

    Example:
        >>> data = read_export_hdf5("recording.h5")
        >>> data["traces"]["idx_splits"]
        array([[   1, 1600],
               [1601, 3200]])
    """
    with open_export_hdf5(hdf5_path, mode="r") as root:
        return read_group(root, include_attrs=True)
