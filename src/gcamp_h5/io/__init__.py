"""
I/O module for the GCaMP export pipeline.

Handles:
    - Loading recording data dictionaries (pickle / HDF5)
    - Writing the grouped HDF5 export and reading it back
"""

from gcamp_h5.io.hdf5_store import (
    create_export_hdf5,
    open_export_hdf5,
    write_array,
    write_group,
    read_group,
    read_export_hdf5,
)
from gcamp_h5.io.loader import load_data_dict

__all__ = [
    # HDF5 store operations
    "create_export_hdf5",
    "open_export_hdf5",
    "write_array",
    "write_group",
    "read_group",
    "read_export_hdf5",
    # Input loading
    "load_data_dict",
]
