"""Test fixtures for the GCaMP export pipeline tests."""

from tests.fixtures.synthetic_data_dict import (
    generate_data_dict,
    generate_match_dict,
    generate_sparse_trace,
    generate_trace_array,
    write_hdf5,
    write_pickle,
)
