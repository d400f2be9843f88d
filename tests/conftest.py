"""
Pytest configuration and shared fixtures for the GCaMP export pipeline tests.

This module provides:
    - Synthetic data dicts
    - Pickled / HDF5 input files in a temporary directory
"""

import pytest

from tests.fixtures.synthetic_data_dict import (
    generate_data_dict,
    generate_match_dict,
    write_pickle,
)


@pytest.fixture
def data_dict():
    """Synthetic data dict: 3 neurons (neuron 2 all-NaN), 10 timepoints."""
    return generate_data_dict()


@pytest.fixture
def data_dict_path(tmp_path, data_dict):
    """Pickled data dict under the default "data_dict" key."""
    return write_pickle(tmp_path / "recording.pkl", data_dict)


@pytest.fixture
def match_dict_path(tmp_path):
    """Pickled registration data dict."""
    return write_pickle(tmp_path / "recording_match.pkl", generate_match_dict())
