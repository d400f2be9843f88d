"""
Unit tests for HDF5 store operations.

Tests the gcamp_h5.io.hdf5_store module which writes grouped export files
and reads HDF5 content back into dicts.
"""

import json

import h5py
import numpy as np
import pytest

from gcamp_h5.io.hdf5_store import (
    create_export_hdf5,
    open_export_hdf5,
    read_export_hdf5,
    read_group,
    write_array,
    write_group,
)


class TestCreateExportHdf5:
    """Tests for create_export_hdf5()."""

    def test_sets_root_attributes(self, tmp_path):
        hdf5_path = tmp_path / "test.h5"

        with create_export_hdf5(hdf5_path, source_path="input.pkl", config={"n_recording": 2}) as f:
            assert f.attrs["gcamp_h5_version"] == "0.1.0"
            assert f.attrs["source_path"] == "input.pkl"
            assert f.attrs["n_recording"] == 2
            assert str(f.attrs["export_params_hash"]).startswith("sha256:")
            assert "created_at" in f.attrs

    def test_uses_precomputed_params_hash(self, tmp_path):
        with create_export_hdf5(
            tmp_path / "test.h5", config={"n_recording": 2}, params_hash="sha256:abc"
        ) as f:
            assert f.attrs["export_params_hash"] == "sha256:abc"

    def test_skips_none_config_values(self, tmp_path):
        with create_export_hdf5(tmp_path / "test.h5", config={"path": None}) as f:
            assert "path" not in f.attrs

    def test_raises_if_file_exists_and_no_overwrite(self, tmp_path):
        hdf5_path = tmp_path / "test.h5"
        with create_export_hdf5(hdf5_path):
            pass

        with pytest.raises(FileExistsError):
            create_export_hdf5(hdf5_path, overwrite=False)

    def test_overwrites_existing_file(self, tmp_path):
        hdf5_path = tmp_path / "test.h5"
        with create_export_hdf5(hdf5_path, source_path="first.pkl"):
            pass

        with create_export_hdf5(hdf5_path, source_path="second.pkl", overwrite=True) as f:
            assert f.attrs["source_path"] == "second.pkl"

    def test_creates_parent_directory(self, tmp_path):
        hdf5_path = tmp_path / "nested" / "dir" / "test.h5"

        with create_export_hdf5(hdf5_path):
            pass

        assert hdf5_path.exists()


class TestOpenExportHdf5:
    """Tests for open_export_hdf5()."""

    def test_raises_if_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            open_export_hdf5(tmp_path / "missing.h5")


class TestWriteGroup:
    """Tests for write_group() and write_array()."""

    def test_writes_arrays_and_fields(self, tmp_path):
        arrays = {
            "trace": np.arange(6, dtype=np.float64).reshape(2, 3),
            "events": np.array([[1, 2]], dtype=np.int64),
        }

        with create_export_hdf5(tmp_path / "test.h5") as f:
            group = write_group(f, "traces", arrays)

            np.testing.assert_array_equal(group["trace"][:], arrays["trace"])
            assert group["events"].dtype == np.int64
            assert json.loads(group.attrs["fields"]) == ["trace", "events"]

    def test_replaces_existing_group(self, tmp_path):
        with create_export_hdf5(tmp_path / "test.h5") as f:
            write_group(f, "behavior", {"a": np.zeros(2)})
            write_group(f, "behavior", {"b": np.ones(2)})

            assert list(f["behavior"].keys()) == ["b"]

    def test_bool_stored_as_uint8(self, tmp_path):
        with create_export_hdf5(tmp_path / "test.h5") as f:
            ds = write_array(f, "mask", np.array([True, False]))

            assert ds.dtype == np.uint8

    def test_object_array_rejected(self, tmp_path):
        with create_export_hdf5(tmp_path / "test.h5") as f:
            with pytest.raises(TypeError):
                write_array(f, "bad", np.array([1, None], dtype=object))


class TestReadBack:
    """Tests for reading HDF5 content back."""

    def test_read_export_round_trip(self, tmp_path):
        hdf5_path = tmp_path / "test.h5"
        trace = np.random.default_rng(0).random((3, 4))

        with create_export_hdf5(hdf5_path, source_path="x.pkl") as f:
            write_group(f, "traces", {"trace_array": trace, "one": np.array([7])})

        data = read_export_hdf5(hdf5_path)

        np.testing.assert_array_equal(data["traces"]["trace_array"], trace)
        assert data["traces"]["one"].shape == (1,)
        assert data["source_path"] == "x.pkl"

    def test_read_group_int_keys(self, tmp_path):
        hdf5_path = tmp_path / "test.h5"
        with h5py.File(hdf5_path, "w") as f:
            g = f.create_group("traces")
            g.create_dataset("12", data=1.5)
            g.create_dataset("name", data="abc")

        with h5py.File(hdf5_path, "r") as f:
            data = read_group(f["traces"], include_attrs=False, int_keys=True)

        assert data == {12: 1.5, "name": "abc"}
