"""Tests for utils.export and utils.cpu_affinity: settings files, HDF5
helpers and worker counts."""

import json

import h5py
import numpy as np
import pytest

from utils.cpu_affinity import count_parallel_cpu
from utils.export import (
    default_mcmc_settings,
    dict_to_hdf5,
    hdf5_to_dict,
    load_settings_json,
    save_defaults_json,
)


class TestSettingsJson:
    def test_new_file_written(self, tmp_path):
        fpath = tmp_path / "settings.json"
        out = save_defaults_json(default_mcmc_settings, str(fpath))
        assert out == default_mcmc_settings
        assert json.loads(fpath.read_text()) == default_mcmc_settings

    def test_existing_values_kept(self, tmp_path):
        fpath = tmp_path / "settings.json"
        fpath.write_text(json.dumps({"nwalkers": 8}))
        out = save_defaults_json(default_mcmc_settings, str(fpath))
        assert out["nwalkers"] == 8
        assert out["nsamples"] == default_mcmc_settings["nsamples"]
        assert json.loads(fpath.read_text())["nwalkers"] == 8

    def test_overwrite(self, tmp_path):
        fpath = tmp_path / "settings.json"
        fpath.write_text(json.dumps({"nwalkers": 8}))
        out = save_defaults_json(default_mcmc_settings, str(fpath), overwrite=True)
        assert out["nwalkers"] == default_mcmc_settings["nwalkers"]

    def test_load_merges_defaults(self, tmp_path):
        fpath = tmp_path / "settings.json"
        fpath.write_text(json.dumps({"obs_params": [0.7, 0.2, 10]}))
        settings = load_settings_json(str(fpath))
        assert settings["obs_params"] == [0.7, 0.2, 10]
        assert settings["nwalkers"] == default_mcmc_settings["nwalkers"]
        assert default_mcmc_settings["obs_params"] == [0.79, 0.19, 8]

    def test_load_rejects_unknown_keys(self, tmp_path):
        fpath = tmp_path / "settings.json"
        fpath.write_text(json.dumps({"nwalker": 8}))
        with pytest.raises(KeyError, match="nwalker"):
            load_settings_json(str(fpath))


class TestHdf5Dict:
    def test_round_trip_skips_none(self, tmp_path):
        di = {"times": np.arange(3.0), "n": 4, "seed": None}
        with h5py.File(tmp_path / "f.h5", "w") as f:
            dict_to_hdf5(f.create_group("gp"), di)
        with h5py.File(tmp_path / "f.h5", "r") as f:
            out = hdf5_to_dict(f["gp"])
        assert set(out.keys()) == {"times", "n"}
        np.testing.assert_array_equal(out["times"], di["times"])


class TestCountParallelCpu:
    def test_at_least_one(self):
        assert count_parallel_cpu() >= 1
        assert count_parallel_cpu(reserve=10000) == 1
