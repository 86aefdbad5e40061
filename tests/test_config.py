"""Tests for trafficsim.config module."""

import pytest
from trafficsim.config import (
    fgn_parameters_from_dict,
    load_fgn_parameters,
    load_simulation_parameters,
    simulation_parameters_from_dict,
)
from trafficsim.parameters import ConfigurationError, TrafficModel


def test_load_yaml_with_field_names(tmp_path):
    path = tmp_path / "sim.yaml"
    path.write_text(
        "total_simulation_time: 100\n"
        "number_of_sources: 10\n"
        "on_shape: 1.4\n"
        "random_seed: 7\n"
        "traffic_model: fgn\n"
        "hurst: 0.85\n"
    )
    params = load_simulation_parameters(path)
    assert params.total_simulation_time == 100.0
    assert params.number_of_sources == 10
    assert params.on_shape == pytest.approx(1.4)
    assert params.random_seed == 7
    assert params.traffic_model is TrafficModel.FGN_THRESHOLD
    assert params.hurst == pytest.approx(0.85)


def test_camel_case_aliases():
    params = simulation_parameters_from_dict(
        {
            "totalTime": 6,
            "numSources": 2,
            "onShape": 1.4,
            "onScale": 1.0,
            "offShape": 1.2,
            "offScale": 2.0,
            "samplingInterval": 0.5,
        }
    )
    assert params.total_simulation_time == 6.0
    assert params.number_of_sources == 2
    assert params.sampling_interval == 0.5


def test_unknown_key_rejected():
    with pytest.raises(ConfigurationError):
        simulation_parameters_from_dict(
            {"total_simulation_time": 10, "number_of_sources": 2, "bogus": 1}
        )


def test_missing_required_key():
    with pytest.raises(ConfigurationError):
        simulation_parameters_from_dict({"number_of_sources": 2})


def test_invalid_value_rejected():
    with pytest.raises(ConfigurationError):
        simulation_parameters_from_dict({"totalTime": "abc", "numSources": 2})
    with pytest.raises(ConfigurationError):
        simulation_parameters_from_dict({"totalTime": -5, "numSources": 2})


def test_unknown_model_rejected():
    with pytest.raises(ConfigurationError):
        simulation_parameters_from_dict(
            {"totalTime": 5, "numSources": 2, "traffic_model": "poisson"}
        )


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigurationError):
        load_simulation_parameters(path)


def test_fgn_config_with_sources(tmp_path):
    path = tmp_path / "fgn.yaml"
    path.write_text("hurst: 0.8\nsigma: 1.5\nsamples: 512\nthreshold: 0.2\nseed: 9\nnumSources: 3\n")
    params, sources = load_fgn_parameters(path)
    assert params.sample_count == 512
    assert params.sigma == 1.5
    assert params.seed == 9
    assert params.threshold == pytest.approx(0.2)
    assert sources == 3


def test_fgn_config_defaults_and_validation():
    params, sources = fgn_parameters_from_dict({"hurst": 0.7, "sigma": 1.0, "samples": 64})
    assert params.sampling_interval == 1.0
    assert sources is None
    with pytest.raises(ConfigurationError):
        fgn_parameters_from_dict({"hurst": 0.7, "sigma": 1.0, "samples": 64, "numSources": 0})
    with pytest.raises(ConfigurationError):
        fgn_parameters_from_dict({"hurst": 0.7, "samples": 64})


@pytest.mark.parametrize("bad", ["many", [3], float("inf")])
def test_fgn_config_non_numeric_sources_rejected(bad):
    with pytest.raises(ConfigurationError, match="number_of_sources"):
        fgn_parameters_from_dict(
            {"hurst": 0.7, "sigma": 1.0, "samples": 64, "numSources": bad}
        )
