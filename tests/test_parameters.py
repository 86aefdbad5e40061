"""Tests for trafficsim.parameters module."""

import pytest
from trafficsim.parameters import (
    ConfigurationError,
    FGNGenerationParameters,
    SimulationParameters,
    TrafficModel,
)


def _params(**kwargs):
    defaults = dict(total_simulation_time=50.0, number_of_sources=5)
    defaults.update(kwargs)
    return SimulationParameters(**defaults)


def test_defaults_validate():
    params = _params()
    params.validate()
    assert params.traffic_model is TrafficModel.PARETO_ON_OFF
    assert params.sampling_interval == 1.0


@pytest.mark.parametrize(
    "field, value",
    [
        ("total_simulation_time", 0.0),
        ("number_of_sources", 0),
        ("sampling_interval", -1.0),
        ("on_shape", 0.0),
        ("off_scale", -2.0),
        ("service_rate", 0.0),
        ("parameter_variation", 1.0),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ConfigurationError):
        _params(**{field: value}).validate()


def test_fgn_model_checks_hurst_and_sigma():
    with pytest.raises(ConfigurationError):
        _params(traffic_model=TrafficModel.FGN_THRESHOLD, hurst=0.4).validate()
    with pytest.raises(ConfigurationError):
        _params(traffic_model=TrafficModel.FGN_THRESHOLD, fgn_sigma=0.0).validate()


def test_fgn_model_ignores_pareto_parameters():
    _params(traffic_model=TrafficModel.FGN_THRESHOLD, on_shape=-1.0).validate()


def test_effective_service_rate():
    assert _params(sampling_interval=0.5).effective_service_rate == pytest.approx(10.0)
    assert _params(service_rate=3.0).effective_service_rate == 3.0


def test_metadata_is_flat_strings():
    meta = _params(random_seed=42).to_metadata()
    assert meta["random_seed"] == "42"
    assert meta["traffic_model"] == "PARETO_ON_OFF"
    assert meta["service_rate"] == ""
    assert all(isinstance(v, str) for v in meta.values())


def test_str_mentions_model():
    assert "Pareto" in str(_params())
    assert "FGN" in str(_params(traffic_model=TrafficModel.FGN_THRESHOLD))


def test_fgn_generation_parameters():
    gen = FGNGenerationParameters(hurst=0.8, sigma=1.0, sample_count=256, sampling_interval=0.5)
    gen.validate()
    assert gen.total_duration == pytest.approx(128.0)
    sim = gen.to_simulation_parameters(4)
    assert sim.traffic_model is TrafficModel.FGN_THRESHOLD
    assert sim.total_simulation_time == pytest.approx(128.0)
    assert sim.number_of_sources == 4
    assert sim.fgn_seed == 42
    sim.validate()


def test_fgn_generation_parameters_invalid():
    with pytest.raises(ConfigurationError):
        FGNGenerationParameters(hurst=0.8, sigma=1.0, sample_count=1).validate()
    with pytest.raises(ConfigurationError):
        FGNGenerationParameters(hurst=1.0, sigma=1.0, sample_count=100).validate()
