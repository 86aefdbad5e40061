"""YAML configuration files for simulation runs.

A traffic simulation file maps directly onto
:class:`~trafficsim.parameters.SimulationParameters`::

    total_simulation_time: 1000
    number_of_sources: 50
    on_shape: 1.5
    on_scale: 1.0
    off_shape: 1.2
    off_scale: 2.0
    traffic_model: pareto

The short camelCase names of older configuration files (``totalTime``,
``numSources``, ``onShape`` ...) are accepted as aliases.  Unknown keys are
rejected so that typos do not silently fall back to defaults.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from trafficsim.parameters import (
    ConfigurationError,
    FGNGenerationParameters,
    SimulationParameters,
    TrafficModel,
)

SIMULATION_ALIASES = {
    "totalTime": "total_simulation_time",
    "numSources": "number_of_sources",
    "onShape": "on_shape",
    "onScale": "on_scale",
    "offShape": "off_shape",
    "offScale": "off_scale",
    "samplingInterval": "sampling_interval",
    "seed": "random_seed",
    "model": "traffic_model",
    "sigma": "fgn_sigma",
    "threshold": "fgn_threshold",
    "fgnSeed": "fgn_seed",
    "variation": "parameter_variation",
    "serviceRate": "service_rate",
}

FGN_ALIASES = {
    "samples": "sample_count",
    "samplingInterval": "sampling_interval",
}

_INT_FIELDS = {"number_of_sources", "random_seed", "fgn_seed", "sample_count", "seed"}


def read_yaml(path) -> Dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{p} must contain a mapping of parameters")
    return dict(data)


def simulation_parameters_from_dict(data: Mapping[str, Any]) -> SimulationParameters:
    values = _normalise(data, SIMULATION_ALIASES, SimulationParameters)
    for key in ("total_simulation_time", "number_of_sources"):
        if key not in values:
            raise ConfigurationError(f"Missing required parameter: {key}")
    if "traffic_model" in values:
        values["traffic_model"] = _parse_model(values["traffic_model"])
    params = SimulationParameters(**values)
    params.validate()
    return params


def fgn_parameters_from_dict(
    data: Mapping[str, Any],
) -> Tuple[FGNGenerationParameters, Optional[int]]:
    """Build FGN generation settings plus the optional ``numSources`` entry."""
    data = dict(data)
    sources = data.pop("numSources", data.pop("number_of_sources", None))
    values = _normalise(data, FGN_ALIASES, FGNGenerationParameters)
    for key in ("hurst", "sigma", "sample_count"):
        if key not in values:
            raise ConfigurationError(f"Missing required parameter: {key}")
    params = FGNGenerationParameters(**values)
    params.validate()

    if sources is not None:
        sources = _coerce("number_of_sources", sources)
        if sources <= 0:
            raise ConfigurationError("numSources must be positive")
    return params, sources


def load_simulation_parameters(path) -> SimulationParameters:
    return simulation_parameters_from_dict(read_yaml(path))


def load_fgn_parameters(path) -> Tuple[FGNGenerationParameters, Optional[int]]:
    return fgn_parameters_from_dict(read_yaml(path))


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _normalise(data: Mapping[str, Any], aliases: Mapping[str, str], cls) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    values: Dict[str, Any] = {}
    for raw_key, value in data.items():
        key = aliases.get(raw_key, raw_key)
        if key not in known:
            raise ConfigurationError(f"Unknown configuration key: {raw_key}")
        if key in values:
            raise ConfigurationError(f"Duplicate configuration key: {raw_key}")
        values[key] = _coerce(key, value)
    return values


def _coerce(key: str, value: Any) -> Any:
    if value is None or key == "traffic_model":
        return value
    try:
        if key in _INT_FIELDS:
            return int(round(float(value)))
        return float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigurationError(f"Invalid numeric value for {key}: {value!r}") from exc


def _parse_model(value: Any) -> TrafficModel:
    if isinstance(value, TrafficModel):
        return value
    text = str(value).strip()
    for model in TrafficModel:
        if text.lower() == model.value or text.upper() == model.name:
            return model
    raise ConfigurationError(f"Unknown traffic model: {value!r}")
