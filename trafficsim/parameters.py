"""Run configuration for the ON/OFF traffic simulator.

:class:`SimulationParameters` describes a full traffic simulation (either
model), :class:`FGNGenerationParameters` the standalone FGN generation
workflow.  Both validate eagerly: an invalid value raises
:class:`ConfigurationError` before any simulation work starts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional


class ConfigurationError(ValueError):
    """A parameter makes the configuration impossible to run."""


class TrafficModel(Enum):
    """Source generation model used by the simulator."""

    PARETO_ON_OFF = "pareto"
    FGN_THRESHOLD = "fgn"


@dataclass
class SimulationParameters:
    """Parameters of one traffic simulation run.

    Parameters
    ----------
    total_simulation_time : float
        Simulation horizon in seconds.
    number_of_sources : int
        Number of independent ON/OFF sources.
    on_shape, on_scale : float
        Pareto shape (alpha) and scale (minimum) of the ON distribution.
    off_shape, off_scale : float
        Pareto shape and scale of the OFF distribution.
    sampling_interval : float
        Spacing of the uniformly sampled aggregate-rate series (default 1.0).
    random_seed : int or None
        Seed of the simulator RNG (start offsets, Pareto jitter and samples).
    traffic_model : TrafficModel
        ``PARETO_ON_OFF`` (default) or ``FGN_THRESHOLD``.
    hurst : float
        Target Hurst exponent of FGN sources, in (0.5, 1.0) (default 0.8).
    fgn_sigma : float
        Standard deviation of the FGN series (default 1.0).
    fgn_threshold : float
        Samples ``>=`` this value are ON (default 0.0, roughly 50% ON).
    fgn_seed : int
        Base seed; FGN source *i* uses ``fgn_seed + i`` (default 42).
    parameter_variation : float
        Relative jitter applied per source to the Pareto parameters
        (default 0.15, i.e. +/-15%).
    service_rate : float or None
        Service rate of the downstream queue in packets per second.  ``None``
        uses ``number_of_sources / sampling_interval``, the rate at which the
        queue keeps up with every source being ON.
    """

    total_simulation_time: float
    number_of_sources: int
    on_shape: float = 1.5
    on_scale: float = 1.0
    off_shape: float = 1.2
    off_scale: float = 2.0
    sampling_interval: float = 1.0
    random_seed: Optional[int] = None
    traffic_model: TrafficModel = TrafficModel.PARETO_ON_OFF
    hurst: float = 0.8
    fgn_sigma: float = 1.0
    fgn_threshold: float = 0.0
    fgn_seed: int = 42
    parameter_variation: float = 0.15
    service_rate: Optional[float] = None

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if the run cannot proceed."""
        if self.total_simulation_time <= 0:
            raise ConfigurationError("total_simulation_time must be > 0")
        if self.number_of_sources <= 0:
            raise ConfigurationError("number_of_sources must be > 0")
        if self.sampling_interval <= 0:
            raise ConfigurationError("sampling_interval must be > 0")
        if self.service_rate is not None and self.service_rate <= 0:
            raise ConfigurationError("service_rate must be > 0")
        if self.traffic_model is TrafficModel.FGN_THRESHOLD:
            validate_fgn(self.hurst, self.fgn_sigma)
        else:
            for name in ("on_shape", "on_scale", "off_shape", "off_scale"):
                if getattr(self, name) <= 0:
                    raise ConfigurationError(f"{name} must be > 0")
            if not 0.0 <= self.parameter_variation < 1.0:
                raise ConfigurationError("parameter_variation must be in [0, 1)")

    @property
    def effective_service_rate(self) -> float:
        if self.service_rate is not None:
            return self.service_rate
        return self.number_of_sources / self.sampling_interval

    def to_metadata(self) -> Dict[str, str]:
        """Flatten the parameters into strings for run metadata files."""
        meta = {}
        for key, value in asdict(self).items():
            if isinstance(value, Enum):
                value = value.name
            meta[key] = "" if value is None else str(value)
        return meta

    def __str__(self) -> str:
        base = (
            f"SimulationParameters [time={self.total_simulation_time:.2f}s, "
            f"sources={self.number_of_sources}, "
            f"ON(alpha={self.on_shape:.2f}, scale={self.on_scale:.2f}), "
            f"OFF(alpha={self.off_shape:.2f}, scale={self.off_scale:.2f}), "
            f"dt={self.sampling_interval:.3f}]"
        )
        if self.traffic_model is TrafficModel.FGN_THRESHOLD:
            return base + (
                f" | FGN(H={self.hurst:.2f}, sigma={self.fgn_sigma:.2f}, "
                f"thr={self.fgn_threshold:.2f})"
            )
        return base + " | Pareto"


@dataclass
class FGNGenerationParameters:
    """Settings of the standalone FGN generation workflow."""

    hurst: float
    sigma: float
    sample_count: int
    sampling_interval: float = 1.0
    threshold: float = 0.0
    seed: int = 42

    def validate(self) -> None:
        validate_fgn(self.hurst, self.sigma)
        if self.sample_count < 2:
            raise ConfigurationError("sample_count must be >= 2")
        if self.sampling_interval <= 0:
            raise ConfigurationError("sampling_interval must be > 0")

    @property
    def total_duration(self) -> float:
        return self.sample_count * self.sampling_interval

    def to_simulation_parameters(self, number_of_sources: int) -> SimulationParameters:
        """Build an FGN-model simulation covering the generated duration."""
        return SimulationParameters(
            total_simulation_time=self.total_duration,
            number_of_sources=number_of_sources,
            sampling_interval=self.sampling_interval,
            traffic_model=TrafficModel.FGN_THRESHOLD,
            hurst=self.hurst,
            fgn_sigma=self.sigma,
            fgn_threshold=self.threshold,
            fgn_seed=self.seed,
        )

    def to_metadata(self) -> Dict[str, str]:
        return {key: str(value) for key, value in asdict(self).items()}


def validate_fgn(hurst: float, sigma: float) -> None:
    if not 0.5 < hurst < 1.0:
        raise ConfigurationError("Hurst exponent must be in (0.5, 1.0)")
    if sigma <= 0:
        raise ConfigurationError("sigma must be > 0")
