"""ON/OFF traffic sources for the simulator.

Two source models share the same small interface used by
:class:`~trafficsim.simulation.TrafficSimulation`:

* ``source_id`` / ``state`` / ``next_event_time`` attributes;
* ``generate_next_event(current_time)`` – schedule the next transition;
* ``process_event(event)`` – apply a transition;
* ``is_on()``.

:class:`ParetoTrafficSource` alternates heavy-tailed renewal periods.
:class:`FGNTrafficSource` replays a precomputed schedule obtained by
thresholding a Fractional Gaussian Noise series and run-length encoding it.
"""

import math
from typing import List, Union

import numpy as np

from trafficsim.distributions import ParetoDistribution, vary
from trafficsim.events import Event, SourceState
from trafficsim.fgn import FractionalGaussianNoise
from trafficsim.parameters import SimulationParameters, TrafficModel


class ParetoTrafficSource:
    """Two-state renewal source with Pareto distributed periods.

    While the source is OFF the time until its next (ON) transition is drawn
    from *on_distribution*; while ON the time until its next (OFF) transition
    is drawn from *off_distribution*.

    Parameters
    ----------
    source_id : int
        Index of the source in the simulator.
    on_distribution : object with ``sample() -> float``
        Distribution sampled while OFF; its event turns the source ON.
    off_distribution : object with ``sample() -> float``
        Distribution sampled while ON; its event turns the source OFF.
    """

    def __init__(self, source_id: int, on_distribution, off_distribution) -> None:
        if on_distribution is None or off_distribution is None:
            raise ValueError("Distributions cannot be None")
        self.source_id = source_id
        self.on_distribution = on_distribution
        self.off_distribution = off_distribution
        self.state = SourceState.OFF
        self.next_event_time = 0.0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate_next_event(self, current_time: float) -> Event:
        if self.state is SourceState.OFF:
            duration = self.on_distribution.sample()
            kind = SourceState.ON
        else:
            duration = self.off_distribution.sample()
            kind = SourceState.OFF
        self.next_event_time = current_time + duration
        return Event(self.next_event_time, self.source_id, kind)

    def process_event(self, event: Event) -> None:
        self.state = event.kind

    def is_on(self) -> bool:
        return self.state is SourceState.ON

    def __repr__(self) -> str:
        return (
            f"ParetoTrafficSource({self.source_id}, {self.state.value}, "
            f"next={self.next_event_time:.3f})"
        )


class FGNTrafficSource:
    """Source replaying a thresholded Fractional Gaussian Noise schedule.

    At construction an FGN series of ``ceil(total_time / sampling_interval)``
    samples is generated with seed ``fgn_seed + source_id``.  Samples at or
    above the threshold count as ON.  Consecutive equal states are collapsed
    into flip durations, each a multiple of the sampling interval.

    Each call to :meth:`generate_next_event` consumes one duration and
    schedules a flip to the opposite of the state the source is currently
    in.  The schedule is aligned with the tracked state, not with the sign of
    the first FGN sample: the simulator turns every source ON first, so a
    series that starts OFF runs inverted after that first flip.

    Parameters
    ----------
    source_id : int
        Index of the source in the simulator.
    params : SimulationParameters
        Provides horizon, sampling interval and the FGN settings.
    """

    def __init__(self, source_id: int, params: SimulationParameters) -> None:
        self.source_id = source_id
        self.total_time = params.total_simulation_time
        self.sampling_interval = params.sampling_interval
        self.state = SourceState.OFF
        self.next_event_time = 0.0

        n = max(2, math.ceil(params.total_simulation_time / params.sampling_interval))
        generator = FractionalGaussianNoise(
            params.hurst, params.fgn_sigma, seed=params.fgn_seed + source_id
        )
        self.series = generator.generate(n)
        self.durations = run_length_durations(
            self.series >= params.fgn_threshold, params.sampling_interval
        )
        self._cursor = 0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate_next_event(self, current_time: float) -> Event:
        if self._cursor < len(self.durations):
            duration = self.durations[self._cursor]
            self._cursor += 1
        else:
            # Schedule exhausted: one flip beyond the horizon ends this source.
            duration = self.total_time
        kind = SourceState.OFF if self.state is SourceState.ON else SourceState.ON
        self.next_event_time = current_time + duration
        return Event(self.next_event_time, self.source_id, kind)

    def process_event(self, event: Event) -> None:
        self.state = event.kind

    def is_on(self) -> bool:
        return self.state is SourceState.ON

    @property
    def remaining_flips(self) -> int:
        return len(self.durations) - self._cursor

    def __repr__(self) -> str:
        return (
            f"FGNTrafficSource({self.source_id}, {self.state.value}, "
            f"remaining={self.remaining_flips})"
        )


TrafficSource = Union[ParetoTrafficSource, FGNTrafficSource]


def run_length_durations(states: np.ndarray, sampling_interval: float) -> List[float]:
    """Collapse a boolean state sequence into durations between flips."""
    states = np.asarray(states, dtype=bool)
    if states.size == 0:
        return []
    flips = np.flatnonzero(states[1:] != states[:-1]) + 1
    bounds = np.concatenate(([0], flips, [states.size]))
    return [float(count) * sampling_interval for count in np.diff(bounds)]


def build_sources(params: SimulationParameters, rng: np.random.Generator) -> List[TrafficSource]:
    """Instantiate ``params.number_of_sources`` sources of the selected model.

    Pareto sources get independently jittered shape/scale pairs and their
    own child generators spawned from *rng*.  FGN sources seed themselves
    from ``params.fgn_seed + source_id``.
    """
    if params.traffic_model is TrafficModel.FGN_THRESHOLD:
        return [FGNTrafficSource(i, params) for i in range(params.number_of_sources)]

    sources: List[TrafficSource] = []
    variation = params.parameter_variation
    for i in range(params.number_of_sources):
        on_shape = vary(params.on_shape, variation, rng)
        on_scale = vary(params.on_scale, variation, rng)
        off_shape = vary(params.off_shape, variation, rng)
        off_scale = vary(params.off_scale, variation, rng)
        on_rng, off_rng = rng.spawn(2)
        sources.append(
            ParetoTrafficSource(
                i,
                ParetoDistribution(on_shape, on_scale, on_rng),
                ParetoDistribution(off_shape, off_scale, off_rng),
            )
        )
    return sources
