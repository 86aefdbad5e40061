"""Discrete-event orchestrator for the ON/OFF traffic simulator.

Ties together the traffic sources (:mod:`trafficsim.sources`), the
:class:`~trafficsim.events.EventQueue`, the downstream
:class:`~trafficsim.network_queue.NetworkQueue` and the
:class:`~trafficsim.statistics.StatisticsCollector`.

Between two source transitions the aggregate rate (fraction of sources that
are ON) is constant, so the uniformly spaced samples falling in that gap are
emitted just before the next transition is applied.  Every sample also
feeds ``round(rate * N)`` packets into the network queue.

Example usage::

    from trafficsim.parameters import SimulationParameters
    from trafficsim.simulation import TrafficSimulation

    params = SimulationParameters(total_simulation_time=1000, number_of_sources=50,
                                  random_seed=42)
    sim = TrafficSimulation(params)
    report = sim.run()
    sim.print_report(report)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from trafficsim.events import Event, EventQueue, SimulationClock, SourceState
from trafficsim.fgn import FractionalGaussianNoise
from trafficsim.network_queue import NetworkQueue
from trafficsim.output import NullOutputSink, OutputSink
from trafficsim.parameters import ConfigurationError, FGNGenerationParameters, SimulationParameters
from trafficsim.sources import TrafficSource, build_sources
from trafficsim.statistics import StatisticsCollector

logger = logging.getLogger(__name__)

# Initial ON events are spread over [0, START_WINDOW) to avoid synchronised sources.
START_WINDOW = 5.0

_TIME_EPS = 1e-9
_PROGRESS_EVERY = 100.0


class EventProcessingError(RuntimeError):
    """A single event could not be applied; the run continues without it."""

    def __init__(self, event: Event, cause: Exception) -> None:
        super().__init__(f"Failed to process {event}: {cause}")
        self.event = event
        self.cause = cause


class TrafficSimulation:
    """Aggregate traffic of many ON/OFF sources feeding one queue.

    Parameters
    ----------
    params : SimulationParameters
        Run configuration; validated here, so an invalid configuration raises
        :class:`~trafficsim.parameters.ConfigurationError` before any event
        is processed.
    sink_factory : callable returning an OutputSink, or None
        Called once by :meth:`run`; the sink is used as a context manager and
        therefore closed whether the run succeeds or fails.  Defaults to a
        :class:`~trafficsim.output.NullOutputSink`.
    rng : numpy.random.Generator or None
        Simulator RNG.  Defaults to ``default_rng(params.random_seed)``.
    """

    def __init__(
        self,
        params: SimulationParameters,
        sink_factory: Optional[Callable[[], OutputSink]] = None,
        rng: np.random.Generator = None,
    ) -> None:
        params.validate()
        self.params = params
        self._sink_factory = sink_factory or NullOutputSink
        self.rng = rng if rng is not None else np.random.default_rng(params.random_seed)

        self.clock = SimulationClock()
        self.event_queue = EventQueue()
        self.stats = StatisticsCollector(params.sampling_interval)
        self.network_queue = NetworkQueue(params.effective_service_rate)

        self.sources: List[TrafficSource] = build_sources(params, self.rng)
        for source in self.sources:
            offset = self.rng.uniform(0.0, START_WINDOW)
            self.event_queue.add_event(Event(offset, source.source_id, SourceState.ON))

        self.last_recorded_rate = 0.0
        self.processed_events = 0
        self.failed_events = 0
        self._sample_index = 0
        self._next_progress = _PROGRESS_EVERY

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def run(self) -> dict:
        """Run the simulation to the horizon and return the report.

        Returns
        -------
        dict with keys:
            ``sample_count``, ``average_rate``, ``peak_rate``,
            ``std_dev_rate``, ``hurst`` – see
            :meth:`~trafficsim.statistics.StatisticsCollector.summary`
            ``queue``             – :meth:`~trafficsim.network_queue.NetworkQueue.metrics`
            ``processed_events``  – events applied to a source
            ``failed_events``     – events skipped after an error
        """
        logger.info("Starting simulation: %s", self.params)
        with self._sink_factory() as sink:
            self._run_loop(sink)
            self._finish(sink)
        logger.info(
            "Simulation complete: %d events processed, %d failed",
            self.processed_events,
            self.failed_events,
        )
        return self.report()

    def report(self) -> dict:
        report = self.stats.summary()
        report["queue"] = self.network_queue.metrics()
        report["processed_events"] = self.processed_events
        report["failed_events"] = self.failed_events
        return report

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def _run_loop(self, sink: OutputSink) -> None:
        horizon = self.params.total_simulation_time
        while not self.event_queue.is_empty() and self.clock.time < horizon:
            event = self.event_queue.next_event()

            # The rate is piecewise constant, so pending samples use the current one.
            self._record_samples_until(event.time)

            self.clock.advance_to(event.time)
            if self.clock.time > horizon:
                break

            try:
                self._process_event(event, sink)
            except EventProcessingError as exc:
                self.failed_events += 1
                logger.warning("%s", exc)
                continue
            self.processed_events += 1

            if self.clock.time >= self._next_progress:
                logger.debug(
                    "[t=%.1f] active rate %.3f", self.clock.time, self.last_recorded_rate
                )
                self._next_progress += _PROGRESS_EVERY

    def _process_event(self, event: Event, sink: OutputSink) -> None:
        try:
            if not isinstance(event.source_id, int) or not 0 <= event.source_id < len(self.sources):
                raise IndexError(f"unknown source id {event.source_id}")
            source = self.sources[event.source_id]
            source.process_event(event)
            sink.log_event(event)
            self.event_queue.add_event(source.generate_next_event(self.clock.time))
        except ConfigurationError:
            raise
        except Exception as exc:
            raise EventProcessingError(event, exc) from exc
        finally:
            # A source may have changed state before the failure.
            active = sum(1 for s in self.sources if s.is_on())
            self.last_recorded_rate = active / len(self.sources)

    def _record_samples_until(self, limit: float) -> None:
        dt = self.params.sampling_interval
        horizon = self.params.total_simulation_time + _TIME_EPS
        n_sources = self.params.number_of_sources
        while True:
            ts = self._sample_index * dt
            if ts > limit or ts > horizon:
                break
            self.network_queue.process_until(ts)
            self.network_queue.enqueue_bulk(ts, int(round(self.last_recorded_rate * n_sources)))
            self.stats.record_sample(ts, self.last_recorded_rate)
            self._sample_index += 1

    def _finish(self, sink: OutputSink) -> None:
        horizon = self.params.total_simulation_time
        self._record_samples_until(horizon + _TIME_EPS)
        self.network_queue.process_until(horizon)

        run_directory = getattr(sink, "run_directory", None)
        if run_directory is not None:
            csv_path = Path(run_directory) / "traffic_data.csv"
            self.stats.export_csv(csv_path)
            logger.info("Time-series data exported to %s", csv_path)
        sink.save_summary(self.stats, self.network_queue)

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def print_report(report: dict) -> None:
        """Print a human-readable summary of a simulation report.

        Parameters
        ----------
        report : dict
            Output of :meth:`run`.
        """
        sep = "-" * 52
        print(sep)
        print(" Traffic Simulation – Summary")
        print(sep)
        keys_fmt = [
            ("sample_count",      "Samples recorded",           "{:.0f}"),
            ("average_rate",      "Average aggregate rate",     "{:.4f}"),
            ("peak_rate",         "Peak aggregate rate",        "{:.4f}"),
            ("std_dev_rate",      "Std deviation",              "{:.4f}"),
            ("hurst",             "Estimated Hurst exponent",   "{:.3f}"),
            ("processed_events",  "Events processed",           "{:.0f}"),
            ("failed_events",     "Events failed",              "{:.0f}"),
        ]
        for key, label, fmt in keys_fmt:
            if key in report:
                print(f"  {label:<36} {fmt.format(report[key])}")

        queue = report.get("queue")
        if queue:
            print(sep)
            queue_fmt = [
                ("total_arrived",     "Queue arrivals",             "{:.0f}"),
                ("total_served",      "Queue served",               "{:.0f}"),
                ("total_dropped",     "Queue dropped",              "{:.0f}"),
                ("queue_length",      "Queue length at horizon",    "{:.0f}"),
                ("avg_waiting_time",  "Average waiting time (s)",   "{:.4f}"),
                ("avg_system_time",   "Average system time (s)",    "{:.4f}"),
            ]
            for key, label, fmt in queue_fmt:
                if key in queue:
                    print(f"  {label:<36} {fmt.format(queue[key])}")
        print(sep)


def run_fgn_generation(params: FGNGenerationParameters, sink: OutputSink) -> np.ndarray:
    """Generate one FGN series and hand it to *sink*; returns the series."""
    params.validate()
    generator = FractionalGaussianNoise(params.hurst, params.sigma, seed=params.seed)
    series = generator.generate(params.sample_count)
    logger.info("Generated %d FGN samples (H=%.3f)", params.sample_count, params.hurst)
    sink.save_fgn_results(
        series, params.hurst, params.sigma, params.sampling_interval, params.threshold
    )
    return series
