"""Run output: event log, summaries, metadata and generated series.

The simulator talks to an :class:`OutputSink`.  :class:`FileOutputManager`
writes everything of one run into a fresh directory::

    output/run_20250101_120000_000000/
        event_log.txt       header, metadata comments, one line per event
        metadata.json       run parameters (only when metadata is given)
        summary.txt         traffic statistics and queue metrics
        traffic_data.csv    aggregate-rate series, or FGN samples

:class:`NullOutputSink` discards everything and is used by tests and by
callers that only want the in-memory report.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional, Protocol, Sequence

import numpy as np

from trafficsim.hurst import estimate_hurst

if TYPE_CHECKING:
    from trafficsim.events import Event
    from trafficsim.network_queue import NetworkQueue
    from trafficsim.statistics import StatisticsCollector

logger = logging.getLogger(__name__)

MIN_FGN_HURST_SAMPLES = 512
_MIN_VARIANCE = 1e-12


class OutputSink(Protocol):
    """Receiver of everything a run produces.  Used as a context manager."""

    @property
    def run_directory(self) -> Optional[Path]: ...

    def log_event(self, event: "Event") -> None: ...

    def save_summary(self, stats: "StatisticsCollector", queue: "NetworkQueue") -> None: ...

    def save_fgn_results(
        self,
        series: Sequence[float],
        hurst: float,
        sigma: float,
        sampling_interval: float,
        threshold: float,
    ) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> "OutputSink": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class NullOutputSink:
    """Sink that accepts and discards all output."""

    run_directory: Optional[Path] = None

    def get_run_directory(self) -> Optional[Path]:
        return None

    def log_event(self, event) -> None:
        pass

    def save_summary(self, stats, queue) -> None:
        pass

    def save_fgn_results(self, series, hurst, sigma, sampling_interval, threshold) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "NullOutputSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FileOutputManager:
    """Writes the output of a single run into its own timestamped directory.

    Parameters
    ----------
    metadata : mapping of str to str or None
        Run parameters echoed in the event log header, ``summary.txt`` and
        ``metadata.json``.
    output_root : str or Path
        Parent of the run directories (default ``"output"``).
    """

    def __init__(
        self,
        metadata: Optional[Mapping[str, str]] = None,
        output_root="output",
    ) -> None:
        self.metadata = dict(metadata or {})
        self.created = datetime.now()
        stamp = self.created.strftime("%Y%m%d_%H%M%S_%f")

        self.run_directory = Path(output_root) / f"run_{stamp}"
        self.run_directory.mkdir(parents=True, exist_ok=False)
        self.event_log_path = self.run_directory / "event_log.txt"
        self.summary_path = self.run_directory / "summary.txt"
        self.csv_path = self.run_directory / "traffic_data.csv"

        self._event_log = open(self.event_log_path, "w", encoding="utf-8")
        self._write_event_log_header()
        self._write_metadata_file()

    # ------------------------------------------------------------------
    # OutputSink interface
    # ------------------------------------------------------------------

    def get_run_directory(self) -> Path:
        return self.run_directory

    def log_event(self, event: "Event") -> None:
        if self._event_log.closed:
            return
        self._event_log.write(
            f"t={event.time:.3f}, source={event.source_id}, type={event.kind.value}\n"
        )

    def save_summary(self, stats: "StatisticsCollector", queue: "NetworkQueue") -> None:
        lines = [
            "=== Telecom Network Traffic Simulator Report ===",
            f"Run Directory: {self.run_directory}",
            "",
            *self._metadata_section(),
            "",
            "Traffic Statistics",
            "------------------",
            f"Samples Recorded : {stats.sample_count()}",
            f"Average Rate     : {stats.average_rate():.4f}",
            f"Peak Rate        : {stats.peak_rate():.4f}",
            f"Std Dev          : {stats.std_dev_rate():.4f}",
            f"Hurst Exponent   : {stats.hurst_exponent():.4f}",
            "",
            "Queue Metrics",
            "-------------",
            f"Arrivals           : {queue.total_arrived}",
            f"Served             : {queue.total_served}",
            f"Dropped            : {queue.total_dropped}",
            f"Average Waiting (s): {queue.avg_waiting_time:.4f}",
            f"Average System (s) : {queue.avg_system_time:.4f}",
            "=================================================",
        ]
        self.summary_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Summary saved to %s", self.summary_path)

    def save_fgn_results(
        self,
        series: Sequence[float],
        hurst: float,
        sigma: float,
        sampling_interval: float,
        threshold: float,
    ) -> None:
        values = np.asarray(series, dtype=float)

        with open(self.csv_path, "w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(["Index", "Value"])
            for i, value in enumerate(values):
                writer.writerow([i, f"{value:.10f}"])

        self._write_fgn_event_log(values, sampling_interval, threshold)

        mean = float(values.mean()) if values.size else 0.0
        variance = float(values.var()) if values.size else 0.0
        if values.size < MIN_FGN_HURST_SAMPLES:
            estimate = (
                f"not computed (requires >= {MIN_FGN_HURST_SAMPLES} samples, "
                f"generated {values.size})"
            )
            logger.warning("Hurst estimate skipped: fewer than %d samples", MIN_FGN_HURST_SAMPLES)
        elif variance <= _MIN_VARIANCE:
            estimate = "not computed (variance too low)"
            logger.warning("Hurst estimate skipped: series variance too low")
        else:
            estimated = estimate_hurst(values)
            estimate = f"{estimated:.4f}"
            logger.info("Estimated Hurst exponent (validation): %.3f", estimated)

        lines = [
            "=== FGN Generation Report ===",
            f"Run Directory: {self.run_directory}",
            "",
            *self._metadata_section(),
            "",
            "Series Statistics",
            "-----------------",
            f"Samples Generated : {values.size}",
            f"Target Hurst (H) : {hurst:.4f}",
            f"Sigma            : {sigma:.6f}",
            f"Mean Value       : {mean:.6f}",
            f"Std Dev          : {np.sqrt(max(variance, 0.0)):.6f}",
            f"Estimated Hurst  : {estimate}",
            "",
            "Interpretation Notes",
            "--------------------",
            f"Sampling Interval : {sampling_interval:.6f} seconds",
            f"ON/OFF Threshold  : {threshold:.6f} (>= threshold logs as ON)",
            "===============================",
        ]
        self.summary_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("FGN data saved to %s", self.csv_path)

    def close(self) -> None:
        if not self._event_log.closed:
            self._event_log.close()
            logger.info("Event log saved to %s", self.event_log_path)

    def __enter__(self) -> "FileOutputManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write_event_log_header(self) -> None:
        header = [
            "# Telecom Network Traffic Simulator Event Log",
            f"# Created: {self.created.strftime('%Y%m%d_%H%M%S')}",
        ]
        if self.metadata:
            header.append("# --- Run Metadata ---")
            header.extend(f"# {key}: {value}" for key, value in self.metadata.items())
        self._event_log.write("\n".join(header) + "\n\n")

    def _write_fgn_event_log(
        self, values: np.ndarray, sampling_interval: float, threshold: float
    ) -> None:
        if self._event_log.closed:
            return
        self._event_log.write("# Fractional Gaussian Noise samples\n")
        for i, value in enumerate(values):
            state = "ON" if value >= threshold else "OFF"
            self._event_log.write(
                f"t={i * sampling_interval:.6f}, sample={i}, value={value:.10f}, state={state}\n"
            )
        self._event_log.flush()

    def _write_metadata_file(self) -> None:
        if not self.metadata:
            return
        with open(self.run_directory / "metadata.json", "w", encoding="utf-8") as fh:
            json.dump(self.metadata, fh, indent=2)

    def _metadata_section(self):
        lines = ["Run Metadata", "------------"]
        if not self.metadata:
            lines.append("  (no metadata provided)")
        else:
            lines.extend(f"  {key}: {value}" for key, value in self.metadata.items())
        return lines
