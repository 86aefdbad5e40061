"""Aggregate-rate time series collected during a simulation.

The simulator samples the fraction of active sources at every multiple of
the sampling interval.  :class:`StatisticsCollector` stores those samples
and derives the summary figures (mean, peak, spread, Hurst exponent).
"""

import csv
from typing import List

import numpy as np

from trafficsim.hurst import FALLBACK_HURST, MIN_SAMPLES, estimate_hurst


class StatisticsCollector:
    """Accumulates ``(time, aggregate_rate)`` samples.

    Parameters
    ----------
    sampling_interval : float
        Spacing of the samples in seconds; kept for reporting.
    """

    def __init__(self, sampling_interval: float = 1.0) -> None:
        self.sampling_interval = sampling_interval
        self._times: List[float] = []
        self._rates: List[float] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def record_sample(self, time: float, aggregate_rate: float) -> None:
        self._times.append(time)
        self._rates.append(aggregate_rate)

    @property
    def times(self) -> List[float]:
        return list(self._times)

    @property
    def rates(self) -> List[float]:
        return list(self._rates)

    def sample_count(self) -> int:
        return len(self._rates)

    def average_rate(self) -> float:
        if not self._rates:
            return 0.0
        return float(np.mean(self._rates))

    def peak_rate(self) -> float:
        if not self._rates:
            return 0.0
        return float(np.max(self._rates))

    def std_dev_rate(self) -> float:
        """Sample standard deviation (n - 1 denominator), 0 below two samples."""
        if len(self._rates) < 2:
            return 0.0
        return float(np.std(self._rates, ddof=1))

    def hurst_exponent(self) -> float:
        if len(self._rates) < MIN_SAMPLES:
            return FALLBACK_HURST
        return estimate_hurst(self._rates)

    def summary(self) -> dict:
        """Summary figures of the recorded series.

        Returns
        -------
        dict with keys:
            ``sample_count``  – number of samples recorded
            ``average_rate``  – mean aggregate rate
            ``peak_rate``     – maximum aggregate rate
            ``std_dev_rate``  – sample standard deviation of the rate
            ``hurst``         – R/S Hurst estimate (0.5 for short series)
        """
        return {
            "sample_count": self.sample_count(),
            "average_rate": self.average_rate(),
            "peak_rate": self.peak_rate(),
            "std_dev_rate": self.std_dev_rate(),
            "hurst": self.hurst_exponent(),
        }

    def export_csv(self, path) -> None:
        """Write the series as ``Time,AggregateRate`` rows."""
        with open(path, "w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(["Time", "AggregateRate"])
            for t, rate in zip(self._times, self._rates):
                writer.writerow([f"{t:.4f}", f"{rate:.6f}"])

    def reset(self) -> None:
        """Clear all recorded data."""
        self._times.clear()
        self._rates.clear()

    def __repr__(self) -> str:
        return f"StatisticsCollector(samples={len(self._rates)})"
