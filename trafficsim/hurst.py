"""Rescaled-range (R/S) estimation of the Hurst exponent.

For each segment size ``N_k`` (``n/2, n/4, ...`` down to 8) the series is
split into non-overlapping windows.  Each window contributes::

    R/S = (max(Y) - min(Y)) / std(x),    Y = cumsum(x - mean(x))

The slope of ``log(mean R/S)`` against ``log(N_k)`` estimates H.  Short or
degenerate inputs fall back to 0.5, the value of an uncorrelated series.
"""

from typing import Sequence

import numpy as np

MIN_SAMPLES = 20
MIN_SEGMENT_SIZE = 8
FALLBACK_HURST = 0.5


def estimate_hurst(data: Sequence[float]) -> float:
    """Estimate the Hurst exponent of *data*, clamped to ``[0, 1]``.

    Parameters
    ----------
    data : sequence of float
        Uniformly sampled time series.

    Returns
    -------
    float
        The R/S slope, or 0.5 when fewer than 20 samples are given or fewer
        than two segment sizes produce a usable R/S value.
    """
    if data is None:
        return FALLBACK_HURST
    values = np.asarray(data, dtype=float)
    n = values.size
    if n < MIN_SAMPLES:
        return FALLBACK_HURST

    log_sizes = []
    log_rs = []
    size = n // 2
    while size >= MIN_SEGMENT_SIZE:
        rs = _mean_rescaled_range(values, size)
        if rs is not None:
            log_sizes.append(np.log(size))
            log_rs.append(np.log(rs))
        size //= 2

    if len(log_sizes) < 2:
        return FALLBACK_HURST
    return _regression_slope(np.array(log_sizes), np.array(log_rs))


def _mean_rescaled_range(values: np.ndarray, size: int):
    windows = values[: (values.size // size) * size].reshape(-1, size)
    centred = windows - windows.mean(axis=1, keepdims=True)
    cumulative = np.cumsum(centred, axis=1)
    ranges = cumulative.max(axis=1) - cumulative.min(axis=1)
    std = windows.std(axis=1)

    # Flat windows have no scale; they are skipped rather than counted as zero.
    with np.errstate(divide="ignore", invalid="ignore"):
        rs = np.where(std > 0, ranges / std, 0.0)
    valid = rs[np.isfinite(rs) & (rs > 0)]
    if valid.size == 0:
        return None
    return float(valid.mean())


def _regression_slope(x: np.ndarray, y: np.ndarray) -> float:
    dx = x - x.mean()
    den = float(np.sum(dx * dx))
    if den <= 0:
        return FALLBACK_HURST
    slope = float(np.sum(dx * (y - y.mean())) / den)
    return min(1.0, max(0.0, slope))
