"""Fractional Gaussian Noise generation (Davies–Harte method).

FGN is the increment process of fractional Brownian motion.  For a Hurst
exponent H its autocovariance at lag k is::

    gamma(k) = 0.5 * (|k-1|^{2H} - 2|k|^{2H} + |k+1|^{2H}),    gamma(0) = 1

The Davies–Harte method embeds this covariance in a circulant matrix whose
eigenvalues are obtained with one FFT.  A Hermitian complex Gaussian vector
shaped by those eigenvalues (bin k has variance lambda_k) is transformed
back with the inverse FFT, normalised by the embedding length m.  The result
is a stationary Gaussian process whose covariance is gamma(k) * sigma^2 / m;
the shape of the correlation, and therefore H, is exact.

The transform is a radix-2 Cooley–Tukey FFT implemented here, which is why
the embedding length is always rounded up to a power of two.

Example usage::

    from trafficsim.fgn import FractionalGaussianNoise

    fgn = FractionalGaussianNoise(hurst=0.8, sigma=1.0, seed=123)
    series = fgn.generate(1024)
"""

import numpy as np

from trafficsim.parameters import ConfigurationError, validate_fgn


class FractionalGaussianNoise:
    """Seeded FGN generator.

    Parameters
    ----------
    hurst : float
        Hurst exponent, strictly between 0.5 and 1.0.
    sigma : float
        Multiplier applied to the generated series (> 0).
    seed : int or None
        Seed of the generator's private RNG.  Two generators built with the
        same ``(hurst, sigma, seed)`` produce bit-identical series.
    rng : numpy.random.Generator or None
        Explicit generator; takes precedence over *seed*.
    """

    def __init__(
        self,
        hurst: float,
        sigma: float = 1.0,
        seed: int = None,
        rng: np.random.Generator = None,
    ) -> None:
        validate_fgn(hurst, sigma)
        self.hurst = hurst
        self.sigma = sigma
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate(self, n: int) -> np.ndarray:
        """Return *n* zero-mean FGN samples, scaled by sigma."""
        if n < 2:
            raise ConfigurationError("n must be >= 2")

        m = next_power_of_two(2 * n)
        circulant = self._circulant_vector(n, m)

        eigenvalues = fft(circulant.astype(np.complex128)).real
        # The embedding is not exactly positive semi-definite for every H.
        eigenvalues = np.clip(eigenvalues, 0.0, None)

        spectrum = self._hermitian_gaussian(eigenvalues)
        series = fft(spectrum, inverse=True).real
        return self.sigma * series[:n]

    def autocovariance(self, lags: np.ndarray) -> np.ndarray:
        """Unit-variance FGN autocovariance at the given non-negative lags."""
        k = np.asarray(lags, dtype=float)
        two_h = 2.0 * self.hurst
        return 0.5 * (
            np.abs(k - 1.0) ** two_h - 2.0 * k ** two_h + (k + 1.0) ** two_h
        )

    # ------------------------------------------------------------------
    # Davies–Harte steps
    # ------------------------------------------------------------------

    def _circulant_vector(self, n: int, m: int) -> np.ndarray:
        gamma = self.autocovariance(np.arange(n + 1))
        c = np.zeros(m)
        c[:n] = gamma[:n]

        # Mirror gamma(2n - k) up to index 2n, zero beyond.
        mirrored = 2 * n - np.arange(n, m)
        valid = mirrored >= 0
        tail = np.zeros(m - n)
        tail[valid] = gamma[mirrored[valid]]
        c[n:] = tail
        return c

    def _hermitian_gaussian(self, eigenvalues: np.ndarray) -> np.ndarray:
        m = len(eigenvalues)
        half = m // 2
        # Bin k has variance eigenvalues[k].
        weights = np.sqrt(eigenvalues)

        spectrum = np.zeros(m, dtype=np.complex128)
        spectrum[0] = weights[0] * self._rng.standard_normal()
        spectrum[half] = weights[half] * self._rng.standard_normal()

        pairs = self._rng.standard_normal((half - 1, 2))
        positive = weights[1:half] / np.sqrt(2.0) * (pairs[:, 0] + 1j * pairs[:, 1])
        spectrum[1:half] = positive
        spectrum[m - 1:half:-1] = np.conj(positive)
        return spectrum


def next_power_of_two(value: int) -> int:
    m = 1
    while m < value:
        m <<= 1
    return m


def fft(values: np.ndarray, inverse: bool = False) -> np.ndarray:
    """In-place radix-2 Cooley–Tukey FFT of a complex array.

    The inverse transform is normalised by the length.  Returns *values* for
    convenience.

    Raises
    ------
    ValueError
        If the length is not a power of two.
    """
    n = len(values)
    if n == 0 or n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}")
    if n == 1:
        return values

    # Bit-reversal permutation
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            values[i], values[j] = values[j], values[i]

    # Butterfly passes, one vectorised pass per stage
    sign = 1.0 if inverse else -1.0
    length = 2
    while length <= n:
        half = length // 2
        twiddles = np.exp(sign * 2j * np.pi * np.arange(half) / length)
        blocks = values.reshape(-1, length)
        upper = blocks[:, :half].copy()
        lower = blocks[:, half:] * twiddles
        blocks[:, :half] = upper + lower
        blocks[:, half:] = upper - lower
        length <<= 1

    if inverse:
        values /= n
    return values

