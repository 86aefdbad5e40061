"""Heavy-tailed duration sampling for Pareto ON/OFF sources.

A Pareto variable with shape ``alpha`` and scale ``x_m`` is drawn by inverse
transform sampling::

    X = x_m / U ** (1 / alpha),    U ~ Uniform(0, 1)

For ``alpha < 2`` the variance is infinite, which is what makes the
aggregate of many such ON/OFF sources self-similar.
"""

import numpy as np

from trafficsim.parameters import ConfigurationError

# Lower bound for U; keeps the sample finite.
_MIN_UNIFORM = 1e-12

# Lower bound for jittered parameters.
_MIN_PARAMETER = 1e-4


class ParetoDistribution:
    """Pareto sampler driven by an explicit random generator.

    Parameters
    ----------
    shape : float
        Tail index alpha (> 0).
    scale : float
        Minimum value x_m (> 0).  Every sample is ``>= scale``.
    rng : numpy.random.Generator or None
        Source of uniform variates.  A fresh unseeded generator is created
        when omitted.
    """

    def __init__(self, shape: float, scale: float, rng: np.random.Generator = None) -> None:
        if shape <= 0 or scale <= 0:
            raise ConfigurationError("Pareto shape and scale must be positive")
        self.shape = shape
        self.scale = scale
        self._rng = rng if rng is not None else np.random.default_rng()

    def sample(self) -> float:
        u = max(self._rng.random(), _MIN_UNIFORM)
        return self.scale / u ** (1.0 / self.shape)

    @property
    def mean(self) -> float:
        """Theoretical mean, infinite for ``shape <= 1``."""
        if self.shape <= 1.0:
            return float("inf")
        return self.shape * self.scale / (self.shape - 1.0)

    def __repr__(self) -> str:
        return f"ParetoDistribution(shape={self.shape:.3f}, scale={self.scale:.3f})"


def vary(base: float, variation: float, rng: np.random.Generator) -> float:
    """Perturb *base* uniformly by +/-*variation* (relative)."""
    delta = rng.uniform(-variation, variation) if variation > 0 else 0.0
    return max(_MIN_PARAMETER, base * (1.0 + delta))
