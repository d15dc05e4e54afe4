"""Skewed service-time distribution.

Service times are drawn from a range that widens with ``variation``:

    min_mult = 1 - 0.9 * variation
    max_mult = 1 + 9 * variation
    duration = avg * (min_mult + u**1.5 * (max_mult - min_mult)),  u ~ U[0, 1)

Raising ``u`` to 1.5 biases samples toward the low end of the range, giving
a long right tail: most requests are quick, a few are very slow. At
``variation=0`` every sample equals ``avg``; at ``variation=1`` samples span
``[0.1 * avg, 10 * avg]``. Results are rounded and never below 50 ms.
"""

import random

MIN_SERVICE_TIME_MS = 50
SKEW_EXPONENT = 1.5


def multiplier_bounds(variation: float) -> tuple[float, float]:
    """Return the (min, max) multipliers applied to the average."""
    return 1.0 - 0.9 * variation, 1.0 + 9.0 * variation


def sample_service_time(avg: float, variation: float, rng: random.Random | None = None) -> float:
    """Draw one service duration in milliseconds.

    Args:
        avg: Average service time in milliseconds.
        variation: Spread in [0, 1].
        rng: Random source. Defaults to the ``random`` module.
    """
    u = (rng or random).random()
    min_mult, max_mult = multiplier_bounds(variation)
    skewed = u ** SKEW_EXPONENT
    multiplier = min_mult + skewed * (max_mult - min_mult)
    return float(max(MIN_SERVICE_TIME_MS, round(avg * multiplier)))


class SkewedServiceTime:
    """Seedable sampler bound to its own random stream.

    Args:
        seed: Seed for reproducible runs. None draws from system entropy.
    """

    def __init__(self, seed: int | None = None):
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def reseed(self, seed: int | None = None) -> None:
        self._seed = seed
        self._rng = random.Random(seed)

    def sample(self, avg: float, variation: float) -> float:
        return sample_service_time(avg, variation, self._rng)

    @staticmethod
    def bounds(avg: float, variation: float) -> tuple[float, float]:
        """Smallest and largest duration the sampler can return."""
        min_mult, max_mult = multiplier_bounds(variation)
        return (
            float(max(MIN_SERVICE_TIME_MS, round(avg * min_mult))),
            float(max(MIN_SERVICE_TIME_MS, round(avg * max_mult))),
        )
