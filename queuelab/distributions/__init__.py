from queuelab.distributions.skewed import (
    MIN_SERVICE_TIME_MS,
    SkewedServiceTime,
    multiplier_bounds,
    sample_service_time,
)

__all__ = [
    "MIN_SERVICE_TIME_MS",
    "SkewedServiceTime",
    "multiplier_bounds",
    "sample_service_time",
]
