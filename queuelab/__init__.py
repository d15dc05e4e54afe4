"""queuelab: single-server request queue simulation.

Models a server with one execution slot behind a queue, under a configurable
arrival rate, skewed service times, queue discipline (FIFO, LIFO, Adaptive
LIFO), admission control and client-side timeouts, and reports completion
latency percentiles.
"""

import logging

from queuelab.components import (
    AdaptiveLIFO,
    AdmissionController,
    Dispatcher,
    FIFOQueue,
    LIFOQueue,
    QueueDiscipline,
    QueuePolicy,
    TimeoutMonitor,
    policy_for,
    select_next,
)
from queuelab.core import (
    ConfigurationError,
    InvariantViolation,
    QueueLabError,
    Request,
    RequestRegistry,
    RequestStatus,
)
from queuelab.distributions import SkewedServiceTime, sample_service_time
from queuelab.instrumentation import (
    StatsAggregator,
    StatsSnapshot,
    percentile,
    requests_to_dataframe,
    stats_to_dataframe,
)
from queuelab.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from queuelab.settings import Settings
from queuelab.simulation import DriverState, Simulation, SimulationSnapshot
from queuelab.utils import ManualClock, WallClock

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Simulation
    "DriverState",
    "Settings",
    "Simulation",
    "SimulationSnapshot",
    # Requests
    "Request",
    "RequestRegistry",
    "RequestStatus",
    # Components
    "AdaptiveLIFO",
    "AdmissionController",
    "Dispatcher",
    "FIFOQueue",
    "LIFOQueue",
    "QueueDiscipline",
    "QueuePolicy",
    "TimeoutMonitor",
    "policy_for",
    "select_next",
    # Distributions
    "SkewedServiceTime",
    "sample_service_time",
    # Stats
    "StatsAggregator",
    "StatsSnapshot",
    "percentile",
    "requests_to_dataframe",
    "stats_to_dataframe",
    # Clocks
    "ManualClock",
    "WallClock",
    # Errors
    "ConfigurationError",
    "InvariantViolation",
    "QueueLabError",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
