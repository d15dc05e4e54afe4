"""
Shared pytest fixtures for queuelab tests.
"""

import logging

import pytest

from queuelab.core.registry import RequestRegistry
from queuelab.instrumentation.stats import StatsAggregator


@pytest.fixture(autouse=True)
def reset_queuelab_logging():
    """Reset logging state before each test.

    Removes every handler except a NullHandler and resets the level so one
    test's logging configuration cannot leak into the next.
    """
    logger = logging.getLogger("queuelab")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture
def registry() -> RequestRegistry:
    return RequestRegistry()


@pytest.fixture
def tracked_registry() -> tuple[RequestRegistry, StatsAggregator]:
    """A registry wired to a stats aggregator, as the simulation wires them."""
    registry = RequestRegistry()
    stats = StatsAggregator()
    registry.subscribe(stats.record)
    return registry, stats
