import logging

import pytest
from prometheus_client import (
    CollectorRegistry,
)

from delegated_routing.client.measures import (
    ClientMetrics,
)
from delegated_routing.utils.clock import (
    MockClock,
)
from tests.utils.factories import (
    IdentityFactory,
)


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return ClientMetrics(registry=registry)


@pytest.fixture
def clock():
    return MockClock()


@pytest.fixture
def identity():
    return IdentityFactory()


@pytest.fixture(autouse=True)
def propagate_package_logs():
    """Let caplog see records from the otherwise quiet package logger."""
    logger = logging.getLogger("delegated_routing")
    propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = propagate
