"""
Per-call telemetry for the routing client.

Every public client call fills in one :class:`Measurement` and records it
exactly once when the call returns, whether it succeeded or not.
"""

from dataclasses import (
    dataclass,
    field,
)
from datetime import (
    timedelta,
)
import threading

import httpx
from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Histogram,
)
import trio

from delegated_routing.types.exceptions import (
    IteratorCancelledError,
)

LABEL_NAMES = ["code", "error", "host", "operation"]

LATENCY_BUCKETS = (
    0.001,
    0.002,
    0.005,
    0.01,
    0.02,
    0.05,
    0.1,
    0.2,
    0.5,
    1.0,
    2.0,
    5.0,
    10.0,
    20.0,
)
LENGTH_BUCKETS = (0, 1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000)


class ClientMetrics:
    latency: Histogram
    length: Histogram

    def __init__(self, registry: CollectorRegistry | None = REGISTRY) -> None:
        self.latency = Histogram(
            "routing_http_client_latency_seconds",
            "time from sending a routing request until its response headers arrive",
            labelnames=LABEL_NAMES,
            buckets=LATENCY_BUCKETS,
            registry=registry,
        )
        self.length = Histogram(
            "routing_http_client_length",
            "number of records in a batch routing response",
            labelnames=LABEL_NAMES,
            buckets=LENGTH_BUCKETS,
            registry=registry,
        )


_default_metrics: ClientMetrics | None = None
_default_metrics_lock = threading.Lock()


def default_metrics() -> ClientMetrics:
    """Return the process-wide metrics, registered on the default registry once."""
    global _default_metrics
    with _default_metrics_lock:
        if _default_metrics is None:
            _default_metrics = ClientMetrics()
        return _default_metrics


def metrics_error_str(err: BaseException | None) -> str:
    match err:
        case None:
            return "None"
        case trio.Cancelled() | IteratorCancelledError():
            return "Cancelled"
        case httpx.TimeoutException():
            return "DeadlineExceeded"
        case _:
            return "Other"


@dataclass
class Measurement:
    operation: str
    host: str = ""
    status_code: int = 0
    error: BaseException | None = None
    latency: timedelta = timedelta(0)
    length: int | None = None
    _recorded: bool = field(default=False, init=False, repr=False)

    def labels(self) -> dict[str, str]:
        return {
            "code": str(self.status_code),
            "error": metrics_error_str(self.error),
            "host": self.host,
            "operation": self.operation,
        }

    def record(self, metrics: ClientMetrics) -> None:
        if self._recorded:
            return
        self._recorded = True
        labels = self.labels()
        metrics.latency.labels(**labels).observe(self.latency.total_seconds())
        if self.length is not None:
            metrics.length.labels(**labels).observe(self.length)
