# Observability module
from .enforcement_metrics import EnforcementMetrics
from .logging_config import configure_logging, get_logger
from .metrics import MetricsClient, RegistryMetricsClient, get_metrics_client, set_metrics_client
from .timing import TimingContext, timed

__all__ = [
    "EnforcementMetrics",
    "MetricsClient",
    "RegistryMetricsClient",
    "get_metrics_client",
    "set_metrics_client",
    "configure_logging",
    "get_logger",
    "timed",
    "TimingContext",
]
