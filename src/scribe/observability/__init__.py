"""scribe observability package — metrics and logging setup."""

from scribe.observability.log_setup import configure_logging
from scribe.observability.metrics import MetricsCollector, get_metrics

__all__ = ["MetricsCollector", "configure_logging", "get_metrics"]
